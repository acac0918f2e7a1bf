"""Centralized configuration with env var overrides.

All hardcoded values live here. Override any via environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(PROJECT_ROOT / ".env")

# ── Feed ──
FEED_URL = os.environ.get("FEED_URL", "https://www.alik.cz/s/darky/csv")
FEED_TIMEOUT = float(os.environ.get("FEED_TIMEOUT", 15))
FEED_ENCODING = os.environ.get("FEED_ENCODING", "utf-8")

# ── Paths ──
SNAPSHOT_FILE = Path(os.environ.get("SNAPSHOT_FILE", str(PROJECT_ROOT / "data.pkl")))
BOOTSTRAP_JSON_FILE = Path(os.environ.get("BOOTSTRAP_JSON_FILE", str(PROJECT_ROOT / "gifts.json")))

# ── Refresh ──
REFRESH_INTERVAL = int(os.environ.get("REFRESH_INTERVAL", 10 * 60))  # 10 minutes

# ── Web ──
PORT = int(os.environ.get("PORT", 4576))
DEFAULT_WINDOW = os.environ.get("DEFAULT_WINDOW", "24h")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
