"""FastAPI web app for the gift catalogue tracker.

Routes:
  GET /                  -- HTML overview: all gifts + added/discounted/restocked
  GET /gifts.json        -- full catalogue with history (wire schema)
  GET /api/added         -- gifts created within ?within= (default 24h)
  GET /api/discounted    -- gifts that got cheaper within ?within=
  GET /api/stock-changed -- gifts whose stock changed within ?within=
  GET /health            -- liveness + catalogue size

The catalogue lives on app.state; the refresh scheduler is the only writer.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

import gift_tracker.config as config
from gift_tracker.catalogue import Catalogue
from gift_tracker.helpers import format_time, parse_duration
from gift_tracker.queries import filter_added, filter_discounted, filter_stock_changed
from gift_tracker.refresh import bootstrap
from gift_tracker.scheduler import start_scheduler, stop_scheduler
from gift_tracker.views import build_rows
from gift_tracker.wire import catalogue_to_wire, items_to_wire

# ──────────────────────────────────────────────
# Logging — stdout
# ──────────────────────────────────────────────

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    catalogue = Catalogue()
    app.state.catalogue = catalogue
    log.info("Loading catalogue...")
    source = await asyncio.get_running_loop().run_in_executor(None, bootstrap, catalogue)
    log.info(f"Loaded {len(catalogue)} gift(s) from {source}")

    refresh_tasks = await start_scheduler(catalogue)
    yield
    stop_scheduler()
    if refresh_tasks:
        try:
            results = await asyncio.wait_for(
                asyncio.gather(*refresh_tasks, return_exceptions=True),
                timeout=30,
            )
            for r in results:
                if isinstance(r, Exception):
                    log.error("Refresh thread error during shutdown", exc_info=r)
        except TimeoutError:
            log.warning("Refresh thread did not stop within 30s")


app = FastAPI(
    title="Gift Tracker",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


@app.middleware("http")
async def cors_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET"
    response.headers["Access-Control-Allow-Headers"] = (
        "Accept, Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization"
    )
    return response


templates = Jinja2Templates(directory=Path(__file__).parent / "templates")


# ──────────────────────────────────────────────
# Shared helpers
# ──────────────────────────────────────────────

def _catalogue(request: Request) -> Catalogue:
    return request.app.state.catalogue


def _window(within: str | None):
    """Parse the ?within= query param, 400 on garbage."""
    try:
        return parse_duration(within or config.DEFAULT_WINDOW)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"invalid duration: {within!r}")


# ──────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────

@app.get("/health")
def health(request: Request):
    return {"status": "ok", "items": len(_catalogue(request))}


@app.get("/gifts.json")
def gifts_json(request: Request):
    return catalogue_to_wire(_catalogue(request))


@app.get("/api/added")
def api_added(request: Request, within: str | None = None):
    catalogue = _catalogue(request)
    with catalogue.lock:
        return items_to_wire(filter_added(catalogue, _window(within)))


@app.get("/api/discounted")
def api_discounted(request: Request, within: str | None = None):
    catalogue = _catalogue(request)
    with catalogue.lock:
        return items_to_wire(filter_discounted(catalogue, _window(within)))


@app.get("/api/stock-changed")
def api_stock_changed(request: Request, within: str | None = None):
    catalogue = _catalogue(request)
    with catalogue.lock:
        return items_to_wire(filter_stock_changed(catalogue, _window(within)))


@app.get("/", response_class=HTMLResponse)
def index(request: Request, within: str | None = None):
    catalogue = _catalogue(request)
    window = _window(within)
    now = datetime.now(timezone.utc)
    with catalogue.lock:
        context = {
            "within": within or config.DEFAULT_WINDOW,
            "now": format_time(now),
            "gifts": build_rows(catalogue.items(), now),
            "added": build_rows(filter_added(catalogue, window, now), now),
            "discounted": build_rows(filter_discounted(catalogue, window, now), now),
            "stock_changed": build_rows(filter_stock_changed(catalogue, window, now), now),
        }
    return templates.TemplateResponse(request, "index.html", context)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
