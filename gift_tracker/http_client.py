"""HTTP client with curl_cffi TLS fingerprint impersonation.

Used to download the gift catalogue CSV. A request is made exactly once:
retrying a failed refresh is the scheduler's job (next tick).
"""

import logging
import os
import random
import ssl
from dataclasses import dataclass

from curl_cffi.requests import Session, Response

log = logging.getLogger(__name__)

# Browser fingerprints for TLS impersonation
BROWSER_FINGERPRINTS = ["chrome131", "chrome133a", "chrome136", "chrome124"]

CSV_HEADERS = {
    "Accept": "text/csv,text/plain;q=0.9,*/*;q=0.8",
    "Accept-Encoding": "gzip, deflate, br",
    "Accept-Language": "cs-CZ,cs;q=0.9,en;q=0.8",
}


def _find_ca_bundle() -> str | None:
    """Find system CA certificate bundle for SSL verification."""
    env_path = os.environ.get("CURL_CA_BUNDLE") or os.environ.get("SSL_CERT_FILE")
    if env_path and os.path.isfile(env_path):
        return env_path
    system_ca = ssl.get_default_verify_paths().cafile
    if system_ca and os.path.isfile(system_ca):
        return system_ca
    return None


@dataclass
class FetchResult:
    """Result from fetching a URL."""
    content: bytes
    status_code: int
    headers: dict[str, str]
    url: str


class HttpClient:
    """Synchronous HTTP client; the refresh loop runs in a worker thread."""

    def __init__(self, fingerprint: str | None = None):
        self._fingerprint = fingerprint or random.choice(BROWSER_FINGERPRINTS)
        ca_bundle = _find_ca_bundle()
        self._session = Session(verify=ca_bundle) if ca_bundle else Session()

    def fetch(self, url: str, timeout: float = 15.0, headers: dict | None = None) -> FetchResult:
        """GET `url`. Transport errors propagate from curl_cffi."""
        request_headers = {**CSV_HEADERS, **(headers or {})}
        response: Response = self._session.get(
            url,
            headers=request_headers,
            timeout=timeout,
            impersonate=self._fingerprint,
            allow_redirects=True,
        )
        log.debug(f"GET {url} -> {response.status_code}")
        return FetchResult(
            content=response.content,
            status_code=response.status_code,
            headers=dict(response.headers),
            url=str(response.url),
        )

    def close(self):
        """Close the session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
