"""
iNaturalist API client.

Low-level HTTP client for the iNaturalist API v1, with the ~1 req/sec rate
limit the API asks for.

API docs: https://api.inaturalist.org/v1/docs/
Recommended practices: https://www.inaturalist.org/pages/api+recommended+practices
"""

from __future__ import annotations

import threading
import time
from typing import Any

from redlist_explorer.services.http import session

API_BASE = "https://api.inaturalist.org/v1"

# ---------------------------------------------------------------------------
# Rate limiting (module-level state, shared by request threads)
# ---------------------------------------------------------------------------
_last_request_time: float = 0.0
_rate_lock = threading.Lock()
MIN_REQUEST_INTERVAL: float = 1.1  # seconds, safely under 1 req/s


def _rate_limit() -> None:
    """Sleep if needed to honour the ~1 req/s rate limit."""
    global _last_request_time  # noqa: PLW0603
    with _rate_lock:
        now = time.monotonic()
        elapsed = now - _last_request_time
        if elapsed < MIN_REQUEST_INTERVAL:
            time.sleep(MIN_REQUEST_INTERVAL - elapsed)
        _last_request_time = time.monotonic()


def _get(endpoint: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Make a rate-limited GET request to the iNaturalist API v1."""
    _rate_limit()
    url = f"{API_BASE}/{endpoint}"
    resp = session.get(url, params=params or {})
    resp.raise_for_status()
    data: dict[str, Any] = resp.json()
    return data


def get_taxa(params: dict[str, Any]) -> dict[str, Any]:
    """GET /taxa: search taxa by name."""
    return _get("taxa", params)
