"""
Shared HTTP client.

Provides a pre-configured ``requests.Session`` with a default timeout and a
mountable retry policy. Provider calls are not retried unless
``REDLIST_EXPLORER_HTTP_RETRIES`` is set.

Usage::

    from redlist_explorer.services.http import session

    resp = session.get("https://api.gbif.org/v1/occurrence/search", params={...})
    resp.raise_for_status()
"""

from __future__ import annotations

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from redlist_explorer import __version__
from redlist_explorer.config import get_settings

#: No retries: a failed provider call is final for that request.
NO_RETRY = Retry(total=0, raise_on_status=False)

DEFAULT_TIMEOUT = 15  # seconds

USER_AGENT = f"redlist-explorer/{__version__}"


def build_retry(retries: int) -> Retry:
    """Return the retry policy for ``retries`` attempts (0 disables retrying)."""
    if retries <= 0:
        return NO_RETRY
    return Retry(
        total=retries,
        backoff_factor=2,  # 0s, 2s, 4s, ...
        status_forcelist=[429, 502, 503, 504],
        allowed_methods=["GET", "HEAD", "OPTIONS"],
        raise_on_status=False,  # let resp.raise_for_status() handle it
    )


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Session:
    """
    Build a ``requests.Session`` with retry adapter mounted.

    Args:
        retry: Retry strategy (defaults to ``NO_RETRY``).
        timeout: Default timeout applied to every request.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or NO_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = USER_AGENT

    # Inject a default timeout so callers don't need to pass ``timeout=``.
    _original_send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return _original_send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s


def session_from_settings() -> requests.Session:
    """Build a session using the configured retry count and provider timeout."""
    settings = get_settings()
    return create_session(
        retry=build_retry(settings.http_retries),
        timeout=settings.provider_timeout_seconds,
    )


#: Module-level session. Import and use directly.
session: requests.Session = session_from_settings()
