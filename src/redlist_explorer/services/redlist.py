"""
IUCN Red List API v4 client.

Every request carries the bearer token from ``RED_LIST_API_KEY``. A missing
token is a configuration error, raised before any network I/O.

API docs: https://api.iucnredlist.org/api-docs/index.html
"""

from __future__ import annotations

from typing import Any

from redlist_explorer.config import get_settings
from redlist_explorer.errors import MissingCredentialError
from redlist_explorer.services.http import session

API_BASE = "https://api.iucnredlist.org/api/v4"
CREDENTIAL_VARIABLE = "RED_LIST_API_KEY"


def require_api_key() -> str:
    """Return the configured API key or raise ``MissingCredentialError``."""
    key = get_settings().red_list_api_key
    if not key:
        raise MissingCredentialError(CREDENTIAL_VARIABLE)
    return key


def _get(endpoint: str) -> dict[str, Any]:
    """Authenticated GET against the Red List API."""
    headers = {"Authorization": f"Bearer {require_api_key()}"}
    resp = session.get(f"{API_BASE}/{endpoint}", headers=headers)
    resp.raise_for_status()
    data: dict[str, Any] = resp.json()
    return data


def get_taxon_by_sis(sis_id: int) -> dict[str, Any]:
    """GET /taxa/sis/{id}: taxon with its assessment list and common names."""
    return _get(f"taxa/sis/{sis_id}")


def get_assessment(assessment_id: int) -> dict[str, Any]:
    """GET /assessment/{id}: full assessment record."""
    return _get(f"assessment/{assessment_id}")
