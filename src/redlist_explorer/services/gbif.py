"""
GBIF API client.

Low-level HTTP access to the GBIF v1 API. Parsing into typed results lives in
``redlist_explorer.datasources.gbif``.

API docs: https://techdocs.gbif.org/en/openapi/
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from redlist_explorer.services.http import session

API_BASE = "https://api.gbif.org/v1"
SITE_BASE = "https://www.gbif.org"

# iNaturalist research-grade observations as published to GBIF
INATURALIST_DATASET_KEY = "50c9509d-22c7-4a22-a47d-8c48425ef4a7"

FACET_LIMIT = 500_000

Params = dict[str, Any] | Sequence[tuple[str, Any]]


def _get(endpoint: str, params: Params | None = None) -> dict[str, Any]:
    """GET a GBIF endpoint and return the decoded JSON body."""
    url = f"{API_BASE}/{endpoint}"
    resp = session.get(url, params=params or {})
    resp.raise_for_status()
    data: dict[str, Any] = resp.json()
    return data


def get_species_match(name: str) -> dict[str, Any]:
    """GET /species/match: map a scientific name onto the backbone."""
    return _get("species/match", {"name": name})


def get_species(key: int) -> dict[str, Any]:
    """GET /species/{key}: a single backbone usage."""
    return _get(f"species/{key}")


def search_occurrences(params: Params) -> dict[str, Any]:
    """GET /occurrence/search: counts (``limit=0``), records, or facets."""
    return _get("occurrence/search", params)


def species_url(key: int) -> str:
    """Public GBIF page for a backbone usage."""
    return f"{SITE_BASE}/species/{key}"
