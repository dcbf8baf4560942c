"""Backbone species lookups (display names for live listings)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from redlist_explorer.services import gbif


@dataclass(frozen=True)
class SpeciesName:
    """Display names for a backbone species key."""

    key: int
    canonical_name: str | None
    vernacular_name: str | None = None


def parse_species_name(key: int, data: dict[str, Any]) -> SpeciesName:
    """Prefer ``canonicalName`` (no authorship), falling back to ``scientificName``."""
    return SpeciesName(
        key=key,
        canonical_name=data.get("canonicalName") or data.get("scientificName"),
        vernacular_name=data.get("vernacularName"),
    )


def fetch_species_name(key: int) -> SpeciesName:
    """GET /species/{key} and extract its names."""
    return parse_species_name(key, gbif.get_species(key))
