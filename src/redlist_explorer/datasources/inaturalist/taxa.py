"""Default species photos from iNaturalist ``/taxa``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from redlist_explorer.services import inat


@dataclass(frozen=True)
class TaxonImage:
    """Best default photo for a species, at two sizes."""

    square_url: str | None
    medium_url: str | None


def _parse_default_image(data: dict[str, Any]) -> TaxonImage | None:
    """First result's ``default_photo``; sized URLs fall back to ``url``."""
    results = data.get("results") or []
    if not results:
        return None
    photo = results[0].get("default_photo")
    if not photo:
        return None
    return TaxonImage(
        square_url=photo.get("square_url") or photo.get("url"),
        medium_url=photo.get("medium_url") or photo.get("url"),
    )


def fetch_default_image(scientific_name: str) -> TaxonImage | None:
    """Look up the species-rank taxon for ``scientific_name`` and return its photo."""
    data = inat.get_taxa({"q": scientific_name, "rank": "species", "per_page": 1})
    return _parse_default_image(data)
