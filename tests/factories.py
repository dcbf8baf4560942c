"""Builders for snapshot and provider payloads used across tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

WriteSnapshot = Callable[..., Path]
WriteTable = Callable[[str, str], Path]


def species_record(
    sis_taxon_id: int,
    scientific_name: str,
    category: str,
    **extra: Any,  # noqa: ANN401
) -> dict[str, Any]:
    """One species entry as written by the snapshot export."""
    return {
        "sis_taxon_id": sis_taxon_id,
        "assessment_id": sis_taxon_id * 10,
        "scientific_name": scientific_name,
        "common_name": extra.pop("common_name", None),
        "family": None,
        "category": category,
        "assessment_date": extra.pop("assessment_date", "2020-05-01"),
        "year_published": extra.pop("year_published", "2020"),
        "url": f"https://www.iucnredlist.org/species/{sis_taxon_id}/{sis_taxon_id * 10}",
        "population_trend": None,
        "countries": [],
        "assessment_count": 1,
        "previous_assessments": [],
        **extra,
    }


def gbif_response(count: int = 0, results: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    """``/occurrence/search`` body."""
    return {"count": count, "results": results or []}


def facet_response(counts: dict[int, int]) -> dict[str, Any]:
    """``/occurrence/search?facet=speciesKey`` body."""
    return {
        "count": sum(counts.values()),
        "results": [],
        "facets": [
            {
                "field": "SPECIES_KEY",
                "counts": [{"name": str(k), "count": v} for k, v in counts.items()],
            }
        ],
    }
