"""Red List taxon records: assessment history and common names."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from redlist_explorer.services import redlist

ENGLISH = frozenset({"eng", "en"})


@dataclass(frozen=True)
class RedListTaxon:
    """The parts of ``/taxa/sis/{id}`` the detail view needs."""

    sis_taxon_id: int
    assessment_count: int = 1
    common_name: str | None = None
    scientific_name: str | None = None
    assessment_ids: list[int] = field(default_factory=list)


def pick_common_name(names: list[dict[str, Any]]) -> str | None:
    """English name first, then the one flagged ``main``, then whatever is first."""
    if not names:
        return None
    english = next((n for n in names if n.get("language") in ENGLISH), None)
    main = next((n for n in names if n.get("main")), None)
    return next((n["name"] for n in (english, main, names[0]) if n and n.get("name")), None)


def parse_taxon(sis_id: int, data: dict[str, Any]) -> RedListTaxon:
    """
    Parse a taxon response.

    ``assessment_count`` is 1 when the assessment list is missing or empty:
    a species that is in the snapshot has at least its current assessment.
    """
    assessments = data.get("assessments") or []
    taxon = data.get("taxon") or {}
    return RedListTaxon(
        sis_taxon_id=sis_id,
        assessment_count=len(assessments) or 1,
        common_name=pick_common_name(taxon.get("common_names") or []),
        scientific_name=taxon.get("scientific_name"),
        assessment_ids=[a["assessment_id"] for a in assessments if "assessment_id" in a],
    )


def fetch_taxon(sis_id: int) -> RedListTaxon:
    return parse_taxon(sis_id, redlist.get_taxon_by_sis(sis_id))
