"""Single Red List assessments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from redlist_explorer.services import redlist


@dataclass(frozen=True)
class AssessmentDetail:
    """Assessment fields shown next to occurrence statistics."""

    assessment_id: int
    criteria: str | None = None
    category: str | None = None
    year_published: str | None = None
    assessment_date: str | None = None


def parse_assessment(assessment_id: int, data: dict[str, Any]) -> AssessmentDetail:
    category = data.get("red_list_category") or {}
    return AssessmentDetail(
        assessment_id=assessment_id,
        criteria=data.get("criteria") or None,
        category=category.get("code") if isinstance(category, dict) else None,
        year_published=data.get("year_published"),
        assessment_date=data.get("assessment_date"),
    )


def fetch_assessment(assessment_id: int) -> AssessmentDetail:
    return parse_assessment(assessment_id, redlist.get_assessment(assessment_id))
