"""Calendar windows covering the time since a species' last assessment."""

from __future__ import annotations

from dataclasses import dataclass

from redlist_explorer.datasources.gbif import OccurrenceQuery


@dataclass(frozen=True)
class TemporalWindow:
    """A span of whole years, optionally narrowed to a month range."""

    start_year: int
    end_year: int
    start_month: int | None = None
    end_month: int | None = None

    @property
    def label(self) -> str:
        years = (
            str(self.start_year)
            if self.start_year == self.end_year
            else f"{self.start_year}-{self.end_year}"
        )
        if self.start_month is None:
            return years
        return f"{years}/{self.start_month:02d}-{self.end_month:02d}"

    def apply(self, query: OccurrenceQuery) -> OccurrenceQuery:
        """Restrict ``query`` to this window."""
        query = query.with_years(self.start_year, self.end_year)
        if self.start_month is not None and self.end_month is not None:
            query = query.with_months(self.start_month, self.end_month)
        return query


def since_assessment_windows(
    assessment_year: int,
    assessment_month: int | None,
    current_year: int,
) -> list[TemporalWindow]:
    """
    Non-overlapping windows that together cover "after the assessment".

    - the rest of the assessment year (``month+1 .. 12``), when the month is
      known and before December
    - every full year from ``assessment_year + 1`` to ``current_year``

    Either window is omitted when empty, so the result may be empty.
    """
    windows: list[TemporalWindow] = []
    if assessment_month is not None and 1 <= assessment_month < 12:
        windows.append(TemporalWindow(assessment_year, assessment_year, assessment_month + 1, 12))
    if assessment_year + 1 <= current_year:
        windows.append(TemporalWindow(assessment_year + 1, current_year))
    return windows
