"""Scientific-name matching against the GBIF backbone."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from redlist_explorer.services import gbif


class MatchType(StrEnum):
    """Confidence of a name match, as reported by ``/species/match``."""

    EXACT = "EXACT"
    FUZZY = "FUZZY"
    VARIANT = "VARIANT"
    HIGHERRANK = "HIGHERRANK"
    NONE = "NONE"


#: Matches that identify the species itself. HIGHERRANK resolves to a genus
#: or above, and its occurrences would cover every species in that group.
ACCEPTED_MATCH_TYPES = frozenset({MatchType.EXACT, MatchType.FUZZY, MatchType.VARIANT})


@dataclass(frozen=True)
class NameMatch:
    """Backbone usage a scientific name resolved to."""

    usage_key: int | None
    match_type: MatchType
    scientific_name: str | None = None
    rank: str | None = None
    confidence: int | None = None

    @property
    def is_species_level(self) -> bool:
        """True if occurrence counts for ``usage_key`` belong to this species."""
        return self.usage_key is not None and self.match_type in ACCEPTED_MATCH_TYPES


def parse_name_match(data: dict[str, Any]) -> NameMatch:
    """
    Parse a ``/species/match`` response.

    Missing or unrecognised ``matchType`` becomes ``NONE``; a missing
    ``usageKey`` stays None (GBIF omits it when nothing matched).
    """
    raw_type = str(data.get("matchType") or MatchType.NONE).upper()
    try:
        match_type = MatchType(raw_type)
    except ValueError:
        match_type = MatchType.NONE

    usage_key = data.get("usageKey")
    return NameMatch(
        usage_key=int(usage_key) if usage_key is not None else None,
        match_type=match_type,
        scientific_name=data.get("scientificName"),
        rank=data.get("rank"),
        confidence=data.get("confidence"),
    )


def match_name(name: str) -> NameMatch:
    """Match ``name`` against the GBIF backbone."""
    return parse_name_match(gbif.get_species_match(name))
