"""Occurrence counts, records and species facets from ``/occurrence/search``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

import requests

from redlist_explorer.errors import ProviderError
from redlist_explorer.services import gbif

logger = logging.getLogger(__name__)

# =============================================================================
# Query model
# =============================================================================


class BasisOfRecord(StrEnum):
    """How an occurrence was produced."""

    HUMAN_OBSERVATION = "HUMAN_OBSERVATION"
    PRESERVED_SPECIMEN = "PRESERVED_SPECIMEN"
    MACHINE_OBSERVATION = "MACHINE_OBSERVATION"
    OBSERVATION = "OBSERVATION"
    MATERIAL_CITATION = "MATERIAL_CITATION"
    OCCURRENCE = "OCCURRENCE"
    LIVING_SPECIMEN = "LIVING_SPECIMEN"
    FOSSIL_SPECIMEN = "FOSSIL_SPECIMEN"


#: What the "OTHER" listing filter expands to.
OTHER_BASIS_OF_RECORD: tuple[str, ...] = (
    BasisOfRecord.OBSERVATION,
    BasisOfRecord.MATERIAL_CITATION,
    BasisOfRecord.OCCURRENCE,
    BasisOfRecord.LIVING_SPECIMEN,
    BasisOfRecord.FOSSIL_SPECIMEN,
)


@dataclass(frozen=True)
class DataSource:
    """A named contributor, addressed either by dataset or publishing org."""

    kind: str  # "dataset" | "publishingOrg"
    key: str


DATA_SOURCES: dict[str, DataSource] = {
    "iNaturalist": DataSource("dataset", gbif.INATURALIST_DATASET_KEY),
    "iRecord": DataSource("publishingOrg", "32f1b389-5871-4da3-832f-9a89132520c5"),
    "BSBI": DataSource("publishingOrg", "aa569acf-991d-4467-b327-8442f30ddbd2"),
}


def _range(start: int, end: int) -> str:
    return str(start) if start == end else f"{start},{end}"


@dataclass(frozen=True)
class OccurrenceQuery:
    """
    Filter set for ``/occurrence/search``.

    Queries are always restricted to geo-referenced records without
    geospatial issues. Multi-valued filters (basis of record, class and
    order keys) are sent as repeated parameters, which GBIF ORs together.
    """

    taxon_key: int | None = None
    basis_of_record: tuple[str, ...] = ()
    dataset_key: str | None = None
    publishing_org: str | None = None
    year: str | None = None  # "2015" or "2016,2026"
    month: str | None = None  # "7,12"
    max_uncertainty_m: int | None = None
    country: str | None = None
    kingdom_key: int | None = None
    class_keys: tuple[int, ...] = field(default_factory=tuple)
    order_keys: tuple[int, ...] = field(default_factory=tuple)

    def with_basis(self, *basis: str) -> OccurrenceQuery:
        return replace(self, basis_of_record=tuple(basis))

    def with_source(self, source: DataSource) -> OccurrenceQuery:
        if source.kind == "dataset":
            return replace(self, dataset_key=source.key)
        return replace(self, publishing_org=source.key)

    def with_years(self, start: int, end: int) -> OccurrenceQuery:
        return replace(self, year=_range(start, end))

    def with_months(self, start: int, end: int) -> OccurrenceQuery:
        return replace(self, month=_range(start, end))

    def to_params(self) -> list[tuple[str, Any]]:
        """Render as repeated-key query parameters."""
        params: list[tuple[str, Any]] = [
            ("hasCoordinate", "true"),
            ("hasGeospatialIssue", "false"),
        ]
        if self.taxon_key is not None:
            params.append(("taxonKey", self.taxon_key))
        params.extend(("basisOfRecord", b) for b in self.basis_of_record)
        if self.dataset_key:
            params.append(("datasetKey", self.dataset_key))
        if self.publishing_org:
            params.append(("publishingOrg", self.publishing_org))
        if self.year:
            params.append(("year", self.year))
        if self.month:
            params.append(("month", self.month))
        if self.max_uncertainty_m is not None:
            params.append(("coordinateUncertaintyInMeters", f"*,{self.max_uncertainty_m}"))
        if self.country:
            params.append(("country", self.country.upper()))

        # Classification filter: class keys win over order keys over kingdom.
        if self.class_keys:
            params.extend(("classKey", k) for k in self.class_keys)
        elif self.order_keys:
            params.extend(("orderKey", k) for k in self.order_keys)
        elif self.kingdom_key is not None:
            params.append(("kingdomKey", self.kingdom_key))
        return params


# =============================================================================
# Result models
# =============================================================================


# GBIF media item types
STILL_IMAGE = "StillImage"
SOUND = "Sound"


@dataclass(frozen=True)
class GbifOccurrence:
    """A single occurrence record (only the fields we display)."""

    key: int | None
    references: str | None
    event_date: str | None
    media_url: str | None
    verbatim_locality: str | None = None
    state_province: str | None = None
    country: str | None = None
    recorded_by: str | None = None
    # First media item's type; image and audio are the first of each kind
    media_type: str | None = None
    image_url: str | None = None
    audio_url: str | None = None

    @property
    def date(self) -> str | None:
        """Event date without its time component."""
        return self.event_date.split("T")[0] if self.event_date else None

    @property
    def location(self) -> str | None:
        parts = [p for p in (self.verbatim_locality, self.state_province, self.country) if p]
        return ", ".join(parts) if parts else None


@dataclass(frozen=True)
class FacetCount:
    """Occurrence count for one species key from a facet query."""

    species_key: int
    count: int


def _media_identifier(media: list[dict[str, Any]], kind: str) -> str | None:
    return next((m.get("identifier") for m in media if m.get("type") == kind and m.get("identifier")), None)


def _parse_occurrence(raw: dict[str, Any]) -> GbifOccurrence:
    media = [m for m in raw.get("media") or [] if m]
    return GbifOccurrence(
        key=raw.get("key"),
        references=raw.get("references"),
        event_date=raw.get("eventDate"),
        media_url=media[0].get("identifier") if media else None,
        verbatim_locality=raw.get("verbatimLocality"),
        state_province=raw.get("stateProvince"),
        country=raw.get("country"),
        recorded_by=raw.get("recordedBy"),
        media_type=media[0].get("type") if media else None,
        image_url=_media_identifier(media, STILL_IMAGE),
        audio_url=_media_identifier(media, SOUND),
    )


def _parse_facets(data: dict[str, Any]) -> list[FacetCount]:
    """Extract SPECIES_KEY facet buckets; non-numeric keys are skipped."""
    facets = data.get("facets") or []
    species = next((f for f in facets if f.get("field") == "SPECIES_KEY"), None)
    if not species:
        return []

    counts: list[FacetCount] = []
    for bucket in species.get("counts") or []:
        try:
            counts.append(FacetCount(species_key=int(bucket["name"]), count=int(bucket["count"])))
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping malformed facet bucket: %r", bucket)
    return counts


# =============================================================================
# API Fetching
# =============================================================================


def count_occurrences(query: OccurrenceQuery) -> int:
    """Number of occurrences matching ``query`` (``count`` missing -> 0)."""
    data = gbif.search_occurrences([*query.to_params(), ("limit", 0)])
    return int(data.get("count") or 0)


def search_occurrences(query: OccurrenceQuery, limit: int = 5) -> list[GbifOccurrence]:
    """Most recent-first page of occurrence records matching ``query``."""
    data = gbif.search_occurrences([*query.to_params(), ("limit", limit)])
    return [_parse_occurrence(r) for r in data.get("results") or []]


def species_facets(query: OccurrenceQuery) -> list[FacetCount]:
    """
    Per-species occurrence counts for ``query``.

    Unlike the count helpers this raises ``ProviderError``: live listings
    have no local fallback, so a failure here fails the whole request.
    """
    params = [
        *query.to_params(),
        ("facet", "speciesKey"),
        ("facetLimit", gbif.FACET_LIMIT),
        ("limit", 0),
    ]
    try:
        data = gbif.search_occurrences(params)
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise ProviderError("GBIF", str(exc), status) from exc
    except requests.RequestException as exc:
        raise ProviderError("GBIF", str(exc)) from exc
    return _parse_facets(data)
