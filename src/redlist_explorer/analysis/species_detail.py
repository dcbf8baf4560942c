"""
Per-species occurrence evidence relative to the last Red List assessment.

For one assessed species this combines:
  - the Red List taxon record (assessment count, common name) and, when an
    assessment id is given, the assessment's criteria
  - GBIF occurrence counts by basis of record, overall and split into
    "as of the assessment" vs. "new since the assessment"
  - iNaturalist sample observations and a default species photo

Request lifecycle::

    UNCACHED -> FETCHING -> GATED_OUT                          -> CACHED
                         -> PARTITIONING -> RECONCILING        -> CACHED

Occurrence statistics are only fetched when GBIF resolves the scientific
name to the species itself (EXACT/FUZZY/VARIANT). A HIGHERRANK match points
at a genus or above, and counting its occurrences would attribute a whole
genus to one species, so those requests stop at GATED_OUT with null
occurrence fields.

Every provider call is best-effort: a failure contributes 0 (counts) or None
(records) to its slot and is logged; the response is still assembled.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

from redlist_explorer import fanout
from redlist_explorer.analysis import record_types
from redlist_explorer.analysis.record_types import BUCKETS, TOTAL, bucket_queries, reconcile, subtract
from redlist_explorer.analysis.temporal import TemporalWindow, since_assessment_windows
from redlist_explorer.cache import Cache
from redlist_explorer.datasources.gbif import (
    DATA_SOURCES,
    GbifOccurrence,
    NameMatch,
    OccurrenceQuery,
    count_occurrences,
    match_name,
    search_occurrences,
)
from redlist_explorer.datasources.inaturalist import TaxonImage, fetch_default_image
from redlist_explorer.datasources.redlist import AssessmentDetail, RedListTaxon, fetch_assessment, fetch_taxon
from redlist_explorer.schemas import InatImage, InatObservation, SpeciesDetail
from redlist_explorer.services import gbif, redlist

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60  # seconds
RECENT_OBSERVATION_LIMIT = 5


class DetailState(StrEnum):
    UNCACHED = "uncached"
    FETCHING = "fetching"
    GATED_OUT = "gated_out"
    PARTITIONING = "partitioning"
    RECONCILING = "reconciling"
    CACHED = "cached"


@dataclass(frozen=True)
class DetailRequest:
    """Inputs for one species detail lookup."""

    sis_taxon_id: int
    assessment_id: int | None = None
    scientific_name: str | None = None
    assessment_year: int | None = None
    assessment_month: int | None = None

    @property
    def cache_key(self) -> str:
        year = self.assessment_year if self.assessment_year is not None else "none"
        month = self.assessment_month if self.assessment_month is not None else "none"
        return f"{self.sis_taxon_id}-{year}-{month}"


def to_inat_observations(records: list[GbifOccurrence]) -> list[InatObservation]:
    """Observations worth linking to: those that carry a reference URL."""
    return [
        InatObservation(
            url=r.references,
            date=r.date,
            image_url=r.media_url,
            location=r.location,
            observer=r.recorded_by,
        )
        for r in records
        if r.references
    ]


def to_inat_image(image: TaxonImage | None) -> InatImage | None:
    if image is None:
        return None
    return InatImage(square_url=image.square_url, medium_url=image.medium_url)


class SpeciesDetailFetcher:
    """Assembles and caches :class:`SpeciesDetail` responses."""

    def __init__(
        self,
        cache: Cache,
        *,
        ttl: float = DEFAULT_TTL,
        timeout: float = fanout.DEFAULT_TIMEOUT,
        max_workers: int = fanout.DEFAULT_MAX_WORKERS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.cache = cache
        self.ttl = ttl
        self.timeout = timeout
        self.max_workers = max_workers
        self.today = today

    def fetch(self, request: DetailRequest) -> SpeciesDetail:
        """
        Return occurrence evidence for ``request``, from cache when fresh.

        Raises:
            MissingCredentialError: No Red List API key is configured.
        """
        cached: SpeciesDetail | None = self.cache.get(request.cache_key)
        if cached is not None:
            return cached.model_copy(update={"cached": True})

        redlist.require_api_key()
        detail = self._assemble(request)
        self.cache.set(request.cache_key, detail, self.ttl)
        self._transition(request, DetailState.CACHED)
        return detail

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    def _transition(self, request: DetailRequest, state: DetailState) -> None:
        logger.debug("species %s [%s]: %s", request.sis_taxon_id, request.cache_key, state)

    def _gather(self, calls: dict[str, Callable[[], Any]]) -> dict[str, fanout.Outcome[Any]]:
        return fanout.gather(calls, timeout=self.timeout, max_workers=self.max_workers)

    def _assemble(self, request: DetailRequest) -> SpeciesDetail:
        self._transition(request, DetailState.FETCHING)

        calls: dict[str, Callable[[], Any]] = {
            "taxon": lambda: fetch_taxon(request.sis_taxon_id),
        }
        if request.assessment_id is not None:
            calls["assessment"] = lambda: fetch_assessment(request.assessment_id)  # type: ignore[arg-type]
        if request.scientific_name:
            calls["match"] = lambda: match_name(request.scientific_name)  # type: ignore[arg-type]
        outcomes = self._gather(calls)

        taxon: RedListTaxon | None = outcomes["taxon"].value_or(None)
        assessment: AssessmentDetail | None = (
            outcomes["assessment"].value_or(None) if "assessment" in outcomes else None
        )
        match: NameMatch | None = outcomes["match"].value_or(None) if "match" in outcomes else None

        detail = SpeciesDetail(
            sis_taxon_id=request.sis_taxon_id,
            criteria=assessment.criteria if assessment else None,
            common_name=taxon.common_name if taxon else None,
            assessment_count=taxon.assessment_count if taxon else 1,
        )

        if match is None or match.usage_key is None or not match.is_species_level or not request.scientific_name:
            if match is not None:
                logger.info(
                    "GBIF match for %r is %s; skipping occurrence statistics",
                    request.scientific_name,
                    match.match_type,
                )
            self._transition(request, DetailState.GATED_OUT)
            return detail

        return self._with_occurrences(request, detail, match.usage_key)

    def _with_occurrences(self, request: DetailRequest, detail: SpeciesDetail, usage_key: int) -> SpeciesDetail:
        name = request.scientific_name or ""
        base = OccurrenceQuery(taxon_key=usage_key)
        inat_query = base.with_source(DATA_SOURCES["iNaturalist"])

        calls: dict[str, Callable[[], Any]] = {
            f"all:{bucket}": (lambda q=q: count_occurrences(q)) for bucket, q in bucket_queries(base).items()
        }
        calls["inat_recent"] = lambda: search_occurrences(inat_query, limit=RECENT_OBSERVATION_LIMIT)
        calls["inat_image"] = lambda: fetch_default_image(name)

        windows: list[TemporalWindow] = []
        if request.assessment_year is not None:
            windows = since_assessment_windows(
                request.assessment_year, request.assessment_month, self.today().year
            )
            for window in windows:
                for bucket, q in bucket_queries(window.apply(base)).items():
                    calls[f"{window.label}:{bucket}"] = lambda q=q: count_occurrences(q)

        outcomes = self._gather(calls)

        def counts_for(prefix: str) -> dict[str, int]:
            return {b: outcomes[f"{prefix}:{b}"].value_or(0) for b in BUCKETS}

        totals = counts_for("all")
        total_outcome = outcomes[f"all:{TOTAL}"]
        update: dict[str, Any] = {
            "gbif_url": gbif.species_url(usage_key),
            "gbif_occurrences": total_outcome.value if total_outcome.ok else None,
            "gbif_by_record_type": reconcile(totals, label=f"{name} (all)"),
            "inat_total_count": totals[record_types.INATURALIST],
            "recent_inat_observations": to_inat_observations(outcomes["inat_recent"].value_or([])),
            "inat_default_image": to_inat_image(outcomes["inat_image"].value_or(None)),
        }

        if request.assessment_year is not None:
            self._transition(request, DetailState.PARTITIONING)
            new = {b: 0 for b in BUCKETS}
            for window in windows:
                for bucket, count in counts_for(window.label).items():
                    new[bucket] += count

            self._transition(request, DetailState.RECONCILING)
            at_assessment = subtract(totals, new)
            update["gbif_occurrences_since_assessment"] = new[TOTAL]
            update["gbif_new_by_record_type"] = reconcile(new, label=f"{name} (since assessment)")
            if update["gbif_occurrences"] is not None:
                update["gbif_occurrences_at_assessment"] = at_assessment[TOTAL]
                update["gbif_at_assessment_by_record_type"] = reconcile(
                    at_assessment, label=f"{name} (at assessment)"
                )

        return detail.model_copy(update=update)
