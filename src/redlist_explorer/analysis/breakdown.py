"""Record-type breakdown for a GBIF species key, as shown in listing rows."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from redlist_explorer import fanout
from redlist_explorer.analysis.record_types import BUCKETS, INATURALIST, TOTAL, bucket_queries, reconcile
from redlist_explorer.cache import Cache
from redlist_explorer.datasources.gbif import (
    DATA_SOURCES,
    GbifOccurrence,
    OccurrenceQuery,
    count_occurrences,
    search_occurrences,
)
from redlist_explorer.schemas import InatObservation, SpeciesBreakdown

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60  # seconds
RECENT_OBSERVATION_LIMIT = 10


@dataclass(frozen=True)
class BreakdownRequest:
    species_key: int
    country: str | None = None
    max_uncertainty: int | None = None
    data_source: str | None = None

    @property
    def cache_key(self) -> str:
        return "-".join(
            [
                str(self.species_key),
                self.country or "global",
                "" if self.max_uncertainty is None else str(self.max_uncertainty),
                self.data_source or "",
            ]
        )

    def to_query(self) -> OccurrenceQuery:
        """Count query with the same filters as the listing that linked here."""
        query = OccurrenceQuery(
            taxon_key=self.species_key,
            country=self.country,
            max_uncertainty_m=self.max_uncertainty,
        )
        source = DATA_SOURCES.get(self.data_source) if self.data_source else None
        if source is not None:
            query = query.with_source(source)
        return query


def with_media(records: list[GbifOccurrence]) -> list[GbifOccurrence]:
    """Keep linkable records that carry at least one media item."""
    return [r for r in records if r.references and r.media_url]


def to_media_observations(records: list[GbifOccurrence]) -> list[InatObservation]:
    """
    Observations with their media split by kind.

    ``imageUrl`` is the first still image and ``audioUrl`` the first sound, so a
    sound-only recording has no image. ``mediaType`` is the type of the first
    media item.
    """
    return [
        InatObservation(
            url=r.references,
            date=r.date,
            image_url=r.image_url,
            audio_url=r.audio_url,
            media_type=r.media_type,
            location=r.location,
            observer=r.recorded_by,
        )
        for r in with_media(records)
        if r.references
    ]


class BreakdownFetcher:
    """Counts the basis-of-record partitions for one species, cached per filter set."""

    def __init__(
        self,
        cache: Cache,
        *,
        ttl: float = DEFAULT_TTL,
        timeout: float = fanout.DEFAULT_TIMEOUT,
        max_workers: int = fanout.DEFAULT_MAX_WORKERS,
    ) -> None:
        self.cache = cache
        self.ttl = ttl
        self.timeout = timeout
        self.max_workers = max_workers

    def fetch(self, request: BreakdownRequest) -> SpeciesBreakdown:
        key = f"breakdown:{request.cache_key}"
        cached: SpeciesBreakdown | None = self.cache.get(key)
        if cached is not None:
            logger.debug("Breakdown cache hit: %s", key)
            return cached

        query = request.to_query()
        recent_query = OccurrenceQuery(taxon_key=request.species_key, country=request.country).with_source(
            DATA_SOURCES["iNaturalist"]
        )
        calls: dict[str, Callable[[], Any]] = {
            bucket: (lambda q=q: count_occurrences(q)) for bucket, q in bucket_queries(query).items()
        }
        calls["recent"] = lambda: search_occurrences(recent_query, limit=RECENT_OBSERVATION_LIMIT)
        outcomes = fanout.gather(calls, timeout=self.timeout, max_workers=self.max_workers)

        counts = {b: outcomes[b].value_or(0) for b in BUCKETS}
        breakdown = reconcile(counts, label=f"species {request.species_key}")
        recent = outcomes["recent"].value_or([])

        result = SpeciesBreakdown(
            **breakdown.model_dump(),
            recent_inat_observations=to_media_observations(recent),
            inat_total_count=counts[INATURALIST],
            total=counts[TOTAL],
        )
        self.cache.set(key, result, self.ttl)
        return result
