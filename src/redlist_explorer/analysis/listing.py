"""
Species listings with occurrence statistics.

Two interchangeable sources back a listing:

- **precomputed** (default): the taxon's occurrence table from the snapshot
  store. Accurate species set, statistics over the whole table.
- **live**: a GBIF faceted search, used as soon as any GBIF-only filter
  (basis of record, coordinate uncertainty, data source) is requested.
  Facet keys are restricted to species present in the occurrence table, so
  subspecies, synonyms and mis-ranked usages never reach the listing.

In live mode names are only resolved for the current page, so a Red List
category filter can only narrow that page.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from redlist_explorer import fanout
from redlist_explorer.analysis.stats import distribution, median, redlist_split
from redlist_explorer.datasources.gbif import (
    DATA_SOURCES,
    OTHER_BASIS_OF_RECORD,
    FacetCount,
    OccurrenceQuery,
    fetch_species_name,
    species_facets,
)
from redlist_explorer.reference.taxa import NOT_EVALUATED, TaxonConfig, get_taxon
from redlist_explorer.schemas import ListingPage, ListingStats, OccurrenceCountRecord, Pagination
from redlist_explorer.store import SnapshotStore, normalize_name

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
ALL_CATEGORIES = "all"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class ListingQuery:
    """Filters for one listing request."""

    taxon: str = "plantae"
    page: int = 1
    limit: int = DEFAULT_LIMIT
    min_count: int = 0
    max_count: int | None = None
    sort: SortOrder = SortOrder.DESC
    category: str | None = None
    search: str | None = None
    # GBIF-only filters; any of them switches to a live query
    basis_of_record: str | None = None
    max_uncertainty: int | None = None
    data_source: str | None = None

    @property
    def is_live(self) -> bool:
        return bool(self.basis_of_record or self.max_uncertainty is not None or self.data_source)

    def in_range(self, count: int) -> bool:
        if count < self.min_count:
            return False
        return self.max_count is None or count <= self.max_count


# =============================================================================
# Filters
# =============================================================================


def matches_category(category: str | None, wanted: str | None) -> bool:
    """Category filter; ``NE`` selects rows without a Red List category."""
    if not wanted or wanted == ALL_CATEGORIES:
        return True
    if wanted == NOT_EVALUATED:
        return not category
    return category == wanted


def matches_search(record: OccurrenceCountRecord, needle: str | None) -> bool:
    """Case-insensitive substring match on scientific or common name."""
    if not needle:
        return True
    needle = needle.casefold()
    names = (record.scientific_name, record.common_name, record.vernacular_name)
    return any(name and needle in name.casefold() for name in names)


def paginate(items: Sequence[T], page: int, limit: int) -> list[T]:
    start = (page - 1) * limit
    return list(items[start : start + limit])


def _pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


# =============================================================================
# Aggregator
# =============================================================================


class ListingAggregator:
    """Serves paginated, filtered species listings for a taxon."""

    def __init__(
        self,
        store: SnapshotStore,
        *,
        max_limit: int = MAX_LIMIT,
        timeout: float = fanout.DEFAULT_TIMEOUT,
        max_workers: int = fanout.DEFAULT_MAX_WORKERS,
    ) -> None:
        self.store = store
        self.max_limit = max_limit
        self.timeout = timeout
        self.max_workers = max_workers

    def list_species(self, query: ListingQuery) -> ListingPage:
        """
        Build one listing page.

        Raises:
            UnknownTaxonError: The taxon id is not in the registry.
            ProviderError: The live GBIF query failed (live mode only).
        """
        taxon = get_taxon(query.taxon)
        page = max(1, query.page)
        limit = max(1, min(query.limit, self.max_limit))
        if query.is_live:
            return self._live(taxon, query, page, limit)
        return self._precomputed(taxon, query, page, limit)

    # -------------------------------------------------------------------------
    # Precomputed mode
    # -------------------------------------------------------------------------

    def _precomputed(self, taxon: TaxonConfig, query: ListingQuery, page: int, limit: int) -> ListingPage:
        rows = self.store.get_occurrences(taxon.id)
        available = self.store.occurrences_available(taxon.id)
        if not available:
            logger.info("No occurrence table available for %s", taxon.id)

        filtered = [
            r
            for r in rows
            if query.in_range(r.occurrence_count)
            and matches_category(r.redlist_category, query.category)
            and matches_search(r, query.search)
        ]
        # The table is stored descending by count
        if query.sort == SortOrder.ASC:
            filtered.sort(key=lambda r: r.occurrence_count)

        counts = [r.occurrence_count for r in rows]
        stats = ListingStats(
            total=len(rows),
            filtered=len(filtered),
            total_occurrences=sum(counts),
            median=median(counts),
            distribution=distribution(counts),
            redlist=redlist_split(rows),
        )
        return ListingPage(
            data=paginate(filtered, page, limit),
            pagination=_pagination(page, limit, len(filtered)),
            stats=stats,
            data_available=available,
        )

    # -------------------------------------------------------------------------
    # Live mode
    # -------------------------------------------------------------------------

    def build_live_query(self, taxon: TaxonConfig, query: ListingQuery) -> OccurrenceQuery:
        """GBIF filter set for a live listing."""
        gbif_query = OccurrenceQuery(
            kingdom_key=taxon.kingdom_key,
            class_keys=taxon.class_keys,
            order_keys=taxon.order_keys,
            max_uncertainty_m=query.max_uncertainty,
        )
        if query.basis_of_record:
            basis = query.basis_of_record.upper()
            if basis == "OTHER":
                gbif_query = gbif_query.with_basis(*OTHER_BASIS_OF_RECORD)
            else:
                gbif_query = gbif_query.with_basis(basis)
        if query.data_source:
            source = DATA_SOURCES.get(query.data_source)
            if source is None:
                logger.warning("Ignoring unknown data source %r", query.data_source)
            else:
                gbif_query = gbif_query.with_source(source)
        return gbif_query

    def _live(self, taxon: TaxonConfig, query: ListingQuery, page: int, limit: int) -> ListingPage:
        facets = species_facets(self.build_live_query(taxon, query))

        valid_keys = self.store.valid_species_keys(taxon.id)
        species = [f for f in facets if f.species_key in valid_keys]
        dropped = len(facets) - len(species)
        if dropped:
            logger.debug("Live %s: dropped %d facet keys not in occurrence table", taxon.id, dropped)

        counts = [f.count for f in species]
        in_range = [f for f in species if query.in_range(f.count)]
        in_range.sort(key=lambda f: f.count, reverse=query.sort != SortOrder.ASC)

        page_species = paginate(in_range, page, limit)
        records = self._resolve_names(taxon, page_species)
        records = [
            r
            for r in records
            if matches_category(r.redlist_category, query.category) and matches_search(r, query.search)
        ]

        stats = ListingStats(
            total=len(species),
            filtered=len(in_range),
            total_occurrences=sum(counts),
            median=median(counts),
            distribution=distribution(counts),
        )
        return ListingPage(
            data=records,
            pagination=_pagination(page, limit, len(in_range)),
            stats=stats,
            is_live_query=True,
        )

    def _resolve_names(self, taxon: TaxonConfig, page_species: list[FacetCount]) -> list[OccurrenceCountRecord]:
        """Attach names and categories to one page; failures get a placeholder name."""
        outcomes = fanout.gather(
            {str(f.species_key): (lambda key=f.species_key: fetch_species_name(key)) for f in page_species},
            timeout=self.timeout,
            max_workers=self.max_workers,
        )
        lookup = self.store.category_lookup(taxon.id)

        records: list[OccurrenceCountRecord] = []
        for f in page_species:
            resolved = outcomes[str(f.species_key)].value_or(None)
            name = resolved.canonical_name if resolved else None
            records.append(
                OccurrenceCountRecord(
                    species_key=f.species_key,
                    occurrence_count=f.count,
                    scientific_name=name or f"Species {f.species_key}",
                    vernacular_name=resolved.vernacular_name if resolved else None,
                    redlist_category=lookup.get(normalize_name(name)) if name else None,
                )
            )
        return records
