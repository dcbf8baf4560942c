"""
Red List summaries built from snapshots and occurrence tables.

- :func:`list_assessed_species` - a taxon's assessed species, filtered
- :func:`category_stats` - per-category counts including not-evaluated
- :func:`taxa_summary` - assessment coverage for every taxon
- :func:`gbif_taxa_summary` - occurrence-table statistics for every taxon

"Not evaluated" (NE) species are those in a taxon's occurrence table whose
scientific name has no assessment in the snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date

from redlist_explorer.analysis.stats import cumulative_distribution, mean, median
from redlist_explorer.errors import SnapshotUnavailableError
from redlist_explorer.reference.taxa import (
    ALL_TAXA_ID,
    CATEGORY_COLORS,
    CATEGORY_NAMES,
    CATEGORY_ORDER,
    NOT_EVALUATED,
    TAXA,
    TaxonConfig,
    get_taxon,
)
from redlist_explorer.schemas import (
    AssessedSpeciesList,
    CategoryCount,
    CategoryStats,
    GbifTaxonSummary,
    OccurrenceCountRecord,
    Snapshot,
    SnapshotRecord,
    TaxonAvailability,
    TaxonRef,
)
from redlist_explorer.services import gbif
from redlist_explorer.store import SnapshotStore, normalize_name

logger = logging.getLogger(__name__)

#: Assessments older than this many years count as outdated.
OUTDATED_AFTER_YEARS = 10


def taxon_ref(taxon: TaxonConfig) -> TaxonRef:
    return TaxonRef(
        id=taxon.id,
        name=taxon.name,
        estimated_described=taxon.estimated_described,
        estimated_source=taxon.estimated_source,
        color=taxon.color,
    )


def not_evaluated_rows(snapshot: Snapshot, rows: list[OccurrenceCountRecord]) -> list[OccurrenceCountRecord]:
    """Occurrence rows whose scientific name has no assessment in ``snapshot``."""
    assessed = {normalize_name(s.scientific_name) for s in snapshot.species if s.scientific_name}
    return [r for r in rows if r.scientific_name and normalize_name(r.scientific_name) not in assessed]


def as_not_evaluated(row: OccurrenceCountRecord) -> SnapshotRecord:
    """Shape an occurrence row like a snapshot species, keyed by its GBIF key."""
    return SnapshotRecord(
        sis_taxon_id=row.species_key,
        scientific_name=row.scientific_name or "",
        common_name=row.common_name,
        category=NOT_EVALUATED,
        url=gbif.species_url(row.species_key),
        assessment_count=0,
        gbif_species_key=row.species_key,
        gbif_occurrence_count=row.occurrence_count,
    )


def _matches(record: SnapshotRecord, needle: str | None) -> bool:
    if not needle:
        return True
    needle = needle.casefold()
    return needle in record.scientific_name.casefold() or bool(
        record.common_name and needle in record.common_name.casefold()
    )


# =============================================================================
# Assessed species
# =============================================================================


def list_assessed_species(
    store: SnapshotStore,
    taxon_id: str,
    category: str | None = None,
    search: str | None = None,
) -> AssessedSpeciesList:
    """
    Assessed species for a taxon, optionally narrowed by category and search.

    ``category="NE"`` lists occurrence-table species that are missing from
    the snapshot instead.

    Raises:
        UnknownTaxonError: Unknown taxon id.
        SnapshotUnavailableError: The taxon's snapshot could not be loaded.
    """
    taxon = get_taxon(taxon_id)
    snapshot = store.get_snapshot(taxon.id)
    if snapshot is None:
        raise SnapshotUnavailableError(taxon.name)

    if category == NOT_EVALUATED:
        species = [as_not_evaluated(r) for r in not_evaluated_rows(snapshot, store.get_occurrences(taxon.id))]
    elif category:
        species = [s for s in snapshot.species if s.category == category]
    else:
        species = list(snapshot.species)

    species = [s for s in species if _matches(s, search)]
    return AssessedSpeciesList(
        species=species,
        total=len(species),
        metadata=snapshot.metadata,
        taxon=taxon_ref(taxon),
    )


# =============================================================================
# Category statistics
# =============================================================================


def category_stats(store: SnapshotStore, taxon_id: str) -> CategoryStats:
    """
    Species per Red List category, most threatened first, NE last.

    Raises:
        UnknownTaxonError: Unknown taxon id.
        SnapshotUnavailableError: The taxon's snapshot could not be loaded.
    """
    taxon = get_taxon(taxon_id)
    snapshot = store.get_snapshot(taxon.id)
    if snapshot is None:
        raise SnapshotUnavailableError(taxon.name)

    ne_count = len(not_evaluated_rows(snapshot, store.get_occurrences(taxon.id)))
    counts = {**snapshot.metadata.by_category, NOT_EVALUATED.value: ne_count}
    by_category = [
        CategoryCount(
            code=code,
            name=CATEGORY_NAMES[code],
            count=counts.get(code, 0),
            color=CATEGORY_COLORS[code],
        )
        for code in CATEGORY_ORDER
    ]
    return CategoryStats(
        total_assessed=snapshot.metadata.total_species,
        by_category=by_category,
        sample_size=snapshot.metadata.total_species + ne_count,
        last_updated=snapshot.metadata.fetched_at or None,
        taxon=taxon_ref(taxon),
    )


# =============================================================================
# Taxa availability
# =============================================================================


def _assessment_year(record: SnapshotRecord) -> int | None:
    if not record.assessment_date:
        return None
    try:
        return int(record.assessment_date[:4])
    except ValueError:
        return None


def count_outdated(species: list[SnapshotRecord], current_year: int) -> int:
    """Species whose assessment is more than ``OUTDATED_AFTER_YEARS`` old."""
    count = 0
    for s in species:
        year = _assessment_year(s)
        if year is not None and current_year - year > OUTDATED_AFTER_YEARS:
            count += 1
    return count


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole > 0 else 0.0


def taxa_summary(store: SnapshotStore, today: Callable[[], date] = date.today) -> list[TaxonAvailability]:
    """Coverage row for every concrete taxon (the "all" meta-group is skipped)."""
    current_year = today().year
    rows: list[TaxonAvailability] = []
    for taxon in TAXA:
        if taxon.id == ALL_TAXA_ID:
            continue

        row = TaxonAvailability(
            id=taxon.id,
            name=taxon.name,
            color=taxon.color,
            estimated_described=taxon.estimated_described,
            estimated_source=taxon.estimated_source,
            estimated_source_url=taxon.estimated_source_url,
        )
        snapshot = store.get_snapshot(taxon.id)
        if snapshot is None:
            logger.debug("No snapshot for %s; reporting as unavailable", taxon.id)
            rows.append(row)
            continue

        total = snapshot.metadata.total_species
        outdated = count_outdated(snapshot.species, current_year)
        rows.append(
            row.model_copy(
                update={
                    "available": True,
                    "total_assessed": total,
                    "percent_assessed": _percent(total, taxon.estimated_described),
                    "outdated": outdated,
                    "percent_outdated": _percent(outdated, total),
                    "last_updated": snapshot.metadata.fetched_at or None,
                }
            )
        )
    return rows


def gbif_taxa_summary(store: SnapshotStore) -> list[GbifTaxonSummary]:
    """
    Occurrence statistics for every concrete taxon, in registry order.

    A taxon whose occurrence table is missing, unreadable or empty is reported
    with zeroed statistics and ``gbifDataAvailable`` false.
    """
    rows: list[GbifTaxonSummary] = []
    for taxon in TAXA:
        if taxon.id == ALL_TAXA_ID:
            continue

        counts = [r.occurrence_count for r in store.get_occurrences(taxon.id)]
        if not counts:
            logger.debug("No occurrence rows for %s", taxon.id)
        rows.append(
            GbifTaxonSummary(
                id=taxon.id,
                name=taxon.name,
                color=taxon.color,
                estimated_described=taxon.estimated_described,
                estimated_source=taxon.estimated_source,
                estimated_source_url=taxon.estimated_source_url,
                gbif_species_count=len(counts),
                gbif_total_occurrences=sum(counts),
                gbif_median=median(counts),
                gbif_mean=mean(counts),
                gbif_data_available=bool(counts),
                distribution=cumulative_distribution(counts),
            )
        )
    return rows
