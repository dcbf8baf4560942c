"""
Basis-of-record partitions and their reconciliation.

GBIF counts for each partition come from separate queries, so they are not
guaranteed to add up (records can be published between calls). The residual
``other`` bucket absorbs the difference and is clamped at zero; when the
clamp actually triggers it is logged so the inconsistency stays visible.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from redlist_explorer.datasources.gbif import DATA_SOURCES, BasisOfRecord, OccurrenceQuery
from redlist_explorer.schemas import RecordTypeBreakdown

logger = logging.getLogger(__name__)

TOTAL = "total"
HUMAN = "human"
SPECIMEN = "specimen"
MACHINE = "machine"
INATURALIST = "inaturalist"

BUCKETS: tuple[str, ...] = (TOTAL, HUMAN, SPECIMEN, MACHINE, INATURALIST)


def bucket_queries(base: OccurrenceQuery) -> dict[str, OccurrenceQuery]:
    """One count query per bucket, all derived from ``base``."""
    return {
        TOTAL: base,
        HUMAN: base.with_basis(BasisOfRecord.HUMAN_OBSERVATION),
        SPECIMEN: base.with_basis(BasisOfRecord.PRESERVED_SPECIMEN),
        MACHINE: base.with_basis(BasisOfRecord.MACHINE_OBSERVATION),
        INATURALIST: base.with_source(DATA_SOURCES["iNaturalist"]),
    }


def reconcile(counts: Mapping[str, int], *, label: str = "") -> RecordTypeBreakdown:
    """
    Build a breakdown from per-bucket counts (missing buckets count as 0).

    ``other = total - (human + specimen + machine)``, clamped at 0. The
    iNaturalist bucket is a subset of human observations and is not
    subtracted.
    """
    total = counts.get(TOTAL, 0)
    human = counts.get(HUMAN, 0)
    specimen = counts.get(SPECIMEN, 0)
    machine = counts.get(MACHINE, 0)

    residual = total - human - specimen - machine
    if residual < 0:
        logger.info(
            "Clamped negative 'other' bucket%s: total=%d human=%d specimen=%d machine=%d (residual %d)",
            f" for {label}" if label else "",
            total,
            human,
            specimen,
            machine,
            residual,
        )

    return RecordTypeBreakdown(
        human_observation=human,
        preserved_specimen=specimen,
        machine_observation=machine,
        other=max(0, residual),
        inaturalist=counts.get(INATURALIST, 0),
    )


def subtract(totals: Mapping[str, int], new: Mapping[str, int]) -> dict[str, int]:
    """Per-bucket ``totals - new``, never below zero."""
    return {b: max(0, totals.get(b, 0) - new.get(b, 0)) for b in BUCKETS}
