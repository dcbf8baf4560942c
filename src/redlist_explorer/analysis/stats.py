"""Summary statistics over occurrence counts."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from redlist_explorer.schemas import CumulativeDistribution, Distribution, OccurrenceCountRecord, RedListSplit

# Upper bound (inclusive) of each distribution bucket; the last is open-ended.
BUCKET_BOUNDS: tuple[tuple[str, int | None], ...] = (
    ("eq1", 1),
    ("gt1_lte10", 10),
    ("gt10_lte100", 100),
    ("gt100_lte1000", 1_000),
    ("gt1000_lte10000", 10_000),
    ("gt10000", None),
)

# Thresholds of the cumulative (at-most-N) distribution
CUMULATIVE_BOUNDS = (1, 10, 100, 1_000, 10_000)


def median(counts: Iterable[int]) -> int:
    """Element at ``floor(n/2)`` of the ascending-sorted counts; 0 when empty."""
    ordered = sorted(counts)
    if not ordered:
        return 0
    return ordered[len(ordered) // 2]


def bucket_for(count: int) -> str:
    """Name of the distribution bucket ``count`` falls into."""
    for name, upper in BUCKET_BOUNDS:
        if upper is None or count <= upper:
            return name
    raise AssertionError("unreachable: last bucket is unbounded")


def distribution(counts: Iterable[int]) -> Distribution:
    """Histogram of counts; every count lands in exactly one bucket."""
    tally = {name: 0 for name, _ in BUCKET_BOUNDS}
    for count in counts:
        tally[bucket_for(count)] += 1
    return Distribution(**tally)


def mean(counts: Sequence[int]) -> int:
    """Arithmetic mean rounded half up; 0 when empty."""
    if not counts:
        return 0
    return math.floor(sum(counts) / len(counts) + 0.5)


def cumulative_distribution(counts: Sequence[int]) -> CumulativeDistribution:
    """Species at or below each threshold; unlike :func:`distribution` the tiers nest."""
    return CumulativeDistribution(
        **{f"lte{bound}": sum(1 for c in counts if c <= bound) for bound in CUMULATIVE_BOUNDS}
    )


def redlist_split(records: Sequence[OccurrenceCountRecord]) -> RedListSplit:
    """Assessed (has a category) vs. not-assessed species and occurrence sums."""
    split = RedListSplit()
    for r in records:
        if r.redlist_category:
            split.assessed += 1
            split.assessed_occurrences += r.occurrence_count
        else:
            split.not_assessed += 1
            split.not_assessed_occurrences += r.occurrence_count
    return split
