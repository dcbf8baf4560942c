"""Snapshot store with reload-on-staleness.

Holds two kinds of precomputed, read-only files under ``data_dir``:
  - ``redlist-*.json``: assessed species for a taxon, as exported by the
    snapshot job (``{"species": [...], "metadata": {...}}``)
  - ``gbif-*.csv``: one row per species with its GBIF occurrence count

Files are loaded lazily on first use and kept in memory until they are
older than ``reload_interval``. A load that fails is never cached, so the
next request tries again. A file that fails to parse is treated as missing;
callers never see a partially parsed snapshot.

Concurrent requests may read a stale copy while another request reloads it.
Reloads are idempotent, so the worst case is duplicated work.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path  # noqa: TC003
from typing import Generic, TypeVar

from pydantic import ValidationError

from redlist_explorer.reference.taxa import TaxonConfig, get_taxon, subgroup_for_file
from redlist_explorer.schemas import (
    OccurrenceCountRecord,
    Snapshot,
    SnapshotMetadata,
    SnapshotRecord,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RELOAD_INTERVAL = 60 * 60  # seconds

SINCE_ASSESSMENT_COLUMNS = ("observations_after_assessment_year", "occurrences_since_assessment")


def normalize_name(name: str) -> str:
    """Key used to join occurrence rows to snapshot species."""
    return name.strip().casefold()


# =============================================================================
# Occurrence table parsing
# =============================================================================


class OccurrenceTableError(ValueError):
    """A row in an occurrence table could not be parsed."""


def _strip_quotes(value: str) -> str:
    """Remove one layer of surrounding double quotes."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _optional_int(value: str) -> int | None:
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_occurrence_table(
    text: str,
    categories: dict[str, str] | None = None,
) -> list[OccurrenceCountRecord]:
    """
    Parse an occurrence table.

    Columns are positional: species key, occurrence count, then optionally
    scientific name, an optional quoted common name (which may contain
    commas) and an optional trailing since-assessment count. The header only
    decides which optional columns are present.

    Args:
        text: Full file contents, header first.
        categories: Normalized scientific name -> Red List category. Rows
            whose name is not found get ``redlist_category=None``.

    Raises:
        OccurrenceTableError: If a row's key or count is not an integer.
    """
    categories = categories or {}
    lines = text.strip().splitlines()
    if not lines:
        return []

    header = lines[0]
    has_name = "scientific_name" in header
    has_common = "common_name" in header
    has_since = any(col in header for col in SINCE_ASSESSMENT_COLUMNS)

    records: list[OccurrenceCountRecord] = []
    for lineno, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue

        fields = line.split(",", 2)
        if len(fields) < 2:
            msg = f"line {lineno}: expected at least 2 fields, got {line!r}"
            raise OccurrenceTableError(msg)
        try:
            species_key = int(fields[0])
            occurrence_count = int(fields[1])
        except ValueError as exc:
            msg = f"line {lineno}: {exc}"
            raise OccurrenceTableError(msg) from exc

        rest = fields[2] if len(fields) == 3 else None

        since: int | None = None
        if has_since and rest is not None:
            if has_name:
                head, sep, tail = rest.rpartition(",")
                if sep:
                    since = _optional_int(tail)
                    rest = head
            else:
                since = _optional_int(rest)
                rest = None

        scientific_name: str | None = None
        common_name: str | None = None
        if has_name and rest is not None:
            name, _, remainder = rest.partition(",")
            scientific_name = name.strip() or None
            if has_common:
                common_name = _strip_quotes(remainder.strip()) or None

        category = categories.get(normalize_name(scientific_name)) if scientific_name else None

        records.append(
            OccurrenceCountRecord(
                species_key=species_key,
                occurrence_count=occurrence_count,
                scientific_name=scientific_name,
                common_name=common_name,
                observations_after_assessment_year=since,
                redlist_category=category,
            )
        )
    return records


# =============================================================================
# Store
# =============================================================================


@dataclass
class _Loaded(Generic[T]):
    value: T
    loaded_at: float


class SnapshotStore:
    """Lazily loaded, periodically reloaded snapshots keyed by taxon id."""

    def __init__(
        self,
        data_dir: Path,
        reload_interval: float = DEFAULT_RELOAD_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base = data_dir
        self.reload_interval = reload_interval
        self._clock = clock
        self._snapshots: dict[str, _Loaded[Snapshot]] = {}
        self._tables: dict[str, _Loaded[list[OccurrenceCountRecord]]] = {}

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get_snapshot(self, taxon_id: str) -> Snapshot | None:
        """Return the taxon's snapshot, or None if it is unavailable.

        Raises ``UnknownTaxonError`` for ids not in the registry.
        """
        taxon = get_taxon(taxon_id)
        cached = self._snapshots.get(taxon.id)
        if cached is not None and not self._is_stale(cached):
            return cached.value

        snapshot = self._load_snapshot(taxon)
        if snapshot is not None:
            self._snapshots[taxon.id] = _Loaded(snapshot, self._clock())
            return snapshot
        # Failed reload: keep serving the previous copy if there is one
        return cached.value if cached is not None else None

    def get_occurrences(self, taxon_id: str) -> list[OccurrenceCountRecord]:
        """Return the taxon's occurrence table (empty if unavailable).

        Rows keep file order, which is descending by occurrence count.
        """
        taxon = get_taxon(taxon_id)
        cached = self._tables.get(taxon.id)
        if cached is not None and not self._is_stale(cached):
            return cached.value

        table = self._load_occurrences(taxon)
        if table is not None:
            self._tables[taxon.id] = _Loaded(table, self._clock())
            return table
        return cached.value if cached is not None else []

    def occurrences_available(self, taxon_id: str) -> bool:
        """Whether a parsed occurrence table is held for the taxon.

        False when the file is missing or failed to parse and no earlier
        copy is being served. A header-only table counts as available.
        """
        self.get_occurrences(taxon_id)
        return get_taxon(taxon_id).id in self._tables

    def valid_species_keys(self, taxon_id: str) -> set[int]:
        """Species keys present in the occurrence table.

        Live GBIF facets are restricted to these keys, which drops
        subspecies, synonyms and mis-ranked names.
        """
        return {r.species_key for r in self.get_occurrences(taxon_id)}

    def category_lookup(self, taxon_id: str) -> dict[str, str]:
        """Normalized scientific name -> Red List category for the taxon."""
        snapshot = self.get_snapshot(taxon_id)
        if snapshot is None:
            return {}
        return {
            normalize_name(s.scientific_name): s.category
            for s in snapshot.species
            if s.scientific_name and s.category
        }

    def occurrence_table_path(self, taxon_id: str) -> Path | None:
        """Absolute path of the taxon's occurrence table, or None if missing."""
        full = self._resolve(get_taxon(taxon_id).occurrence_file)
        return full if full.exists() else None

    def invalidate(self, taxon_id: str | None = None) -> None:
        """Forget loaded copies so the next request rereads the files."""
        if taxon_id is None:
            self._snapshots.clear()
            self._tables.clear()
        else:
            self._snapshots.pop(taxon_id, None)
            self._tables.pop(taxon_id, None)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _is_stale(self, loaded: _Loaded[T]) -> bool:
        return self._clock() - loaded.loaded_at > self.reload_interval

    def _resolve(self, name: str) -> Path:
        full = self.base / name
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes data directory: {name}"
            raise ValueError(msg) from None
        return full

    def _read_snapshot_file(self, name: str) -> Snapshot | None:
        """Parse one snapshot file. Missing -> None; invalid -> raises."""
        full = self._resolve(name)
        if not full.exists():
            return None
        return Snapshot.model_validate_json(full.read_text(encoding="utf-8"))

    def _load_snapshot(self, taxon: TaxonConfig) -> Snapshot | None:
        try:
            snapshot = self._read_snapshot_file(taxon.data_file)
            if snapshot is not None:
                return snapshot
            if taxon.is_composite:
                merged = self._merge_snapshots(taxon)
                if merged is not None:
                    return merged
        except (OSError, ValidationError, ValueError) as exc:
            logger.error("Error loading snapshot for %s: %s", taxon.id, exc)
            return None

        logger.warning("Snapshot file not found: %s", self.base / taxon.data_file)
        return None

    def _merge_snapshots(self, taxon: TaxonConfig) -> Snapshot | None:
        """Concatenate a composite group's sub-files, tagging each species."""
        species: list[SnapshotRecord] = []
        by_category: dict[str, int] = {}
        latest_fetched_at = ""

        for name in taxon.data_files:
            part = self._read_snapshot_file(name)
            if part is None:
                logger.debug("Composite %s: %s missing, skipped", taxon.id, name)
                continue
            source = subgroup_for_file(name)
            species.extend(s.model_copy(update={"taxon_id": source}) for s in part.species)
            for category, count in part.metadata.by_category.items():
                by_category[category] = by_category.get(category, 0) + count
            # ISO-8601 timestamps compare correctly as strings
            latest_fetched_at = max(latest_fetched_at, part.metadata.fetched_at)

        if not species:
            return None

        return Snapshot(
            species=species,
            metadata=SnapshotMetadata(
                total_species=len(species),
                fetched_at=latest_fetched_at,
                pages_processed=0,
                by_category=by_category,
                taxon_id=taxon.id,
            ),
        )

    def _load_occurrences(self, taxon: TaxonConfig) -> list[OccurrenceCountRecord] | None:
        full = self._resolve(taxon.occurrence_file)
        if not full.exists():
            logger.info("Occurrence table not found for %s: %s", taxon.id, full)
            return None
        try:
            text = full.read_text(encoding="utf-8")
            return parse_occurrence_table(text, self.category_lookup(taxon.id))
        except (OSError, OccurrenceTableError) as exc:
            logger.error("Error loading occurrence table for %s: %s", taxon.id, exc)
            return None
