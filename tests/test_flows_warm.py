"""
Tests for the snapshot warm-up flow.
"""

from __future__ import annotations

from pathlib import Path

from redlist_explorer.flows import warm
from redlist_explorer.store import SnapshotStore

from tests.factories import WriteSnapshot, WriteTable, species_record

TABLE = (
    "species_key,occurrence_count,scientific_name,common_name\n"
    "10,20000,Quercus robur,\n"
    "11,500,Fagus sylvatica,\n"
)


class TestLoadSnapshot:
    """Per-taxon summaries."""

    def test_available_taxon(self, data_dir: Path, write_snapshot: WriteSnapshot, write_table: WriteTable) -> None:
        write_snapshot("redlist-plantae.json", [species_record(1, "Quercus robur", "LC")], fetched_at="2025-07-01")
        write_table("gbif-plantae.csv", TABLE)

        result = warm.load_snapshot.fn(SnapshotStore(data_dir), "plantae")

        assert result == {
            "available": True,
            "species": 1,
            "fetched_at": "2025-07-01",
            "occurrence_rows": 2,
            "rows_with_category": 1,
            "occurrence_table": str(data_dir / "gbif-plantae.csv"),
        }

    def test_missing_taxon(self, data_dir: Path) -> None:
        result = warm.load_snapshot.fn(SnapshotStore(data_dir), "aves")
        assert result["available"] is False
        assert result["species"] == 0
        assert result["fetched_at"] is None
        assert result["occurrence_table"] is None

    def test_rereads_files_held_by_store(self, data_dir: Path, write_snapshot: WriteSnapshot) -> None:
        store = SnapshotStore(data_dir)
        write_snapshot("redlist-plantae.json", [species_record(1, "Quercus robur", "LC")])
        assert store.get_snapshot("plantae") is not None

        write_snapshot(
            "redlist-plantae.json",
            [species_record(1, "Quercus robur", "LC"), species_record(2, "Fagus sylvatica", "LC")],
        )
        assert warm.load_snapshot.fn(store, "plantae")["species"] == 2
        assert len(store.get_snapshot("plantae").species) == 2  # type: ignore[union-attr]


class TestWarmSnapshots:
    def test_covers_every_taxon(self, data_dir: Path, write_snapshot: WriteSnapshot) -> None:
        write_snapshot("redlist-plantae.json", [species_record(1, "Quercus robur", "LC")])
        write_snapshot("redlist-ascomycota.json", [species_record(2, "Cladonia perforata", "EN")])

        results = warm.warm_snapshots(data_dir)

        assert "all" in results
        assert results["plantae"]["available"] is True
        assert results["aves"]["available"] is False
        # Composite groups merge whichever sub-files exist
        assert results["fungi"]["species"] == 1
        assert results["all"]["species"] == 2

    def test_refreshes_given_store(self, data_dir: Path, write_table: WriteTable) -> None:
        write_table("gbif-plantae.csv", "species_key,occurrence_count\n10,20000\n")
        store = SnapshotStore(data_dir)
        assert len(store.get_occurrences("plantae")) == 1
        write_table("gbif-plantae.csv", TABLE)

        results = warm.warm_snapshots(store=store)

        assert results["plantae"]["occurrence_rows"] == 2
        assert store.occurrences_available("plantae") is True
