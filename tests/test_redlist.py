"""Tests for Red List summaries: assessed species, category stats, coverage."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from redlist_explorer.analysis.redlist import (
    category_stats,
    count_outdated,
    gbif_taxa_summary,
    list_assessed_species,
    taxa_summary,
)
from redlist_explorer.errors import SnapshotUnavailableError, UnknownTaxonError
from redlist_explorer.reference.taxa import TAXA
from redlist_explorer.schemas import SnapshotRecord
from redlist_explorer.store import SnapshotStore

from tests.factories import WriteSnapshot, WriteTable, species_record

TABLE = (
    "species_key,occurrence_count,scientific_name,common_name\n"
    "10,20000,Quercus robur,English Oak\n"
    "11,500,Fagus sylvatica,Beech\n"
    "12,40,Ulmus minor,\n"
)


@pytest.fixture
def store(data_dir: Path, write_snapshot: WriteSnapshot, write_table: WriteTable) -> SnapshotStore:
    write_snapshot(
        "redlist-plantae.json",
        [
            species_record(1, "Quercus robur", "LC", common_name="English Oak", assessment_date="2010-01-01"),
            species_record(2, "Ulmus minor", "DD", assessment_date="2015-06-01"),
            species_record(3, "Sorbus leyana", "CR", assessment_date="2020-05-01"),
            species_record(4, "Sorbus bristoliensis", "EN", assessment_date=None),
        ],
    )
    write_table("gbif-plantae.csv", TABLE)
    return SnapshotStore(data_dir)


class TestListAssessedSpecies:
    def test_all_species(self, store: SnapshotStore) -> None:
        result = list_assessed_species(store, "plantae")
        assert result.total == 4
        assert result.taxon.id == "plantae"
        assert result.metadata is not None
        assert result.metadata.total_species == 4

    def test_category_filter(self, store: SnapshotStore) -> None:
        result = list_assessed_species(store, "plantae", category="CR")
        assert [s.scientific_name for s in result.species] == ["Sorbus leyana"]

    def test_search_scientific_and_common(self, store: SnapshotStore) -> None:
        assert list_assessed_species(store, "plantae", search="sorbus").total == 2
        assert list_assessed_species(store, "plantae", search="OAK").total == 1

    def test_not_evaluated_from_occurrence_table(self, store: SnapshotStore) -> None:
        result = list_assessed_species(store, "plantae", category="NE")
        assert result.total == 1
        beech = result.species[0]
        assert beech.scientific_name == "Fagus sylvatica"
        assert beech.category == "NE"
        assert beech.sis_taxon_id == 11
        assert beech.gbif_species_key == 11
        assert beech.gbif_occurrence_count == 500
        assert beech.assessment_count == 0
        assert beech.url == "https://www.gbif.org/species/11"

    def test_missing_snapshot(self, data_dir: Path) -> None:
        with pytest.raises(SnapshotUnavailableError) as excinfo:
            list_assessed_species(SnapshotStore(data_dir), "aves")
        assert excinfo.value.status_code == 503
        assert "Birds" in str(excinfo.value)

    def test_unknown_taxon(self, store: SnapshotStore) -> None:
        with pytest.raises(UnknownTaxonError):
            list_assessed_species(store, "dragons")


class TestCategoryStats:
    def test_counts_in_category_order(self, store: SnapshotStore) -> None:
        stats = category_stats(store, "plantae")
        codes = [c.code for c in stats.by_category]
        assert codes == ["EX", "EW", "CR", "EN", "VU", "NT", "LC", "DD", "NE"]
        counts = {c.code: c.count for c in stats.by_category}
        assert counts["CR"] == 1
        assert counts["VU"] == 0
        assert counts["NE"] == 1

    def test_totals(self, store: SnapshotStore) -> None:
        stats = category_stats(store, "plantae")
        assert stats.total_assessed == 4
        assert stats.sample_size == 5
        assert stats.last_updated == "2025-06-01T00:00:00Z"

    def test_serialised_names(self, store: SnapshotStore) -> None:
        body = category_stats(store, "plantae").to_json_dict()
        assert body["totalAssessed"] == 4
        assert body["byCategory"][2] == {
            "code": "CR",
            "name": "Critically Endangered",
            "count": 1,
            "color": "#d81e05",
        }
        assert body["taxon"]["estimatedDescribed"] == 426_132

    def test_missing_snapshot(self, data_dir: Path) -> None:
        with pytest.raises(SnapshotUnavailableError):
            category_stats(SnapshotStore(data_dir), "plantae")


class TestOutdated:
    @staticmethod
    def record(assessment_date: str | None) -> SnapshotRecord:
        return SnapshotRecord(
            sis_taxon_id=1, scientific_name="x", category="LC", assessment_date=assessment_date
        )

    def test_more_than_ten_years(self) -> None:
        species = [self.record(d) for d in ("2010-01-01", "2015-06-01", "2016-03-01", "2020-05-01")]
        assert count_outdated(species, 2026) == 2

    def test_missing_or_malformed_dates_skipped(self) -> None:
        species = [self.record(None), self.record(""), self.record("unknown")]
        assert count_outdated(species, 2026) == 0


class TestTaxaSummary:
    def test_one_row_per_concrete_taxon(self, store: SnapshotStore) -> None:
        rows = taxa_summary(store, today=lambda: date(2026, 10, 19))
        ids = [r.id for r in rows]
        assert "all" not in ids
        assert ids[0] == "mammalia"
        assert "plantae" in ids

    def test_available_taxon(self, store: SnapshotStore) -> None:
        rows = {r.id: r for r in taxa_summary(store, today=lambda: date(2026, 10, 19))}
        plants = rows["plantae"]
        assert plants.available is True
        assert plants.total_assessed == 4
        assert plants.outdated == 2
        assert plants.percent_outdated == 50.0
        assert plants.percent_assessed == 0.0
        assert plants.last_updated == "2025-06-01T00:00:00Z"

    def test_unavailable_taxon_defaults(self, store: SnapshotStore) -> None:
        rows = {r.id: r for r in taxa_summary(store, today=lambda: date(2026, 10, 19))}
        birds = rows["aves"]
        assert birds.available is False
        assert birds.total_assessed == 0
        assert birds.last_updated is None
        assert birds.estimated_described == 11_185


class TestGbifTaxaSummary:
    def test_registry_order_without_all(self, store: SnapshotStore) -> None:
        ids = [r.id for r in gbif_taxa_summary(store)]
        assert ids == [t.id for t in TAXA if t.id != "all"]

    def test_statistics_from_occurrence_table(self, store: SnapshotStore) -> None:
        plants = next(r for r in gbif_taxa_summary(store) if r.id == "plantae")
        assert plants.gbif_data_available is True
        assert plants.gbif_species_count == 3
        assert plants.gbif_total_occurrences == 20_540
        assert plants.gbif_median == 500
        assert plants.gbif_mean == 6847
        assert plants.distribution.lte100 == 1
        assert plants.distribution.lte1000 == 2
        assert plants.distribution.lte10000 == 2

    def test_missing_table_is_zeroed(self, store: SnapshotStore) -> None:
        birds = next(r for r in gbif_taxa_summary(store) if r.id == "aves")
        body = birds.to_json_dict()
        assert body["gbifDataAvailable"] is False
        assert body["gbifSpeciesCount"] == 0
        assert body["gbifMean"] == 0
        assert body["distribution"]["lte1"] == 0
        assert body["estimatedDescribed"] == 11_185

    def test_unreadable_table_is_unavailable(self, data_dir: Path, write_table: WriteTable) -> None:
        write_table("gbif-aves.csv", "species_key,occurrence_count\nnot-a-key,3\n")
        birds = next(r for r in gbif_taxa_summary(SnapshotStore(data_dir)) if r.id == "aves")
        assert birds.gbif_data_available is False
