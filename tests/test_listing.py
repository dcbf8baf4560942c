"""Tests for species listings (precomputed and live)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from redlist_explorer.analysis.listing import (
    ListingAggregator,
    ListingQuery,
    SortOrder,
    matches_category,
    paginate,
)
from redlist_explorer.datasources.gbif import FacetCount, SpeciesName
from redlist_explorer.errors import ProviderError, UnknownTaxonError
from redlist_explorer.reference.taxa import get_taxon
from redlist_explorer.store import SnapshotStore

from tests.factories import WriteSnapshot, WriteTable, species_record

TABLE = (
    "species_key,occurrence_count,scientific_name,common_name\n"
    '10,20000,Quercus robur,"Oak, English"\n'
    "11,500,Fagus sylvatica,Beech\n"
    "12,40,Ulmus minor,\n"
    "13,1,Sorbus leyana,\n"
    "14,1,Sorbus wilmottiana,\n"
    "15,0,Arabis scabra,\n"
)


@pytest.fixture
def store(data_dir: Path, write_snapshot: WriteSnapshot, write_table: WriteTable) -> SnapshotStore:
    write_snapshot(
        "redlist-plantae.json",
        [
            species_record(1, "Quercus robur", "LC"),
            species_record(2, "Ulmus minor", "DD"),
            species_record(3, "Sorbus leyana", "CR"),
        ],
    )
    write_table("gbif-plantae.csv", TABLE)
    return SnapshotStore(data_dir)


class TestHelpers:
    def test_paginate(self) -> None:
        items = list(range(10))
        assert paginate(items, 1, 4) == [0, 1, 2, 3]
        assert paginate(items, 3, 4) == [8, 9]
        assert paginate(items, 4, 4) == []

    def test_matches_category(self) -> None:
        assert matches_category("LC", None)
        assert matches_category("LC", "all")
        assert matches_category("LC", "LC")
        assert not matches_category("LC", "CR")
        assert matches_category(None, "NE")
        assert not matches_category("LC", "NE")


class TestPrecomputedListing:
    """Listings over the occurrence table."""

    def test_count_range_exact(self, store: SnapshotStore) -> None:
        """minCount=1, maxCount=1 returns only single-occurrence rows."""
        page = ListingAggregator(store).list_species(ListingQuery(min_count=1, max_count=1))
        assert [r.species_key for r in page.data] == [13, 14]
        assert all(r.occurrence_count == 1 for r in page.data)
        assert page.stats.filtered == 2

    def test_stats_cover_unfiltered_table(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(min_count=1, max_count=1))
        stats = page.stats
        assert stats.total == 6
        assert stats.total_occurrences == 20542
        # ascending [0, 1, 1, 40, 500, 20000] -> index 3
        assert stats.median == 40
        assert stats.distribution.total == 6
        assert stats.distribution.eq1 == 3
        assert stats.redlist is not None
        assert stats.redlist.assessed == 3
        assert stats.redlist.not_assessed == 3

    def test_default_sort_descending(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery())
        counts = [r.occurrence_count for r in page.data]
        assert counts == sorted(counts, reverse=True)

    def test_ascending_sort(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(sort=SortOrder.ASC))
        counts = [r.occurrence_count for r in page.data]
        assert counts == sorted(counts)

    def test_category_filter(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(category="CR"))
        assert [r.scientific_name for r in page.data] == ["Sorbus leyana"]

    def test_not_evaluated_filter(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(category="NE"))
        assert {r.scientific_name for r in page.data} == {"Fagus sylvatica", "Sorbus wilmottiana", "Arabis scabra"}

    def test_search_matches_common_name(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(search="english"))
        assert [r.species_key for r in page.data] == [10]

    def test_pagination(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(page=2, limit=4))
        assert [r.species_key for r in page.data] == [14, 15]
        assert page.pagination.total == 6
        assert page.pagination.total_pages == 2

    def test_limit_capped(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store, max_limit=3).list_species(ListingQuery(limit=5000))
        assert page.pagination.limit == 3
        assert len(page.data) == 3

    def test_page_below_one_clamped(self, store: SnapshotStore) -> None:
        page = ListingAggregator(store).list_species(ListingQuery(page=0))
        assert page.pagination.page == 1

    def test_missing_table_gives_empty_page(self, data_dir: Path) -> None:
        page = ListingAggregator(SnapshotStore(data_dir)).list_species(ListingQuery(taxon="aves"))
        assert page.data == []
        assert page.pagination.total == 0
        assert page.pagination.total_pages == 0
        assert page.stats.median == 0
        assert page.data_available is False
        assert page.to_response()["dataAvailable"] is False

    def test_unreadable_table_not_available(self, data_dir: Path, write_table: WriteTable) -> None:
        write_table("gbif-plantae.csv", "species_key,occurrence_count\n1,2\nx,3\n")
        page = ListingAggregator(SnapshotStore(data_dir)).list_species(ListingQuery(taxon="plantae"))
        assert page.data == []
        assert page.data_available is False

    def test_loaded_table_is_available(self, store: SnapshotStore) -> None:
        body = ListingAggregator(store).list_species(ListingQuery(search="no such name")).to_response()
        assert body["data"] == []
        assert body["dataAvailable"] is True

    def test_unknown_taxon(self, store: SnapshotStore) -> None:
        with pytest.raises(UnknownTaxonError):
            ListingAggregator(store).list_species(ListingQuery(taxon="dragons"))

    def test_response_omits_live_flag(self, store: SnapshotStore) -> None:
        body = ListingAggregator(store).list_species(ListingQuery()).to_response()
        assert "isLiveQuery" not in body
        assert "redlist" in body["stats"]
        assert body["pagination"]["totalPages"] == 1


class TestLiveListing:
    """Live GBIF facet listings."""

    def test_is_live(self) -> None:
        assert not ListingQuery().is_live
        assert ListingQuery(basis_of_record="HUMAN_OBSERVATION").is_live
        assert ListingQuery(max_uncertainty=1000).is_live
        assert ListingQuery(data_source="iNaturalist").is_live

    @patch("redlist_explorer.analysis.listing.fetch_species_name")
    @patch("redlist_explorer.analysis.listing.species_facets")
    def test_keys_not_in_table_excluded(
        self, mock_facets: Mock, mock_name: Mock, store: SnapshotStore
    ) -> None:
        """A facet key absent from the occurrence table is dropped from page and stats."""
        mock_facets.return_value = [
            FacetCount(10, 900),
            FacetCount(999, 5000),  # subspecies / synonym
            FacetCount(11, 30),
        ]
        mock_name.side_effect = lambda key: SpeciesName(key, {10: "Quercus robur", 11: "Fagus sylvatica"}[key])

        page = ListingAggregator(store).list_species(ListingQuery(basis_of_record="HUMAN_OBSERVATION"))

        assert [r.species_key for r in page.data] == [10, 11]
        assert page.stats.total == 2
        assert page.stats.total_occurrences == 930
        assert page.is_live_query is True
        assert page.stats.redlist is None
        assert page.data[0].redlist_category == "LC"
        assert page.data[1].redlist_category is None

    @patch("redlist_explorer.analysis.listing.fetch_species_name")
    @patch("redlist_explorer.analysis.listing.species_facets")
    def test_failed_name_gets_placeholder(self, mock_facets: Mock, mock_name: Mock, store: SnapshotStore) -> None:
        mock_facets.return_value = [FacetCount(10, 900), FacetCount(11, 30)]

        def lookup(key: int) -> SpeciesName:
            if key == 11:
                msg = "GBIF timeout"
                raise TimeoutError(msg)
            return SpeciesName(key, "Quercus robur")

        mock_name.side_effect = lookup
        page = ListingAggregator(store).list_species(ListingQuery(data_source="iNaturalist"))
        assert [r.scientific_name for r in page.data] == ["Quercus robur", "Species 11"]

    @patch("redlist_explorer.analysis.listing.fetch_species_name")
    @patch("redlist_explorer.analysis.listing.species_facets")
    def test_names_resolved_for_current_page_only(
        self, mock_facets: Mock, mock_name: Mock, store: SnapshotStore
    ) -> None:
        mock_facets.return_value = [FacetCount(k, 100 - k) for k in (10, 11, 12, 13)]
        mock_name.side_effect = lambda key: SpeciesName(key, f"Name {key}")
        page = ListingAggregator(store).list_species(ListingQuery(max_uncertainty=100, page=2, limit=2))
        assert [r.species_key for r in page.data] == [12, 13]
        assert sorted(c.args[0] for c in mock_name.call_args_list) == [12, 13]
        assert page.pagination.total == 4

    @patch("redlist_explorer.analysis.listing.fetch_species_name")
    @patch("redlist_explorer.analysis.listing.species_facets")
    def test_category_filter_narrows_page(self, mock_facets: Mock, mock_name: Mock, store: SnapshotStore) -> None:
        mock_facets.return_value = [FacetCount(10, 900), FacetCount(11, 30)]
        mock_name.side_effect = lambda key: SpeciesName(key, {10: "Quercus robur", 11: "Fagus sylvatica"}[key])
        page = ListingAggregator(store).list_species(ListingQuery(max_uncertainty=100, category="LC"))
        assert [r.species_key for r in page.data] == [10]
        # Pagination still describes the unfiltered facet set
        assert page.pagination.total == 2

    @patch("redlist_explorer.analysis.listing.species_facets")
    def test_provider_error_propagates(self, mock_facets: Mock, store: SnapshotStore) -> None:
        mock_facets.side_effect = ProviderError("GBIF", "503 Service Unavailable", 503)
        with pytest.raises(ProviderError):
            ListingAggregator(store).list_species(ListingQuery(basis_of_record="PRESERVED_SPECIMEN"))


class TestBuildLiveQuery:
    def test_other_basis_expands(self, store: SnapshotStore) -> None:
        query = ListingAggregator(store).build_live_query(get_taxon("plantae"), ListingQuery(basis_of_record="other"))
        assert "FOSSIL_SPECIMEN" in query.basis_of_record
        assert len(query.basis_of_record) == 5

    def test_taxon_classification(self, store: SnapshotStore) -> None:
        query = ListingAggregator(store).build_live_query(get_taxon("aves"), ListingQuery(max_uncertainty=10))
        params = query.to_params()
        assert ("classKey", 212) in params
        assert ("coordinateUncertaintyInMeters", "*,10") in params

    def test_unknown_data_source_ignored(self, store: SnapshotStore) -> None:
        query = ListingAggregator(store).build_live_query(get_taxon("plantae"), ListingQuery(data_source="Nope"))
        assert query.dataset_key is None
        assert query.publishing_org is None
