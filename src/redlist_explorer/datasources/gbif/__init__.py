"""GBIF occurrence and backbone-taxonomy data source.

Public API:
  - match: MatchType, NameMatch, match_name
  - occurrences: OccurrenceQuery, BasisOfRecord, GbifOccurrence, FacetCount,
    count_occurrences, search_occurrences, species_facets
  - species: SpeciesName, fetch_species_name
"""

from redlist_explorer.datasources.gbif.match import (
    ACCEPTED_MATCH_TYPES,
    MatchType,
    NameMatch,
    match_name,
    parse_name_match,
)
from redlist_explorer.datasources.gbif.occurrences import (
    DATA_SOURCES,
    OTHER_BASIS_OF_RECORD,
    BasisOfRecord,
    DataSource,
    FacetCount,
    GbifOccurrence,
    OccurrenceQuery,
    count_occurrences,
    search_occurrences,
    species_facets,
)
from redlist_explorer.datasources.gbif.species import SpeciesName, fetch_species_name

__all__ = [
    "ACCEPTED_MATCH_TYPES",
    "DATA_SOURCES",
    "OTHER_BASIS_OF_RECORD",
    "BasisOfRecord",
    "DataSource",
    "FacetCount",
    "GbifOccurrence",
    "MatchType",
    "NameMatch",
    "OccurrenceQuery",
    "SpeciesName",
    "count_occurrences",
    "fetch_species_name",
    "match_name",
    "parse_name_match",
    "search_occurrences",
    "species_facets",
]
