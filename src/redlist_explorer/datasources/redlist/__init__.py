"""IUCN Red List data source (taxon records and assessments)."""

from redlist_explorer.datasources.redlist.assessments import AssessmentDetail, fetch_assessment
from redlist_explorer.datasources.redlist.taxa import RedListTaxon, fetch_taxon, pick_common_name

__all__ = [
    "AssessmentDetail",
    "RedListTaxon",
    "fetch_assessment",
    "fetch_taxon",
    "pick_common_name",
]
