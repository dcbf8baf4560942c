"""
Domain models for the Red List explorer.

Pydantic models for snapshot files and API responses. Python attribute names
are snake_case; JSON field names match what the web client already reads
(a mix of snake_case snapshot fields and camelCase response fields), so
responses are always dumped with ``by_alias=True``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """Base for models that serialise with camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self, **kwargs: Any) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


# =============================================================================
# Snapshot (precomputed Red List export)
# =============================================================================


class PreviousAssessment(BaseModel):
    """An earlier assessment of the same species."""

    model_config = ConfigDict(extra="ignore")

    year: str = ""
    assessment_id: int = 0
    category: str = ""


class SnapshotRecord(BaseModel):
    """One assessed species from a snapshot file."""

    model_config = ConfigDict(extra="ignore")

    sis_taxon_id: int
    assessment_id: int = 0
    scientific_name: str
    common_name: str | None = None
    family: str | None = None
    category: str
    assessment_date: str | None = None
    year_published: str = ""
    url: str = ""
    population_trend: str | None = None
    countries: list[str] = Field(default_factory=list)
    assessment_count: int = 1
    previous_assessments: list[PreviousAssessment] = Field(default_factory=list)
    # Set when merged from a composite group's sub-files
    taxon_id: str | None = None
    # Only set for not-evaluated species built from the occurrence table
    gbif_species_key: int | None = None
    gbif_occurrence_count: int | None = None


class SnapshotMetadata(ApiModel):
    """Snapshot header written by the export job."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total_species: int = Field(0, alias="totalSpecies")
    fetched_at: str = Field("", alias="fetchedAt")
    pages_processed: int = Field(0, alias="pagesProcessed")
    by_category: dict[str, int] = Field(default_factory=dict, alias="byCategory")
    taxon_id: str | None = Field(None, alias="taxonId")


class Snapshot(ApiModel):
    """A parsed (possibly merged) snapshot."""

    species: list[SnapshotRecord] = Field(default_factory=list)
    metadata: SnapshotMetadata = Field(default_factory=SnapshotMetadata)


# =============================================================================
# Occurrence table rows
# =============================================================================


class OccurrenceCountRecord(ApiModel):
    """GBIF occurrence count for one species in a taxon's occurrence table."""

    species_key: int
    occurrence_count: int
    scientific_name: str | None = None
    common_name: str | None = None
    observations_after_assessment_year: int | None = None
    redlist_category: str | None = None
    # Only populated by live listings (resolved from the GBIF backbone)
    vernacular_name: str | None = Field(None, alias="vernacularName")


# =============================================================================
# Listing responses
# =============================================================================


class Distribution(BaseModel):
    """Species counts per occurrence-count bucket. Buckets partition the set."""

    eq1: int = 0
    gt1_lte10: int = 0
    gt10_lte100: int = 0
    gt100_lte1000: int = 0
    gt1000_lte10000: int = 0
    gt10000: int = 0

    @property
    def total(self) -> int:
        return (
            self.eq1
            + self.gt1_lte10
            + self.gt10_lte100
            + self.gt100_lte1000
            + self.gt1000_lte10000
            + self.gt10000
        )


class RedListSplit(ApiModel):
    """Assessed vs. not-assessed species and their occurrence totals."""

    assessed: int = 0
    not_assessed: int = Field(0, alias="notAssessed")
    assessed_occurrences: int = Field(0, alias="assessedOccurrences")
    not_assessed_occurrences: int = Field(0, alias="notAssessedOccurrences")


class ListingStats(ApiModel):
    """Summary statistics over a taxon's (unfiltered) species set."""

    total: int = 0
    filtered: int = 0
    total_occurrences: int = Field(0, alias="totalOccurrences")
    median: int = 0
    distribution: Distribution = Field(default_factory=Distribution)
    redlist: RedListSplit | None = None


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")


class ListingPage(ApiModel):
    """One page of a species listing."""

    data: list[OccurrenceCountRecord] = Field(default_factory=list)
    pagination: Pagination
    stats: ListingStats
    is_live_query: bool | None = Field(None, alias="isLiveQuery")
    # False when the taxon's occurrence table is missing or unreadable
    data_available: bool = Field(True, alias="dataAvailable")

    def to_response(self) -> dict[str, Any]:
        """JSON body; ``redlist`` and ``isLiveQuery`` are omitted when unset."""
        body = self.to_json_dict()
        if body["stats"].get("redlist") is None:
            body["stats"].pop("redlist", None)
        if body.get("isLiveQuery") is None:
            body.pop("isLiveQuery", None)
        return body


# =============================================================================
# Species detail responses
# =============================================================================


class RecordTypeBreakdown(ApiModel):
    """
    Occurrence counts by basis of record.

    The partitions are queried independently. ``other`` is the residual
    ``total - (human + specimen + machine)`` clamped at zero; ``iNaturalist``
    is a subset of ``humanObservation``, not a separate partition.
    """

    human_observation: int = Field(0, alias="humanObservation")
    preserved_specimen: int = Field(0, alias="preservedSpecimen")
    machine_observation: int = Field(0, alias="machineObservation")
    other: int = Field(0, ge=0)
    inaturalist: int = Field(0, alias="iNaturalist")


class InatObservation(ApiModel):
    """An iNaturalist observation (via its GBIF occurrence) for thumbnails."""

    url: str
    date: str | None = None
    image_url: str | None = Field(None, alias="imageUrl")
    location: str | None = None
    observer: str | None = None
    # Set on breakdown observations only
    audio_url: str | None = Field(None, alias="audioUrl")
    media_type: str | None = Field(None, alias="mediaType")


class InatImage(ApiModel):
    square_url: str | None = Field(None, alias="squareUrl")
    medium_url: str | None = Field(None, alias="mediumUrl")


class SpeciesDetail(ApiModel):
    """Occurrence evidence for one assessed species, split at its assessment.

    Occurrence fields are None when GBIF could not resolve the name to the
    species itself or when the counts could not be fetched.
    """

    sis_taxon_id: int
    criteria: str | None = None
    common_name: str | None = Field(None, alias="commonName")
    gbif_url: str | None = Field(None, alias="gbifUrl")
    gbif_occurrences: int | None = Field(None, alias="gbifOccurrences")
    gbif_occurrences_since_assessment: int | None = Field(
        None, alias="gbifOccurrencesSinceAssessment"
    )
    gbif_occurrences_at_assessment: int | None = Field(None, alias="gbifOccurrencesAtAssessment")
    gbif_by_record_type: RecordTypeBreakdown | None = Field(None, alias="gbifByRecordType")
    gbif_new_by_record_type: RecordTypeBreakdown | None = Field(None, alias="gbifNewByRecordType")
    gbif_at_assessment_by_record_type: RecordTypeBreakdown | None = Field(
        None, alias="gbifAtAssessmentByRecordType"
    )
    recent_inat_observations: list[InatObservation] = Field(
        default_factory=list, alias="recentInatObservations"
    )
    inat_total_count: int = Field(0, alias="inatTotalCount")
    inat_default_image: InatImage | None = Field(None, alias="inatDefaultImage")
    assessment_count: int = Field(1, alias="assessmentCount")
    cached: bool = False


class SpeciesBreakdown(RecordTypeBreakdown):
    """Record-type breakdown for a GBIF species key, with sample observations."""

    recent_inat_observations: list[InatObservation] = Field(
        default_factory=list, alias="recentInatObservations"
    )
    inat_total_count: int = Field(0, alias="inatTotalCount")
    total: int = 0


# =============================================================================
# Red List summaries
# =============================================================================


class TaxonRef(ApiModel):
    """Taxon header included in Red List responses."""

    id: str
    name: str
    estimated_described: int = Field(alias="estimatedDescribed")
    estimated_source: str = Field(alias="estimatedSource")
    color: str | None = None


class AssessedSpeciesList(ApiModel):
    species: list[SnapshotRecord] = Field(default_factory=list)
    total: int = 0
    metadata: SnapshotMetadata | None = None
    taxon: TaxonRef
    error: str | None = None


class CategoryCount(BaseModel):
    code: str
    name: str
    count: int
    color: str


class CategoryStats(ApiModel):
    total_assessed: int = Field(alias="totalAssessed")
    by_category: list[CategoryCount] = Field(alias="byCategory")
    sample_size: int = Field(alias="sampleSize")
    last_updated: str | None = Field(None, alias="lastUpdated")
    cached: bool = True
    taxon: TaxonRef


class TaxonAvailability(ApiModel):
    """Per-taxon coverage row for the overview table."""

    id: str
    name: str
    color: str
    estimated_described: int = Field(alias="estimatedDescribed")
    estimated_source: str = Field(alias="estimatedSource")
    estimated_source_url: str | None = Field(None, alias="estimatedSourceUrl")
    available: bool = False
    total_assessed: int = Field(0, alias="totalAssessed")
    percent_assessed: float = Field(0.0, alias="percentAssessed")
    outdated: int = 0
    percent_outdated: float = Field(0.0, alias="percentOutdated")
    last_updated: str | None = Field(None, alias="lastUpdated")


# =============================================================================
# GBIF occurrence summaries
# =============================================================================


class CumulativeDistribution(BaseModel):
    """Species with at most N occurrences, for each threshold N."""

    lte1: int = 0
    lte10: int = 0
    lte100: int = 0
    lte1000: int = 0
    lte10000: int = 0


class GbifTaxonSummary(ApiModel):
    """Occurrence-table statistics for one taxon."""

    id: str
    name: str
    color: str
    estimated_described: int = Field(alias="estimatedDescribed")
    estimated_source: str = Field(alias="estimatedSource")
    estimated_source_url: str | None = Field(None, alias="estimatedSourceUrl")
    gbif_species_count: int = Field(0, alias="gbifSpeciesCount")
    gbif_total_occurrences: int = Field(0, alias="gbifTotalOccurrences")
    gbif_median: int = Field(0, alias="gbifMedian")
    gbif_mean: int = Field(0, alias="gbifMean")
    gbif_data_available: bool = Field(False, alias="gbifDataAvailable")
    distribution: CumulativeDistribution = Field(default_factory=CumulativeDistribution)
