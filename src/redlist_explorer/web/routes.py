"""API routes.

Handlers are plain ``def`` functions: provider calls are blocking, so
FastAPI runs each request on its worker thread pool.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse

from redlist_explorer.analysis.breakdown import BreakdownRequest
from redlist_explorer.analysis.listing import DEFAULT_LIMIT, ListingQuery, SortOrder
from redlist_explorer.analysis.redlist import (
    category_stats,
    gbif_taxa_summary,
    list_assessed_species,
    taxa_summary,
    taxon_ref,
)
from redlist_explorer.analysis.species_detail import DetailRequest
from redlist_explorer.errors import InvalidParameterError, SnapshotUnavailableError
from redlist_explorer.reference.taxa import get_taxon
from redlist_explorer.web.app import Services, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

ServicesDep = Annotated[Services, Depends(get_services)]

TAXA_SUMMARY_CACHE_KEY = "redlist:taxa-summary"


def parse_int(value: str, name: str) -> int:
    """Parse an integer parameter; malformed values are a 400."""
    try:
        return int(value)
    except ValueError:
        msg = f"Invalid {name}: {value!r}"
        raise InvalidParameterError(msg) from None


def parse_optional_int(value: str | None, name: str) -> int | None:
    if value is None or value == "":
        return None
    return parse_int(value, name)


# =============================================================================
# Occurrence listings
# =============================================================================


@router.get("/species")
def list_species(
    services: ServicesDep,
    taxon: str = "plantae",
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    min_count: Annotated[int, Query(alias="minCount")] = 0,
    max_count: Annotated[int | None, Query(alias="maxCount")] = None,
    sort: SortOrder = SortOrder.DESC,
    redlist: str | None = None,
    search: str | None = None,
    basis_of_record: Annotated[str | None, Query(alias="basisOfRecord")] = None,
    max_uncertainty: Annotated[int | None, Query(alias="maxUncertainty")] = None,
    data_source: Annotated[str | None, Query(alias="dataSource")] = None,
) -> dict[str, Any]:
    """Paginated species listing with occurrence statistics."""
    query = ListingQuery(
        taxon=taxon,
        page=page,
        limit=limit,
        min_count=min_count,
        max_count=max_count,
        sort=sort,
        category=redlist,
        search=search,
        basis_of_record=basis_of_record,
        max_uncertainty=max_uncertainty,
        data_source=data_source,
    )
    return services.listings.list_species(query).to_response()


@router.get("/gbif/taxa")
def gbif_taxa(services: ServicesDep) -> dict[str, Any]:
    """Occurrence statistics for every taxon, with how many have data."""
    summaries = gbif_taxa_summary(services.store)
    return {
        "taxa": [s.to_json_dict() for s in summaries],
        "totalTaxa": len(summaries),
        "availableTaxa": sum(1 for s in summaries if s.gbif_data_available),
    }


@router.get("/species/{key}/breakdown")
def species_breakdown(
    services: ServicesDep,
    key: Annotated[str, Path()],
    country: str | None = None,
    max_uncertainty: Annotated[str | None, Query(alias="maxUncertainty")] = None,
    data_source: Annotated[str | None, Query(alias="dataSource")] = None,
) -> dict[str, Any]:
    """Basis-of-record breakdown for one GBIF species key."""
    request = BreakdownRequest(
        species_key=parse_int(key, "species key"),
        country=country or None,
        max_uncertainty=parse_optional_int(max_uncertainty, "maxUncertainty"),
        data_source=data_source or None,
    )
    return services.breakdowns.fetch(request).to_json_dict()


# =============================================================================
# Red List
# =============================================================================


@router.get("/redlist/species/{sis_id}")
def species_detail(
    services: ServicesDep,
    sis_id: Annotated[str, Path()],
    assessment_id: Annotated[str | None, Query(alias="assessmentId")] = None,
    name: str | None = None,
    assessment_year: Annotated[str | None, Query(alias="assessmentYear")] = None,
    assessment_month: Annotated[str | None, Query(alias="assessmentMonth")] = None,
) -> dict[str, Any]:
    """Occurrence evidence for one assessed species, split at its assessment."""
    request = DetailRequest(
        sis_taxon_id=parse_int(sis_id, "species id"),
        assessment_id=parse_optional_int(assessment_id, "assessmentId"),
        scientific_name=name or None,
        assessment_year=parse_optional_int(assessment_year, "assessmentYear"),
        assessment_month=parse_optional_int(assessment_month, "assessmentMonth"),
    )
    return services.details.fetch(request).to_json_dict()


@router.get("/redlist/species", response_model=None)
def assessed_species(
    services: ServicesDep,
    taxon: str = "plantae",
    category: str | None = None,
    search: str | None = None,
) -> dict[str, Any] | JSONResponse:
    """Assessed species for a taxon; ``category=NE`` lists unassessed ones."""
    try:
        result = list_assessed_species(services.store, taxon, category=category, search=search)
    except SnapshotUnavailableError as exc:
        logger.warning("%s", exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": str(exc),
                "species": [],
                "total": 0,
                "taxon": taxon_ref(get_taxon(taxon)).to_json_dict(),
            },
        )
    body = result.to_json_dict()
    if body.get("error") is None:
        body.pop("error", None)
    return body


@router.get("/redlist/stats")
def redlist_stats(services: ServicesDep, taxon: str = "plantae") -> dict[str, Any]:
    """Species per Red List category for a taxon."""
    return category_stats(services.store, taxon).to_json_dict()


@router.get("/redlist/taxa")
def redlist_taxa(services: ServicesDep) -> dict[str, Any]:
    """Assessment coverage for every taxon."""
    cached = services.cache.get(TAXA_SUMMARY_CACHE_KEY)
    if cached is not None:
        return {"taxa": cached, "cached": True}

    taxa = [row.to_json_dict() for row in taxa_summary(services.store)]
    services.cache.set(TAXA_SUMMARY_CACHE_KEY, taxa, services.cache_ttl)
    return {"taxa": taxa, "cached": False}
