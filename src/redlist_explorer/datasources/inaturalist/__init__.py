"""iNaturalist data source (species default images)."""

from redlist_explorer.datasources.inaturalist.taxa import TaxonImage, fetch_default_image

__all__ = ["TaxonImage", "fetch_default_image"]
