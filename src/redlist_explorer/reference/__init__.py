"""Static reference data: the taxon registry and Red List category tables."""
