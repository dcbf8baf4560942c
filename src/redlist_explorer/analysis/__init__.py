"""
Analysis layer: combines snapshot data with live provider calls.

- listing: paginated species listings (precomputed or live GBIF facets)
- species_detail: occurrence evidence split at the last assessment
- breakdown: record-type breakdown for a GBIF species key
- redlist: category statistics and per-taxon coverage
- record_types, temporal, stats: shared building blocks
"""
