"""Red List Explorer - conservation status vs. occurrence evidence.

Architecture::

    reference/     Static taxon registry (snapshot files, GBIF classification keys)
    store.py       Snapshot store: precomputed Red List JSON + GBIF occurrence tables
    cache.py       Process-local TTL cache behind a swappable interface
    fanout.py      Bounded scatter/gather for concurrent provider calls
    datasources/   Typed provider wrappers (GBIF, iNaturalist, IUCN Red List)
    analysis/      Species listings, per-species occurrence deltas, category stats
    web/           FastAPI app exposing the listing and detail endpoints
    flows/         Prefect flow that warms and validates the snapshot store
    services/      Shared utilities (HTTP session, low-level API clients)

Data flow: snapshot files -> store -> analysis <- datasources -> web
"""

__version__ = "0.1.0"
__author__ = "Michael Howden"

from redlist_explorer.config import Settings

__all__ = ["Settings", "__version__"]
