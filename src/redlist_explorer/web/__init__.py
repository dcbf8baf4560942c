"""HTTP API (FastAPI) over the analysis layer."""

from redlist_explorer.web.app import create_app

__all__ = ["create_app"]
