"""Exception types surfaced to API callers."""

from __future__ import annotations


class RedListExplorerError(Exception):
    """Base class for errors the web layer turns into HTTP responses."""

    status_code = 500


class UnknownTaxonError(RedListExplorerError):
    """Raised when a taxon id is not in the registry."""

    status_code = 404

    def __init__(self, taxon_id: str) -> None:
        self.taxon_id = taxon_id
        super().__init__(f"Unknown taxon: {taxon_id!r}")


class MissingCredentialError(RedListExplorerError):
    """Raised when a provider needs an API key that is not configured."""

    def __init__(self, variable: str) -> None:
        self.variable = variable
        super().__init__(f"{variable} environment variable not set")


class ProviderError(RedListExplorerError):
    """An upstream provider request failed and there is no local fallback."""

    status_code = 502

    def __init__(self, provider: str, message: str, upstream_status: int | None = None) -> None:
        self.provider = provider
        self.upstream_status = upstream_status
        super().__init__(f"{provider} API error: {message}")


class InvalidParameterError(RedListExplorerError):
    """A path or query parameter could not be interpreted."""

    status_code = 400


class SnapshotUnavailableError(RedListExplorerError):
    """A taxon's snapshot file is missing or could not be parsed."""

    status_code = 503

    def __init__(self, taxon_name: str) -> None:
        self.taxon_name = taxon_name
        super().__init__(f"Species data not available for {taxon_name}")
