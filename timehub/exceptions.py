"""Error taxonomy shared by providers, adapters and the storage layer."""

from typing import Optional


class TimehubError(Exception):
    """Base class for all timehub errors."""


class ProviderError(TimehubError):
    """A provider could not complete a sync."""


class ProviderConfigError(ProviderError):
    """A provider is missing a credential or other required setting."""


class ProviderAPIError(ProviderError):
    """The upstream API rejected a request or could not be reached.

    ``status_code`` is None for transport failures (timeouts, DNS, refused
    connections); ``body`` then carries the transport error text.
    """

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class EntryConflictError(TimehubError):
    """A write violated the (source, external_id) uniqueness constraint."""

    def __init__(self, source: str, external_id: Optional[str], issue: Optional[str] = None, detail: Optional[str] = None):
        message = f"Duplicate time entry for source={source} external_id={external_id}"
        if issue:
            message += f" (issue {issue})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.source = source
        self.external_id = external_id
        self.issue = issue


class UnsupportedImportFormat(TimehubError):
    """An uploaded file matches none of the known CSV layouts."""
