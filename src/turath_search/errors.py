"""Exceptions raised by the search pipeline and its adapters."""

from typing import Optional


class TurathSearchError(Exception):
    """Base class for all errors raised by turath_search."""


class InvalidQuery(TurathSearchError):
    """The query is structurally invalid and was rejected before any engine call."""

    def __init__(self, query: str, reason: str):
        self.query = query
        self.reason = reason
        super().__init__(f"Invalid query {query!r}: {reason}")


class EngineError(TurathSearchError):
    """The search engine answered with a failure or an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is not None:
            super().__init__(f"Search engine error {status_code}: {message}")
        else:
            super().__init__(f"Search engine error: {message}")


class EngineUnavailable(EngineError):
    """The search engine could not be reached (network failure, timeout)."""


class MetadataError(TurathSearchError):
    """Metadata could not be loaded unambiguously."""


class ColumnNotFound(MetadataError):
    """A required column is missing from a metadata sheet."""

    def __init__(self, sheet: str, column: str, candidates):
        self.sheet = sheet
        self.column = column
        self.candidates = list(candidates)
        super().__init__(
            f"Could not find {column} column in {sheet} (looked for: {', '.join(self.candidates)})"
        )
