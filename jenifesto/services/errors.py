from __future__ import annotations


class JenifestoError(Exception):
    """Base class for errors raised by this package."""


class EntityFetchError(JenifestoError):
    """The primary entity could not be fetched or was malformed.

    Fatal to the pipeline of the page that requested it.
    """


class SourceFetchError(JenifestoError):
    """A single source request failed. Always contained inside a fan-out."""

    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source


class NotFound(JenifestoError):
    """A source explicitly reported that it has no record for the query."""


class CacheUnavailable(JenifestoError):
    """The storage backing the cache or session state is unreachable."""
