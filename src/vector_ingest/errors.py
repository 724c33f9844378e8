"""Exception hierarchy shared by the ingestion core and the HTTP layer."""

from __future__ import annotations


class VectorIngestError(Exception):
    """Base class for every error raised by :mod:`vector_ingest`."""


class ConfigurationError(VectorIngestError):
    """Missing or invalid embedding / store configuration."""


class UnsupportedContentError(VectorIngestError):
    """The source's file type or MIME type has no registered loader."""


class ExtractionError(VectorIngestError):
    """The source could not be fetched, parsed, or yielded no text."""


class EmbeddingError(VectorIngestError):
    """The embedding model call failed."""


class StoreError(VectorIngestError):
    """A connection or command failure against the backing Redis store."""
