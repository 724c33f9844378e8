"""Domain models for ingestion requests and the ingestion ledger."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class ChunkConfig(BaseModel):
    """Caller-supplied chunking parameters.

    Values are deliberately loose (``None`` or any object) so that callers
    can forward raw form / query input; :func:`~vector_ingest.ingestion.chunker.resolve_chunk_config`
    normalises them into integers.
    """

    size: Any = None
    overlap: Any = None


class FileConfig(BaseModel):
    """A single ingestion request.

    Attributes
    ----------
    path:
        Local file path (e.g. a staged upload) or an ``http(s)://`` URL.
    type:
        Declared MIME type. Guessed from *path* when omitted.
    name:
        Human-readable source name recorded in the ledger.  Resolved from
        the page title (URLs) or the file name when omitted.
    chunk:
        Chunking parameters.
    """

    path: str
    type: str | None = None
    name: str | None = None
    chunk: ChunkConfig = Field(default_factory=ChunkConfig)


class EmbedderConfig(BaseModel):
    """Connection details for the embedding model and the target index."""

    index: str
    base_url: str
    model: str


class IngestionRecord(BaseModel):
    """One ledger entry — everything needed to reverse an ingestion.

    Serialised with the camelCase field names (``fileName``, ``filePath``,
    ``processedAt``, ``chunkKeys``) used by existing ledgers, so entries
    written by earlier deployments stay readable.

    Attributes
    ----------
    record_id:
        Identifier generated at ingestion time.
    source_name:
        Display name (original file name or page title).
    source_path:
        The path / URL that was ingested; the lookup key for deletion.
        Not unique — re-ingesting the same path adds another record.
    processed_at:
        UTC timestamp of the ingestion.
    chunk_keys:
        Vector-record keys written by this ingestion, in chunk order.
    """

    model_config = ConfigDict(populate_by_name=True)

    record_id: str = Field(default_factory=lambda: uuid4().hex, alias="recordId")
    source_name: str = Field(default="", alias="fileName")
    source_path: str = Field(alias="filePath")
    processed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="processedAt"
    )
    chunk_keys: list[str] = Field(default_factory=list, alias="chunkKeys")

    def to_json(self) -> str:
        """Serialise for storage in the ledger list."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> IngestionRecord:
        """Parse a ledger entry; raises ``ValueError`` on corrupt input."""
        return cls.model_validate_json(raw)
