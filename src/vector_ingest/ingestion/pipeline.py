"""Ingestion pipeline: extract → chunk → ensure index → embed → write → record.

The ledger append is strictly the last store write, so a failure at any
earlier step leaves no ledger entry behind.  Vector records written before
a failure are removed again on a best-effort basis; if that cleanup also
fails the records stay orphaned, i.e. no ledger entry references them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from vector_ingest.errors import ExtractionError, StoreError
from vector_ingest.ingestion.chunker import chunk_documents
from vector_ingest.ingestion.embedder import embed_chunks
from vector_ingest.ingestion.keys import chunk_keys, new_run_prefix
from vector_ingest.store.models import FileConfig, IngestionRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from vector_ingest.ingestion.loader import ContentExtractor
    from vector_ingest.store.ledger import Ledger
    from vector_ingest.store.schema import IndexLifecycle
    from vector_ingest.store.vectors import VectorWriter

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Runs one ingestion end to end against a connected store.

    Parameters
    ----------
    extractor:
        Content-extraction collaborator.
    embeddings:
        Embedding function (``OllamaEmbeddings`` in production).
    lifecycle / ledger / vectors:
        Store components bound to the same Redis client.
    key_namespace:
        Prefix reserved for vector-record keys.
    """

    def __init__(
        self,
        extractor: ContentExtractor,
        embeddings: Embeddings,
        lifecycle: IndexLifecycle,
        ledger: Ledger,
        vectors: VectorWriter,
        *,
        key_namespace: str,
    ) -> None:
        self._extractor = extractor
        self._embeddings = embeddings
        self._lifecycle = lifecycle
        self._ledger = ledger
        self._vectors = vectors
        self._key_namespace = key_namespace

    async def ingest(self, file_config: FileConfig, source_name: str | None = None) -> list[str]:
        """Ingest one source and return the chunk keys written.

        Parameters
        ----------
        file_config:
            Source path / URL, declared type, and chunk parameters.
        source_name:
            Name recorded in the ledger; defaults to ``file_config.name``
            or the file name of ``file_config.path``.
        """
        documents = await self._extractor.load(file_config.path, file_config.type)
        logger.info("1. Loaded %d document(s) from %s", len(documents), file_config.path)

        chunks = chunk_documents(documents, file_config.chunk.size, file_config.chunk.overlap)
        logger.info("2. Split into %d chunk(s)", len(chunks))
        if not chunks:
            raise ExtractionError(f"No text content extracted from {file_config.path}")

        empty = await self._lifecycle.is_empty()
        await self._lifecycle.ensure_index(force_reset=empty)

        prefix = new_run_prefix(self._key_namespace)
        keys = chunk_keys(prefix, len(chunks))
        for key, chunk in zip(keys, chunks):
            chunk.metadata["id"] = key

        embeddings = await embed_chunks(self._embeddings, [c.page_content for c in chunks])

        try:
            await self._vectors.write(keys, chunks, embeddings)
            logger.info("3. Stored %d vectors under %s", len(keys), prefix)

            record = IngestionRecord(
                source_name=source_name or file_config.name or Path(file_config.path).name,
                source_path=file_config.path,
                chunk_keys=keys,
            )
            await self._ledger.append(record)
        except Exception:
            await self._discard(keys)
            raise

        logger.info("4. Recorded ingestion of %s", file_config.path)
        return keys

    async def _discard(self, keys: list[str]) -> None:
        try:
            await self._vectors.delete(keys)
        except (StoreError, RedisError):
            logger.warning(
                "Could not clean up %d vector record(s) after failed ingestion", len(keys),
                exc_info=True,
            )
        else:
            logger.info("Cleaned up %d vector record(s) after failed ingestion", len(keys))
