"""Caller-facing operations over the ingestion core.

:class:`VectorStoreService` is what the HTTP layer talks to.  It owns the
single :class:`~vector_ingest.store.session.RedisSession` and wires the
store components to it for each call.

Usage::

    from vector_ingest.config import settings
    from vector_ingest.service import VectorStoreService
    from vector_ingest.store.models import FileConfig

    service = VectorStoreService.from_settings(settings)
    keys = await service.ingest(FileConfig(path="https://example.com/post"))
    found = await service.delete_by_source_path("https://example.com/post")
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from redis.asyncio import Redis

from vector_ingest.ingestion.embedder import get_embeddings
from vector_ingest.ingestion.loader import ContentExtractor, is_url
from vector_ingest.ingestion.pipeline import IngestionPipeline
from vector_ingest.store.cascade import DeletionCoordinator
from vector_ingest.store.ledger import Ledger
from vector_ingest.store.models import FileConfig, IngestionRecord
from vector_ingest.store.schema import IndexLifecycle
from vector_ingest.store.session import ClientFactory, RedisSession
from vector_ingest.store.vectors import VectorWriter

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from vector_ingest.config import Settings

logger = logging.getLogger(__name__)


class VectorStoreService:
    """Ingest, list, delete, and reset over one Redis vector index.

    Mutating calls (:meth:`ingest`, :meth:`delete_by_source_path`,
    :meth:`reset_index`) are serialised through a single writer lock, so
    within one process the ledger scan-then-mutate sequences never
    interleave.  Separate processes sharing the same index must still
    coordinate writes themselves.

    Parameters
    ----------
    session:
        The shared Redis session.
    embeddings:
        Embedding function used for every chunk.
    index_name:
        Name of the RediSearch index.
    key_namespace:
        Key prefix reserved for vector records.
    ledger_key:
        Redis list holding the ingestion ledger.
    vector_dim / distance_metric / algorithm:
        Vector field parameters of the index schema.
    extractor:
        Content-extraction collaborator.
    """

    def __init__(
        self,
        session: RedisSession,
        embeddings: Embeddings,
        *,
        index_name: str,
        key_namespace: str = "rds:",
        ledger_key: str = "processed_files",
        vector_dim: int = 768,
        distance_metric: str = "COSINE",
        algorithm: str = "FLAT",
        extractor: ContentExtractor | None = None,
    ) -> None:
        self._session = session
        self._embeddings = embeddings
        self.index_name = index_name
        self.key_namespace = key_namespace
        self.ledger_key = ledger_key
        self.vector_dim = vector_dim
        self.distance_metric = distance_metric
        self.algorithm = algorithm
        self._extractor = extractor or ContentExtractor()
        self._ledger_lock = asyncio.Lock()
        self._writer = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        embeddings: Embeddings | None = None,
        client_factory: ClientFactory | None = None,
    ) -> VectorStoreService:
        """Build a service from configuration.

        Raises :class:`~vector_ingest.errors.ConfigurationError` when the
        embedding or Redis settings are incomplete.
        """
        embedder_config = settings.embedder_config()
        session = RedisSession(
            settings.redis_url(),
            client_factory=client_factory,
            base_delay=settings.reconnect_base_delay,
            max_delay=settings.reconnect_max_delay,
            retries=settings.reconnect_retries,
        )
        return cls(
            session,
            embeddings or get_embeddings(embedder_config),
            index_name=embedder_config.index,
            key_namespace=settings.key_namespace,
            ledger_key=settings.ledger_key,
            vector_dim=settings.vector_dim,
            distance_metric=settings.distance_metric,
            algorithm=settings.vector_algorithm,
            extractor=ContentExtractor(request_timeout=settings.request_timeout),
        )

    # -- public API -----------------------------------------------------------

    async def ingest(self, file_config: FileConfig) -> list[str]:
        """Ingest one source and return its chunk keys."""
        source_name = await self._resolve_source_name(file_config)
        async with self._writer:
            return await self._session.with_connection(
                lambda client: self._pipeline(client).ingest(file_config, source_name)
            )

    async def list(self) -> list[IngestionRecord]:
        """Return every ledger record, most recent first."""
        return await self._session.with_connection(lambda client: self._ledger(client).list_all())

    async def source_counts(self, records: list[IngestionRecord] | None = None) -> dict[str, int]:
        """Number of ledger records per ``source_path``.

        Counts *records* when given (e.g. a listing already fetched),
        otherwise reads the ledger.

        A count above one means the same path was ingested more than once;
        deleting that path removes every one of those ingestions.
        """
        if records is None:
            records = await self.list()
        return dict(Counter(record.source_path for record in records))

    async def delete_by_source_path(self, path: str) -> bool:
        """Cascade-delete every ingestion of *path*; ``False`` if none exists."""
        async with self._writer:
            return await self._session.with_connection(
                lambda client: self._coordinator(client).delete_by_source_path(path)
            )

    async def reset_index(self) -> bool:
        """Drop and re-create the index (manual recovery)."""
        async with self._writer:
            return await self._session.with_connection(
                lambda client: self._lifecycle(client).reset()
            )

    async def health(self) -> bool:
        return await self._session.ping()

    async def close(self) -> None:
        await self._session.release()

    # -- wiring ---------------------------------------------------------------

    def _ledger(self, client: Redis) -> Ledger:
        return Ledger(client, self.ledger_key, lock=self._ledger_lock)

    def _lifecycle(self, client: Redis) -> IndexLifecycle:
        return IndexLifecycle(
            client,
            self._ledger(client),
            index_name=self.index_name,
            key_namespace=self.key_namespace,
            vector_dim=self.vector_dim,
            distance_metric=self.distance_metric,
            algorithm=self.algorithm,
        )

    def _coordinator(self, client: Redis) -> DeletionCoordinator:
        return DeletionCoordinator(self._ledger(client), VectorWriter(client), self._lifecycle(client))

    def _pipeline(self, client: Redis) -> IngestionPipeline:
        return IngestionPipeline(
            self._extractor,
            self._embeddings,
            self._lifecycle(client),
            self._ledger(client),
            VectorWriter(client),
            key_namespace=self.key_namespace,
        )

    async def _resolve_source_name(self, file_config: FileConfig) -> str:
        if file_config.name:
            return file_config.name
        if is_url(file_config.path):
            return await self._extractor.page_title(file_config.path)
        return Path(file_config.path).name
