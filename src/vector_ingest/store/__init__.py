"""
Store — Redis-backed vector records, ingestion ledger, and index lifecycle.

Three things live in Redis and are kept consistent by this package:
the RediSearch index schema, one hash per embedded chunk, and the ledger
list recording which chunk keys each ingestion wrote.

Public surface
--------------
- :class:`RedisSession` — the single shared connection.
- :class:`Ledger` — append / scan / remove ingestion records.
- :class:`IndexLifecycle` — create, drop, and reset the vector index.
- :class:`VectorWriter` — batched vector-record writes and deletes.
- :class:`DeletionCoordinator` — cascade delete by source path.
- :class:`IngestionRecord`, :class:`FileConfig`, :class:`ChunkConfig`,
  :class:`EmbedderConfig` — data models.
"""

from vector_ingest.store.cascade import DeletionCoordinator
from vector_ingest.store.ledger import Ledger
from vector_ingest.store.models import ChunkConfig, EmbedderConfig, FileConfig, IngestionRecord
from vector_ingest.store.schema import IndexLifecycle
from vector_ingest.store.session import RedisSession, SessionState
from vector_ingest.store.vectors import VectorWriter

__all__ = [
    "ChunkConfig",
    "DeletionCoordinator",
    "EmbedderConfig",
    "FileConfig",
    "IndexLifecycle",
    "IngestionRecord",
    "Ledger",
    "RedisSession",
    "SessionState",
    "VectorWriter",
]
