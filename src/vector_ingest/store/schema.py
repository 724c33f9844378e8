"""RediSearch index lifecycle — create, drop, and reset the vector index.

The index binds the embedding dimension and distance metric at creation
time.  It is (re)created with a fixed field set over the vector-record key
namespace:

* ``content``        — TEXT, the chunk text
* ``metadata``       — TEXT, JSON blob including the record's own key as ``id``
* ``content_vector`` — VECTOR (FLOAT32, ``dim``, ``metric``)

Lifecycle: *absent* → *active* (schema present, ledger non-empty) →
*empty* (schema present, ledger empty) → reset, i.e. dropped and
re-created, by the last deletion or by the next ingestion.
"""

from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import Redis
from redis.commands.search.field import TextField, VectorField
from redis.commands.search.index_definition import IndexDefinition, IndexType
from redis.exceptions import RedisError, ResponseError

from vector_ingest.store.ledger import Ledger

logger = logging.getLogger(__name__)

_MISSING_INDEX_MARKERS = ("unknown index name", "no such index")


def _is_missing_index(exc: ResponseError) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _MISSING_INDEX_MARKERS)


class IndexLifecycle:
    """Owns existence of the one named vector index.

    Parameters
    ----------
    client:
        Connected Redis client.
    ledger:
        Ledger consulted by :meth:`is_empty`.
    index_name:
        Name of the RediSearch index.
    key_namespace:
        Key prefix of every vector record; the index covers exactly this prefix.
    vector_dim / distance_metric / algorithm:
        Vector field parameters (e.g. ``768`` / ``"COSINE"`` / ``"FLAT"``).
    """

    def __init__(
        self,
        client: Redis,
        ledger: Ledger,
        *,
        index_name: str,
        key_namespace: str,
        vector_dim: int = 768,
        distance_metric: str = "COSINE",
        algorithm: str = "FLAT",
    ) -> None:
        self._client = client
        self._ledger = ledger
        self.index_name = index_name
        self.key_namespace = key_namespace
        self.vector_dim = vector_dim
        self.distance_metric = distance_metric
        self.algorithm = algorithm

    @property
    def _search(self) -> Any:
        return self._client.ft(self.index_name)

    def fields(self) -> list[Any]:
        return [
            TextField("content"),
            TextField("metadata"),
            VectorField(
                "content_vector",
                self.algorithm,
                {
                    "TYPE": "FLOAT32",
                    "DIM": self.vector_dim,
                    "DISTANCE_METRIC": self.distance_metric,
                },
            ),
        ]

    async def info(self) -> dict[str, Any]:
        """Return ``FT.INFO`` for the index (raises if absent)."""
        return await self._search.info()

    async def exists(self) -> bool:
        try:
            await self._search.info()
        except ResponseError as exc:
            if _is_missing_index(exc):
                return False
            raise
        return True

    async def ensure_index(self, force_reset: bool = False) -> bool:
        """Make sure the index exists, optionally dropping and re-creating it.

        A failed drop is logged and tolerated; an "already exists" reply on
        create is treated as success.

        Returns
        -------
        bool
            ``True`` when a create was issued, ``False`` when the existing
            index was kept as is.
        """
        present = await self.exists()
        if present and not force_reset:
            return False

        if present:
            try:
                await self._search.dropindex(delete_documents=False)
                logger.info("Dropped index %r", self.index_name)
            except RedisError as exc:
                logger.warning(
                    "Could not drop index %r, creating anyway: %s", self.index_name, exc
                )

        await self._create()
        return True

    async def is_empty(self) -> bool:
        """``True`` when the ledger holds no parseable record."""
        return await self._ledger.count() == 0

    async def reset(self) -> bool:
        """Drop and re-create the index."""
        return await self.ensure_index(force_reset=True)

    async def _create(self) -> None:
        definition = IndexDefinition(prefix=[self.key_namespace], index_type=IndexType.HASH)
        try:
            await self._search.create_index(self.fields(), definition=definition)
        except ResponseError as exc:
            if "already exists" not in str(exc).lower():
                raise
            logger.info("Index %r already exists", self.index_name)
            return
        logger.info(
            "Created index %r (dim=%d, metric=%s) over prefix %r",
            self.index_name,
            self.vector_dim,
            self.distance_metric,
            self.key_namespace,
        )
