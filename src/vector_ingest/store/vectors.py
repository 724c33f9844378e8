"""Vector records — one Redis hash per chunk.

Each record is stored under its chunk key with the fields::

    content         chunk text
    metadata        JSON object (source metadata + ``id`` = the record's key)
    content_vector  float32 little-endian bytes
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Sequence

import numpy as np
from redis.asyncio import Redis

from vector_ingest.errors import StoreError

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)


def encode_vector(values: Sequence[float]) -> bytes:
    """Encode an embedding as the FLOAT32 blob RediSearch expects."""
    return np.asarray(values, dtype=np.float32).tobytes()


class VectorWriter:
    """Batched writes and deletes of vector records."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    async def write(
        self,
        keys: list[str],
        documents: list[Document],
        embeddings: list[list[float]],
    ) -> None:
        """Write one hash per (key, document, embedding) in a single pipeline."""
        if not (len(keys) == len(documents) == len(embeddings)):
            raise ValueError(
                f"Length mismatch: {len(keys)} keys, {len(documents)} documents, "
                f"{len(embeddings)} embeddings"
            )
        if not keys:
            return

        async with self._client.pipeline(transaction=False) as pipe:
            for key, doc, embedding in zip(keys, documents, embeddings):
                metadata = {**doc.metadata, "id": key}
                pipe.hset(
                    key,
                    mapping={
                        "content": doc.page_content,
                        "metadata": json.dumps(metadata, default=str),
                        "content_vector": encode_vector(embedding),
                    },
                )
            await pipe.execute()
        logger.info("Wrote %d vector records", len(keys))

    async def delete(self, keys: list[str]) -> int:
        """Delete *keys* in one pipeline.

        Every key is attempted even if some deletes fail; any failure is
        then raised as a single :class:`StoreError`.

        Returns
        -------
        int
            Number of records actually removed.
        """
        if not keys:
            return 0

        async with self._client.pipeline(transaction=False) as pipe:
            for key in keys:
                pipe.delete(key)
            results = await pipe.execute(raise_on_error=False)

        failures = [
            (key, result) for key, result in zip(keys, results) if isinstance(result, Exception)
        ]
        removed = sum(
            int(result) for result in results if not isinstance(result, Exception)
        )
        if failures:
            for key, error in failures:
                logger.error("Failed to delete vector record %s: %s", key, error)
            raise StoreError(
                f"Failed to delete {len(failures)} of {len(keys)} vector records"
            )
        logger.info("Deleted %d vector records", removed)
        return removed
