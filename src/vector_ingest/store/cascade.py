"""Cascade delete: ledger entries → vector records → index reset."""

from __future__ import annotations

import logging

from vector_ingest.store.ledger import Ledger
from vector_ingest.store.schema import IndexLifecycle
from vector_ingest.store.vectors import VectorWriter

logger = logging.getLogger(__name__)


class DeletionCoordinator:
    """Reverses ingestions recorded in the ledger."""

    def __init__(self, ledger: Ledger, vectors: VectorWriter, lifecycle: IndexLifecycle) -> None:
        self._ledger = ledger
        self._vectors = vectors
        self._lifecycle = lifecycle

    async def delete_by_source_path(self, path: str) -> bool:
        """Delete every ingestion of *path*.

        All ledger records whose ``source_path`` equals *path* are removed
        and their chunk keys deleted in one batch.  When the ledger is left
        empty the index is reset so the next ingestion starts from a fresh
        schema.

        Returns
        -------
        bool
            ``False`` when no record matched; nothing is touched then.
        """
        logger.info("Deleting ingestions for path: %s", path)
        matched = await self._ledger.remove_matching(lambda record: record.source_path == path)
        if not matched:
            logger.info("No ledger entry for path: %s", path)
            return False

        keys = [key for record in matched for key in record.chunk_keys]
        await self._vectors.delete(keys)
        logger.info(
            "Removed %d ledger record(s) and %d chunk key(s) for %s", len(matched), len(keys), path
        )

        if await self._lifecycle.is_empty():
            logger.info("Ledger is empty, resetting index %r", self._lifecycle.index_name)
            await self._lifecycle.reset()
        return True
