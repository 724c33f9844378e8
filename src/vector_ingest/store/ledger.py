"""Ingestion ledger stored as a Redis list.

New records are pushed to the head, so :meth:`Ledger.list_all` returns the
most recent ingestion first.  Entries that fail to parse are skipped and
logged rather than failing the whole scan.

Redis lists have no index-stable delete, so a matched entry is removed
by overwriting it with a tombstone (``LSET``) and then removing one
tombstone, searching from the tail (``LREM -1``).  Scans run tail to head
so that a removal never shifts the index of an entry not yet visited, even
if a stale tombstone was left behind.  Both mutating operations
hold the ledger's writer lock; a concurrent ``LPUSH`` would otherwise
shift every index of an in-progress scan.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from pydantic import ValidationError
from redis.asyncio import Redis

from vector_ingest.store.models import IngestionRecord

logger = logging.getLogger(__name__)

TOMBSTONE = "__DELETED__"

RecordPredicate = Callable[[IngestionRecord], bool]


class Ledger:
    """Append / scan / remove operations over the ledger list.

    Parameters
    ----------
    client:
        Connected Redis client.
    key:
        Name of the Redis list holding the ledger.
    lock:
        Writer lock shared by every :class:`Ledger` instance over the same
        key in this process.  A private lock is created when omitted.
    """

    def __init__(self, client: Redis, key: str, lock: asyncio.Lock | None = None) -> None:
        self._client = client
        self.key = key
        self._lock = lock or asyncio.Lock()

    async def append(self, record: IngestionRecord) -> None:
        """Push *record* to the head of the ledger.  No uniqueness check."""
        async with self._lock:
            await self._client.lpush(self.key, record.to_json())
        logger.info(
            "Ledger: recorded %s (%d chunk keys)", record.source_path, len(record.chunk_keys)
        )

    async def list_all(self) -> list[IngestionRecord]:
        """Return every parseable record, most recent first."""
        return [record for _, record in await self._scan()]

    async def count(self) -> int:
        return len(await self.list_all())

    async def remove_matching(self, predicate: RecordPredicate) -> list[IngestionRecord]:
        """Remove every record satisfying *predicate* and return them.

        All matches are removed, including multiple records sharing the
        same ``source_path``.
        """
        matched: list[IngestionRecord] = []
        async with self._lock:
            entries = await self._scan()
            for index, record in reversed(entries):
                if not predicate(record):
                    continue
                await self._client.lset(self.key, index, TOMBSTONE)
                await self._client.lrem(self.key, -1, TOMBSTONE)
                matched.append(record)
        return matched

    async def _scan(self) -> list[tuple[int, IngestionRecord]]:
        raw_entries = await self._client.lrange(self.key, 0, -1)
        entries: list[tuple[int, IngestionRecord]] = []
        for index, raw in enumerate(raw_entries):
            if not raw or raw == TOMBSTONE:
                continue
            try:
                entries.append((index, IngestionRecord.from_json(raw)))
            except (ValidationError, ValueError) as exc:
                logger.warning("Skipping corrupt ledger entry at index %d: %s", index, exc)
        return entries
