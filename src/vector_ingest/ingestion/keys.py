"""Vector-record key generation.

Every ingestion call writes its chunks under a fresh *run prefix*
(``<namespace><uuid4 hex>:``) so that two ingestions can never collide,
even for the same source.  Chunk keys are ``<prefix><index>`` and are
stored verbatim in the ledger for later deletion.
"""

from __future__ import annotations

from uuid import uuid4


def new_run_prefix(namespace: str) -> str:
    """Return a fresh key prefix scoped to one ingestion call."""
    return f"{namespace}{uuid4().hex}:"


def chunk_key(prefix: str, index: int) -> str:
    return f"{prefix}{index}"


def chunk_keys(prefix: str, count: int) -> list[str]:
    return [chunk_key(prefix, i) for i in range(count)]
