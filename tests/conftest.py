"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest
from langchain_core.documents import Document
from langchain_core.embeddings import DeterministicFakeEmbedding
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from vector_ingest.store.ledger import Ledger
from vector_ingest.store.schema import IndexLifecycle
from vector_ingest.store.vectors import VectorWriter

INDEX_NAME = "test-index"
NAMESPACE = "rds:"
LEDGER_KEY = "processed_files"
DIM = 768


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── In-memory async Redis ───────────────────────────────────────────────


class FakeSearch:
    """The ``FT.*`` subset used by the index lifecycle."""

    def __init__(self, redis: FakeRedis, name: str) -> None:
        self._redis = redis
        self._name = name

    async def info(self) -> dict[str, Any]:
        self._redis.check("ft.info")
        index = self._redis.indexes.get(self._name)
        if index is None:
            raise ResponseError("Unknown index name")
        prefixes = index["prefixes"]
        num_docs = sum(1 for key in self._redis.hashes if key.startswith(tuple(prefixes)))
        return {"index_name": self._name, "num_docs": num_docs, **index}

    async def create_index(self, fields: list[Any], definition: Any = None) -> str:
        self._redis.check("ft.create")
        if self._name in self._redis.indexes:
            raise ResponseError("Index already exists")
        args = list(definition.args) if definition is not None else []
        prefixes = [args[args.index("PREFIX") + 2]] if "PREFIX" in args else [""]
        self._redis.generation += 1
        self._redis.indexes[self._name] = {
            "fields": [f.name for f in fields],
            "prefixes": prefixes,
            "generation": self._redis.generation,
        }
        self._redis.created.append(self._name)
        return "OK"

    async def dropindex(self, delete_documents: bool = False) -> str:
        self._redis.check("ft.dropindex")
        if self._name not in self._redis.indexes:
            raise ResponseError("Unknown Index name")
        del self._redis.indexes[self._name]
        self._redis.dropped.append(self._name)
        return "OK"


class FakePipeline:
    """Queues hset / delete and applies them on :meth:`execute`."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *args: object) -> None:
        self._commands = []

    def hset(self, key: str, mapping: dict[str, Any]) -> FakePipeline:
        self._commands.append(("hset", (key,), {"mapping": mapping}))
        return self

    def delete(self, *keys: str) -> FakePipeline:
        self._commands.append(("delete", keys, {}))
        return self

    async def execute(self, raise_on_error: bool = True) -> list[Any]:
        self._redis.check("pipeline")
        results: list[Any] = []
        for name, args, kwargs in self._commands:
            if name == "hset":
                key = args[0]
                self._redis.hashes.setdefault(key, {}).update(kwargs["mapping"])
                results.append(len(kwargs["mapping"]))
            else:
                removed = 0
                error: Exception | None = None
                for key in args:
                    if key in self._redis.fail_delete_keys:
                        error = ResponseError(f"cannot delete {key}")
                        continue
                    removed += int(self._redis.hashes.pop(key, None) is not None)
                results.append(error if error is not None else removed)
        self._commands = []
        if raise_on_error:
            for result in results:
                if isinstance(result, Exception):
                    raise result
        return results


class FakeRedis:
    """Enough of ``redis.asyncio.Redis`` for the store layer.

    ``fail_commands`` names commands that raise ``ConnectionError``;
    ``fail_delete_keys`` makes pipeline deletes of those keys fail.
    """

    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {}
        self.hashes: dict[str, dict[str, Any]] = {}
        self.indexes: dict[str, dict[str, Any]] = {}
        self.created: list[str] = []
        self.dropped: list[str] = []
        self.generation = 0
        self.fail_commands: set[str] = set()
        self.fail_delete_keys: set[str] = set()
        self.ping_count = 0
        self.closed = False

    def check(self, command: str) -> None:
        if command in self.fail_commands:
            raise RedisConnectionError(f"simulated failure in {command}")

    async def ping(self) -> bool:
        self.ping_count += 1
        self.check("ping")
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def lpush(self, key: str, *values: str) -> int:
        self.check("lpush")
        lst = self.lists.setdefault(key, [])
        for value in values:
            lst.insert(0, value)
        return len(lst)

    async def lrange(self, key: str, start: int, end: int) -> list[str]:
        self.check("lrange")
        lst = self.lists.get(key, [])
        stop = len(lst) if end == -1 else end + 1
        return list(lst[start:stop])

    async def lset(self, key: str, index: int, value: str) -> bool:
        self.check("lset")
        lst = self.lists.get(key)
        if lst is None or not -len(lst) <= index < len(lst):
            raise ResponseError("index out of range")
        lst[index] = value
        return True

    async def lrem(self, key: str, count: int, value: str) -> int:
        self.check("lrem")
        lst = self.lists.get(key, [])
        limit = abs(count) or len(lst)
        # Negative counts search from the tail.
        positions = range(len(lst) - 1, -1, -1) if count < 0 else range(len(lst))
        hits = [i for i in positions if lst[i] == value][:limit]
        for i in sorted(hits, reverse=True):
            del lst[i]
        return len(hits)

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def ft(self, index_name: str = "idx") -> FakeSearch:
        return FakeSearch(self, index_name)


class FakeExtractor:
    """Content extractor returning canned documents."""

    def __init__(self, documents: list[Document] | None = None, title: str = "A Page") -> None:
        self.documents = documents if documents is not None else []
        self.title = title
        self.calls: list[tuple[str, str | None]] = []

    async def load(self, path: str, content_type: str | None = None) -> list[Document]:
        self.calls.append((path, content_type))
        return [Document(page_content=d.page_content, metadata=dict(d.metadata)) for d in self.documents]

    async def page_title(self, url: str) -> str:
        return self.title


# ── Fixtures ────────────────────────────────────────────────────────────


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def embeddings() -> DeterministicFakeEmbedding:
    return DeterministicFakeEmbedding(size=DIM)


@pytest.fixture()
def ledger(fake_redis: FakeRedis) -> Ledger:
    return Ledger(fake_redis, LEDGER_KEY)  # type: ignore[arg-type]


@pytest.fixture()
def lifecycle(fake_redis: FakeRedis, ledger: Ledger) -> IndexLifecycle:
    return IndexLifecycle(
        fake_redis,  # type: ignore[arg-type]
        ledger,
        index_name=INDEX_NAME,
        key_namespace=NAMESPACE,
        vector_dim=DIM,
    )


@pytest.fixture()
def vectors(fake_redis: FakeRedis) -> VectorWriter:
    return VectorWriter(fake_redis)  # type: ignore[arg-type]


@pytest.fixture()
def make_extractor():
    """Factory for :class:`FakeExtractor` instances."""

    def _make(texts: list[str] | None = None, *, source: str = "doc.txt", title: str = "A Page") -> FakeExtractor:
        docs = [Document(page_content=t, metadata={"source": source}) for t in (texts or [])]
        return FakeExtractor(docs, title=title)

    return _make
