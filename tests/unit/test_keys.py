"""Unit tests for vector-record key generation."""

from vector_ingest.ingestion.keys import chunk_key, chunk_keys, new_run_prefix


def test_run_prefix_is_scoped_to_namespace() -> None:
    prefix = new_run_prefix("rds:")
    assert prefix.startswith("rds:")
    assert prefix.endswith(":")


def test_run_prefixes_are_unique() -> None:
    prefixes = {new_run_prefix("rds:") for _ in range(1000)}
    assert len(prefixes) == 1000


def test_chunk_key_is_prefix_plus_index() -> None:
    assert chunk_key("rds:abc:", 7) == "rds:abc:7"


def test_chunk_key_is_reproducible() -> None:
    assert chunk_key("rds:abc:", 3) == chunk_key("rds:abc:", 3)


def test_chunk_keys_are_sequential() -> None:
    assert chunk_keys("p:", 3) == ["p:0", "p:1", "p:2"]
    assert chunk_keys("p:", 0) == []
