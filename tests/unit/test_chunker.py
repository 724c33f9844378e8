"""Unit tests for the chunker module."""

import pytest
from langchain_core.documents import Document

from vector_ingest.errors import ConfigurationError
from vector_ingest.ingestion.chunker import chunk_documents, resolve_chunk_config, split_text


def test_chunk_documents_splits_long_text() -> None:
    """A document longer than chunk_size should be split."""
    long_text = "word " * 500  # ~2500 chars
    docs = [Document(page_content=long_text, metadata={"source": "test"})]
    chunks = chunk_documents(docs, chunk_size=256, chunk_overlap=32)
    assert len(chunks) > 1
    assert all(len(c.page_content) <= 256 for c in chunks)


def test_chunk_documents_preserves_metadata() -> None:
    """Metadata from the source document should be preserved in chunks."""
    docs = [Document(page_content="Short text.", metadata={"source": "test.md"})]
    chunks = chunk_documents(docs, chunk_size=256, chunk_overlap=0)
    assert all(c.metadata.get("source") == "test.md" for c in chunks)


def test_chunk_documents_empty_input() -> None:
    """An empty list should return an empty list."""
    assert chunk_documents([]) == []


def test_split_text_empty_string() -> None:
    assert split_text("") == []


def test_split_text_prefers_paragraph_boundaries() -> None:
    paragraphs = ["alpha " * 20, "beta " * 20, "gamma " * 20]
    text = "\n\n".join(p.strip() for p in paragraphs)
    chunks = split_text(text, chunk_size=150, chunk_overlap=0)
    assert len(chunks) == 3
    assert chunks[0].startswith("alpha")
    assert chunks[1].startswith("beta")
    assert chunks[2].startswith("gamma")


def test_split_text_preserves_order() -> None:
    text = "\n".join(f"line {i:03d}" for i in range(200))
    chunks = split_text(text, chunk_size=100, chunk_overlap=20)
    firsts = [int(c.split("\n")[0].split()[1]) for c in chunks]
    assert firsts == sorted(firsts)
    assert all(len(c) <= 100 for c in chunks)


class TestCharacterLevelSplit:
    """Text with no separators falls through to character boundaries."""

    TEXT = "a" * 2500

    def test_2500_chars_yield_three_chunks(self) -> None:
        chunks = split_text(self.TEXT, chunk_size=1000, chunk_overlap=200)
        assert [len(c) for c in chunks] == [1000, 1000, 900]

    def test_consecutive_chunks_overlap_exactly(self) -> None:
        text = "".join(chr(ord("a") + i % 26) for i in range(2500))
        chunks = split_text(text, chunk_size=1000, chunk_overlap=200)
        for prev, nxt in zip(chunks, chunks[1:]):
            assert prev[-200:] == nxt[:200]

    def test_removing_overlap_reconstructs_text(self) -> None:
        text = "".join(chr(ord("a") + i % 26) for i in range(2500))
        chunks = split_text(text, chunk_size=1000, chunk_overlap=200)
        rebuilt = chunks[0] + "".join(c[200:] for c in chunks[1:])
        assert rebuilt == text


class TestResolveChunkConfig:
    def test_defaults_when_unset(self) -> None:
        config = resolve_chunk_config()
        assert (config.size, config.overlap) == (1000, 200)

    def test_defaults_when_non_numeric(self) -> None:
        config = resolve_chunk_config("big", "some")
        assert (config.size, config.overlap) == (1000, 200)

    def test_numeric_strings_accepted(self) -> None:
        config = resolve_chunk_config("500", "50")
        assert (config.size, config.overlap) == (500, 50)

    def test_zero_overlap_allowed(self) -> None:
        assert resolve_chunk_config(500, 0).overlap == 0

    def test_non_positive_size_falls_back(self) -> None:
        assert resolve_chunk_config(0, 10).size == 1000

    def test_overlap_equal_to_size_fails_fast(self) -> None:
        with pytest.raises(ConfigurationError, match="must be < chunk_size"):
            resolve_chunk_config(100, 100)

    def test_split_text_rejects_bad_overlap_even_for_empty_text(self) -> None:
        with pytest.raises(ConfigurationError):
            split_text("", chunk_size=100, chunk_overlap=300)
