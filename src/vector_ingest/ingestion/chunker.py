"""Text chunking strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_text_splitters import RecursiveCharacterTextSplitter

from vector_ingest.errors import ConfigurationError
from vector_ingest.store.models import ChunkConfig

if TYPE_CHECKING:
    from langchain_core.documents import Document

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_CHUNK_OVERLAP = 200

# Paragraph → line → word → character.
SEPARATORS = ["\n\n", "\n", " ", ""]


def _as_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None


def resolve_chunk_config(size: object = None, overlap: object = None) -> ChunkConfig:
    """Normalise caller-supplied chunk parameters.

    Unset or non-numeric values fall back to the defaults (1000 / 200);
    a non-positive size or a negative overlap is treated as unset.

    Raises
    ------
    ConfigurationError
        If the resolved overlap is not strictly smaller than the size.
    """
    chunk_size = _as_int(size)
    if chunk_size is None or chunk_size <= 0:
        chunk_size = DEFAULT_CHUNK_SIZE

    chunk_overlap = _as_int(overlap)
    if chunk_overlap is None or chunk_overlap < 0:
        chunk_overlap = DEFAULT_CHUNK_OVERLAP

    if chunk_overlap >= chunk_size:
        raise ConfigurationError(
            f"chunk_overlap ({chunk_overlap}) must be < chunk_size ({chunk_size})"
        )
    return ChunkConfig(size=chunk_size, overlap=chunk_overlap)


def _splitter(chunk_size: object, chunk_overlap: object) -> RecursiveCharacterTextSplitter:
    config = resolve_chunk_config(chunk_size, chunk_overlap)
    return RecursiveCharacterTextSplitter(
        chunk_size=config.size,
        chunk_overlap=config.overlap,
        length_function=len,
        separators=SEPARATORS,
    )


def split_text(
    raw_text: str,
    chunk_size: object = None,
    chunk_overlap: object = None,
) -> list[str]:
    """Split *raw_text* into ordered, overlapping chunks.

    Parameters
    ----------
    raw_text:
        Text to split.  Empty text yields an empty list.
    chunk_size:
        Maximum number of characters per chunk.
    chunk_overlap:
        Number of overlapping characters between consecutive chunks.

    Returns
    -------
    list[str]
        Chunks in input order, each at most *chunk_size* characters.
    """
    splitter = _splitter(chunk_size, chunk_overlap)
    if not raw_text:
        return []
    return splitter.split_text(raw_text)


def chunk_documents(
    documents: list[Document],
    chunk_size: object = None,
    chunk_overlap: object = None,
) -> list[Document]:
    """Split *documents* into smaller chunks for embedding.

    Each chunk inherits a copy of its parent document's metadata.
    """
    splitter = _splitter(chunk_size, chunk_overlap)
    return splitter.split_documents(documents)
