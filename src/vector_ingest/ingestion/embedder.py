"""Embedding model access."""

from __future__ import annotations

import logging

from langchain_core.embeddings import Embeddings
from langchain_ollama import OllamaEmbeddings

from vector_ingest.errors import EmbeddingError
from vector_ingest.store.models import EmbedderConfig

logger = logging.getLogger(__name__)


def get_embeddings(config: EmbedderConfig) -> Embeddings:
    """Return the configured Ollama embedding function."""
    return OllamaEmbeddings(model=config.model, base_url=config.base_url)


async def embed_chunks(embeddings: Embeddings, texts: list[str]) -> list[list[float]]:
    """Embed *texts*, one vector per text, in input order.

    Any failure of the model call is raised as :class:`EmbeddingError`.
    """
    if not texts:
        return []
    try:
        vectors = await embeddings.aembed_documents(texts)
    except Exception as exc:
        logger.error("Embedding %d chunks failed: %s", len(texts), exc)
        raise EmbeddingError(f"Embedding failed: {exc}") from exc

    if len(vectors) != len(texts):
        raise EmbeddingError(f"Expected {len(texts)} embeddings, got {len(vectors)}")
    logger.info("Embedded %d chunks (dim=%d)", len(vectors), len(vectors[0]))
    return vectors
