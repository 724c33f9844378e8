"""Document ingestion into a Redis vector index with a reversible ledger."""

__version__ = "0.1.0"
