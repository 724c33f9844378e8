"""
Ingestion — document loading, chunking, embedding, and key generation.

This package turns a source (uploaded file or URL) into keyed, embedded
chunks and hands them to the store layer; :class:`IngestionPipeline`
runs the whole sequence against a connected Redis client.
"""
