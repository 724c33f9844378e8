"""
Serving — FastAPI application exposing the ingestion service.

Routes mirror the operations of :class:`~vector_ingest.service.VectorStoreService`:
embed a file or URL, list the ledger, delete by source path, reset the index.
"""
