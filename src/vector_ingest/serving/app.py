"""FastAPI application exposing ingestion, listing, and deletion over HTTP."""

from __future__ import annotations

import logging
import shutil
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import AsyncIterator, BinaryIO
from uuid import uuid4

from fastapi import Depends, FastAPI, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from vector_ingest.config import configure_logging, settings
from vector_ingest.errors import (
    ConfigurationError,
    ExtractionError,
    UnsupportedContentError,
    VectorIngestError,
)
from vector_ingest.service import VectorStoreService
from vector_ingest.store.models import ChunkConfig, FileConfig

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_service() -> VectorStoreService:
    """Process-wide service; raises ``ConfigurationError`` if misconfigured."""
    return VectorStoreService.from_settings(settings)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level)
    service = get_service()  # fail fast on bad configuration
    yield
    await service.close()


app = FastAPI(
    title="Vector Ingest API",
    version="0.1.0",
    description="Ingest documents into a Redis vector index and manage the ingestion ledger.",
    lifespan=lifespan,
)


# ── Request / Response schemas ────────────────────────────────────────
class DeleteRequest(BaseModel):
    """Source to delete, as recorded in the ledger."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str | None = Field(default=None, alias="filePath")


class EmbedResponse(BaseModel):
    message: str
    chunk_keys: list[str] = Field(default_factory=list, serialization_alias="chunkKeys")


class ListResponse(BaseModel):
    """Ledger contents plus paths that were ingested more than once."""

    files: list[dict]
    duplicates: dict[str, int] = {}


def _status_for(exc: VectorIngestError) -> int:
    if isinstance(exc, ConfigurationError):
        return 400
    if isinstance(exc, UnsupportedContentError):
        return 415
    if isinstance(exc, ExtractionError):
        return 422
    return 500


def _error(message: str, exc: VectorIngestError) -> JSONResponse:
    logger.error("%s: %s", message, exc)
    return JSONResponse(status_code=_status_for(exc), content={"message": message, "error": str(exc)})


def _chunk_config(size: str | None, overlap: str | None) -> ChunkConfig:
    """Form values, or the configured defaults for fields left blank."""
    return ChunkConfig(
        size=size if size not in (None, "") else settings.chunk_size,
        overlap=overlap if overlap not in (None, "") else settings.chunk_overlap,
    )


def _copy_upload(source: BinaryIO, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("wb") as fh:
        shutil.copyfileobj(source, fh)


async def _stage_upload(upload: UploadFile) -> Path:
    """Copy *upload* into ``upload_dir`` in a worker thread."""
    name = Path(upload.filename or "upload").name
    target = Path(settings.upload_dir) / f"{uuid4().hex}-{name}"
    await run_in_threadpool(_copy_upload, upload.file, target)
    return target


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(service: VectorStoreService = Depends(get_service)) -> JSONResponse:
    """Readiness probe — checks the Redis connection."""
    if await service.health():
        return JSONResponse(status_code=200, content={"status": "ok"})
    return JSONResponse(status_code=503, content={"status": "unavailable"})


@app.get("/get-vectors", response_model=ListResponse)
async def get_vectors(service: VectorStoreService = Depends(get_service)):
    """List every recorded ingestion, most recent first."""
    try:
        records = await service.list()
    except VectorIngestError as exc:
        return _error("Error retrieving processed files.", exc)

    counts = await service.source_counts(records)
    return ListResponse(
        files=[r.model_dump(by_alias=True, mode="json") for r in records],
        duplicates={path: n for path, n in counts.items() if n > 1},
    )


@app.post("/embed-vector", response_model=EmbedResponse, response_model_by_alias=True)
async def embed_vector(
    file: UploadFile | None = File(default=None),
    file_path: str | None = Form(default=None, alias="filePath"),
    chunk_size: str | None = Form(default=None, alias="chunkSize"),
    chunk_overlap: str | None = Form(default=None, alias="chunkOverlap"),
    service: VectorStoreService = Depends(get_service),
):
    """Embed an uploaded file or the page / video at ``filePath``."""
    staged: Path | None = None
    try:
        if file is not None:
            staged = await _stage_upload(file)
            file_config = FileConfig(
                path=str(staged),
                type=file.content_type,
                name=file.filename,
                chunk=_chunk_config(chunk_size, chunk_overlap),
            )
        elif file_path:
            file_config = FileConfig(
                path=file_path, chunk=_chunk_config(chunk_size, chunk_overlap)
            )
        else:
            return JSONResponse(status_code=400, content={"message": "File required"})

        keys = await service.ingest(file_config)
    except VectorIngestError as exc:
        return _error("Error processing file", exc)
    finally:
        if staged is not None:
            staged.unlink(missing_ok=True)

    return EmbedResponse(message="File processed successfully", chunk_keys=keys)


@app.delete("/del-vector")
async def del_vector(request: DeleteRequest, service: VectorStoreService = Depends(get_service)):
    """Delete every ingestion of ``filePath`` and its vectors."""
    if not request.file_path:
        return JSONResponse(status_code=400, content={"message": "filePath required"})

    try:
        found = await service.delete_by_source_path(request.file_path)
    except VectorIngestError as exc:
        return _error("Deletion failed", exc)

    if not found:
        return JSONResponse(status_code=404, content={"message": "File not found"})
    return {"message": "Embeddings deleted"}


@app.post("/reset-index")
async def reset_index(service: VectorStoreService = Depends(get_service)):
    """Drop and re-create the vector index (operator recovery)."""
    try:
        await service.reset_index()
    except VectorIngestError as exc:
        return _error("Index reset failed", exc)
    return {"message": "Index reset"}
