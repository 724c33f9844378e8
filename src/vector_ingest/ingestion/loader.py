"""Document loaders — thin wrappers around LangChain document loaders.

Sources are either local files (typically staged uploads) or
``http(s)://`` URLs:

* YouTube URLs → English captions via ``YoutubeLoader``
* other URLs   → ``<body>`` text of the page
* local files  → dispatched on MIME type (declared, else guessed from name)
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from langchain_community.document_loaders import (
    CSVLoader,
    PyPDFLoader,
    TextLoader,
    YoutubeLoader,
)
from langchain_core.documents import Document

from vector_ingest.errors import ExtractionError, UnsupportedContentError

logger = logging.getLogger(__name__)

YOUTUBE_HOSTS = ("youtube.com", "youtu.be")

_FILE_LOADERS: dict[str, Callable[[str], object]] = {
    "application/pdf": PyPDFLoader,
    "text/plain": lambda path: TextLoader(path, autodetect_encoding=True),
    "text/markdown": lambda path: TextLoader(path, autodetect_encoding=True),
    "text/csv": CSVLoader,
}

mimetypes.add_type("text/markdown", ".md")


def is_url(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def is_youtube_url(url: str) -> bool:
    host = urlparse(url).hostname or ""
    return any(host == h or host.endswith("." + h) for h in YOUTUBE_HOSTS)


def _bare_mime(mime: str | None) -> str | None:
    if not mime:
        return None
    return mime.split(";", 1)[0].strip().lower()


def detect_mime_type(path: str, declared: str | None = None) -> str | None:
    """Return the bare MIME type for *path*.

    A *declared* type with a registered loader wins.  Otherwise the type is
    guessed from the file name, so a generic upload type such as
    ``application/octet-stream`` still resolves by extension.
    """
    declared_mime = _bare_mime(declared)
    if declared_mime in _FILE_LOADERS:
        return declared_mime
    return _bare_mime(mimetypes.guess_type(path)[0]) or declared_mime


def supported_mime_types() -> list[str]:
    return sorted(_FILE_LOADERS)


def fetch_page_title(url: str, timeout: int = 30) -> str:
    """Return the ``<title>`` of the page at *url*.

    Raises
    ------
    ExtractionError
        When the page cannot be fetched.
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ExtractionError(f"Failed to fetch title: {exc}") from exc

    title = BeautifulSoup(response.text, "html.parser").title
    text = title.get_text(strip=True) if title is not None else ""
    return text or "No title found"


class ContentExtractor:
    """Turns a path or URL into LangChain ``Document`` objects.

    Parameters
    ----------
    request_timeout:
        Per-request timeout in seconds for web pages.
    youtube_language:
        Caption language requested from YouTube.
    """

    def __init__(self, *, request_timeout: int = 30, youtube_language: str = "en") -> None:
        self.request_timeout = request_timeout
        self.youtube_language = youtube_language

    async def load(self, path: str, content_type: str | None = None) -> list[Document]:
        """Load *path* in a worker thread (all loaders are blocking)."""
        return await asyncio.to_thread(self.load_sync, path, content_type)

    async def page_title(self, url: str) -> str:
        return await asyncio.to_thread(fetch_page_title, url, self.request_timeout)

    def load_sync(self, path: str, content_type: str | None = None) -> list[Document]:
        if is_url(path):
            if is_youtube_url(path):
                loader = YoutubeLoader.from_youtube_url(
                    path, add_video_info=False, language=[self.youtube_language]
                )
                return self._run(loader.load, path)
            return self._load_web_page(path)

        mime = detect_mime_type(path, content_type)
        logger.info("Detected MIME type: %s - %s", mime, path)
        factory = _FILE_LOADERS.get(mime or "")
        if factory is None:
            raise UnsupportedContentError(
                f"Unsupported file type: {mime or 'unknown'} "
                f"(supported: {', '.join(supported_mime_types())})"
            )
        if not Path(path).is_file():
            raise ExtractionError(f"File not found: {path}")
        return self._run(factory(path).load, path)  # type: ignore[attr-defined]

    def _load_web_page(self, url: str) -> list[Document]:
        try:
            response = requests.get(url, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ExtractionError(f"Failed to fetch {url}: {exc}") from exc

        soup = BeautifulSoup(response.text, "html.parser")
        content = soup.body.get_text() if soup.body else ""
        return [
            Document(
                page_content=content,
                metadata={
                    "source": url,
                    "createdAt": datetime.now(timezone.utc).isoformat(),
                },
            )
        ]

    @staticmethod
    def _run(load: Callable[[], list[Document]], path: str) -> list[Document]:
        try:
            return load()
        except Exception as exc:
            logger.warning("Loader failed for %s", path, exc_info=True)
            raise ExtractionError(f"Failed to load {path}: {exc}") from exc
