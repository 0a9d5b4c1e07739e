"""Retrieval of uploaded document content.

``LocalBlobStorage`` reads files below a root directory and
``HttpBlobStorage`` downloads them with an async ``httpx`` client.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from scholarcheck.utils.config import StorageConfig
from scholarcheck.utils.logger import get_logger
from scholarcheck.verification.exceptions import StorageError
from scholarcheck.verification.models import Document

logger = get_logger(__name__)


class BlobStorage(ABC):
    """Source of raw document bytes."""

    @abstractmethod
    async def fetch_bytes(self, document: Document) -> bytes:
        """Fetch the content of a document.

        Raises:
            StorageError: If the content cannot be retrieved or is empty.
        """

    async def close(self) -> None:
        """Release any held resources."""


class LocalBlobStorage(BlobStorage):
    """Reads ``files_root / storage_key`` from the local filesystem.

    Args:
        files_root: Directory containing uploaded files.
    """

    def __init__(self, files_root: Path | str) -> None:
        self._files_root = Path(files_root)

    def _resolve_path(self, document: Document) -> Path:
        if not document.storage_key:
            raise StorageError(f"Document {document.id} has no storage key")
        root = self._files_root.resolve()
        path = (root / document.storage_key).resolve()
        if not path.is_relative_to(root):
            raise StorageError(f"Storage key escapes files root: {document.storage_key}")
        return path

    async def fetch_bytes(self, document: Document) -> bytes:
        path = self._resolve_path(document)
        if not path.is_file():
            raise StorageError(f"File not found: {path}")
        data = await asyncio.to_thread(path.read_bytes)
        if not data:
            raise StorageError(f"File is empty: {path}")
        logger.debug("Read %d bytes from %s", len(data), path)
        return data


class HttpBlobStorage(BlobStorage):
    """Downloads ``document.url`` or ``base_url/storage_key`` over HTTP.

    Args:
        base_url: Prefix for storage keys. Optional when documents carry
            direct URLs.
        timeout: Request timeout in seconds.
        client: Pre-built client, mainly for tests.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout), follow_redirects=True
            )
        return self._client

    def _resolve_url(self, document: Document) -> str:
        if document.url:
            return document.url
        if self.base_url and document.storage_key:
            return f"{self.base_url}/{document.storage_key.lstrip('/')}"
        raise StorageError(f"Document {document.id} has no downloadable location")

    async def fetch_bytes(self, document: Document) -> bytes:
        url = self._resolve_url(document)
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as exc:
            raise StorageError(f"Download failed for {url}: {exc}") from exc

        if not response.is_success:
            raise StorageError(
                f"Download failed for {url}: HTTP {response.status_code}"
            )
        if not response.content:
            raise StorageError(f"Downloaded file is empty: {url}")

        logger.debug("Downloaded %d bytes from %s", len(response.content), url)
        return response.content

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_storage(config: StorageConfig) -> BlobStorage:
    """Build the configured storage backend.

    Raises:
        ValueError: If the backend name is unknown.
    """
    if config.backend == "local":
        return LocalBlobStorage(config.files_root)
    if config.backend == "http":
        return HttpBlobStorage(config.base_url, timeout=config.timeout_seconds)
    raise ValueError(f"Unsupported storage backend: {config.backend}")
