"""Persistence of applications and their document records.

Two bindings are provided: an in-memory store used by tests and the CLI,
and a JSON-file-per-application store for single-host deployments.
"""

import asyncio
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from scholarcheck.utils.logger import get_logger
from scholarcheck.verification.models import Application, Document

logger = get_logger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class ApplicationRepository(ABC):
    """Load and save access to application records."""

    @abstractmethod
    async def load_application(self, application_id: str) -> Application | None:
        """Return the application, or ``None`` if it does not exist."""

    @abstractmethod
    async def save_application(self, application: Application) -> None:
        """Create or replace an application record."""

    @abstractmethod
    async def save_document(self, application_id: str, document: Document) -> None:
        """Replace one document record of an existing application.

        Raises:
            KeyError: If the application or document does not exist.
        """

    async def load_document(
        self, application_id: str, document_id: str
    ) -> Document | None:
        """Return one document of an application, or ``None``."""
        application = await self.load_application(application_id)
        if application is None:
            return None
        return application.find_document(document_id)


def _replace_document(application: Application, document: Document) -> None:
    for index, existing in enumerate(application.documents):
        if existing.id == document.id:
            application.documents[index] = document
            return
    raise KeyError(f"Document {document.id} not found in application {application.id}")


class InMemoryApplicationRepository(ApplicationRepository):
    """Dictionary-backed repository. Returns copies so callers never alias state."""

    def __init__(self, applications: list[Application] | None = None) -> None:
        self._applications: dict[str, Application] = {}
        for application in applications or []:
            self._applications[application.id] = application.model_copy(deep=True)

    async def load_application(self, application_id: str) -> Application | None:
        application = self._applications.get(application_id)
        return application.model_copy(deep=True) if application else None

    async def save_application(self, application: Application) -> None:
        self._applications[application.id] = application.model_copy(deep=True)

    async def save_document(self, application_id: str, document: Document) -> None:
        application = self._applications.get(application_id)
        if application is None:
            raise KeyError(f"Application {application_id} not found")
        _replace_document(application, document.model_copy(deep=True))


class JsonApplicationRepository(ApplicationRepository):
    """Stores each application as ``<data_dir>/<application_id>.json``.

    Args:
        data_dir: Directory holding the JSON files. Created on first write.
    """

    def __init__(self, data_dir: Path | str) -> None:
        self.data_dir = Path(data_dir)
        self._lock = threading.Lock()

    def _path(self, application_id: str) -> Path | None:
        if not _SAFE_ID.match(application_id) or application_id in {".", ".."}:
            return None
        return self.data_dir / f"{application_id}.json"

    def _read(self, application_id: str) -> Application | None:
        path = self._path(application_id)
        if path is None or not path.is_file():
            return None
        return Application.model_validate_json(path.read_text(encoding="utf-8"))

    def _write(self, application: Application) -> None:
        path = self._path(application.id)
        if path is None:
            raise ValueError(f"Invalid application id: {application.id!r}")
        self.data_dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(application.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)
        logger.debug("Wrote application %s to %s", application.id, path)

    def _update_document(self, application_id: str, document: Document) -> None:
        with self._lock:
            application = self._read(application_id)
            if application is None:
                raise KeyError(f"Application {application_id} not found")
            _replace_document(application, document)
            self._write(application)

    def _replace(self, application: Application) -> None:
        with self._lock:
            self._write(application)

    async def load_application(self, application_id: str) -> Application | None:
        return await asyncio.to_thread(self._read, application_id)

    async def save_application(self, application: Application) -> None:
        await asyncio.to_thread(self._replace, application)

    async def save_document(self, application_id: str, document: Document) -> None:
        await asyncio.to_thread(self._update_document, application_id, document)


def create_repository(data_dir: Path | str | None) -> ApplicationRepository:
    """Build a JSON repository for a directory, or an in-memory one."""
    if data_dir is None:
        return InMemoryApplicationRepository()
    return JsonApplicationRepository(data_dir)
