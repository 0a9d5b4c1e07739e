"""Shared test fixtures for the document verification test suite."""

from pathlib import Path

import numpy as np
import pytest

from scholarcheck.comparison.institutions import InstitutionDirectory, load_directory
from scholarcheck.ocr.base import OCRProvider
from scholarcheck.storage.blob import BlobStorage
from scholarcheck.storage.repository import InMemoryApplicationRepository
from scholarcheck.utils.config import AppConfig
from scholarcheck.verification.exceptions import StorageError
from scholarcheck.verification.models import (
    ApplicantSnapshot,
    Application,
    Document,
    HomeAddress,
)
from scholarcheck.verification.orchestrator import VerificationService


class StaticOCRProvider(OCRProvider):
    """OCR provider returning canned text and recording its calls."""

    name = "static"

    def __init__(
        self,
        text: str = "",
        error: Exception | None = None,
        by_mime_type: dict[str, str] | None = None,
    ) -> None:
        self.text = text
        self.error = error
        self.by_mime_type = by_mime_type or {}
        self.calls: list[tuple[bytes, str | None]] = []

    def detect_text(self, data: bytes, mime_type: str | None = None) -> str:
        self.calls.append((data, mime_type))
        if self.error is not None:
            raise self.error
        return self.by_mime_type.get(mime_type or "", self.text)


class DictBlobStorage(BlobStorage):
    """Blob storage serving bytes from a dict keyed by storage key."""

    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self.blobs = blobs or {}
        self.fetched: list[str] = []

    async def fetch_bytes(self, document: Document) -> bytes:
        self.fetched.append(document.id)
        data = self.blobs.get(document.storage_key or "")
        if not data:
            raise StorageError(f"No content for {document.storage_key}")
        return data


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic RGB test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"


@pytest.fixture(scope="session")
def directory() -> InstitutionDirectory:
    """Directory built from the packaged reference data."""
    return load_directory()


@pytest.fixture
def snapshot() -> ApplicantSnapshot:
    """A typical applicant profile."""
    return ApplicantSnapshot(
        student_number="2021-12345",
        first_name="Juan",
        middle_name="Santos",
        last_name="Dela Cruz",
        home_address=HomeAddress(
            barangay="Batong Malake",
            city="Calamba",
            province="Laguna",
        ),
        gwa=1.75,
        classification="Junior",
        college="College of Arts and Sciences",
        course="BS Computer Science",
        annual_family_income=250000,
        units_enrolled=18,
    )


@pytest.fixture
def application(snapshot: ApplicantSnapshot) -> Application:
    """Application with one transcript, one text answer and one barangay certificate."""
    return Application(
        id="app-1",
        applicant_snapshot=snapshot,
        documents=[
            Document(
                id="doc-tor",
                document_type="transcript",
                name="Transcript of Records",
                file_name="tor.png",
                mime_type="image/png",
                storage_key="app-1/tor.png",
            ),
            Document(
                id="doc-essay",
                document_type="personal_statement",
                name="Personal Statement",
                is_text_document=True,
                text_content="I want to study.",
            ),
            Document(
                id="doc-brgy",
                document_type="barangay_certificate",
                name="Barangay Certificate",
                file_name="brgy.pdf",
                mime_type="application/pdf",
                storage_key="app-1/brgy.pdf",
            ),
        ],
    )


@pytest.fixture
def repository(application: Application) -> InMemoryApplicationRepository:
    return InMemoryApplicationRepository([application])


@pytest.fixture
def storage() -> DictBlobStorage:
    return DictBlobStorage(
        {"app-1/tor.png": b"png-bytes", "app-1/brgy.pdf": b"%PDF-1.4 bytes"}
    )


@pytest.fixture
def make_service(repository, storage, directory):
    """Factory building a service around a given OCR provider."""

    def _make(provider: OCRProvider | None, config: AppConfig | None = None):
        return VerificationService(
            repository, storage, provider, config or AppConfig(), directory
        )

    return _make
