"""Tests for the verification service."""

import asyncio
import threading
import time

import pytest

from conftest import DictBlobStorage, StaticOCRProvider
from scholarcheck.storage.blob import LocalBlobStorage
from scholarcheck.storage.repository import InMemoryApplicationRepository
from scholarcheck.utils.config import AppConfig, OCRConfig, RepositoryConfig
from scholarcheck.verification.exceptions import (
    ApplicationNotFoundError,
    DocumentNotFoundError,
    OCRProviderError,
)
from scholarcheck.verification.models import (
    OCRStatus,
    OverallMatch,
    OverallStatus,
)
from scholarcheck.verification.orchestrator import (
    SKIPPED_MESSAGE,
    UNAVAILABLE_MESSAGE,
    VerificationService,
    build_service,
)

TRANSCRIPT_TEXT = "General Weighted Average: 1.75\nStudent No. 2021-12345"
BARANGAY_TEXT = (
    "This is to certify that Juan Dela Cruz is a resident of Barangay "
    "Batong Malake, City of Calamba, Province of Laguna."
)


def _full_provider() -> StaticOCRProvider:
    return StaticOCRProvider(
        by_mime_type={"image/png": TRANSCRIPT_TEXT, "application/pdf": BARANGAY_TEXT}
    )


class RecordingRepository(InMemoryApplicationRepository):
    """Repository remembering the status of every document save."""

    def __init__(self, applications) -> None:
        super().__init__(applications)
        self.saved_statuses: list[OCRStatus] = []

    async def save_document(self, application_id, document) -> None:
        self.saved_statuses.append(document.ocr_status)
        await super().save_document(application_id, document)


class FlakyRepository(RecordingRepository):
    """Repository whose saves fail for the given statuses."""

    def __init__(self, applications, failing: set[OCRStatus]) -> None:
        super().__init__(applications)
        self.failing = failing

    async def save_document(self, application_id, document) -> None:
        if document.ocr_status in self.failing:
            self.saved_statuses.append(document.ocr_status)
            raise OSError("disk full")
        await super().save_document(application_id, document)


class SlowOCRProvider(StaticOCRProvider):
    """Provider that sleeps while tracking how many calls overlap."""

    def __init__(self, text: str) -> None:
        super().__init__(text)
        self._guard = threading.Lock()
        self.active = 0
        self.max_active = 0

    def detect_text(self, data: bytes, mime_type: str | None = None) -> str:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.05)
        with self._guard:
            self.active -= 1
        return super().detect_text(data, mime_type)


class TestVerifyDocument:
    """Tests for single-document verification."""

    def test_completed_and_verified(self, make_service, repository, storage) -> None:
        provider = StaticOCRProvider(TRANSCRIPT_TEXT)
        service = make_service(provider)

        result = asyncio.run(service.verify_document("app-1", "doc-tor", "admin-1"))

        assert result.status == OCRStatus.COMPLETED
        assert result.overall_match == OverallMatch.VERIFIED
        assert result.confidence == 1.0
        assert [f.field for f in result.fields] == ["student_number", "gwa"]
        assert result.extracted_fields == {"gwa": 1.75, "student_number": "2021-12345"}
        assert result.raw_text_preview == TRANSCRIPT_TEXT
        assert result.processed_at is not None
        assert provider.calls == [(b"png-bytes", "image/png")]
        assert storage.fetched == ["doc-tor"]

        stored = asyncio.run(repository.load_document("app-1", "doc-tor"))
        assert stored.ocr_result.status == OCRStatus.COMPLETED
        assert stored.ocr_result.raw_text == TRANSCRIPT_TEXT
        assert stored.ocr_result.processed_by == "admin-1"
        assert stored.ocr_result.ocr_provider == "static"
        assert stored.ocr_result.overall_match == OverallMatch.VERIFIED
        assert len(stored.ocr_result.comparison_results) == 2

    def test_text_document_is_skipped(self, make_service, repository, storage) -> None:
        provider = StaticOCRProvider(TRANSCRIPT_TEXT)
        service = make_service(provider)

        result = asyncio.run(service.verify_document("app-1", "doc-essay"))

        assert result.status == OCRStatus.SKIPPED
        assert result.message == SKIPPED_MESSAGE
        assert provider.calls == []
        assert storage.fetched == []
        stored = asyncio.run(repository.load_document("app-1", "doc-essay"))
        assert stored.ocr_result is None

    @pytest.mark.parametrize("enabled", [True, False])
    def test_unavailable_without_provider(
        self, make_service, repository, storage, enabled: bool
    ) -> None:
        provider = None if enabled else StaticOCRProvider(TRANSCRIPT_TEXT)
        config = AppConfig(ocr=OCRConfig(enabled=enabled))
        service = make_service(provider, config)

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.status == OCRStatus.UNAVAILABLE
        assert result.message == UNAVAILABLE_MESSAGE
        assert storage.fetched == []
        stored = asyncio.run(repository.load_document("app-1", "doc-tor"))
        assert stored.ocr_result is None

    def test_mismatch(self, make_service) -> None:
        service = make_service(StaticOCRProvider("Student No. 2021-99999"))

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.status == OCRStatus.COMPLETED
        assert result.overall_match == OverallMatch.MISMATCH
        assert result.confidence == 0.0

    def test_partial_mismatch_confidence(self, make_service) -> None:
        text = "General Weighted Average: 1.75\nStudent No. 2021-99999"
        service = make_service(StaticOCRProvider(text))

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.overall_match == OverallMatch.MISMATCH
        assert result.confidence == 0.5

    def test_blank_text_is_unreadable(self, make_service, repository) -> None:
        service = make_service(StaticOCRProvider("   \n  "))

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.status == OCRStatus.COMPLETED
        assert result.overall_match == OverallMatch.UNREADABLE
        assert result.confidence == 0.0
        assert result.fields == []
        stored = asyncio.run(repository.load_document("app-1", "doc-tor"))
        assert stored.ocr_result.raw_text == ""

    def test_provider_failure_is_recorded(self, make_service, repository) -> None:
        provider = StaticOCRProvider(error=OCRProviderError("tesseract crashed"))
        service = make_service(provider)

        result = asyncio.run(service.verify_document("app-1", "doc-tor", "admin-1"))

        assert result.status == OCRStatus.FAILED
        assert result.error == "tesseract crashed"
        stored = asyncio.run(repository.load_document("app-1", "doc-tor"))
        assert stored.ocr_result.status == OCRStatus.FAILED
        assert stored.ocr_result.error == "tesseract crashed"
        assert stored.ocr_result.processed_by == "admin-1"
        assert stored.ocr_result.processed_at is not None
        assert stored.ocr_result.ocr_provider == "static"

    def test_storage_failure_is_recorded(self, repository, directory) -> None:
        provider = StaticOCRProvider(TRANSCRIPT_TEXT)
        service = VerificationService(
            repository, DictBlobStorage(), provider, AppConfig(), directory
        )

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.status == OCRStatus.FAILED
        assert "app-1/tor.png" in result.error
        assert provider.calls == []

    def test_persists_processing_before_completion(self, application, storage, directory) -> None:
        repository = RecordingRepository([application])
        service = VerificationService(
            repository, storage, StaticOCRProvider(TRANSCRIPT_TEXT), AppConfig(), directory
        )

        asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert repository.saved_statuses == [OCRStatus.PROCESSING, OCRStatus.COMPLETED]

    def test_completed_save_failure_is_recorded(self, application, storage, directory) -> None:
        repository = FlakyRepository([application], {OCRStatus.COMPLETED})
        service = VerificationService(
            repository, storage, StaticOCRProvider(TRANSCRIPT_TEXT), AppConfig(), directory
        )

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.status == OCRStatus.FAILED
        assert result.error == "disk full"
        assert repository.saved_statuses == [
            OCRStatus.PROCESSING,
            OCRStatus.COMPLETED,
            OCRStatus.FAILED,
        ]
        stored = asyncio.run(repository.load_document("app-1", "doc-tor"))
        assert stored.ocr_result.status == OCRStatus.FAILED
        assert stored.ocr_result.error == "disk full"

    def test_unwritable_repository_still_returns_failure(
        self, application, storage, directory
    ) -> None:
        repository = FlakyRepository(
            [application], {OCRStatus.PROCESSING, OCRStatus.COMPLETED, OCRStatus.FAILED}
        )
        provider = StaticOCRProvider(TRANSCRIPT_TEXT)
        service = VerificationService(repository, storage, provider, AppConfig(), directory)

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.status == OCRStatus.FAILED
        assert result.error == "disk full"
        assert provider.calls == []
        assert repository.saved_statuses == [OCRStatus.PROCESSING, OCRStatus.FAILED]

    def test_preview_is_truncated(self, make_service) -> None:
        config = AppConfig(raw_text_preview_chars=10)
        service = make_service(StaticOCRProvider(TRANSCRIPT_TEXT), config)

        result = asyncio.run(service.verify_document("app-1", "doc-tor"))

        assert result.raw_text_preview == TRANSCRIPT_TEXT[:10]

    def test_unknown_application(self, make_service) -> None:
        service = make_service(StaticOCRProvider())
        with pytest.raises(ApplicationNotFoundError):
            asyncio.run(service.verify_document("missing", "doc-tor"))

    def test_unknown_document(self, make_service) -> None:
        service = make_service(StaticOCRProvider())
        with pytest.raises(DocumentNotFoundError):
            asyncio.run(service.verify_document("app-1", "missing"))

    @pytest.mark.parametrize("app_id,doc_id", [("", "doc-tor"), ("app-1", "  "), (None, "x")])
    def test_blank_identifiers(self, make_service, app_id, doc_id) -> None:
        service = make_service(StaticOCRProvider())
        with pytest.raises(ValueError):
            asyncio.run(service.verify_document(app_id, doc_id))

    def test_same_document_runs_one_at_a_time(self, make_service) -> None:
        provider = SlowOCRProvider(TRANSCRIPT_TEXT)
        service = make_service(provider)

        async def run_twice():
            return await asyncio.gather(
                service.verify_document("app-1", "doc-tor"),
                service.verify_document("app-1", "doc-tor"),
            )

        results = asyncio.run(run_twice())

        assert [r.status for r in results] == [OCRStatus.COMPLETED] * 2
        assert provider.max_active == 1
        assert len(provider.calls) == 2
        assert service._locks == {}

    def test_locks_are_released_after_errors(self, make_service) -> None:
        service = make_service(StaticOCRProvider(TRANSCRIPT_TEXT))

        asyncio.run(service.verify_document("app-1", "doc-tor"))
        with pytest.raises(DocumentNotFoundError):
            asyncio.run(service.verify_document("app-1", "missing"))

        assert service._locks == {}
        assert not service._lock_users


class TestVerifyAllDocuments:
    """Tests for batch verification."""

    def test_summary(self, make_service) -> None:
        service = make_service(_full_provider())

        batch = asyncio.run(service.verify_all_documents("app-1", "admin-1"))

        assert batch.application_id == "app-1"
        assert [d.document_id for d in batch.documents] == ["doc-tor", "doc-essay", "doc-brgy"]
        assert [d.status for d in batch.documents] == [
            OCRStatus.COMPLETED,
            OCRStatus.SKIPPED,
            OCRStatus.COMPLETED,
        ]
        assert batch.summary.total == 3
        assert batch.summary.completed == 2
        assert batch.summary.skipped == 1
        assert batch.summary.verified == 2
        assert batch.summary.failed == 0

    def test_failures_do_not_stop_the_batch(self, repository, directory) -> None:
        storage = DictBlobStorage({"app-1/brgy.pdf": b"%PDF-1.4 bytes"})
        service = VerificationService(
            repository, storage, _full_provider(), AppConfig(), directory
        )

        batch = asyncio.run(service.verify_all_documents("app-1"))

        assert [d.status for d in batch.documents] == [
            OCRStatus.FAILED,
            OCRStatus.SKIPPED,
            OCRStatus.COMPLETED,
        ]
        assert batch.summary.failed == 1
        assert batch.summary.completed == 1

    def test_unavailable_batch(self, make_service) -> None:
        service = make_service(None)

        batch = asyncio.run(service.verify_all_documents("app-1"))

        assert batch.summary.unavailable == 2
        assert batch.summary.skipped == 1

    def test_unknown_application(self, make_service) -> None:
        service = make_service(_full_provider())
        with pytest.raises(ApplicationNotFoundError):
            asyncio.run(service.verify_all_documents("missing"))


class TestVerificationStatus:
    """Tests for the application status summary."""

    def test_not_started(self, make_service) -> None:
        service = make_service(_full_provider())

        status = asyncio.run(service.get_verification_status("app-1"))

        assert status.ocr_available is True
        assert status.summary.total_documents == 3
        assert status.summary.file_documents == 2
        assert status.summary.pending == 2
        assert status.summary.overall_status == OverallStatus.NOT_STARTED
        assert [d.document_id for d in status.documents] == ["doc-tor", "doc-essay", "doc-brgy"]
        assert status.documents[1].is_text_document is True

    def test_incomplete_then_all_verified(self, make_service) -> None:
        service = make_service(_full_provider())

        asyncio.run(service.verify_document("app-1", "doc-tor"))
        status = asyncio.run(service.get_verification_status("app-1"))
        assert status.summary.overall_status == OverallStatus.INCOMPLETE
        assert status.summary.pending == 1
        assert status.documents[0].ocr_status == OCRStatus.COMPLETED
        assert status.documents[0].extracted_fields == {
            "gwa": 1.75,
            "student_number": "2021-12345",
        }

        asyncio.run(service.verify_document("app-1", "doc-brgy"))
        status = asyncio.run(service.get_verification_status("app-1"))
        assert status.summary.overall_status == OverallStatus.ALL_VERIFIED
        assert status.summary.verified == 2

    def test_has_mismatches(self, make_service) -> None:
        provider = StaticOCRProvider(
            by_mime_type={
                "image/png": "Student No. 2021-99999",
                "application/pdf": BARANGAY_TEXT,
            }
        )
        service = make_service(provider)

        asyncio.run(service.verify_all_documents("app-1"))
        status = asyncio.run(service.get_verification_status("app-1"))

        assert status.summary.overall_status == OverallStatus.HAS_MISMATCHES
        assert status.summary.mismatches == 1

    def test_failure_keeps_it_incomplete(self, make_service) -> None:
        service = make_service(StaticOCRProvider(error=OCRProviderError("boom")))

        asyncio.run(service.verify_all_documents("app-1"))
        status = asyncio.run(service.get_verification_status("app-1"))

        assert status.summary.failed == 2
        assert status.summary.overall_status == OverallStatus.INCOMPLETE
        assert status.documents[0].error == "boom"

    def test_reports_ocr_unavailable(self, make_service) -> None:
        status = asyncio.run(make_service(None).get_verification_status("app-1"))
        assert status.ocr_available is False


class TestRawText:
    """Tests for raw OCR text retrieval."""

    def test_before_verification(self, make_service) -> None:
        service = make_service(_full_provider())

        raw = asyncio.run(service.get_raw_text("app-1", "doc-tor"))

        assert raw.raw_text is None
        assert raw.status == OCRStatus.PENDING

    def test_after_verification(self, make_service) -> None:
        service = make_service(_full_provider())
        asyncio.run(service.verify_document("app-1", "doc-tor"))

        raw = asyncio.run(service.get_raw_text("app-1", "doc-tor"))

        assert raw.raw_text == TRANSCRIPT_TEXT
        assert raw.status == OCRStatus.COMPLETED
        assert raw.document_name == "Transcript of Records"

    def test_unknown_document(self, make_service) -> None:
        service = make_service(_full_provider())
        with pytest.raises(DocumentNotFoundError):
            asyncio.run(service.get_raw_text("app-1", "missing"))


class TestBuildService:
    """Tests for wiring a service from configuration."""

    def test_in_memory_local_without_ocr(self, tmp_path) -> None:
        config = AppConfig(
            ocr=OCRConfig(enabled=False),
            repository=RepositoryConfig(data_dir=None),
        )
        config.storage.files_root = str(tmp_path)

        service = build_service(config)

        assert isinstance(service.repository, InMemoryApplicationRepository)
        assert isinstance(service.storage, LocalBlobStorage)
        assert service.ocr_provider is None
        assert service.ocr_available is False

    def test_explicit_collaborators_win(self, repository, storage) -> None:
        provider = StaticOCRProvider()
        service = build_service(AppConfig(), repository, storage, provider)

        assert service.repository is repository
        assert service.storage is storage
        assert service.ocr_provider is provider
        asyncio.run(service.close())
