"""Verification service tying storage, OCR, extraction and comparison together.

For one document the pipeline is: fetch bytes, detect text in a worker
thread, extract fields for the document type, compare them with the
applicant snapshot, aggregate a verdict, and persist the result on the
document record. The service never retries; failures are recorded on the
document as ``failed``.
"""

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from scholarcheck.comparison.comparators import compare_fields
from scholarcheck.comparison.institutions import InstitutionDirectory, get_directory
from scholarcheck.comparison.verdict import calculate_confidence, determine_overall_match
from scholarcheck.extraction.registry import extract_fields
from scholarcheck.ocr.base import OCRProvider
from scholarcheck.ocr.tesseract_engine import create_ocr_provider
from scholarcheck.storage.blob import BlobStorage, create_storage
from scholarcheck.storage.repository import ApplicationRepository, create_repository
from scholarcheck.utils.config import AppConfig
from scholarcheck.utils.logger import get_logger

from .exceptions import (
    ApplicationNotFoundError,
    DocumentNotFoundError,
    InvalidIdentifierError,
)
from .models import (
    Application,
    ApplicationSummary,
    BatchSummary,
    BatchVerificationResult,
    Document,
    DocumentStatus,
    DocumentVerificationResult,
    FieldComparisonResult,
    OCRResult,
    OCRStatus,
    OverallMatch,
    OverallStatus,
    RawTextResult,
    VerificationStatus,
)

logger = get_logger(__name__)

SKIPPED_MESSAGE = "Text-type documents do not require OCR"
UNAVAILABLE_MESSAGE = "OCR provider is not configured"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _require_id(value: str | None, label: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidIdentifierError(f"{label} must not be blank")
    return str(value)


class VerificationService:
    """Runs and reports OCR verification for application documents.

    Args:
        repository: Application record store.
        storage: Source of document bytes.
        ocr_provider: Text detection backend, or ``None`` when OCR is
            unavailable.
        config: Application configuration.
        directory: Institutional abbreviation directory used for college
            and course comparisons. Defaults to the process-wide one.
    """

    def __init__(
        self,
        repository: ApplicationRepository,
        storage: BlobStorage,
        ocr_provider: OCRProvider | None,
        config: AppConfig | None = None,
        directory: InstitutionDirectory | None = None,
    ) -> None:
        self.repository = repository
        self.storage = storage
        self.ocr_provider = ocr_provider
        self.config = config or AppConfig()
        self.directory = directory
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Counter[tuple[str, str]] = Counter()

    @property
    def ocr_available(self) -> bool:
        return self.ocr_provider is not None and self.config.ocr.enabled

    @asynccontextmanager
    async def _document_lock(
        self, application_id: str, document_id: str
    ) -> AsyncIterator[None]:
        """Serialize work on one document; the entry is dropped with its last user."""
        key = (application_id, document_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def _load_application(self, application_id: str) -> Application:
        application = await self.repository.load_application(application_id)
        if application is None:
            raise ApplicationNotFoundError(f"Application not found: {application_id}")
        return application

    @staticmethod
    def _find_document(application: Application, document_id: str) -> Document:
        document = application.find_document(document_id)
        if document is None:
            raise DocumentNotFoundError(
                f"Document {document_id} not found in application {application.id}"
            )
        return document

    async def verify_document(
        self, application_id: str, document_id: str, actor_id: str | None = None
    ) -> DocumentVerificationResult:
        """Verify one document against its application's snapshot.

        Args:
            application_id: Owning application.
            document_id: Document to verify.
            actor_id: Who triggered the verification; recorded on the result.

        Returns:
            The verification outcome. Pipeline failures are reported with
            status ``failed`` rather than raised.

        Raises:
            InvalidIdentifierError: If an identifier is blank.
            ApplicationNotFoundError: If the application does not exist.
            DocumentNotFoundError: If the document does not exist.
        """
        application_id = _require_id(application_id, "application_id")
        document_id = _require_id(document_id, "document_id")

        async with self._document_lock(application_id, document_id):
            application = await self._load_application(application_id)
            document = self._find_document(application, document_id)
            base = {
                "document_id": document.id,
                "document_type": document.document_type,
                "document_name": document.name,
            }

            if not document.requires_ocr:
                logger.info("Skipping text document %s", document.id)
                return DocumentVerificationResult(
                    **base, status=OCRStatus.SKIPPED, message=SKIPPED_MESSAGE
                )

            if not self.ocr_available:
                logger.info("OCR unavailable, document %s left unchanged", document.id)
                return DocumentVerificationResult(
                    **base, status=OCRStatus.UNAVAILABLE, message=UNAVAILABLE_MESSAGE
                )

            provider = self.ocr_provider
            try:
                document.ocr_result = OCRResult(
                    status=OCRStatus.PROCESSING, processed_by=actor_id
                )
                await self.repository.save_document(application_id, document)

                data = await self.storage.fetch_bytes(document)
                raw_text = await asyncio.to_thread(
                    provider.detect_text, data, document.mime_type
                )
                raw_text = raw_text if raw_text and raw_text.strip() else ""
                extracted: dict[str, Any] = {}
                comparisons: list[FieldComparisonResult] = []
                if raw_text:
                    extracted = extract_fields(raw_text, document.document_type)
                    comparisons = compare_fields(
                        extracted, application.applicant_snapshot, self._directory()
                    )
                overall_match = determine_overall_match(comparisons)
                confidence = calculate_confidence(comparisons)

                processed_at = _now()
                document.ocr_result = OCRResult(
                    status=OCRStatus.COMPLETED,
                    raw_text=raw_text,
                    extracted_fields=extracted,
                    comparison_results=comparisons,
                    confidence=confidence,
                    overall_match=overall_match,
                    processed_at=processed_at,
                    processed_by=actor_id,
                    ocr_provider=provider.name,
                )
                await self.repository.save_document(application_id, document)
            except Exception as exc:
                logger.error("Verification of document %s failed: %s", document.id, exc)
                return await self._record_failure(
                    application_id, document, base, exc, actor_id, provider.name
                )

            logger.info(
                "Document %s verified: %s (confidence %.2f, %d fields)",
                document.id,
                overall_match,
                confidence,
                len(comparisons),
            )
            return DocumentVerificationResult(
                **base,
                status=OCRStatus.COMPLETED,
                overall_match=overall_match,
                confidence=confidence,
                fields=comparisons,
                extracted_fields=extracted,
                raw_text_preview=raw_text[: self.config.raw_text_preview_chars],
                processed_at=processed_at,
            )

    async def _record_failure(
        self,
        application_id: str,
        document: Document,
        base: dict[str, Any],
        exc: Exception,
        actor_id: str | None,
        provider_name: str,
    ) -> DocumentVerificationResult:
        processed_at = _now()
        document.ocr_result = OCRResult(
            status=OCRStatus.FAILED,
            error=str(exc),
            processed_at=processed_at,
            processed_by=actor_id,
            ocr_provider=provider_name,
        )
        try:
            await self.repository.save_document(application_id, document)
        except Exception:
            logger.exception("Could not persist failure of document %s", document.id)
        return DocumentVerificationResult(
            **base,
            status=OCRStatus.FAILED,
            error=str(exc),
            processed_at=processed_at,
        )

    def _directory(self) -> InstitutionDirectory:
        if self.directory is not None:
            return self.directory
        return get_directory(self.config.reference.institutions_path)

    async def verify_all_documents(
        self, application_id: str, actor_id: str | None = None
    ) -> BatchVerificationResult:
        """Verify every document of an application, one at a time.

        Errors on individual documents are captured as ``failed`` results
        so the remaining documents still run.

        Raises:
            InvalidIdentifierError: If the identifier is blank.
            ApplicationNotFoundError: If the application does not exist.
        """
        application_id = _require_id(application_id, "application_id")
        application = await self._load_application(application_id)

        results: list[DocumentVerificationResult] = []
        for document in application.documents:
            try:
                result = await self.verify_document(
                    application_id, document.id, actor_id
                )
            except Exception as exc:
                logger.error("Batch verification of %s failed: %s", document.id, exc)
                result = DocumentVerificationResult(
                    document_id=document.id,
                    document_type=document.document_type,
                    document_name=document.name,
                    status=OCRStatus.FAILED,
                    error=str(exc),
                )
            results.append(result)

        summary = _build_batch_summary(results)
        logger.info(
            "Verified application %s: %d documents, %d completed, %d failed",
            application_id,
            summary.total,
            summary.completed,
            summary.failed,
        )
        return BatchVerificationResult(
            application_id=application_id, summary=summary, documents=results
        )

    async def get_verification_status(self, application_id: str) -> VerificationStatus:
        """Summarize the verification state of an application's documents.

        Raises:
            InvalidIdentifierError: If the identifier is blank.
            ApplicationNotFoundError: If the application does not exist.
        """
        application_id = _require_id(application_id, "application_id")
        application = await self._load_application(application_id)

        statuses: list[DocumentStatus] = []
        file_statuses: list[DocumentStatus] = []
        for document in application.documents:
            result = document.ocr_result
            status = DocumentStatus(
                document_id=document.id,
                name=document.name,
                type=document.document_type,
                is_text_document=document.is_text_document,
                ocr_status=document.ocr_status,
                overall_match=result.overall_match if result else None,
                confidence=result.confidence if result else None,
                comparison_results=result.comparison_results if result else [],
                extracted_fields=result.extracted_fields if result else None,
                processed_at=result.processed_at if result else None,
                error=result.error if result else None,
            )
            statuses.append(status)
            if document.requires_ocr:
                file_statuses.append(status)

        return VerificationStatus(
            application_id=application_id,
            ocr_available=self.ocr_available,
            summary=_build_application_summary(len(statuses), file_statuses),
            documents=statuses,
        )

    async def get_raw_text(self, application_id: str, document_id: str) -> RawTextResult:
        """Return the persisted OCR text of a document.

        Raises:
            InvalidIdentifierError: If an identifier is blank.
            ApplicationNotFoundError: If the application does not exist.
            DocumentNotFoundError: If the document does not exist.
        """
        application_id = _require_id(application_id, "application_id")
        document_id = _require_id(document_id, "document_id")
        application = await self._load_application(application_id)
        document = self._find_document(application, document_id)
        result = document.ocr_result
        return RawTextResult(
            document_id=document.id,
            document_name=document.name,
            document_type=document.document_type,
            raw_text=result.raw_text if result else None,
            status=document.ocr_status,
            processed_at=result.processed_at if result else None,
        )

    async def close(self) -> None:
        await self.storage.close()


def _build_batch_summary(results: list[DocumentVerificationResult]) -> BatchSummary:
    statuses = Counter(r.status for r in results)
    matches = Counter(r.overall_match for r in results if r.status == OCRStatus.COMPLETED)
    return BatchSummary(
        total=len(results),
        completed=statuses[OCRStatus.COMPLETED],
        skipped=statuses[OCRStatus.SKIPPED],
        failed=statuses[OCRStatus.FAILED],
        unavailable=statuses[OCRStatus.UNAVAILABLE],
        verified=matches[OverallMatch.VERIFIED],
        mismatches=matches[OverallMatch.MISMATCH],
        partial=matches[OverallMatch.PARTIAL],
        unreadable=matches[OverallMatch.UNREADABLE],
    )


def _build_application_summary(
    total_documents: int, file_statuses: list[DocumentStatus]
) -> ApplicationSummary:
    matches = Counter(s.overall_match for s in file_statuses)
    statuses = Counter(s.ocr_status for s in file_statuses)
    pending = statuses[OCRStatus.PENDING]
    failed = statuses[OCRStatus.FAILED]
    mismatches = matches[OverallMatch.MISMATCH]

    if pending == len(file_statuses):
        overall = OverallStatus.NOT_STARTED
    elif pending == 0 and failed == 0:
        overall = OverallStatus.HAS_MISMATCHES if mismatches else OverallStatus.ALL_VERIFIED
    else:
        overall = OverallStatus.INCOMPLETE

    return ApplicationSummary(
        total_documents=total_documents,
        file_documents=len(file_statuses),
        verified=matches[OverallMatch.VERIFIED],
        mismatches=mismatches,
        partial=matches[OverallMatch.PARTIAL],
        unreadable=matches[OverallMatch.UNREADABLE],
        pending=pending,
        failed=failed,
        overall_status=overall,
    )


def build_service(
    config: AppConfig,
    repository: ApplicationRepository | None = None,
    storage: BlobStorage | None = None,
    ocr_provider: OCRProvider | None = None,
) -> VerificationService:
    """Wire a service from configuration.

    Collaborators passed explicitly take precedence over the configured ones.
    """
    if repository is None:
        repository = create_repository(config.repository.data_dir)
    if storage is None:
        storage = create_storage(config.storage)
    if ocr_provider is None:
        ocr_provider = create_ocr_provider(config.ocr)
    logger.info(
        "Verification service ready (OCR %s)",
        ocr_provider.name if ocr_provider else "unavailable",
    )
    return VerificationService(repository, storage, ocr_provider, config)
