"""Domain models for applications, documents, and verification results.

Persisted records (``Application``, ``Document``, ``OCRResult``) and the
structured outcomes returned by the verification service are pydantic
models so they serialize the same way to disk, to the HTTP layer, and
to the CLI.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentType(StrEnum):
    """Document type tags accepted at upload time."""

    TRANSCRIPT = "transcript"
    GRADE_REPORT = "grade_report"
    CERTIFICATE_OF_REGISTRATION = "certificate_of_registration"
    INCOME_CERTIFICATE = "income_certificate"
    TAX_RETURN = "tax_return"
    BARANGAY_CERTIFICATE = "barangay_certificate"
    PROOF_OF_ENROLLMENT = "proof_of_enrollment"
    PHOTO_ID = "photo_id"
    STUDENT_ID = "student_id"
    EMPLOYEE_ID = "employee_id"
    PROOF_OF_EMPLOYMENT = "proof_of_employment"
    AUTHORIZATION_LETTER = "authorization_letter"
    THESIS_OUTLINE = "thesis_outline"
    RECOMMENDATION_LETTER = "recommendation_letter"
    OTHER = "other"
    TEXT_RESPONSE = "text_response"
    PERSONAL_STATEMENT = "personal_statement"


SKIP_TYPES: frozenset[str] = frozenset(
    {DocumentType.TEXT_RESPONSE.value, DocumentType.PERSONAL_STATEMENT.value}
)


class Severity(StrEnum):
    """Outcome tier of a single field comparison."""

    VERIFIED = "verified"
    WARNING = "warning"
    CRITICAL = "critical"


class OverallMatch(StrEnum):
    """Per-document verdict over all field comparisons."""

    VERIFIED = "verified"
    PARTIAL = "partial"
    MISMATCH = "mismatch"
    UNREADABLE = "unreadable"


class OCRStatus(StrEnum):
    """Lifecycle state of a document's OCR verification."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
    UNAVAILABLE = "unavailable"


class OverallStatus(StrEnum):
    """Aggregate verification state of an application."""

    NOT_STARTED = "not_started"
    ALL_VERIFIED = "all_verified"
    HAS_MISMATCHES = "has_mismatches"
    INCOMPLETE = "incomplete"


class HomeAddress(BaseModel):
    """Address parts captured on the applicant profile."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    street: str | None = None
    barangay: str | None = None
    city: str | None = None
    province: str | None = None
    zip_code: str | None = None
    full_address: str | None = None


class ApplicantSnapshot(BaseModel):
    """Read-only copy of the applicant profile taken at application time."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    student_number: str | None = None
    first_name: str | None = None
    middle_name: str | None = None
    last_name: str | None = None
    home_address: HomeAddress | None = None
    gwa: float | None = None
    classification: str | None = None
    college: str | None = None
    course: str | None = None
    major: str | None = None
    annual_family_income: float | None = None
    units_enrolled: float | None = None


class FieldComparisonResult(BaseModel):
    """Outcome of comparing one extracted field with the snapshot."""

    field: str
    extracted: Any = None
    expected: Any = None
    match: bool
    similarity: float | None = None
    difference: float | None = None
    percent_difference: float | None = None
    severity: Severity


class OCRResult(BaseModel):
    """Verification record embedded in a document."""

    status: OCRStatus = OCRStatus.PENDING
    raw_text: str | None = None
    extracted_fields: dict[str, Any] = Field(default_factory=dict)
    comparison_results: list[FieldComparisonResult] = Field(default_factory=list)
    confidence: float | None = None
    overall_match: OverallMatch | None = None
    processed_at: datetime | None = None
    processed_by: str | None = None
    ocr_provider: str | None = None
    error: str | None = None


class Document(BaseModel):
    """One uploaded artifact belonging to an application."""

    id: str
    document_type: str
    name: str
    file_name: str | None = None
    mime_type: str | None = None
    storage_key: str | None = None
    url: str | None = None
    is_text_document: bool = False
    text_content: str | None = None
    ocr_result: OCRResult | None = None

    @property
    def requires_ocr(self) -> bool:
        """Whether the document carries file content worth reading."""
        return not self.is_text_document and self.document_type not in SKIP_TYPES

    @property
    def ocr_status(self) -> OCRStatus:
        return self.ocr_result.status if self.ocr_result else OCRStatus.PENDING


class Application(BaseModel):
    """Aggregate root holding the snapshot and its documents."""

    id: str
    applicant_snapshot: ApplicantSnapshot = Field(default_factory=ApplicantSnapshot)
    documents: list[Document] = Field(default_factory=list)

    def find_document(self, document_id: str) -> Document | None:
        return next((d for d in self.documents if d.id == document_id), None)


class DocumentVerificationResult(BaseModel):
    """Structured outcome of verifying a single document."""

    document_id: str
    document_type: str
    document_name: str
    status: OCRStatus
    overall_match: OverallMatch | None = None
    confidence: float | None = None
    fields: list[FieldComparisonResult] = Field(default_factory=list)
    extracted_fields: dict[str, Any] = Field(default_factory=dict)
    raw_text_preview: str | None = None
    processed_at: datetime | None = None
    message: str | None = None
    error: str | None = None


class BatchSummary(BaseModel):
    """Outcome counts for a batch verification run."""

    total: int = 0
    completed: int = 0
    skipped: int = 0
    failed: int = 0
    unavailable: int = 0
    verified: int = 0
    mismatches: int = 0
    partial: int = 0
    unreadable: int = 0


class BatchVerificationResult(BaseModel):
    """Per-document results of verifying a whole application."""

    application_id: str
    summary: BatchSummary
    documents: list[DocumentVerificationResult]


class DocumentStatus(BaseModel):
    """Read-only projection of one document's verification state."""

    document_id: str
    name: str
    type: str
    is_text_document: bool
    ocr_status: OCRStatus
    overall_match: OverallMatch | None = None
    confidence: float | None = None
    comparison_results: list[FieldComparisonResult] = Field(default_factory=list)
    extracted_fields: dict[str, Any] | None = None
    processed_at: datetime | None = None
    error: str | None = None


class ApplicationSummary(BaseModel):
    """Aggregate counts over the file documents of an application."""

    total_documents: int
    file_documents: int
    verified: int
    mismatches: int
    partial: int
    unreadable: int
    pending: int
    failed: int
    overall_status: OverallStatus


class VerificationStatus(BaseModel):
    """Verification summary computed on demand for an application."""

    application_id: str
    ocr_available: bool
    summary: ApplicationSummary
    documents: list[DocumentStatus]


class RawTextResult(BaseModel):
    """Persisted OCR text of a document, for audit."""

    document_id: str
    document_name: str
    document_type: str
    raw_text: str | None = None
    status: OCRStatus
    processed_at: datetime | None = None
