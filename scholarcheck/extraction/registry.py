"""Document-type dispatch for field extraction.

Maps each document type tag to a stateless ``text -> fields`` extractor.
Text-only document types map to the ``SKIP`` sentinel because there is
no file content to read; unknown types fall back to the generic
extractor.
"""

from collections.abc import Callable
from typing import Final

from scholarcheck.utils.logger import get_logger
from scholarcheck.verification.models import SKIP_TYPES, DocumentType

from .academic import extract_grade_report, extract_transcript
from .barangay import extract_barangay
from .generic import extract_generic
from .identity import extract_employee_id, extract_student_id
from .income import extract_income
from .preprocess import preprocess_ocr_text
from .registration import extract_registration
from .rules import ExtractedFields

logger = get_logger(__name__)

Extractor = Callable[[str | None], ExtractedFields]


class _Skip:
    """Marker returned for document types that are never OCR'd."""

    def __repr__(self) -> str:
        return "SKIP"


SKIP: Final = _Skip()

EXTRACTORS: dict[str, Extractor] = {
    DocumentType.TRANSCRIPT: extract_transcript,
    DocumentType.GRADE_REPORT: extract_grade_report,
    DocumentType.CERTIFICATE_OF_REGISTRATION: extract_registration,
    DocumentType.PROOF_OF_ENROLLMENT: extract_registration,
    DocumentType.INCOME_CERTIFICATE: extract_income,
    DocumentType.TAX_RETURN: extract_income,
    DocumentType.BARANGAY_CERTIFICATE: extract_barangay,
    DocumentType.PHOTO_ID: extract_student_id,
    DocumentType.STUDENT_ID: extract_student_id,
    DocumentType.EMPLOYEE_ID: extract_employee_id,
    DocumentType.PROOF_OF_EMPLOYMENT: extract_employee_id,
    DocumentType.AUTHORIZATION_LETTER: extract_generic,
    DocumentType.THESIS_OUTLINE: extract_generic,
    DocumentType.RECOMMENDATION_LETTER: extract_generic,
    DocumentType.OTHER: extract_generic,
}


def get_extractor(document_type: str | None) -> Extractor | _Skip:
    """Return the extractor for a document type.

    Args:
        document_type: Document type tag.

    Returns:
        The matching extractor, ``SKIP`` for text-only types, or the
        generic extractor for anything unrecognized.
    """
    if document_type in SKIP_TYPES:
        return SKIP
    return EXTRACTORS.get(document_type or "", extract_generic)


def extract_fields(raw_text: str | None, document_type: str | None) -> ExtractedFields:
    """Preprocess OCR text and extract fields for a document type.

    Fields the type-specific extractor leaves empty are filled from the
    generic extractor; values found by the type-specific extractor are
    never overwritten.

    Args:
        raw_text: Text returned by the OCR provider.
        document_type: Document type tag.

    Returns:
        Extracted fields keyed by canonical field name.
    """
    extractor = get_extractor(document_type)
    if extractor is SKIP:
        return {}

    text = preprocess_ocr_text(raw_text)
    fields = extractor(text)

    if extractor is not extract_generic:
        for name, value in extract_generic(text, gap_fill=True).items():
            if fields.get(name) in (None, ""):
                fields[name] = value

    logger.info(
        "Extracted %d fields from %s document: %s",
        len(fields),
        document_type or "unknown",
        ", ".join(sorted(fields)) or "none",
    )
    return fields
