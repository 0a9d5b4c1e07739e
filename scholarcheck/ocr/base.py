"""OCR provider interface used by the verification service."""

from abc import ABC, abstractmethod

PDF_MIME_TYPE = "application/pdf"


class OCRProvider(ABC):
    """Text detection backend.

    Implementations are synchronous; the verification service runs them
    in a worker thread.
    """

    name: str = "ocr"

    @abstractmethod
    def detect_text(self, data: bytes, mime_type: str | None = None) -> str:
        """Return the text found in a document.

        Args:
            data: Raw file content.
            mime_type: MIME type of the content. PDFs are read page by page.

        Returns:
            Detected text, possibly empty.
        """


def is_pdf(data: bytes, mime_type: str | None) -> bool:
    """Whether content should be treated as a PDF."""
    if mime_type and mime_type.lower() == PDF_MIME_TYPE:
        return True
    return data[:5] == b"%PDF-"
