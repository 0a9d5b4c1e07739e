class VerificationError(Exception):
    """Base exception for all verification-related errors."""


class ApplicationNotFoundError(VerificationError):
    """Raised when an application cannot be found in the repository."""


class DocumentNotFoundError(VerificationError):
    """Raised when a document is not part of the requested application."""


class StorageError(VerificationError):
    """Raised when uploaded file content cannot be retrieved."""


class OCRProviderError(VerificationError):
    """Raised when the OCR backend fails to read a document."""


class InvalidIdentifierError(VerificationError, ValueError):
    """Raised when an application or document identifier is blank."""
