"""Scholarship document verification.

Reads uploaded application documents with Tesseract OCR, extracts
structured facts per document type, and cross-checks them against the
applicant's profile snapshot to flag mismatched or unreadable documents.
"""

__version__ = "1.0.0"
