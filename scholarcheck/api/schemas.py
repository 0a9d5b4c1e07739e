"""Pydantic response schemas specific to the HTTP layer.

Verification endpoints return the domain result models from
``scholarcheck.verification.models`` directly.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    ocr_available: bool


class ExtractionResponse(BaseModel):
    """Response schema for an ad-hoc extraction request."""

    success: bool
    filename: str
    document_type: str
    raw_text: str
    extracted_fields: dict[str, Any] = Field(default_factory=dict)
    processing_time_ms: float
