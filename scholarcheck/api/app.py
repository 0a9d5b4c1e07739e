"""FastAPI application for scholarship document verification.

Provides endpoints to verify one or all documents of an application,
report verification status, return persisted OCR text for audit, and
run ad-hoc extraction on an uploaded file.
"""

import asyncio
import time
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scholarcheck import __version__
from scholarcheck.extraction.registry import extract_fields
from scholarcheck.ocr.tesseract_engine import tesseract_available
from scholarcheck.utils.config import load_config
from scholarcheck.utils.logger import get_logger
from scholarcheck.verification.exceptions import (
    ApplicationNotFoundError,
    DocumentNotFoundError,
    InvalidIdentifierError,
    OCRProviderError,
)
from scholarcheck.verification.models import (
    BatchVerificationResult,
    DocumentType,
    DocumentVerificationResult,
    RawTextResult,
    VerificationStatus,
)
from scholarcheck.verification.orchestrator import VerificationService, build_service

from .schemas import ExtractionResponse, HealthResponse

logger = get_logger(__name__)

app = FastAPI(
    title="Scholarship Document Verification API",
    description="OCR verification of scholarship application documents",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "application/pdf",
    "application/octet-stream",
}


@lru_cache(maxsize=1)
def get_service() -> VerificationService:
    """Return the shared verification service built from configuration."""
    return build_service(load_config())


ServiceDep = Annotated[VerificationService, Depends(get_service)]
ActorId = Annotated[str | None, Query()]


@app.exception_handler(ApplicationNotFoundError)
@app.exception_handler(DocumentNotFoundError)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidIdentifierError)
async def invalid_argument_handler(
    request: Request, exc: InvalidIdentifierError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.get("/health", response_model=HealthResponse)
async def health_check(service: ServiceDep) -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=tesseract_available(service.config.ocr.tesseract_cmd),
        ocr_available=service.ocr_available,
    )


@app.post(
    "/applications/{application_id}/documents/{document_id}/verify",
    response_model=DocumentVerificationResult,
)
async def verify_document(
    application_id: str,
    document_id: str,
    service: ServiceDep,
    actor_id: ActorId = None,
) -> DocumentVerificationResult:
    """Run OCR verification on one document."""
    return await service.verify_document(application_id, document_id, actor_id)


@app.post(
    "/applications/{application_id}/verify-all",
    response_model=BatchVerificationResult,
)
async def verify_all_documents(
    application_id: str,
    service: ServiceDep,
    actor_id: ActorId = None,
) -> BatchVerificationResult:
    """Run OCR verification on every document of an application."""
    return await service.verify_all_documents(application_id, actor_id)


@app.get(
    "/applications/{application_id}/status",
    response_model=VerificationStatus,
)
async def verification_status(
    application_id: str, service: ServiceDep
) -> VerificationStatus:
    """Summarize the verification state of an application."""
    return await service.get_verification_status(application_id)


@app.get(
    "/applications/{application_id}/documents/{document_id}/raw-text",
    response_model=RawTextResult,
)
async def raw_text(
    application_id: str, document_id: str, service: ServiceDep
) -> RawTextResult:
    """Return the persisted OCR text of a document."""
    return await service.get_raw_text(application_id, document_id)


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
    service: ServiceDep,
    document_type: Annotated[DocumentType, Query()] = DocumentType.OTHER,
) -> ExtractionResponse:
    """Read an uploaded file and extract fields without comparing them.

    Args:
        file: Uploaded document file (PNG, JPEG, TIFF, or PDF).
        document_type: Document type selecting the extractor.

    Returns:
        Raw OCR text and the extracted fields.
    """
    start_time = time.time()

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )
    if service.ocr_provider is None or not service.ocr_available:
        raise HTTPException(status_code=503, detail="OCR provider is not configured")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    try:
        text = await asyncio.to_thread(
            service.ocr_provider.detect_text, content, file.content_type
        )
    except OCRProviderError as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    fields = extract_fields(text, document_type)
    return ExtractionResponse(
        success=True,
        filename=file.filename or "document",
        document_type=document_type.value,
        raw_text=text,
        extracted_fields=fields,
        processing_time_ms=(time.time() - start_time) * 1000,
    )
