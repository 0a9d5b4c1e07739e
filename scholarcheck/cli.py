"""Command-line interface for extracting and verifying single documents.

Provides subcommands to extract fields from a document file, verify a
document against an applicant snapshot stored as YAML, and start the
HTTP API server.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import uvicorn
import yaml

from scholarcheck.extraction.registry import extract_fields
from scholarcheck.ocr.base import OCRProvider
from scholarcheck.ocr.tesseract_engine import create_ocr_provider
from scholarcheck.storage.blob import LocalBlobStorage
from scholarcheck.storage.repository import InMemoryApplicationRepository
from scholarcheck.utils.config import AppConfig, load_config
from scholarcheck.utils.logger import get_logger, setup_logging
from scholarcheck.verification.models import (
    ApplicantSnapshot,
    Application,
    Document,
    DocumentType,
    DocumentVerificationResult,
)
from scholarcheck.verification.orchestrator import VerificationService

logger = get_logger(__name__)

_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
}

_DOCUMENT_TYPES = [t.value for t in DocumentType]


def _guess_mime_type(file_path: Path) -> str | None:
    return _MIME_TYPES.get(file_path.suffix.lower())


def _require_provider(config: AppConfig) -> OCRProvider:
    provider = create_ocr_provider(config.ocr)
    if provider is None:
        print("Error: OCR is unavailable (disabled or Tesseract not found)", file=sys.stderr)
        sys.exit(1)
    return provider


def load_snapshot(path: Path) -> ApplicantSnapshot:
    """Load an applicant snapshot from YAML.

    The file may hold the snapshot fields at the top level or under an
    ``applicant_snapshot`` key.
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if "applicant_snapshot" in raw:
        raw = raw["applicant_snapshot"] or {}
    return ApplicantSnapshot(**raw)


def extract_single(
    file_path: Path, document_type: str, config: AppConfig
) -> dict[str, Any]:
    """Read one document and extract its fields.

    Args:
        file_path: Path to the document file.
        document_type: Document type selecting the extractor.
        config: Application configuration.

    Returns:
        Dictionary with filename, document type, raw text and fields.
    """
    provider = _require_provider(config)
    raw_text = provider.detect_text(file_path.read_bytes(), _guess_mime_type(file_path))
    return {
        "filename": file_path.name,
        "document_type": document_type,
        "raw_text": raw_text,
        "extracted_fields": extract_fields(raw_text, document_type),
    }


async def _verify(
    file_path: Path,
    document_type: str,
    snapshot: ApplicantSnapshot,
    provider: OCRProvider,
    config: AppConfig,
) -> DocumentVerificationResult:
    document = Document(
        id="cli",
        document_type=document_type,
        name=file_path.name,
        file_name=file_path.name,
        mime_type=_guess_mime_type(file_path),
        storage_key=file_path.name,
    )
    application = Application(id="cli", applicant_snapshot=snapshot, documents=[document])
    service = VerificationService(
        InMemoryApplicationRepository([application]),
        LocalBlobStorage(file_path.resolve().parent),
        provider,
        config,
    )
    return await service.verify_document(application.id, document.id, "cli")


def verify_single(
    file_path: Path, document_type: str, snapshot_path: Path, config: AppConfig
) -> dict[str, Any]:
    """Verify one document file against an applicant snapshot.

    Args:
        file_path: Path to the document file.
        document_type: Document type selecting the extractor.
        snapshot_path: YAML file with the applicant snapshot.
        config: Application configuration.

    Returns:
        The verification report as a JSON-ready dictionary.
    """
    provider = _require_provider(config)
    snapshot = load_snapshot(snapshot_path)
    result = asyncio.run(_verify(file_path, document_type, snapshot, provider, config))
    return result.model_dump(mode="json")


def _emit(result: dict[str, Any], output: Path | None) -> None:
    output_str = json.dumps(result, indent=2, default=str)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def serve(host: str, port: int) -> None:
    """Run the HTTP API with uvicorn."""
    logger.info("Starting API server on %s:%d", host, port)
    uvicorn.run("scholarcheck.api.app:app", host=host, port=port)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Scholarship document verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser("extract", help="Extract fields from a document")
    extract_parser.add_argument("file", type=Path, help="Document file to read")
    extract_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        default=DocumentType.OTHER.value,
        dest="doc_type",
        help="Document type (default: other)",
    )
    extract_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    verify_parser = subparsers.add_parser(
        "verify", help="Verify a document against an applicant snapshot"
    )
    verify_parser.add_argument("file", type=Path, help="Document file to verify")
    verify_parser.add_argument(
        "-t",
        "--type",
        choices=_DOCUMENT_TYPES,
        required=True,
        dest="doc_type",
        help="Document type",
    )
    verify_parser.add_argument(
        "-s", "--snapshot", type=Path, required=True, help="Applicant snapshot YAML"
    )
    verify_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API server")
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: from config)")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level, stream=sys.stderr)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        _emit(extract_single(args.file, args.doc_type, config), args.output)
    elif args.command == "verify":
        for path in (args.file, args.snapshot):
            if not path.exists():
                print(f"Error: {path} does not exist", file=sys.stderr)
                sys.exit(1)
        _emit(verify_single(args.file, args.doc_type, args.snapshot, config), args.output)
    elif args.command == "serve":
        serve(args.host or config.api.host, args.port or config.api.port)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
