"""Tesseract OCR provider.

Rasterises PDFs with pdf2image, opens images with Pillow, optionally
cleans each page with OpenCV and reads it with pytesseract.
"""

import io
import shutil

import numpy as np
import pytesseract
from pdf2image import convert_from_bytes
from PIL import Image, UnidentifiedImageError

from scholarcheck.utils.config import OCRConfig
from scholarcheck.utils.logger import get_logger
from scholarcheck.verification.exceptions import OCRProviderError

from .base import OCRProvider, is_pdf
from .image_cleanup import clean_page

logger = get_logger(__name__)

PAGE_SEPARATOR = "\n\n"


class TesseractOCRProvider(OCRProvider):
    """Text detection with a local Tesseract installation.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code.
        psm: Tesseract page segmentation mode.
        pdf_dpi: Resolution used to rasterise PDF pages.
        max_pages: Maximum number of PDF pages read per document.
        image_cleanup: Whether to clean pages before detection.
    """

    name = "tesseract"

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
        psm: int = 3,
        pdf_dpi: int = 300,
        max_pages: int = 3,
        image_cleanup: bool = True,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm
        self.pdf_dpi = pdf_dpi
        self.max_pages = max_pages
        self.image_cleanup = image_cleanup

    @classmethod
    def from_config(cls, config: OCRConfig) -> "TesseractOCRProvider":
        return cls(
            tesseract_cmd=config.tesseract_cmd,
            default_lang=config.default_lang,
            psm=config.psm,
            pdf_dpi=config.pdf_dpi,
            max_pages=config.max_pages,
            image_cleanup=config.image_cleanup,
        )

    def detect_text(self, data: bytes, mime_type: str | None = None) -> str:
        """Detect text in a PDF or image.

        PDFs are read page by page up to ``max_pages``; pages are joined
        with a blank line. Images are read in a single pass.

        Args:
            data: Raw file content.
            mime_type: MIME type of the content.

        Returns:
            Detected text.

        Raises:
            OCRProviderError: If the content cannot be decoded or
                Tesseract fails.
        """
        if not data:
            raise OCRProviderError("Cannot run OCR on empty content")

        if is_pdf(data, mime_type):
            pages = self._pdf_pages(data)
        else:
            pages = [self._open_image(data)]

        texts = [self._read_page(page) for page in pages]
        text = PAGE_SEPARATOR.join(t.strip() for t in texts if t and t.strip())
        logger.info(
            "Tesseract read %d page(s), %d characters", len(pages), len(text)
        )
        return text

    def _pdf_pages(self, data: bytes) -> list[np.ndarray]:
        try:
            images = convert_from_bytes(
                data, dpi=self.pdf_dpi, first_page=1, last_page=self.max_pages
            )
        except Exception as exc:
            raise OCRProviderError(f"PDF conversion failed: {exc}") from exc
        logger.debug("Rasterised %d PDF page(s) at %d DPI", len(images), self.pdf_dpi)
        return [np.array(img.convert("RGB")) for img in images]

    def _open_image(self, data: bytes) -> np.ndarray:
        try:
            with Image.open(io.BytesIO(data)) as img:
                return np.array(img.convert("RGB"))
        except (UnidentifiedImageError, OSError) as exc:
            raise OCRProviderError(f"Unreadable image: {exc}") from exc

    def _read_page(self, page: np.ndarray) -> str:
        if self.image_cleanup:
            page = clean_page(page)
        try:
            return pytesseract.image_to_string(
                Image.fromarray(page),
                lang=self.default_lang,
                config=f"--psm {self.psm}",
            )
        except pytesseract.TesseractError as exc:
            raise OCRProviderError(f"Tesseract failed: {exc}") from exc


def tesseract_available(tesseract_cmd: str | None = None) -> bool:
    """Whether the Tesseract executable can be found."""
    return shutil.which(tesseract_cmd or "tesseract") is not None


def create_ocr_provider(config: OCRConfig) -> OCRProvider | None:
    """Build the configured OCR provider.

    Args:
        config: OCR configuration.

    Returns:
        A ready provider, or ``None`` when OCR is disabled or the
        Tesseract executable is missing.
    """
    if not config.enabled:
        logger.info("OCR disabled by configuration")
        return None
    if not tesseract_available(config.tesseract_cmd):
        logger.warning(
            "Tesseract executable not found (%s), OCR unavailable",
            config.tesseract_cmd or "tesseract",
        )
        return None
    return TesseractOCRProvider.from_config(config)
