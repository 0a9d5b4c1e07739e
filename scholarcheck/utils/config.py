"""Settings for OCR, file retrieval, persistence and the HTTP server.

Settings live in a YAML file whose top-level keys mirror the sections of
``AppConfig``. Any section or key left out falls back to its default.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from scholarcheck.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class OCRConfig(BaseModel):
    """Tesseract binding. ``enabled=False`` makes every verification ``unavailable``."""

    enabled: bool = True
    tesseract_cmd: str | None = Field(
        default=None, description="Explicit tesseract binary; PATH lookup when unset"
    )
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300
    max_pages: int = Field(default=3, ge=1)
    image_cleanup: bool = True


class StorageConfig(BaseModel):
    """Where uploaded files are read from (``local`` or ``http``)."""

    backend: str = "local"
    files_root: str = "uploads"
    base_url: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)


class RepositoryConfig(BaseModel):
    # None keeps applications in memory only
    data_dir: str | None = "data/applications"


class ReferenceConfig(BaseModel):
    institutions_path: str | None = None


class APIConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Every configuration section plus service-wide settings."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    reference: ReferenceConfig = Field(default_factory=ReferenceConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    raw_text_preview_chars: int = Field(default=1000, ge=0)
    log_level: str = "INFO"


def load_config(path: Path | str | None = None) -> AppConfig:
    """Read and validate the YAML configuration.

    Args:
        path: Configuration file. ``configs/config.yaml`` relative to the
            working directory when omitted.

    Returns:
        The parsed configuration, or defaults when the file does not exist
        or is empty.
    """
    config_path = DEFAULT_CONFIG_PATH if path is None else Path(path)
    if not config_path.is_file():
        logger.info("Config %s not found; running with defaults", config_path)
        return AppConfig()

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    logger.info("Loaded configuration from %s", config_path)
    return AppConfig.model_validate(raw)
