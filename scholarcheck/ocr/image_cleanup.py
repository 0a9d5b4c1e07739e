"""Image cleanup applied to scanned pages before text detection.

Converts to grayscale, reduces noise, boosts local contrast with CLAHE
and binarizes with Otsu's threshold.
"""

import cv2
import numpy as np

from scholarcheck.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA image to grayscale; grayscale passes through."""
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


def denoise(image: np.ndarray, d: int = 9, sigma: int = 75) -> np.ndarray:
    """Bilateral filter that smooths paper texture but keeps stroke edges."""
    return cv2.bilateralFilter(image, d, sigma, sigma)


def enhance_contrast(
    image: np.ndarray, clip_limit: float = 2.0, tile_size: int = 8
) -> np.ndarray:
    """Apply CLAHE to a grayscale image.

    Args:
        image: Grayscale image.
        clip_limit: Contrast limit for histogram equalization.
        tile_size: Size of the grid tiles.

    Returns:
        Contrast-enhanced image.
    """
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    return clahe.apply(image)


def binarize(image: np.ndarray) -> np.ndarray:
    """Binarize a grayscale image with Otsu's automatic threshold."""
    _, binary = cv2.threshold(image, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary


def clean_page(image: np.ndarray) -> np.ndarray:
    """Run the full cleanup chain on one page.

    Args:
        image: Page as a numpy array (RGB, RGBA or grayscale).

    Returns:
        Binary grayscale image ready for text detection.
    """
    gray = to_gray(image)
    if gray.dtype != np.uint8:
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    result = binarize(enhance_contrast(denoise(gray)))
    logger.debug("Cleaned page of shape %s", image.shape)
    return result
