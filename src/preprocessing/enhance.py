"""Pixel-level enhancement steps for document photographs.

Provides width capping, grayscale conversion, histogram stretching and
brightness/saturation modulation used to prepare a photo for OCR.
"""

import cv2
import numpy as np

from src.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB image to single-channel grayscale.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


def resize_to_width(image: np.ndarray, max_width: int) -> np.ndarray:
    """Downscale an image so its width is at most ``max_width``.

    Aspect ratio is preserved and images already narrow enough are
    returned untouched; this never upscales.

    Args:
        image: Input image.
        max_width: Maximum output width in pixels.

    Returns:
        The (possibly) downscaled image.
    """
    height, width = image.shape[:2]
    if width <= max_width:
        return image

    new_height = max(1, round(height * max_width / width))
    logger.debug("Resizing %dx%d -> %dx%d", width, height, max_width, new_height)
    return cv2.resize(image, (max_width, new_height), interpolation=cv2.INTER_AREA)


def stretch_histogram(
    gray: np.ndarray, lower: float = 1.0, upper: float = 99.0
) -> np.ndarray:
    """Stretch intensities so the given percentiles span the full 0-255 range.

    Args:
        gray: Grayscale image.
        lower: Percentile mapped to black.
        upper: Percentile mapped to white.

    Returns:
        Contrast-stretched grayscale image.
    """
    low, high = np.percentile(gray, (lower, upper))
    if high <= low:
        return gray.copy()

    scaled = (gray.astype(np.float32) - low) * (255.0 / (high - low))
    return np.clip(scaled, 0, 255).astype(np.uint8)


def adjust_brightness(image: np.ndarray, factor: float) -> np.ndarray:
    """Multiply pixel intensities by ``factor``, saturating at 255."""
    return cv2.convertScaleAbs(image, alpha=factor, beta=0)


def adjust_saturation(image: np.ndarray, factor: float) -> np.ndarray:
    """Scale colour saturation of an RGB image.

    Single-channel images carry no chroma and are returned unchanged.
    """
    if len(image.shape) == 2:
        return image

    hsv = cv2.cvtColor(image, cv2.COLOR_RGB2HSV)
    hsv[..., 1] = cv2.convertScaleAbs(hsv[..., 1], alpha=factor, beta=0)
    return cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB)
