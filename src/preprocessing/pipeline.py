"""Image normalization pipeline for registration document photos.

Decodes an uploaded photo, rights it according to EXIF orientation,
caps its width, converts it to grayscale, stretches contrast and
modulates brightness/saturation, then re-encodes it as PNG so it can
be reused unchanged by every rotation attempt.
"""

import io
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from src.exceptions import CorruptImageError, UnsupportedFormatError
from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

from .enhance import (
    adjust_brightness,
    adjust_saturation,
    resize_to_width,
    stretch_histogram,
    to_gray,
)
from .rotate import encode_png

logger = get_logger(__name__)

register_heif_opener()

DEFAULT_ALLOWED_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}
)


@dataclass(frozen=True)
class RawImage:
    """An uploaded image as received, before any processing."""

    content: bytes
    content_type: str
    filename: str = "imagen"


@dataclass(frozen=True)
class NormalizedImage:
    """A grayscale, width-capped, contrast-enhanced PNG."""

    content: bytes
    width: int
    height: int
    media_type: str = "image/png"


@dataclass
class QualityMetrics:
    """Before/after image contrast measurements."""

    contrast_before: float
    contrast_after: float


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_gray(image).std())


def decode_upright(content: bytes) -> np.ndarray:
    """Decode image bytes into an upright RGB array.

    Args:
        content: Encoded image bytes (JPEG, PNG, WEBP, HEIC or HEIF).

    Returns:
        RGB image with EXIF orientation applied.

    Raises:
        CorruptImageError: If the bytes cannot be decoded.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            upright = ImageOps.exif_transpose(img)
            rgb = upright.convert("RGB")
    except (
        UnidentifiedImageError,
        OSError,
        ValueError,
        Image.DecompressionBombError,
    ) as exc:
        raise CorruptImageError(f"Could not decode image: {exc}") from exc
    return np.array(rgb)


class PreprocessingPipeline:
    """Deterministic photo-to-PNG normalizer.

    Args:
        config: Preprocessing configuration.
        allowed_content_types: Media types accepted by ``normalize``.
    """

    def __init__(
        self,
        config: PreprocessingConfig,
        allowed_content_types: Iterable[str] = DEFAULT_ALLOWED_TYPES,
    ) -> None:
        self.config = config
        self.allowed_content_types = frozenset(
            t.lower() for t in allowed_content_types
        )

    def is_allowed(self, content_type: str | None) -> bool:
        """Return whether a declared media type is accepted."""
        if not content_type:
            return False
        return content_type.split(";")[0].strip().lower() in self.allowed_content_types

    def enhance(self, image: np.ndarray) -> np.ndarray:
        """Apply resize, grayscale, contrast stretch and modulation.

        Args:
            image: Upright RGB image.

        Returns:
            Enhanced grayscale image.
        """
        result = resize_to_width(image, self.config.max_width)
        result = to_gray(result)
        result = stretch_histogram(
            result,
            lower=self.config.normalize_lower_percentile,
            upper=self.config.normalize_upper_percentile,
        )
        result = adjust_brightness(result, self.config.brightness)
        return adjust_saturation(result, self.config.saturation)

    def normalize(self, raw: RawImage) -> NormalizedImage:
        """Normalize an uploaded photo for text recognition.

        Args:
            raw: Uploaded image bytes and declared media type.

        Returns:
            Fully encoded normalized PNG.

        Raises:
            UnsupportedFormatError: If the media type is not allowed.
            CorruptImageError: If the bytes cannot be decoded.
        """
        if not self.is_allowed(raw.content_type):
            raise UnsupportedFormatError(raw.content_type)

        image = decode_upright(raw.content)
        result = self.enhance(image)

        metrics = QualityMetrics(
            contrast_before=calculate_contrast(image),
            contrast_after=calculate_contrast(result),
        )
        height, width = result.shape[:2]
        logger.info(
            "Normalized %s: %dx%d -> %dx%d, contrast %.1f->%.1f",
            raw.filename,
            image.shape[1],
            image.shape[0],
            width,
            height,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return NormalizedImage(content=encode_png(result), width=width, height=height)
