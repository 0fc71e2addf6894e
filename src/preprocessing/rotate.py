"""Right-angle rotation of encoded images.

Used by the rotation search to produce the four orientation candidates
from one normalized image.
"""

import cv2
import numpy as np

from src.exceptions import CorruptImageError, ProcessingError

_CLOCKWISE = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def encode_png(image: np.ndarray) -> bytes:
    """Encode an image array as PNG bytes."""
    ok, buffer = cv2.imencode(".png", image)
    if not ok:
        raise ProcessingError("Could not encode image as PNG")
    return buffer.tobytes()


def rotate_clockwise(image: np.ndarray, angle: int) -> np.ndarray:
    """Rotate an image clockwise by a multiple of 90 degrees.

    Args:
        image: Input image.
        angle: One of 0, 90, 180 or 270.

    Returns:
        Rotated image (the input itself for 0).
    """
    angle %= 360
    if angle == 0:
        return image
    if angle not in _CLOCKWISE:
        raise ValueError(f"Unsupported rotation angle: {angle}")
    return cv2.rotate(image, _CLOCKWISE[angle])


def rotate_encoded(content: bytes, angle: int) -> bytes:
    """Decode, rotate clockwise and re-encode an image as PNG.

    Args:
        content: Encoded image bytes.
        angle: One of 0, 90, 180 or 270.

    Returns:
        PNG bytes of the rotated image; ``content`` unchanged for 0.
    """
    if angle % 360 == 0:
        return content

    image = cv2.imdecode(np.frombuffer(content, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise CorruptImageError("Could not decode image for rotation")
    return encode_png(rotate_clockwise(image, angle))
