"""Shared test fixtures for the vehicle registration OCR test suite."""

import io
import time
from collections.abc import Callable
from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from src.ocr.engine import RecognitionEngine
from src.preprocessing.pipeline import NormalizedImage

REGISTRATION_TEXT = (
    "REPUBLICA ORIENTAL DEL URUGUAY\n"
    "TITULAR: JUAN PEREZ\n"
    "MARIA GOMEZ\n"
    "MATRICULA: SBC 1234\n"
    "MARCA: TOYOTA\n"
    "MODELO: COROLLA XEI\n"
    "AÑO: 2019\n"
    "MOTOR: 2ZR1234567\n"
    "CHASIS: 9BRBL3HE0K0123456\n"
    "CILINDRADA: 1798\n"
)


def marker_angle(image_bytes: bytes) -> int:
    """Infer the clockwise rotation of a marker image from its bright corner.

    The unrotated marker image has its bright block in the top-left
    corner; rotating clockwise moves it to the top-right (90),
    bottom-right (180) and bottom-left (270).
    """
    buffer = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE)
    ys, xs = np.nonzero(image > 127)
    top = bool(ys.mean() < image.shape[0] / 2)
    left = bool(xs.mean() < image.shape[1] / 2)
    corners = {
        (True, True): 0,
        (True, False): 90,
        (False, False): 180,
        (False, True): 270,
    }
    return corners[(top, left)]


class FakeEngine(RecognitionEngine):
    """Recognition double answering per orientation of a marker image."""

    provider_name = "fake"

    def __init__(
        self,
        outcomes: dict[int, str | Exception] | None = None,
        default: str | Exception = "",
        delays: dict[int, float] | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.default = default
        self.delays = delays or {}
        self.calls: list[int] = []

    def detect_document_text(self, image_bytes: bytes) -> str:
        angle = marker_angle(image_bytes)
        time.sleep(self.delays.get(angle, 0.0))
        self.calls.append(angle)
        outcome = self.outcomes.get(angle, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _marker_array(height: int = 30, width: int = 60) -> np.ndarray:
    image = np.zeros((height, width), dtype=np.uint8)
    image[0:8, 0:8] = 255
    return image


@pytest.fixture
def make_engine() -> Callable[..., FakeEngine]:
    """Factory for recognition doubles keyed by orientation."""
    return FakeEngine


@pytest.fixture
def marker_png() -> bytes:
    """PNG bytes of a dark image with a bright top-left block."""
    ok, buffer = cv2.imencode(".png", _marker_array())
    assert ok
    return buffer.tobytes()


@pytest.fixture
def marker_image(marker_png: bytes) -> NormalizedImage:
    """The marker image wrapped as an already-normalized image."""
    return NormalizedImage(content=marker_png, width=60, height=30)


@pytest.fixture
def make_image_bytes() -> Callable[..., bytes]:
    """Factory for encoded RGB test images of a given size and format."""

    def _make(width: int = 200, height: int = 100, fmt: str = "PNG") -> bytes:
        array = np.zeros((height, width, 3), dtype=np.uint8)
        array[height // 4 : height // 2, width // 4 : width // 2] = (200, 120, 40)
        buf = io.BytesIO()
        Image.fromarray(array).save(buf, format=fmt)
        return buf.getvalue()

    return _make


@pytest.fixture
def registration_text() -> str:
    """Typical recognized text of an upright registration document."""
    return REGISTRATION_TEXT


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
