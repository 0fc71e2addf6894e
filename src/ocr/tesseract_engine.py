"""Tesseract OCR backend for offline and development use.

Runs full automatic page segmentation on each image, the closest local
analogue to dense document text detection.
"""

import io

import pytesseract
from PIL import Image, UnidentifiedImageError

from src.exceptions import RecognitionServiceError
from src.utils.logger import get_logger

from .engine import RecognitionEngine

logger = get_logger(__name__)


class TesseractEngine(RecognitionEngine):
    """Wrapper around Tesseract OCR for document text extraction.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        lang: Tesseract language code.
        psm: Tesseract page segmentation mode.
    """

    provider_name = "tesseract"

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        lang: str = "spa",
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.psm = psm

    def detect_document_text(self, image_bytes: bytes) -> str:
        """Extract full-page text from an encoded image.

        Args:
            image_bytes: Encoded image.

        Returns:
            Recognized text with surrounding whitespace removed.

        Raises:
            RecognitionServiceError: If Tesseract is missing or fails.
        """
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                text = pytesseract.image_to_string(
                    img, lang=self.lang, config=f"--psm {self.psm}"
                )
        except pytesseract.TesseractNotFoundError as exc:
            raise RecognitionServiceError("Tesseract is not installed") from exc
        except (pytesseract.TesseractError, UnidentifiedImageError) as exc:
            raise RecognitionServiceError(f"Tesseract failed: {exc}") from exc

        text = text.strip()
        logger.debug("Tesseract returned %d characters", len(text))
        return text
