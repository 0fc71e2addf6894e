"""Orchestrates normalization, rotation search and field extraction.

Turns one uploaded photo of a registration document into a structured
``VehicleRecord``, or into a distinguished "no text detected" outcome
when the recognizer finds nothing at any orientation.
"""

import asyncio
from dataclasses import dataclass

from src.exceptions import (
    DecodeError,
    InputError,
    ProcessingError,
    RecognitionServiceError,
)
from src.extraction.rule_extractor import RuleExtractor, VehicleRecord
from src.preprocessing.pipeline import PreprocessingPipeline, RawImage
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .engine import RecognitionEngine
from .rotation_search import RecognitionResult, RotationSearch

logger = get_logger(__name__)


@dataclass(frozen=True)
class DocumentResult:
    """Outcome of processing one document photo."""

    source_file: str
    recognition: RecognitionResult
    record: VehicleRecord | None

    @property
    def text_detected(self) -> bool:
        return self.record is not None


class DocumentProcessor:
    """End-to-end registration document pipeline.

    Args:
        config: Application configuration object.
        engine: Recognition backend shared by every request.
    """

    def __init__(self, config: AppConfig, engine: RecognitionEngine) -> None:
        self.config = config
        self.engine = engine
        self.preprocessing = PreprocessingPipeline(
            config.preprocessing, config.api.allowed_content_types
        )
        self.rotation_search = RotationSearch(
            engine, timeout_seconds=config.ocr.request_timeout_seconds
        )
        self.extractor = RuleExtractor()

    async def process(self, raw: RawImage) -> DocumentResult:
        """Process one uploaded photo.

        Args:
            raw: Uploaded image bytes and declared media type.

        Returns:
            The parsed record, or a result with ``record=None`` when no
            text was detected.

        Raises:
            InputError: If the media type is not accepted.
            DecodeError: If the image cannot be decoded.
            RecognitionServiceError: If recognition failed or timed out.
            ProcessingError: For any other failure.
        """
        logger.info("Processing document: %s", raw.filename)
        try:
            normalized = await asyncio.to_thread(self.preprocessing.normalize, raw)
            best = await self.rotation_search.search(normalized)
        except (InputError, DecodeError, RecognitionServiceError):
            raise
        except Exception as exc:
            raise ProcessingError(f"Failed to process {raw.filename}: {exc}") from exc

        logger.info(
            "Best orientation for %s: %d degrees (score %d, %d chars)",
            raw.filename,
            best.orientation,
            best.match_score,
            len(best.text),
        )

        record = None
        if best.text:
            record = self.extractor.extract(best.text)
        else:
            logger.info("No text detected in %s", raw.filename)
        return DocumentResult(source_file=raw.filename, recognition=best, record=record)
