"""Best-orientation search over the four right-angle rotations.

Registration documents are photographed in any orientation and there is
no reliable signal for it before recognition, so every request runs the
recognizer on all four rotations and keeps the candidate whose text
contains the most document anchor keywords.
"""

import asyncio
import re
from collections.abc import Sequence
from dataclasses import dataclass

from src.exceptions import RecognitionServiceError, RecognitionTimeoutError
from src.preprocessing.pipeline import NormalizedImage
from src.preprocessing.rotate import rotate_encoded
from src.utils.logger import get_logger

from .engine import RecognitionEngine

logger = get_logger(__name__)

ORIENTATIONS: tuple[int, ...] = (0, 90, 180, 270)

ANCHOR_PATTERN = re.compile(r"Matric|Motor|Chasis|Titular", re.IGNORECASE)


@dataclass(frozen=True)
class RecognitionResult:
    """Text recognized at one orientation and its anchor score."""

    text: str
    orientation: int
    match_score: int


def score_text(text: str) -> int:
    """Count case-insensitive anchor keyword occurrences in ``text``."""
    return len(ANCHOR_PATTERN.findall(text))


def select_best(results: Sequence[RecognitionResult]) -> RecognitionResult | None:
    """Pick the highest-scoring result.

    A later result only replaces the current best on a strictly greater
    score, so ties go to the earliest entry in ``results``.
    """
    best: RecognitionResult | None = None
    for result in results:
        if best is None or result.match_score > best.match_score:
            best = result
    return best


class RotationSearch:
    """Runs recognition at every orientation and selects the best text.

    Args:
        engine: Shared recognition backend.
        timeout_seconds: Deadline for the whole search, or ``None``.
        orientations: Clockwise angles to try, in tie-break order.
    """

    def __init__(
        self,
        engine: RecognitionEngine,
        timeout_seconds: float | None = 90.0,
        orientations: Sequence[int] = ORIENTATIONS,
    ) -> None:
        self.engine = engine
        self.timeout_seconds = timeout_seconds
        self.orientations = tuple(orientations)

    async def _attempt(self, image: NormalizedImage, angle: int) -> RecognitionResult:
        rotated = await asyncio.to_thread(rotate_encoded, image.content, angle)
        text = await asyncio.to_thread(self.engine.detect_document_text, rotated)
        return RecognitionResult(
            text=text, orientation=angle, match_score=score_text(text)
        )

    async def search(self, image: NormalizedImage) -> RecognitionResult:
        """Recognize ``image`` at every orientation and return the best result.

        All orientations are always attempted. Attempts run concurrently,
        but results are compared in orientation order, so the outcome does
        not depend on which call finishes first.

        Args:
            image: Normalized image to rotate and recognize.

        Returns:
            The best result. Its text is empty when nothing was recognized
            at any orientation.

        Raises:
            RecognitionServiceError: If every attempt failed.
            RecognitionTimeoutError: If the search exceeded its deadline.

        Note:
            The deadline abandons outstanding attempts but cannot stop a
            backend call already running in a worker thread; that call ends
            at the engine's own per-call timeout.
        """
        attempts = [self._attempt(image, angle) for angle in self.orientations]
        try:
            outcomes = await asyncio.wait_for(
                asyncio.gather(*attempts, return_exceptions=True),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise RecognitionTimeoutError(
                f"Recognition exceeded {self.timeout_seconds}s"
            ) from exc

        results: list[RecognitionResult] = []
        last_error: BaseException | None = None
        for angle, outcome in zip(self.orientations, outcomes):
            if isinstance(outcome, RecognitionResult):
                logger.debug("Orientation %d scored %d", angle, outcome.match_score)
                results.append(outcome)
            elif isinstance(outcome, Exception):
                logger.warning("Recognition at %d degrees failed: %s", angle, outcome)
                last_error = outcome
            else:
                raise outcome

        best = select_best(results)
        if best is None:
            raise RecognitionServiceError(
                f"Recognition failed at all {len(self.orientations)} orientations"
            ) from last_error
        return best
