"""Select and build the configured recognition backend."""

from collections.abc import Mapping

from src.utils.config import OCRConfig
from src.utils.credentials import resolve_credentials
from src.utils.logger import get_logger

from .engine import RecognitionEngine
from .tesseract_engine import TesseractEngine
from .vision_engine import GoogleVisionEngine

logger = get_logger(__name__)


def build_engine(
    config: OCRConfig, env: Mapping[str, str] | None = None
) -> RecognitionEngine:
    """Create the recognition engine named by ``config.backend``.

    Args:
        config: Recognition configuration.
        env: Environment used to resolve credentials. Defaults to ``os.environ``.

    Returns:
        A ready-to-use recognition engine.

    Raises:
        CredentialsError: If the Vision backend has no usable credentials.
        ValueError: If the backend name is unknown.
    """
    backend = config.backend.lower()
    logger.info("Initializing recognition backend: %s", backend)

    if backend == "google_vision":
        return GoogleVisionEngine.from_credentials(
            resolve_credentials(env),
            language_hints=config.language_hints,
            timeout_seconds=config.call_timeout_seconds,
        )
    if backend == "tesseract":
        return TesseractEngine(
            tesseract_cmd=config.tesseract_cmd,
            lang=config.tesseract_lang,
            psm=config.psm,
        )
    raise ValueError(f"Unknown recognition backend: {config.backend}")
