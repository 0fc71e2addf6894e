"""Google Cloud Vision document text detection backend.

Wraps one long-lived ``ImageAnnotatorClient`` and requests dense
full-page text detection with a language hint for each image.
"""

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import vision
from google.oauth2 import service_account

from src.exceptions import RecognitionServiceError
from src.utils.credentials import CredentialSource
from src.utils.logger import get_logger

from .engine import RecognitionEngine

logger = get_logger(__name__)

_TOKEN_URI = "https://oauth2.googleapis.com/token"


def build_service_account_credentials(
    source: CredentialSource,
) -> service_account.Credentials:
    """Create Google credentials from a resolved credential source.

    Args:
        source: Inline/base64 service account info or a key file path.

    Returns:
        Service account credentials usable by the Vision client.
    """
    if source.path is not None:
        return service_account.Credentials.from_service_account_file(str(source.path))

    info = {
        "type": "service_account",
        "client_email": source.info["client_email"],
        # Keys pasted into env vars often carry escaped newlines.
        "private_key": source.info["private_key"].replace("\\n", "\n"),
        "project_id": source.info["project_id"],
        "token_uri": source.info.get("token_uri", _TOKEN_URI),
    }
    return service_account.Credentials.from_service_account_info(info)


class GoogleVisionEngine(RecognitionEngine):
    """Recognition backend using Google Cloud Vision.

    Args:
        client: Shared Vision client, created once per process.
        language_hints: BCP-47 language hints, e.g. ``["es"]``.
        timeout_seconds: Deadline for each API call.
    """

    provider_name = "google_vision"

    def __init__(
        self,
        client: vision.ImageAnnotatorClient,
        language_hints: list[str] | None = None,
        timeout_seconds: float = 30.0,
    ) -> None:
        self._client = client
        self.language_hints = [
            hint.strip() for hint in (language_hints or []) if hint and hint.strip()
        ]
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_credentials(
        cls,
        source: CredentialSource,
        language_hints: list[str] | None = None,
        timeout_seconds: float = 30.0,
    ) -> "GoogleVisionEngine":
        """Build the engine and its client from a credential source."""
        credentials = build_service_account_credentials(source)
        client = vision.ImageAnnotatorClient(credentials=credentials)
        logger.info("Google Vision client ready (project %s)", source.project_id)
        return cls(
            client, language_hints=language_hints, timeout_seconds=timeout_seconds
        )

    def detect_document_text(self, image_bytes: bytes) -> str:
        """Run full-page document text detection on one image.

        Args:
            image_bytes: Encoded image.

        Returns:
            The detected full text, empty when nothing was found.

        Raises:
            RecognitionServiceError: If the API call fails or reports an error.
        """
        image = vision.Image(content=image_bytes)
        image_context = vision.ImageContext(language_hints=self.language_hints)

        try:
            response = self._client.document_text_detection(
                image=image,
                image_context=image_context,
                timeout=self.timeout_seconds,
            )
        except (GoogleAPIError, GoogleAuthError) as exc:
            raise RecognitionServiceError(
                f"Google Vision request failed: {exc}"
            ) from exc

        if response.error.message:
            raise RecognitionServiceError(
                f"Google Vision OCR error: {response.error.message}"
            )

        text = response.full_text_annotation.text or ""
        logger.debug("Google Vision returned %d characters", len(text))
        return text
