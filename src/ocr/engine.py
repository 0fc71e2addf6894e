"""Common interface for document text recognition backends."""

from abc import ABC, abstractmethod


class RecognitionEngine(ABC):
    """A backend that turns one encoded image into full-page text.

    Implementations must be safe to call from several worker threads at
    once and must raise ``RecognitionServiceError`` for any backend
    failure.
    """

    provider_name: str = "unknown"

    @abstractmethod
    def detect_document_text(self, image_bytes: bytes) -> str:
        """Return the full-page text found in an image, or an empty string."""
