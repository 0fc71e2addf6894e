"""Exception hierarchy for the vehicle registration OCR service.

Every failure the pipeline can surface derives from ``DocumentOCRError``
so the HTTP layer maps exactly one class of error to one response.
"""


class DocumentOCRError(Exception):
    """Base class for all pipeline errors."""


class InputError(DocumentOCRError):
    """The uploaded image is missing or not acceptable."""


class MissingImageError(InputError):
    """No image was supplied with the request."""


class UnsupportedFormatError(InputError):
    """The declared media type is not in the allow-list."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"Unsupported image type: {content_type}")
        self.content_type = content_type


class UploadTooLargeError(InputError):
    """The upload exceeds the configured size limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Upload exceeds {limit} bytes")
        self.limit = limit


class DecodeError(DocumentOCRError):
    """Image bytes could not be turned into pixels."""


class CorruptImageError(DecodeError):
    """The byte buffer is not a decodable image."""


class RecognitionServiceError(DocumentOCRError):
    """The text recognition backend failed or was unreachable."""


class RecognitionTimeoutError(RecognitionServiceError):
    """Recognition did not finish within the request deadline."""


class CredentialsError(DocumentOCRError):
    """Service credentials could not be resolved at startup."""


class ProcessingError(DocumentOCRError):
    """Unexpected failure wrapped by the orchestrator."""
