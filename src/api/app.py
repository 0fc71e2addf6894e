"""FastAPI application for the vehicle registration OCR API.

Provides a liveness check, a health check and the upload endpoint
that turns a photo of a registration document into structured fields.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from src.exceptions import (
    DocumentOCRError,
    MissingImageError,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from src.ocr.document_processor import DocumentProcessor
from src.ocr.factory import build_engine
from src.preprocessing.pipeline import RawImage
from src.utils.config import load_config
from src.utils.logger import get_logger

from .schemas import ErrorResponse, HealthResponse, VehicleRecordResponse

logger = get_logger(__name__)

VERSION = "1.0.0"

MSG_NO_IMAGE = "No se envió imagen"
MSG_BAD_FORMAT = "Formato de imagen no permitido (usa jpg/png/webp/heic)"
MSG_TOO_LARGE = "La imagen supera el tamaño máximo permitido (6MB)"
MSG_NO_TEXT = "No se detectó texto en la imagen."
MSG_INTERNAL = "Error interno del servidor"

UPLOAD_PATH = "/detectar-texto"

_READ_CHUNK_SIZE = 64 * 1024
# Allowance for multipart boundaries and part headers around the file.
_MULTIPART_OVERHEAD = 64 * 1024

config = load_config()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the recognition client and processor once per process."""
    engine = build_engine(config.ocr)
    app.state.processor = DocumentProcessor(config, engine)
    logger.info("OCR ready (backend %s)", engine.provider_name)
    yield


app = FastAPI(
    title="Vehicle Registration OCR API",
    description="Extract vehicle data from photos of registration documents",
    version=VERSION,
    lifespan=lifespan,
)


@app.middleware("http")
async def limit_upload_size(request: Request, call_next):
    """Reject uploads whose declared size exceeds the limit before parsing.

    Chunked uploads carry no Content-Length; Starlette spools those in full
    before the handler runs, and only ``read_limited`` rejects them.
    """
    if request.method == "POST":
        declared = request.headers.get("content-length", "")
        limit = config.api.max_upload_bytes + _MULTIPART_OVERHEAD
        if declared.isdigit() and int(declared) > limit:
            logger.info("Rejected upload of %s bytes", declared)
            return _error_response(413, MSG_TOO_LARGE)
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def upload_validation_error(request: Request, exc: RequestValidationError):
    """Report a malformed ``imagen`` field (e.g. plain text) as a missing image."""
    if request.url.path == UPLOAD_PATH:
        logger.info("Rejected upload without a file part: %s", exc.errors())
        return _error_response(400, MSG_NO_IMAGE)
    return await request_validation_exception_handler(request, exc)


def get_processor(request: Request) -> DocumentProcessor:
    """Return the processor created at startup."""
    return request.app.state.processor


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


async def read_limited(upload: UploadFile, limit: int) -> bytes:
    """Read an upload in chunks, aborting as soon as it exceeds ``limit``.

    Args:
        upload: Uploaded file.
        limit: Maximum number of bytes accepted.

    Returns:
        The file content.

    Raises:
        UploadTooLargeError: If the content is larger than ``limit``.
    """
    buffer = bytearray()
    while True:
        chunk = await upload.read(_READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > limit:
            raise UploadTooLargeError(limit)
    return bytes(buffer)


@app.get("/", response_class=PlainTextResponse)
async def liveness() -> str:
    """Liveness check for the hosting platform."""
    return "OK"


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return service health status."""
    return HealthResponse(
        status="healthy", version=VERSION, ocr_backend=config.ocr.backend
    )


@app.post(
    UPLOAD_PATH,
    response_model=VehicleRecordResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def detect_text(
    processor: Annotated[DocumentProcessor, Depends(get_processor)],
    imagen: Annotated[UploadFile | None, File()] = None,
) -> VehicleRecordResponse | JSONResponse:
    """Extract vehicle fields from an uploaded registration document photo.

    Args:
        processor: Shared document processor.
        imagen: Uploaded photo (JPEG, PNG, WEBP, HEIC or HEIF, up to 6MB).

    Returns:
        The extracted fields; an error payload with status 200 when no
        text was detected.
    """
    try:
        if imagen is None:
            raise MissingImageError("No file in field 'imagen'")
        if not processor.preprocessing.is_allowed(imagen.content_type):
            raise UnsupportedFormatError(imagen.content_type)

        content = await read_limited(imagen, config.api.max_upload_bytes)
        raw = RawImage(
            content=content,
            content_type=imagen.content_type or "",
            filename=imagen.filename or "imagen",
        )
        result = await processor.process(raw)

    except MissingImageError:
        return _error_response(400, MSG_NO_IMAGE)
    except UnsupportedFormatError as exc:
        logger.info("Rejected upload with type %s", exc.content_type)
        return _error_response(400, MSG_BAD_FORMAT)
    except UploadTooLargeError:
        return _error_response(413, MSG_TOO_LARGE)
    except DocumentOCRError as exc:
        logger.error("OCR error: %s", exc, exc_info=True)
        return _error_response(500, MSG_INTERNAL)
    except Exception:
        logger.exception("Unexpected error while processing upload")
        return _error_response(500, MSG_INTERNAL)
    finally:
        if imagen is not None:
            await imagen.close()

    if not result.text_detected:
        return _error_response(200, MSG_NO_TEXT)
    return VehicleRecordResponse.from_record(result.record)
