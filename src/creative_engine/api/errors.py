"""Mapping from application errors to HTTP responses."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from creative_engine.errors import (
    AdsPlatformError,
    BatchNotFoundError,
    BatchUploadFailedError,
    BatchStoreError,
    ConfigurationError,
    ContentIntegrityError,
    CreativeEngineError,
    InteractionPayloadError,
    IntegrityViolationError,
    InvalidStatusTransitionError,
    LedgerError,
    NotifierError,
    PermanentUploadError,
    PipelinePreconditionError,
    PublishPreconditionError,
    RenderRunFailedError,
    ScriptGenerationError,
    StorageError,
    SubtitleError,
    TransientExternalError,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)

# Most specific first; the first matching class wins
STATUS_BY_ERROR: list[tuple[type[CreativeEngineError], int]] = [
    (BatchNotFoundError, status.HTTP_404_NOT_FOUND),
    (ContentIntegrityError, status.HTTP_403_FORBIDDEN),
    (IntegrityViolationError, status.HTTP_400_BAD_REQUEST),
    (InvalidStatusTransitionError, status.HTTP_409_CONFLICT),
    (PipelinePreconditionError, status.HTTP_400_BAD_REQUEST),
    (PublishPreconditionError, status.HTTP_400_BAD_REQUEST),
    (InteractionPayloadError, status.HTTP_400_BAD_REQUEST),
    (SubtitleError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (PermanentUploadError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConfigurationError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (TransientExternalError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (RenderRunFailedError, status.HTTP_502_BAD_GATEWAY),
    (BatchUploadFailedError, status.HTTP_502_BAD_GATEWAY),
    (ScriptGenerationError, status.HTTP_502_BAD_GATEWAY),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
    (LedgerError, status.HTTP_502_BAD_GATEWAY),
    (NotifierError, status.HTTP_502_BAD_GATEWAY),
    (AdsPlatformError, status.HTTP_502_BAD_GATEWAY),
    (BatchStoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for(exc: CreativeEngineError) -> int:
    for error_type, code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_creative_engine_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, CreativeEngineError)
    code = status_for(exc)
    body: dict[str, object] = {"success": False, "error": exc.message, "details": exc.details}
    if isinstance(exc, IntegrityViolationError):
        body["issues"] = exc.issues
        if exc.item:
            body["item"] = exc.item

    log = logger.error if code >= 500 else logger.warning
    log(
        "request_failed",
        path=request.url.path,
        status_code=code,
        error_type=type(exc).__name__,
        error=exc.message,
    )
    return JSONResponse(status_code=code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CreativeEngineError, handle_creative_engine_error)
