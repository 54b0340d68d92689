"""Error taxonomy for the storage gateway and its FastAPI exception handlers."""

import logging
from typing import Iterable, Optional

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

REDACTED = "***"


class RetailApiError(Exception):
    """Base class for every error raised by the retail API core."""


class ValidationError(RetailApiError):
    """Bad or missing input, rejected before any backend call."""


class NotFoundError(RetailApiError):
    """A record expected to exist is absent."""

    def __init__(self, kind: str, row_key: str) -> None:
        self.kind = kind
        self.row_key = row_key
        super().__init__(f"{kind} '{row_key}' not found")


class ConfigurationMissingError(RetailApiError):
    """The storage credential is absent, so no backend call can be attempted."""

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(f"Storage configuration is missing: {setting}")


class DecodeError(RetailApiError):
    """Malformed multipart upload."""


class MissingBoundaryError(DecodeError):
    def __init__(self, message: str = "Missing content-type boundary.") -> None:
        super().__init__(message)


class NoFilePartError(DecodeError):
    def __init__(self, message: str = "No file uploaded.") -> None:
        super().__init__(message)


class EmptyPayloadError(DecodeError):
    def __init__(self, message: str = "Uploaded file is empty.") -> None:
        super().__init__(message)


class BackendFaultError(RetailApiError):
    """A storage backend call failed.

    The original exception is kept as ``cause`` (and chained with ``from``);
    its message becomes part of this error's message, with any known secret
    values replaced by ``***``.
    """

    def __init__(
        self,
        operation: str,
        cause: BaseException,
        secrets: Iterable[Optional[str]] = (),
    ) -> None:
        self.operation = operation
        self.cause = cause
        detail = str(cause).strip() or cause.__class__.__name__
        for secret in secrets:
            if secret:
                detail = detail.replace(secret, REDACTED)
        super().__init__(f"Failed to {operation}: {detail}")


#########################
# --- HTTP handlers --- #
#########################


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def handle_decode_error(request: Request, exc: DecodeError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def handle_configuration_missing(request: Request, exc: ConfigurationMissingError) -> JSONResponse:
    logger.error("Storage configuration missing: %s", exc.setting)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Storage configuration error."},
    )


async def handle_backend_fault(request: Request, exc: BackendFaultError) -> JSONResponse:
    logger.error("Backend fault during %s: %s", exc.operation, exc)
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": [
                {
                    "loc": [str(part) for part in error["loc"]],
                    "msg": error["msg"],
                }
                for error in errors
            ]
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unhandled error processing %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
