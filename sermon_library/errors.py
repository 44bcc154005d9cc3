"""
Sermon Library - Errors

Domain exceptions raised by the repository, the Drive client and the item
manager, plus the FastAPI handlers that turn them into JSON error bodies of
the form ``{"error": "<message>"}``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class SermonLibraryError(Exception):
    """Base class for all errors raised by this service."""

    status_code = 500

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(SermonLibraryError):
    """The requested item id does not exist."""

    status_code = 404

    def __init__(self, message: str = "Item not found") -> None:
        super().__init__(message)


class ValidationError(SermonLibraryError):
    """Malformed form input (e.g. an unparseable date)."""

    status_code = 400


class RemoteStoreError(SermonLibraryError):
    """Google Drive rejected a create, permission or delete call."""


class UploadError(RemoteStoreError):
    """Uploading a file or granting it public access failed."""


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so every failure leaves the API as ``{"error": ...}``."""

    @app.exception_handler(SermonLibraryError)
    async def _domain_error(request: Request, exc: SermonLibraryError):
        if exc.status_code >= 500:
            logger.error(
                "❌ {} {} failed: {}", request.method, request.url.path, exc.message
            )
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in errors
        )
        return _error_response(400, message or "Invalid request")

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        logger.exception(
            "❌ Unhandled error on {} {}: {}", request.method, request.url.path, exc
        )
        return _error_response(500, str(exc) or "Internal server error")
