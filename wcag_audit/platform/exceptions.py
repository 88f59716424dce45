from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from wcag_audit.platform.logger import get_logger
from wcag_audit.platform.response import error_response

logger = get_logger(__name__)


class ScanError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Erreur serveur"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class InvalidInput(ScanError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "URL invalide"


class QuotaExceeded(ScanError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Quota mensuel de scans atteint"


class StoreUnavailable(ScanError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Erreur DB"


class ScanFailed(ScanError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Erreur lors du scan"


class ScanNotFound(ScanError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Scan introuvable"


class ScanAlreadyFinalized(ScanError):
    status_code = status.HTTP_409_CONFLICT
    message = "Le scan est déjà terminé"


def add_exception_handlers(app):
    @app.exception_handler(ScanError)
    async def scan_error_handler(request: Request, exc: ScanError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return error_response(error=exc.message, details=exc.details, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(
            error=str(exc.detail) or "Error",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(
            error="Validation failed",
            details={"errors": exc.errors()},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
        return error_response(
            error="Erreur serveur",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
