"""
Application exceptions and the handlers that render them as the JSON envelope
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

logger = structlog.get_logger()


class AppException(Exception):
    """Base application exception"""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class BadRequestException(AppException):
    """Malformed request that is not tied to a single field"""
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationException(AppException):
    """Field-level validation failure; details is a field -> message map"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: Dict[str, str], message: str = "Errores de validación"):
        super().__init__(message, details=errors)

    @property
    def errors(self) -> Dict[str, str]:
        return self.details


class UnauthorizedException(AppException):
    """Missing or invalid credentials"""
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "No autenticado"):
        super().__init__(message)


class ForbiddenException(AppException):
    """Authenticated but not allowed"""
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "No tiene permisos para esta acción"):
        super().__init__(message)


class NotFoundException(AppException):
    """Resource not found"""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Recurso no encontrado"):
        super().__init__(message)


class ConflictException(AppException):
    """Request conflicts with the current state of a resource"""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Conflicto con recurso existente"):
        super().__init__(message)


class PersistenceException(AppException):
    """Underlying store failed on write"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str, details: Any = None) -> Dict[str, Any]:
    return {"success": False, "message": message, "details": details}


def _field_name(loc) -> str:
    # ("body", "hora_reserva") -> "hora_reserva"; ("query", "fecha") -> "fecha"
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _error_message(error: dict) -> str:
    ctx_error = (error.get("ctx") or {}).get("error")
    if isinstance(ctx_error, Exception):
        return str(ctx_error)
    return error.get("msg", "Valor inválido")


async def app_exception_handler(request: Request, exc: AppException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.details),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors: Dict[str, str] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error.get("loc", ())), _error_message(error))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body("Errores de validación", errors),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(f"Error interno del servidor: {exc}"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error with the same envelope"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
