"""
===============================================================================
TARJETA CRC — api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir excepciones de la aplicación a respuestas HTTP RFC7807.
  - Traducir errores de schema (RequestValidationError) a 400 con
    errors=[{field, message}].
  - Centralizar logging de errores con request_id + error_id.
  - Evitar filtrar detalles internos en errores no controlados.

Mapeo:
  - ValidationFailedError / RequestValidationError -> 400
  - InvalidCredentialsError / InvalidTokenError   -> 401
  - UserNotFoundError                             -> 404
  - EmailExistsError                              -> 409
  - resto (DatabaseError, OperationTimeoutError, …) -> 500

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, ErrorCode, app_exception_handler
  - crosscutting.exceptions: UserAPIError y derivadas
  - crosscutting.config.get_settings (para decidir nivel de detalle)
===============================================================================
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    ErrorCode,
    app_exception_handler,
    internal_error,
)
from ..crosscutting.exceptions import (
    EmailExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserAPIError,
    UserNotFoundError,
    ValidationFailedError,
)
from ..crosscutting.logger import logger
from ..domain.validation import MSG_REQUIRED

# Orden importa: la primera clase que matchea (isinstance) gana.
_STATUS_BY_ERROR: tuple[tuple[type[UserAPIError], int, ErrorCode], ...] = (
    (ValidationFailedError, 400, ErrorCode.VALIDATION_ERROR),
    (InvalidCredentialsError, 401, ErrorCode.UNAUTHORIZED),
    (InvalidTokenError, 401, ErrorCode.UNAUTHORIZED),
    (UserNotFoundError, 404, ErrorCode.NOT_FOUND),
    (EmailExistsError, 409, ErrorCode.CONFLICT),
)


def _request_id_from(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def _resolve(exc: UserAPIError) -> tuple[int, ErrorCode]:
    for error_type, status_code, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code, code
    return 500, ErrorCode.INTERNAL_ERROR


async def user_api_error_handler(request: Request, exc: UserAPIError) -> JSONResponse:
    """Handler único para la taxonomía tipada del servicio."""
    status_code, code = _resolve(exc)
    request_id = _request_id_from(request)

    if status_code >= 500:
        logger.error(
            "Error de servicio",
            extra={
                "code": exc.error_code,
                "error_id": exc.error_id,
                "error_message": exc.message,
                "request_id": request_id,
            },
        )
        detail = exc.message if not get_settings().is_production() else "Error interno."
        errors: list[dict[str, Any]] | None = [{"error_id": exc.error_id}]
    else:
        detail = exc.message
        errors = None

    if isinstance(exc, ValidationFailedError):
        errors = [e.to_dict() for e in exc.errors]

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    app_exc = AppHTTPException(
        status_code=status_code, code=code, detail=detail, errors=errors, headers=headers
    )
    return await app_exception_handler(request, app_exc)


def _field_from_loc(loc: tuple[Any, ...] | list[Any]) -> str:
    # ("body", "email") -> "email"; ("path", "user_id") -> "user_id"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Errores de schema (body/query/path) -> 400 con el mismo formato por campo."""
    errors = [
        {
            "field": _field_from_loc(err.get("loc", ())),
            "message": MSG_REQUIRED
            if err.get("type") == "missing"
            else str(err.get("msg", "Invalid value")),
        }
        for err in exc.errors()
    ]
    app_exc = AppHTTPException(
        status_code=400,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Datos inválidos.",
        errors=errors,
    )
    return await app_exception_handler(request, app_exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler para excepciones no tipadas.

    - Log completo (stacktrace).
    - Respuesta genérica (evita filtrar internos).
    """
    request_id = _request_id_from(request)
    settings = get_settings()

    logger.error(
        "Excepción no controlada",
        exc_info=exc,
        extra={"request_id": request_id, "error": str(exc)},
    )

    # R: En desarrollo ayudamos un poco más; en producción evitamos filtrar detalles.
    detail = str(exc) if not settings.is_production() else "Error interno."

    return await app_exception_handler(request, internal_error(detail))


def register_exception_handlers(app: FastAPI) -> None:
    """
    Registra handlers en la app FastAPI.

    Importante:
      - AppHTTPException debe registrarse para respetar RFC7807.
      - Exception genérica se registra al final como fallback.
    """
    app.add_exception_handler(UserAPIError, user_api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers"]
