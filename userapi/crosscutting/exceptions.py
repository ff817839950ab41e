# userapi/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas del servicio de usuarios
===============================================================================

Objetivo
--------
Tener excepciones internas coherentes, con:
- error_code estable
- error_id para correlación con logs
- message “humana” (sin filtrar secretos)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  UserAPIError + subclases

Responsabilidades:
  - Estandarizar la taxonomía de errores del núcleo (servicio, tokens, store)
  - Generar error_id para rastreo
  - Transportar errores de validación por campo

Colaboradores:
  - application/user_service.py (lanza y traduce)
  - identity/tokens.py (InvalidTokenError / TokenExpiredError)
  - infrastructure/repositories/* (DatabaseError / DuplicateEmailError)
  - api/exception_handlers.py (mapea a AppHTTPException)
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class FieldError:
    """Error de validación de un campo puntual (nombre + motivo legible)."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class UserAPIError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      UserAPIError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + error_id + message

    Colaboradores:
      - api/exception_handlers.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "USER_API_ERROR"
    default_message: str = "Error interno."

    def __init__(
        self,
        message: str | None = None,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message or self.default_message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Errores de negocio (servicio de usuarios)
# ---------------------------------------------------------------------------
class EmailExistsError(UserAPIError):
    error_code: str = "EMAIL_EXISTS"
    default_message: str = "El email ya existe."


class UserNotFoundError(UserAPIError):
    error_code: str = "USER_NOT_FOUND"
    default_message: str = "Usuario no encontrado."


class InvalidCredentialsError(UserAPIError):
    """Email inexistente y password incorrecto colapsan acá (no filtrar cuál fue)."""

    error_code: str = "INVALID_CREDENTIALS"
    default_message: str = "Credenciales inválidas."


class ValidationFailedError(UserAPIError):
    """Validación por campo, detectada antes de tocar el store."""

    error_code: str = "VALIDATION_FAILED"
    default_message: str = "Datos inválidos."

    def __init__(self, errors: list[FieldError], message: str | None = None):
        super().__init__(message)
        self.errors = list(errors)


class OperationTimeoutError(UserAPIError):
    """Se venció el deadline de la operación esperando store/cache."""

    error_code: str = "OPERATION_TIMEOUT"
    default_message: str = "La operación excedió el tiempo límite."


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
class InvalidTokenError(UserAPIError):
    error_code: str = "INVALID_TOKEN"
    default_message: str = "Token inválido."


class TokenExpiredError(InvalidTokenError):
    error_code: str = "TOKEN_EXPIRED"
    default_message: str = "Token expirado."


# ---------------------------------------------------------------------------
# Infraestructura
# ---------------------------------------------------------------------------
class DatabaseError(UserAPIError):
    """Errores de DB (conexión, query, timeout, pool)."""

    error_code: str = "DATABASE_ERROR"
    default_message: str = "Falla en operación de base de datos."


class DuplicateEmailError(DatabaseError):
    """Violación del índice único de email (el store es el árbitro final)."""

    error_code: str = "DUPLICATE_EMAIL"
    default_message: str = "Email duplicado."
