"""
===============================================================================
TARJETA CRC — domain/validation.py
===============================================================================

Módulo:
    Reglas de validación de usuarios (por campo)

Responsabilidades:
    - Validar NewUser / UserUpdate antes de tocar el store.
    - Reportar TODOS los errores juntos, uno por campo, con mensaje legible.

Colaboradores:
    - application/user_service.py: lanza ValidationFailedError si hay errores.
    - email-validator: chequeo sintáctico del email (sin DNS).

Reglas:
    - email: requerido, con forma de email.
    - password: requerido en alta (mínimo 6); opcional en update.
    - name: requerido, no vacío.
    - role: requerido, uno de admin | user.
===============================================================================
"""

from __future__ import annotations

from email_validator import EmailNotValidError, validate_email

from ..crosscutting.exceptions import FieldError
from .entities import NewUser, UserRole, UserUpdate

PASSWORD_MIN_LENGTH = 6

MSG_REQUIRED = "This field is required"
MSG_INVALID_EMAIL = "Invalid email format"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_email(email: str) -> FieldError | None:
    if not (email or "").strip():
        return FieldError("email", MSG_REQUIRED)
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return FieldError("email", MSG_INVALID_EMAIL)
    return None


def _check_password(password: str | None, *, required: bool) -> FieldError | None:
    if not password:
        return FieldError("password", MSG_REQUIRED) if required else None
    if len(password) < PASSWORD_MIN_LENGTH:
        return FieldError(
            "password", f"Should be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    return None


def _check_name(name: str) -> FieldError | None:
    if not (name or "").strip():
        return FieldError("name", MSG_REQUIRED)
    return None


def _check_role(role: str) -> FieldError | None:
    if not role:
        return FieldError("role", MSG_REQUIRED)
    if role not in UserRole.values():
        return FieldError("role", "Should be one of: " + " ".join(UserRole.values()))
    return None


def validate_new_user(cmd: NewUser) -> list[FieldError]:
    checks = (
        _check_email(cmd.email),
        _check_password(cmd.password, required=True),
        _check_name(cmd.name),
        _check_role(cmd.role),
    )
    return [error for error in checks if error is not None]


def validate_user_update(cmd: UserUpdate) -> list[FieldError]:
    checks = (
        _check_email(cmd.email),
        _check_password(cmd.password, required=False),
        _check_name(cmd.name),
        _check_role(cmd.role),
    )
    return [error for error in checks if error is not None]
