"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Módulo:
    Entidades del dominio de usuarios

Responsabilidades:
    - Definir el registro persistido (User) y su proyección pública
      (UserPublicView), que es lo único que se cachea o se devuelve.
    - Definir los comandos de entrada (NewUser / UserUpdate).
    - Definir las "shapes" de tokens (TokenClaims / AccessToken).

Colaboradores:
    - application/user_service.py: orquesta con estas entidades.
    - infrastructure/repositories/*: mapea filas -> User.
    - infrastructure/cache.py: serializa UserPublicView a JSON.
    - identity/tokens.py: emite AccessToken y valida TokenClaims.

Reglas:
    - User.password_hash nunca sale de la capa de aplicación.
    - deleted_at != None => el usuario es lógicamente inexistente.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class UserRole(str, Enum):
    """Roles soportados para autorización."""

    ADMIN = "admin"
    USER = "user"

    @classmethod
    def values(cls) -> list[str]:
        return [role.value for role in cls]


@dataclass(frozen=True, slots=True)
class User:
    """Registro de usuario tal como lo guarda el store."""

    id: int
    email: str
    password_hash: str
    name: str
    role: UserRole
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_public_view(self) -> "UserPublicView":
        return UserPublicView(
            id=self.id,
            created_at=self.created_at,
            email=self.email,
            name=self.name,
            role=self.role,
        )


@dataclass(frozen=True, slots=True)
class UserPublicView:
    """Proyección sin secretos: lo que se cachea y lo que ve el cliente."""

    id: int
    created_at: datetime
    email: str
    name: str
    role: UserRole

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "email": self.email,
            "name": self.name,
            "role": self.role.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserPublicView":
        return cls(
            id=int(data["id"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            email=data["email"],
            name=data["name"],
            role=UserRole(data["role"]),
        )


@dataclass(frozen=True, slots=True)
class NewUser:
    """Comando de alta (payload de registro)."""

    email: str
    password: str
    name: str
    role: str


@dataclass(frozen=True, slots=True)
class UserUpdate:
    """
    Comando de actualización (reemplazo completo del registro).

    password vacío o None => se conserva el hash almacenado.
    """

    id: int
    email: str
    name: str
    role: str
    password: str | None = None


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """Claims validados de un access token. Nunca se persisten."""

    user_id: int
    role: UserRole
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class AccessToken:
    token: str
    expires_in: int
    token_type: str = "bearer"
