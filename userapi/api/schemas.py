"""
===============================================================================
TARJETA CRC — api/schemas.py
===============================================================================

Módulo:
    Schemas HTTP para usuarios y autenticación

Responsabilidades:
    - Definir DTOs de request/response (un modelo explícito por endpoint).
    - Convertir entre DTOs y entidades de dominio.

Colaboradores:
    - domain.entities: NewUser, UserUpdate, UserPublicView, AccessToken, TokenClaims
    - api/user_routes.py

Notas:
    - Los requests solo exigen tipos; las reglas por campo (email válido,
      largo mínimo de password, rol permitido) viven en domain/validation.py
      para que HTTP y servicio reporten los mismos mensajes.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..domain.entities import (
    AccessToken,
    NewUser,
    TokenClaims,
    UserPublicView,
    UserUpdate,
)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class LoginRequest(BaseModel):
    email: str = Field(..., max_length=320, examples=["user@example.com"])
    password: str = Field(..., max_length=512, examples=["password123"])


class CreateUserRequest(BaseModel):
    """Payload de registro."""

    email: str = Field(..., max_length=320, examples=["user@example.com"])
    password: str = Field(..., max_length=512, examples=["password123"])
    name: str = Field(..., max_length=200, examples=["John Doe"])
    role: str = Field(..., examples=["user"])

    def to_command(self) -> NewUser:
        return NewUser(
            email=self.email, password=self.password, name=self.name, role=self.role
        )


class UpdateUserRequest(BaseModel):
    """Reemplazo completo; password omitido o vacío conserva el actual."""

    email: str = Field(..., max_length=320)
    name: str = Field(..., max_length=200)
    role: str
    password: str | None = Field(None, max_length=512)

    def to_command(self, user_id: int) -> UserUpdate:
        return UserUpdate(
            id=user_id,
            email=self.email,
            name=self.name,
            role=self.role,
            password=self.password,
        )


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class UserResponse(BaseModel):
    id: int
    created_at: datetime
    email: str
    name: str
    role: str

    @classmethod
    def from_view(cls, view: UserPublicView) -> "UserResponse":
        return cls(
            id=view.id,
            created_at=view.created_at,
            email=view.email,
            name=view.name,
            role=view.role.value,
        )


class UserListResponse(BaseModel):
    users: list[UserResponse]
    page: int
    limit: int


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

    @classmethod
    def from_token(cls, token: AccessToken) -> "LoginResponse":
        return cls(
            access_token=token.token,
            token_type=token.token_type,
            expires_in=token.expires_in,
        )


class MessageResponse(BaseModel):
    message: str


class MeResponse(BaseModel):
    user_id: int
    role: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "MeResponse":
        return cls(
            user_id=claims.user_id,
            role=claims.role.value,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )


class AdminPingResponse(BaseModel):
    ok: bool = True
