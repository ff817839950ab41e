"""
===============================================================================
TARJETA CRC — domain/services.py
===============================================================================

Módulo:
    Puertos de credenciales y tokens (Protocols)

Responsabilidades:
    - Definir contratos para el hasher de passwords y el emisor/validador de
      tokens de acceso.
    - Mantener el servicio de usuarios independiente de argon2 / PyJWT.

Colaboradores:
    - identity/passwords.py: Argon2PasswordHasher
    - identity/tokens.py: JwtTokenService
    - application/user_service.py: consume ambos puertos

Reglas:
    - SOLO interfaces: nada de implementación.
===============================================================================
"""

from __future__ import annotations

from typing import Protocol

from .entities import AccessToken, TokenClaims, UserRole


class PasswordHasherPort(Protocol):
    """Contrato para hashear/verificar passwords (operaciones CPU-bound)."""

    def hash(self, plaintext: str) -> str:
        ...

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """False ante mismatch o hash malformado; nunca lanza por eso."""
        ...


class TokenServicePort(Protocol):
    """Contrato para emitir y validar access tokens."""

    def mint(self, user_id: int, role: UserRole) -> AccessToken:
        ...

    def validate(self, token: str) -> TokenClaims:
        """Lanza TokenExpiredError / InvalidTokenError."""
        ...
