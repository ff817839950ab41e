"""
===============================================================================
TARJETA CRC — identity/tokens.py
===============================================================================

Módulo:
    Emisor/validador de access tokens (JWT HS256)

Responsabilidades:
    - Emitir JWT de acceso con expiración (mint).
    - Decodificar y validar JWT: firma, exp, claims mínimos, tipo y rol.
    - Traducir errores de PyJWT a la taxonomía interna.

Colaboradores:
    - PyJWT
    - crosscutting.exceptions: InvalidTokenError / TokenExpiredError
    - domain.entities: AccessToken / TokenClaims / UserRole
    - identity/auth_users.py: valida el bearer en cada request

Decisiones de diseño:
    - El secreto y el TTL se inyectan en el constructor (no hay lectura de
      settings globales acá).
    - El reloj es inyectable para poder testear expiración sin dormir.
    - No hay lista de revocación: un token bien firmado y no expirado vale.
    - No loguear tokens ni secretos.
===============================================================================
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from ..crosscutting.config import Settings
from ..crosscutting.exceptions import InvalidTokenError, TokenExpiredError
from ..domain.entities import AccessToken, TokenClaims, UserRole

# ---------------------------------------------------------------------------
# Constantes (evitan strings mágicos)
# ---------------------------------------------------------------------------

JWT_ALGORITHM: str = "HS256"

CLAIM_SUB: str = "sub"
CLAIM_ROLE: str = "role"
CLAIM_IAT: str = "iat"
CLAIM_EXP: str = "exp"
CLAIM_TYP: str = "typ"

TOKEN_TYPE_ACCESS: str = "access"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JwtTokenService:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      JwtTokenService

    Responsabilidades:
      - mint(user_id, role) -> AccessToken(token, expires_in)
      - validate(token) -> TokenClaims

    Colaboradores:
      - PyJWT (encode/decode)
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        *,
        secret: str,
        access_ttl_minutes: int = 24 * 60,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("secret es requerido")
        self._secret = secret
        self._ttl_seconds = int(access_ttl_minutes * 60)
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "JwtTokenService":
        return cls(
            secret=settings.jwt_secret,
            access_ttl_minutes=settings.jwt_access_ttl_minutes,
        )

    def mint(self, user_id: int, role: UserRole) -> AccessToken:
        now = self._clock()
        payload: dict[str, object] = {
            CLAIM_SUB: str(user_id),
            CLAIM_ROLE: UserRole(role).value,
            CLAIM_IAT: int(now.timestamp()),
            CLAIM_EXP: int((now + timedelta(seconds=self._ttl_seconds)).timestamp()),
            CLAIM_TYP: TOKEN_TYPE_ACCESS,
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        return AccessToken(token=token, expires_in=self._ttl_seconds)

    def validate(self, token: str) -> TokenClaims:
        """
        Decodifica y valida un JWT de acceso.

        Errores:
            - TokenExpiredError si expiró.
            - InvalidTokenError por firma inválida, estructura, claims
              faltantes, rol desconocido o tipo de token incorrecto.
        """
        if not token:
            raise InvalidTokenError()

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": [CLAIM_SUB, CLAIM_ROLE, CLAIM_IAT, CLAIM_EXP]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError(original_error=exc) from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(original_error=exc) from exc

        if payload.get(CLAIM_TYP, TOKEN_TYPE_ACCESS) != TOKEN_TYPE_ACCESS:
            raise InvalidTokenError("Tipo de token inválido.")

        try:
            user_id = int(payload[CLAIM_SUB])
            role = UserRole(str(payload[CLAIM_ROLE]))
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError(original_error=exc) from exc

        return TokenClaims(
            user_id=user_id,
            role=role,
            issued_at=datetime.fromtimestamp(int(payload[CLAIM_IAT]), timezone.utc),
            expires_at=datetime.fromtimestamp(int(payload[CLAIM_EXP]), timezone.utc),
        )
