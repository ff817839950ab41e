"""
===============================================================================
TARJETA CRC — identity/auth_users.py
===============================================================================

Módulo:
    Autenticación por bearer token (dependencias FastAPI)

Responsabilidades:
    - Extraer token desde `Authorization: Bearer <token>`.
    - Validarlo con el TokenService del container (firma + exp).
    - Exponer dependencias FastAPI (require_user, require_role).

Colaboradores:
    - identity/tokens.py: JwtTokenService.validate
    - container.py: el token service vive en app.state.container
    - crosscutting.error_responses: unauthorized/forbidden estándar
    - crosscutting.logger: logging estructurado

Decisiones de diseño:
    - Autorización basada solo en claims: no se consulta el store por request.
    - No loguear tokens; solo el motivo del rechazo.
===============================================================================
"""

from __future__ import annotations

from typing import Callable

from fastapi import Header, Request

from ..crosscutting.error_responses import forbidden, unauthorized
from ..crosscutting.exceptions import InvalidTokenError, TokenExpiredError
from ..crosscutting.logger import logger
from ..domain.entities import TokenClaims, UserRole


def _extract_bearer_token(authorization: str | None) -> str | None:
    """Extrae token desde `Authorization: Bearer <token>`."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def get_current_claims(request: Request, authorization: str | None) -> TokenClaims:
    """Resuelve los claims del request actual (401 si falta o es inválido)."""
    token = _extract_bearer_token(authorization)
    if not token:
        raise unauthorized("Falta token Bearer.")

    token_service = request.app.state.container.token_service
    try:
        claims = token_service.validate(token)
    except TokenExpiredError as exc:
        logger.info("Auth rechazada: token expirado")
        raise unauthorized("Token expirado.") from exc
    except InvalidTokenError as exc:
        logger.info("Auth rechazada: token inválido")
        raise unauthorized("Token inválido.") from exc

    request.state.claims = claims
    return claims


# ---------------------------------------------------------------------------
# Dependencias FastAPI
# ---------------------------------------------------------------------------


def require_user() -> Callable:
    """Dependency FastAPI: requiere usuario autenticado por JWT."""

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> TokenClaims:
        return get_current_claims(request, authorization)

    return dependency


def require_role(role: UserRole | str) -> Callable:
    """Dependency FastAPI: requiere un rol específico de usuario."""
    required_role = UserRole(role)

    async def dependency(
        request: Request,
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> TokenClaims:
        claims = get_current_claims(request, authorization)
        if claims.role != required_role:
            raise forbidden("Rol insuficiente.")
        return claims

    return dependency
