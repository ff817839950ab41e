"""
===============================================================================
TARJETA CRC — domain/__init__.py
===============================================================================

Módulo:
    Exportaciones de la Capa de Dominio (API pública del dominio)

Responsabilidades:
    - Centralizar exports para imports limpios en application/api.
    - Mantener estable el “surface area” del dominio.

Colaboradores:
    - domain.entities: User, UserPublicView, comandos y tokens
    - domain.repositories: puerto de persistencia
    - domain.cache: puerto de cache
    - domain.services: puertos de hasher / tokens

Reglas:
    - Solo re-exporta contratos/entidades del dominio.
    - No importar infraestructura aquí.
===============================================================================
"""

from .cache import UserCachePort
from .entities import (
    AccessToken,
    NewUser,
    TokenClaims,
    User,
    UserPublicView,
    UserRole,
    UserUpdate,
)
from .repositories import UserRepository
from .services import PasswordHasherPort, TokenServicePort

__all__ = [
    "AccessToken",
    "NewUser",
    "PasswordHasherPort",
    "TokenClaims",
    "TokenServicePort",
    "User",
    "UserCachePort",
    "UserPublicView",
    "UserRepository",
    "UserRole",
    "UserUpdate",
]
