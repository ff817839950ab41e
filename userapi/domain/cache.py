"""
===============================================================================
TARJETA CRC — domain/cache.py
===============================================================================

Módulo:
    Puerto de Cache de Usuarios (Dominio)

Responsabilidades:
    - Definir el contrato (Protocol) del cache read-through de usuarios.
    - Habilitar Inversión de Dependencias:
        * application/user_service depende de esta interfaz
        * infrastructure/cache implementa backends concretos (memoria / Redis)

Colaboradores:
    - infrastructure/cache.py: RedisUserCache / InMemoryUserCache
    - application/user_service.py: cache-aside en get_by_id, invalidación en
      update/delete

Restricciones / Reglas:
    - Este módulo ES dominio: no importa Redis ni métricas.
    - Solo se cachea UserPublicView (nunca el hash de password).
===============================================================================
"""

from __future__ import annotations

from typing import Any, Protocol

from .entities import UserPublicView


class UserCachePort(Protocol):
    """
    Interfaz de cache para vistas públicas de usuario.

    Semántica:
      - get(user_id) retorna None si no existe / expiró / el backend falló
      - set(...) guarda o sobreescribe con TTL
      - invalidate(user_id) borra la entrada (idempotente)
    """

    async def get(self, user_id: int) -> UserPublicView | None:
        ...

    async def set(self, user_id: int, view: UserPublicView, ttl_seconds: int) -> None:
        ...

    async def invalidate(self, user_id: int) -> None:
        ...

    def stats(self) -> dict[str, Any]:
        """Contadores hit/miss/error para observabilidad."""
        ...

    async def ping(self) -> bool:
        ...
