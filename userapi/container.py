"""
===============================================================================
TARJETA CRC — userapi/container.py (Composition Root / DI manual)
===============================================================================

Responsabilidades:
  - Componer dependencias (store, cache, hasher, tokens, servicio) siguiendo DIP.
  - Centralizar decisiones runtime basadas en Settings (config).
  - Ser dueño del ciclo de vida de los recursos con I/O (pool DB, cliente Redis).

Colaboradores:
  - userapi.crosscutting.config.Settings
  - userapi.domain.* (puertos)
  - userapi.infrastructure.* (implementaciones)
  - userapi.application.UserService

Patrones aplicados:
  - Composition Root
  - Dependency Inversion (el servicio depende de puertos)

Notas:
  - Sin singletons globales: build_container() corre una vez en el lifespan
    y el resultado vive en app.state.container.
  - app_env ∈ {"test", "testing", "ci"} => se usan adapters in-memory.
  - Este archivo NO contiene lógica de negocio ni depende de FastAPI.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass

from psycopg_pool import AsyncConnectionPool

from .application import UserService
from .crosscutting.config import Settings
from .crosscutting.logger import logger
from .domain.cache import UserCachePort
from .domain.repositories import UserRepository
from .domain.services import PasswordHasherPort, TokenServicePort
from .identity.passwords import Argon2PasswordHasher
from .identity.tokens import JwtTokenService
from .infrastructure.cache import InMemoryUserCache, RedisUserCache
from .infrastructure.db import close_pool, open_pool
from .infrastructure.repositories import (
    InMemoryUserRepository,
    PostgresUserRepository,
)


@dataclass
class Container:
    """Dependencias ya construidas de un proceso de la API."""

    settings: Settings
    repository: UserRepository
    cache: UserCachePort
    hasher: PasswordHasherPort
    token_service: TokenServicePort
    users: UserService
    pool: AsyncConnectionPool | None = None

    async def close(self) -> None:
        """Libera pool y cliente Redis (idempotente por recurso)."""
        if isinstance(self.cache, RedisUserCache):
            await self.cache.close()
        await close_pool(self.pool)
        self.pool = None


def _build_user_service(
    settings: Settings,
    *,
    repository: UserRepository,
    cache: UserCachePort,
    hasher: PasswordHasherPort,
    token_service: TokenServicePort,
) -> UserService:
    return UserService(
        repository=repository,
        cache=cache,
        hasher=hasher,
        tokens=token_service,
        cache_ttl_seconds=settings.user_cache_ttl_seconds,
        default_timeout=settings.operation_timeout_seconds,
    )


def build_in_memory_container(
    settings: Settings,
    *,
    repository: UserRepository | None = None,
    cache: UserCachePort | None = None,
    hasher: PasswordHasherPort | None = None,
    token_service: TokenServicePort | None = None,
) -> Container:
    """Container sin I/O externo (tests / desarrollo local sin Postgres/Redis)."""
    repository = repository or InMemoryUserRepository()
    cache = cache or InMemoryUserCache()
    hasher = hasher or Argon2PasswordHasher.from_settings(settings)
    token_service = token_service or JwtTokenService.from_settings(settings)

    return Container(
        settings=settings,
        repository=repository,
        cache=cache,
        hasher=hasher,
        token_service=token_service,
        users=_build_user_service(
            settings,
            repository=repository,
            cache=cache,
            hasher=hasher,
            token_service=token_service,
        ),
    )


async def build_container(settings: Settings) -> Container:
    """
    Construye el container de producción.

    - Postgres: AsyncConnectionPool + PostgresUserRepository
    - Redis: RedisUserCache (fallos => miss)
    """
    if settings.is_test():
        logger.info("Container: app_env de test, usando adapters in-memory")
        return build_in_memory_container(settings)

    pool = await open_pool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )
    repository = PostgresUserRepository(pool)
    cache = RedisUserCache.from_url(
        settings.redis_url, timeout_seconds=settings.cache_timeout_seconds
    )
    hasher = Argon2PasswordHasher.from_settings(settings)
    token_service = JwtTokenService.from_settings(settings)

    return Container(
        settings=settings,
        repository=repository,
        cache=cache,
        hasher=hasher,
        token_service=token_service,
        users=_build_user_service(
            settings,
            repository=repository,
            cache=cache,
            hasher=hasher,
            token_service=token_service,
        ),
        pool=pool,
    )
