"""
============================================================
TARJETA CRC — infrastructure/cache.py
============================================================
Module: User Cache (Backends)

Responsibilities:
  - Cachear UserPublicView por id (key "user:{id}") con TTL.
  - Exponer get / set / invalidate / stats / ping (UserCachePort).
  - Degradar fallos del backend a miss / no-op (observables por stats y
    métricas), sin romper el flujo del servicio.

Collaborators:
  - domain.cache.UserCachePort (contrato)
  - redis.asyncio (backend compartido entre workers)
  - threading.Lock + OrderedDict (backend in-memory, dev/tests)
  - crosscutting.metrics: contadores hit/miss/error
  - crosscutting.logger: warning ante fallos de Redis

Policy / Design Notes:
  - Solo se cachea la vista pública (nunca password_hash).
  - Fallos de Redis (RedisError) y payloads corruptos => miss.
  - La cancelación (CancelledError) NO se atrapa: se propaga.
  - TTL coherente:
      - En memoria: expira por timestamp.
      - En Redis: TTL nativo (SETEX).
============================================================
"""

from __future__ import annotations

import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from ..crosscutting.logger import logger
from ..crosscutting.metrics import (
    record_user_cache_error,
    record_user_cache_hit,
    record_user_cache_miss,
)
from ..domain.entities import UserPublicView

CACHE_KEY_PREFIX = "user:"
DEFAULT_TTL_SECONDS = 3600


def user_cache_key(user_id: int) -> str:
    return f"{CACHE_KEY_PREFIX}{user_id}"


def serialize_view(view: UserPublicView) -> str:
    return json.dumps(view.to_dict(), separators=(",", ":"))


def deserialize_view(raw: str | bytes) -> UserPublicView:
    return UserPublicView.from_dict(json.loads(raw))


# ============================================================
# Entry con TTL (in-memory)
# ============================================================
@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    Entrada de caché con su vencimiento absoluto.

    Invariante:
      - expires_at está en la misma escala que el clock del backend.
    """

    payload: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


# ============================================================
# In-memory backend (LRU + TTL)
# ============================================================
class InMemoryUserCache:
    """
    Caché en memoria con:
      - TTL por entrada
      - Eviction LRU real usando OrderedDict
      - Lock para mantener consistentes dict y contadores

    Nota:
      - Guarda el JSON serializado (igual que Redis) para no compartir
        instancias mutables con el llamador.
      - No comparte estado entre procesos (cada worker tiene su caché).
    """

    def __init__(
        self,
        *,
        max_size: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0")

        self._max_size = int(max_size)
        self._clock = clock
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = Lock()

        # stats
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expired = 0

    async def get(self, user_id: int) -> Optional[UserPublicView]:
        """
        Lookup LRU:
          - hit => move_to_end(key) para marcar como "most recently used"
          - expired => borrar y contar como miss
        """
        key = user_cache_key(user_id)
        now = self._clock()

        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                payload = None
            elif entry.is_expired(now):
                self._cache.pop(key, None)
                self._expired += 1
                self._misses += 1
                payload = None
            else:
                self._cache.move_to_end(key, last=True)
                self._hits += 1
                payload = entry.payload

        if payload is None:
            record_user_cache_miss()
            return None
        record_user_cache_hit()
        return deserialize_view(payload)

    async def set(
        self, user_id: int, view: UserPublicView, ttl_seconds: int = DEFAULT_TTL_SECONDS
    ) -> None:
        key = user_cache_key(user_id)
        ttl = ttl_seconds if ttl_seconds and ttl_seconds > 0 else DEFAULT_TTL_SECONDS
        entry = CacheEntry(payload=serialize_view(view), expires_at=self._clock() + ttl)

        with self._lock:
            if key in self._cache:
                self._cache[key] = entry
                self._cache.move_to_end(key, last=True)
                return

            if len(self._cache) >= self._max_size:
                self._cache.popitem(last=False)  # LRU
                self._evictions += 1

            self._cache[key] = entry

    async def invalidate(self, user_id: int) -> None:
        with self._lock:
            self._cache.pop(user_cache_key(user_id), None)

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "backend": "in-memory",
                "size": len(self._cache),
                "max_size": self._max_size,
                "hits": self._hits,
                "misses": self._misses,
                "errors": 0,
                "expired": self._expired,
                "evictions": self._evictions,
                "hit_rate": (self._hits / total) if total > 0 else 0.0,
            }


# ============================================================
# Redis backend (TTL nativo)
# ============================================================
class RedisUserCache:
    """
    Caché Redis para vistas públicas de usuario.

    Ventajas:
      - Compartible entre múltiples workers
      - TTL nativo por clave (SETEX)

    Nota:
      - Redis es best-effort: si falla, get() es miss y set/invalidate no-op.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self._client = client

        # stats
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @classmethod
    def from_url(cls, redis_url: str, *, timeout_seconds: float = 0.5) -> "RedisUserCache":
        if not redis_url:
            raise ValueError("redis_url is required")
        client = aioredis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client)

    def _on_error(self, op: str, user_id: int, exc: Exception) -> None:
        self._errors += 1
        record_user_cache_error()
        logger.warning(
            "Fallo de cache Redis",
            extra={"op": op, "user_id": user_id, "error": str(exc)},
        )

    async def get(self, user_id: int) -> Optional[UserPublicView]:
        """Lookup en Redis (si hay error o payload corrupto, se considera miss)."""
        try:
            data = await self._client.get(user_cache_key(user_id))
        except RedisError as exc:
            self._on_error("get", user_id, exc)
            self._misses += 1
            record_user_cache_miss()
            return None

        if data is None:
            self._misses += 1
            record_user_cache_miss()
            return None

        try:
            view = deserialize_view(data)
        except (ValueError, KeyError, TypeError) as exc:
            self._on_error("decode", user_id, exc)
            self._misses += 1
            record_user_cache_miss()
            return None

        self._hits += 1
        record_user_cache_hit()
        return view

    async def set(
        self, user_id: int, view: UserPublicView, ttl_seconds: int = DEFAULT_TTL_SECONDS
    ) -> None:
        """SETEX con TTL. Si falla, ignoramos (best-effort)."""
        ttl = int(ttl_seconds) if ttl_seconds and ttl_seconds > 0 else DEFAULT_TTL_SECONDS
        try:
            await self._client.setex(user_cache_key(user_id), ttl, serialize_view(view))
        except RedisError as exc:
            self._on_error("set", user_id, exc)

    async def invalidate(self, user_id: int) -> None:
        try:
            await self._client.delete(user_cache_key(user_id))
        except RedisError as exc:
            self._on_error("invalidate", user_id, exc)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()

    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "backend": "redis",
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate": (self._hits / total) if total > 0 else 0.0,
        }
