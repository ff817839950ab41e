"""
===============================================================================
SERVICE: User Service (orquestación de usuarios)
===============================================================================

Business Goal:
    Registrar, autenticar, leer, actualizar, borrar y listar usuarios,
    combinando store (fuente de verdad), cache read-through (hint de
    performance), hasher de passwords y emisor de tokens.

-------------------------------------------------------------------------------
CRC CARD (Class-Responsibility-Collaborator)
-------------------------------------------------------------------------------
Class:
    UserService

Responsibilities:
    - Validar comandos por campo ANTES de tocar el store.
    - Normalizar emails (trim + lower).
    - Hashear passwords fuera del event loop (asyncio.to_thread).
    - Cache-aside en get_by_id; invalidación best-effort en update/delete.
    - Colapsar toda falla de login en InvalidCredentialsError.
    - Aplicar un deadline por operación (OperationTimeoutError).

Collaborators:
    - UserRepository (store)
    - UserCachePort (cache)
    - PasswordHasherPort (argon2)
    - TokenServicePort (JWT)
    - crosscutting.metrics / crosscutting.logger

-------------------------------------------------------------------------------
Error Mapping
-------------------------------------------------------------------------------
    - ValidationFailedError: campos inválidos (antes de cualquier I/O)
    - EmailExistsError: pre-check por email o DuplicateEmailError del store
    - UserNotFoundError: store devuelve None / False
    - InvalidCredentialsError: email inexistente, password incorrecto o store
      caído durante login (indistinguibles)
    - OperationTimeoutError: se venció el deadline
    - DatabaseError: resto de fallas del store (se propaga, termina en 500)

Cache:
    - Nunca afecta la corrección: cualquier fallo se loguea y se ignora.
    - asyncio.CancelledError NO se atrapa.
===============================================================================
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

from ..crosscutting.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    EmailExistsError,
    InvalidCredentialsError,
    OperationTimeoutError,
    UserNotFoundError,
    ValidationFailedError,
)
from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_user_cache_error
from ..domain.cache import UserCachePort
from ..domain.entities import (
    AccessToken,
    NewUser,
    UserPublicView,
    UserRole,
    UserUpdate,
)
from ..domain.repositories import UserRepository
from ..domain.services import PasswordHasherPort, TokenServicePort
from ..domain.validation import (
    normalize_email,
    validate_new_user,
    validate_user_update,
)

T = TypeVar("T")

DEFAULT_OPERATION_TIMEOUT_SECONDS = 10.0
DEFAULT_CACHE_TTL_SECONDS = 3600


class UserService:
    """
    Application Service: orquesta el ciclo de vida de usuarios.

    Todas las operaciones públicas aceptan `timeout` (segundos). None usa el
    deadline por defecto configurado.
    """

    def __init__(
        self,
        *,
        repository: UserRepository,
        cache: UserCachePort,
        hasher: PasswordHasherPort,
        tokens: TokenServicePort,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
        default_timeout: float = DEFAULT_OPERATION_TIMEOUT_SECONDS,
    ) -> None:
        self._users = repository
        self._cache = cache
        self._hasher = hasher
        self._tokens = tokens
        self._cache_ttl_seconds = cache_ttl_seconds
        self._default_timeout = default_timeout

    # =========================================================================
    # Helpers: deadline + cache best-effort + hashing
    # =========================================================================
    async def _with_deadline(
        self, operation: str, work: Awaitable[T], timeout: float | None
    ) -> T:
        seconds = self._default_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(work, timeout=seconds)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Operación excedió el deadline",
                extra={"operation": operation, "timeout_seconds": seconds},
            )
            raise OperationTimeoutError(original_error=exc) from exc

    async def _cache_get(self, user_id: int) -> UserPublicView | None:
        try:
            return await self._cache.get(user_id)
        except Exception as exc:
            self._log_cache_failure("get", user_id, exc)
            return None

    async def _cache_set(self, view: UserPublicView) -> None:
        try:
            await self._cache.set(view.id, view, self._cache_ttl_seconds)
        except Exception as exc:
            self._log_cache_failure("set", view.id, exc)

    async def _cache_invalidate(self, user_id: int) -> None:
        try:
            await self._cache.invalidate(user_id)
        except Exception as exc:
            self._log_cache_failure("invalidate", user_id, exc)

    @staticmethod
    def _log_cache_failure(op: str, user_id: int, exc: Exception) -> None:
        record_user_cache_error()
        logger.warning(
            "Cache de usuarios falló; se ignora",
            extra={"op": op, "user_id": user_id, "error": str(exc)},
        )

    async def _hash(self, plaintext: str) -> str:
        return await asyncio.to_thread(self._hasher.hash, plaintext)

    async def _verify(self, plaintext: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self._hasher.verify, plaintext, password_hash)

    # =========================================================================
    # Operaciones públicas
    # =========================================================================
    async def create(
        self, cmd: NewUser, *, timeout: float | None = None
    ) -> UserPublicView:
        """Registra un usuario nuevo y devuelve su vista pública."""
        errors = validate_new_user(cmd)
        if errors:
            raise ValidationFailedError(errors)
        return await self._with_deadline("create", self._create(cmd), timeout)

    async def _create(self, cmd: NewUser) -> UserPublicView:
        email = normalize_email(cmd.email)

        if await self._users.get_by_email(email) is not None:
            raise EmailExistsError()

        password_hash = await self._hash(cmd.password)
        try:
            user = await self._users.create(
                email=email,
                password_hash=password_hash,
                name=cmd.name.strip(),
                role=UserRole(cmd.role),
            )
        except DuplicateEmailError as exc:
            # Dos altas concurrentes pasaron el pre-check; el índice decide.
            raise EmailExistsError(original_error=exc) from exc

        logger.info("Usuario creado", extra={"user_id": user.id, "role": user.role.value})
        return user.to_public_view()

    async def get_by_id(
        self, user_id: int, *, timeout: float | None = None
    ) -> UserPublicView:
        """Lookup cache-aside: hit => se devuelve tal cual; miss => store + set."""
        return await self._with_deadline("get_by_id", self._get_by_id(user_id), timeout)

    async def _get_by_id(self, user_id: int) -> UserPublicView:
        cached = await self._cache_get(user_id)
        if cached is not None:
            return cached

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()

        view = user.to_public_view()
        await self._cache_set(view)
        return view

    async def get_by_email(
        self, email: str, *, timeout: float | None = None
    ) -> UserPublicView:
        return await self._with_deadline(
            "get_by_email", self._get_by_email(email), timeout
        )

    async def _get_by_email(self, email: str) -> UserPublicView:
        user = await self._users.get_by_email(normalize_email(email))
        if user is None:
            raise UserNotFoundError()
        return user.to_public_view()

    async def update(
        self, cmd: UserUpdate, *, timeout: float | None = None
    ) -> UserPublicView:
        """
        Reemplaza el registro completo.

        Un password vacío o None conserva el hash almacenado.
        """
        errors = validate_user_update(cmd)
        if errors:
            raise ValidationFailedError(errors)
        return await self._with_deadline("update", self._update(cmd), timeout)

    async def _update(self, cmd: UserUpdate) -> UserPublicView:
        password_hash = await self._hash(cmd.password) if cmd.password else None

        try:
            user = await self._users.update(
                cmd.id,
                email=normalize_email(cmd.email),
                name=cmd.name.strip(),
                role=UserRole(cmd.role),
                password_hash=password_hash,
            )
        except DuplicateEmailError as exc:
            raise EmailExistsError(original_error=exc) from exc

        if user is None:
            raise UserNotFoundError()

        await self._cache_invalidate(cmd.id)
        return user.to_public_view()

    async def delete(self, user_id: int, *, timeout: float | None = None) -> None:
        await self._with_deadline("delete", self._delete(user_id), timeout)

    async def _delete(self, user_id: int) -> None:
        if not await self._users.delete(user_id):
            raise UserNotFoundError()
        await self._cache_invalidate(user_id)
        logger.info("Usuario borrado", extra={"user_id": user_id})

    async def list(
        self, *, offset: int, limit: int, timeout: float | None = None
    ) -> list[UserPublicView]:
        """Pass-through al store; los límites ya vienen acotados por el caller."""
        users = await self._with_deadline(
            "list", self._users.list(offset=offset, limit=limit), timeout
        )
        return [user.to_public_view() for user in users]

    async def login(
        self, email: str, password: str, *, timeout: float | None = None
    ) -> AccessToken:
        """
        Valida credenciales y emite un access token.

        Email inexistente, password incorrecto y falla del store colapsan en
        InvalidCredentialsError.
        """
        return await self._with_deadline("login", self._login(email, password), timeout)

    async def _login(self, email: str, password: str) -> AccessToken:
        normalized = normalize_email(email)
        if not normalized or not password:
            raise InvalidCredentialsError()

        try:
            user = await self._users.get_by_email(normalized)
        except DatabaseError as exc:
            logger.warning("Login: lookup falló", extra={"error": str(exc)})
            raise InvalidCredentialsError() from exc

        if user is None or not await self._verify(password, user.password_hash):
            raise InvalidCredentialsError()

        return self._tokens.mint(user.id, user.role)
