"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/user.py
============================================================
Class: InMemoryUserRepository

Responsibilities:
  - Almacenar usuarios en memoria (tests / local dev).
  - Replicar la semántica del repo Postgres:
      - ids monotónicos asignados por el store
      - email único (case-insensitive) entre usuarios no borrados
      - soft delete (deleted_at) invisible para todas las operaciones
      - listado en orden de id ascendente

Collaborators:
  - domain.entities.User / UserRole
  - domain.repositories.UserRepository (contrato a implementar)
  - crosscutting.exceptions.DuplicateEmailError

Constraints / Notes:
  - Acceso protegido por Lock (sin awaits dentro de la sección crítica).
  - User es inmutable: las actualizaciones reemplazan la instancia.
============================================================
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Optional

from ....crosscutting.exceptions import DuplicateEmailError
from ....domain.entities import User, UserRole


class InMemoryUserRepository:
    """
    Repositorio in-memory, thread-safe, para usuarios.

    Modelo mental:
    - _users es la "tabla" en memoria (id -> User), incluyendo borrados.
    - _next_id emula el BIGSERIAL de Postgres.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._users: Dict[int, User] = {}
        self._next_id = 1

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _email_taken(self, email: str, *, exclude_id: int | None = None) -> bool:
        target = email.lower()
        return any(
            u.email.lower() == target and not u.is_deleted and u.id != exclude_id
            for u in self._users.values()
        )

    def _live(self, user_id: int) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None or user.is_deleted:
            return None
        return user

    # =========================================================
    # Escritura
    # =========================================================
    async def create(
        self, *, email: str, password_hash: str, name: str, role: UserRole
    ) -> User:
        with self._lock:
            if self._email_taken(email):
                raise DuplicateEmailError()
            now = self._now()
            user = User(
                id=self._next_id,
                email=email,
                password_hash=password_hash,
                name=name,
                role=UserRole(role),
                created_at=now,
                updated_at=now,
            )
            self._users[user.id] = user
            self._next_id += 1
            return user

    async def update(
        self,
        user_id: int,
        *,
        email: str,
        name: str,
        role: UserRole,
        password_hash: Optional[str] = None,
    ) -> Optional[User]:
        with self._lock:
            current = self._live(user_id)
            if current is None:
                return None
            if self._email_taken(email, exclude_id=user_id):
                raise DuplicateEmailError()
            updated = replace(
                current,
                email=email,
                name=name,
                role=UserRole(role),
                password_hash=password_hash
                if password_hash is not None
                else current.password_hash,
                updated_at=self._now(),
            )
            self._users[user_id] = updated
            return updated

    async def delete(self, user_id: int) -> bool:
        with self._lock:
            current = self._live(user_id)
            if current is None:
                return False
            now = self._now()
            self._users[user_id] = replace(current, deleted_at=now, updated_at=now)
            return True

    # =========================================================
    # Lectura
    # =========================================================
    async def get_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._live(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        target = (email or "").lower()
        with self._lock:
            for user in self._users.values():
                if user.email.lower() == target and not user.is_deleted:
                    return user
        return None

    async def list(self, *, offset: int, limit: int) -> list[User]:
        with self._lock:
            live = sorted(
                (u for u in self._users.values() if not u.is_deleted),
                key=lambda u: u.id,
            )
        return live[offset : offset + limit]

    async def ping(self) -> bool:
        return True
