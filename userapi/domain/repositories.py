"""
CRC — domain/repositories.py

Name
- Domain Repository Interfaces (Protocols)

Responsibilities
- Define the persistence contract for user records (port).
- Keep application/domain independent from infrastructure (PostgreSQL, in-memory).
- Enable dependency inversion and straightforward unit testing.

Collaborators
- domain.entities: User, UserRole
- infrastructure.repositories: postgres / in_memory implementations

Constraints
- Pure interfaces only: no side effects, no infrastructure imports, no SQL.
- Every operation excludes soft-deleted rows.
- Implementations raise DuplicateEmailError on email collisions and
  DatabaseError for any other store failure.
"""

from __future__ import annotations

from typing import Optional, Protocol

from .entities import User, UserRole


class UserRepository(Protocol):
    """
    R: Interface for user persistence.

    Implementations must provide:
      - Store-assigned, monotonically increasing ids
      - Email uniqueness among non-deleted users
      - Soft-delete lifecycle (deleted_at)
    """

    async def create(
        self, *, email: str, password_hash: str, name: str, role: UserRole
    ) -> User:
        """R: Insert a new user; raises DuplicateEmailError on collision."""
        ...

    async def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    async def get_by_email(self, email: str) -> Optional[User]:
        ...

    async def update(
        self,
        user_id: int,
        *,
        email: str,
        name: str,
        role: UserRole,
        password_hash: Optional[str] = None,
    ) -> Optional[User]:
        """
        R: Full-record replace.

        password_hash=None keeps the stored hash. Returns None when the user
        does not exist (or is soft-deleted).
        """
        ...

    async def delete(self, user_id: int) -> bool:
        """R: Soft delete. False when absent or already deleted."""
        ...

    async def list(self, *, offset: int, limit: int) -> list[User]:
        """R: Page of users in primary-key order."""
        ...

    async def ping(self) -> bool:
        ...
