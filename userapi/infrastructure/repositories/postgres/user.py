"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/user.py
============================================================
Class: PostgresUserRepository

Responsibilities:
  - Implementar UserRepository contra la tabla `users` (contrato con
    migraciones, ver alembic/versions/001_users.py).
  - Ejecutar SQL parametrizado (psycopg 3, async).
  - Mapear filas crudas -> entidad de dominio `User` y validar `UserRole`.
  - Traducir la violación del índice único de email a DuplicateEmailError.
  - Exponer el resto de los fallos vía `DatabaseError` con logging estructurado.

Collaborators:
  - psycopg_pool.AsyncConnectionPool (inyectado por el container)
  - domain.entities.User / UserRole
  - crosscutting.logger.logger (logs)
  - crosscutting.exceptions.DatabaseError / DuplicateEmailError

Constraints / Notes:
  - Repositorio puro: NO valida ni normaliza (eso es del servicio).
  - Retorna None cuando no existe el recurso (no exception por “not found”).
  - Filas con deleted_at no nulo son invisibles para todas las operaciones.
  - Orden estable en listados: id ASC.
============================================================
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg
from psycopg import errors as pg_errors
from psycopg_pool import AsyncConnectionPool

from ....crosscutting.exceptions import DatabaseError, DuplicateEmailError
from ....crosscutting.logger import logger
from ....domain.entities import User, UserRole

# ============================================================
# Constantes y contratos de SQL
# ============================================================
# R: Lista explícita de columnas para mantener el contrato estable con migraciones.
_USER_COLUMNS = (
    "id, email, password_hash, name, role, created_at, updated_at, deleted_at"
)

_NOT_DELETED = "deleted_at IS NULL"


# ============================================================
# Helpers internos: mapping
# ============================================================
def _row_to_user(row: tuple) -> User:
    """
    Convierte una fila de `users` a entidad de dominio `User`.

    Política:
    - Role casting estricto: si el valor no matchea el enum -> DatabaseError.
    """
    try:
        role = UserRole(row[4])
    except ValueError as exc:
        raise DatabaseError(f"Invalid user role in database: {row[4]}") from exc

    return User(
        id=row[0],
        email=row[1],
        password_hash=row[2],
        name=row[3],
        role=role,
        created_at=row[5],
        updated_at=row[6],
        deleted_at=row[7],
    )


class PostgresUserRepository:
    """
    Repositorio de usuarios sobre PostgreSQL.

    Modelo mental:
    - Cada operación toma una conexión del pool; el context manager del pool
      hace commit al salir sin error y rollback si hubo excepción.
    - Una operación == una sentencia (no hay transacciones multi-statement).
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    # =========================================================
    # Helpers de ejecución
    # =========================================================
    async def _fetchone(
        self,
        *,
        query: str,
        params: Iterable[object],
        log_msg: str,
        log_extra: dict[str, object],
    ) -> tuple | None:
        """
        Ejecuta una sentencia y devuelve la primera fila.

        - UniqueViolation -> DuplicateEmailError (el único índice único es email).
        - Cualquier otro error del driver/pool -> DatabaseError.
        """
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return await cur.fetchone()
        except pg_errors.UniqueViolation as exc:
            logger.info(log_msg, extra={**log_extra, "error": "unique_violation"})
            raise DuplicateEmailError(original_error=exc) from exc
        except psycopg.Error as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    async def _fetchall(
        self,
        *,
        query: str,
        params: Iterable[object] = (),
        log_msg: str,
        log_extra: dict[str, object],
    ) -> list[tuple]:
        try:
            async with self._pool.connection() as conn:
                cur = await conn.execute(query, tuple(params))
                return await cur.fetchall()
        except psycopg.Error as exc:
            logger.exception(log_msg, extra={**log_extra, "error": str(exc)})
            raise DatabaseError(f"{log_msg}: {exc}", original_error=exc) from exc

    # =========================================================
    # Escritura
    # =========================================================
    async def create(
        self, *, email: str, password_hash: str, name: str, role: UserRole
    ) -> User:
        row = await self._fetchone(
            query=f"""
                INSERT INTO users (email, password_hash, name, role)
                VALUES (%s, %s, %s, %s)
                RETURNING {_USER_COLUMNS}
            """,
            params=(email, password_hash, name, UserRole(role).value),
            log_msg="PostgresUserRepository: create failed",
            log_extra={"email": email, "role": UserRole(role).value},
        )
        if not row:
            raise DatabaseError("PostgresUserRepository: create failed (no row returned)")
        return _row_to_user(row)

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
        Reemplazo completo del registro.

        password_hash=None conserva el hash almacenado (COALESCE).
        """
        row = await self._fetchone(
            query=f"""
                UPDATE users
                SET email = %s,
                    name = %s,
                    role = %s,
                    password_hash = COALESCE(%s, password_hash),
                    updated_at = now()
                WHERE id = %s AND {_NOT_DELETED}
                RETURNING {_USER_COLUMNS}
            """,
            params=(email, name, UserRole(role).value, password_hash, user_id),
            log_msg="PostgresUserRepository: update failed",
            log_extra={"user_id": user_id},
        )
        return _row_to_user(row) if row else None

    async def delete(self, user_id: int) -> bool:
        row = await self._fetchone(
            query=f"""
                UPDATE users
                SET deleted_at = now(), updated_at = now()
                WHERE id = %s AND {_NOT_DELETED}
                RETURNING id
            """,
            params=(user_id,),
            log_msg="PostgresUserRepository: delete failed",
            log_extra={"user_id": user_id},
        )
        return row is not None

    # =========================================================
    # Lectura
    # =========================================================
    async def get_by_id(self, user_id: int) -> Optional[User]:
        row = await self._fetchone(
            query=f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE id = %s AND {_NOT_DELETED}
            """,
            params=(user_id,),
            log_msg="PostgresUserRepository: get_by_id failed",
            log_extra={"user_id": user_id},
        )
        return _row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> Optional[User]:
        # lower(email) matchea el índice único parcial de la migración.
        row = await self._fetchone(
            query=f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE lower(email) = lower(%s) AND {_NOT_DELETED}
            """,
            params=(email,),
            log_msg="PostgresUserRepository: get_by_email failed",
            log_extra={},
        )
        return _row_to_user(row) if row else None

    async def list(self, *, offset: int, limit: int) -> list[User]:
        rows = await self._fetchall(
            query=f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE {_NOT_DELETED}
                ORDER BY id ASC
                LIMIT %s OFFSET %s
            """,
            params=(limit, offset),
            log_msg="PostgresUserRepository: list failed",
            log_extra={"limit": limit, "offset": offset},
        )
        return [_row_to_user(r) for r in rows]

    async def ping(self) -> bool:
        try:
            async with self._pool.connection() as conn:
                await conn.execute("SELECT 1")
            return True
        except psycopg.Error as exc:
            logger.warning("DB ping falló", extra={"error": str(exc)})
            return False
