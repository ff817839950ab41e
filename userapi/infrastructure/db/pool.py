"""
===============================================================================
CRC CARD — infrastructure/db/pool.py
===============================================================================

Componente:
  Pool async de conexiones PostgreSQL

Responsabilidades:
  - Crear, abrir y cerrar el pool de conexiones.
  - Configurar cada conexión nueva: statement_timeout.

Colaboradores:
  - psycopg_pool.AsyncConnectionPool
  - container.py: crea el pool en el lifespan y lo cierra al apagar

Principios:
  - Sin singleton global: el dueño del pool es el container.
  - open() no espera a que la DB responda; /readyz informa el estado real.
===============================================================================
"""

from __future__ import annotations

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool

from ...crosscutting.logger import logger


def _make_configure(statement_timeout_ms: int):
    async def _configure_connection(conn: AsyncConnection) -> None:
        # Guardrail contra queries colgadas.
        if statement_timeout_ms > 0:
            await conn.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
            await conn.commit()

    return _configure_connection


async def open_pool(
    database_url: str,
    *,
    min_size: int,
    max_size: int,
    statement_timeout_ms: int = 0,
) -> AsyncConnectionPool:
    """Crea y abre el pool."""
    logger.info(
        "Inicializando pool DB",
        extra={"min_size": min_size, "max_size": max_size},
    )

    pool = AsyncConnectionPool(
        conninfo=database_url,
        min_size=min_size,
        max_size=max_size,
        configure=_make_configure(statement_timeout_ms),
        open=False,
    )
    await pool.open()

    logger.info(
        "Pool DB inicializado",
        extra={"min_size": min_size, "max_size": max_size},
    )
    return pool


async def close_pool(pool: AsyncConnectionPool | None) -> None:
    """Cierra el pool (tolera None)."""
    if pool is None:
        return
    logger.info("Cerrando pool DB")
    await pool.close()
    logger.info("Pool DB cerrado")
