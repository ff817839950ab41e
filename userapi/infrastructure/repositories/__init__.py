# infrastructure/repositories/__init__.py
"""
============================================================
TARJETA CRC — infrastructure/repositories/__init__.py
============================================================
Module: infrastructure.repositories (Public Export Surface)

Responsibilities:
  - Exponer una API pública y estable de repositorios de infraestructura.
  - Mantener un orden lógico (Postgres primero, luego InMemory).

Policy:
  - Este archivo NO contiene lógica de negocio.
  - Solo re-exporta símbolos; no debe tener side effects.
============================================================
"""

from .in_memory import InMemoryUserRepository
from .postgres import PostgresUserRepository

__all__ = [
    "PostgresUserRepository",
    "InMemoryUserRepository",
]
