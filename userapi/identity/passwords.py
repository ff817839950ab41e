"""
===============================================================================
TARJETA CRC — identity/passwords.py
===============================================================================

Módulo:
    Hasher de credenciales (Argon2id)

Responsabilidades:
    - Hashear passwords con un factor de trabajo fijo y configurado.
    - Verificar password vs hash almacenado.

Colaboradores:
    - argon2-cffi (PasswordHasher)
    - crosscutting.config: time_cost / memory_cost / parallelism
    - application/user_service.py: lo invoca vía asyncio.to_thread

Decisiones:
    - verify() devuelve False tanto ante mismatch como ante un hash
      malformado: nunca lanza por eso.
    - Son operaciones CPU-bound y síncronas; el servicio decide en qué hilo
      correrlas.
===============================================================================
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError

from ..crosscutting.config import Settings


class Argon2PasswordHasher:
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      Argon2PasswordHasher

    Responsabilidades:
      - hash(plaintext) -> str (PHC string, incluye salt y parámetros)
      - verify(plaintext, hash) -> bool
    ----------------------------------------------------------------------------
    """

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 64 * 1024,
        parallelism: int = 4,
    ):
        self._hasher = PasswordHasher(
            time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Argon2PasswordHasher":
        return cls(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
            parallelism=settings.password_parallelism,
        )

    def hash(self, plaintext: str) -> str:
        return self._hasher.hash(plaintext)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        try:
            return self._hasher.verify(password_hash, plaintext)
        except (VerificationError, ValueError):
            # ValueError cubre InvalidHashError y hashes no ASCII.
            return False
