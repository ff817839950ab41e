# =============================================================================
# FILE: application/dev_seed_admin.py
# =============================================================================
"""
===============================================================================
TASK: Dev Seed Admin
===============================================================================

Qué es:
    Asegura que exista un usuario admin para desarrollo cuando está configurado
    (DEV_SEED_ADMIN=1). Corre una vez en el lifespan de la API.

Seguridad:
    - Settings rechaza DEV_SEED_ADMIN en production (fail-fast al arrancar).
    - Acá se repite el guard para no depender de un único punto.

Patrones:
    - Idempotencia: si el email ya existe, no hace nada.
    - Reusa UserService (misma validación, normalización y hashing).

CRC:
    Component: ensure_dev_admin
    Responsibilities:
      - Validar guard de ambiente
      - Crear el admin si falta
    Collaborators:
      - UserService
      - Settings
===============================================================================
"""

from __future__ import annotations

from ..crosscutting.config import Settings
from ..crosscutting.exceptions import EmailExistsError, UserNotFoundError
from ..crosscutting.logger import logger
from ..domain.entities import NewUser, UserRole
from .user_service import UserService


async def ensure_dev_admin(settings: Settings, *, users: UserService) -> None:
    """
    Ensure a development admin user exists if configured.

    Behavior:
      - If disabled: no-op
      - If enabled: create the admin when missing; skip otherwise
    """
    if not settings.dev_seed_admin:
        return

    if settings.is_production():
        raise RuntimeError(
            "FATAL: DEV_SEED_ADMIN is enabled in production. "
            "Safety guard prevents seeding credentials."
        )

    email = (settings.dev_seed_admin_email or "").strip()
    if not email or not settings.dev_seed_admin_password:
        raise ValueError("Dev seed admin is enabled but email/password are empty")

    try:
        await users.get_by_email(email)
        logger.info("Dev seed admin: user exists; skipping", extra={"email": email})
        return
    except UserNotFoundError:
        pass

    try:
        await users.create(
            NewUser(
                email=email,
                password=settings.dev_seed_admin_password,
                name=settings.dev_seed_admin_name,
                role=UserRole.ADMIN.value,
            )
        )
    except EmailExistsError:
        # Otro worker lo creó entre el lookup y el insert.
        logger.info("Dev seed admin: user exists; skipping", extra={"email": email})
        return

    logger.info("Dev seed admin: user created", extra={"email": email})
