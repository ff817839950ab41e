"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada estables de la capa de aplicación:
  - UserService: orquestación de registro, login, lectura, update, borrado
  - ensure_dev_admin: seed opcional de un admin para desarrollo
===============================================================================
"""

from .dev_seed_admin import ensure_dev_admin
from .user_service import UserService

__all__ = [
    "UserService",
    "ensure_dev_admin",
]
