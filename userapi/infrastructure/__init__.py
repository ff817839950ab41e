"""
===============================================================================
TARJETA CRC — infrastructure/__init__.py
===============================================================================

Módulo:
    Adaptadores de infraestructura (Postgres, Redis, memoria)

Reglas:
    - Implementa los puertos de domain/ sin que el dominio lo sepa.
    - Sin side effects al importar.
===============================================================================
"""
