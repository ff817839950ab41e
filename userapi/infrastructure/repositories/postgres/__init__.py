"""
PostgreSQL Repository Implementations.

Async implementations on psycopg 3.
"""

from .user import PostgresUserRepository

__all__ = [
    "PostgresUserRepository",
]
