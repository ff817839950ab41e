"""
In-memory Repository Implementations.

Used by unit tests and local development without PostgreSQL.
"""

from .user import InMemoryUserRepository

__all__ = [
    "InMemoryUserRepository",
]
