"""
Name: Admin Bootstrap Script

Responsibilities:
  - Create the first admin user (idempotent)
  - Reuse UserService so validation, normalization and Argon2 hashing match
    the API exactly
  - Store user in PostgreSQL

Usage:
  DATABASE_URL=postgresql://... python scripts/create_admin.py --email a@x.com
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys

from userapi.application import UserService
from userapi.crosscutting.config import get_settings
from userapi.crosscutting.exceptions import (
    EmailExistsError,
    UserNotFoundError,
    ValidationFailedError,
)
from userapi.domain.entities import NewUser, UserRole
from userapi.identity.passwords import Argon2PasswordHasher
from userapi.identity.tokens import JwtTokenService
from userapi.infrastructure.cache import InMemoryUserCache
from userapi.infrastructure.db import close_pool, open_pool
from userapi.infrastructure.repositories import PostgresUserRepository


def _prompt_email() -> str:
    email = input("Email: ").strip().lower()
    if not email:
        raise SystemExit("Email is required.")
    return email


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if not password:
        raise SystemExit("Password is required.")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        raise SystemExit("Passwords do not match.")
    return password


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Create the first admin user (idempotent)."
    )
    parser.add_argument("--email", help="User email (will be normalized)")
    parser.add_argument(
        "--password",
        help="User password (omit to be prompted securely)",
    )
    parser.add_argument("--name", default="Admin", help="Display name")
    parser.add_argument(
        "--role",
        default=UserRole.ADMIN.value,
        choices=UserRole.values(),
        help="User role (default: admin)",
    )
    return parser.parse_args(argv)


async def _maybe_create_user(email: str, password: str, name: str, role: str) -> None:
    settings = get_settings()
    pool = await open_pool(
        settings.database_url,
        min_size=1,
        max_size=1,
        statement_timeout_ms=settings.db_statement_timeout_ms,
    )
    try:
        users = UserService(
            repository=PostgresUserRepository(pool),
            # Sin Redis: el alta no toca el cache.
            cache=InMemoryUserCache(max_size=1),
            hasher=Argon2PasswordHasher.from_settings(settings),
            tokens=JwtTokenService.from_settings(settings),
            default_timeout=settings.operation_timeout_seconds,
        )

        try:
            existing = await users.get_by_email(email)
            print(
                "User already exists: "
                f"id={existing.id} email={existing.email} role={existing.role.value}"
            )
            return
        except UserNotFoundError:
            pass

        try:
            created = await users.create(
                NewUser(email=email, password=password, name=name, role=role)
            )
        except ValidationFailedError as exc:
            details = ", ".join(f"{e.field}: {e.message}" for e in exc.errors)
            raise SystemExit(f"Invalid input: {details}") from exc
        except EmailExistsError:
            print(f"User already exists: email={email}")
            return

        print(f"Created user: id={created.id} email={created.email} role={role}")
    finally:
        await close_pool(pool)


def main() -> None:
    args = _parse_args()
    email = args.email.strip().lower() if args.email else _prompt_email()
    if not email:
        raise SystemExit("Email is required.")
    password = args.password or _prompt_password()
    asyncio.run(_maybe_create_user(email, password, args.name, args.role))


if __name__ == "__main__":
    main()
