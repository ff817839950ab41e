"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure the test environment (APP_ENV=test, no .env file)
  - Provide in-memory store/cache and fast Argon2 settings
  - Build UserService / container / TestClient for unit tests

Collaborators:
  - pytest / pytest-asyncio
  - userapi.container: build_in_memory_container
  - fastapi.testclient.TestClient

Notes:
  - Argon2 runs with a minimal work factor so the suite stays fast
  - Each test gets fresh adapters (function scope)
"""

import os

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_JSON", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from userapi.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from userapi.application import UserService  # noqa: E402
from userapi.container import Container, build_in_memory_container  # noqa: E402
from userapi.crosscutting.config import Settings  # noqa: E402
from userapi.identity.passwords import Argon2PasswordHasher  # noqa: E402
from userapi.identity.tokens import JwtTokenService  # noqa: E402
from userapi.infrastructure.cache import InMemoryUserCache  # noqa: E402
from userapi.infrastructure.repositories import InMemoryUserRepository  # noqa: E402

TEST_JWT_SECRET = "test-secret-with-enough-length-for-hs256"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


# ============================================================================
# Settings / adapters
# ============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        jwt_secret=TEST_JWT_SECRET,
        jwt_access_ttl_minutes=60,
        password_time_cost=1,
        password_memory_cost=1024,
        password_parallelism=1,
        user_cache_ttl_seconds=3600,
        operation_timeout_seconds=5.0,
        log_json=False,
    )


@pytest.fixture
def repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def cache() -> InMemoryUserCache:
    return InMemoryUserCache()


@pytest.fixture
def hasher(settings: Settings) -> Argon2PasswordHasher:
    return Argon2PasswordHasher.from_settings(settings)


@pytest.fixture
def token_service(settings: Settings) -> JwtTokenService:
    return JwtTokenService.from_settings(settings)


@pytest.fixture
def user_service(
    settings: Settings,
    repository: InMemoryUserRepository,
    cache: InMemoryUserCache,
    hasher: Argon2PasswordHasher,
    token_service: JwtTokenService,
) -> UserService:
    return UserService(
        repository=repository,
        cache=cache,
        hasher=hasher,
        tokens=token_service,
        cache_ttl_seconds=settings.user_cache_ttl_seconds,
        default_timeout=settings.operation_timeout_seconds,
    )


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def container(
    settings: Settings,
    repository: InMemoryUserRepository,
    cache: InMemoryUserCache,
    hasher: Argon2PasswordHasher,
    token_service: JwtTokenService,
) -> Container:
    return build_in_memory_container(
        settings,
        repository=repository,
        cache=cache,
        hasher=hasher,
        token_service=token_service,
    )


@pytest.fixture
def client(container: Container) -> TestClient:
    from userapi.api.main import create_app

    return TestClient(create_app(container=container))
