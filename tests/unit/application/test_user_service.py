"""
Name: UserService Unit Tests

Responsibilities:
  - Registration: validation before I/O, normalization, email conflicts
  - Cache-aside reads and invalidation on update/delete
  - Login collapses every failure into InvalidCredentialsError
  - Cache failures never change results; cancellation propagates
  - Per-operation deadline -> OperationTimeoutError
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from userapi.application import UserService
from userapi.crosscutting.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    EmailExistsError,
    InvalidCredentialsError,
    OperationTimeoutError,
    UserNotFoundError,
    ValidationFailedError,
)
from userapi.domain.entities import NewUser, UserRole, UserUpdate
from userapi.infrastructure.cache import InMemoryUserCache
from userapi.infrastructure.repositories import InMemoryUserRepository

pytestmark = pytest.mark.unit


def _new_user(
    email: str = "ana@example.com",
    password: str = "secret1",
    name: str = "Ana",
    role: str = "user",
) -> NewUser:
    return NewUser(email=email, password=password, name=name, role=role)


def _service_with(user_service: UserService, **overrides) -> UserService:
    """Clona el servicio del fixture reemplazando colaboradores puntuales."""
    kwargs = {
        "repository": user_service._users,
        "cache": user_service._cache,
        "hasher": user_service._hasher,
        "tokens": user_service._tokens,
    }
    kwargs.update(overrides)
    return UserService(**kwargs)


class _CountingRepository(InMemoryUserRepository):
    def __init__(self) -> None:
        super().__init__()
        self.get_by_id_calls = 0

    async def get_by_id(self, user_id: int):
        self.get_by_id_calls += 1
        return await super().get_by_id(user_id)


class _BrokenCache:
    """Cache que falla en todo: el servicio debe comportarse igual."""

    async def get(self, user_id):
        raise RuntimeError("cache down")

    async def set(self, user_id, view, ttl_seconds):
        raise RuntimeError("cache down")

    async def invalidate(self, user_id):
        raise RuntimeError("cache down")

    async def ping(self):
        return False

    def stats(self):
        return {"backend": "broken"}


# ============================================================================
# create
# ============================================================================


@pytest.mark.asyncio
async def test_create_returns_public_view_with_normalized_email(user_service):
    view = await user_service.create(
        _new_user(email="  Ana@Example.COM ", name="  Ana  ")
    )

    assert view.id == 1
    assert view.email == "ana@example.com"
    assert view.name == "Ana"
    assert view.role == UserRole.USER
    assert not hasattr(view, "password_hash")


@pytest.mark.asyncio
async def test_create_stores_hash_not_plaintext(user_service, repository, hasher):
    await user_service.create(_new_user())

    stored = await repository.get_by_email("ana@example.com")

    assert stored.password_hash != "secret1"
    assert hasher.verify("secret1", stored.password_hash)


@pytest.mark.asyncio
async def test_create_duplicate_email_case_insensitive(user_service, repository):
    await user_service.create(_new_user(email="ana@example.com"))

    with pytest.raises(EmailExistsError):
        await user_service.create(
            _new_user(email="ANA@example.com", name="Otra", role="admin")
        )

    stored = await repository.list(offset=0, limit=100)
    assert len(stored) == 1
    assert stored[0].name == "Ana"
    assert stored[0].role == UserRole.USER


@pytest.mark.asyncio
async def test_create_race_on_unique_index_is_email_exists(user_service):
    repo = AsyncMock()
    repo.get_by_email.return_value = None
    repo.create.side_effect = DuplicateEmailError()
    service = _service_with(user_service, repository=repo)

    with pytest.raises(EmailExistsError):
        await service.create(_new_user())


@pytest.mark.asyncio
async def test_create_invalid_input_reports_every_field_without_io(user_service):
    repo = AsyncMock()
    service = _service_with(user_service, repository=repo)

    with pytest.raises(ValidationFailedError) as exc_info:
        await service.create(
            NewUser(email="not-an-email", password="123", name="  ", role="root")
        )

    fields = {e.field: e.message for e in exc_info.value.errors}
    assert fields == {
        "email": "Invalid email format",
        "password": "Should be at least 6 characters long",
        "name": "This field is required",
        "role": "Should be one of: admin user",
    }
    repo.get_by_email.assert_not_awaited()
    repo.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_then_get_by_id_roundtrip(user_service):
    created = await user_service.create(_new_user(role="admin"))

    fetched = await user_service.get_by_id(created.id)

    assert fetched == created


# ============================================================================
# get_by_id (cache-aside)
# ============================================================================


@pytest.mark.asyncio
async def test_get_by_id_second_read_served_from_cache(user_service):
    repo = _CountingRepository()
    service = _service_with(user_service, repository=repo)
    created = await service.create(_new_user())

    first = await service.get_by_id(created.id)
    second = await service.get_by_id(created.id)

    assert repo.get_by_id_calls == 1
    assert first == second == created


@pytest.mark.asyncio
async def test_get_by_id_missing_raises_not_found(user_service):
    with pytest.raises(UserNotFoundError):
        await user_service.get_by_id(404)


@pytest.mark.asyncio
async def test_get_by_id_works_when_cache_is_broken(user_service):
    service = _service_with(user_service, cache=_BrokenCache())
    created = await service.create(_new_user())

    assert (await service.get_by_id(created.id)).email == "ana@example.com"


@pytest.mark.asyncio
async def test_get_by_id_cache_cancellation_propagates(user_service):
    cache = AsyncMock()
    cache.get.side_effect = asyncio.CancelledError()
    service = _service_with(user_service, cache=cache)

    with pytest.raises(asyncio.CancelledError):
        await service.get_by_id(1)


@pytest.mark.asyncio
async def test_get_by_email_normalizes(user_service):
    created = await user_service.create(_new_user())

    found = await user_service.get_by_email("  ANA@example.com")

    assert found.id == created.id


# ============================================================================
# update / delete
# ============================================================================


@pytest.mark.asyncio
async def test_update_replaces_fields_and_invalidates_cache(user_service, cache):
    created = await user_service.create(_new_user())
    await user_service.get_by_id(created.id)  # populates cache

    updated = await user_service.update(
        UserUpdate(
            id=created.id, email="new@example.com", name="Nueva", role="admin"
        )
    )
    fetched = await user_service.get_by_id(created.id)

    assert updated.email == "new@example.com"
    assert updated.role == UserRole.ADMIN
    assert fetched == updated


@pytest.mark.asyncio
async def test_update_without_password_keeps_login(user_service):
    created = await user_service.create(_new_user())

    await user_service.update(
        UserUpdate(id=created.id, email=created.email, name="Ana B", role="user")
    )

    token = await user_service.login("ana@example.com", "secret1")
    assert token.token


@pytest.mark.asyncio
async def test_update_with_password_rotates_credentials(user_service):
    created = await user_service.create(_new_user())

    await user_service.update(
        UserUpdate(
            id=created.id,
            email=created.email,
            name=created.name,
            role="user",
            password="newpass1",
        )
    )

    assert (await user_service.login("ana@example.com", "newpass1")).token
    with pytest.raises(InvalidCredentialsError):
        await user_service.login("ana@example.com", "secret1")


@pytest.mark.asyncio
async def test_update_missing_user_raises_not_found(user_service):
    with pytest.raises(UserNotFoundError):
        await user_service.update(
            UserUpdate(id=99, email="x@example.com", name="X", role="user")
        )


@pytest.mark.asyncio
async def test_update_to_existing_email_raises_conflict(user_service):
    await user_service.create(_new_user(email="a@example.com"))
    other = await user_service.create(_new_user(email="b@example.com"))

    with pytest.raises(EmailExistsError):
        await user_service.update(
            UserUpdate(id=other.id, email="A@example.com", name="B", role="user")
        )


@pytest.mark.asyncio
async def test_update_short_password_is_validation_error(user_service):
    with pytest.raises(ValidationFailedError) as exc_info:
        await user_service.update(
            UserUpdate(
                id=1, email="a@example.com", name="A", role="user", password="123"
            )
        )
    assert [e.field for e in exc_info.value.errors] == ["password"]


@pytest.mark.asyncio
async def test_delete_hides_user_and_invalidates_cache(user_service):
    created = await user_service.create(_new_user())
    await user_service.get_by_id(created.id)  # populates cache

    await user_service.delete(created.id)

    with pytest.raises(UserNotFoundError):
        await user_service.get_by_id(created.id)
    with pytest.raises(UserNotFoundError):
        await user_service.delete(created.id)


@pytest.mark.asyncio
async def test_delete_with_broken_cache_still_succeeds(user_service):
    service = _service_with(user_service, cache=_BrokenCache())
    created = await service.create(_new_user())

    await service.delete(created.id)

    with pytest.raises(UserNotFoundError):
        await service.get_by_id(created.id)


# ============================================================================
# list
# ============================================================================


@pytest.mark.asyncio
async def test_list_returns_public_views_in_id_order(user_service):
    for i in range(3):
        await user_service.create(_new_user(email=f"u{i}@example.com"))

    views = await user_service.list(offset=1, limit=5)

    assert [v.id for v in views] == [2, 3]
    assert all(not hasattr(v, "password_hash") for v in views)


# ============================================================================
# login
# ============================================================================


@pytest.mark.asyncio
async def test_login_issues_token_with_user_claims(user_service, token_service):
    created = await user_service.create(_new_user(role="admin"))

    access = await user_service.login("ANA@example.com", "secret1")
    claims = token_service.validate(access.token)

    assert claims.user_id == created.id
    assert claims.role == UserRole.ADMIN
    assert access.expires_in == 60 * 60


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email,password",
    [
        ("ana@example.com", "wrong-password"),
        ("nobody@example.com", "secret1"),
        ("", "secret1"),
        ("ana@example.com", ""),
    ],
)
async def test_login_failures_are_indistinguishable(user_service, email, password):
    await user_service.create(_new_user())

    with pytest.raises(InvalidCredentialsError):
        await user_service.login(email, password)


@pytest.mark.asyncio
async def test_login_store_failure_is_invalid_credentials(user_service):
    repo = AsyncMock()
    repo.get_by_email.side_effect = DatabaseError("down")
    service = _service_with(user_service, repository=repo)

    with pytest.raises(InvalidCredentialsError):
        await service.login("ana@example.com", "secret1")


@pytest.mark.asyncio
async def test_login_deleted_user_is_rejected(user_service):
    created = await user_service.create(_new_user())
    await user_service.delete(created.id)

    with pytest.raises(InvalidCredentialsError):
        await user_service.login("ana@example.com", "secret1")


@pytest.mark.asyncio
async def test_login_with_corrupt_stored_hash_is_invalid_credentials(
    user_service, repository
):
    await repository.create(
        email="ana@example.com", password_hash="ñ", name="Ana", role=UserRole.USER
    )

    with pytest.raises(InvalidCredentialsError):
        await user_service.login("ana@example.com", "secret1")


# ============================================================================
# deadlines / store errors
# ============================================================================


class _SlowRepository(InMemoryUserRepository):
    async def get_by_id(self, user_id: int):
        await asyncio.sleep(1)
        return await super().get_by_id(user_id)


@pytest.mark.asyncio
async def test_operation_exceeding_deadline_times_out(user_service):
    service = _service_with(
        user_service, repository=_SlowRepository(), cache=InMemoryUserCache()
    )

    with pytest.raises(OperationTimeoutError):
        await service.get_by_id(1, timeout=0.01)


@pytest.mark.asyncio
async def test_store_failure_propagates_as_database_error(user_service):
    repo = AsyncMock()
    repo.list.side_effect = DatabaseError("down")
    service = _service_with(user_service, repository=repo)

    with pytest.raises(DatabaseError):
        await service.list(offset=0, limit=10)
