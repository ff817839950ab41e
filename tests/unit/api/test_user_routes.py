"""
Name: User Routes Tests

Responsibilities:
  - Status mapping for register/login/CRUD (201/200/400/401/403/404/409)
  - Claims-based authorization (bearer, self-or-admin, admin-only)
  - Pagination clamping
  - Problem+json error shape with per-field errors

Notes:
  - In-memory container injected via create_app(container=...)
"""

import pytest
from fastapi.testclient import TestClient

from userapi.api.user_routes import clamp_pagination

pytestmark = pytest.mark.unit

API = "/api/v1"


def _register(client: TestClient, email: str, role: str = "user", password="secret1"):
    res = client.post(
        f"{API}/users",
        json={"email": email, "password": password, "name": "Test", "role": role},
    )
    assert res.status_code == 201, res.text
    return res.json()


def _login(client: TestClient, email: str, password: str = "secret1") -> dict:
    res = client.post(f"{API}/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def admin_headers(client: TestClient) -> dict:
    _register(client, "admin@example.com", role="admin")
    return _login(client, "admin@example.com")


# ============================================================================
# Registro / login
# ============================================================================


def test_register_returns_201_with_public_fields(client: TestClient):
    body = _register(client, "Ana@Example.com")

    assert set(body) == {"id", "created_at", "email", "name", "role"}
    assert body["email"] == "ana@example.com"
    assert body["role"] == "user"


def test_register_duplicate_email_is_409(client: TestClient):
    _register(client, "ana@example.com")

    res = client.post(
        f"{API}/users",
        json={
            "email": "ANA@example.com",
            "password": "secret1",
            "name": "Otra",
            "role": "user",
        },
    )

    assert res.status_code == 409
    assert res.headers["content-type"].startswith("application/problem+json")
    assert res.json()["code"] == "CONFLICT"


def test_register_invalid_fields_is_400_with_errors(client: TestClient):
    res = client.post(
        f"{API}/users",
        json={"email": "nope", "password": "1", "name": "", "role": "owner"},
    )

    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert {e["field"]: e["message"] for e in body["errors"]} == {
        "email": "Invalid email format",
        "password": "Should be at least 6 characters long",
        "name": "This field is required",
        "role": "Should be one of: admin user",
    }


def test_register_missing_fields_is_400_required(client: TestClient):
    res = client.post(f"{API}/users", json={"email": "a@example.com"})

    assert res.status_code == 400
    errors = {e["field"]: e["message"] for e in res.json()["errors"]}
    assert errors == {
        "password": "This field is required",
        "name": "This field is required",
        "role": "This field is required",
    }


def test_login_returns_bearer_token(client: TestClient):
    _register(client, "ana@example.com")

    res = client.post(
        f"{API}/login", json={"email": "ana@example.com", "password": "secret1"}
    )

    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 3600
    assert body["access_token"]


@pytest.mark.parametrize(
    "email,password",
    [("ana@example.com", "wrong-pass"), ("ghost@example.com", "secret1")],
)
def test_login_failure_is_401_with_same_body(client: TestClient, email, password):
    _register(client, "ana@example.com")

    res = client.post(f"{API}/login", json={"email": email, "password": password})

    assert res.status_code == 401
    assert res.headers["WWW-Authenticate"] == "Bearer"
    assert res.json()["detail"] == "Credenciales inválidas."


# ============================================================================
# Autenticación / autorización
# ============================================================================


def test_protected_route_without_token_is_401(client: TestClient):
    res = client.get(f"{API}/users")

    assert res.status_code == 401
    assert res.json()["code"] == "UNAUTHORIZED"


def test_protected_route_with_garbage_token_is_401(client: TestClient):
    res = client.get(f"{API}/users", headers={"Authorization": "Bearer nope"})

    assert res.status_code == 401


def test_me_returns_claims(client: TestClient):
    created = _register(client, "ana@example.com")
    headers = _login(client, "ana@example.com")

    res = client.get(f"{API}/auth/me", headers=headers)

    assert res.status_code == 200
    assert res.json()["user_id"] == created["id"]
    assert res.json()["role"] == "user"


def test_admin_ping_requires_admin(client: TestClient, admin_headers):
    _register(client, "ana@example.com")
    user_headers = _login(client, "ana@example.com")

    assert client.get(f"{API}/admin/ping", headers=admin_headers).json() == {
        "ok": True
    }
    denied = client.get(f"{API}/admin/ping", headers=user_headers)
    assert denied.status_code == 403
    assert denied.json()["code"] == "FORBIDDEN"


# ============================================================================
# CRUD
# ============================================================================


def test_get_user_by_id(client: TestClient):
    created = _register(client, "ana@example.com")
    headers = _login(client, "ana@example.com")

    res = client.get(f"{API}/users/{created['id']}", headers=headers)

    assert res.status_code == 200
    assert res.json() == created


def test_get_missing_user_is_404(client: TestClient, admin_headers):
    res = client.get(f"{API}/users/999", headers=admin_headers)

    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"


@pytest.mark.parametrize("bad_id", ["abc", "0"])
def test_get_user_with_bad_id_is_400(client: TestClient, admin_headers, bad_id):
    res = client.get(f"{API}/users/{bad_id}", headers=admin_headers)

    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "user_id"


def test_user_can_update_self(client: TestClient):
    created = _register(client, "ana@example.com")
    headers = _login(client, "ana@example.com")

    res = client.put(
        f"{API}/users/{created['id']}",
        headers=headers,
        json={"email": "ana@example.com", "name": "Ana María", "role": "user"},
    )

    assert res.status_code == 200
    assert res.json()["name"] == "Ana María"
    # sin password en el body => conserva el actual
    _login(client, "ana@example.com", "secret1")


def test_user_cannot_update_someone_else(client: TestClient, admin_headers):
    _register(client, "ana@example.com")
    headers = _login(client, "ana@example.com")

    res = client.put(
        f"{API}/users/1",
        headers=headers,
        json={"email": "admin@example.com", "name": "X", "role": "admin"},
    )

    assert res.status_code == 403


def test_user_cannot_promote_self(client: TestClient):
    created = _register(client, "ana@example.com")
    headers = _login(client, "ana@example.com")

    res = client.put(
        f"{API}/users/{created['id']}",
        headers=headers,
        json={"email": "ana@example.com", "name": "Ana", "role": "admin"},
    )

    assert res.status_code == 403


def test_admin_updates_other_user_password(client: TestClient, admin_headers):
    created = _register(client, "ana@example.com")

    res = client.put(
        f"{API}/users/{created['id']}",
        headers=admin_headers,
        json={
            "email": "ana@example.com",
            "name": "Ana",
            "role": "user",
            "password": "rotated1",
        },
    )

    assert res.status_code == 200
    _login(client, "ana@example.com", "rotated1")


def test_update_missing_user_is_404(client: TestClient, admin_headers):
    res = client.put(
        f"{API}/users/999",
        headers=admin_headers,
        json={"email": "x@example.com", "name": "X", "role": "user"},
    )

    assert res.status_code == 404


def test_update_to_taken_email_is_409(client: TestClient, admin_headers):
    created = _register(client, "ana@example.com")

    res = client.put(
        f"{API}/users/{created['id']}",
        headers=admin_headers,
        json={"email": "admin@example.com", "name": "Ana", "role": "user"},
    )

    assert res.status_code == 409


def test_delete_requires_admin(client: TestClient, admin_headers):
    created = _register(client, "ana@example.com")
    user_headers = _login(client, "ana@example.com")

    denied = client.delete(f"{API}/users/{created['id']}", headers=user_headers)
    assert denied.status_code == 403

    res = client.delete(f"{API}/users/{created['id']}", headers=admin_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "user deleted successfully"}

    again = client.delete(f"{API}/users/{created['id']}", headers=admin_headers)
    assert again.status_code == 404
    assert client.get(
        f"{API}/users/{created['id']}", headers=admin_headers
    ).status_code == 404


# ============================================================================
# Listado / paginación
# ============================================================================


def test_list_users_paginates_in_id_order(client: TestClient, admin_headers):
    for i in range(4):
        _register(client, f"u{i}@example.com")

    res = client.get(f"{API}/users?page=2&limit=2", headers=admin_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["page"] == 2
    assert body["limit"] == 2
    assert [u["email"] for u in body["users"]] == [
        "u1@example.com",
        "u2@example.com",
    ]


def test_list_users_clamps_out_of_range_values(client: TestClient, admin_headers):
    res = client.get(f"{API}/users?page=0&limit=1000", headers=admin_headers)

    assert res.status_code == 200
    assert res.json()["page"] == 1
    assert res.json()["limit"] == 100


def test_list_users_non_integer_page_is_400(client: TestClient, admin_headers):
    res = client.get(f"{API}/users?page=abc", headers=admin_headers)

    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "page"


@pytest.mark.parametrize(
    "page,limit,expected",
    [
        (1, 10, (1, 10)),
        (0, 10, (1, 10)),
        (-5, 0, (1, 10)),
        (3, -1, (3, 10)),
        (2, 101, (2, 100)),
        (2, 100, (2, 100)),
    ],
)
def test_clamp_pagination(page, limit, expected):
    assert clamp_pagination(page, limit) == expected
