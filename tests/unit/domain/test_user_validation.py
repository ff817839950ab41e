"""
Name: User Validation Rules Tests

Responsibilities:
  - Field rules for NewUser / UserUpdate
  - All errors reported together, one per field
"""

import pytest

from userapi.domain.entities import NewUser, UserUpdate
from userapi.domain.validation import (
    MSG_INVALID_EMAIL,
    MSG_REQUIRED,
    normalize_email,
    validate_new_user,
    validate_user_update,
)

pytestmark = pytest.mark.unit


def _errors(cmd) -> dict[str, str]:
    validator = validate_new_user if isinstance(cmd, NewUser) else validate_user_update
    return {e.field: e.message for e in validator(cmd)}


def test_valid_new_user_has_no_errors():
    cmd = NewUser(email="a@example.com", password="secret1", name="A", role="user")

    assert validate_new_user(cmd) == []


def test_all_missing_fields_reported_together():
    cmd = NewUser(email="", password="", name="", role="")

    assert _errors(cmd) == {
        "email": MSG_REQUIRED,
        "password": MSG_REQUIRED,
        "name": MSG_REQUIRED,
        "role": MSG_REQUIRED,
    }


@pytest.mark.parametrize("email", ["plainaddress", "a@", "@example.com", "a b@x.com"])
def test_malformed_email(email: str):
    cmd = NewUser(email=email, password="secret1", name="A", role="user")

    assert _errors(cmd) == {"email": MSG_INVALID_EMAIL}


def test_password_boundary():
    short = NewUser(email="a@example.com", password="12345", name="A", role="user")
    exact = NewUser(email="a@example.com", password="123456", name="A", role="user")

    assert _errors(short) == {"password": "Should be at least 6 characters long"}
    assert _errors(exact) == {}


def test_unknown_role():
    cmd = NewUser(email="a@example.com", password="secret1", name="A", role="owner")

    assert _errors(cmd) == {"role": "Should be one of: admin user"}


def test_update_password_is_optional():
    cmd = UserUpdate(id=1, email="a@example.com", name="A", role="admin")

    assert validate_user_update(cmd) == []


def test_update_empty_password_is_allowed():
    cmd = UserUpdate(id=1, email="a@example.com", name="A", role="admin", password="")

    assert validate_user_update(cmd) == []


def test_normalize_email():
    assert normalize_email("  A@Example.COM ") == "a@example.com"
    assert normalize_email(None) == ""
