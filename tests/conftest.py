"""Shared fixtures: an in-memory Mongo database and a seeded API client."""

import os

import pytest

# Must be set before any project module import
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_NAME", "team-corner-test")
os.environ.setdefault("INITIAL_ADMIN_EMAIL", "seed-admin@example.com")

import mongomock  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from auth import hash_password  # noqa: E402
from database import create_document  # noqa: E402

PASSWORD = "correct horse battery"


@pytest.fixture
def db():
    return mongomock.MongoClient()["team-corner-test"]


def _add_user(db, email, is_admin=False, is_member=False):
    return create_document(
        db,
        "user",
        {
            "first_name": email.split("@")[0].title(),
            "last_name": "Test",
            "email": email,
            "is_admin": is_admin,
            "is_member": is_member,
            "password": hash_password(PASSWORD),
        },
        tracking=False,
    )


@pytest.fixture
def users(db):
    """Ids of an admin, a member and a signed-up user with no roles."""
    return {
        "admin": _add_user(db, "admin@club.ie", is_admin=True, is_member=True),
        "member": _add_user(db, "member@club.ie", is_member=True),
        "other": _add_user(db, "other@club.ie", is_member=True),
        "guest": _add_user(db, "guest@club.ie"),
    }


@pytest.fixture
def client(db, users):
    from main import create_app

    with TestClient(create_app(db=db)) as test_client:
        yield test_client


@pytest.fixture
def as_admin():
    return ("admin@club.ie", PASSWORD)


@pytest.fixture
def as_member():
    return ("member@club.ie", PASSWORD)


@pytest.fixture
def as_guest():
    return ("guest@club.ie", PASSWORD)
