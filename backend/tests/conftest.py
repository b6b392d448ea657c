"""
Shared fixtures: a throwaway SQLite database, an API client and an
authenticated author.
"""

import os
import tempfile

import pytest

# Must be set before anything imports testcraft.config
_db_dir = tempfile.mkdtemp(prefix="testcraft-")
os.environ["DATABASE_URL"] = "sqlite:///{}".format(os.path.join(_db_dir, "test.db"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from testcraft.database import SessionLocal, create_tables, drop_tables  # noqa: E402
from testcraft.main import app  # noqa: E402
from testcraft.models.user import User  # noqa: E402
from testcraft.security import create_access_token  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from empty tables."""
    drop_tables()
    create_tables()
    yield


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _make_user(db_session, email):
    user = User(email=email, name=email.split("@")[0])
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user(db_session):
    return _make_user(db_session, "author@example.com")


@pytest.fixture
def other_user(db_session):
    return _make_user(db_session, "someone-else@example.com")


@pytest.fixture
def auth_headers(user):
    return {"Authorization": "Bearer {}".format(create_access_token(user.id))}


@pytest.fixture
def other_auth_headers(other_user):
    return {"Authorization": "Bearer {}".format(create_access_token(other_user.id))}


@pytest.fixture
def new_test_payload():
    return {
        "title": "Algebra Basics",
        "description": "Linear equations",
        "duration": 60,
        "pass_percentage": 40,
        "attempt_limit": 3,
        "question_order": "SEQUENTIAL",
        "result_visibility": "after_submission",
    }


@pytest.fixture
def created_test(client, auth_headers, new_test_payload):
    response = client.post("/api/tests", json=new_test_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["test"]
