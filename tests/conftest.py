"""
Pytest configuration and shared fixtures.

Environment is set before any application import so the settings
singleton, the rate limiter and the static mount pick it up.
"""

import os
import tempfile

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_KEY", "test-signing-key-that-is-long-enough-for-hs256")
os.environ.setdefault("AUTH_RATE_LIMIT", "1000/minute")
os.environ.setdefault("UPLOADS_DIR", os.path.join(tempfile.gettempdir(), "internos-test-uploads"))

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from internos.database.connection import Database, set_database
from internos.database.models import UserRoleEnum
from internos.database.repositories.users import UserRepository
from internos.security.passwords import hash_password
from internos.services.storage import FileStorage, set_file_storage


DEFAULT_PASSWORD = "Passw0rd!"


# ==================== DATABASE ====================

@pytest_asyncio.fixture
async def sqlite_db(tmp_path):
    """Throw-away SQLite database installed as the application database."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'internos.db'}")
    assert await db.initialize()
    set_database(db)
    yield db
    await db.close()
    set_database(None)


@pytest.fixture
def file_storage(tmp_path):
    """Upload store rooted in the test's temp directory."""
    storage = FileStorage(str(tmp_path / "uploads"))
    set_file_storage(storage)
    yield storage
    set_file_storage(None)


@pytest_asyncio.fixture
async def make_user(sqlite_db):
    """Factory creating users directly in the store."""
    repo = UserRepository(sqlite_db)
    counter = {"n": 0}

    async def _make(role: UserRoleEnum = UserRoleEnum.INTERN, full_name: str = None, email: str = None):
        counter["n"] += 1
        n = counter["n"]
        return await repo.create(
            full_name=full_name or f"{role.value} User {n}",
            email=email or f"{role.value.lower()}{n}@example.com",
            password_hash=hash_password(DEFAULT_PASSWORD),
            role=role,
        )

    return _make


# ==================== HTTP CLIENT ====================

@pytest.fixture
def client(tmp_path):
    """
    TestClient running the full app (lifespan included) on a fresh
    SQLite database and upload directory.
    """
    from internos.main import app

    set_database(Database(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"))
    set_file_storage(FileStorage(str(tmp_path / "uploads")))

    with TestClient(app) as test_client:
        yield test_client

    set_database(None)
    set_file_storage(None)


class ApiUser:
    """A registered account plus its bearer header."""

    def __init__(self, id: int, email: str, role: str, token: str):
        self.id = id
        self.email = email
        self.role = role
        self.token = token
        self.headers = {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(client):
    """Register through the API and log in; returns an ApiUser."""
    counter = {"n": 0}

    def _register(role: str = "Intern", full_name: str = None, email: str = None) -> ApiUser:
        counter["n"] += 1
        email = email or f"{role.lower()}{counter['n']}@example.com"
        response = client.post("/api/auth/register", json={
            "fullName": full_name or f"{role} Person {counter['n']}",
            "email": email,
            "password": DEFAULT_PASSWORD,
            "role": role,
        })
        assert response.status_code == 200, response.text

        login = client.post("/api/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
        assert login.status_code == 200, login.text
        body = login.json()
        return ApiUser(body["id"], email, body["role"], body["token"])

    return _register


@pytest.fixture
def sample_task_payload():
    """Sample task creation body."""
    return {
        "title": "Build the onboarding checklist",
        "description": "List every step a new intern goes through in week one.",
        "assignedToUserId": 1,
    }
