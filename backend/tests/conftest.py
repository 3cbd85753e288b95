import os
import tempfile

# Point the app at a throwaway file-backed SQLite DB before anything imports
# core.config, so settings and the engine both pick it up.
fd, _db_path = tempfile.mkstemp(suffix=".db", prefix="safetourist_test_")
os.close(fd)
os.environ["DATABASE_URL"] = f"sqlite:///{_db_path}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["TESTING"] = "1"
os.environ["ADMIN_CREATE_ON_STARTUP"] = "0"

import uuid

import pytest
from fastapi.testclient import TestClient

from db.base import Base
from db.session import engine, SessionLocal
from main import app


@pytest.fixture(scope="session", autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()
    try:
        os.remove(_db_path)
    except OSError:
        pass


@pytest.fixture(autouse=True)
def _clean_tables():
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def signup(client):
    """Register a user through the API and log them in."""

    def _signup(role="tourist", password="s3cret", **data):
        email = f"{role}-{uuid.uuid4().hex[:8]}@example.com"
        meta = {"full_name": data.pop("full_name", f"{role.title()} User"), "role": role}
        meta.update(data)
        r = client.post("/auth/signup", json={"email": email, "password": password, "data": meta})
        assert r.status_code == 201, r.text
        user = r.json()
        r = client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()["access_token"]
        user["token"] = token
        user["headers"] = {"Authorization": f"Bearer {token}"}
        return user

    return _signup
