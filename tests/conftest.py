# tests/conftest.py

import os

# Must be set before security.py builds its CryptContext.
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import app


@pytest.fixture()
def db():
    """Fresh in-memory Mongo database with the production indexes."""
    mongo_db = mongomock.MongoClient().db
    database.ensure_indexes(mongo_db)
    return mongo_db


@pytest.fixture()
def client(db):
    app.dependency_overrides[database.get_db] = lambda: db
    # No context manager: the lifespan (real MongoDB connect) must not run.
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def register(client):
    """Sign up + log in a user, return auth headers."""

    def _register(username: str, password: str = "s3cret") -> dict:
        r = client.post("/api/auth/signup", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        r = client.post("/api/auth/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}

    return _register
