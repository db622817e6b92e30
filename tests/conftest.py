"""
Shared fixtures for the test suite.

Repository tests drive the async API with ``asyncio.run``; HTTP tests use
FastAPI's TestClient against an application built around a fresh,
seeded ``Storage`` per test.
"""

import asyncio
import io

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext
from PIL import Image

from app.config import settings
from app.main import create_app
from app.storage import Storage, seed_demo_data


# Cheap bcrypt rounds keep seeding fast; the app verifies any bcrypt cost
fast_hasher = CryptContext(schemes=["bcrypt"], bcrypt__rounds=4)


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def storage():
    """An empty repository."""
    return Storage()


@pytest.fixture
def seeded_storage(run):
    """A repository filled with the demo clinic."""
    storage = Storage()
    run(seed_demo_data(storage, fast_hasher.hash))
    return storage


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def client(seeded_storage, upload_dir):
    app = create_app(seeded_storage)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Log in and return the Authorization header for the session."""

    def _login(username: str, password: str) -> dict:
        response = client.post(
            f"{settings.API_V1_PREFIX}/auth/login",
            json={"username": username, "password": password},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def png_bytes():
    """A small valid PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), (200, 180, 160)).save(buffer, format="PNG")
    return buffer.getvalue()
