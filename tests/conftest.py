"""
Pytest configuration and fixtures for Site CMS Backend tests.
"""

import os
import shutil
import tempfile
from io import BytesIO
from pathlib import Path

import mongomock
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Set test environment variables before importing the app
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "s3cret-pass"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="cms_test_uploads_")
os.environ.pop("MONGO_URI", None)
os.environ.pop("PUBLIC_BASE_URL", None)

from site_cms_backend.main import app, get_page_store  # noqa: E402
from site_cms_backend.page_store import PageDataStore  # noqa: E402


@pytest.fixture(scope="session")
def upload_dir():
    """The upload directory the app was configured with."""
    path = Path(os.environ["UPLOAD_DIR"])
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_uploads(upload_dir):
    """Empty the upload directory after each test."""
    yield
    for entry in upload_dir.iterdir():
        if entry.is_dir():
            shutil.rmtree(entry, ignore_errors=True)
        else:
            entry.unlink()


@pytest.fixture
def collection():
    """A fresh in-memory Mongo collection."""
    return mongomock.MongoClient()["site_cms"]["pagedatas"]


@pytest.fixture
def store(collection):
    """Page-data store wired into the app in place of the real database."""
    page_store = PageDataStore(collection)
    app.dependency_overrides[get_page_store] = lambda: page_store
    yield page_store
    app.dependency_overrides.pop(get_page_store, None)


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def admin_credentials():
    return {"username": "admin", "password": "s3cret-pass"}


@pytest.fixture
def token(client, admin_credentials):
    """Log in as the admin and return the bearer token."""
    response = client.post("/api/auth/login", json=admin_credentials)
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_image():
    """Factory producing encoded image bytes of a given size and format."""

    def _make(width=64, height=48, fmt="PNG", mode="RGB"):
        color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
        img = Image.new(mode, (width, height), color)
        buffer = BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make
