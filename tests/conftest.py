"""
Pytest configuration and fixtures for the image feed tests
"""

import os
from io import BytesIO

# Test-friendly environment before any app module reads settings
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("CACHE_DRIVER", "memory")
os.environ.setdefault("STORAGE_DRIVER", "local")

import pytest
from PIL import Image as PILImage

from app.db import init_db, close_db
from app.models.user import AdminUser, User
from app.services.uploader import Uploader


class RecordingBlobStore:
    """Blob store double that keeps every object it is given."""

    def __init__(self):
        self.objects = {}

    async def put(self, data: bytes, key: str, content_type: str) -> str:
        self.objects[key] = (data, content_type)
        return f"https://blobs.test/{key}"


class FailingBlobStore:
    async def put(self, data: bytes, key: str, content_type: str) -> str:
        raise ConnectionError("bucket unreachable")


def make_image_bytes(width: int, height: int, color=(200, 40, 90), fmt: str = "PNG") -> bytes:
    buf = BytesIO()
    PILImage.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
async def db_setup():
    """Initialize a fresh in-memory SQLite database for each test."""
    await init_db("sqlite://:memory:")
    try:
        yield
    finally:
        await close_db()


@pytest.fixture
def blob_store():
    return RecordingBlobStore()


@pytest.fixture
async def user(db_setup):
    return await User.create(email="user@example.com", name="Ordinary")


@pytest.fixture
async def admin(db_setup):
    return await AdminUser.create(email="admin@example.com", name="Admin")


@pytest.fixture
def user_uploader(user):
    return Uploader.for_user(user)


@pytest.fixture
def admin_uploader(admin):
    return Uploader.for_admin(admin)


@pytest.fixture
def failing_blob_store():
    return FailingBlobStore()


@pytest.fixture
def image_bytes():
    return make_image_bytes
