"""
Test fixtures - in-memory SQLite database, fake media store, admin client
"""
import os
import threading
import uuid

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["ADMIN_EMAIL"] = "admin@noorfabrics.com"
os.environ["ADMIN_PASSWORD"] = "admin123"
os.environ["ENVIRONMENT"] = "test"
os.environ["BLOCK_REFERENCED_CATEGORY_DELETE"] = "true"
os.environ["EMPTY_FIELD_CLEARS"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.core.auth import AdminIdentity, create_access_token
from app.core.errors import UpstreamMediaError
from app.core.storage_utils import get_media_store
from app.database import get_session
from app.main import app
from app.models.category import Category
from app.models.product import Product

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class FakeMediaStore:
    """In-memory MediaStore recording every call."""

    def __init__(self):
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail_uploads_for: set[str] = set()
        self.fail_deletes_for: set[str] = set()
        self._lock = threading.Lock()

    def upload(self, file_bytes, content_type, filename=None):
        if filename in self.fail_uploads_for:
            raise UpstreamMediaError(f"storage refused {filename}")
        url = f"https://cdn.test/products/{uuid.uuid4().hex}/{filename}"
        with self._lock:
            self.uploaded.append(url)
        return url

    def delete(self, url):
        if url in self.fail_deletes_for:
            raise UpstreamMediaError(f"storage could not delete {url}")
        with self._lock:
            self.deleted.append(url)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def media():
    return FakeMediaStore()


@pytest.fixture()
def client(session, media):
    """TestClient bound to the in-memory session and the fake media store"""

    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_media_store] = lambda: media

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture()
def admin_headers():
    token = create_access_token(
        AdminIdentity(id="admin", email="admin@noorfabrics.com", name="Admin User")
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def silk(session):
    category = Category(name="Silk", description="Pure silk fabrics")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture()
def make_product(session):
    """Insert a product directly, bypassing the write service."""

    def _make(category: Category, **overrides) -> Product:
        values = {"name": "Scarf", "price": 19.99, "category_id": category.id}
        values.update(overrides)
        product = Product(**values)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


def png(name: str = "photo.png", data: bytes = PNG_BYTES):
    """Multipart file tuple for the `images` field."""
    return ("images", (name, data, "image/png"))
