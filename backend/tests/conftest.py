"""
Pytest fixtures for catalog admin backend tests.

Provides test database setup, a fake image host, an admin account and a
signed-in test client.
"""

import io

import pytest
from catalog_admin import create_app
from catalog_admin.extensions import db
from catalog_admin.services.auth_service import create_admin
from catalog_admin.services.image_host import CloudflareImagesClient, ImageHostError


class FakeImageHost(CloudflareImagesClient):
    """Records uploads / deletes instead of calling Cloudflare."""

    def __init__(self):
        super().__init__("test-account", "test-token", "testhash")
        self.reset()

    def reset(self):
        self.uploads = []
        self.deleted = []
        self.fail_filenames = set()
        self.delete_result = True
        self.delete_raises = False

    def upload(self, filename, data, content_type, metadata=None):
        if filename in self.fail_filenames:
            raise ImageHostError("Image upload failed: HTTP 500")
        self.uploads.append({"filename": filename, "content_type": content_type, "metadata": metadata})
        return {"id": f"cf-{len(self.uploads)}", "filename": filename}

    def delete(self, image_id):
        if self.delete_raises:
            raise ImageHostError("Image delete failed: connection refused")
        self.deleted.append(image_id)
        return self.delete_result


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
    })
    app.extensions["image_host"] = FakeImageHost()

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def image_host(app):
    """The app's fake image host, reset for each test."""
    host = app.extensions["image_host"]
    host.reset()
    return host


@pytest.fixture(scope='function')
def admin(db_session):
    """Active admin with password admin123."""
    return create_admin(username="admin", password="admin123", email="admin@example.com")


@pytest.fixture(scope='function')
def auth_client(client, admin, image_host):
    """Test client with a signed-in admin session."""
    resp = client.post('/api/auth/login', json={'username': 'admin', 'password': 'admin123'})
    assert resp.status_code == 200
    return client


def png_file(name: str = "photo.png", size: int = 64):
    """Multipart file tuple for the werkzeug test client."""
    return (io.BytesIO(b"\x89PNG" + b"\x00" * size), name, "image/png")


def create_product(client, **overrides) -> dict:
    """Helper to create a product through the API."""
    payload = {
        'name': 'Apple Phone',
        'description': 'A phone',
        'price': '199.99',
        'category': 'phones',
        'stock_quantity': 5,
    }
    payload.update(overrides)
    resp = client.post('/api/products', json=payload)
    assert resp.status_code == 201, resp.json
    return resp.json
