"""
Admin authentication tests.

Verifies:
- Credential verification against bcrypt hashes
- Inactive / unknown admins and wrong passwords share one message
- Session endpoints reflect login / logout
- Protected routes return 401 without a session
"""

import pytest

from catalog_admin.extensions import db
from catalog_admin.models import Admin
from catalog_admin.services import auth_service
from catalog_admin.services.auth_service import (
    AdminNotFoundError,
    InvalidCredentialError,
    LOGIN_FAILED_MESSAGE,
    hash_password,
    verify_password,
)


# =============================================================================
# SERVICE
# =============================================================================


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("admin123", rounds=4)
        assert hashed.startswith("$2")
        assert verify_password("admin123", hashed)
        assert not verify_password("admin124", hashed)

    def test_malformed_hash_is_a_mismatch(self):
        assert not verify_password("admin123", "not-a-bcrypt-hash")

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            hash_password("")


class TestAuthenticate:
    def test_valid_credentials(self, app, admin):
        with app.app_context():
            result = auth_service.authenticate("admin", "admin123")
            assert result.username == "admin"

    def test_wrong_password(self, app, admin):
        with app.app_context():
            with pytest.raises(InvalidCredentialError) as exc:
                auth_service.authenticate("admin", "wrong")
        assert str(exc.value) == LOGIN_FAILED_MESSAGE

    def test_inactive_admin_is_not_found(self, app, admin):
        with app.app_context():
            auth_service.set_admin_active("admin", False)
            with pytest.raises(AdminNotFoundError) as exc:
                auth_service.authenticate("admin", "admin123")
        assert str(exc.value) == LOGIN_FAILED_MESSAGE

    def test_username_is_case_sensitive(self, app, admin):
        with app.app_context():
            with pytest.raises(AdminNotFoundError):
                auth_service.authenticate("Admin", "admin123")

    def test_duplicate_username(self, app, admin):
        with app.app_context():
            with pytest.raises(ValueError):
                auth_service.create_admin("admin", "another")

    def test_stored_hash_is_bcrypt(self, app, admin):
        with app.app_context():
            row = db.session.query(Admin).filter_by(username="admin").one()
            assert row.password_hash != "admin123"
            assert "password_hash" not in row.to_dict()


# =============================================================================
# API
# =============================================================================


class TestLoginApi:
    def test_login_success(self, client, admin):
        resp = client.post('/api/auth/login', json={'username': 'admin', 'password': 'admin123'})
        assert resp.status_code == 200
        assert resp.json['admin']['username'] == 'admin'
        assert 'password_hash' not in resp.json['admin']

        session = client.get('/api/auth/session')
        assert session.json['authenticated'] is True
        assert session.json['admin']['username'] == 'admin'

    @pytest.mark.parametrize("username,password", [
        ("admin", "wrong"),
        ("nobody", "admin123"),
    ])
    def test_login_failure_is_generic(self, client, admin, username, password):
        resp = client.post('/api/auth/login', json={'username': username, 'password': password})
        assert resp.status_code == 401
        assert resp.json['error'] == LOGIN_FAILED_MESSAGE

    def test_missing_fields(self, client, admin):
        resp = client.post('/api/auth/login', json={'username': 'admin'})
        assert resp.status_code == 400

    def test_logout_clears_session(self, auth_client):
        resp = auth_client.post('/api/auth/logout')
        assert resp.status_code == 200

        session = auth_client.get('/api/auth/session')
        assert session.json == {'authenticated': False, 'admin': None}
        assert auth_client.get('/api/products').status_code == 401

    def test_session_without_login(self, client, db_session):
        resp = client.get('/api/auth/session')
        assert resp.json['authenticated'] is False

    def test_corrupt_session_reads_as_signed_out(self, client, db_session):
        with client.session_transaction() as sess:
            sess['admin_session'] = '{broken'
        resp = client.get('/api/auth/session')
        assert resp.json['authenticated'] is False


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a session."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/products/1"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("POST", "/api/products/images/upload"),
            ("POST", "/api/products/1/images"),
            ("PUT", "/api/products/1/images/order"),
            ("DELETE", "/api/products/1/images/abc"),
            ("POST", "/api/upload-image"),
            ("DELETE", "/api/upload-image?id=abc"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
