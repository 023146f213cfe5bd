# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Admin authentication API routes.

The signed-in identity lives in the signed session cookie under
"admin_session" (see services/session_service.py). Unknown usernames,
inactive admins and wrong passwords all answer with the same message.
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..services.auth_service import AuthenticationError, LOGIN_FAILED_MESSAGE
from ..services.catalog_backend import CatalogBackendError
from ..extensions import get_session_provider


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Verify credentials and store the admin identity in the session.

    Returns the admin (without password hash) on success.
    """
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        return jsonify({"error": "username and password required"}), 400

    try:
        admin = auth_service.authenticate(username, password)
    except AuthenticationError:
        return jsonify({"error": LOGIN_FAILED_MESSAGE}), 401
    except CatalogBackendError:
        current_app.logger.exception("Failed to login admin")
        return jsonify({"error": "Login is temporarily unavailable, please retry"}), 502

    identity = admin.to_dict()
    get_session_provider().login(identity)

    return jsonify({
        "admin": identity,
        "message": "Login successful"
    }), 200


@auth_bp.post("/logout")
def logout_route():
    """Clear the stored admin identity. Always succeeds."""
    get_session_provider().logout()
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/session")
def session_route():
    """
    Current identity, read from the session on every call.

    A missing or corrupt session reports authenticated=false.
    """
    identity = get_session_provider().current()
    return jsonify({
        "authenticated": identity is not None,
        "admin": identity,
    }), 200
