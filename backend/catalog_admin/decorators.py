# Overview: Request decorators for API routes.

from functools import wraps
from flask import jsonify, g

from .extensions import get_session_provider


def require_admin(f):
    """
    Require a signed-in admin.

    Sets g.current_admin to the identity dict read from the session.
    Returns 401 when the session is absent or unreadable.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = get_session_provider().current()

        if not identity:
            return jsonify({"error": "Authentication required"}), 401

        g.current_admin = identity

        return f(*args, **kwargs)

    return decorated_function
