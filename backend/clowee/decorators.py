# Overview: Request decorators for API routes.

from __future__ import annotations

from functools import wraps
from flask import request, jsonify, g, current_app

from .extensions import db
from .errors import CloweeError
from .models import User


USER_HEADER = "X-User-Id"


def load_acting_user() -> tuple[User | None, str | None]:
    """Return (user, None) for an active user named by X-User-Id, else (None, reason)."""
    raw = request.headers.get(USER_HEADER, "").strip()
    if not raw.isdigit():
        return None, "User identification required"

    user = db.session.get(User, int(raw))
    if not user or not user.is_active:
        return None, "Unknown or inactive user"
    return user, None


def require_user(f):
    """
    Establish the acting user for attribution.

    Sets g.current_user from the X-User-Id header. Sign-in happens upstream;
    this only refuses requests that name no active user.

    Returns 401 if:
    - No X-User-Id header, or it is not an integer
    - The user does not exist or is deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user, error = load_acting_user()
        if user is None:
            return jsonify({"error": error}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def handle_service_errors(log_message: str):
    """
    Translate service errors into JSON responses.

    CloweeError subclasses map to their status_code with
    {"error", "details"}; anything else is logged and returned as 500.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except CloweeError as e:
                if e.status_code >= 500:
                    current_app.logger.warning("%s: %s", log_message, e.message)
                return jsonify(e.to_dict()), e.status_code
            except Exception:
                current_app.logger.exception(log_message)
                return jsonify({"error": "Internal server error"}), 500

        return decorated_function

    return decorator
