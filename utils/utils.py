import logging
from functools import wraps

from flask import request, jsonify, g

from utils.tokens import decode_jwt

logger = logging.getLogger(__name__)


def _token_from_request():
    token = request.cookies.get("access_token")
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header.split(" ", 1)[1]
    return None


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _token_from_request()
        if not token:
            return jsonify({"success": False, "error": "Unauthorized"}), 401

        decoded = decode_jwt(token)
        if not decoded or "user_id" not in decoded:
            return jsonify({"success": False, "error": "Invalid token"}), 401

        g.user = decoded
        return f(*args, **kwargs)

    return decorated_function


def admin_required(f):
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if g.user.get("role") != "admin":
            logger.info("User %s with role %s denied admin route %s", g.user.get("user_id"), g.user.get("role"), request.path)
            return jsonify({"success": False, "error": "Access denied. Admin only."}), 403
        return f(*args, **kwargs)

    return decorated_function


def current_user():
    """The authenticated identity as {'id', 'role'}."""
    return {"id": g.user.get("user_id"), "role": g.user.get("role")}
