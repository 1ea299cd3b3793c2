import logging

from flask import Blueprint, request, jsonify, make_response, current_app
from models.users import User
from models import db
from utils.tokens import get_jwt_token, decode_jwt

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth_bp', __name__)


def _set_token_cookie(response, token, max_age):
    response.set_cookie(
        "access_token", token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
        max_age=max_age
    )


# Login
@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    username = data.get("username_or_email")
    password = data.get("password")

    user = User.query.filter((User.username == username) | (User.email == username)).first()

    if not user or not user.check_password(password or ""):
        return jsonify({"success": False, "error": "Invalid credentials"}), 401

    token = get_jwt_token({
        "user_id": user.id,
        "username_or_email": user.username,
        "role": user.role,
    })

    response = make_response(jsonify({
        "success": True,
        "message": "Login successful",
        "token": token,
        "user": {
            "id": user.id,
            "role": user.role,
            "username": user.username,
            "email": user.email
        }
    }))
    _set_token_cookie(response, token, current_app.config.get("JWT_EXPIRATION_HOURS", 24) * 3600)
    logger.info("User %s logged in", user.id)
    return response

# Logout
@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = make_response(jsonify({"success": True, "message": "Logout successful"}))
    _set_token_cookie(response, "", 0)
    return response

# Register (students only; admins are created from the CLI)
@auth_bp.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}

    username = data.get('username')
    email = data.get('email')
    password = data.get('password')
    full_name = data.get('full_name')

    if not username or not email or not password or not full_name:
        return jsonify({"success": False, "error": "All fields are required"}), 400

    existing_user = User.query.filter(
        (User.username == username) | (User.email == email)
    ).first()

    if existing_user:
        return jsonify({"success": False, "error": "User already exists"}), 409

    new_user = User(
        username=username,
        email=email,
        full_name=full_name,
        role="student"
    )
    new_user.set_password(password)

    db.session.add(new_user)
    db.session.commit()

    return jsonify({"success": True, "message": "User registered successfully!", "id": new_user.id}), 201

# Auth Check
@auth_bp.route('/check-auth', methods=['GET'])
def check_auth():
    token = request.cookies.get("access_token")
    header = request.headers.get("Authorization", "")
    if not token and header.startswith("Bearer "):
        token = header.split(" ", 1)[1]

    if not token:
        return jsonify({"success": False, "error": "Not authenticated"}), 401

    decoded_token = decode_jwt(token)
    if not decoded_token:
        return jsonify({"success": False, "error": "Invalid or expired token"}), 401

    return jsonify({
        "success": True,
        "message": "Authenticated",
        "user": {
            "id": decoded_token.get("user_id"),
            "role": decoded_token.get("role"),
            "username_or_email": decoded_token.get("username_or_email"),
        }
    }), 200
