# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication Routes

- POST /api/auth/initialize: first-run bootstrap, no credentials
- POST /api/auth/signup: create an account (admin)
- GET /api/auth/permissions: the caller's own capability flags

Credentials travel in the `username` and `password` headers on every
request; there is no session or token.
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..errors import ValidationError
from ..services import auth_service, permission_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _credentials_from_body(payload: dict) -> tuple[str, str]:
    username = payload.get("username")
    password = payload.get("password")
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("username is required")
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")
    return username, password


@auth_bp.post("/initialize")
def initialize_route():
    """
    Create the first user (id 0, every capability).

    Request body:
    {
        "username": "owner",
        "password": "..."
    }

    Returns:
        201: User created
        409: System already has users
    """
    payload = request.get_json(silent=True) or {}
    username, password = _credentials_from_body(payload)

    user = auth_service.initialize_first_user(username, password)
    return jsonify({"user": user.to_dict()}), 201


@auth_bp.post("/signup")
@require_auth
def signup_route():
    """
    Create a user on behalf of an admin. New users hold no capabilities.

    Request body:
    {
        "username": "clerk",
        "password": "...",
        "email": "clerk@example.com"  // optional
    }
    """
    payload = request.get_json(silent=True) or {}
    username, password = _credentials_from_body(payload)
    email = payload.get("email") or ""
    if not isinstance(email, str):
        raise ValidationError("email must be a string")

    user = auth_service.signup(
        acting_user_id=g.current_user.id,
        username=username,
        password=password,
        email=email,
    )
    return jsonify({"user": user.to_dict()}), 201


@auth_bp.get("/permissions")
@require_auth
def my_permissions_route():
    """The authenticated user's own capability flags."""
    permission = permission_service.get_permissions(g.current_user.id)
    return jsonify({"user": g.current_user.to_dict(), "permissions": permission.to_dict()})
