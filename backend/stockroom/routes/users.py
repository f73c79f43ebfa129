# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User administration routes.

SECURITY: All routes require authentication and the `admin` capability.
`admin` is checked on its own; it does not grant any other capability.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..services import auth_service, permission_service
from ..validation import parse_pagination

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_capability("admin")
def list_users_route():
    """
    List users.

    Query parameters:
    - name: exact username filter
    - limit, offset: pagination

    Returns:
        {items: User[], count: int, limit: int, offset: int}
    """
    limit, offset = parse_pagination(
        request.args,
        default_limit=current_app.config["DEFAULT_PAGE_LIMIT"],
        max_limit=current_app.config["MAX_PAGE_LIMIT"],
    )
    users, total = auth_service.list_users(
        name=request.args.get("name"),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [u.to_dict() for u in users],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@users_bp.get("/<int:user_id>")
@require_auth
@require_capability("admin")
def get_user_route(user_id: int):
    user = auth_service.get_user(user_id)
    return jsonify({"user": user.to_dict()})


@users_bp.put("/<int:user_id>")
@require_auth
@require_capability("admin")
def update_user_route(user_id: int):
    """
    Update name, email and/or password.

    Request body (all optional):
    {
        "name": "new-name",
        "email": "x@example.com",
        "password": "..."
    }
    """
    payload = request.get_json(silent=True) or {}
    user = auth_service.update_user(user_id, payload)
    return jsonify({"user": user.to_dict()})


@users_bp.delete("/<int:user_id>")
@require_auth
@require_capability("admin")
def delete_user_route(user_id: int):
    auth_service.delete_user(user_id)
    return jsonify({"deleted": True, "id": user_id})


@users_bp.get("/<int:user_id>/permissions")
@require_auth
@require_capability("admin")
def get_user_permissions_route(user_id: int):
    auth_service.get_user(user_id)
    permission = permission_service.get_permissions(user_id)
    return jsonify({"permissions": permission.to_dict()})


@users_bp.put("/<int:user_id>/permissions")
@require_auth
@require_capability("admin")
def set_user_permissions_route(user_id: int):
    """
    Set some or all capability flags.

    Request body: {"view_products": true, "edit_products": false, ...}
    Flags not named keep their current value.
    """
    payload = request.get_json(silent=True)
    auth_service.get_user(user_id)
    permission = permission_service.set_permissions(user_id, payload)
    return jsonify({"permissions": permission.to_dict()})
