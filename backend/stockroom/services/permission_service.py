# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Oracle

Each user has exactly one Permission row with ten independent boolean
capabilities. Checks are flat: no capability implies another, `admin`
included.

DESIGN PRINCIPLES:
- Fail closed: a missing Permission row is a fault, not "all denied"
- Log denials only: grants are not logged
- One gate: routes call require_capability (via the decorator), never read
  flags inline
"""

from __future__ import annotations

from flask import current_app

from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..extensions import db
from ..models import CAPABILITIES, Permission
from .concurrency import transaction


def _check_capability_name(capability: str) -> None:
    if capability not in CAPABILITIES:
        raise ValueError(f"Unknown capability: {capability}")


def get_permissions(user_id: int) -> Permission:
    """
    Load the Permission row for a user.

    Raises:
        NotFoundError: If the user has no Permission row
    """
    permission = db.session.get(Permission, user_id)
    if permission is None:
        raise NotFoundError(f"Permissions for user {user_id} not found")
    return permission


def authorize(user_id: int, capability: str) -> bool:
    """
    Answer whether the user holds a capability.

    Raises:
        ValueError: If capability is not one of CAPABILITIES
        NotFoundError: If the user has no Permission row
    """
    _check_capability_name(capability)
    permission = get_permissions(user_id)
    return bool(getattr(permission, capability))


def require_capability(user_id: int, capability: str, resource: str | None = None) -> None:
    """
    Require user to hold a capability, raise PermissionDeniedError if not.

    Usage:
        require_capability(user.id, "edit_products", resource="/api/products")
    """
    if not authorize(user_id, capability):
        current_app.logger.warning(
            "Permission denied: user_id=%s capability=%s resource=%s",
            user_id, capability, resource,
        )
        raise PermissionDeniedError(
            f"Permission denied: {capability}",
            required_permission=capability,
        )


def validate_flags(flags: dict) -> dict[str, bool]:
    """Check a {capability: bool} mapping coming from a client or CLI."""
    if not isinstance(flags, dict):
        raise ValidationError("permissions must be an object")

    unknown = sorted(k for k in flags if k not in CAPABILITIES)
    if unknown:
        raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")

    for key, value in flags.items():
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be a boolean")
    return dict(flags)


def set_permissions(user_id: int, flags: dict) -> Permission:
    """
    Update some or all capability flags of a user.

    Flags not present in `flags` keep their current value.
    """
    flags = validate_flags(flags)
    with transaction():
        permission = get_permissions(user_id)
        for key, value in flags.items():
            setattr(permission, key, value)
    return permission
