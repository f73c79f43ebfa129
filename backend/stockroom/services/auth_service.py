# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Credential Service and user accounts

Passwords are hashed with bcrypt over `password + PEPPER`. The pepper is
process configuration (app.config["PEPPER"]) and is never stored with the
digest.

Every User row is created together with its Permission and Preference rows
in one transaction, and deleted together with them.
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import (
    AuthenticationError,
    ConflictError,
    UserNotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import CAPABILITIES, Permission, Preference, User
from .allocation_service import insert_with_next_id
from .concurrency import transaction
from .permission_service import require_capability, validate_flags

# Reserved id of the account created by initialize_first_user
BOOTSTRAP_USER_ID = 0

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72

USER_MUTABLE_FIELDS = {"name", "email", "password"}


def _peppered(password: str) -> bytes:
    if not isinstance(password, str) or password == "":
        raise ValidationError("Password is required")
    secret = (password + current_app.config.get("PEPPER", "")).encode("utf-8")
    if len(secret) > BCRYPT_MAX_BYTES:
        raise ValidationError("Password is too long")
    return secret


def hash_password(password: str) -> str:
    """
    Hash password + pepper with bcrypt.

    Cost factor comes from BCRYPT_ROUNDS (tests lower it for speed).
    """
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 10))
    hashed = bcrypt.hashpw(_peppered(password), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password + pepper against a stored bcrypt digest.

    A malformed digest verifies as False rather than raising.
    """
    try:
        secret = _peppered(password)
    except ValidationError:
        return False
    try:
        return bcrypt.checkpw(secret, password_hash.encode("utf-8"))
    except ValueError:
        return False


class UserBuilder:
    """
    Two-step user creation: collect optional fields, then build() once.

    Usage:
        user = UserBuilder("clerk", "s3cret").with_email("c@x.io").build()
    """

    def __init__(self, name: str, password: str):
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Username is required")
        self.name = name.strip()
        self.password = hash_password(password)
        self.email = ""
        self.permissions: dict[str, bool] = {}

    def with_email(self, email: str) -> "UserBuilder":
        self.email = (email or "").strip()
        return self

    def with_permissions(self, flags: dict) -> "UserBuilder":
        self.permissions = validate_flags(flags)
        return self

    def insert_rows(self, user_id: int | None = None) -> User:
        if db.session.query(User.id).filter(User.name == self.name).first() is not None:
            raise ConflictError(f"Username '{self.name}' already exists")

        fields = {"name": self.name, "email": self.email, "password": self.password}
        if user_id is None:
            user = insert_with_next_id(User, **fields)
        else:
            user = User(id=user_id, **fields)
            try:
                with db.session.begin_nested():
                    db.session.add(user)
            except IntegrityError as exc:
                # Another request inserted the same id after our checks
                raise ConflictError(
                    f"User id {user_id} already exists", detail=str(exc.orig)
                ) from exc

        flags = {capability: self.permissions.get(capability, False) for capability in CAPABILITIES}
        db.session.add(Permission(user_id=user.id, **flags))
        db.session.add(Preference(user_id=user.id))
        db.session.flush()
        return user

    def build(self) -> User:
        """Insert the user, its permissions and preferences in one transaction."""
        with transaction():
            user = self.insert_rows()
        current_app.logger.info("Created user id=%s name=%s", user.id, user.name)
        return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def get_user_by_name(name: str) -> User:
    user = db.session.query(User).filter(User.name == name).first()
    if user is None:
        raise UserNotFoundError(f"User '{name}' not found")
    return user


def list_users(*, name: str | None = None, limit: int, offset: int) -> tuple[list[User], int]:
    """Users ordered by id, optionally filtered by exact name."""
    query = db.session.query(User)
    if name:
        query = query.filter(User.name == name)
    total = query.count()
    items = query.order_by(User.id.asc()).limit(limit).offset(offset).all()
    return items, total


def authenticate(username: str, password: str) -> User:
    """
    Verify a username/password pair.

    An unknown username raises UserNotFoundError (a not-found fault); a wrong
    password raises AuthenticationError. Callers at the HTTP boundary decide
    whether to collapse the two.
    """
    user = get_user_by_name(username)
    if not verify_password(password, user.password):
        raise AuthenticationError("Invalid credentials")
    return user


def initialize_first_user(username: str, password: str) -> User:
    """
    Provision the first account: id 0, every capability granted.

    Only allowed while the users table is empty.

    Raises:
        ConflictError: If any user already exists, or a concurrent
            initialization inserts id 0 first
    """
    builder = UserBuilder(username, password).with_permissions(
        {capability: True for capability in CAPABILITIES}
    )
    with transaction():
        if db.session.query(User.id).first() is not None:
            raise ConflictError("System is already initialized")
        user = builder.insert_rows(user_id=BOOTSTRAP_USER_ID)
    current_app.logger.info("Initialized first user name=%s", user.name)
    return user


def signup(*, acting_user_id: int, username: str, password: str, email: str = "") -> User:
    """
    Create an account on behalf of an admin.

    The new user starts with every capability false and a freshly allocated
    id (never the reserved bootstrap id).

    Raises:
        PermissionDeniedError: If the acting user lacks `admin`
        ConflictError: If the username is taken
    """
    require_capability(acting_user_id, "admin", resource="signup")
    return UserBuilder(username, password).with_email(email).build()


def update_user(user_id: int, patch: dict) -> User:
    """
    Update name, email or password. A new password is re-hashed.
    """
    if not isinstance(patch, dict):
        raise ValidationError("Invalid JSON payload")
    unknown = sorted(k for k in patch if k not in USER_MUTABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

    with transaction():
        user = get_user(user_id)
        if "name" in patch:
            name = patch["name"].strip() if isinstance(patch["name"], str) else ""
            if not name:
                raise ValidationError("name cannot be blank")
            taken = (
                db.session.query(User.id)
                .filter(User.name == name, User.id != user.id)
                .first()
            )
            if taken is not None:
                raise ConflictError(f"Username '{name}' already exists")
            user.name = name
        if "email" in patch:
            user.email = str(patch["email"] or "").strip()
        if "password" in patch:
            user.password = hash_password(patch["password"])
    return user


def delete_user(user_id: int) -> None:
    """Delete a user together with its Permission and Preference rows."""
    with transaction():
        user = get_user(user_id)
        db.session.delete(user)
    current_app.logger.info("Deleted user id=%s", user_id)
