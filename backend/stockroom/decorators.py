# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .errors import AuthenticationError, UserNotFoundError
from .services import auth_service, permission_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require credentials on the request.

    Reads the `username` and `password` headers and sets g.current_user.

    SECURITY: Returns 401 if:
    - Either header is missing
    - The username is unknown
    - The password does not verify
    The three cases share one response so callers cannot discover valid names.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        username = request.headers.get("username")
        password = request.headers.get("password")

        if not username or not password:
            return jsonify({"error": "Authentication required"}), 401

        try:
            user = auth_service.authenticate(username, password)
        except (UserNotFoundError, AuthenticationError):
            current_app.logger.info("Failed authentication for username=%s path=%s", username, request.path)
            return jsonify({"error": "Invalid credentials"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require a capability flag on the authenticated user.

    Must be stacked under @require_auth. A denied check raises
    PermissionDeniedError, answered as 403 by the error handlers.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            permission_service.require_capability(
                g.current_user.id,
                capability,
                resource=request.path,
            )
            return f(*args, **kwargs)

        return decorated_function

    return decorator
