# backend/stockroom/errors.py
"""
Application exceptions.

Every service-level failure is one of these. The HTTP status each maps to
lives on the class so the error handlers stay generic.
"""
from __future__ import annotations


class StockroomError(Exception):
    """Base exception for all application errors. Never raised directly."""
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, **payload):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.payload = payload


class ValidationError(StockroomError, ValueError):
    """400-level input problem."""
    status_code = 400
    message = "Invalid input"


class AuthenticationError(StockroomError):
    """Credentials were supplied but did not verify."""
    status_code = 401
    message = "Invalid credentials"


class PermissionDeniedError(StockroomError):
    """Raised when a user lacks the capability an operation requires."""
    status_code = 403
    message = "Permission denied"


class NotFoundError(StockroomError, LookupError):
    status_code = 404
    message = "The requested resource was not found"


class UserNotFoundError(NotFoundError):
    message = "User not found"


class ConflictError(StockroomError, ValueError):
    """409-level business rule conflict (duplicate key, duplicate name)."""
    status_code = 409
    message = "Conflict"


class OrderStateError(ConflictError):
    """Raised when an order transition is invalid for the order's data."""
    message = "Invalid order state transition"
