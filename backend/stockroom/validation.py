# Overview: Request payload checking against model columns and business rules.

from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation
import math

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Integer, Numeric, String

from .errors import ValidationError
from .time_utils import parse_timestamp


# Postgres int4 bounds; every primary key and foreign key is 32-bit signed
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write, and which a create must include.
    Everything outside writable_fields is rejected, never silently dropped.
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _coerce_int(key: str, value: Any) -> int:
    # bool is an int subclass but never a valid id or count
    if isinstance(value, int) and not isinstance(value, bool):
        out = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{key} must be a plain integer")
        try:
            out = int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    else:
        raise ValidationError(f"{key} must be an integer")
    if not INT32_MIN <= out <= INT32_MAX:
        raise ValidationError(f"{key} is out of range")
    return out


def _coerce_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        out = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be a number")
    if not math.isfinite(out):
        raise ValidationError(f"{key} must be finite")
    return out


def _coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a decimal")
    try:
        # str() first so 1.1 stays 1.1 rather than its binary expansion
        out = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a decimal")
    if not out.is_finite():
        raise ValidationError(f"{key} must be finite")
    return out


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValidationError(f"{key} must be a boolean")


def _coerce_datetime(key: str, value: Any) -> datetime:
    try:
        dt = parse_timestamp(value)
    except (ValueError, OverflowError, OSError):
        dt = None
    if dt is None:
        raise ValidationError(f"{key} must be an ISO-8601 datetime or epoch seconds")
    return dt


def _coerce_string(key: str, value: Any, length: int | None) -> str:
    out = str(value).strip()
    if length and len(out) > length:
        raise ValidationError(f"{key} exceeds max length {length}")
    return out


def _coerce_column(col, value: Any):
    """Convert one JSON value to the Python type of its column."""
    coltype = col.type
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)
    # Float subclasses Numeric, so it has to be checked first
    if isinstance(coltype, Float):
        return _coerce_float(col.key, value)
    if isinstance(coltype, Numeric):
        return _coerce_decimal(col.key, value)
    if isinstance(coltype, Boolean):
        return _coerce_bool(col.key, value)
    if isinstance(coltype, DateTime):
        return _coerce_datetime(col.key, value)
    if isinstance(coltype, String):
        return _coerce_string(col.key, value, coltype.length)
    return value


def validate_payload(*, model, payload: dict, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Check a JSON object against the model's columns and a policy.

    partial=False is a create: every required_on_create key must be present.
    partial=True is a patch: only the keys given are checked.

    Returns a new dict of coerced values (Decimal for Numeric columns, naive
    UTC datetimes, stripped strings). Raises ValidationError on the first
    problem found.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    columns = {c.key: c for c in model.__mapper__.columns}

    rejected = sorted(k for k in payload if k not in policy.writable_fields or k not in columns)
    if rejected:
        raise ValidationError(f"Field not allowed: {', '.join(rejected)}")

    if not partial:
        missing = sorted(set(policy.required_on_create) - set(payload))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned: dict = {}
    for key, raw in payload.items():
        col = columns[key]
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            cleaned[key] = None
        else:
            cleaned[key] = _coerce_column(col, raw)
    return cleaned


def require_non_blank(patch: dict, *fields: str) -> None:
    for field in fields:
        if field in patch and isinstance(patch[field], str) and patch[field] == "":
            raise ValidationError(f"{field} cannot be blank")


def parse_id_list(key: str, value: Any) -> list[int]:
    """Validate a JSON list of ids (categories, suppliers)."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{key} must be a list of ids")
    return [_coerce_int(key, v) for v in value]


def parse_optional_id(key: str, value: Any) -> int | None:
    if value is None:
        return None
    return _coerce_int(key, value)


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    require_non_blank(patch, "upc", "name")

    for key in ("cost_price_per_unit", "selling_price_per_unit", "sale_price"):
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")

    if patch.get("case_size") is not None and patch["case_size"] <= 0:
        raise ValidationError("case_size must be > 0")

    if patch.get("buy_level") is not None and patch["buy_level"] < 0:
        raise ValidationError("buy_level must be >= 0")


def enforce_rules_order_amount(amount: float, key: str = "amount") -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValidationError(f"{key} must be a number")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError(f"{key} must be > 0")


def enforce_rules_receipt(actually_received: float, damaged: float) -> None:
    for key, value in (("actually_received", actually_received), ("damaged", damaged)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"{key} must be a finite number")
    if actually_received < 0:
        raise ValidationError("actually_received must be >= 0")
    if damaged < 0:
        raise ValidationError("damaged must be >= 0")


def parse_pagination(args, *, default_limit: int, max_limit: int) -> tuple[int, int]:
    """
    Read limit/offset query params, clamped to sane bounds.
    """
    limit = args.get("limit", default_limit, type=int)
    offset = args.get("offset", 0, type=int)

    if limit is None or limit < 1:
        limit = 1
    if limit > max_limit:
        limit = max_limit
    if offset is None or offset < 0:
        offset = 0
    return limit, offset
