# Overview: Service-layer operations for brands, categories and suppliers.

"""
Owner records: Brand, Category, Supplier

All three share one shape (id, name, linked products); Supplier also
carries contact fields. Membership itself is handled by
association_service; this module covers the records.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import OWNER_SUPPLIER
from ..validation import ModelValidationPolicy, require_non_blank, validate_payload
from .allocation_service import insert_with_next_id
from .association_service import (
    detach_all_products,
    get_owner,
    owner_model,
    set_owner_products,
)
from .concurrency import transaction

OWNER_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
)

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone_number", "email"},
    required_on_create={"name"},
)


def owner_policy(owner_kind: str) -> ModelValidationPolicy:
    return SUPPLIER_POLICY if owner_kind == OWNER_SUPPLIER else OWNER_POLICY


def clean_owner_payload(owner_kind: str, payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(
        model=owner_model(owner_kind),
        payload=payload,
        policy=owner_policy(owner_kind),
        partial=partial,
    )
    require_non_blank(patch, "name")
    return patch


def create_owner(owner_kind: str, patch: dict, product_ids: list[int] | None = None):
    """
    Create a brand, category or supplier, with `products` set to product_ids
    (empty when not given).

    `patch` must already be validated (see clean_owner_payload).
    """
    model = owner_model(owner_kind)
    if not patch.get("name"):
        raise ValidationError("name is required")

    with transaction():
        owner = insert_with_next_id(model, **patch)
        if product_ids:
            set_owner_products(owner_kind, owner.id, product_ids)

    current_app.logger.info("Created %s id=%s name=%s", owner_kind, owner.id, owner.name)
    return owner


def update_owner(owner_kind: str, owner_id: int, patch: dict, product_ids: list[int] | None = None):
    """
    Update an owner's fields and, when product_ids is given, replace its
    `products` with that sequence.
    """
    with transaction():
        owner = get_owner(owner_kind, owner_id, for_update=True)
        for key, value in patch.items():
            setattr(owner, key, value)
        if product_ids is not None:
            set_owner_products(owner_kind, owner_id, product_ids)
    return owner


def delete_owner(owner_kind: str, owner_id: int) -> None:
    """Delete an owner and its links. Products themselves are untouched."""
    with transaction():
        owner = get_owner(owner_kind, owner_id, for_update=True)
        detach_all_products(owner_kind, owner_id)
        db.session.delete(owner)
    current_app.logger.info("Deleted %s id=%s", owner_kind, owner_id)


def list_owners(owner_kind: str, *, limit: int, offset: int) -> tuple[list, int]:
    model = owner_model(owner_kind)
    query = db.session.query(model)
    total = query.count()
    items = query.order_by(model.id.asc()).limit(limit).offset(offset).all()
    return items, total


def owner_names(owner_kind: str) -> list[dict]:
    """Lightweight (name, id) listing for pickers."""
    model = owner_model(owner_kind)
    rows = db.session.query(model.name, model.id).order_by(model.id.asc()).all()
    return [{"name": row.name, "id": row.id} for row in rows]
