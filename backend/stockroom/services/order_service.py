# Overview: Service-layer operations for pending and received orders.

"""
Order Lifecycle Service

LIFECYCLE:
1. PENDING: placed, waiting for delivery (pending_orders table)
2. RECEIVED: delivered and counted (received_orders table)

An order moves between states by changing table: mark_received writes a new
ReceivedOrder (new id) and deletes the PendingOrder; revert_received does the
reverse. Each transition is one transaction, so an order is never in both
tables or in neither.

REVERT:
- ORDER_REVERT_POLICY = "discard" (default): receipt data (received time,
  actually_received, damaged) is dropped and a warning names what was lost
- ORDER_REVERT_POLICY = "reject": an order whose receipt differs from what
  was ordered (short or damaged) cannot be reverted (OrderStateError)
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..errors import NotFoundError, OrderStateError
from ..extensions import db
from ..models import PendingOrder, Product, ReceivedOrder
from ..time_utils import to_utc_z, utcnow
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_order_amount,
    enforce_rules_receipt,
    validate_payload,
)
from .allocation_service import insert_with_next_id
from .concurrency import lock_for_update, transaction

REVERT_DISCARD = "discard"
REVERT_REJECT = "reject"
REVERT_POLICIES = {REVERT_DISCARD, REVERT_REJECT}

PENDING_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "amount"},
    required_on_create={"product_id", "amount"},
)

RECEIVED_POLICY = ModelValidationPolicy(
    writable_fields={"received", "product_id", "gross_amount", "actually_received", "damaged"},
)


def _require_product(product_id: int) -> None:
    if db.session.get(Product, product_id) is None:
        raise NotFoundError(f"Product {product_id} not found")


def clean_pending_payload(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=PendingOrder, payload=payload, policy=PENDING_POLICY, partial=partial)
    if "amount" in patch:
        enforce_rules_order_amount(patch["amount"])
    return patch


def clean_received_payload(payload: dict) -> dict:
    patch = validate_payload(model=ReceivedOrder, payload=payload, policy=RECEIVED_POLICY, partial=True)
    if "gross_amount" in patch:
        enforce_rules_order_amount(patch["gross_amount"], "gross_amount")
    enforce_rules_receipt(patch.get("actually_received") or 0.0, patch.get("damaged") or 0.0)
    return patch


def place_order(product_id: int, amount: float) -> PendingOrder:
    """
    Place a new pending order for a product.

    Raises:
        ValidationError: If amount is not a finite number > 0
        NotFoundError: If the product does not exist
    """
    enforce_rules_order_amount(amount)
    with transaction():
        _require_product(product_id)
        order = insert_with_next_id(PendingOrder, product_id=product_id, amount=amount)

    current_app.logger.info(
        "Placed pending order id=%s product_id=%s amount=%s", order.id, product_id, amount
    )
    return order


def get_pending_order(order_id: int, *, for_update: bool = False) -> PendingOrder:
    query = db.session.query(PendingOrder).filter(PendingOrder.id == order_id)
    if for_update:
        query = lock_for_update(query)
    order = query.first()
    if order is None:
        raise NotFoundError(f"Pending order {order_id} not found")
    return order


def get_received_order(order_id: int, *, for_update: bool = False) -> ReceivedOrder:
    query = db.session.query(ReceivedOrder).filter(ReceivedOrder.id == order_id)
    if for_update:
        query = lock_for_update(query)
    order = query.first()
    if order is None:
        raise NotFoundError(f"Received order {order_id} not found")
    return order


def list_pending_orders(*, limit: int, offset: int) -> tuple[list[PendingOrder], int]:
    query = db.session.query(PendingOrder)
    total = query.count()
    items = query.order_by(PendingOrder.id.asc()).limit(limit).offset(offset).all()
    return items, total


def list_received_orders(*, limit: int, offset: int) -> tuple[list[ReceivedOrder], int]:
    query = db.session.query(ReceivedOrder)
    total = query.count()
    items = query.order_by(ReceivedOrder.id.asc()).limit(limit).offset(offset).all()
    return items, total


def update_pending_order(order_id: int, patch: dict) -> PendingOrder:
    """Apply a validated patch (see clean_pending_payload)."""
    with transaction():
        order = get_pending_order(order_id, for_update=True)
        if "product_id" in patch:
            _require_product(patch["product_id"])
        for key, value in patch.items():
            setattr(order, key, value)
    return order


def update_received_order(order_id: int, patch: dict) -> ReceivedOrder:
    """Apply a validated patch (see clean_received_payload)."""
    with transaction():
        order = get_received_order(order_id, for_update=True)
        if "product_id" in patch:
            _require_product(patch["product_id"])
        for key, value in patch.items():
            setattr(order, key, value)
    return order


def delete_pending_order(order_id: int) -> None:
    with transaction():
        order = get_pending_order(order_id, for_update=True)
        db.session.delete(order)
    current_app.logger.info("Deleted pending order id=%s", order_id)


def delete_received_order(order_id: int) -> None:
    with transaction():
        order = get_received_order(order_id, for_update=True)
        db.session.delete(order)
    current_app.logger.info("Deleted received order id=%s", order_id)


def mark_received(
    pending_order_id: int,
    received_at: datetime | None,
    actually_received: float,
    damaged: float,
) -> ReceivedOrder:
    """
    Move a pending order to the received table.

    gross_amount is copied from the pending amount. received_at defaults to
    now (UTC). The new row gets a fresh id from the received table.

    Raises:
        NotFoundError: If the pending order does not exist
        ValidationError: If actually_received or damaged is negative
    """
    enforce_rules_receipt(actually_received, damaged)
    if received_at is None:
        received_at = utcnow()

    with transaction():
        pending = get_pending_order(pending_order_id, for_update=True)
        received = insert_with_next_id(
            ReceivedOrder,
            received=received_at,
            product_id=pending.product_id,
            gross_amount=pending.amount,
            actually_received=actually_received,
            damaged=damaged,
        )
        db.session.delete(pending)

    current_app.logger.info(
        "Received order: pending id=%s -> received id=%s (gross=%s, received=%s, damaged=%s)",
        pending_order_id, received.id, received.gross_amount, actually_received, damaged,
    )
    return received


def _revert_policy() -> str:
    policy = current_app.config.get("ORDER_REVERT_POLICY", REVERT_DISCARD)
    if policy not in REVERT_POLICIES:
        raise ValueError(f"Unknown ORDER_REVERT_POLICY: {policy}")
    return policy


def _has_receipt_data(order: ReceivedOrder) -> bool:
    return order.actually_received != order.gross_amount or order.damaged > 0


def revert_received(received_order_id: int) -> PendingOrder:
    """
    Move a received order back to pending.

    The new pending order has a fresh id, the same product and
    amount = gross_amount. Receipt data does not survive the round trip.

    Raises:
        NotFoundError: If the received order does not exist
        OrderStateError: Under the "reject" policy, if the receipt was short
            or had damaged units
    """
    policy = _revert_policy()

    with transaction():
        received = get_received_order(received_order_id, for_update=True)

        if _has_receipt_data(received):
            if policy == REVERT_REJECT:
                raise OrderStateError(
                    f"Received order {received_order_id} has receipt data and cannot be reverted",
                    gross_amount=received.gross_amount,
                    actually_received=received.actually_received,
                    damaged=received.damaged,
                )
            current_app.logger.warning(
                "Reverting received order id=%s discards receipt data: "
                "received=%s actually_received=%s damaged=%s",
                received.id, to_utc_z(received.received), received.actually_received, received.damaged,
            )

        pending = insert_with_next_id(
            PendingOrder,
            product_id=received.product_id,
            amount=received.gross_amount,
        )
        db.session.delete(received)

    current_app.logger.info(
        "Reverted order: received id=%s -> pending id=%s", received_order_id, pending.id
    )
    return pending
