# Overview: Flask API routes for order lifecycle operations; parses input and returns JSON responses.

"""
Order Routes

LIFECYCLE: pending -> received (receive), received -> pending (revert).

SECURITY: All routes require authentication.
- GET /pending: view_pending; POST /pending: create_orders
- PUT /pending/<id>: edit_pending
- POST /pending/<id>/receive, PUT /received/<id>, POST /received/<id>/revert:
  edit_received
- GET /received: view_received
- DELETE /pending/<id>, DELETE /received/<id>: remove_orders
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..errors import ValidationError
from ..services import order_service
from ..time_utils import parse_timestamp
from ..validation import parse_pagination

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _page_args() -> tuple[int, int]:
    return parse_pagination(
        request.args,
        default_limit=current_app.config["DEFAULT_PAGE_LIMIT"],
        max_limit=current_app.config["MAX_PAGE_LIMIT"],
    )


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    return payload


@orders_bp.get("/pending")
@require_auth
@require_capability("view_pending")
def list_pending_route():
    limit, offset = _page_args()
    orders, total = order_service.list_pending_orders(limit=limit, offset=offset)
    return jsonify({
        "items": [o.to_dict() for o in orders],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@orders_bp.post("/pending")
@require_auth
@require_capability("create_orders")
def place_order_route():
    """
    Place an order.

    Request body:
    {
        "product_id": 4,  // required
        "amount": 12      // required, > 0
    }
    """
    patch = order_service.clean_pending_payload(_json_body(), partial=False)
    order = order_service.place_order(patch["product_id"], patch["amount"])
    return jsonify({"pending_order": order.to_dict()}), 201


@orders_bp.put("/pending/<int:order_id>")
@require_auth
@require_capability("edit_pending")
def update_pending_route(order_id: int):
    patch = order_service.clean_pending_payload(_json_body(), partial=True)
    order = order_service.update_pending_order(order_id, patch)
    return jsonify({"pending_order": order.to_dict()})


@orders_bp.post("/pending/<int:order_id>/receive")
@require_auth
@require_capability("edit_received")
def receive_order_route(order_id: int):
    """
    Mark a pending order received.

    Request body (all optional):
    {
        "received": "2024-05-01T10:00:00Z",  // ISO-8601 or epoch seconds, default now
        "actually_received": 10,             // default: the ordered amount
        "damaged": 0                         // default 0
    }
    """
    payload = _json_body()

    received_at = None
    if payload.get("received") is not None:
        try:
            received_at = parse_timestamp(payload["received"])
        except (ValueError, OverflowError, OSError):
            raise ValidationError("received must be an ISO-8601 datetime or epoch seconds")

    receipt = order_service.clean_received_payload({
        key: payload[key]
        for key in ("actually_received", "damaged")
        if payload.get(key) is not None
    })
    actually_received = receipt.get("actually_received")
    if actually_received is None:
        actually_received = order_service.get_pending_order(order_id).amount
    damaged = receipt.get("damaged", 0.0)

    order = order_service.mark_received(order_id, received_at, actually_received, damaged)
    return jsonify({"received_order": order.to_dict()}), 201


@orders_bp.get("/received")
@require_auth
@require_capability("view_received")
def list_received_route():
    limit, offset = _page_args()
    orders, total = order_service.list_received_orders(limit=limit, offset=offset)
    return jsonify({
        "items": [o.to_dict() for o in orders],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@orders_bp.put("/received/<int:order_id>")
@require_auth
@require_capability("edit_received")
def update_received_route(order_id: int):
    patch = order_service.clean_received_payload(_json_body())
    order = order_service.update_received_order(order_id, patch)
    return jsonify({"received_order": order.to_dict()})


@orders_bp.post("/received/<int:order_id>/revert")
@require_auth
@require_capability("edit_received")
def revert_order_route(order_id: int):
    """
    Move a received order back to pending under a new id.

    Returns 409 when ORDER_REVERT_POLICY is "reject" and the receipt was
    short or damaged.
    """
    order = order_service.revert_received(order_id)
    return jsonify({"pending_order": order.to_dict()}), 201


@orders_bp.delete("/pending/<int:order_id>")
@require_auth
@require_capability("remove_orders")
def delete_pending_route(order_id: int):
    order_service.delete_pending_order(order_id)
    return jsonify({"deleted": True, "id": order_id})


@orders_bp.delete("/received/<int:order_id>")
@require_auth
@require_capability("remove_orders")
def delete_received_route(order_id: int):
    order_service.delete_received_order(order_id)
    return jsonify({"deleted": True, "id": order_id})
