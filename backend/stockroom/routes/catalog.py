# Overview: Flask API routes for brands, categories and suppliers.

"""
Owner record routes

Brands, categories and suppliers share one route set, built per kind by
make_owner_blueprint. Each owner's JSON carries its ordered `products` ids.

SECURITY: All routes require authentication.
- Brands and categories are read with view_products, suppliers with
  view_suppliers
- Create/update/delete require edit_products for every kind
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..errors import ValidationError
from ..models import OWNER_BRAND, OWNER_CATEGORY, OWNER_SUPPLIER
from ..services import owner_service
from ..services.association_service import get_owner
from ..validation import parse_id_list, parse_pagination


def _split_payload(owner_kind: str, *, partial: bool) -> tuple[dict, list[int] | None]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    product_ids = None
    if "products" in payload:
        product_ids = parse_id_list("products", payload.pop("products"))

    patch = owner_service.clean_owner_payload(owner_kind, payload, partial=partial)
    return patch, product_ids


def make_owner_blueprint(owner_kind: str, url_segment: str, view_capability: str) -> Blueprint:
    bp = Blueprint(url_segment, __name__, url_prefix=f"/api/{url_segment}")

    @bp.get("")
    @require_auth
    @require_capability(view_capability)
    def list_owners_route():
        """
        Query params:
        - limit: int (default 50, max 500)
        - offset: int (default 0)

        Returns:
            {items: [...], count: int, limit: int, offset: int}
        """
        limit, offset = parse_pagination(
            request.args,
            default_limit=current_app.config["DEFAULT_PAGE_LIMIT"],
            max_limit=current_app.config["MAX_PAGE_LIMIT"],
        )
        owners, total = owner_service.list_owners(owner_kind, limit=limit, offset=offset)
        return jsonify({
            "items": [o.to_dict() for o in owners],
            "count": total,
            "limit": limit,
            "offset": offset,
        })

    @bp.get("/names")
    @require_auth
    @require_capability(view_capability)
    def owner_names_route():
        return jsonify({"items": owner_service.owner_names(owner_kind)})

    @bp.get("/<int:owner_id>")
    @require_auth
    @require_capability(view_capability)
    def get_owner_route(owner_id: int):
        owner = get_owner(owner_kind, owner_id)
        return jsonify({owner_kind: owner.to_dict()})

    @bp.post("")
    @require_auth
    @require_capability("edit_products")
    def create_owner_route():
        """
        Request body:
        {
            "name": "...",       // required
            "products": [1, 2]   // optional product ids
        }
        Suppliers also accept "phone_number" and "email".
        """
        patch, product_ids = _split_payload(owner_kind, partial=False)
        owner = owner_service.create_owner(owner_kind, patch, product_ids)
        return jsonify({owner_kind: owner.to_dict()}), 201

    @bp.put("/<int:owner_id>")
    @require_auth
    @require_capability("edit_products")
    def update_owner_route(owner_id: int):
        """Partial update. A "products" list replaces the membership."""
        patch, product_ids = _split_payload(owner_kind, partial=True)
        owner = owner_service.update_owner(owner_kind, owner_id, patch, product_ids)
        return jsonify({owner_kind: owner.to_dict()})

    @bp.delete("/<int:owner_id>")
    @require_auth
    @require_capability("edit_products")
    def delete_owner_route(owner_id: int):
        owner_service.delete_owner(owner_kind, owner_id)
        return jsonify({"deleted": True, "id": owner_id})

    return bp


brands_bp = make_owner_blueprint(OWNER_BRAND, "brands", "view_products")
categories_bp = make_owner_blueprint(OWNER_CATEGORY, "categories", "view_products")
suppliers_bp = make_owner_blueprint(OWNER_SUPPLIER, "suppliers", "view_suppliers")
