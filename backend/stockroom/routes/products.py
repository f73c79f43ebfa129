# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require view_products
- Write operations (including membership changes) require edit_products
"""
from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_capability
from ..errors import ValidationError
from ..models import OWNER_BRAND, OWNER_CATEGORY, OWNER_SUPPLIER
from ..services import association_service, products_service
from ..services.products_service import ProductBuilder, clean_product_payload
from ..validation import parse_id_list, parse_optional_id, parse_pagination

products_bp = Blueprint("products", __name__, url_prefix="/api/products")

# URL segment -> owner kind for membership routes
MEMBERSHIP_SEGMENTS = {
    "brands": OWNER_BRAND,
    "categories": OWNER_CATEGORY,
    "suppliers": OWNER_SUPPLIER,
}


def _owner_kind_for(segment: str) -> str:
    try:
        return MEMBERSHIP_SEGMENTS[segment]
    except KeyError:
        raise ValidationError(f"Unknown membership: {segment}")


@products_bp.get("")
@require_auth
@require_capability("view_products")
def list_products_route():
    """
    List products ordered by id.

    Query params:
    - limit: int (default 50, max 500)
    - offset: int (default 0)
    """
    limit, offset = parse_pagination(
        request.args,
        default_limit=current_app.config["DEFAULT_PAGE_LIMIT"],
        max_limit=current_app.config["MAX_PAGE_LIMIT"],
    )
    products, total = products_service.list_products(limit=limit, offset=offset)
    return jsonify({
        "items": [p.to_dict() for p in products],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@products_bp.get("/names")
@require_auth
@require_capability("view_products")
def product_names_route():
    return jsonify({"items": products_service.product_names()})


@products_bp.get("/<int:product_id>")
@require_auth
@require_capability("view_products")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    return jsonify({"product": product.to_dict()})


@products_bp.post("")
@require_auth
@require_capability("edit_products")
def create_product_route():
    """
    Create a new product with stock 0.

    Request body:
    {
        "upc": "012345678905",             // required
        "name": "Flour 1kg",               // required
        "measure_by_weight": false,        // required
        "cost_price_per_unit": "1.20",     // required
        "selling_price_per_unit": "2.00",  // required
        "description": "...",
        "case_size": 12,
        "buy_level": 4,
        "brand": 3,                        // optional brand id
        "categories": [1, 2],              // optional category ids
        "suppliers": [5]                   // optional supplier ids
    }

    A missing brand, category or supplier aborts the creation (404).
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    brand_id = parse_optional_id("brand", payload.pop("brand", None))
    category_ids = parse_id_list("categories", payload.pop("categories", None))
    supplier_ids = parse_id_list("suppliers", payload.pop("suppliers", None))

    patch = clean_product_payload(payload, partial=False)
    product = (
        ProductBuilder.from_patch(patch)
        .with_brand(brand_id)
        .with_categories(category_ids)
        .with_suppliers(supplier_ids)
        .build()
    )
    return jsonify({"product": product.to_dict()}), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_capability("edit_products")
def update_product_route(product_id: int):
    """Partial update; only fields present in the body change."""
    payload = request.get_json(silent=True)
    patch = clean_product_payload(payload, partial=True)
    product = products_service.update_product(product_id, patch)
    return jsonify({"product": product.to_dict()})


@products_bp.delete("/<int:product_id>")
@require_auth
@require_capability("edit_products")
def delete_product_route(product_id: int):
    """
    Delete a product, its pending and received orders, and its memberships.
    """
    products_service.delete_product(product_id)
    return jsonify({"deleted": True, "id": product_id})


@products_bp.get("/<int:product_id>/categories")
@require_auth
@require_capability("view_products")
def product_categories_route(product_id: int):
    products_service.get_product(product_id)
    owners = association_service.find_owners(product_id, OWNER_CATEGORY)
    return jsonify({"items": [o.to_dict() for o in owners]})


@products_bp.get("/<int:product_id>/suppliers")
@require_auth
@require_capability("view_products")
def product_suppliers_route(product_id: int):
    products_service.get_product(product_id)
    owners = association_service.find_owners(product_id, OWNER_SUPPLIER)
    return jsonify({"items": [o.to_dict() for o in owners]})


@products_bp.get("/<int:product_id>/brand")
@require_auth
@require_capability("view_products")
def product_brand_route(product_id: int):
    """The product's brand, or null when it has none."""
    products_service.get_product(product_id)
    brand = association_service.find_brand(product_id)
    return jsonify({"brand": brand.to_dict() if brand is not None else None})


@products_bp.post("/<int:product_id>/<string:segment>/<int:owner_id>")
@require_auth
@require_capability("edit_products")
def attach_product_route(product_id: int, segment: str, owner_id: int):
    """
    Add the product to a brand, category or supplier.

    Idempotent: attaching twice leaves one link (200 instead of 201).
    """
    owner_kind = _owner_kind_for(segment)
    created = association_service.link_product(product_id, owner_kind, owner_id)
    owner = association_service.get_owner(owner_kind, owner_id)
    return jsonify({"created": created, owner_kind: owner.to_dict()}), 201 if created else 200


@products_bp.delete("/<int:product_id>/<string:segment>/<int:owner_id>")
@require_auth
@require_capability("edit_products")
def detach_product_route(product_id: int, segment: str, owner_id: int):
    owner_kind = _owner_kind_for(segment)
    removed = association_service.unlink_product(product_id, owner_kind, owner_id)
    owner = association_service.get_owner(owner_kind, owner_id)
    return jsonify({"removed": removed, owner_kind: owner.to_dict()})
