# backend/stockroom/services/products_service.py
"""
Products Service

Creation goes through ProductBuilder so a product and all of its initial
memberships (brand, categories, suppliers) land in one transaction.
Deletion removes memberships and orders before the row itself, also in one
transaction.
"""
from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..errors import NotFoundError
from ..extensions import db
from ..models import (
    OWNER_BRAND,
    OWNER_CATEGORY,
    OWNER_SUPPLIER,
    PendingOrder,
    Product,
    ReceivedOrder,
)
from ..validation import ModelValidationPolicy, enforce_rules_product, validate_payload
from .allocation_service import insert_with_next_id
from .association_service import attach, cascade_detach_all
from .concurrency import transaction

PRODUCT_MUTABLE_FIELDS = {
    "upc",
    "name",
    "description",
    "amount",
    "case_size",
    "measure_by_weight",
    "cost_price_per_unit",
    "selling_price_per_unit",
    "sale_end",
    "buy_level",
    "sale_price",
}

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=PRODUCT_MUTABLE_FIELDS,
    required_on_create={"upc", "name", "measure_by_weight", "cost_price_per_unit", "selling_price_per_unit"},
)

# Fields a new product can be created with; stock and sale fields are set
# later through updates.
PRODUCT_CREATE_FIELDS = PRODUCT_POLICY.required_on_create | {"description", "case_size", "buy_level"}


def clean_product_payload(payload: dict, *, partial: bool) -> dict:
    policy = PRODUCT_POLICY
    if not partial:
        policy = ModelValidationPolicy(
            writable_fields=PRODUCT_CREATE_FIELDS,
            required_on_create=PRODUCT_POLICY.required_on_create,
        )
    patch = validate_payload(model=Product, payload=payload, policy=policy, partial=partial)
    enforce_rules_product(patch)
    return patch


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


class ProductBuilder:
    """
    Two-step product creation.

    Usage:
        product = (
            ProductBuilder("0123", "Flour", False, Decimal("1.00"), Decimal("2.00"))
            .with_brand(3)
            .with_categories([1, 2])
            .build()
        )
    """

    def __init__(
        self,
        upc: str,
        name: str,
        measure_by_weight: bool,
        cost_price_per_unit: Decimal,
        selling_price_per_unit: Decimal,
    ):
        self.upc = upc
        self.name = name
        self.measure_by_weight = measure_by_weight
        self.cost_price_per_unit = cost_price_per_unit
        self.selling_price_per_unit = selling_price_per_unit
        self.description: str | None = None
        self.case_size: int | None = None
        self.buy_level: float | None = None
        self.brand: int | None = None
        self.categories: list[int] = []
        self.suppliers: list[int] = []

    @classmethod
    def from_patch(cls, patch: dict) -> "ProductBuilder":
        builder = cls(
            patch["upc"],
            patch["name"],
            patch["measure_by_weight"],
            patch["cost_price_per_unit"],
            patch["selling_price_per_unit"],
        )
        if patch.get("description") is not None:
            builder.with_description(patch["description"])
        if patch.get("case_size") is not None:
            builder.with_case_size(patch["case_size"])
        if patch.get("buy_level") is not None:
            builder.with_buy_level(patch["buy_level"])
        return builder

    def with_description(self, description: str) -> "ProductBuilder":
        self.description = description
        return self

    def with_case_size(self, case_size: int) -> "ProductBuilder":
        self.case_size = case_size
        return self

    def with_buy_level(self, buy_level: float) -> "ProductBuilder":
        self.buy_level = buy_level
        return self

    def with_brand(self, brand_id: int | None) -> "ProductBuilder":
        self.brand = brand_id
        return self

    def with_categories(self, category_ids: list[int]) -> "ProductBuilder":
        self.categories = list(category_ids)
        return self

    def with_suppliers(self, supplier_ids: list[int]) -> "ProductBuilder":
        self.suppliers = list(supplier_ids)
        return self

    def build(self) -> Product:
        """
        Insert the product (stock 0) and attach it to its brand, categories
        and suppliers. Any missing owner aborts the whole creation.
        """
        with transaction():
            product = insert_with_next_id(
                Product,
                upc=self.upc,
                name=self.name,
                description=self.description or "",
                amount=0.0,
                case_size=self.case_size,
                measure_by_weight=self.measure_by_weight,
                cost_price_per_unit=self.cost_price_per_unit,
                selling_price_per_unit=self.selling_price_per_unit,
                sale_end=None,
                buy_level=self.buy_level,
                sale_price=None,
            )
            if self.brand is not None:
                attach(product.id, OWNER_BRAND, self.brand)
            for category_id in self.categories:
                attach(product.id, OWNER_CATEGORY, category_id)
            for supplier_id in self.suppliers:
                attach(product.id, OWNER_SUPPLIER, supplier_id)

        current_app.logger.info("Created product id=%s upc=%s", product.id, product.upc)
        return product


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def list_products(*, limit: int, offset: int) -> tuple[list[Product], int]:
    query = db.session.query(Product)
    total = query.count()
    items = query.order_by(Product.id.asc()).limit(limit).offset(offset).all()
    return items, total


def product_names() -> list[dict]:
    """(name, upc, id) for every product, for pickers and scanners."""
    rows = db.session.query(Product.name, Product.upc, Product.id).order_by(Product.id.asc()).all()
    return [{"name": row.name, "upc": row.upc, "id": row.id} for row in rows]


def update_product(product_id: int, patch: dict) -> Product:
    """Apply a validated patch (see clean_product_payload)."""
    with transaction():
        product = get_product(product_id)
        apply_product_patch(product, patch)
    return product


def delete_product(product_id: int) -> None:
    """
    Delete a product and everything that references it.

    Order: pending orders, received orders, supplier/category/brand links,
    then the product row. One transaction; a failure leaves nothing changed.
    """
    with transaction():
        product = get_product(product_id)

        pending = (
            db.session.query(PendingOrder)
            .filter(PendingOrder.product_id == product_id)
            .delete()
        )
        received = (
            db.session.query(ReceivedOrder)
            .filter(ReceivedOrder.product_id == product_id)
            .delete()
        )
        cascade_detach_all(product_id)
        db.session.delete(product)

    current_app.logger.info(
        "Deleted product id=%s (pending_orders=%s, received_orders=%s)",
        product_id, pending, received,
    )
