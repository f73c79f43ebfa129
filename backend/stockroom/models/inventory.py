from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..time_utils import to_utc_z

OWNER_BRAND = "brand"
OWNER_CATEGORY = "category"
OWNER_SUPPLIER = "supplier"


def decimal_to_str(value: Decimal | None) -> str | None:
    if value is None:
        return None
    # normalize() drops SQLite's padded scale; "f" avoids exponent notation
    return format(Decimal(value).normalize(), "f")


class Product(db.Model):
    """
    Product master data.

    Membership in brands, categories and suppliers lives in ProductLink,
    not on this row.
    """
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    upc = db.Column(db.Text, nullable=False)
    name = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    # Current stock on hand
    amount = db.Column(db.Float, nullable=False, default=0.0)

    case_size = db.Column(db.Integer, nullable=True)
    measure_by_weight = db.Column(db.Boolean, nullable=False, default=False)

    cost_price_per_unit = db.Column(db.Numeric(asdecimal=True), nullable=False)
    selling_price_per_unit = db.Column(db.Numeric(asdecimal=True), nullable=False)

    sale_end = db.Column(db.DateTime, nullable=True)

    # Reorder threshold
    buy_level = db.Column(db.Float, nullable=True)
    sale_price = db.Column(db.Numeric(asdecimal=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Product id={self.id} upc={self.upc!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "upc": self.upc,
            "name": self.name,
            "description": self.description,
            "amount": self.amount,
            "case_size": self.case_size,
            "measure_by_weight": self.measure_by_weight,
            "cost_price_per_unit": decimal_to_str(self.cost_price_per_unit),
            "selling_price_per_unit": decimal_to_str(self.selling_price_per_unit),
            "sale_end": to_utc_z(self.sale_end),
            "buy_level": self.buy_level,
            "sale_price": decimal_to_str(self.sale_price),
        }


class ProductLink(db.Model):
    """
    Many-to-many link between a product and an owner record
    (brand, category or supplier).

    One row per (owner_kind, owner_id, product_id); the unique constraint
    makes attach idempotent and lets concurrent attaches collide in the
    database instead of losing an update. Link id order is the order of the
    owner's `products` sequence.
    """
    __tablename__ = "product_links"
    __table_args__ = (
        db.UniqueConstraint("owner_kind", "owner_id", "product_id", name="uq_product_links_owner_product"),
        db.Index("ix_product_links_kind_product", "owner_kind", "product_id"),
        db.Index("ix_product_links_kind_owner", "owner_kind", "owner_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_kind = db.Column(db.String(16), nullable=False)
    owner_id = db.Column(db.Integer, nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    def __repr__(self) -> str:
        return f"<ProductLink {self.owner_kind}:{self.owner_id} -> product {self.product_id}>"


class OwnerMixin:
    """Shared behavior of Brand, Category and Supplier."""

    OWNER_KIND = ""

    @property
    def products(self) -> list[int]:
        rows = (
            db.session.query(ProductLink.product_id)
            .filter(
                ProductLink.owner_kind == self.OWNER_KIND,
                ProductLink.owner_id == self.id,
            )
            .order_by(ProductLink.id.asc())
            .all()
        )
        return [row.product_id for row in rows]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "products": self.products,
        }


class Brand(OwnerMixin, db.Model):
    __tablename__ = "brands"
    OWNER_KIND = OWNER_BRAND

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Brand id={self.id} name={self.name!r}>"


class Category(OwnerMixin, db.Model):
    __tablename__ = "categories"
    OWNER_KIND = OWNER_CATEGORY

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"


class Supplier(OwnerMixin, db.Model):
    __tablename__ = "suppliers"
    OWNER_KIND = OWNER_SUPPLIER

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.Text, nullable=False)
    phone_number = db.Column(db.Text, nullable=True)
    email = db.Column(db.Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["phone_number"] = self.phone_number
        data["email"] = self.email
        return data


OWNER_MODELS = {
    OWNER_BRAND: Brand,
    OWNER_CATEGORY: Category,
    OWNER_SUPPLIER: Supplier,
}
