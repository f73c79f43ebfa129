# Overview: Product membership in brands, categories and suppliers.

"""
Association Manager

A product's brands, categories and suppliers ("owner records") are stored
as ProductLink rows, one per (owner_kind, owner_id, product_id). An owner's
`products` sequence is the ordered list of its links.

INVARIANTS:
- Links only point at existing products and owners; product and owner
  deletion remove their links in the same transaction
- No duplicates: attach is idempotent
- A product has at most one brand

CONCURRENCY:
- attach/detach lock the owner row first (SELECT ... FOR UPDATE), so
  mutations to one owner serialize on backends that honor it
- Two concurrent attaches of the same pair collide on the unique
  constraint; the loser treats the link as already present. Any other
  constraint failure on insert is not mistaken for an existing link

The functions below flush but never commit, so product creation and
deletion can compose them into one transaction. link_product and
unlink_product are the committing entry points for single changes.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    OWNER_BRAND,
    OWNER_CATEGORY,
    OWNER_MODELS,
    OWNER_SUPPLIER,
    Product,
    ProductLink,
)
from .concurrency import lock_for_update, run_with_retry, transaction

# Order in which product deletion prunes memberships
CASCADE_ORDER = (OWNER_SUPPLIER, OWNER_CATEGORY, OWNER_BRAND)


def owner_model(owner_kind: str):
    try:
        return OWNER_MODELS[owner_kind]
    except KeyError:
        raise ValidationError(f"Unknown owner kind: {owner_kind}")


def get_owner(owner_kind: str, owner_id: int, *, for_update: bool = False):
    """
    Load a brand, category or supplier by id.

    Raises:
        NotFoundError: If no such owner exists
    """
    model = owner_model(owner_kind)
    query = db.session.query(model).filter(model.id == owner_id)
    if for_update:
        query = lock_for_update(query)
    owner = query.first()
    if owner is None:
        raise NotFoundError(f"{owner_kind.capitalize()} {owner_id} not found")
    return owner


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def _links(product_id: int, owner_kind: str, owner_id: int):
    return db.session.query(ProductLink).filter(
        ProductLink.owner_kind == owner_kind,
        ProductLink.owner_id == owner_id,
        ProductLink.product_id == product_id,
    )


def attach(product_id: int, owner_kind: str, owner_id: int) -> bool:
    """
    Add a product to an owner's `products`.

    Returns True if a link was created, False if it already existed.

    Raises:
        NotFoundError: If the product or the owner does not exist
        ConflictError: If attaching a brand to a product that already has
            a different brand
    """
    get_owner(owner_kind, owner_id, for_update=True)
    _require_product(product_id)

    if _links(product_id, owner_kind, owner_id).first() is not None:
        return False

    if owner_kind == OWNER_BRAND:
        other = (
            db.session.query(ProductLink.owner_id)
            .filter(
                ProductLink.owner_kind == OWNER_BRAND,
                ProductLink.product_id == product_id,
                ProductLink.owner_id != owner_id,
            )
            .first()
        )
        if other is not None:
            raise ConflictError(
                f"Product {product_id} already belongs to brand {other.owner_id}",
                brand_id=other.owner_id,
            )

    link = ProductLink(owner_kind=owner_kind, owner_id=owner_id, product_id=product_id)
    try:
        with db.session.begin_nested():
            db.session.add(link)
    except IntegrityError:
        if _links(product_id, owner_kind, owner_id).first() is not None:
            # A concurrent attach of the same pair won the race
            return False
        # Product removed after the checks above
        _require_product(product_id)
        raise
    return True


def detach(product_id: int, owner_kind: str, owner_id: int) -> int:
    """
    Remove every occurrence of a product from an owner's `products`.

    Returns the number of links removed (0 if the product was not linked).

    Raises:
        NotFoundError: If the owner does not exist
    """
    get_owner(owner_kind, owner_id, for_update=True)
    return _links(product_id, owner_kind, owner_id).delete()


def find_owners(product_id: int, owner_kind: str) -> list:
    """Owners of one kind whose `products` contain product_id."""
    model = owner_model(owner_kind)
    return (
        db.session.query(model)
        .join(
            ProductLink,
            db.and_(
                ProductLink.owner_id == model.id,
                ProductLink.owner_kind == owner_kind,
            ),
        )
        .filter(ProductLink.product_id == product_id)
        .order_by(model.id.asc())
        .all()
    )


def find_brand(product_id: int):
    """The product's brand, or None when it has none."""
    owners = find_owners(product_id, OWNER_BRAND)
    return owners[0] if owners else None


def cascade_detach_all(product_id: int) -> None:
    """Remove a product from every supplier, category and brand."""
    for owner_kind in CASCADE_ORDER:
        for owner in find_owners(product_id, owner_kind):
            detach(product_id, owner_kind, owner.id)


def detach_all_products(owner_kind: str, owner_id: int) -> int:
    """Empty an owner's `products` (used when the owner is deleted)."""
    return (
        db.session.query(ProductLink)
        .filter(ProductLink.owner_kind == owner_kind, ProductLink.owner_id == owner_id)
        .delete()
    )


def set_owner_products(owner_kind: str, owner_id: int, product_ids: list[int]) -> None:
    """
    Make an owner's membership equal to product_ids.

    Existing links keep their position; new ones are appended in the order
    given. Duplicates in product_ids are ignored.
    """
    owner = get_owner(owner_kind, owner_id, for_update=True)
    desired = list(dict.fromkeys(product_ids))
    current = owner.products

    for product_id in current:
        if product_id not in desired:
            detach(product_id, owner_kind, owner_id)
    for product_id in desired:
        if product_id not in current:
            attach(product_id, owner_kind, owner_id)


def link_product(product_id: int, owner_kind: str, owner_id: int) -> bool:
    """attach() in its own transaction, retried on lock contention."""
    def _op() -> bool:
        with transaction():
            return attach(product_id, owner_kind, owner_id)
    return run_with_retry(_op)


def unlink_product(product_id: int, owner_kind: str, owner_id: int) -> int:
    """detach() in its own transaction, retried on lock contention."""
    def _op() -> int:
        with transaction():
            return detach(product_id, owner_kind, owner_id)
    return run_with_retry(_op)
