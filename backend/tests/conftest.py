"""
Pytest fixtures for stockroom backend tests.

Provides an app bound to a fresh in-memory database per test, a test
client, and factories for users, products and owner records.
"""

from decimal import Decimal

import pytest
from stockroom import create_app
from stockroom.extensions import db
from stockroom.models import CAPABILITIES, OWNER_BRAND, OWNER_CATEGORY, OWNER_SUPPLIER
from stockroom.services import auth_service, owner_service
from stockroom.services.products_service import ProductBuilder

ADMIN_NAME = "owner"
ADMIN_PASSWORD = "Owner-Pass-1"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BCRYPT_ROUNDS': 4,
    'PEPPER': 'test-pepper',
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture
def config_overrides():
    """Per-test config on top of TEST_CONFIG; override in a test module."""
    return {}


@pytest.fixture
def app(config_overrides):
    """Create application for testing with an empty schema."""
    app = create_app({**TEST_CONFIG, **config_overrides})

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def admin(app):
    """The bootstrap user: id 0, every capability."""
    return auth_service.initialize_first_user(ADMIN_NAME, ADMIN_PASSWORD)


@pytest.fixture
def make_user(app):
    """Factory: make_user("clerk", view_products=True) -> User."""
    counter = {"n": 0}

    def _make(name=None, password="Clerk-Pass-1", **flags):
        counter["n"] += 1
        name = name or f"user{counter['n']}"
        return auth_service.UserBuilder(name, password).with_permissions(flags).build()

    return _make


@pytest.fixture
def make_product(app):
    """Factory: make_product(upc="0001", brand=1, categories=[2]) -> Product."""
    counter = {"n": 0}

    def _make(upc=None, name=None, brand=None, categories=(), suppliers=()):
        counter["n"] += 1
        return (
            ProductBuilder(
                upc or f"{counter['n']:012d}",
                name or f"Product {counter['n']}",
                False,
                Decimal("1.25"),
                Decimal("2.50"),
            )
            .with_brand(brand)
            .with_categories(list(categories))
            .with_suppliers(list(suppliers))
            .build()
        )

    return _make


@pytest.fixture
def make_owner(app):
    """Factory: make_owner("category", "Baking") -> Category."""

    def _make(owner_kind, name, **fields):
        return owner_service.create_owner(owner_kind, {"name": name, **fields})

    return _make


@pytest.fixture
def brand(make_owner):
    return make_owner(OWNER_BRAND, "Acme")


@pytest.fixture
def category(make_owner):
    return make_owner(OWNER_CATEGORY, "Baking")


@pytest.fixture
def supplier(make_owner):
    return make_owner(OWNER_SUPPLIER, "Mill Co", phone_number="555-0100", email="orders@mill.test")


def auth_headers(username: str, password: str) -> dict:
    """Helper to create credential headers."""
    return {'username': username, 'password': password}


@pytest.fixture
def admin_headers(admin):
    return auth_headers(ADMIN_NAME, ADMIN_PASSWORD)


@pytest.fixture
def clerk_headers(make_user):
    """A user holding every capability except admin."""
    flags = {capability: True for capability in CAPABILITIES if capability != "admin"}
    make_user("clerk", "Clerk-Pass-1", **flags)
    return auth_headers("clerk", "Clerk-Pass-1")


@pytest.fixture
def nobody_headers(make_user):
    """A user holding no capability at all."""
    make_user("nobody", "Nobody-Pass-1")
    return auth_headers("nobody", "Nobody-Pass-1")
