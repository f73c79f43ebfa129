"""Initial stockroom schema

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_initial"
down_revision = None
branch_labels = None
depends_on = None


CAPABILITY_COLUMNS = (
    "admin",
    "view_pending",
    "view_received",
    "edit_pending",
    "create_orders",
    "edit_received",
    "remove_orders",
    "edit_products",
    "view_products",
    "view_suppliers",
)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_users_name"),
    )

    op.create_table(
        "permissions",
        sa.Column("user_id", sa.Integer(), autoincrement=False, nullable=False),
        *[sa.Column(name, sa.Boolean(), nullable=False) for name in CAPABILITY_COLUMNS],
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "preferences",
        sa.Column("user_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("upc", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.Column("case_size", sa.Integer(), nullable=True),
        sa.Column("measure_by_weight", sa.Boolean(), nullable=False),
        sa.Column("cost_price_per_unit", sa.Numeric(), nullable=False),
        sa.Column("selling_price_per_unit", sa.Numeric(), nullable=False),
        sa.Column("sale_end", sa.DateTime(), nullable=True),
        sa.Column("buy_level", sa.Float(), nullable=True),
        sa.Column("sale_price", sa.Numeric(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    for table in ("brands", "categories"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone_number", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "product_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_kind", sa.String(length=16), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_kind", "owner_id", "product_id", name="uq_product_links_owner_product"),
    )
    op.create_index("ix_product_links_kind_product", "product_links", ["owner_kind", "product_id"])
    op.create_index("ix_product_links_kind_owner", "product_links", ["owner_kind", "owner_id"])

    op.create_table(
        "pending_orders",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pending_orders_product_id", "pending_orders", ["product_id"])

    op.create_table(
        "received_orders",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("received", sa.DateTime(), nullable=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("gross_amount", sa.Float(), nullable=False),
        sa.Column("actually_received", sa.Float(), nullable=False),
        sa.Column("damaged", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_received_orders_product_id", "received_orders", ["product_id"])


def downgrade():
    op.drop_index("ix_received_orders_product_id", table_name="received_orders")
    op.drop_table("received_orders")
    op.drop_index("ix_pending_orders_product_id", table_name="pending_orders")
    op.drop_table("pending_orders")
    op.drop_index("ix_product_links_kind_owner", table_name="product_links")
    op.drop_index("ix_product_links_kind_product", table_name="product_links")
    op.drop_table("product_links")
    op.drop_table("suppliers")
    op.drop_table("categories")
    op.drop_table("brands")
    op.drop_table("products")
    op.drop_table("preferences")
    op.drop_table("permissions")
    op.drop_table("users")
