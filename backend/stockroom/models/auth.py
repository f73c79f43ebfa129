from __future__ import annotations

from ..extensions import db

# Capability flags carried by every Permission row, in column order
CAPABILITIES = (
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


class User(db.Model):
    """
    User accounts. `name` is the login handle.

    Ids are assigned by the allocation service, except the bootstrap
    account which is always id 0.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_users_name"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.Text, nullable=False)
    email = db.Column(db.Text, nullable=False, default="")

    # bcrypt digest of password + pepper, never plaintext
    password = db.Column(db.String(255), nullable=False)

    permission = db.relationship(
        "Permission",
        uselist=False,
        back_populates="user",
        cascade="all, delete-orphan",
    )
    preference = db.relationship(
        "Preference",
        uselist=False,
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
        }


class Permission(db.Model):
    """
    One row per user; ten independent capability flags.

    `admin` does not imply any other flag.
    """
    __tablename__ = "permissions"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True, autoincrement=False)

    admin = db.Column(db.Boolean, nullable=False, default=False)
    view_pending = db.Column(db.Boolean, nullable=False, default=False)
    view_received = db.Column(db.Boolean, nullable=False, default=False)
    edit_pending = db.Column(db.Boolean, nullable=False, default=False)
    create_orders = db.Column(db.Boolean, nullable=False, default=False)
    edit_received = db.Column(db.Boolean, nullable=False, default=False)
    remove_orders = db.Column(db.Boolean, nullable=False, default=False)
    edit_products = db.Column(db.Boolean, nullable=False, default=False)
    view_products = db.Column(db.Boolean, nullable=False, default=False)
    view_suppliers = db.Column(db.Boolean, nullable=False, default=False)

    user = db.relationship("User", back_populates="permission")

    def to_dict(self) -> dict:
        data = {"user_id": self.user_id}
        for capability in CAPABILITIES:
            data[capability] = bool(getattr(self, capability))
        return data


class Preference(db.Model):
    """Per-user settings. Carries only the key for now."""
    __tablename__ = "preferences"

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), primary_key=True, autoincrement=False)

    user = db.relationship("User", back_populates="preference")
