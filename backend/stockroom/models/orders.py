from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class PendingOrder(db.Model):
    """An order that has been placed but not yet physically received."""
    __tablename__ = "pending_orders"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Ordered quantity
    amount = db.Column(db.Float, nullable=False)

    def __repr__(self) -> str:
        return f"<PendingOrder id={self.id} product_id={self.product_id} amount={self.amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "amount": self.amount,
        }


class ReceivedOrder(db.Model):
    """
    A received order. Terminal unless reverted.

    Partial receipt is data, not state: compare actually_received with
    gross_amount, and damaged counts units that arrived unusable.
    """
    __tablename__ = "received_orders"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    received = db.Column(db.DateTime, nullable=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    gross_amount = db.Column(db.Float, nullable=False)
    actually_received = db.Column(db.Float, nullable=False)
    damaged = db.Column(db.Float, nullable=False, default=0.0)

    def __repr__(self) -> str:
        return f"<ReceivedOrder id={self.id} product_id={self.product_id} gross_amount={self.gross_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "received": to_utc_z(self.received),
            "product_id": self.product_id,
            "gross_amount": self.gross_amount,
            "actually_received": self.actually_received,
            "damaged": self.damaged,
        }
