from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ._numbers import quantity_to_json
from .inventory import QUANTITY_TYPE


KIND_LOW_STOCK = "LOW_STOCK"
KIND_STAFF_ENQUIRY = "STAFF_ENQUIRY"
VALID_ENQUIRY_KINDS = {KIND_LOW_STOCK, KIND_STAFF_ENQUIRY}


class Enquiry(db.Model):
    """
    Low-stock alerts and staff product enquiries, stored in one table.

    kind decides which columns carry meaning:
    - LOW_STOCK: quantity is the amount removed, current_stock the resulting
      quantity, severity LOW_STOCK or CRITICALLY_LOW, message is generated
    - STAFF_ENQUIRY: quantity is the amount requested, message is free text

    staff_name/staff_email are a snapshot of the account at write time.
    Append-only.
    """
    __tablename__ = "enquiries"
    __table_args__ = (
        db.Index("ix_enquiries_kind_created", "kind", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(16), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(QUANTITY_TYPE, nullable=True)
    current_stock = db.Column(QUANTITY_TYPE, nullable=True)
    severity = db.Column(db.String(16), nullable=True)
    message = db.Column(db.Text, nullable=True)

    staff_username = db.Column(db.String(64), nullable=True, index=True)
    staff_name = db.Column(db.String(255), nullable=True)
    staff_email = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind,
            "product_name": self.product_name,
            "quantity": quantity_to_json(self.quantity),
            "current_stock": quantity_to_json(self.current_stock),
            "severity": self.severity,
            "message": self.message,
            "staff_username": self.staff_username,
            "staff_name": self.staff_name,
            "staff_email": self.staff_email,
            "created_at": to_utc_z(self.created_at),
        }
