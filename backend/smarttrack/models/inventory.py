from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ._numbers import quantity_to_json


QUANTITY_TYPE = db.Numeric(14, 3, asdecimal=True)


class Stock(db.Model):
    """
    Authoritative on-hand quantity for one product (kg).

    NAME MATCHING:
    - name keeps the casing it was first added with
    - name_key is the lower-cased name and carries the UNIQUE constraint,
      so "Rice" and "rice" are the same product

    CONCURRENCY:
    version_id is SQLAlchemy's version counter. Every UPDATE is issued as
    "... WHERE id = ? AND version_id = ?", so two requests that read the same
    row cannot both write it; the loser gets StaleDataError and retries.
    """
    __tablename__ = "stock"
    __table_args__ = (
        db.UniqueConstraint("name_key", name="uq_stock_name_key"),
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    name_key = db.Column(db.String(255), nullable=False, index=True)

    quantity = db.Column(QUANTITY_TYPE, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    @staticmethod
    def key_for(name: str) -> str:
        return name.strip().lower()

    def __repr__(self) -> str:
        return f"<Stock id={self.id} name={self.name!r} quantity={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": quantity_to_json(self.quantity),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockLog(db.Model):
    """
    Append-only audit record of one stock mutation.

    IMMUTABLE: Never update or delete. staff_username is a label captured at
    write time, not a foreign key; it survives later staff edits.
    """
    __tablename__ = "stock_logs"
    __table_args__ = (
        db.Index("ix_stock_logs_created", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_name = db.Column(db.String(255), nullable=False, index=True)
    operation = db.Column(db.String(16), nullable=False)  # Add, Increase, Decrease
    amount = db.Column(QUANTITY_TYPE, nullable=False)
    staff_username = db.Column(db.String(64), nullable=False, default="Unknown Staff", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "operation": self.operation,
            "amount": quantity_to_json(self.amount),
            "staff_username": self.staff_username,
            "created_at": to_utc_z(self.created_at),
        }
