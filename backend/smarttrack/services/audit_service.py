# Overview: Service-layer operations for the stock audit log.

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from flask import current_app

from ..extensions import db
from ..models import StockLog
"""
Stock Audit Log Invariants (authoritative)

- Append-only: one StockLog per successful stock mutation, never updated or deleted.
- Written after the quantity change is committed, in its own transaction.
- A failed write is logged and swallowed; the stock change stays committed.
- created_at is assigned at write time.
- Reads are newest first.
"""


OP_ADD = "Add"
OP_INCREASE = "Increase"
OP_DECREASE = "Decrease"
VALID_OPERATIONS = {OP_ADD, OP_INCREASE, OP_DECREASE}

UNKNOWN_STAFF = "Unknown Staff"


def append_stock_log(
    *,
    product_name: str,
    operation: str,
    amount: Decimal,
    staff_username: str | None = None,
) -> StockLog | None:
    """
    Append one audit record and commit it.

    Returns the StockLog, or None when the write failed (already logged).
    """
    if operation not in VALID_OPERATIONS:
        raise ValueError(f"unknown stock operation {operation!r}")

    entry = StockLog(
        product_name=product_name,
        operation=operation,
        amount=amount,
        staff_username=staff_username or UNKNOWN_STAFF,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to write stock log: %s %s %s by %s",
            operation, amount, product_name, entry.staff_username,
        )
        return None
    return entry


def list_stock_logs(
    *,
    staff_name: str | None = None,
    product_name: str | None = None,
    limit: int | None = None,
) -> list[StockLog]:
    """
    Audit records newest first.

    staff_name / product_name are case-insensitive substring filters.
    """
    q = db.session.query(StockLog)
    if staff_name:
        q = q.filter(StockLog.staff_username.ilike(f"%{_escape_like(staff_name)}%", escape="\\"))
    if product_name:
        q = q.filter(StockLog.product_name.ilike(f"%{_escape_like(product_name)}%", escape="\\"))

    q = q.order_by(StockLog.created_at.desc(), StockLog.id.desc())
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
