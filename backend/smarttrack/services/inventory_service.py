# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/smarttrack/services/inventory_service.py

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import Stock
from ..validation import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    parse_amount,
    parse_product_name,
)
from . import audit_service, threshold_service
from .audit_service import OP_ADD, OP_DECREASE, OP_INCREASE
from .concurrency import run_with_retry
"""
Inventory Invariants (authoritative)

Stock model:
- One Stock row per product; names match case-insensitively (name_key).
- quantity is a stored Numeric (kg) and is never negative.
- Rows are created by the first add and never deleted.

Mutations (add / increase / decrease):
- Input is validated before any read or write (ValidationError).
- increase/decrease on an unknown product -> NotFoundError, nothing written.
- decrease larger than quantity on hand -> InsufficientStockError, nothing written.
- The read-modify-write is an optimistic update on version_id. A lost race
  rolls back and re-reads, up to STOCK_UPDATE_ATTEMPTS; then ConflictError.

Side effects, strictly in this order, each in its own transaction:
1. quantity committed          (failure -> PersistenceError to the caller)
2. audit log appended          (failure -> logged only)
3. threshold evaluated         (decrease only; failure -> logged only)
Later failures never roll back earlier steps.
"""


def _find_stock(name: str) -> Stock | None:
    return db.session.query(Stock).filter_by(name_key=Stock.key_for(name)).first()


def get_stock(name) -> Stock:
    name = parse_product_name(name)
    stock = _find_stock(name)
    if stock is None:
        raise NotFoundError(f"Product not found: {name}")
    return stock


def list_stock() -> list[Stock]:
    """All products in storage order."""
    return db.session.query(Stock).order_by(Stock.id.asc()).all()


def _commit_stock_change(op):
    """
    Run op (read, validate, write, commit) under the optimistic retry policy.

    Domain errors raised by op (NotFoundError, InsufficientStockError)
    propagate immediately without retry.
    """
    attempts = current_app.config.get("STOCK_UPDATE_ATTEMPTS", 3)
    try:
        return run_with_retry(op, attempts=attempts)
    except (StaleDataError, IntegrityError) as exc:
        current_app.logger.warning("Stock update lost %s concurrent attempts: %s", attempts, exc)
        raise ConflictError("Stock was changed by another request; please retry") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to persist stock change")
        raise PersistenceError("Failed to save stock change") from exc


def _after_commit(
    stock_name: str,
    operation: str,
    amount: Decimal,
    new_quantity: Decimal,
    staff_username: str | None,
) -> None:
    try:
        audit_service.append_stock_log(
            product_name=stock_name,
            operation=operation,
            amount=amount,
            staff_username=staff_username,
        )
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Stock log failed for %s %s", operation, stock_name)

    # Threshold policy applies to decreases only
    if operation != OP_DECREASE:
        return

    try:
        threshold_service.evaluate_stock_level(stock_name, new_quantity, amount, staff_username)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Low stock evaluation failed for %s", stock_name)


def add_or_increase_stock(name, amount, *, staff_username: str | None = None) -> Stock:
    """
    Create the product with quantity=amount ("Add"), or add amount to an
    existing product ("Increase"). Never triggers a low-stock check.
    """
    name = parse_product_name(name)
    amount = parse_amount(amount)

    def _op():
        stock = _find_stock(name)
        if stock is None:
            stock = Stock(name=name, name_key=Stock.key_for(name), quantity=amount)
            db.session.add(stock)
            operation = OP_ADD
        else:
            stock.quantity = stock.quantity + amount
            operation = OP_INCREASE
        new_quantity = stock.quantity
        db.session.commit()
        return stock, operation, new_quantity

    stock, operation, new_quantity = _commit_stock_change(_op)
    current_app.logger.info("%s %s kg of %s -> %s kg", operation, amount, stock.name, new_quantity)

    _after_commit(stock.name, operation, amount, new_quantity, staff_username)
    return stock


def increase_stock(name, amount, *, staff_username: str | None = None) -> Stock:
    name = parse_product_name(name)
    amount = parse_amount(amount)

    def _op():
        stock = _find_stock(name)
        if stock is None:
            raise NotFoundError(f"Product not found: {name}")
        stock.quantity = stock.quantity + amount
        new_quantity = stock.quantity
        db.session.commit()
        return stock, new_quantity

    stock, new_quantity = _commit_stock_change(_op)
    current_app.logger.info("Increase %s kg of %s -> %s kg", amount, stock.name, new_quantity)

    _after_commit(stock.name, OP_INCREASE, amount, new_quantity, staff_username)
    return stock


def decrease_stock(name, amount, *, staff_username: str | None = None) -> Stock:
    """
    Remove amount from an existing product, then run the low-stock check.

    The quantity change is committed before the audit log and the alert;
    a failing alert or email never undoes it.
    """
    name = parse_product_name(name)
    amount = parse_amount(amount)

    def _op():
        stock = _find_stock(name)
        if stock is None:
            raise NotFoundError(f"Product not found: {name}")
        if amount > stock.quantity:
            raise InsufficientStockError(stock.name, amount, stock.quantity)
        stock.quantity = stock.quantity - amount
        new_quantity = stock.quantity
        db.session.commit()
        return stock, new_quantity

    stock, new_quantity = _commit_stock_change(_op)
    current_app.logger.info("Decrease %s kg of %s -> %s kg", amount, stock.name, new_quantity)

    _after_commit(stock.name, OP_DECREASE, amount, new_quantity, staff_username)
    return stock
