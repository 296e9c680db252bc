from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any


# Largest accepted single amount (kg); keeps values inside Numeric(14, 3)
MAX_AMOUNT = Decimal("99999999999")
AMOUNT_PRECISION = Decimal("0.001")


def format_quantity(value) -> str:
    """Decimal without trailing zeros or exponent: 250.000 -> '250'."""
    return format(Decimal(value).normalize(), "f")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(ValueError):
    """404-level missing record (unknown product or staff)."""


class ConflictError(ValueError):
    """409-level business rule conflict (duplicate username, lost update race)."""


class InsufficientStockError(ConflictError):
    """409-level: decrease larger than the quantity on hand."""

    def __init__(self, product_name: str, requested, available):
        self.product_name = product_name
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {product_name}: requested {format_quantity(requested)}, "
            f"available {format_quantity(available)}"
        )


class PersistenceError(RuntimeError):
    """500-level storage failure on the primary write."""


def require_json_object(payload: Any) -> dict:
    """Request body as a dict; a missing body is empty, any non-object JSON is rejected."""
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("request body must be a JSON object")
    return payload


def require_text(payload: dict, key: str, *, max_length: int = 255, label: str | None = None) -> str:
    """Return a stripped, non-blank string field or raise ValidationError."""
    label = label or key
    value = payload.get(key)
    if value is None:
        raise ValidationError(f"{label} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    value = value.strip()
    if not value:
        raise ValidationError(f"{label} cannot be blank")
    if len(value) > max_length:
        raise ValidationError(f"{label} exceeds max length {max_length}")
    return value


def optional_text(payload: dict, key: str, *, max_length: int = 255) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value or None


def parse_product_name(value: Any) -> str:
    return require_text({"name": value}, "name", label="product name")


def parse_amount(value: Any, *, label: str = "amount") -> Decimal:
    """
    Coerce a JSON amount to a non-negative Decimal.

    Accepts ints, floats and numeric strings ("12", "12.5").
    Rejects booleans, NaN/Infinity, negatives, blanks and anything else.
    """
    if value is None:
        raise ValidationError(f"{label} is required")
    # bool is a subclass of int
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")

    if isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ValidationError(f"{label} must be a finite number")
        amount = Decimal(str(value))
    elif isinstance(value, Decimal):
        amount = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{label} must be a number")
        try:
            amount = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{label} must be a number")
    else:
        raise ValidationError(f"{label} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{label} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{label} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{label} cannot exceed {MAX_AMOUNT}")
    # Stored with gram precision; finer amounts are rejected, not rounded
    if amount != amount.quantize(AMOUNT_PRECISION):
        raise ValidationError(f"{label} cannot have more than 3 decimal places")
    return amount.quantize(AMOUNT_PRECISION)
