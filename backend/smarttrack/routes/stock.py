# backend/smarttrack/routes/stock.py
"""
Stock routes.

SECURITY:
- Listing requires a staff session
- Mutations require a staff session unless ALLOW_ANONYMOUS_STOCK_UPDATES is set

Bodies: {"name": "<product>", "amount": <number >= 0>}
The acting username comes from the session, never from the body.
"""
from flask import Blueprint, current_app, request

from ..decorators import current_username, require_staff, require_stock_writer
from ..services import inventory_service
from ..validation import (
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    ValidationError,
    require_json_object,
)


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


def _error_response(exc: Exception):
    if isinstance(exc, ValidationError):
        return {"error": str(exc)}, 400
    if isinstance(exc, NotFoundError):
        return {"error": str(exc)}, 404
    if isinstance(exc, InsufficientStockError):
        return {
            "error": str(exc),
            "requested": float(exc.requested),
            "available": float(exc.available),
        }, 409
    if isinstance(exc, ConflictError):
        return {"error": str(exc)}, 409
    return {"error": "Server error"}, 500


def _mutate(operation):
    try:
        payload = require_json_object(request.get_json(silent=True))
        stock = operation(
            payload.get("name"),
            payload.get("amount"),
            staff_username=current_username(),
        )
    except (ValidationError, NotFoundError, ConflictError, PersistenceError) as e:
        return _error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update stock")
        return {"error": "Server error"}, 500
    return {"stock": stock.to_dict()}, 200


@stock_bp.get("")
@require_staff
def list_stock_route():
    return {"items": [s.to_dict() for s in inventory_service.list_stock()]}, 200


@stock_bp.get("/<path:name>")
@require_staff
def get_stock_route(name: str):
    try:
        return inventory_service.get_stock(name).to_dict(), 200
    except (ValidationError, NotFoundError) as e:
        return _error_response(e)


@stock_bp.post("")
@require_stock_writer
def add_stock_route():
    """Add a new product or increase an existing one."""
    return _mutate(inventory_service.add_or_increase_stock)


@stock_bp.post("/increase")
@require_stock_writer
def increase_stock_route():
    return _mutate(inventory_service.increase_stock)


@stock_bp.post("/decrease")
@require_stock_writer
def decrease_stock_route():
    """
    Decrease an existing product.

    A low-stock alert may be recorded and emailed as a side effect; its
    failure does not change this response.
    """
    return _mutate(inventory_service.decrease_stock)
