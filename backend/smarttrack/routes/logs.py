# Overview: Flask API routes for the stock audit log.

from flask import Blueprint, request

from ..decorators import require_admin
from ..services import audit_service


logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.get("")
@require_admin
def list_logs_route():
    """
    Stock logs newest first.

    Query: staff (username substring), product (name substring), limit (1-1000, default 200)
    """
    limit = request.args.get("limit", default=200, type=int)
    limit = max(1, min(limit, 1000))

    rows = audit_service.list_stock_logs(
        staff_name=request.args.get("staff") or None,
        product_name=request.args.get("product") or None,
        limit=limit,
    )
    return {"items": [r.to_dict() for r in rows], "limit": limit}, 200
