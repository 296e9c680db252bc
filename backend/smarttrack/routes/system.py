# backend/smarttrack/routes/system.py
"""
System health endpoint.
"""

import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import Stock, Staff
from ..services.notifier import get_notifier

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Stock).count()
        staff_count = db.session.query(Staff).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "staff": staff_count,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_mail_configuration() -> dict:
    """Report the configured transport without contacting the provider."""
    notifier = get_notifier()
    admin_email = current_app.config.get("ADMIN_EMAIL")
    return {
        "status": "healthy" if admin_email else "degraded",
        "transport": notifier.transport.name,
        "admin_email_set": bool(admin_email),
    }


@system_bp.get("/health")
def health_route():
    database = check_database_health()
    mail = check_mail_configuration()
    status = "healthy" if database["status"] == "healthy" else "unhealthy"
    code = 200 if status == "healthy" else 503
    return {"status": status, "checks": {"database": database, "mail": mail}}, code
