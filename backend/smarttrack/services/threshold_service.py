# Overview: Low-stock threshold evaluation after a stock decrease.

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..models import Enquiry
from ..models._numbers import quantity_to_json
from ..time_utils import to_local_display
from . import enquiry_service, staff_service
from .notifier import Message, get_notifier, render_email
"""
Low-stock Invariants (authoritative)

Decrease path only.
- new quantity >= LOW_STOCK_THRESHOLD: nothing happens
- no acting staff username: nothing happens (anonymous decreases never alert)
- otherwise: CRITICALLY_LOW below CRITICAL_STOCK_THRESHOLD, else LOW_STOCK;
  a LOW_STOCK enquiry is stored, then the admin is emailed

There is no cooldown. Every qualifying decrease stores a new alert and sends
a new email, even for the same product a moment later.
"""


SEVERITY_LOW = "LOW_STOCK"
SEVERITY_CRITICAL = "CRITICALLY_LOW"

SEVERITY_LABELS = {
    SEVERITY_LOW: "LOW STOCK",
    SEVERITY_CRITICAL: "CRITICALLY LOW",
}


def classify(new_quantity: Decimal) -> str | None:
    """Severity for a quantity, or None when it is at/above the low-stock mark."""
    low = current_app.config["LOW_STOCK_THRESHOLD"]
    critical = current_app.config["CRITICAL_STOCK_THRESHOLD"]
    if new_quantity >= low:
        return None
    if new_quantity < critical:
        return SEVERITY_CRITICAL
    return SEVERITY_LOW


def alert_message(product_name: str, new_quantity: Decimal, amount_removed: Decimal) -> str:
    return (
        f"Low stock alert: {product_name} is now at {quantity_to_json(new_quantity)}kg "
        f"after reduction of {quantity_to_json(amount_removed)}kg"
    )


def evaluate_stock_level(
    product_name: str,
    new_quantity: Decimal,
    amount_removed: Decimal,
    staff_username: str | None,
) -> Enquiry | None:
    """
    Record and send a low-stock alert if the decrease left quantity under the mark.

    Returns the stored alert, or None if no alert was due.
    Alert persistence errors propagate; delivery failures do not.
    """
    severity = classify(new_quantity)
    if severity is None:
        return None

    if not staff_username:
        current_app.logger.info(
            "Skipping low stock alert for %s at %s: no acting staff", product_name, new_quantity
        )
        return None

    staff = staff_service.find_by_username(staff_username)
    if staff is None:
        current_app.logger.warning(
            "Low stock alert for %s raised by unknown staff %r", product_name, staff_username
        )

    alert = enquiry_service.record_low_stock_alert(
        product_name=product_name,
        reduced_by=amount_removed,
        current_stock=new_quantity,
        severity=severity,
        message=alert_message(product_name, new_quantity, amount_removed),
        staff_username=staff_username,
        staff_name=staff.name if staff else None,
        staff_email=staff.email if staff else None,
    )
    current_app.logger.info(
        "Low stock alert %s stored: %s at %s (%s)", alert.id, product_name, new_quantity, severity
    )

    text, html = render_email(
        "low_stock_alert",
        product_name=product_name,
        current_stock=quantity_to_json(new_quantity),
        amount_removed=quantity_to_json(amount_removed),
        severity_label=SEVERITY_LABELS[severity],
        staff_name=alert.staff_name,
        staff_email=alert.staff_email,
        staff_username=staff_username,
        occurred_at=to_local_display(alert.created_at),
    )
    low = current_app.config["LOW_STOCK_THRESHOLD"]
    get_notifier().send(Message(
        recipient=current_app.config.get("ADMIN_EMAIL"),
        subject=f"LOW STOCK ALERT: {product_name} below {low}kg",
        body=text,
        html=html,
    ))
    return alert
