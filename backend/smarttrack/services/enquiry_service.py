# Overview: Service-layer operations for low-stock alerts and staff product enquiries.

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Enquiry
from ..models._numbers import quantity_to_json
from ..models.enquiries import KIND_LOW_STOCK, KIND_STAFF_ENQUIRY, VALID_ENQUIRY_KINDS
from ..time_utils import to_local_display, utcnow
from ..validation import NotFoundError, ValidationError, parse_amount, require_text, optional_text
from . import staff_service
from .notifier import Message, get_notifier, render_email


MAX_MESSAGE_LENGTH = 5000


def record_low_stock_alert(
    *,
    product_name: str,
    reduced_by: Decimal,
    current_stock: Decimal,
    severity: str,
    message: str,
    staff_username: str,
    staff_name: str | None = None,
    staff_email: str | None = None,
) -> Enquiry:
    alert = Enquiry(
        kind=KIND_LOW_STOCK,
        product_name=product_name,
        quantity=reduced_by,
        current_stock=current_stock,
        severity=severity,
        message=message,
        staff_username=staff_username,
        staff_name=staff_name,
        staff_email=staff_email,
    )
    db.session.add(alert)
    db.session.commit()
    return alert


def record_staff_enquiry(
    *,
    product_name: str,
    quantity: Decimal,
    message: str | None,
    staff_username: str,
    staff_name: str | None = None,
    staff_email: str | None = None,
) -> Enquiry:
    enquiry = Enquiry(
        kind=KIND_STAFF_ENQUIRY,
        product_name=product_name,
        quantity=quantity,
        message=message,
        staff_username=staff_username,
        staff_name=staff_name,
        staff_email=staff_email,
    )
    db.session.add(enquiry)
    db.session.commit()
    return enquiry


def submit_staff_enquiry(username: str, data: dict) -> Enquiry:
    """
    Record a staff product enquiry and email the admin.

    Name/email are copied from the staff account at write time. The enquiry
    is stored even if the email cannot be delivered.
    """
    staff = staff_service.find_by_username(username)
    if staff is None:
        raise NotFoundError("Staff not found")

    product_name = require_text(data, "product_name", label="product name")
    quantity = parse_amount(data.get("quantity"), label="quantity")
    message = optional_text(data, "message", max_length=MAX_MESSAGE_LENGTH)

    enquiry = record_staff_enquiry(
        product_name=product_name,
        quantity=quantity,
        message=message,
        staff_username=staff.username,
        staff_name=staff.name,
        staff_email=staff.email,
    )
    current_app.logger.info("Staff enquiry %s stored for %s by %s", enquiry.id, product_name, staff.username)

    text, html = render_email(
        "staff_enquiry",
        product_name=product_name,
        quantity=quantity_to_json(quantity),
        staff_name=staff.name,
        staff_email=staff.email,
        staff_username=staff.username,
        message=message,
        occurred_at=to_local_display(enquiry.created_at or utcnow()),
    )
    get_notifier().send(Message(
        recipient=current_app.config.get("ADMIN_EMAIL"),
        subject=f"New Product Enquiry: {product_name}",
        body=text,
        html=html,
    ))
    return enquiry


def list_enquiries(kind: str | None = None, limit: int | None = None) -> list[Enquiry]:
    q = db.session.query(Enquiry)
    if kind:
        normalized = kind.upper().strip()
        if normalized not in VALID_ENQUIRY_KINDS:
            raise ValidationError("kind must be LOW_STOCK or STAFF_ENQUIRY")
        q = q.filter(Enquiry.kind == normalized)
    q = q.order_by(Enquiry.created_at.desc(), Enquiry.id.desc())
    if limit is not None:
        q = q.limit(limit)
    return q.all()
