# Overview: Flask API routes for enquiries; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, request

from ..decorators import require_admin, require_staff
from ..services import enquiry_service
from ..validation import NotFoundError, ValidationError, require_json_object


enquiries_bp = Blueprint("enquiries", __name__, url_prefix="/api/enquiries")


@enquiries_bp.post("")
@require_staff
def submit_enquiry_route():
    """
    Submit a product enquiry as the logged-in staff member.

    Body: {"product_name": str, "quantity": number, "message": str (optional)}
    The admin is emailed; a delivery failure still returns 201.
    """
    try:
        payload = require_json_object(request.get_json(silent=True))
        enquiry = enquiry_service.submit_staff_enquiry(g.current_staff.username, payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to submit enquiry")
        return {"error": "Server error"}, 500

    return {"enquiry": enquiry.to_dict(), "message": "Enquiry submitted successfully"}, 201


@enquiries_bp.get("")
@require_admin
def list_enquiries_route():
    """Low-stock alerts and staff enquiries, newest first. Optional ?kind=LOW_STOCK|STAFF_ENQUIRY."""
    try:
        rows = enquiry_service.list_enquiries(kind=request.args.get("kind") or None)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"items": [r.to_dict() for r in rows]}, 200
