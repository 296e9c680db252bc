# Overview: Flask API routes for staff account management (admin only).

from flask import Blueprint, g, request

from ..decorators import require_admin
from ..services import staff_service
from ..validation import ConflictError, NotFoundError, ValidationError, require_json_object


staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


@staff_bp.get("")
@require_admin
def list_staff_route():
    return {"items": [s.to_dict() for s in staff_service.list_staff()]}, 200


@staff_bp.post("")
@require_admin
def create_staff_route():
    """
    Create a staff account.

    Body: {"name", "email", "username", "password", "phone"?, "is_admin"?}
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        staff = staff_service.create_staff(
            name=data.get("name"),
            email=data.get("email"),
            username=data.get("username"),
            password=data.get("password"),
            phone=data.get("phone"),
            is_admin=data.get("is_admin", False),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return staff.to_dict(), 201


@staff_bp.patch("/<int:staff_id>")
@require_admin
def update_staff_route(staff_id: int):
    try:
        data = require_json_object(request.get_json(silent=True))
    except ValidationError as e:
        return {"error": str(e)}, 400
    if staff_id == g.current_staff.id:
        if data.get("is_admin") is False:
            return {"error": "Admins cannot remove their own admin access"}, 400
        if data.get("is_active") is False:
            return {"error": "Admins cannot deactivate their own account"}, 400
    try:
        staff = staff_service.update_staff(staff_id, data)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    return staff.to_dict(), 200


@staff_bp.delete("/<int:staff_id>")
@require_admin
def delete_staff_route(staff_id: int):
    if staff_id == g.current_staff.id:
        return {"error": "Admins cannot delete their own account"}, 400
    try:
        staff_service.delete_staff(staff_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"message": "Staff deleted"}, 200
