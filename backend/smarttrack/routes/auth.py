# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/smarttrack/routes/auth.py
"""
Login/logout with a signed cookie session.

Self-registration is disabled. Staff accounts are created by admins via
POST /api/staff or the CLI (flask staff create).
"""

from flask import Blueprint, current_app, g, jsonify, request, session

from ..decorators import login_staff, require_staff
from ..services import staff_service
from ..validation import ValidationError, require_json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate staff (username or email) and start a session.

    The session cookie carries staff_id and username; both admin and staff
    log in here, admin rights come from the account's is_admin flag.
    """
    try:
        data = require_json_object(request.get_json(silent=True))
        username = data.get("username") or data.get("email")
        password = data.get("password")

        if not all([username, password]) or not all(isinstance(v, str) for v in (username, password)):
            return jsonify({"error": "username/email and password required"}), 400

        staff = staff_service.authenticate(username, password)
        if not staff:
            current_app.logger.info("Failed login for %r from %s", username, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        login_staff(staff)
        return jsonify({"staff": staff.to_dict(), "message": "Login successful"}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to login staff")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    session.clear()
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/me")
@require_staff
def me_route():
    return jsonify({"staff": g.current_staff.to_dict()}), 200
