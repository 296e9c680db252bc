# Overview: Session decorators for API routes.

from functools import wraps
from flask import current_app, g, jsonify, session

from .extensions import db
from .models import Staff


def login_staff(staff: Staff) -> None:
    """Start a cookie session for staff (expires after PERMANENT_SESSION_LIFETIME)."""
    session.clear()
    session.permanent = True
    session["staff_id"] = staff.id
    session["username"] = staff.username


def _load_current_staff() -> Staff | None:
    """
    Resolve the session principal into g.current_staff.

    A session for a deleted or deactivated account is cleared and treated
    as anonymous.
    """
    staff = None
    staff_id = session.get("staff_id")
    if staff_id is not None:
        staff = db.session.get(Staff, staff_id)
        if staff is None or not staff.is_active:
            session.clear()
            staff = None

    g.current_staff = staff
    return staff


def current_username() -> str | None:
    staff = _load_current_staff()
    return staff.username if staff else None


def require_staff(f):
    """
    Require a logged-in staff session.

    Sets g.current_staff. Returns 401 if there is no valid session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if _load_current_staff() is None:
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require a logged-in staff session with is_admin. 401 anonymous, 403 non-admin."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        staff = _load_current_staff()
        if staff is None:
            return jsonify({"error": "Authentication required"}), 401
        if not staff.is_admin:
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function


def require_stock_writer(f):
    """
    Require a staff session for stock mutations, unless
    ALLOW_ANONYMOUS_STOCK_UPDATES is set.

    Anonymous mutations are logged as "Unknown Staff" and never raise alerts.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        staff = _load_current_staff()
        if staff is None and not current_app.config.get("ALLOW_ANONYMOUS_STOCK_UPDATES"):
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function
