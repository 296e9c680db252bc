# Overview: Service-layer operations for staff accounts; encapsulates business logic and database work.

"""
Staff accounts and credential checks.

WHY: Every stock change is labelled with the acting username, and admins
manage who can log in.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12); the raw secret is never
  stored or logged
- Minimum 8 characters, must mix upper/lower case, digit and special char
- Username and email are unique across all staff
- Stock logs and enquiries keep the username string they were written with;
  editing or deleting an account does not rewrite history
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Staff
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")

UPDATABLE_FIELDS = {"name", "phone", "email", "password", "is_admin", "is_active"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    Malformed hashes (e.g. legacy plaintext values) never verify.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _validate_email(email: str) -> str:
    email = email.strip() if isinstance(email, str) else ""
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email must be a valid email address")
    return email


def _validate_username(username: str) -> str:
    username = username.strip() if isinstance(username, str) else ""
    if not USERNAME_PATTERN.match(username):
        raise ValidationError("username must be 3-64 characters: letters, digits, '_', '.', '-'")
    return username


def _validate_flag(value, label: str) -> bool:
    # "false" and 0 must not silently become True
    if not isinstance(value, bool):
        raise ValidationError(f"{label} must be true or false")
    return value


def _optional_phone(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("phone must be a string")
    return value.strip() or None


def _ensure_unique(username: str | None, email: str | None, *, exclude_id: int | None = None) -> None:
    conditions = []
    if username is not None:
        conditions.append(Staff.username == username)
    if email is not None:
        conditions.append(db.func.lower(Staff.email) == email.lower())
    if not conditions:
        return

    q = db.session.query(Staff).filter(db.or_(*conditions))
    if exclude_id is not None:
        q = q.filter(Staff.id != exclude_id)
    if q.first():
        raise ConflictError("Username or email already exists")


def create_staff(
    *,
    name: str,
    email: str,
    username: str,
    password: str,
    phone: str | None = None,
    is_admin: bool = False,
) -> Staff:
    """
    Create a staff account with a bcrypt password hash.

    Raises:
        ValidationError: bad email/username or weak password
        ConflictError: username or email already taken
    """
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("name is required")
    email = _validate_email(email)
    username = _validate_username(username)
    phone = _optional_phone(phone)
    is_admin = _validate_flag(is_admin, "is_admin")

    _ensure_unique(username, email)

    staff = Staff(
        name=name,
        phone=phone,
        email=email,
        username=username,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.session.add(staff)
    db.session.commit()

    current_app.logger.info("Created staff account %s (admin=%s)", username, staff.is_admin)
    return staff


def authenticate(username: str, password: str) -> Staff | None:
    """
    Authenticate by username or email.

    Returns the Staff row and updates last_login_at on success, None otherwise.
    """
    if not username or not password:
        return None

    staff = db.session.query(Staff).filter(
        db.or_(Staff.username == username, db.func.lower(Staff.email) == username.lower()),
        Staff.is_active.is_(True),
    ).first()

    if not staff:
        return None

    if verify_password(password, staff.password_hash):
        staff.last_login_at = utcnow()
        db.session.commit()
        return staff

    return None


def find_by_username(username: str | None) -> Staff | None:
    """Staff directory lookup used to snapshot name/email onto alerts and enquiries."""
    if not username:
        return None
    return db.session.query(Staff).filter_by(username=username).first()


def get_staff(staff_id: int) -> Staff:
    staff = db.session.get(Staff, staff_id)
    if staff is None:
        raise NotFoundError("Staff not found")
    return staff


def list_staff() -> list[Staff]:
    return db.session.query(Staff).order_by(Staff.name.asc(), Staff.id.asc()).all()


def update_staff(staff_id: int, patch: dict) -> Staff:
    """
    Apply a partial update. Username is immutable because stock logs and
    enquiries are labelled with it.
    """
    staff = get_staff(staff_id)

    unknown = set(patch) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Field not allowed: {', '.join(sorted(str(k) for k in unknown))}")

    try:
        if "email" in patch:
            email = _validate_email(patch["email"])
            _ensure_unique(None, email, exclude_id=staff.id)
            staff.email = email
        if "name" in patch:
            name = patch["name"].strip() if isinstance(patch["name"], str) else ""
            if not name:
                raise ValidationError("name cannot be blank")
            staff.name = name
        if "phone" in patch:
            staff.phone = _optional_phone(patch["phone"])
        if "password" in patch:
            staff.password_hash = hash_password(patch["password"])
        if "is_admin" in patch:
            staff.is_admin = _validate_flag(patch["is_admin"], "is_admin")
        if "is_active" in patch:
            staff.is_active = _validate_flag(patch["is_active"], "is_active")
    except (ValidationError, ConflictError):
        # Nothing from a rejected patch is kept
        db.session.rollback()
        raise

    db.session.commit()
    return staff


def delete_staff(staff_id: int) -> None:
    staff = get_staff(staff_id)
    username = staff.username
    db.session.delete(staff)
    db.session.commit()
    current_app.logger.info("Deleted staff account %s", username)
