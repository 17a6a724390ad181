# Overview: Password hashing, credential checks and account creation rules.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- Inactive users cannot authenticate
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, Role, Location, LocationType
from ..time_utils import utcnow
from ..validation import require_text
from .errors import MotostockError, ValidationError, ConflictError, NotFoundError


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserError(MotostockError):
    """Raised when user operations fail."""
    pass


class UserValidationError(ValidationError, UserError):
    pass


class UserConflictError(ConflictError, UserError):
    pass


class UserNotFoundError(NotFoundError, UserError):
    pass


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Location type each scoped role must be assigned to
ROLE_LOCATION_TYPES = {
    Role.WAREHOUSE_MANAGER: LocationType.WAREHOUSE,
    Role.BRANCH_MANAGER: LocationType.BRANCH,
    Role.SALES_OFFICER: LocationType.BRANCH,
}


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
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str):
        raise UserValidationError("A valid email address is required")
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise UserValidationError("A valid email address is required")
    return email


def validate_role_location(role: str, location_id: int | None) -> Location | None:
    """
    Every role except ADMIN needs a location of the matching type.
    Admins are unscoped and carry no location.
    """
    if role not in Role.ALL:
        raise UserValidationError(f"Role must be one of: {', '.join(Role.ALL)}")

    if role == Role.ADMIN:
        return None

    if location_id is None:
        raise UserValidationError(f"A location is required for role {role}")
    location = db.session.get(Location, location_id)
    if location is None:
        raise NotFoundError(f"Location {location_id} not found")

    expected = ROLE_LOCATION_TYPES[role]
    if location.type != expected:
        raise UserValidationError(
            f"{role} must be assigned to a {expected}, not a {location.type}",
            details={"location_id": location.id},
        )
    return location


def create_user(
    *,
    name: str,
    email: str,
    password: str,
    role: str,
    location_id: int | None = None,
) -> User:
    """
    Create a user with a bcrypt password hash. Flushes, never commits.

    Raises:
        UserValidationError: bad email, name, role or location
        PasswordValidationError: password too weak
        UserConflictError: email already registered
    """
    name = require_text(name, "name", max_length=120)
    email = normalize_email(email)
    location = validate_role_location(role, location_id)

    if db.session.query(User.id).filter(User.email == email).first():
        raise UserConflictError(f"Email {email} is already registered")

    user = User(
        name=name,
        email=email,
        role=role,
        location_id=location.id if location else None,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.session.add(user)
    db.session.flush()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None
    otherwise. Updates last_login_at on success (flushed, not committed).
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter(
        User.email == email.strip().lower(),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.flush()
        return user

    return None
