# Overview: Credential store; registration, password hashing and authentication.

"""
Authentication Service

WHY: Ad ownership and admin decisions must be attributable to a user.
Uses bcrypt for password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters; upper, lower, digit and special char required
- Emails are normalized to lower case, so uniqueness is case-insensitive
- Blocked users never authenticate
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..models.auth import (
    ROLE_ADMIN,
    ROLE_SELLER,
    ROLE_USER,
    USER_STATUS_APPROVED,
    USER_STATUS_PENDING,
)
from ..validation import ConflictError, ValidationError
from classifieds.time_utils import utcnow


SELF_REGISTER_ROLES = (ROLE_USER, ROLE_SELLER)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


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
    """Validate strength, then hash with bcrypt (BCRYPT_ROUNDS, default 12)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. Malformed hashes never match.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("A valid email address is required")
    return email


def create_user(
    name: str,
    email: str,
    password: str,
    role: str = ROLE_USER,
    status: str = USER_STATUS_APPROVED,
) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        ValidationError: blank name, malformed email, weak password
        ConflictError: email already registered
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")
    email = normalize_email(email)

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("Email already registered")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role,
        status=status,
        created_at=utcnow(),
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email already registered")
    return user


def register(name: str, email: str, password: str, role: str | None = None) -> User:
    """
    Self-registration. Admin accounts can only be created from the CLI.

    Sellers start "pending" when SELLER_APPROVAL_REQUIRED is enabled.
    """
    role = role or ROLE_USER
    if role not in SELF_REGISTER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(SELF_REGISTER_ROLES)}")

    status = USER_STATUS_APPROVED
    if role == ROLE_SELLER and current_app.config.get("SELLER_APPROVAL_REQUIRED"):
        status = USER_STATUS_PENDING

    return create_user(name, email, password, role=role, status=status)


def create_admin(name: str, email: str, password: str) -> User:
    return create_user(name, email, password, role=ROLE_ADMIN, status=USER_STATUS_APPROVED)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials are valid and the account is not blocked,
    None otherwise. Updates last_login_at on success.
    """
    if not email or not password:
        return None

    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    if user.is_blocked:
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
