# Overview: Service-layer operations for auth; password hashing, user accounts and login checks.

"""
Authentication Service

Every action must be attributable to a person. Passwords are hashed with
bcrypt and checked for strength; users carry exactly one role tag, and client
users are linked to the customer whose data they may see.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, Customer
from ..permissions import ROLES, ROLE_CLIENT
from ..time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserError(Exception):
    """Raised for user account rule violations."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>?_\-]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt; the cost factor comes from BCRYPT_ROUNDS.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never verify."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_role_link(role: str, customer_id: int | None) -> None:
    if role not in ROLES:
        raise UserError(f"Invalid role '{role}'", details={"allowed": list(ROLES)})
    if role == ROLE_CLIENT:
        if not customer_id:
            raise UserError("Client users must be linked to a customer")
        if db.session.get(Customer, customer_id) is None:
            raise UserError("Customer not found", details={"customer_id": customer_id})


def create_user(
    email: str,
    password: str,
    role: str,
    full_name: str | None = None,
    customer_id: int | None = None,
) -> User:
    """
    Create a user with a bcrypt-hashed password.

    Raises:
        UserError: invalid role, missing customer link, or duplicate email
        PasswordValidationError: password doesn't meet requirements
    """
    email = _normalize_email(email)
    if not email or "@" not in email:
        raise UserError("A valid email is required")

    _check_role_link(role, customer_id)

    if db.session.query(User).filter_by(email=email).first():
        raise UserError("Email already registered", details={"email": email})

    user = User(
        email=email,
        full_name=(full_name or "").strip() or None,
        role=role,
        customer_id=customer_id if role == ROLE_CLIENT else None,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def update_user(
    user_id: int,
    *,
    role: str | None = None,
    full_name: str | None = None,
    customer_id: int | None = None,
    is_active: bool | None = None,
    password: str | None = None,
) -> User:
    """
    Change a user's profile. Role changes take effect on the next request,
    since authorization is recomputed from the stored row every time.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise UserError("User not found")

    new_role = role or user.role
    new_customer_id = customer_id if customer_id is not None else user.customer_id
    _check_role_link(new_role, new_customer_id)

    user.role = new_role
    user.customer_id = new_customer_id if new_role == ROLE_CLIENT else None
    if full_name is not None:
        user.full_name = full_name.strip() or None
    if is_active is not None:
        user.is_active = bool(is_active)
    if password:
        user.password_hash = hash_password(password)

    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the active user for these credentials, or None.

    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.email == _normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
