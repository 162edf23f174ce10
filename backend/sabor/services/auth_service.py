# Overview: Service-layer operations for operator accounts and credential checks.

"""
Operator Authentication Service

WHY: Every sale must be attributable to the operator who rang it.
Uses bcrypt for password hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- Deactivated operators cannot authenticate
"""

import re

import bcrypt
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Operator
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, parse_text


class PasswordValidationError(Exception):
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
    """Timing-safe bcrypt check; malformed hashes never match."""
    if not isinstance(password, str) or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _login_taken(login: str) -> bool:
    return db.session.query(Operator.id).filter(Operator.login == login).first() is not None


def create_operator(name: str, login: str, password: str) -> Operator:
    """
    Create an operator account.

    Raises:
        ValidationError: blank name or login
        PasswordValidationError: weak password
        ConflictError: login already taken
    """
    name = parse_text(name, "name", max_length=120)
    login = parse_text(login, "login", max_length=64).lower()

    if _login_taken(login):
        raise ConflictError("An operator with this login already exists")

    operator = Operator(
        name=name,
        login=login,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.session.add(operator)
    try:
        db.session.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same login
        db.session.rollback()
        raise ConflictError("An operator with this login already exists") from exc
    return operator


def authenticate(login: str, password: str) -> Operator | None:
    """
    Check credentials for an active operator.

    Returns the Operator and stamps last_login_at on success, None
    otherwise. Unknown login and wrong password are indistinguishable
    to the caller.
    """
    if not isinstance(login, str) or not login.strip():
        return None

    operator = db.session.query(Operator).filter(
        Operator.login == login.strip().lower(),
        Operator.is_active.is_(True),
    ).first()

    if not operator:
        return None

    if verify_password(password, operator.password_hash):
        operator.last_login_at = utcnow()
        db.session.commit()
        return operator

    return None


def deactivate_operator(login: str) -> Operator:
    """Disable an operator; existing session tokens stop resolving immediately."""
    operator = db.session.query(Operator).filter(Operator.login == login.strip().lower()).first()
    if operator is None:
        raise NotFoundError(f"Operator {login!r} not found")
    operator.is_active = False
    db.session.commit()
    return operator
