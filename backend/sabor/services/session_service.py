# Overview: Service-layer operations for session; signed operator tokens and their resolution.

"""
Session Token Management Service

WHY: Every sale is attributed to the operator resolved here, never to an
operator id supplied in a request body.

Tokens are HS256 JWTs signed with AUTH_SECRET. Claims:
    {"sub": "<operator_id>", "name": ..., "login": ..., "iat": ..., "exp": ..., "v": 1}

SECURITY FEATURES:
- Signature and expiry verified by jose.jwt.decode
- Absolute lifetime of SESSION_MAX_AGE_SECONDS (8 hours by default)
- Missing AUTH_SECRET is a hard configuration error, never a bypass
- Resolution re-reads the operator, so deactivation takes effect at once
"""

from dataclasses import dataclass
from typing import Any

from flask import current_app
from jose import JWTError, jwt

from ..extensions import db
from ..models import Operator
from ..time_utils import epoch_seconds


AUTH_COOKIE_NAME = "sabor_session"
DEFAULT_SESSION_MAX_AGE_SECONDS = 60 * 60 * 8  # 8 hours
TOKEN_VERSION = 1
ALGORITHM = "HS256"


class AuthSecretNotConfiguredError(RuntimeError):
    """AUTH_SECRET is missing; logins are disabled until it is set."""

    def __init__(self):
        super().__init__(
            "AUTH_SECRET is not configured. Set the AUTH_SECRET environment variable to enable login."
        )


@dataclass(frozen=True)
class OperatorIdentity:
    """The authenticated operator as seen by the services."""
    id: int
    name: str
    login: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "login": self.login}


def _secret() -> str:
    secret = current_app.config.get("AUTH_SECRET")
    if not secret or not str(secret).strip():
        raise AuthSecretNotConfiguredError()
    return str(secret)


def session_max_age() -> int:
    return int(current_app.config.get("SESSION_MAX_AGE_SECONDS") or DEFAULT_SESSION_MAX_AGE_SECONDS)


def create_session_token(operator: Any, now: int | None = None) -> str:
    """Issue a signed token for an Operator (or OperatorIdentity)."""
    secret = _secret()
    issued_at = epoch_seconds() if now is None else int(now)
    claims = {
        "sub": str(operator.id),
        "name": operator.name,
        "login": operator.login,
        "iat": issued_at,
        "exp": issued_at + session_max_age(),
        "v": TOKEN_VERSION,
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_session_token(token: str | None) -> dict | None:
    """
    Verify a token's signature, shape and expiry.

    Returns the claims with `sub` as an int operator id, or None for
    anything malformed, forged or expired. AuthSecretNotConfiguredError
    propagates.
    """
    secret = _secret()

    if not token or not isinstance(token, str):
        return None

    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    if (
        not isinstance(subject, str)
        or not subject.isdecimal()
        or not isinstance(payload.get("name"), str)
        or not isinstance(payload.get("login"), str)
        or not _is_int(payload.get("iat"))
        or not _is_int(payload.get("exp"))
        or payload.get("v") != TOKEN_VERSION
    ):
        return None

    payload["sub"] = int(subject)
    return payload


def resolve_operator(token: str | None) -> OperatorIdentity | None:
    """
    Map a request's token to the operator acting now.

    Returns None when there is no valid token or when the operator it names
    no longer exists or was deactivated.
    """
    payload = validate_session_token(token)
    if payload is None:
        return None

    operator = db.session.get(Operator, payload["sub"])
    if operator is None or not operator.is_active:
        return None

    return OperatorIdentity(id=operator.id, name=operator.name, login=operator.login)
