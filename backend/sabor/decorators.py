# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service
from .services.session_service import AuthSecretNotConfiguredError


def extract_session_token() -> str | None:
    """Token from `Authorization: Bearer ...`, else from the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(session_service.AUTH_COOKIE_NAME) or None


def require_auth(f):
    """
    Require an authenticated operator.

    Sets the following Flask g attributes:
    - g.current_operator: OperatorIdentity resolved from the token

    Returns 401 if:
    - No token in the Authorization header or session cookie
    - Invalid, forged or expired token
    - Operator deleted or deactivated

    Returns 500 if AUTH_SECRET is not configured.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = extract_session_token()

        if not token:
            return jsonify({"error": "Authentication required"}), 401

        try:
            operator = session_service.resolve_operator(token)
        except AuthSecretNotConfiguredError as e:
            current_app.logger.error("Session check failed: %s", e)
            return jsonify({"error": "Security configuration missing: set AUTH_SECRET to enable login"}), 500

        if not operator:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_operator = operator

        return f(*args, **kwargs)

    return decorated_function
