# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/sabor/routes/auth.py
"""
Operator authentication API routes

- Login issues a signed session token, returned in the body and set as an
  HttpOnly cookie
- Logout expires the cookie
- Session reports the operator the current token resolves to
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.session_service import AuthSecretNotConfiguredError, OperatorIdentity
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

AUTH_SECRET_MISSING_MESSAGE = "Security configuration missing: set AUTH_SECRET to enable login"


def _set_session_cookie(response, token: str, max_age: int):
    response.set_cookie(
        session_service.AUTH_COOKIE_NAME,
        token,
        max_age=max_age,
        httponly=True,
        samesite="Lax",
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
        path="/",
    )
    return response


@auth_bp.post("/login")
def login_route():
    """
    Authenticate operator and create session token.

    Body: {"login": str, "password": str}

    Unknown login and wrong password both answer 401 with the same message.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "login and password required"}), 400
        login = data.get("login")
        password = data.get("password")

        if not isinstance(login, str) or not login.strip() or not isinstance(password, str) or not password:
            return jsonify({"error": "login and password required"}), 400

        operator = auth_service.authenticate(login, password)

        if not operator:
            current_app.logger.info("Failed login attempt for %r", login.strip())
            return jsonify({"error": "Invalid credentials"}), 401

        token = session_service.create_session_token(operator)
        identity = OperatorIdentity(id=operator.id, name=operator.name, login=operator.login)

        response = jsonify({
            "operator": identity.to_dict(),
            "token": token,
            "expires_in": session_service.session_max_age(),
            "message": "Login successful",
        })
        return _set_session_cookie(response, token, session_service.session_max_age()), 200

    except AuthSecretNotConfiguredError:
        current_app.logger.error("Login attempted without AUTH_SECRET configured")
        return jsonify({"error": AUTH_SECRET_MISSING_MESSAGE}), 500
    except Exception:
        current_app.logger.exception("Failed to login operator")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Expire the session cookie. Tokens are stateless; they lapse at their exp."""
    response = jsonify({"success": True})
    return _set_session_cookie(response, "", 0), 200


@auth_bp.get("/session")
@require_auth
def session_route():
    """Current operator for the token in the request."""
    return jsonify({"operator": g.current_operator.to_dict()}), 200
