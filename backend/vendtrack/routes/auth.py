# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/vendtrack/routes/auth.py
"""
Authentication API routes

- Token-based sessions (24h absolute, 2h idle)
- No self-registration; admins create accounts
- The session endpoint tells the client which views the role may open
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services.auth_service import AuthError
from ..permissions import capabilities_for, views_for, home_view
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user) -> dict:
    return {
        "user": user.to_dict(),
        "capabilities": sorted(capabilities_for(user.role)),
        "views": list(views_for(user.role)),
        "home": home_view(user.role),
    }


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"success": False, "error": "email and password required"}), 400
    if not isinstance(email, str) or not isinstance(password, str):
        return jsonify({"success": False, "error": "email and password must be strings"}), 400

    try:
        user, token = auth_service.login(
            email,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except AuthError as e:
        return jsonify({"success": False, "error": str(e)}), 401
    except Exception:
        current_app.logger.exception("Login failed")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, "token": token, **_session_payload(user)}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    auth_service.logout(bearer_token())
    return jsonify({"success": True}), 200


@auth_bp.get("/session")
@require_auth
def session_route():
    """Current user, capabilities and allowed views for a valid token."""
    return jsonify({"success": True, **_session_payload(g.current_user)}), 200
