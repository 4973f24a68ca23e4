# Overview: Flask API routes for user administration; parses input and returns JSON responses.

# backend/vendtrack/routes/users.py
"""
User management routes (admin only).

Accounts are never self-registered. Deactivating a user revokes their
sessions immediately.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_capability
from ..permissions import Capability
from ..services import auth_service, user_service
from ..validation import ConflictError, NotFoundError, ValidationError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def list_users_route():
    users = user_service.list_users()
    return jsonify({"success": True, "items": [u.to_dict() for u in users], "totalCount": len(users)}), 200


@users_bp.post("")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def create_user_route():
    """
    Create a user.

    Body: {"email", "password", "name", "role"}; role defaults to routeman.
    """
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.create_user(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
            role=data.get("role") or "routeman",
        )
    except ConflictError as e:
        return jsonify({"success": False, "error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"success": False, "error": "Internal server error"}), 500

    return jsonify({"success": True, "user": user.to_dict()}), 201


@users_bp.get("/<int:user_id>")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    return jsonify({"success": True, "user": user.to_dict()}), 200


@users_bp.patch("/<int:user_id>")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def update_user_route(user_id: int):
    """Body may contain name, role and isActive."""
    payload = request.get_json(silent=True) or {}
    try:
        user = user_service.update_user(user_id, payload, acting_user_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "user": user.to_dict()}), 200


@users_bp.post("/<int:user_id>/toggle-active")
@require_auth
@require_capability(Capability.MANAGE_USERS)
def toggle_user_route(user_id: int):
    try:
        user = user_service.toggle_user_status(user_id, acting_user_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"success": False, "error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    return jsonify({"success": True, "user": user.to_dict()}), 200
