# Overview: Request and capability decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import capabilities_for
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'capabilities')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require authentication and resolve the caller's capabilities.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.capabilities: frozenset of capability codes for the user's role
    - g.session_context: The full SessionContext object

    Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"success": False, "error": "Authentication required"}), 401

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"success": False, "error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.capabilities = capabilities_for(context.user.role)
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """Require a specific capability."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"success": False, "error": "Authentication required"}), 401

            if capability not in g.capabilities:
                return jsonify({
                    "success": False,
                    "error": "Permission denied",
                    "required_capability": capability,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_capability(*capabilities):
    """Require any of the specified capabilities."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"success": False, "error": "Authentication required"}), 401

            if not any(code in g.capabilities for code in capabilities):
                return jsonify({
                    "success": False,
                    "error": "Permission denied",
                    "required_capabilities": list(capabilities),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
