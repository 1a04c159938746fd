"""
Authentication helpers for the HTTP layer.

The backend does not own identities: callers present a JWT Bearer token
issued by the auth service. The decorators below turn it into an ``Actor``
stored on ``flask.g`` and enforce role restrictions per endpoint.

Examples:
    @appointment_bp.route("", methods=["POST"])
    @jwt_required
    @roles_required(UserRole.CLIENT)
    def create_appointment():
        actor = get_current_user()
        ...
"""

from functools import wraps
from typing import Optional

from flask import g, jsonify, request

from groombook.core.security import get_user_from_token
from groombook.domain.entities import Actor, UserRole


def get_current_user() -> Optional[Actor]:
    """Return the actor authenticated for this request, if any."""
    return g.get("current_user")


def jwt_required(f):
    """Decorator to require JWT authentication for API endpoints.

    Extracts JWT from Authorization header and sets ``g.current_user``.
    If no valid JWT, returns 401.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"success": False, "message": "Missing or invalid Authorization header"}), 401

        token = auth_header.split(" ", 1)[1]
        user_data = get_user_from_token(token)
        if not user_data:
            return jsonify({"success": False, "message": "Invalid or expired token"}), 401

        try:
            role = UserRole(user_data["role"])
        except ValueError:
            return jsonify({"success": False, "message": "Invalid token payload"}), 401

        g.current_user = Actor(
            id=user_data["user_id"], role=role, email=user_data.get("email")
        )
        return f(*args, **kwargs)

    return decorated_function


def roles_required(*roles: UserRole):
    """Decorator restricting an endpoint to the given roles (403 otherwise).

    Must be applied below ``@jwt_required``.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = get_current_user()
            if actor is None:
                return jsonify({"success": False, "message": "Authentication required"}), 401
            if actor.role not in roles:
                return (
                    jsonify(
                        {
                            "success": False,
                            "error": "forbidden",
                            "message": "Your role cannot perform this action.",
                        }
                    ),
                    403,
                )
            return f(*args, **kwargs)

        return decorated_function

    return decorator
