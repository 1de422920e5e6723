# Overview: Request and permission decorators for API routes, plus actor resolution.

from functools import wraps
from flask import request, jsonify, g, current_app

from .models import COMPLAINT_PERMISSION_KEYS
from .services import session_service, staff_service
from .services.actors import HumanActor


class UnauthorizedError(Exception):
    """No authenticated actor for an operation that requires one."""


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None


def current_actor_id() -> int:
    """Id of the authenticated user; raises UnauthorizedError when there is none."""
    if not _is_authenticated():
        raise UnauthorizedError("Authentication required")
    return g.current_user.id


def current_actor() -> HumanActor:
    return HumanActor(current_actor_id())


def require_auth(f):
    """
    Require a valid Bearer session token.

    Sets g.current_user and g.session_context. Returns 401 if the header is
    missing, the token is invalid/expired/revoked, or the user is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_complaint_permission(permission_key: str):
    """
    Require a complaint permission flag on the caller's staff profile.

    Superadmins bypass the check. Apply after @require_auth.
    """
    if permission_key not in COMPLAINT_PERMISSION_KEYS:
        raise ValueError(f"Unknown complaint permission: {permission_key}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            user = g.current_user
            if user.is_superadmin:
                return f(*args, **kwargs)

            profile = staff_service.get_profile(user.id)
            if profile is None or not profile.is_active or not profile.has_permission(permission_key):
                current_app.logger.warning(
                    "Permission %s denied for user %s on %s %s",
                    permission_key, user.id, request.method, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_key,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
