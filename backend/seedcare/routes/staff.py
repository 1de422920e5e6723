# Overview: Flask API routes for staff complaint profiles.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_complaint_permission
from ..services import staff_service
from seedcare.validation import NotFoundError, ValidationError


staff_bp = Blueprint("staff", __name__, url_prefix="/api/complaint-profiles")


@staff_bp.get("")
@require_auth
@require_complaint_permission("canViewComplaints")
def list_profiles_route():
    include_inactive = request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}
    profiles = staff_service.list_profiles(
        department=request.args.get("department") or None,
        include_inactive=include_inactive,
    )
    return jsonify({"data": [p.to_dict() for p in profiles]}), 200


@staff_bp.post("")
@require_auth
@require_complaint_permission("canManageComplaintUsers")
def upsert_profile_route():
    """
    Body: {"user_id": int, "department": str, "complaint_permissions": {...},
           "max_assigned_complaints": int, "is_active": bool, "full_name": str}
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        user_id = data.pop("user_id", None)
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return jsonify({"error": "user_id is required"}), 400

        profile = staff_service.upsert_profile(user_id, data)
        return jsonify({"data": profile.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to save complaint profile")
        return jsonify({"error": "Internal server error"}), 500
