# Overview: Flask API routes for complaint system settings (SLA configuration).

from flask import Blueprint, request, jsonify, current_app

from ..decorators import current_actor_id, require_auth, require_complaint_permission
from ..services import settings_service
from seedcare.validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/complaint-settings")


@settings_bp.get("/sla")
@require_auth
@require_complaint_permission("canViewComplaints")
def get_sla_route():
    return jsonify({"data": settings_service.get_sla_config()}), 200


@settings_bp.post("/sla")
@require_auth
@require_complaint_permission("canConfigureComplaintSystem")
def update_sla_route():
    try:
        config = settings_service.update_sla_config(
            request.get_json(silent=True),
            updated_by=current_actor_id(),
        )
        return jsonify({"data": config, "message": "SLA settings saved successfully"}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to save SLA settings")
        return jsonify({"error": "Internal server error"}), 500
