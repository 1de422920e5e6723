# Overview: Flask API routes for complaint analytics.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_complaint_permission
from ..services import analytics_service
from seedcare.validation import ValidationError


analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/complaints")


@analytics_bp.get("/analytics")
@require_auth
@require_complaint_permission("canViewComplaintAnalytics")
def complaint_analytics_route():
    """
    Query params:
        period: window in days (default ANALYTICS_DEFAULT_PERIOD_DAYS)
    """
    try:
        period = analytics_service.parse_period(
            request.args.get("period"),
            current_app.config.get("ANALYTICS_DEFAULT_PERIOD_DAYS", 30),
        )
        return jsonify({"data": analytics_service.complaint_analytics(period)}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to compute complaint analytics")
        return jsonify({"error": "Internal server error"}), 500
