# Overview: Flask API routes for complaints; intake, tracking, lifecycle, responses and assignment.

"""
Complaint API routes

Public (customer) routes:
- POST /api/complaints                      submit a complaint
- GET  /api/complaints/track/<number>       tracking page data
- POST /api/complaints/<id>/feedback        rating after resolution

Staff routes require a session token and a complaint permission flag.

SECURITY: actor ids (resolved_by, assigned_by, created_by, ...) come from
the authenticated session, never from the request body.
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import UnauthorizedError, current_actor, require_auth, require_complaint_permission
from ..services import (
    assignment_service,
    complaint_service,
    history_service,
    response_service,
    status_service,
)
from ..services.complaint_errors import CreationFailedError, NoEligibleStaffError
from seedcare.validation import ConflictError, NotFoundError, ValidationError, coerce_id


complaints_bp = Blueprint("complaints", __name__, url_prefix="/api/complaints")


def _error_response(e: Exception, action: str):
    """Map service errors to JSON responses. Call only from an except block."""
    if isinstance(e, NoEligibleStaffError):
        return jsonify(e.to_dict()), 409
    if isinstance(e, NotFoundError):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, ConflictError):
        return jsonify({"error": str(e)}), 409
    if isinstance(e, ValidationError):
        return jsonify({"error": str(e)}), 400
    if isinstance(e, UnauthorizedError):
        return jsonify({"error": str(e)}), 401
    if isinstance(e, CreationFailedError):
        current_app.logger.error("Failed to %s: %s", action, e)
        return jsonify({"error": "Could not register complaint, please try again"}), 503
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


def _json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

@complaints_bp.post("")
def create_complaint_route():
    try:
        complaint = complaint_service.create_complaint(_json_body())
        return jsonify({
            "data": complaint.to_dict(),
            "complaint_number": complaint.complaint_number,
            "message": "Komplain berhasil dibuat",
        }), 201
    except Exception as e:
        return _error_response(e, "create complaint")


@complaints_bp.get("/track/<string:complaint_number>")
def track_complaint_route(complaint_number: str):
    try:
        complaint = complaint_service.get_by_number(complaint_number.strip().upper())
        return jsonify({"data": complaint_service.customer_view(complaint)}), 200
    except Exception as e:
        return _error_response(e, "track complaint")


@complaints_bp.post("/<int:complaint_id>/feedback")
def submit_feedback_route(complaint_id: int):
    """
    Customer feedback from the tracking page.

    The body must carry the complaint_number shown to the customer; a
    mismatch is answered as not found.
    """
    try:
        data = _json_body()
        complaint = complaint_service.get_complaint(complaint_id)
        if data.get("complaint_number") != complaint.complaint_number:
            return jsonify({"error": "Complaint not found"}), 404

        complaint = status_service.submit_feedback(
            complaint_id,
            data.get("rating"),
            data.get("quick_answers"),
            data.get("feedback"),
        )
        return jsonify({
            "message": "Feedback berhasil disimpan",
            "data": {
                "complaint_number": complaint.complaint_number,
                "rating": complaint.customer_satisfaction_rating,
                "feedback_submitted_at": complaint.to_dict()["feedback_submitted_at"],
            },
        }), 200
    except Exception as e:
        return _error_response(e, "submit feedback")


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

@complaints_bp.get("")
@require_auth
@require_complaint_permission("canViewComplaints")
def list_complaints_route():
    try:
        try:
            limit = int(request.args.get("limit", 20))
            offset = int(request.args.get("offset", 0))
        except ValueError:
            return jsonify({"error": "limit and offset must be integers"}), 400

        result = complaint_service.list_complaints(
            status=request.args.get("status") or None,
            complaint_number=request.args.get("complaint_number") or None,
            limit=limit,
            offset=offset,
        )
        return jsonify(result), 200
    except Exception as e:
        return _error_response(e, "list complaints")


@complaints_bp.get("/stats")
@require_auth
@require_complaint_permission("canViewComplaints")
def complaint_stats_route():
    try:
        return jsonify({"data": complaint_service.complaint_stats()}), 200
    except Exception as e:
        return _error_response(e, "compute complaint stats")


@complaints_bp.get("/<int:complaint_id>")
@require_auth
@require_complaint_permission("canViewComplaints")
def get_complaint_route(complaint_id: int):
    try:
        complaint = complaint_service.get_complaint(complaint_id)
        active = assignment_service.active_assignment(complaint_id)
        return jsonify({
            "data": complaint.to_dict(),
            "active_assignment": active.to_dict() if active else None,
            "responses": [r.to_dict() for r in response_service.list_responses(complaint_id)],
            "history": [h.to_dict() for h in history_service.list_history(complaint_id)],
        }), 200
    except Exception as e:
        return _error_response(e, "load complaint")


@complaints_bp.post("/<int:complaint_id>/status")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def update_status_route(complaint_id: int):
    try:
        data = _json_body()
        status = data.get("status")
        if not status:
            return jsonify({"error": "Status is required"}), 400

        before = complaint_service.get_complaint(complaint_id).status
        complaint = status_service.transition(complaint_id, status, current_actor())
        if before == status:
            return jsonify({
                "message": "Status is already set to this value",
                "data": complaint.to_dict(),
            }), 200
        return jsonify({
            "message": f"Complaint status updated to {status}",
            "data": complaint.to_dict(),
        }), 200
    except Exception as e:
        return _error_response(e, "update complaint status")


@complaints_bp.post("/<int:complaint_id>/acknowledge")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def acknowledge_route(complaint_id: int):
    try:
        data = _json_body()
        complaint = status_service.acknowledge_with_replacement(
            complaint_id,
            data.get("replacement_qty"),
            data.get("replacement_hybrid"),
            current_actor(),
        )
        return jsonify({
            "message": "Complaint acknowledged with replacement proposal",
            "data": complaint.to_dict(),
        }), 200
    except Exception as e:
        return _error_response(e, "acknowledge complaint")


@complaints_bp.post("/<int:complaint_id>/resolve")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def resolve_route(complaint_id: int):
    try:
        data = _json_body()
        rating = data.get("customer_satisfaction_rating")
        complaint = status_service.resolve(
            complaint_id,
            data.get("resolution"),
            data.get("resolution_summary"),
            None if rating in (None, "") else rating,
            current_actor(),
        )
        return jsonify({
            "message": "Complaint resolved successfully",
            "data": {
                "id": complaint.id,
                "complaint_number": complaint.complaint_number,
                "resolved_at": complaint.to_dict()["resolved_at"],
            },
        }), 200
    except Exception as e:
        return _error_response(e, "resolve complaint")


@complaints_bp.post("/<int:complaint_id>/escalate")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def escalate_route(complaint_id: int):
    try:
        data = _json_body()
        complaint = status_service.escalate(complaint_id, current_actor(), data.get("reason"))
        return jsonify({"data": complaint.to_dict()}), 200
    except Exception as e:
        return _error_response(e, "escalate complaint")


@complaints_bp.post("/<int:complaint_id>/responses")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def add_response_route(complaint_id: int):
    try:
        data = _json_body()
        actor = current_actor()
        response = response_service.add_response(
            complaint_id,
            data.get("message"),
            actor,
            admin_name=data.get("admin_name"),
            is_internal=bool(data.get("is_internal", False)),
        )
        return jsonify({"data": response.to_dict(), "message": "Response sent successfully"}), 201
    except Exception as e:
        return _error_response(e, "add complaint response")


@complaints_bp.post("/<int:complaint_id>/assign")
@require_auth
@require_complaint_permission("canAssignComplaints")
def assign_route(complaint_id: int):
    """
    Body: {"staff_id": int, "department": str, "notes": str?, "force": bool?}
    """
    try:
        data = _json_body()
        result = assignment_service.assign(
            complaint_id,
            data.get("staff_id"),
            data.get("department"),
            data.get("notes"),
            current_actor(),
            force=bool(data.get("force", False)),
        )
        return jsonify({"data": result, "message": "Complaint assigned successfully"}), 200
    except Exception as e:
        return _error_response(e, "assign complaint")


@complaints_bp.post("/auto-assign")
@require_auth
@require_complaint_permission("canAssignComplaints")
def auto_assign_route():
    try:
        data = _json_body()
        complaint_id = data.get("complaint_id")
        if complaint_id in (None, ""):
            return jsonify({"error": "complaint_id is required"}), 400
        complaint_id = coerce_id(complaint_id, "complaint_id")

        result = assignment_service.auto_assign(
            complaint_id,
            department=data.get("department") or None,
            priority=data.get("priority") or None,
        )
        return jsonify({
            "assigned_to": result,
            "message": f"Complaint auto-assigned to {result['name']}",
        }), 200
    except Exception as e:
        return _error_response(e, "auto-assign complaint")
