# Overview: Flask API routes for stage sub-records and the observation summary.

from flask import Blueprint, jsonify

from ..decorators import current_actor, require_auth, require_complaint_permission
from ..services import findings_service
from ..services.observation_summary import summarize
from .complaints import _error_response, _json_body


findings_bp = Blueprint("findings", __name__, url_prefix="/api/complaints")


@findings_bp.get("/<int:complaint_id>/observation")
@require_auth
@require_complaint_permission("canViewComplaints")
def get_observation_route(complaint_id: int):
    try:
        row = findings_service.get_observation(complaint_id)
        return jsonify({"data": row.to_dict() if row else None}), 200
    except Exception as e:
        return _error_response(e, "load observation")


@findings_bp.post("/<int:complaint_id>/observation")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def save_observation_route(complaint_id: int):
    try:
        row = findings_service.upsert_observation(complaint_id, _json_body(), current_actor())
        return jsonify({"data": row.to_dict(), "message": "Data saved"}), 200
    except Exception as e:
        return _error_response(e, "save observation")


@findings_bp.get("/<int:complaint_id>/observation/summary")
@require_auth
@require_complaint_permission("canViewComplaints")
def observation_summary_route(complaint_id: int):
    try:
        row = findings_service.get_observation(complaint_id)
        return jsonify({"data": summarize(row).to_dict()}), 200
    except Exception as e:
        return _error_response(e, "summarize observation")


@findings_bp.get("/<int:complaint_id>/investigation")
@require_auth
@require_complaint_permission("canViewComplaints")
def get_investigation_route(complaint_id: int):
    try:
        row = findings_service.get_investigation(complaint_id)
        return jsonify({"data": row.to_dict() if row else None}), 200
    except Exception as e:
        return _error_response(e, "load investigation")


@findings_bp.post("/<int:complaint_id>/investigation")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def save_investigation_route(complaint_id: int):
    try:
        row = findings_service.upsert_investigation(complaint_id, _json_body(), current_actor())
        return jsonify({"data": row.to_dict(), "message": "Investigasi berhasil disimpan"}), 200
    except Exception as e:
        return _error_response(e, "save investigation")


@findings_bp.get("/<int:complaint_id>/lab-testing")
@require_auth
@require_complaint_permission("canViewComplaints")
def get_lab_testing_route(complaint_id: int):
    try:
        row = findings_service.get_lab_testing(complaint_id)
        return jsonify({"data": row.to_dict() if row else None}), 200
    except Exception as e:
        return _error_response(e, "load lab testing")


@findings_bp.post("/<int:complaint_id>/lab-testing")
@require_auth
@require_complaint_permission("canRespondToComplaints")
def save_lab_testing_route(complaint_id: int):
    try:
        row = findings_service.upsert_lab_testing(complaint_id, _json_body(), current_actor())
        return jsonify({"data": row.to_dict(), "message": "Lab testing berhasil disimpan"}), 200
    except Exception as e:
        return _error_response(e, "save lab testing")
