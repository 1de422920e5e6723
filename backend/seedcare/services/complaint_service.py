# Overview: Service-layer operations for complaint intake, lookup, listing and quick stats.

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Complaint, DEFAULT_DEPARTMENT, OPEN_STATUSES, TERMINAL_STATUSES
from seedcare.time_utils import to_utc_z, utcnow
from seedcare.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_priority,
    validate_payload,
)
from .complaint_errors import ComplaintNotFoundError, CreationFailedError, NoEligibleStaffError
from .complaint_number_service import generate_complaint_number
from .concurrency import insert_unique
from .history_service import record_history
from .notification_service import TEMPLATE_COMPLAINT_CREATED, customer_status, notify_customer
from . import settings_service


COMPLAINT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name",
        "customer_phone",
        "customer_email",
        "customer_province",
        "customer_city",
        "customer_address",
        "subject",
        "description",
        "complaint_type",
        "priority",
        "complaint_category_id",
        "complaint_category_name",
        "complaint_subcategory_id",
        "complaint_subcategory_name",
        "related_product_serial",
        "related_product_name",
    },
    required_on_create={
        "customer_name",
        "customer_phone",
        "customer_province",
        "customer_city",
        "customer_address",
        "subject",
        "description",
    },
)


def get_complaint(complaint_id: int) -> Complaint:
    complaint = db.session.get(Complaint, complaint_id)
    if complaint is None:
        raise ComplaintNotFoundError(complaint_id)
    return complaint


def get_by_number(complaint_number: str) -> Complaint:
    complaint = db.session.query(Complaint).filter_by(complaint_number=complaint_number).first()
    if complaint is None:
        raise ComplaintNotFoundError(complaint_number)
    return complaint


def _case_types(payload: dict) -> tuple[list, list]:
    ids = payload.get("complaint_case_type_ids")
    names = payload.get("complaint_case_type_names")
    if ids is None and names is None:
        return [], []
    if ids is not None and not isinstance(ids, list):
        raise ValidationError("complaint_case_type_ids must be a list")
    if names is not None and not isinstance(names, list):
        raise ValidationError("complaint_case_type_names must be a list")
    ids = list(ids or [])
    names = [str(n).strip() for n in (names or [])]
    if not ids and not names:
        raise ValidationError("At least one complaint case type is required")
    if ids and names and len(ids) != len(names):
        raise ValidationError("complaint_case_type_ids and complaint_case_type_names must have the same length")
    return ids, names


def create_complaint(payload: dict) -> Complaint:
    """
    Register a customer complaint.

    Allocates CMP-YYYYMMDD-NNNN (retrying on collisions), stamps SLA targets
    from the SLA configuration, notifies the customer and, when enabled,
    tries auto-assignment. An auto-assign miss is logged, not raised.

    Raises:
        ValidationError: missing/invalid customer or complaint fields
        CreationFailedError: complaint number retries exhausted
    """
    payload = payload or {}
    patch = validate_payload(
        model=Complaint,
        payload=payload,
        policy=COMPLAINT_CREATE_POLICY,
        partial=False,
        ignore_unknown=True,
    )
    patch.setdefault("priority", "medium")
    if not patch.get("complaint_type"):
        patch["complaint_type"] = "other"
    enforce_rules_priority(patch["priority"])
    case_type_ids, case_type_names = _case_types(payload)

    config = settings_service.get_sla_config()
    first_response_sla, resolution_sla = settings_service.sla_targets(config)
    cfg = current_app.config
    attempts = int(cfg.get("COMPLAINT_NUMBER_MAX_ATTEMPTS", 10))

    def _build() -> Complaint:
        now = utcnow()
        return Complaint(
            complaint_number=generate_complaint_number(now.date()),
            complaint_case_type_ids=case_type_ids,
            complaint_case_type_names=case_type_names,
            status="submitted",
            department=DEFAULT_DEPARTMENT,
            first_response_sla=first_response_sla,
            resolution_sla=resolution_sla,
            escalated=False,
            created_at=now,
            updated_at=now,
            **patch,
        )

    def _on_retry(attempt: int, exc: Exception) -> None:
        current_app.logger.info("Complaint number collision (attempt %s/%s); retrying", attempt, attempts)

    try:
        complaint = insert_unique(
            _build,
            attempts=attempts,
            backoff_min=float(cfg.get("COMPLAINT_NUMBER_BACKOFF_MIN", 0.05)),
            backoff_max=float(cfg.get("COMPLAINT_NUMBER_BACKOFF_MAX", 0.15)),
            on_retry=_on_retry,
        )
        db.session.commit()
    except IntegrityError as exc:
        raise CreationFailedError(attempts) from exc

    record_history(complaint.id, "created", new_value=complaint.status, notes=f"Complaint {complaint.complaint_number} submitted")
    notify_customer(complaint, TEMPLATE_COMPLAINT_CREATED)

    if config.get("auto_assign_enabled"):
        from .assignment_service import auto_assign

        try:
            auto_assign(complaint.id)
        except NoEligibleStaffError as exc:
            current_app.logger.info("Auto-assign skipped for %s: %s", complaint.complaint_number, exc)

    return complaint


def list_complaints(*, status: str | None = None, complaint_number: str | None = None, limit: int = 20, offset: int = 0) -> dict:
    """Newest first. A complaint_number filter ignores pagination."""
    if limit < 1 or limit > 200:
        raise ValidationError("limit must be between 1 and 200")
    if offset < 0:
        raise ValidationError("offset must be >= 0")

    query = db.session.query(Complaint)
    if status:
        query = query.filter(Complaint.status == status)
    if complaint_number:
        query = query.filter(Complaint.complaint_number == complaint_number)

    total = query.count()
    query = query.order_by(Complaint.created_at.desc(), Complaint.id.desc())
    if not complaint_number:
        query = query.offset(offset).limit(limit)
    rows = query.all()

    return {
        "data": [c.to_list_dict() for c in rows],
        "total": total,
        "pagination": {
            "limit": limit,
            "offset": offset,
            "has_more": offset + limit < total,
        },
    }


def customer_view(complaint: Complaint) -> dict:
    """What the public tracking page shows. No staff-only fields."""
    status_info = customer_status(complaint.status)
    return {
        "complaint_number": complaint.complaint_number,
        "customer_name": complaint.customer_name,
        "subject": complaint.subject,
        "complaint_type": complaint.complaint_type,
        "priority": complaint.priority,
        "status": complaint.status,
        "status_label": status_info["label"],
        "status_description": status_info["description"],
        "status_color": status_info["color"],
        "created_at": to_utc_z(complaint.created_at),
        "updated_at": to_utc_z(complaint.updated_at),
        "first_response_at": to_utc_z(complaint.first_response_at),
        "resolved_at": to_utc_z(complaint.resolved_at),
        "resolution_summary": complaint.resolution_summary,
        "acknowledged_replacement_qty": complaint.acknowledged_replacement_qty,
        "acknowledged_replacement_hybrid": complaint.acknowledged_replacement_hybrid,
        "customer_satisfaction_rating": complaint.customer_satisfaction_rating,
        "feedback_submitted_at": to_utc_z(complaint.feedback_submitted_at),
    }


def complaint_stats(now: datetime | None = None) -> dict:
    now = now or utcnow()
    base = db.session.query(Complaint)
    return {
        "pending": base.filter(Complaint.status.in_(sorted(OPEN_STATUSES))).count(),
        "critical": base.filter(
            Complaint.priority == "critical",
            Complaint.status.notin_(sorted(TERMINAL_STATUSES)),
        ).count(),
        "needs_response": base.filter(Complaint.status == "pending_response").count(),
        "total": base.count(),
        "recent_24h": base.filter(Complaint.created_at >= now - timedelta(hours=24)).count(),
    }
