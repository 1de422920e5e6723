# Overview: Service-layer operations for the complaint lifecycle; status transitions, acknowledgment, resolution, feedback, escalation.

"""
Status Transition Engine

WHY: The workflow is deliberately permissive. Any status in the fixed set is
accepted as a target; ordering is a convention of the staff UI, not enforced
here. What IS enforced:
- repeating the current status is a no-op (no history, no notification)
- resolved_at / resolved_by are stamped once and never moved
- resolve() refuses complaints that are already resolved or closed

Each operation commits its main update first. History entries, internal
notes, staff metrics and customer notifications follow as separate
best-effort steps whose failures are logged and do not undo the update.
"""

from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import COMPLAINT_STATUSES, Complaint, ComplaintResponse, TERMINAL_STATUSES
from seedcare.time_utils import utcnow
from seedcare.validation import ValidationError, coerce_rating
from .actors import Actor, actor_user_id
from .assignment_service import deactivate_for_resolution
from .complaint_errors import AlreadyResolvedError, InvalidStatusError
from .complaint_service import get_complaint
from .history_service import record_history
from .notification_service import (
    TEMPLATE_ACKNOWLEDGED,
    TEMPLATE_RESOLVED,
    TEMPLATE_STATUS_UPDATE,
    customer_status,
    notify_customer,
)
from . import staff_service


def transition(complaint_id: int, target_status: str, actor: Actor) -> Complaint:
    """
    Move a complaint to target_status.

    Raises:
        InvalidStatusError: target outside the fixed status set
        ComplaintNotFoundError
    """
    if target_status not in COMPLAINT_STATUSES:
        raise InvalidStatusError(target_status)

    complaint = get_complaint(complaint_id)
    old_status = complaint.status
    if old_status == target_status:
        return complaint

    actor_id = actor_user_id(actor)
    now = utcnow()
    complaint.status = target_status
    complaint.updated_at = now
    if target_status in TERMINAL_STATUSES and complaint.resolved_at is None:
        complaint.resolved_at = now
        complaint.resolved_by = actor_id
    db.session.commit()

    record_history(
        complaint.id,
        "status_changed",
        old_value=old_status,
        new_value=target_status,
        created_by=actor_id,
        notes=f"Status changed to {target_status} by admin",
    )
    info = customer_status(target_status)
    notify_customer(
        complaint,
        TEMPLATE_STATUS_UPDATE,
        status=target_status,
        status_label=info["label"],
        status_description=info["description"],
        status_color=info["color"],
    )
    return complaint


def _positive_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("replacement_qty must be a positive integer")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError("replacement_qty must be a positive integer")
    return value


def acknowledge_with_replacement(complaint_id: int, replacement_qty, replacement_hybrid, actor: Actor) -> Complaint:
    """
    Confirm a complaint with an approved replacement. Re-acknowledging is allowed.

    Raises:
        ValidationError: quantity or hybrid missing/invalid
        ComplaintNotFoundError
    """
    if replacement_qty in (None, "") or not (replacement_hybrid or "").strip():
        raise ValidationError("Replacement qty and hybrid are required")
    qty = _positive_quantity(replacement_qty)
    hybrid = replacement_hybrid.strip()

    complaint = get_complaint(complaint_id)
    actor_id = actor_user_id(actor)
    now = utcnow()
    old_status = complaint.status

    complaint.status = "acknowledged"
    complaint.acknowledged_replacement_qty = qty
    complaint.acknowledged_replacement_hybrid = hybrid
    complaint.updated_at = now
    if complaint.first_response_at is None:
        complaint.first_response_at = now
    db.session.commit()

    record_history(
        complaint.id,
        "acknowledged_with_replacement",
        old_value=old_status,
        new_value="acknowledged",
        created_by=actor_id,
        notes=f"Acknowledged with replacement: {qty} unit {hybrid}",
    )
    notify_customer(
        complaint,
        TEMPLATE_ACKNOWLEDGED,
        replacement_qty=qty,
        replacement_hybrid=hybrid,
    )
    return complaint


def resolve(
    complaint_id: int,
    resolution: str | None,
    resolution_summary: str | None,
    satisfaction_rating,
    actor: Actor,
) -> Complaint:
    """
    Resolve a complaint, close its active assignment and report staff metrics.

    Raises:
        AlreadyResolvedError: status is resolved or closed
        ValidationError: rating given but not 1..5
        ComplaintNotFoundError
    """
    complaint = get_complaint(complaint_id)
    if complaint.is_terminal:
        raise AlreadyResolvedError(complaint_id, complaint.status)
    rating = coerce_rating(satisfaction_rating, "customer_satisfaction_rating") if satisfaction_rating is not None else None

    actor_id = actor_user_id(actor)
    now = utcnow()
    old_status = complaint.status

    complaint.status = "resolved"
    complaint.resolved_at = now
    complaint.resolved_by = actor_id
    complaint.resolution = resolution
    complaint.resolution_summary = resolution_summary
    complaint.customer_satisfaction_rating = rating
    complaint.updated_at = now
    deactivate_for_resolution(complaint, actor, now)
    db.session.commit()

    if complaint.assigned_to:
        resolution_ms = int((complaint.resolved_at - complaint.created_at).total_seconds() * 1000)
        try:
            staff_service.record_resolution_metrics(complaint.assigned_to, resolution_ms, rating)
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to update resolution metrics for user %s", complaint.assigned_to)

    record_history(
        complaint.id,
        "resolved",
        old_value=old_status,
        new_value="resolved",
        created_by=actor_id,
        notes=resolution_summary,
    )
    notify_customer(complaint, TEMPLATE_RESOLVED, resolution_summary=resolution_summary)
    return complaint


def submit_feedback(complaint_id: int, rating, quick_answers=None, feedback_text: str | None = None) -> Complaint:
    """
    Store customer feedback (no status change) and leave an internal note for staff.

    Raises:
        ValidationError: rating not an integer in 1..5, quick_answers not a list of strings
        ComplaintNotFoundError
    """
    rating = coerce_rating(rating)
    if quick_answers is None:
        quick_answers = []
    if not isinstance(quick_answers, list) or not all(isinstance(a, str) for a in quick_answers):
        raise ValidationError("quick_answers must be a list of strings")
    feedback_text = (feedback_text or "").strip() or None

    complaint = get_complaint(complaint_id)
    now = utcnow()
    complaint.customer_satisfaction_rating = rating
    complaint.customer_feedback = feedback_text
    complaint.feedback_quick_answers = list(quick_answers)
    complaint.feedback_submitted_at = now
    complaint.updated_at = now
    db.session.commit()

    message = f"Customer memberikan rating {rating}/5"
    if feedback_text:
        message += f' dengan feedback: "{feedback_text}"'
    try:
        db.session.add(ComplaintResponse(
            complaint_id=complaint.id,
            message=message,
            response_type="customer_feedback",
            is_internal=True,
            admin_id=None,
            admin_name="System",
            created_at=now,
        ))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to log feedback note for complaint %s", complaint.id)

    return complaint


def escalate(complaint_id: int, actor: Actor, reason: str | None = None) -> Complaint:
    """Flag a complaint as escalated. Escalating twice is a no-op."""
    complaint = get_complaint(complaint_id)
    if complaint.escalated:
        return complaint

    actor_id = actor_user_id(actor)
    now = utcnow()
    complaint.escalated = True
    complaint.escalated_at = now
    complaint.escalated_by = actor_id
    complaint.updated_at = now
    db.session.commit()

    record_history(
        complaint.id,
        "escalated",
        old_value=False,
        new_value=True,
        created_by=actor_id,
        notes=reason,
    )
    return complaint
