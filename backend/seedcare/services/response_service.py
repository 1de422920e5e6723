# Overview: Service-layer operations for staff replies and internal notes on complaints.

from __future__ import annotations

from ..extensions import db
from ..models import ComplaintResponse
from seedcare.time_utils import utcnow
from seedcare.validation import ValidationError
from .actors import Actor, actor_user_id
from .complaint_service import get_complaint
from .history_service import record_history
from .notification_service import TEMPLATE_RESPONSE, notify_customer


HISTORY_NOTE_LENGTH = 150


def add_response(
    complaint_id: int,
    message: str,
    actor: Actor,
    *,
    admin_name: str | None = None,
    is_internal: bool = False,
) -> ComplaintResponse:
    """
    Append a staff reply (customer-visible) or an internal note.

    The first customer-visible reply stamps first_response_at.
    """
    message = (message or "").strip()
    if not message:
        raise ValidationError("Message is required")

    complaint = get_complaint(complaint_id)
    actor_id = actor_user_id(actor)
    now = utcnow()

    response = ComplaintResponse(
        complaint_id=complaint.id,
        message=message,
        response_type="internal_note" if is_internal else "reply",
        is_internal=is_internal,
        admin_id=actor_id,
        admin_name=admin_name or "Admin",
        created_at=now,
    )
    db.session.add(response)
    complaint.updated_at = now
    if not is_internal and complaint.first_response_at is None:
        complaint.first_response_at = now
    db.session.commit()

    record_history(
        complaint.id,
        "internal_note_added" if is_internal else "response_added",
        new_value=f"Response by {response.admin_name}",
        created_by=actor_id,
        notes=message[:HISTORY_NOTE_LENGTH],
    )
    if not is_internal:
        notify_customer(complaint, TEMPLATE_RESPONSE, message=message)
    return response


def list_responses(complaint_id: int, *, include_internal: bool = True) -> list[ComplaintResponse]:
    query = db.session.query(ComplaintResponse).filter(ComplaintResponse.complaint_id == complaint_id)
    if not include_internal:
        query = query.filter(ComplaintResponse.is_internal.is_(False))
    return query.order_by(ComplaintResponse.created_at.asc(), ComplaintResponse.id.asc()).all()
