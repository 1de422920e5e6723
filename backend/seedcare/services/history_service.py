# Overview: Service-layer operations for the complaint audit log.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import ComplaintHistory


def record_history(
    complaint_id: int,
    action: str,
    *,
    old_value=None,
    new_value=None,
    created_by: int | None = None,
    notes: str | None = None,
) -> ComplaintHistory | None:
    """
    Append a history entry in its own commit.

    Called after the main update has committed. A failure here is logged and
    returns None; the main update stays in place.
    """
    try:
        entry = ComplaintHistory(
            complaint_id=complaint_id,
            action=action,
            old_value=None if old_value is None else str(old_value),
            new_value=None if new_value is None else str(new_value),
            created_by=created_by,
            notes=notes,
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to record %s history for complaint %s", action, complaint_id)
        return None


def list_history(complaint_id: int) -> list[ComplaintHistory]:
    return (
        db.session.query(ComplaintHistory)
        .filter(ComplaintHistory.complaint_id == complaint_id)
        .order_by(ComplaintHistory.created_at.asc(), ComplaintHistory.id.asc())
        .all()
    )
