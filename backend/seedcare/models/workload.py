# Overview: Store-side workload accounting for staff profiles.

"""
current_assigned_count is owned by the store, the way a database trigger
would own it: service code only inserts or deactivates ComplaintAssignment
rows, and these mapper hooks move the counter on the same connection (so
the change commits or rolls back with the assignment itself).
"""

from __future__ import annotations

from sqlalchemy import case, event, inspect, update

from .complaints import ComplaintAssignment
from .staff import StaffProfile


_profiles = StaffProfile.__table__


def _adjust(connection, user_id: int, delta: int) -> None:
    counter = _profiles.c.current_assigned_count
    if delta >= 0:
        new_value = counter + delta
    else:
        # Never below zero
        new_value = case((counter + delta < 0, 0), else_=counter + delta)
    connection.execute(
        update(_profiles).where(_profiles.c.user_id == user_id).values(current_assigned_count=new_value)
    )


@event.listens_for(ComplaintAssignment, "after_insert")
def _assignment_inserted(mapper, connection, target: ComplaintAssignment) -> None:
    if target.is_active:
        _adjust(connection, target.assigned_to, +1)


@event.listens_for(ComplaintAssignment, "before_update")
def _assignment_updated(mapper, connection, target: ComplaintAssignment) -> None:
    history = inspect(target).attrs.is_active.history
    if not history.has_changes():
        return
    was_active = bool(history.deleted[0]) if history.deleted else False
    if was_active and not target.is_active:
        _adjust(connection, target.assigned_to, -1)
    elif not was_active and target.is_active:
        _adjust(connection, target.assigned_to, +1)
