# Overview: Service-layer operations for complaint ownership; manual assignment and load-balanced auto-assignment.

"""
Assignment Engine

WHY: Every open complaint needs exactly one owner. Ownership history is kept
as ComplaintAssignment rows (append-only, at most one active per complaint)
and the staff workload counter follows those rows through store-side hooks
(models/workload.py). Nothing here writes current_assigned_count.

Selection and status derivation are pure functions so they can be tested
without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from flask import current_app

from ..extensions import db
from ..models import Complaint, ComplaintAssignment, DEFAULT_DEPARTMENT, StaffProfile
from seedcare.time_utils import utcnow
from seedcare.validation import ValidationError, coerce_id, enforce_rules_priority
from .actors import SYSTEM, Actor, HumanActor, actor_user_id
from .complaint_errors import (
    ALL_AT_CAPACITY,
    NO_ACTIVE_STAFF,
    AlreadyAssignedError,
    AlreadyResolvedError,
    NoEligibleStaffError,
    TargetNotEligibleError,
)
from .complaint_service import get_complaint
from .history_service import record_history


# department -> (statuses it may advance from, status it advances to)
DEPARTMENT_STATUS_RULES: dict[str, tuple[frozenset[str], str]] = {
    "observasi": (frozenset({"acknowledged"}), "observation"),
    "investigasi_1": (frozenset({"observation", "acknowledged"}), "investigation"),
    "investigasi_2": (frozenset({"observation", "acknowledged"}), "investigation"),
    "lab_tasting": (frozenset({"observation", "acknowledged"}), "investigation"),
}

MANUAL_ASSIGNMENT_REASON = "Manual assignment by admin"


def derive_status_for_department(department: str, current_status: str) -> str:
    """Status after routing to department; unchanged unless the rule table matches."""
    rule = DEPARTMENT_STATUS_RULES.get(department)
    if rule is None:
        return current_status
    from_statuses, to_status = rule
    return to_status if current_status in from_statuses else current_status


@dataclass(frozen=True)
class StaffCandidate:
    user_id: int
    full_name: str
    department: str
    current_load: int
    max_load: int
    csat: float | None

    @classmethod
    def from_profile(cls, profile: StaffProfile) -> "StaffCandidate":
        return cls(
            user_id=profile.user_id,
            full_name=profile.full_name,
            department=profile.department,
            current_load=profile.current_assigned_count or 0,
            max_load=profile.max_assigned_complaints or 0,
            csat=profile.customer_satisfaction_avg,
        )

    @property
    def has_capacity(self) -> bool:
        return self.current_load < self.max_load


def select_staff_for_auto_assign(candidates: Iterable[StaffCandidate]) -> tuple[StaffCandidate | None, str | None]:
    """
    Pick the least-loaded candidate with free capacity, best CSAT on ties.

    Returns (candidate, None) or (None, reason) where reason is
    NO_ACTIVE_STAFF or ALL_AT_CAPACITY. Unrated staff sort after rated ones.
    """
    pool: Sequence[StaffCandidate] = list(candidates)
    if not pool:
        return None, NO_ACTIVE_STAFF

    ordered = sorted(
        pool,
        key=lambda c: (c.current_load, -(c.csat if c.csat is not None else float("-inf"))),
    )
    eligible = [c for c in ordered if c.has_capacity]
    if not eligible:
        return None, ALL_AT_CAPACITY
    return eligible[0], None


def _deactivate_active_assignments(complaint_id: int, *, unassigned_by: int | None, now) -> int:
    active = (
        db.session.query(ComplaintAssignment)
        .filter(
            ComplaintAssignment.complaint_id == complaint_id,
            ComplaintAssignment.is_active.is_(True),
        )
        .all()
    )
    for row in active:
        row.is_active = False
        row.unassigned_at = now
        row.unassigned_by = unassigned_by
    # Deactivation must reach the store before the replacement row is inserted
    db.session.flush()
    return len(active)


def assign(
    complaint_id: int,
    staff_id: int,
    department: str,
    reason: str | None,
    actor: HumanActor,
    *,
    force: bool = False,
) -> dict:
    """
    Manually assign a complaint to a staff member in a department.

    force=True skips the capacity check (inactive or missing profiles are
    still refused).

    Raises:
        ValidationError: staff_id or department missing
        ComplaintNotFoundError, AlreadyResolvedError, TargetNotEligibleError
    """
    if staff_id in (None, ""):
        raise ValidationError("staff_id is required")
    if not department:
        raise ValidationError("department is required")
    staff_id = coerce_id(staff_id, "staff_id")

    complaint = get_complaint(complaint_id)
    if complaint.is_terminal:
        raise AlreadyResolvedError(complaint_id, complaint.status)

    profile = db.session.query(StaffProfile).filter_by(user_id=staff_id).first()
    if profile is None:
        raise TargetNotEligibleError(staff_id, "no complaint profile")
    if not profile.is_active:
        raise TargetNotEligibleError(staff_id, "profile is inactive")
    at_capacity = (profile.current_assigned_count or 0) >= (profile.max_assigned_complaints or 0)
    if at_capacity and not force and complaint.assigned_to != staff_id:
        raise TargetNotEligibleError(
            staff_id, f"maximum workload reached ({profile.max_assigned_complaints})"
        )

    now = utcnow()
    actor_id = actor_user_id(actor)
    previous_assignee = complaint.assigned_to
    old_status = complaint.status
    new_status = derive_status_for_department(department, old_status)

    _deactivate_active_assignments(complaint.id, unassigned_by=actor_id, now=now)

    complaint.assigned_to = staff_id
    complaint.assigned_at = now
    complaint.assigned_by = actor_id
    complaint.department = department
    complaint.status = new_status
    complaint.updated_at = now

    db.session.add(ComplaintAssignment(
        complaint_id=complaint.id,
        assigned_to=staff_id,
        assigned_by=actor_id,
        assignment_reason=reason or MANUAL_ASSIGNMENT_REASON,
        previous_assignee=previous_assignee,
        is_active=True,
        assigned_at=now,
    ))
    db.session.commit()

    record_history(
        complaint.id,
        "assigned",
        old_value=previous_assignee,
        new_value=staff_id,
        created_by=actor_id,
        notes=f"Assigned to {profile.full_name} ({department})",
    )
    if new_status != old_status:
        record_history(
            complaint.id,
            "status_changed",
            old_value=old_status,
            new_value=new_status,
            created_by=actor_id,
            notes=f"Status advanced by assignment to {department}",
        )

    return {
        "assigned_to": staff_id,
        "name": profile.full_name,
        "department": department,
        "status": new_status,
        "previous_assignee": previous_assignee,
    }


def auto_assign(complaint_id: int, department: str | None = None, priority: str | None = None) -> dict:
    """
    Assign an unowned complaint to the least-loaded active staff member.

    The target department is the explicit argument, else the complaint's
    department, else customer_service. A given priority is validated and
    stored on the complaint. Status is never changed.

    Raises:
        ComplaintNotFoundError, AlreadyAssignedError, AlreadyResolvedError,
        NoEligibleStaffError
    """
    complaint = get_complaint(complaint_id)
    if complaint.assigned_to:
        raise AlreadyAssignedError(complaint_id, complaint.assigned_to)
    if complaint.is_terminal:
        raise AlreadyResolvedError(complaint_id, complaint.status)
    enforce_rules_priority(priority)

    target_department = department or complaint.department or DEFAULT_DEPARTMENT

    profiles = (
        db.session.query(StaffProfile)
        .filter(
            StaffProfile.department == target_department,
            StaffProfile.is_active.is_(True),
        )
        .all()
    )
    selected, reason = select_staff_for_auto_assign(StaffCandidate.from_profile(p) for p in profiles)
    if selected is None:
        raise NoEligibleStaffError(target_department, reason)

    now = utcnow()
    assigned_by = actor_user_id(SYSTEM)

    complaint.assigned_to = selected.user_id
    complaint.assigned_at = now
    complaint.assigned_by = assigned_by
    complaint.department = target_department
    complaint.updated_at = now
    if priority:
        complaint.priority = priority

    db.session.add(ComplaintAssignment(
        complaint_id=complaint.id,
        assigned_to=selected.user_id,
        assigned_by=assigned_by,
        assignment_reason=f"Auto-assigned to {target_department} based on workload distribution",
        is_active=True,
        assigned_at=now,
    ))
    db.session.commit()

    current_app.logger.info(
        "Complaint %s auto-assigned to user %s (%s)", complaint.complaint_number, selected.user_id, target_department
    )
    record_history(
        complaint.id,
        "auto_assigned",
        new_value=selected.user_id,
        notes=f"Auto-assigned to {selected.full_name} ({target_department})",
    )

    return {
        "user_id": selected.user_id,
        "name": selected.full_name,
        "department": target_department,
        "current_load": selected.current_load + 1,
        "max_load": selected.max_load,
    }


def active_assignment(complaint_id: int) -> ComplaintAssignment | None:
    return (
        db.session.query(ComplaintAssignment)
        .filter(
            ComplaintAssignment.complaint_id == complaint_id,
            ComplaintAssignment.is_active.is_(True),
        )
        .first()
    )


def deactivate_for_resolution(complaint: Complaint, actor: Actor, now) -> int:
    """Close the active assignment as part of resolving (caller commits)."""
    return _deactivate_active_assignments(complaint.id, unassigned_by=actor_user_id(actor), now=now)
