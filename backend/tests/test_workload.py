"""
Workload counter tests.

current_assigned_count is moved by ComplaintAssignment row changes only.
"""

from seedcare.models import ComplaintAssignment, StaffProfile
from seedcare.time_utils import utcnow


def _assignment(complaint, staff, *, is_active=True):
    return ComplaintAssignment(
        complaint_id=complaint.id,
        assigned_to=staff.user_id,
        is_active=is_active,
        assigned_at=utcnow(),
    )


def _count(db_session, staff):
    db_session.refresh(staff)
    return staff.current_assigned_count


def test_active_insert_increments(db_session, make_complaint, make_staff):
    staff = make_staff(current=2)
    db_session.add(_assignment(make_complaint(), staff))
    db_session.commit()
    assert _count(db_session, staff) == 3


def test_inactive_insert_leaves_counter(db_session, make_complaint, make_staff):
    staff = make_staff(current=2)
    db_session.add(_assignment(make_complaint(), staff, is_active=False))
    db_session.commit()
    assert _count(db_session, staff) == 2


def test_deactivate_and_reactivate(db_session, make_complaint, make_staff):
    staff = make_staff()
    row = _assignment(make_complaint(), staff)
    db_session.add(row)
    db_session.commit()
    assert _count(db_session, staff) == 1

    row.is_active = False
    db_session.commit()
    assert _count(db_session, staff) == 0

    row.is_active = True
    db_session.commit()
    assert _count(db_session, staff) == 1


def test_unrelated_update_leaves_counter(db_session, make_complaint, make_staff):
    staff = make_staff()
    row = _assignment(make_complaint(), staff)
    db_session.add(row)
    db_session.commit()

    row.assignment_reason = "Catatan tambahan"
    db_session.commit()
    assert _count(db_session, staff) == 1


def test_counter_never_negative(db_session, make_complaint, make_staff):
    staff = make_staff()
    row = _assignment(make_complaint(), staff)
    db_session.add(row)
    db_session.commit()

    db_session.query(StaffProfile).filter_by(user_id=staff.user_id).update({"current_assigned_count": 0})
    db_session.commit()

    row.is_active = False
    db_session.commit()
    assert _count(db_session, staff) == 0
