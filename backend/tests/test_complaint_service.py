"""
Complaint intake and lookup tests.

Verifies:
- Intake validation, defaults and SLA stamping
- Customer notification and auto-assignment after intake
- Listing, customer tracking view and dashboard counters
"""

from datetime import timedelta

import pytest

from seedcare.models import ComplaintHistory
from seedcare.services import complaint_service, settings_service
from seedcare.services.complaint_errors import ComplaintNotFoundError
from seedcare.services.complaint_number_service import is_valid_complaint_number
from seedcare.time_utils import utcnow
from seedcare.validation import ValidationError


# =============================================================================
# INTAKE
# =============================================================================


class TestCreateComplaint:
    def test_defaults_and_sla(self, db_session, new_complaint, sent):
        payload = new_complaint()
        del payload["complaint_type"]
        complaint = complaint_service.create_complaint(payload)

        assert is_valid_complaint_number(complaint.complaint_number)
        assert complaint.status == "submitted"
        assert complaint.priority == "medium"
        assert complaint.complaint_type == "other"
        assert complaint.department == "customer_service"
        assert complaint.escalated is False
        assert complaint.first_response_sla == "24:00:00"
        assert complaint.resolution_sla == "72:00:00"
        assert complaint.complaint_case_type_ids == [3]
        assert complaint.complaint_case_type_names == ["Daya tumbuh rendah"]

    def test_sla_follows_settings(self, db_session, new_complaint, sent):
        settings_service.update_sla_config({"sla_response_time": 12, "sla_resolution_time": 36.5})
        complaint = complaint_service.create_complaint(new_complaint())
        assert complaint.first_response_sla == "12:00:00"
        assert complaint.resolution_sla == "36:30:00"

    def test_history_and_notifications(self, db_session, new_complaint, sent):
        complaint = complaint_service.create_complaint(new_complaint())

        history = db_session.query(ComplaintHistory).filter_by(complaint_id=complaint.id).all()
        assert [h.action for h in history] == ["created"]

        channels = [(c[0], c[1], c[2]) for c in sent]
        assert ("email", "complaint_created", "siti@example.com") in channels
        assert ("whatsapp", "complaint_created", "081298765432") in channels
        variables = sent[0][3]
        assert variables["complaint_number"] == complaint.complaint_number
        assert variables["tracking_url"].endswith(f"/complaint/{complaint.complaint_number}/status")

    def test_no_email_means_whatsapp_only(self, db_session, new_complaint, sent):
        complaint_service.create_complaint(new_complaint(customer_email=None))
        assert [c[0] for c in sent] == ["whatsapp"]

    @pytest.mark.parametrize("missing", ["customer_name", "customer_phone", "customer_city", "subject", "description"])
    def test_missing_required_field(self, db_session, new_complaint, missing):
        with pytest.raises(ValidationError) as exc:
            complaint_service.create_complaint(new_complaint(**{missing: ""}))
        assert missing in str(exc.value)

    def test_invalid_priority(self, db_session, new_complaint):
        with pytest.raises(ValidationError):
            complaint_service.create_complaint(new_complaint(priority="urgent"))

    def test_case_type_lists_must_match(self, db_session, new_complaint):
        with pytest.raises(ValidationError):
            complaint_service.create_complaint(
                new_complaint(complaint_case_type_ids=[1, 2], complaint_case_type_names=["A"])
            )

    def test_case_types_must_be_lists(self, db_session, new_complaint):
        with pytest.raises(ValidationError):
            complaint_service.create_complaint(new_complaint(complaint_case_type_ids="1"))

    def test_auto_assigns_when_staff_available(self, db_session, new_complaint, make_staff, sent):
        staff = make_staff()
        complaint = complaint_service.create_complaint(new_complaint())

        assert complaint.assigned_to == staff.user_id
        assert complaint.assigned_by is None
        assert complaint.status == "submitted"
        db_session.refresh(staff)
        assert staff.current_assigned_count == 1

    def test_no_staff_leaves_unassigned(self, db_session, new_complaint, sent):
        complaint = complaint_service.create_complaint(new_complaint())
        assert complaint.assigned_to is None

    def test_auto_assign_can_be_disabled(self, db_session, new_complaint, make_staff, sent):
        make_staff()
        settings_service.update_sla_config({
            "sla_response_time": 24,
            "sla_resolution_time": 72,
            "auto_assign_enabled": False,
        })
        complaint = complaint_service.create_complaint(new_complaint())
        assert complaint.assigned_to is None


# =============================================================================
# LOOKUP / LISTING
# =============================================================================


class TestLookup:
    def test_get_missing(self, db_session):
        with pytest.raises(ComplaintNotFoundError):
            complaint_service.get_complaint(999)

    def test_get_by_number(self, db_session, make_complaint):
        complaint = make_complaint(complaint_number="CMP-20261017-0500")
        assert complaint_service.get_by_number("CMP-20261017-0500").id == complaint.id
        with pytest.raises(ComplaintNotFoundError):
            complaint_service.get_by_number("CMP-20261017-0501")


class TestListComplaints:
    def test_newest_first_with_pagination(self, db_session, make_complaint):
        now = utcnow()
        for i in range(5):
            make_complaint(created_at=now - timedelta(hours=i))

        result = complaint_service.list_complaints(limit=2, offset=0)
        assert result["total"] == 5
        assert len(result["data"]) == 2
        assert result["pagination"]["has_more"] is True
        assert result["data"][0]["complaint_number"] == "CMP-20261017-0001"

        last = complaint_service.list_complaints(limit=2, offset=4)
        assert len(last["data"]) == 1
        assert last["pagination"]["has_more"] is False

    def test_status_filter(self, db_session, make_complaint):
        make_complaint(status="resolved")
        make_complaint()
        result = complaint_service.list_complaints(status="resolved")
        assert result["total"] == 1
        assert result["data"][0]["status"] == "resolved"

    def test_number_filter(self, db_session, make_complaint):
        make_complaint()
        target = make_complaint()
        result = complaint_service.list_complaints(complaint_number=target.complaint_number)
        assert [c["id"] for c in result["data"]] == [target.id]

    def test_limit_bounds(self, db_session):
        with pytest.raises(ValidationError):
            complaint_service.list_complaints(limit=0)
        with pytest.raises(ValidationError):
            complaint_service.list_complaints(offset=-1)


class TestCustomerView:
    @pytest.mark.parametrize("status", ["observation", "investigation", "decision"])
    def test_internal_stages_read_as_investigating(self, db_session, make_complaint, status):
        view = complaint_service.customer_view(make_complaint(status=status))
        assert view["status"] == status
        assert view["status_label"] == "Sedang Diselidiki"
        assert view["status_color"] == "orange"

    def test_no_staff_fields(self, db_session, make_complaint):
        view = complaint_service.customer_view(make_complaint())
        assert "assigned_to" not in view
        assert "customer_phone" not in view
        assert view["status_label"] == "Dikirim"


def test_complaint_stats(db_session, make_complaint):
    now = utcnow()
    make_complaint(status="submitted", priority="critical")
    make_complaint(status="investigation")
    make_complaint(status="pending_response")
    make_complaint(status="resolved", priority="critical")
    make_complaint(status="closed", created_at=now - timedelta(days=3))

    stats = complaint_service.complaint_stats(now=now + timedelta(seconds=1))

    assert stats == {
        "pending": 2,
        "critical": 1,
        "needs_response": 1,
        "total": 5,
        "recent_24h": 4,
    }
