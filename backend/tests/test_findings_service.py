"""
Stage sub-record tests.

Verifies:
- One row per complaint per stage; later submissions overwrite earlier ones
- Yes/no answers are restricted to "Ya" / "Tidak"
- Observation result / quantity rules, lab percentage bounds
- Acting staff is stamped on each write
"""

from datetime import date

import pytest

from seedcare.models import ComplaintInvestigation, ComplaintLabTesting, ComplaintObservation
from seedcare.services import findings_service
from seedcare.services.actors import HumanActor
from seedcare.services.complaint_errors import ComplaintNotFoundError
from seedcare.validation import ValidationError


@pytest.fixture
def observer(make_staff):
    return make_staff("observasi", full_name="Pak Observer")


# =============================================================================
# OBSERVATION
# =============================================================================


class TestObservation:
    def test_create_then_overwrite(self, db_session, make_complaint, observer):
        complaint = make_complaint()
        actor = HumanActor(observer.user_id)

        first = findings_service.upsert_observation(complaint.id, {
            "planting_date": "2026-09-20",
            "is_germination_issue": "Ya",
            "germination_below_85": "Ya",
            "observation_result": "Valid",
            "replacement_qty": "5",
            "replacement_hybrid": "ADV 777",
        }, actor)

        assert first.observer_id == observer.user_id
        assert first.planting_date == date(2026, 9, 20)
        assert first.replacement_qty == 5

        second = findings_service.upsert_observation(complaint.id, {"observation_result": "Invalid"}, actor)

        assert second.id == first.id
        assert second.observation_result == "Invalid"
        assert second.germination_below_85 == "Ya"
        assert db_session.query(ComplaintObservation).filter_by(complaint_id=complaint.id).count() == 1

    def test_unknown_keys_are_ignored(self, db_session, make_complaint, observer):
        complaint = make_complaint()
        row = findings_service.upsert_observation(
            complaint.id,
            {"general_notes": "Lahan tergenang", "ui_tab": "checklist", "observer_id": 9999},
            HumanActor(observer.user_id),
        )
        assert row.general_notes == "Lahan tergenang"
        assert row.observer_id == observer.user_id

    @pytest.mark.parametrize("value", ["ya", "Yes", "1", "true"])
    def test_yes_no_fields(self, db_session, make_complaint, observer, value):
        complaint = make_complaint()
        with pytest.raises(ValidationError):
            findings_service.upsert_observation(complaint.id, {"seed_soaking": value}, HumanActor(observer.user_id))

    def test_blank_answer_clears(self, db_session, make_complaint, observer):
        complaint = make_complaint()
        actor = HumanActor(observer.user_id)
        findings_service.upsert_observation(complaint.id, {"seed_soaking": "Tidak"}, actor)
        row = findings_service.upsert_observation(complaint.id, {"seed_soaking": ""}, actor)
        assert row.seed_soaking is None

    @pytest.mark.parametrize("payload", [
        {"observation_result": "Maybe"},
        {"replacement_qty": 0},
        {"replacement_qty": -1},
        {"replacement_qty": 2.5},
        {"planting_date": "20-09-2026"},
    ])
    def test_invalid_values(self, db_session, make_complaint, observer, payload):
        complaint = make_complaint()
        with pytest.raises(ValidationError):
            findings_service.upsert_observation(complaint.id, payload, HumanActor(observer.user_id))
        assert findings_service.get_observation(complaint.id) is None

    def test_missing_complaint(self, db_session, observer):
        with pytest.raises(ComplaintNotFoundError):
            findings_service.upsert_observation(999, {"observation_result": "Valid"}, HumanActor(observer.user_id))
        with pytest.raises(ComplaintNotFoundError):
            findings_service.get_observation(999)

    def test_to_dict_dates(self, db_session, make_complaint, observer):
        complaint = make_complaint()
        row = findings_service.upsert_observation(
            complaint.id, {"observation_date": "2026-10-01"}, HumanActor(observer.user_id)
        )
        data = row.to_dict()
        assert data["observation_date"] == "2026-10-01"
        assert data["created_at"].endswith("Z")


# =============================================================================
# INVESTIGATION
# =============================================================================


class TestInvestigation:
    def test_lot_number_alias(self, db_session, make_complaint, make_staff):
        investigator = make_staff("investigasi_1")
        complaint = make_complaint()
        row = findings_service.upsert_investigation(complaint.id, {
            "lot_number": "LOT-2026-09",
            "problematic_quantity_kg": "12,5",
            "herbicide_damage": "Tidak",
        }, HumanActor(investigator.user_id))

        assert row.lot_number_check == "LOT-2026-09"
        assert row.problematic_quantity_kg == 12.5
        assert row.investigator_id == investigator.user_id

    def test_explicit_lot_number_check_wins(self, db_session, make_complaint, make_staff):
        investigator = make_staff("investigasi_1")
        complaint = make_complaint()
        row = findings_service.upsert_investigation(
            complaint.id,
            {"lot_number": "A", "lot_number_check": "B"},
            HumanActor(investigator.user_id),
        )
        assert row.lot_number_check == "B"

    def test_yes_no(self, db_session, make_complaint, make_staff):
        investigator = make_staff("investigasi_1")
        complaint = make_complaint()
        with pytest.raises(ValidationError):
            findings_service.upsert_investigation(complaint.id, {"genetic_issue": "Mungkin"}, HumanActor(investigator.user_id))

    def test_single_row(self, db_session, make_complaint, make_staff):
        investigator = make_staff("investigasi_2")
        complaint = make_complaint()
        actor = HumanActor(investigator.user_id)
        findings_service.upsert_investigation(complaint.id, {"farmer_name": "Pak Slamet"}, actor)
        findings_service.upsert_investigation(complaint.id, {"root_cause_determination": "Penyimpanan lembab"}, actor)

        rows = db_session.query(ComplaintInvestigation).filter_by(complaint_id=complaint.id).all()
        assert len(rows) == 1
        assert rows[0].farmer_name == "Pak Slamet"
        assert findings_service.get_investigation(complaint.id).root_cause_determination == "Penyimpanan lembab"


# =============================================================================
# LAB TESTING
# =============================================================================


class TestLabTesting:
    def test_percentages(self, db_session, make_complaint, make_staff):
        technician = make_staff("lab_tasting")
        complaint = make_complaint()
        row = findings_service.upsert_lab_testing(complaint.id, {
            "market_germination_percent": 62,
            "guard_germination_percent": "91.5",
            "market_result": "Tidak Lulus",
        }, HumanActor(technician.user_id))

        assert row.market_germination_percent == 62.0
        assert row.guard_germination_percent == 91.5
        assert row.technician_id == technician.user_id

    @pytest.mark.parametrize("value", [-0.1, 100.5, "abc", True])
    def test_invalid_percentage(self, db_session, make_complaint, make_staff, value):
        technician = make_staff("lab_tasting")
        complaint = make_complaint()
        with pytest.raises(ValidationError):
            findings_service.upsert_lab_testing(
                complaint.id, {"market_vigour_percent": value}, HumanActor(technician.user_id)
            )
        assert db_session.query(ComplaintLabTesting).count() == 0

    def test_bounds_inclusive(self, db_session, make_complaint, make_staff):
        technician = make_staff("lab_tasting")
        complaint = make_complaint()
        row = findings_service.upsert_lab_testing(
            complaint.id,
            {"market_mc_percent": 0, "guard_physical_purity_percent": 100},
            HumanActor(technician.user_id),
        )
        assert row.market_mc_percent == 0.0
        assert row.guard_physical_purity_percent == 100.0

    def test_get_missing_row(self, db_session, make_complaint):
        complaint = make_complaint()
        assert findings_service.get_lab_testing(complaint.id) is None
