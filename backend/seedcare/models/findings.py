# Overview: Stage sub-records (observation, investigation, lab testing), one row per complaint.

from __future__ import annotations

from ..extensions import db
from seedcare.time_utils import to_iso_date, to_utc_z, utcnow


GERMINATION_CRITERIA = (
    "germination_below_85",
    "seed_not_found",
    "seed_not_grow_soil",
    "seed_damaged_chemical",
    "seed_damaged_insect",
    "fungal_infection",
    "seed_excavated",
    "additional_seed_treatment",
    "seed_soaking",
    "planting_depth_over_7cm",
)


def _serialize(row, skip: set[str] = frozenset()) -> dict:
    out = {}
    for col in row.__table__.columns:
        if col.key in skip:
            continue
        val = getattr(row, col.key)
        if col.key.endswith("_at"):
            val = to_utc_z(val)
        elif hasattr(val, "isoformat"):
            val = to_iso_date(val)
        out[col.key] = val
    return out


class ComplaintObservation(db.Model):
    """
    Field observation findings.

    Yes/no answers are stored as "Ya" / "Tidak". observation_result is
    "Valid", "Invalid" or NULL (not concluded yet).
    """
    __tablename__ = "complaint_observations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    complaint_id = db.Column(db.Integer, db.ForeignKey("complaints.id"), nullable=False, unique=True, index=True)
    observer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Planting & purchase
    planting_date = db.Column(db.Date, nullable=True)
    label_expired_date = db.Column(db.Date, nullable=True)
    purchase_date = db.Column(db.Date, nullable=True)
    purchase_place = db.Column(db.String(255), nullable=True)
    purchase_address = db.Column(db.Text, nullable=True)

    observer_name = db.Column(db.String(255), nullable=True)
    observer_position = db.Column(db.String(255), nullable=True)
    observation_date = db.Column(db.Date, nullable=True)

    # Germination checklist
    is_germination_issue = db.Column(db.String(8), nullable=True)
    germination_below_85 = db.Column(db.String(8), nullable=True)
    seed_not_found = db.Column(db.String(8), nullable=True)
    seed_not_grow_soil = db.Column(db.String(8), nullable=True)
    seed_damaged_chemical = db.Column(db.String(8), nullable=True)
    seed_damaged_insect = db.Column(db.String(8), nullable=True)
    fungal_infection = db.Column(db.String(8), nullable=True)
    seed_excavated = db.Column(db.String(8), nullable=True)
    additional_seed_treatment = db.Column(db.String(8), nullable=True)
    seed_soaking = db.Column(db.String(8), nullable=True)
    planting_depth_over_7cm = db.Column(db.String(8), nullable=True)

    # Evidence
    has_purchase_proof = db.Column(db.String(8), nullable=True)
    has_packaging_evidence = db.Column(db.String(8), nullable=True)

    replacement_qty = db.Column(db.Integer, nullable=True)
    replacement_hybrid = db.Column(db.String(255), nullable=True)
    observation_result = db.Column(db.String(16), nullable=True)
    general_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return _serialize(self)


class ComplaintInvestigation(db.Model):
    __tablename__ = "complaint_investigations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    complaint_id = db.Column(db.Integer, db.ForeignKey("complaints.id"), nullable=False, unique=True, index=True)
    investigator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    investigator_name = db.Column(db.String(255), nullable=True)
    investigator_position = db.Column(db.String(255), nullable=True)
    investigation_date = db.Column(db.Date, nullable=True)
    initiator_complaint = db.Column(db.String(255), nullable=True)
    complaint_location = db.Column(db.Text, nullable=True)
    farmer_name = db.Column(db.String(255), nullable=True)
    complaint_type = db.Column(db.String(64), nullable=True)
    seed_variety = db.Column(db.String(255), nullable=True)
    lot_number_check = db.Column(db.String(128), nullable=True)
    problematic_quantity_kg = db.Column(db.Float, nullable=True)

    planting_date = db.Column(db.Date, nullable=True)
    label_expired_date = db.Column(db.Date, nullable=True)
    purchase_date = db.Column(db.Date, nullable=True)
    purchase_place = db.Column(db.String(255), nullable=True)
    purchase_address = db.Column(db.Text, nullable=True)

    # Cause checklist
    cause_category = db.Column(db.String(128), nullable=True)
    packaging_damage = db.Column(db.String(8), nullable=True)
    product_error = db.Column(db.String(8), nullable=True)
    delivery_issue = db.Column(db.String(8), nullable=True)
    delivery_condition = db.Column(db.String(8), nullable=True)
    growth_issue = db.Column(db.String(8), nullable=True)
    seed_treatment_issue = db.Column(db.String(8), nullable=True)
    product_appearance = db.Column(db.String(8), nullable=True)
    product_purity = db.Column(db.String(8), nullable=True)
    seed_health = db.Column(db.String(8), nullable=True)
    physiological_factors = db.Column(db.String(8), nullable=True)
    genetic_issue = db.Column(db.String(8), nullable=True)
    herbicide_damage = db.Column(db.String(8), nullable=True)
    product_performance = db.Column(db.String(8), nullable=True)
    product_expired = db.Column(db.String(8), nullable=True)

    problem_description = db.Column(db.Text, nullable=True)
    action_taken = db.Column(db.Text, nullable=True)
    pest_info = db.Column(db.Text, nullable=True)
    agronomic_aspect = db.Column(db.Text, nullable=True)
    environment_info = db.Column(db.Text, nullable=True)
    plant_performance_phase = db.Column(db.Text, nullable=True)
    investigation_conclusion = db.Column(db.Text, nullable=True)
    root_cause_determination = db.Column(db.Text, nullable=True)
    long_term_corrective_action = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return _serialize(self)


class ComplaintLabTesting(db.Model):
    """Market sample vs guard (retained) sample lab results, percentages as floats."""
    __tablename__ = "complaint_lab_testing"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    complaint_id = db.Column(db.Integer, db.ForeignKey("complaints.id"), nullable=False, unique=True, index=True)
    technician_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    market_sample_received_date = db.Column(db.Date, nullable=True)
    market_germination_result_date = db.Column(db.Date, nullable=True)
    market_vigour_result_date = db.Column(db.Date, nullable=True)
    market_germination_percent = db.Column(db.Float, nullable=True)
    market_vigour_percent = db.Column(db.Float, nullable=True)
    market_physical_purity_percent = db.Column(db.Float, nullable=True)
    market_mc_percent = db.Column(db.Float, nullable=True)
    market_genetic_purity_percent = db.Column(db.Float, nullable=True)
    market_result = db.Column(db.String(64), nullable=True)

    guard_sample_received_date = db.Column(db.Date, nullable=True)
    guard_germination_result_date = db.Column(db.Date, nullable=True)
    guard_vigour_result_date = db.Column(db.Date, nullable=True)
    guard_germination_percent = db.Column(db.Float, nullable=True)
    guard_vigour_percent = db.Column(db.Float, nullable=True)
    guard_physical_purity_percent = db.Column(db.Float, nullable=True)
    guard_mc_percent = db.Column(db.Float, nullable=True)
    guard_genetic_purity_percent = db.Column(db.Float, nullable=True)
    guard_result = db.Column(db.String(64), nullable=True)

    lab_technician_name = db.Column(db.String(255), nullable=True)
    testing_method = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return _serialize(self)
