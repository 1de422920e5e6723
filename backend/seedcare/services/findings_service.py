# Overview: Service-layer operations for stage sub-records (observation, investigation, lab testing).

"""
One sub-record per complaint per stage, written with upsert-by-complaint
semantics: a second submission overwrites the first (last write wins, no
version check). If two first submissions race on the unique complaint_id,
the loser retries as an update.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    GERMINATION_CRITERIA,
    ComplaintInvestigation,
    ComplaintLabTesting,
    ComplaintObservation,
)
from seedcare.time_utils import utcnow
from seedcare.validation import ModelValidationPolicy, ValidationError, enforce_rules_observation, validate_payload
from .actors import Actor, actor_user_id
from .complaint_service import get_complaint


_SYSTEM_COLUMNS = {"id", "complaint_id", "created_at", "updated_at"}


def _writable(model, actor_column: str) -> set[str]:
    return {c.key for c in model.__table__.columns} - _SYSTEM_COLUMNS - {actor_column}


OBSERVATION_POLICY = ModelValidationPolicy(
    writable_fields=_writable(ComplaintObservation, "observer_id"),
    yes_no_fields={
        "is_germination_issue",
        *GERMINATION_CRITERIA,
        "has_purchase_proof",
        "has_packaging_evidence",
    },
)

INVESTIGATION_POLICY = ModelValidationPolicy(
    writable_fields=_writable(ComplaintInvestigation, "investigator_id"),
    yes_no_fields={
        "packaging_damage",
        "product_error",
        "delivery_issue",
        "delivery_condition",
        "growth_issue",
        "seed_treatment_issue",
        "product_appearance",
        "product_purity",
        "seed_health",
        "physiological_factors",
        "genetic_issue",
        "herbicide_damage",
        "product_performance",
        "product_expired",
    },
)

LAB_TESTING_POLICY = ModelValidationPolicy(
    writable_fields=_writable(ComplaintLabTesting, "technician_id"),
)

_PERCENT_FIELDS = {
    c.key for c in ComplaintLabTesting.__table__.columns if c.key.endswith("_percent")
}


def _upsert(model, complaint_id: int, patch: dict, actor_column: str, actor_id: int | None):
    def _apply(row) -> None:
        for key, value in patch.items():
            setattr(row, key, value)
        setattr(row, actor_column, actor_id)
        row.updated_at = utcnow()

    row = db.session.query(model).filter_by(complaint_id=complaint_id).first()
    if row is None:
        row = model(complaint_id=complaint_id)
        _apply(row)
        db.session.add(row)
        try:
            db.session.commit()
            return row
        except IntegrityError:
            db.session.rollback()
            row = db.session.query(model).filter_by(complaint_id=complaint_id).one()

    _apply(row)
    db.session.commit()
    return row


def upsert_observation(complaint_id: int, payload: dict, actor: Actor) -> ComplaintObservation:
    """
    Raises:
        ValidationError: unknown types, non "Ya"/"Tidak" answers,
            observation_result outside Valid/Invalid, replacement_qty <= 0
        ComplaintNotFoundError
    """
    complaint = get_complaint(complaint_id)
    patch = validate_payload(
        model=ComplaintObservation,
        payload=payload,
        policy=OBSERVATION_POLICY,
        partial=True,
        ignore_unknown=True,
    )
    enforce_rules_observation(patch)
    return _upsert(ComplaintObservation, complaint.id, patch, "observer_id", actor_user_id(actor))


def upsert_investigation(complaint_id: int, payload: dict, actor: Actor) -> ComplaintInvestigation:
    complaint = get_complaint(complaint_id)
    payload = dict(payload or {})
    # Investigation form posts the lot number under its display name
    if "lot_number" in payload and "lot_number_check" not in payload:
        payload["lot_number_check"] = payload.pop("lot_number")
    patch = validate_payload(
        model=ComplaintInvestigation,
        payload=payload,
        policy=INVESTIGATION_POLICY,
        partial=True,
        ignore_unknown=True,
    )
    return _upsert(ComplaintInvestigation, complaint.id, patch, "investigator_id", actor_user_id(actor))


def upsert_lab_testing(complaint_id: int, payload: dict, actor: Actor) -> ComplaintLabTesting:
    complaint = get_complaint(complaint_id)
    patch = validate_payload(
        model=ComplaintLabTesting,
        payload=payload,
        policy=LAB_TESTING_POLICY,
        partial=True,
        ignore_unknown=True,
    )
    for key in _PERCENT_FIELDS:
        value = patch.get(key)
        if value is not None and not 0 <= value <= 100:
            raise ValidationError(f"{key} must be between 0 and 100")
    return _upsert(ComplaintLabTesting, complaint.id, patch, "technician_id", actor_user_id(actor))


def get_observation(complaint_id: int) -> ComplaintObservation | None:
    get_complaint(complaint_id)
    return db.session.query(ComplaintObservation).filter_by(complaint_id=complaint_id).first()


def get_investigation(complaint_id: int) -> ComplaintInvestigation | None:
    get_complaint(complaint_id)
    return db.session.query(ComplaintInvestigation).filter_by(complaint_id=complaint_id).first()


def get_lab_testing(complaint_id: int) -> ComplaintLabTesting | None:
    get_complaint(complaint_id)
    return db.session.query(ComplaintLabTesting).filter_by(complaint_id=complaint_id).first()
