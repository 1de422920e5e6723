# Overview: Service-layer operations for staff complaint profiles and their performance aggregates.

from __future__ import annotations

from ..extensions import db
from ..models import COMPLAINT_PERMISSION_KEYS, StaffProfile, User
from seedcare.validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload


PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={
        "full_name",
        "department",
        "max_assigned_complaints",
        "is_active",
    },
    required_on_create={"department"},
)

MS_PER_HOUR = 3_600_000


def get_profile(user_id: int) -> StaffProfile | None:
    return db.session.query(StaffProfile).filter_by(user_id=user_id).first()


def list_profiles(*, department: str | None = None, include_inactive: bool = False) -> list[StaffProfile]:
    query = db.session.query(StaffProfile)
    if not include_inactive:
        query = query.filter(StaffProfile.is_active.is_(True))
    if department:
        query = query.filter(StaffProfile.department == department)
    return query.order_by(StaffProfile.department.asc(), StaffProfile.full_name.asc()).all()


def _clean_permissions(raw) -> dict:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError("complaint_permissions must be an object")
    unknown = sorted(k for k in raw if k not in COMPLAINT_PERMISSION_KEYS)
    if unknown:
        raise ValidationError(f"Unknown complaint permissions: {', '.join(unknown)}")
    for key, value in raw.items():
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be true or false")
    return dict(raw)


def upsert_profile(user_id: int, payload: dict) -> StaffProfile:
    """
    Create or update the complaint profile for a user.

    current_assigned_count and the performance aggregates are not writable
    here; the store maintains them.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")

    payload = dict(payload or {})
    permissions = payload.pop("complaint_permissions", None)

    profile = get_profile(user_id)
    patch = validate_payload(
        model=StaffProfile,
        payload=payload,
        policy=PROFILE_POLICY,
        partial=profile is not None,
    )
    if "max_assigned_complaints" in patch and patch["max_assigned_complaints"] < 0:
        raise ValidationError("max_assigned_complaints must be >= 0")

    if profile is None:
        profile = StaffProfile(
            user_id=user_id,
            full_name=patch.pop("full_name", None) or user.full_name,
            complaint_permissions=_clean_permissions(permissions),
        )
        db.session.add(profile)
    elif permissions is not None:
        profile.complaint_permissions = _clean_permissions(permissions)

    for key, value in patch.items():
        setattr(profile, key, value)

    db.session.commit()
    return profile


def record_resolution_metrics(user_id: int, resolution_ms: int, rating: int | None = None) -> StaffProfile | None:
    """
    Fold one resolution into the staff member's running aggregates.

    avg_resolution_time is a running mean in hours over all resolutions;
    customer_satisfaction_avg is a running mean over rated resolutions only.
    Returns None when the user has no profile.
    """
    profile = get_profile(user_id)
    if profile is None:
        return None

    hours = max(resolution_ms, 0) / MS_PER_HOUR
    resolved = profile.total_resolved or 0
    previous_avg = profile.avg_resolution_time or 0.0
    profile.avg_resolution_time = (previous_avg * resolved + hours) / (resolved + 1)
    profile.total_resolved = resolved + 1

    if rating is not None:
        rated = profile.rated_resolutions or 0
        previous_csat = profile.customer_satisfaction_avg or 0.0
        profile.customer_satisfaction_avg = (previous_csat * rated + rating) / (rated + 1)
        profile.rated_resolutions = rated + 1

    db.session.commit()
    return profile
