# Overview: Service-layer operations for complaint system settings (SLA configuration).

from __future__ import annotations

from ..extensions import db
from ..models import ComplaintSetting
from seedcare.time_utils import hours_to_interval
from seedcare.validation import ValidationError


SLA_SETTING_KEY = "sla_configuration"
SLA_SETTING_DESCRIPTION = "SLA and automatic features configuration"

DEFAULT_SLA_CONFIG = {
    "sla_response_time": 24,
    "sla_resolution_time": 72,
    "auto_assign_enabled": True,
    "email_notifications_enabled": True,
    "priority_auto_escalation": True,
    "escalation_threshold_hours": 48,
}

_NUMERIC_KEYS = {"sla_response_time", "sla_resolution_time", "escalation_threshold_hours"}
_BOOLEAN_KEYS = {"auto_assign_enabled", "email_notifications_enabled", "priority_auto_escalation"}
_REQUIRED_KEYS = {"sla_response_time", "sla_resolution_time"}


def _get_row() -> ComplaintSetting | None:
    return db.session.query(ComplaintSetting).filter_by(setting_key=SLA_SETTING_KEY).first()


def get_sla_config() -> dict:
    """Stored SLA configuration over the defaults."""
    config = dict(DEFAULT_SLA_CONFIG)
    row = _get_row()
    if row and row.setting_value:
        config.update(row.setting_value)
    return config


def validate_sla_config(payload: dict) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid settings format")

    missing = sorted(k for k in _REQUIRED_KEYS if k not in payload)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cleaned: dict = {}
    for key, value in payload.items():
        if key in _NUMERIC_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{key} must be a number")
            if value <= 0:
                raise ValidationError(f"{key} must be > 0")
            cleaned[key] = value
        elif key in _BOOLEAN_KEYS:
            if not isinstance(value, bool):
                raise ValidationError(f"{key} must be true or false")
            cleaned[key] = value
        else:
            raise ValidationError(f"Unknown setting: {key}")
    return cleaned


def update_sla_config(payload: dict, *, updated_by: int | None = None) -> dict:
    """Validate and upsert the SLA configuration. Returns the effective config."""
    cleaned = validate_sla_config(payload)

    row = _get_row()
    if row is None:
        row = ComplaintSetting(setting_key=SLA_SETTING_KEY, description=SLA_SETTING_DESCRIPTION)
        db.session.add(row)

    merged = dict(DEFAULT_SLA_CONFIG)
    if row.setting_value:
        merged.update(row.setting_value)
    merged.update(cleaned)

    # JSON column: assign a new dict so the change is tracked
    row.setting_value = merged
    row.updated_by_user_id = updated_by
    db.session.commit()
    return dict(merged)


def ensure_default_settings() -> bool:
    """Seed the SLA configuration row. Returns True if it was created."""
    if _get_row() is not None:
        return False
    db.session.add(ComplaintSetting(
        setting_key=SLA_SETTING_KEY,
        setting_value=dict(DEFAULT_SLA_CONFIG),
        description=SLA_SETTING_DESCRIPTION,
    ))
    db.session.commit()
    return True


def sla_targets(config: dict | None = None) -> tuple[str, str]:
    """(first_response_sla, resolution_sla) as "HH:MM:SS" intervals."""
    config = config or get_sla_config()
    return (
        hours_to_interval(float(config["sla_response_time"])),
        hours_to_interval(float(config["sla_resolution_time"])),
    )
