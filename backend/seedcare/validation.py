from __future__ import annotations
from datetime import date, datetime
from seedcare.time_utils import parse_iso_datetime, parse_iso_date

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, DateTime, Float, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta


YES = "Ya"
NO = "Tidak"
YES_NO_VALUES = {YES, NO}

VALID_PRIORITIES = {"low", "medium", "high", "critical"}
OBSERVATION_RESULTS = {"Valid", "Invalid"}


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: the referenced entity does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., complaint already resolved)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - yes_no_fields: fields restricted to the "Ya"/"Tidak" answer pair
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    yes_no_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return None
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{col.key} must be an integer")

    # Percentages, quantities in kg
    if isinstance(coltype, (Float, Numeric)):
        if isinstance(value, bool):
            raise ValidationError(f"{col.key} must be a number")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            stripped = value.strip().replace(",", ".")
            if not stripped:
                return None
            try:
                return float(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be a number")
        raise ValidationError(f"{col.key} must be a number")

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Calendar dates ("YYYY-MM-DD")
    if isinstance(coltype, Date):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a date (YYYY-MM-DD)")
        raise ValidationError(f"{col.key} must be a date")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
    ignore_unknown: bool = False,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    ignore_unknown=True drops keys outside the allowlist instead of rejecting them
    (form posts carry UI-only fields).
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in list(payload.keys()):
        if k not in policy.writable_fields or k not in cols:
            if ignore_unknown:
                continue
            if k not in policy.writable_fields:
                raise ValidationError(f"Field not allowed: {k}")
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}
    yes_no = policy.yes_no_fields or set()

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            continue
        col = cols[k]

        val = _coerce_value(col, raw)

        # Blank strings on optional columns are stored as NULL
        if isinstance(val, str) and val == "" and col.nullable:
            val = None

        # NULL handling
        if val is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if k in yes_no and val not in YES_NO_VALUES:
            raise ValidationError(f"{k} must be '{YES}' or '{NO}'")

        patch[k] = val

    return patch


def coerce_id(value: Any, field: str) -> int:
    """
    Record ids arrive as JSON numbers or digit strings ("5").

    Booleans, decimals and non-positive values are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped.isdigit():
            raise ValidationError(f"{field} must be an integer")
        value = int(stripped)
    if not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value

def coerce_rating(value: Any, field: str = "rating") -> int:
    """
    Satisfaction ratings are whole numbers 1..5.

    Booleans, floats (even 4.0) and strings are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer between 1 and 5")
    if value < 1 or value > 5:
        raise ValidationError(f"{field} must be between 1 and 5")
    return value


def enforce_rules_observation(patch: dict) -> None:
    result = patch.get("observation_result")
    if result is not None and result not in OBSERVATION_RESULTS:
        raise ValidationError("observation_result must be 'Valid' or 'Invalid'")

    qty = patch.get("replacement_qty")
    if qty is not None and qty <= 0:
        raise ValidationError("replacement_qty must be > 0")


def enforce_rules_priority(priority: str | None) -> None:
    if priority is not None and priority not in VALID_PRIORITIES:
        raise ValidationError(
            f"priority must be one of: {', '.join(sorted(VALID_PRIORITIES))}"
        )
