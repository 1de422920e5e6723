# Overview: Complaint number allocation (CMP-YYYYMMDD-NNNN) with collision retry.

"""
Complaint numbers are customer-facing (tracking URLs, messages) and unique
at the store.

WHY the time component: two concurrent submissions read the same "latest
number for today" and would otherwise compute the same successor. Mixing in
the low 4 digits of the millisecond clock spreads them apart; the store's
unique constraint plus the retry loop in concurrency.insert_unique catches
whatever still collides.
"""

from __future__ import annotations

import re
import time
from datetime import date

from ..extensions import db
from ..models import Complaint
from seedcare.time_utils import utcnow


NUMBER_PREFIX = "CMP"
_NUMBER_RE = re.compile(r"^CMP-(\d{8})-(\d{4})$")


def date_prefix(day: date) -> str:
    return f"{NUMBER_PREFIX}-{day.strftime('%Y%m%d')}-"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def latest_number_for(prefix: str) -> str | None:
    """Lexicographically greatest complaint number starting with prefix."""
    return (
        db.session.query(db.func.max(Complaint.complaint_number))
        .filter(Complaint.complaint_number.like(f"{prefix}%"))
        .scalar()
    )


def next_sequence(latest: str | None) -> int:
    """Trailing 4 digits of the latest number plus one; 1 when there is none."""
    if not latest:
        return 1
    tail = latest.rsplit("-", 1)[-1]
    try:
        return int(tail) + 1
    except ValueError:
        return 1


def compose_suffix(sequence: int, now_ms: int) -> int:
    return (sequence + now_ms % 10000) % 10000


def generate_complaint_number(day: date | None = None) -> str:
    """One candidate number for today. Uniqueness is enforced on insert."""
    day = day or utcnow().date()
    prefix = date_prefix(day)
    sequence = next_sequence(latest_number_for(prefix))
    return f"{prefix}{compose_suffix(sequence, _now_ms()):04d}"


def is_valid_complaint_number(value: str | None) -> bool:
    return bool(value and _NUMBER_RE.match(value))
