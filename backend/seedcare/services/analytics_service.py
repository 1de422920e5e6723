# Overview: Service-layer operations for complaint analytics; SLA, CSAT, distributions, trends and team performance.

"""
Analytics Aggregation

WHY: Dashboards need one consistent reading of the complaint set. The
aggregation is a pure function over already-loaded rows
(build_complaint_analytics) so every number can be tested without a
database; complaint_analytics() only loads the window and delegates.

Conventions:
- hours are rounded to one decimal, percentages to whole numbers
  (half rounds up)
- empty sets give 0 for averages and rates, but 100 for SLA compliance
  (no opportunity to breach)
- response_time_by_priority leaves out priorities with no data
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping

from ..extensions import db
from ..models import Complaint, StaffProfile, TERMINAL_STATUSES
from seedcare.time_utils import hours_between, interval_to_seconds, to_utc_z, utcnow
from seedcare.validation import ValidationError


PRIORITY_ORDER = ("critical", "high", "medium", "low")
TOP_PRODUCTS_LIMIT = 5
DEFAULT_MAX_LOAD = 10
MAX_PERIOD_DAYS = 3650


def _get(row: Any, key: str):
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _percent(part: int, whole: int) -> int:
    return int(round_half_up(part / whole * 100)) if whole else 0


def _avg_hours(rows: list, end_key: str) -> float:
    if not rows:
        return 0.0
    return sum(hours_between(_get(r, "created_at"), _get(r, end_key)) for r in rows) / len(rows)


def _is_resolved(row) -> bool:
    return _get(row, "status") in TERMINAL_STATUSES


def breaches_sla(row, end_key: str, sla_key: str) -> bool:
    """True when the elapsed time to end_key exceeds the row's SLA interval."""
    created = _get(row, "created_at")
    ended = _get(row, end_key)
    sla = _get(row, sla_key)
    if not (created and ended):
        return False
    target = interval_to_seconds(sla)
    if target is None:
        return False
    return (ended - created).total_seconds() > target


def _distribution(rows: Iterable, key: str, *, default: str | None = None) -> dict[str, int]:
    counts: dict[str, int] = {}
    for row in rows:
        value = _get(row, key)
        if value in (None, "") and default is not None:
            value = default
        counts[value] = counts.get(value, 0) + 1
    return counts


def _top_products(rows: list) -> list[dict]:
    # Counter keeps first-seen order and most_common() is a stable sort
    counts = Counter(_get(r, "related_product_name") for r in rows if _get(r, "related_product_name"))
    return [{"product": name, "count": count} for name, count in counts.most_common(TOP_PRODUCTS_LIMIT)]


def _trends(rows: list) -> list[dict]:
    buckets: dict[str, dict] = {}
    for row in rows:
        day = _get(row, "created_at").date().isoformat()
        bucket = buckets.setdefault(
            day, {"date": day, "total": 0, "resolved": 0, "pending": 0, "escalated": 0, "critical": 0}
        )
        bucket["total"] += 1
        if _is_resolved(row):
            bucket["resolved"] += 1
        else:
            bucket["pending"] += 1
        if _get(row, "escalated"):
            bucket["escalated"] += 1
        if _get(row, "priority") == "critical":
            bucket["critical"] += 1
    return [buckets[day] for day in sorted(buckets)]


def _team_performance(rows: list, profiles: Iterable) -> list[dict]:
    team = []
    for profile in profiles:
        user_id = _get(profile, "user_id")
        assigned = [r for r in rows if _get(r, "assigned_to") == user_id]
        resolved = [r for r in rows if _get(r, "resolved_by") == user_id]
        team.append({
            "user_id": user_id,
            "name": _get(profile, "full_name"),
            "department": _get(profile, "department"),
            "total_assigned": len(assigned),
            "total_resolved": len(resolved),
            "avg_resolution_time": _get(profile, "avg_resolution_time"),
            "csat_score": _get(profile, "customer_satisfaction_avg") or 0,
            "current_load": _get(profile, "current_assigned_count") or 0,
            "max_load": _get(profile, "max_assigned_complaints") or DEFAULT_MAX_LOAD,
            "escalated_count": sum(1 for r in assigned if _get(r, "escalated")),
            "critical_handled": sum(1 for r in assigned if _get(r, "priority") == "critical"),
            "sla_breaches": sum(1 for r in assigned if breaches_sla(r, "resolved_at", "resolution_sla")),
        })
    team.sort(key=lambda entry: entry["total_resolved"], reverse=True)
    return team


def build_complaint_analytics(
    complaints: Iterable,
    profiles: Iterable,
    *,
    start: datetime,
    end: datetime,
    period_days: int,
) -> dict:
    """Aggregate a complaint window. complaints/profiles may be ORM rows or mappings."""
    rows = list(complaints)
    total = len(rows)
    resolved_count = sum(1 for r in rows if _is_resolved(r))

    with_resolution = [r for r in rows if _get(r, "created_at") and _get(r, "resolved_at")]
    with_first_response = [r for r in rows if _get(r, "created_at") and _get(r, "first_response_at")]
    with_assign_time = [r for r in rows if _get(r, "created_at") and _get(r, "assigned_at")]

    first_response_breaches = sum(1 for r in rows if breaches_sla(r, "first_response_at", "first_response_sla"))
    resolution_breaches = sum(1 for r in rows if breaches_sla(r, "resolved_at", "resolution_sla"))

    first_response_compliance = (
        int(round_half_up((len(with_first_response) - first_response_breaches) / len(with_first_response) * 100))
        if with_first_response else 100
    )
    resolution_compliance = (
        int(round_half_up((len(with_resolution) - resolution_breaches) / len(with_resolution) * 100))
        if with_resolution else 100
    )

    ratings = [_get(r, "customer_satisfaction_rating") for r in rows if _get(r, "customer_satisfaction_rating")]
    avg_csat = sum(ratings) / len(ratings) if ratings else 0.0
    csat_distribution = {str(k): 0 for k in range(1, 6)}
    for rating in ratings:
        if str(rating) in csat_distribution:
            csat_distribution[str(rating)] += 1

    escalated_count = sum(1 for r in rows if _get(r, "escalated"))
    product_related = sum(1 for r in rows if _get(r, "related_product_serial"))

    response_time_by_priority = {}
    for priority in PRIORITY_ORDER:
        bucket = [r for r in with_first_response if _get(r, "priority") == priority]
        if bucket:
            response_time_by_priority[priority] = round_half_up(_avg_hours(bucket, "first_response_at"), 1)

    assigned_count = sum(1 for r in rows if _get(r, "assigned_to"))

    return {
        "summary": {
            "total": total,
            "resolved": resolved_count,
            "pending": total - resolved_count,
            "resolution_rate": _percent(resolved_count, total),
            "avg_resolution_time": round_half_up(_avg_hours(with_resolution, "resolved_at"), 1),
            "avg_first_response_time": round_half_up(_avg_hours(with_first_response, "first_response_at"), 1),
            "avg_csat": round_half_up(avg_csat, 1),
            "escalated_count": escalated_count,
            "escalation_rate": _percent(escalated_count, total),
            "first_response_sla_compliance": first_response_compliance,
            "resolution_sla_compliance": resolution_compliance,
            "product_related_rate": _percent(product_related, total),
        },
        "distributions": {
            "status": _distribution(rows, "status"),
            "priority": _distribution(rows, "priority"),
            "department": _distribution(rows, "department", default="unassigned"),
            "type": _distribution(rows, "complaint_type"),
            "csat": csat_distribution,
        },
        "trends": _trends(rows),
        "team_performance": _team_performance(rows, profiles),
        "assignment_metrics": {
            "total_assigned": assigned_count,
            "total_unassigned": total - assigned_count,
            "avg_time_to_assign": round_half_up(_avg_hours(with_assign_time, "assigned_at"), 1),
        },
        "sla_metrics": {
            "first_response_breaches": first_response_breaches,
            "resolution_breaches": resolution_breaches,
            "first_response_compliance": first_response_compliance,
            "resolution_compliance": resolution_compliance,
        },
        "response_time_by_priority": response_time_by_priority,
        "top_problematic_products": _top_products(rows),
        "period": {
            "start": to_utc_z(start),
            "end": to_utc_z(end),
            "days": period_days,
        },
    }


def parse_period(value, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        days = int(str(value).strip())
    except ValueError:
        raise ValidationError("period must be a whole number of days")
    if days < 1 or days > MAX_PERIOD_DAYS:
        raise ValidationError(f"period must be between 1 and {MAX_PERIOD_DAYS}")
    return days


def complaint_analytics(period_days: int, *, now: datetime | None = None) -> dict:
    """Load complaints created in [now - period_days, now] plus active profiles, then aggregate."""
    end = now or utcnow()
    start = end - timedelta(days=period_days)

    complaints = (
        db.session.query(Complaint)
        .filter(Complaint.created_at >= start, Complaint.created_at <= end)
        .order_by(Complaint.created_at.asc(), Complaint.id.asc())
        .all()
    )
    profiles = db.session.query(StaffProfile).filter(StaffProfile.is_active.is_(True)).all()

    return build_complaint_analytics(complaints, profiles, start=start, end=end, period_days=period_days)
