from __future__ import annotations

from ..extensions import db
from seedcare.time_utils import to_utc_z, utcnow


COMPLAINT_PERMISSION_KEYS = (
    "canViewComplaints",
    "canRespondToComplaints",
    "canAssignComplaints",
    "canManageComplaintUsers",
    "canViewComplaintAnalytics",
    "canExportComplaintData",
    "canConfigureComplaintSystem",
)


class StaffProfile(db.Model):
    """
    Complaint-handling profile for a staff user (one per user).

    current_assigned_count is store-maintained: it moves only through the
    assignment hooks in models/workload.py, never through service code.
    avg_resolution_time (hours) and customer_satisfaction_avg are running
    aggregates updated by record_resolution_metrics().
    """
    __tablename__ = "user_complaint_profiles"
    __table_args__ = (
        db.Index("ix_complaint_profiles_dept_active", "department", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)

    full_name = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(64), nullable=False, default="customer_service", index=True)

    # {"canAssignComplaints": true, ...}
    complaint_permissions = db.Column(db.JSON, nullable=False, default=dict)

    max_assigned_complaints = db.Column(db.Integer, nullable=False, default=10)
    current_assigned_count = db.Column(db.Integer, nullable=False, default=0)

    customer_satisfaction_avg = db.Column(db.Float, nullable=True)
    avg_resolution_time = db.Column(db.Float, nullable=True)
    total_resolved = db.Column(db.Integer, nullable=False, default=0)
    rated_resolutions = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("complaint_profile", uselist=False, lazy=True))

    def has_permission(self, key: str) -> bool:
        return bool((self.complaint_permissions or {}).get(key))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "full_name": self.full_name,
            "department": self.department,
            "complaint_permissions": dict(self.complaint_permissions or {}),
            "max_assigned_complaints": self.max_assigned_complaints,
            "current_assigned_count": self.current_assigned_count,
            "customer_satisfaction_avg": self.customer_satisfaction_avg,
            "avg_resolution_time": self.avg_resolution_time,
            "total_resolved": self.total_resolved,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
