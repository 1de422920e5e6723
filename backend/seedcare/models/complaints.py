from __future__ import annotations

from typing import Literal

from ..extensions import db
from seedcare.time_utils import to_utc_z, utcnow


ComplaintStatus = Literal[
    "submitted",
    "acknowledged",
    "observation",
    "investigation",
    "decision",
    "pending_response",
    "resolved",
    "closed",
]

COMPLAINT_STATUSES = (
    "submitted",
    "acknowledged",
    "observation",
    "investigation",
    "decision",
    "pending_response",
    "resolved",
    "closed",
)
TERMINAL_STATUSES = {"resolved", "closed"}
OPEN_STATUSES = {"submitted", "acknowledged", "observation", "investigation", "decision"}

DEFAULT_DEPARTMENT = "customer_service"


class Complaint(db.Model):
    """
    One customer complaint and its mutable lifecycle fields.

    complaint_number is written once at creation (CMP-YYYYMMDD-NNNN) and is
    unique at the store; services never reassign it.
    assigned_by NULL means the owner was chosen by auto-assignment.
    """
    __tablename__ = "complaints"
    __table_args__ = (
        db.Index("ix_complaints_status_created", "status", "created_at"),
        db.Index("ix_complaints_department", "department"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    complaint_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    # Classification
    complaint_category_id = db.Column(db.Integer, nullable=True)
    complaint_category_name = db.Column(db.String(255), nullable=True)
    complaint_subcategory_id = db.Column(db.Integer, nullable=True)
    complaint_subcategory_name = db.Column(db.String(255), nullable=True)
    complaint_case_type_ids = db.Column(db.JSON, nullable=False, default=list)
    complaint_case_type_names = db.Column(db.JSON, nullable=False, default=list)
    complaint_type = db.Column(db.String(64), nullable=False, default="other")

    subject = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    # Customer facts (immutable after creation)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_province = db.Column(db.String(128), nullable=False)
    customer_city = db.Column(db.String(128), nullable=False)
    customer_address = db.Column(db.Text, nullable=False)

    # Workflow
    status = db.Column(db.String(32), nullable=False, default="submitted", index=True)
    priority = db.Column(db.String(16), nullable=False, default="medium")
    department = db.Column(db.String(64), nullable=True, default=DEFAULT_DEPARTMENT)
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    first_response_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    escalated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # SLA targets as "HH:MM:SS"
    first_response_sla = db.Column(db.String(16), nullable=True)
    resolution_sla = db.Column(db.String(16), nullable=True)

    # Resolution
    resolution = db.Column(db.Text, nullable=True)
    resolution_summary = db.Column(db.Text, nullable=True)
    resolved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Customer feedback
    customer_satisfaction_rating = db.Column(db.Integer, nullable=True)
    customer_feedback = db.Column(db.Text, nullable=True)
    feedback_quick_answers = db.Column(db.JSON, nullable=True)
    feedback_submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Acknowledgment
    acknowledged_replacement_qty = db.Column(db.Integer, nullable=True)
    acknowledged_replacement_hybrid = db.Column(db.String(255), nullable=True)

    # Escalation
    escalated = db.Column(db.Boolean, nullable=False, default=False)
    escalated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Product linkage
    related_product_serial = db.Column(db.String(128), nullable=True)
    related_product_name = db.Column(db.String(255), nullable=True)

    assignments = db.relationship(
        "ComplaintAssignment",
        back_populates="complaint",
        lazy=True,
        order_by="ComplaintAssignment.id",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "complaint_number": self.complaint_number,
            "complaint_category_id": self.complaint_category_id,
            "complaint_category_name": self.complaint_category_name,
            "complaint_subcategory_id": self.complaint_subcategory_id,
            "complaint_subcategory_name": self.complaint_subcategory_name,
            "complaint_case_type_ids": list(self.complaint_case_type_ids or []),
            "complaint_case_type_names": list(self.complaint_case_type_names or []),
            "complaint_type": self.complaint_type,
            "subject": self.subject,
            "description": self.description,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "customer_province": self.customer_province,
            "customer_city": self.customer_city,
            "customer_address": self.customer_address,
            "status": self.status,
            "priority": self.priority,
            "department": self.department,
            "assigned_to": self.assigned_to,
            "assigned_at": to_utc_z(self.assigned_at),
            "assigned_by": self.assigned_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "first_response_at": to_utc_z(self.first_response_at),
            "resolved_at": to_utc_z(self.resolved_at),
            "escalated_at": to_utc_z(self.escalated_at),
            "first_response_sla": self.first_response_sla,
            "resolution_sla": self.resolution_sla,
            "resolution": self.resolution,
            "resolution_summary": self.resolution_summary,
            "resolved_by": self.resolved_by,
            "customer_satisfaction_rating": self.customer_satisfaction_rating,
            "customer_feedback": self.customer_feedback,
            "feedback_quick_answers": self.feedback_quick_answers,
            "feedback_submitted_at": to_utc_z(self.feedback_submitted_at),
            "acknowledged_replacement_qty": self.acknowledged_replacement_qty,
            "acknowledged_replacement_hybrid": self.acknowledged_replacement_hybrid,
            "escalated": self.escalated,
            "related_product_serial": self.related_product_serial,
            "related_product_name": self.related_product_name,
        }

    def to_list_dict(self) -> dict:
        return {
            "id": self.id,
            "complaint_number": self.complaint_number,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_province": self.customer_province,
            "customer_city": self.customer_city,
            "complaint_type": self.complaint_type,
            "subject": self.subject,
            "status": self.status,
            "priority": self.priority,
            "department": self.department,
            "assigned_to": self.assigned_to,
            "created_at": to_utc_z(self.created_at),
            "resolved_at": to_utc_z(self.resolved_at),
        }


class ComplaintAssignment(db.Model):
    """
    Append-only assignment history.

    At most one row per complaint has is_active=True. Rows are deactivated,
    never deleted; the workload hooks in models/workload.py watch is_active.
    """
    __tablename__ = "complaint_assignments"
    __table_args__ = (
        db.Index("ix_complaint_assignments_active", "complaint_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    complaint_id = db.Column(db.Integer, db.ForeignKey("complaints.id"), nullable=False, index=True)
    assigned_to = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    assignment_reason = db.Column(db.Text, nullable=True)
    previous_assignee = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    unassigned_at = db.Column(db.DateTime(timezone=True), nullable=True)
    unassigned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    complaint = db.relationship("Complaint", back_populates="assignments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "complaint_id": self.complaint_id,
            "assigned_to": self.assigned_to,
            "assigned_by": self.assigned_by,
            "assignment_reason": self.assignment_reason,
            "previous_assignee": self.previous_assignee,
            "is_active": self.is_active,
            "assigned_at": to_utc_z(self.assigned_at),
            "unassigned_at": to_utc_z(self.unassigned_at),
            "unassigned_by": self.unassigned_by,
        }


class ComplaintHistory(db.Model):
    """Append-only audit log of complaint mutations."""
    __tablename__ = "complaint_history"
    __table_args__ = (
        db.Index("ix_complaint_history_complaint_created", "complaint_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    complaint_id = db.Column(db.Integer, db.ForeignKey("complaints.id"), nullable=False)

    # status_changed | acknowledged_with_replacement | assigned | auto_assigned |
    # response_added | internal_note_added | escalated | resolved | feedback_submitted
    action = db.Column(db.String(64), nullable=False)
    old_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "complaint_id": self.complaint_id,
            "action": self.action,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class ComplaintResponse(db.Model):
    """Staff replies and internal notes. Internal rows are never shown to customers."""
    __tablename__ = "complaint_responses"
    __table_args__ = (
        db.Index("ix_complaint_responses_complaint", "complaint_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    complaint_id = db.Column(db.Integer, db.ForeignKey("complaints.id"), nullable=False)
    message = db.Column(db.Text, nullable=False)
    response_type = db.Column(db.String(32), nullable=False, default="reply")
    is_internal = db.Column(db.Boolean, nullable=False, default=False)
    admin_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    admin_name = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "complaint_id": self.complaint_id,
            "message": self.message,
            "response_type": self.response_type,
            "is_internal": self.is_internal,
            "admin_id": self.admin_id,
            "admin_name": self.admin_name,
            "created_at": to_utc_z(self.created_at),
        }
