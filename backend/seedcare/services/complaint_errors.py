# Overview: Error taxonomy for complaint operations; routes map these onto HTTP status codes.

from __future__ import annotations

from seedcare.validation import ConflictError, NotFoundError, ValidationError


class ComplaintNotFoundError(NotFoundError):
    def __init__(self, complaint_id):
        super().__init__(f"Complaint {complaint_id} not found")
        self.complaint_id = complaint_id


class InvalidStatusError(ValidationError):
    def __init__(self, status):
        super().__init__(f"Invalid status value: {status}")
        self.status = status


class AlreadyResolvedError(ConflictError):
    def __init__(self, complaint_id, status: str):
        super().__init__(f"Complaint {complaint_id} is already {status}")
        self.complaint_id = complaint_id
        self.status = status


class AlreadyAssignedError(ConflictError):
    def __init__(self, complaint_id, assigned_to: int):
        super().__init__(f"Complaint {complaint_id} is already assigned")
        self.complaint_id = complaint_id
        self.assigned_to = assigned_to


class TargetNotEligibleError(ValidationError):
    """Assignment target has no profile, is inactive, or has no free capacity."""

    def __init__(self, user_id, reason: str):
        super().__init__(f"Staff {user_id} is not eligible for assignment: {reason}")
        self.user_id = user_id
        self.reason = reason


NO_ACTIVE_STAFF = "no_active_staff"
ALL_AT_CAPACITY = "all_at_capacity"


class NoEligibleStaffError(ConflictError):
    """
    Auto-assignment found nobody.

    reason is NO_ACTIVE_STAFF (hire/activate someone in the department) or
    ALL_AT_CAPACITY (raise limits or wait for resolutions).
    """

    def __init__(self, department: str, reason: str):
        if reason == NO_ACTIVE_STAFF:
            message = f"No active staff in department {department}"
        else:
            message = f"All staff in department {department} are at maximum capacity"
        super().__init__(message)
        self.department = department
        self.reason = reason

    def to_dict(self) -> dict:
        return {"error": str(self), "department": self.department, "reason": self.reason}


class CreationFailedError(RuntimeError):
    """Complaint number allocation exhausted its retry budget."""

    def __init__(self, attempts: int):
        super().__init__(f"Failed to allocate a unique complaint number after {attempts} attempts")
        self.attempts = attempts
