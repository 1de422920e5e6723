# Overview: Model registry; importing this package registers every table and the workload hooks.

from .auth import User, SessionToken
from .staff import StaffProfile, COMPLAINT_PERMISSION_KEYS
from .complaints import (
    Complaint,
    ComplaintAssignment,
    ComplaintHistory,
    ComplaintResponse,
    COMPLAINT_STATUSES,
    TERMINAL_STATUSES,
    OPEN_STATUSES,
    DEFAULT_DEPARTMENT,
)
from .findings import ComplaintObservation, ComplaintInvestigation, ComplaintLabTesting, GERMINATION_CRITERIA
from .settings import ComplaintSetting
from . import workload  # noqa: F401

__all__ = [
    "User",
    "SessionToken",
    "StaffProfile",
    "COMPLAINT_PERMISSION_KEYS",
    "Complaint",
    "ComplaintAssignment",
    "ComplaintHistory",
    "ComplaintResponse",
    "COMPLAINT_STATUSES",
    "TERMINAL_STATUSES",
    "OPEN_STATUSES",
    "DEFAULT_DEPARTMENT",
    "ComplaintObservation",
    "ComplaintInvestigation",
    "ComplaintLabTesting",
    "GERMINATION_CRITERIA",
    "ComplaintSetting",
]
