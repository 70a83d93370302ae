"""
HR entities searched through the criteria builder: typed enums, table
models, pydantic search criteria and the repositories tying them together.
"""

from .criteria import AuditLogFilter, EmployeeSearchCriteria, LeaveRequestFilter
from .enums import (
    AttendanceStatus,
    AuditAction,
    BreakType,
    DepartmentStatus,
    EmployeeStatus,
    EmploymentType,
    LeaveStatus,
    PositionStatus,
)
from .models import (
    HR_MODELS,
    AttendanceBreakModel,
    AuditLogModel,
    Base,
    DepartmentModel,
    EmployeeModel,
    LeaveRequestModel,
    PositionModel,
    TimeAttendanceModel,
)
from .repositories import (
    ACTIVE_LEAVE_STATUSES,
    AttendanceBreakRepository,
    AuditLogRepository,
    CriteriaRepository,
    DepartmentRepository,
    EmployeeRepository,
    LeaveRequestRepository,
    TimeAttendanceRepository,
    hr_store,
)

__all__ = [
    # Enums
    "AttendanceStatus",
    "AuditAction",
    "BreakType",
    "DepartmentStatus",
    "EmployeeStatus",
    "EmploymentType",
    "LeaveStatus",
    "PositionStatus",
    # Models
    "Base",
    "HR_MODELS",
    "DepartmentModel",
    "PositionModel",
    "EmployeeModel",
    "TimeAttendanceModel",
    "AttendanceBreakModel",
    "LeaveRequestModel",
    "AuditLogModel",
    # Criteria
    "EmployeeSearchCriteria",
    "AuditLogFilter",
    "LeaveRequestFilter",
    # Repositories
    "CriteriaRepository",
    "EmployeeRepository",
    "AuditLogRepository",
    "LeaveRequestRepository",
    "TimeAttendanceRepository",
    "AttendanceBreakRepository",
    "DepartmentRepository",
    "ACTIVE_LEAVE_STATUSES",
    "hr_store",
]
