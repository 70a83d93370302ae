"""Typed status and category enums for the HR entities."""

from __future__ import annotations

from enum import Enum


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TERMINATED = "TERMINATED"
    ON_LEAVE = "ON_LEAVE"


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    INTERN = "INTERN"


class DepartmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    UNDER_REVIEW = "UNDER_REVIEW"
    MERGED = "MERGED"
    DISSOLVED = "DISSOLVED"


class PositionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    FROZEN = "FROZEN"
    OBSOLETE = "OBSOLETE"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    LEFT_EARLY = "LEFT_EARLY"
    SICK = "SICK"
    ON_LEAVE = "ON_LEAVE"
    HOLIDAY = "HOLIDAY"


class BreakType(str, Enum):
    LUNCH_BREAK = "LUNCH_BREAK"
    COFFEE_BREAK = "COFFEE_BREAK"
    PERSONAL_BREAK = "PERSONAL_BREAK"
    MEETING_BREAK = "MEETING_BREAK"


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AuditAction(str, Enum):
    """Audit log action types."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    ACCESS = "ACCESS"
