"""
Search criteria accepted by the HR repositories.

Every criterion is optional; ``None`` means "do not filter on this".
Criteria objects are immutable pydantic models so they can be parsed
straight from request bodies or query parameters.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..pagination import PageRequest, SortDirection, SortOrder, SortSpec
from .enums import AuditAction, EmployeeStatus, EmploymentType, LeaveStatus


class _Criteria(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class EmployeeSearchCriteria(_Criteria):
    """Employee search form; text fields match case-insensitive substrings."""

    # Basic search fields
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    email: str | None = None
    employee_id: str | None = None
    job_title: str | None = None
    phone: str | None = None
    gender: str | None = None

    # Status and employment
    status: EmployeeStatus | None = None
    statuses: list[EmployeeStatus] | None = None
    employment_type: EmploymentType | None = None

    # Department and position
    department_id: int | None = None
    department_name: str | None = None
    position_id: int | None = None
    position_title: str | None = None

    # Manager relationships
    manager_id: int | None = None
    has_manager: bool | None = None

    # Ranges
    min_salary: Decimal | None = None
    max_salary: Decimal | None = None
    hire_date_from: date | None = None
    hire_date_to: date | None = None
    birth_date_from: date | None = None
    birth_date_to: date | None = None
    min_age: int | None = Field(default=None, ge=0)
    max_age: int | None = Field(default=None, ge=0)
    min_years_of_service: int | None = Field(default=None, ge=0)
    max_years_of_service: int | None = Field(default=None, ge=0)

    # Location
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    address: str | None = None

    global_search: str | None = None

    # Pagination and sorting
    page: int = 0
    size: int = 20
    sort_by: str = "last_name"
    sort_direction: Literal["asc", "desc"] = "asc"

    def page_request(self) -> PageRequest:
        order = SortOrder(self.sort_by, SortDirection(self.sort_direction))
        return PageRequest(self.page, self.size, SortSpec((order,)))


class AuditLogFilter(_Criteria):
    """Optional audit log filters; the date bounds are inclusive."""

    user_id: int | None = None
    username: str | None = None
    action_type: AuditAction | None = None
    entity_type: str | None = None
    entity_id: int | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    ip_address: str | None = None
    success: bool | None = None
    security_event: bool | None = None
    http_method: str | None = None
    description: str | None = None


class LeaveRequestFilter(_Criteria):
    employee_id: int | None = None
    statuses: list[LeaveStatus] | None = None
    leave_type: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    approved_by_id: int | None = None
