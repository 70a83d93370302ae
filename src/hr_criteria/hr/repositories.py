"""
HR repositories expressed through the criteria builder.

Each repository is a thin mapping from a criteria object (or a handful
of arguments) to ``FilterField`` values and reusable predicates; the
builder validates, the store executes.  Repositories work against any
store exposing the HR entities under their table names, so the same
code runs over :class:`~hr_criteria.sqlalchemy.SQLAlchemyStore` and
:class:`~hr_criteria.store.InMemoryStore`.
"""

from __future__ import annotations

import logging
from datetime import date
from functools import cached_property
from typing import TYPE_CHECKING, Any, ClassVar

from ..exceptions import InvalidFilterError
from ..fields import FilterField
from ..hierarchy import descendants_of, walk_hierarchy
from ..pagination import PageRequest, SortSpec
from ..predicates import match_all, resolve_path
from ..sqlalchemy import SQLAlchemyStore
from .enums import DepartmentStatus, EmployeeStatus, LeaveStatus
from .models import HR_MODELS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime

    from sqlalchemy.orm import Session

    from ..builder import CriteriaQueryBuilder
    from ..hierarchy import HierarchyNode
    from ..pagination import PageResult
    from ..predicates import Predicate
    from ..schema import QueryTarget
    from .criteria import AuditLogFilter, EmployeeSearchCriteria, LeaveRequestFilter

logger = logging.getLogger("hr_criteria.hr")

ACTIVE_LEAVE_STATUSES: tuple[LeaveStatus, ...] = (
    LeaveStatus.PENDING,
    LeaveStatus.APPROVED,
)


def hr_store(
    session_factory: Callable[[], Session], **kwargs: Any
) -> SQLAlchemyStore:
    """SQLAlchemy store with every HR model registered."""
    store = SQLAlchemyStore(session_factory, **kwargs)
    store.register_all(*HR_MODELS)
    return store


class CriteriaRepository:
    """Base for repositories bound to one entity of the builder's store."""

    entity: ClassVar[str]
    default_sort: ClassVar[str] = ""

    def __init__(self, builder: CriteriaQueryBuilder) -> None:
        self._builder = builder

    @cached_property
    def target(self) -> QueryTarget:
        return self._builder.target(self.entity)

    def _page(self, page: PageRequest | None) -> PageRequest:
        page = page or PageRequest(0, self._builder.config.default_page_size)
        if not page.sort and self.default_sort:
            page = page.with_sort(SortSpec.parse(self.default_sort))
        return page

    def _all(
        self,
        fields: Iterable[FilterField] = (),
        *,
        extra: Predicate | None = None,
    ) -> list[Any]:
        return list(
            self._builder.stream(
                self.target,
                fields,
                extra=extra,
                sort=SortSpec.parse(self.default_sort),
            )
        )


# -- employees ---------------------------------------------------------------


EMPLOYEE_TEXT_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "email",
    "employee_id",
    "job_title",
    "phone",
)


def years_before(day: date, years: int) -> date:
    """*day* shifted back *years* years; 29 February falls back to the 28th."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def _elapsed_years_bounds(
    path: str,
    min_years: int | None,
    max_years: int | None,
    today: date,
) -> list[FilterField]:
    """
    Filters on a start date (birth, hire) so that the whole years elapsed
    until *today* fall within ``[min_years, max_years]``.
    """
    if min_years is not None and max_years is not None and min_years > max_years:
        raise InvalidFilterError(
            f"minimum {min_years} is greater than maximum {max_years}", path
        )
    earliest = None if max_years is None else years_before(today, max_years + 1)
    latest = None if min_years is None else years_before(today, min_years)
    return [
        FilterField.greater_than(path, earliest),
        FilterField.at_most(path, latest),
    ]


class EmployeeRepository(CriteriaRepository):
    entity = "employees"
    default_sort = "last_name"

    def search(
        self,
        criteria: EmployeeSearchCriteria,
        page: PageRequest | None = None,
        *,
        today: date | None = None,
        timeout: float | None = None,
    ) -> PageResult[Any]:
        """
        Page of employees matching every supplied criterion.

        *page* overrides the paging fields carried by *criteria*.
        """
        c = criteria
        today = today or date.today()
        fields = [
            FilterField.contains("first_name", c.first_name),
            FilterField.contains("last_name", c.last_name),
            FilterField.contains("email", c.email),
            FilterField.contains("employee_id", c.employee_id),
            FilterField.contains("job_title", c.job_title),
            FilterField.contains("phone", c.phone),
            FilterField.equals("gender", c.gender),
            FilterField.equals("status", c.status),
            FilterField.in_set("status", c.statuses),
            FilterField.equals("employment_type", c.employment_type),
            FilterField.equals("department_id", c.department_id),
            FilterField.contains("department.name", c.department_name),
            FilterField.equals("position_id", c.position_id),
            FilterField.contains("current_position.title", c.position_title),
            FilterField.equals("manager_id", c.manager_id),
            FilterField.between("salary", c.min_salary, c.max_salary),
            FilterField.between("hire_date", c.hire_date_from, c.hire_date_to),
            FilterField.between("birth_date", c.birth_date_from, c.birth_date_to),
            *_elapsed_years_bounds("birth_date", c.min_age, c.max_age, today),
            *_elapsed_years_bounds(
                "hire_date", c.min_years_of_service, c.max_years_of_service, today
            ),
            FilterField.contains("city", c.city),
            FilterField.contains("state", c.state),
            FilterField.contains("postal_code", c.postal_code),
            FilterField.contains("address", c.address),
        ]
        if c.has_manager is True:
            fields.append(FilterField.is_not_null("manager_id"))
        elif c.has_manager is False:
            fields.append(FilterField.is_null("manager_id"))

        extra = self._builder.text_search(
            self.target, EMPLOYEE_TEXT_FIELDS, c.global_search
        ) & self._full_name(c.full_name)
        return self._builder.search(
            self.target,
            fields,
            page or c.page_request(),
            extra=extra,
            timeout=timeout,
        )

    def _full_name(self, term: str | None) -> Predicate:
        # Every word must appear in the first or the last name
        predicate: Predicate = match_all()
        for word in (term or "").split():
            predicate = predicate & self._builder.text_search(
                self.target, ("first_name", "last_name"), word
            )
        return predicate

    def status_counts(self) -> dict[EmployeeStatus, int]:
        return {
            status: self._builder.count(
                self.target, [FilterField.equals("status", status)]
            )
            for status in EmployeeStatus
        }

    def count_hired_between(self, start: date, end: date) -> int:
        return self._builder.count(
            self.target, [FilterField.between("hire_date", start, end)]
        )

    def direct_reports(self, manager_id: int) -> list[Any]:
        return self._all([FilterField.equals("manager_id", manager_id)])


# -- audit log ---------------------------------------------------------------


class AuditLogRepository(CriteriaRepository):
    entity = "audit_logs"
    default_sort = "-timestamp"

    def find_with_filters(
        self,
        filters: AuditLogFilter,
        page: PageRequest | None = None,
        *,
        timeout: float | None = None,
    ) -> PageResult[Any]:
        """Newest first unless *page* carries its own sort."""
        f = filters
        fields = [
            FilterField.equals("user_id", f.user_id),
            FilterField.equals("username", f.username),
            FilterField.equals("action_type", f.action_type),
            FilterField.equals("entity_type", f.entity_type),
            FilterField.equals("entity_id", f.entity_id),
            FilterField.between("timestamp", f.start_date, f.end_date),
            FilterField.equals("ip_address", f.ip_address),
            FilterField.equals("success", f.success),
            FilterField.equals("security_event", f.security_event),
            FilterField.equals("http_method", f.http_method),
            FilterField.contains("description", f.description),
        ]
        return self._builder.search(
            self.target, fields, self._page(page), timeout=timeout
        )

    def recent_for_user(self, user_id: int, limit: int = 10) -> list[Any]:
        page = PageRequest(0, limit, SortSpec.parse(self.default_sort))
        return self._builder.search(
            self.target, [FilterField.equals("user_id", user_id)], page
        ).items

    def security_events(
        self,
        since: datetime | None = None,
        page: PageRequest | None = None,
    ) -> PageResult[Any]:
        fields = [
            FilterField.equals("security_event", True),
            FilterField.at_least("timestamp", since),
        ]
        return self._builder.search(self.target, fields, self._page(page))

    def count_failures(self, since: datetime | None = None) -> int:
        fields = [
            FilterField.equals("success", False),
            FilterField.at_least("timestamp", since),
        ]
        return self._builder.count(self.target, fields)


# -- leave requests ----------------------------------------------------------


class LeaveRequestRepository(CriteriaRepository):
    entity = "leave_requests"
    default_sort = "start_date"

    def find_overlapping(
        self,
        employee_id: int,
        start: date,
        end: date,
        statuses: Iterable[LeaveStatus] = ACTIVE_LEAVE_STATUSES,
        *,
        exclude_id: int | None = None,
    ) -> list[Any]:
        """
        Requests of *employee_id* in *statuses* whose dates intersect
        ``[start, end]``; *exclude_id* skips the request being edited.
        """
        fields = [
            FilterField.equals("employee_id", employee_id),
            FilterField.in_set("status", statuses),
            FilterField.not_equals("id", exclude_id),
        ]
        overlap = self._builder.overlaps(
            self.target, "start_date", "end_date", start, end
        )
        return self._all(fields, extra=overlap)

    def has_overlap(
        self,
        employee_id: int,
        start: date,
        end: date,
        statuses: Iterable[LeaveStatus] = ACTIVE_LEAVE_STATUSES,
    ) -> bool:
        fields = [
            FilterField.equals("employee_id", employee_id),
            FilterField.in_set("status", statuses),
        ]
        overlap = self._builder.overlaps(
            self.target, "start_date", "end_date", start, end
        )
        return self._builder.exists(self.target, fields, extra=overlap)

    def find_on_date(self, day: date) -> list[Any]:
        """Approved leave covering *day*, e.g. to reconcile a holiday."""
        covering = self._builder.covers(self.target, "start_date", "end_date", day)
        return self._all(
            [FilterField.equals("status", LeaveStatus.APPROVED)], extra=covering
        )

    def search(
        self,
        filters: LeaveRequestFilter,
        page: PageRequest | None = None,
    ) -> PageResult[Any]:
        """
        ``start_date`` / ``end_date`` select requests intersecting that
        window; either bound alone leaves the window open on that side.
        """
        f = filters
        fields = [
            FilterField.equals("employee_id", f.employee_id),
            FilterField.in_set("status", f.statuses),
            FilterField.equals("leave_type", f.leave_type),
            FilterField.equals("approved_by_id", f.approved_by_id),
        ]
        if f.start_date is not None and f.end_date is not None:
            window = self._builder.overlaps(
                self.target, "start_date", "end_date", f.start_date, f.end_date
            )
        else:
            window = match_all()
            fields += [
                FilterField.at_least("end_date", f.start_date),
                FilterField.at_most("start_date", f.end_date),
            ]
        return self._builder.search(
            self.target, fields, self._page(page), extra=window
        )


# -- attendance --------------------------------------------------------------


class TimeAttendanceRepository(CriteriaRepository):
    entity = "time_attendance"
    default_sort = "-work_date"

    def find_by_employee(
        self,
        employee_id: int,
        start: date | None = None,
        end: date | None = None,
        page: PageRequest | None = None,
    ) -> PageResult[Any]:
        fields = [
            FilterField.equals("employee_id", employee_id),
            FilterField.between("work_date", start, end),
        ]
        return self._builder.search(self.target, fields, self._page(page))

    def late_arrivals(self, day: date) -> list[Any]:
        return self._all(
            [
                FilterField.equals("work_date", day),
                FilterField.greater_than("late_minutes", 0),
            ]
        )


class AttendanceBreakRepository(CriteriaRepository):
    entity = "attendance_breaks"
    default_sort = "start_time"

    def find_overlapping(
        self,
        attendance_id: int,
        start: datetime,
        end: datetime,
    ) -> list[Any]:
        """
        Breaks of one attendance record intersecting ``[start, end]``.

        A break still in progress (no ``end_time``) overlaps anything
        that ends after it started.
        """
        closed = self._builder.overlaps(
            self.target, "start_time", "end_time", start, end
        )
        ongoing = self._builder.build_filter(
            self.target,
            [
                FilterField.at_most("start_time", end),
                FilterField.is_null("end_time"),
            ],
        )
        return self._all(
            [FilterField.equals("time_attendance_id", attendance_id)],
            extra=closed | ongoing,
        )

    def is_employee_on_break(self, employee_id: int) -> bool:
        return self._builder.exists(
            self.target,
            [
                FilterField.equals("time_attendance.employee_id", employee_id),
                FilterField.is_null("end_time"),
            ],
        )


# -- departments -------------------------------------------------------------


def _department_id(row: Any) -> Any:
    return resolve_path(row, "id")


def _parent_department_id(row: Any) -> Any:
    return resolve_path(row, "parent_department_id")


def _department_name(row: Any) -> str:
    return str(resolve_path(row, "name") or "")


class DepartmentRepository(CriteriaRepository):
    entity = "departments"
    default_sort = "name"

    def search(
        self,
        *,
        name: str | None = None,
        status: DepartmentStatus | None = None,
        parent_id: int | None = None,
        page: PageRequest | None = None,
    ) -> PageResult[Any]:
        fields = [
            FilterField.contains("name", name),
            FilterField.equals("status", status),
            FilterField.equals("parent_department_id", parent_id),
        ]
        return self._builder.search(self.target, fields, self._page(page))

    def roots(self) -> list[Any]:
        return self._all([FilterField.is_null("parent_department_id")])

    def hierarchy(self) -> list[HierarchyNode[Any]]:
        """Every department ordered by depth, then name within a level."""
        nodes = walk_hierarchy(
            self._all(),
            _department_id,
            _parent_department_id,
            sort_key=_department_name,
            max_depth=self._builder.config.max_hierarchy_depth,
        )
        logger.debug("Walked %d departments", len(nodes))
        return nodes

    def subtree(
        self,
        department_id: int,
        *,
        include_root: bool = True,
    ) -> list[HierarchyNode[Any]]:
        return descendants_of(
            self._all(),
            department_id,
            _department_id,
            _parent_department_id,
            include_root=include_root,
            max_depth=self._builder.config.max_hierarchy_depth,
        )
