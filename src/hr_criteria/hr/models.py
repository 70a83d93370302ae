"""
SQLAlchemy table models for the searchable HR entities.

Relationships are many-to-one references over explicit foreign-key
columns, plus the attendance → breaks collection used for ``any()``
filters.  Every relationship is ``lazy="raise"``: related rows are only
reached through filter/sort paths compiled into the query, never by
attribute access after the fact.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

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


class Base(DeclarativeBase):
    pass


def _enum(enum_cls: type) -> Enum:
    return Enum(enum_cls, native_enum=False, length=32)


class DepartmentModel(Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    department_code: Mapped[str] = mapped_column(String(20), unique=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    budget: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    status: Mapped[DepartmentStatus] = mapped_column(
        _enum(DepartmentStatus), default=DepartmentStatus.ACTIVE
    )
    parent_department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id"), nullable=True, index=True
    )
    # Plain id: employees reference departments, not the other way round
    manager_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cost_center: Mapped[str | None] = mapped_column(String(50), nullable=True)

    parent_department: Mapped[DepartmentModel | None] = relationship(
        remote_side="DepartmentModel.id", lazy="raise"
    )


class PositionModel(Base):
    __tablename__ = "positions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[PositionStatus] = mapped_column(
        _enum(PositionStatus), default=PositionStatus.ACTIVE
    )
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id"), nullable=True
    )
    min_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    max_salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    department: Mapped[DepartmentModel | None] = relationship(lazy="raise")


class EmployeeModel(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[str] = mapped_column(String(20), unique=True)
    first_name: Mapped[str] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(50), index=True)
    email: Mapped[str] = mapped_column(String(100), unique=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    address: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(50), nullable=True)
    state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    department_id: Mapped[int | None] = mapped_column(
        ForeignKey("departments.id"), nullable=True, index=True
    )
    position_id: Mapped[int | None] = mapped_column(
        ForeignKey("positions.id"), nullable=True
    )
    manager_id: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id"), nullable=True
    )
    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    employment_type: Mapped[EmploymentType | None] = mapped_column(
        _enum(EmploymentType), nullable=True
    )
    status: Mapped[EmployeeStatus] = mapped_column(
        _enum(EmployeeStatus), default=EmployeeStatus.ACTIVE, index=True
    )

    department: Mapped[DepartmentModel | None] = relationship(lazy="raise")
    current_position: Mapped[PositionModel | None] = relationship(lazy="raise")
    manager: Mapped[EmployeeModel | None] = relationship(
        remote_side="EmployeeModel.id", lazy="raise"
    )


class TimeAttendanceModel(Base):
    __tablename__ = "time_attendance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id"), index=True)
    work_date: Mapped[date] = mapped_column(Date, index=True)
    clock_in_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    clock_out_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    attendance_status: Mapped[AttendanceStatus] = mapped_column(
        _enum(AttendanceStatus), default=AttendanceStatus.ABSENT
    )
    total_hours_worked: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2), nullable=True
    )
    late_minutes: Mapped[int] = mapped_column(Integer, default=0)
    work_location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_remote_work: Mapped[bool] = mapped_column(Boolean, default=False)

    employee: Mapped[EmployeeModel] = relationship(lazy="raise")
    breaks: Mapped[list[AttendanceBreakModel]] = relationship(
        back_populates="time_attendance", lazy="raise"
    )


class AttendanceBreakModel(Base):
    __tablename__ = "attendance_breaks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    time_attendance_id: Mapped[int] = mapped_column(
        ForeignKey("time_attendance.id"), index=True
    )
    break_type: Mapped[BreakType] = mapped_column(_enum(BreakType))
    start_time: Mapped[datetime] = mapped_column(DateTime)
    end_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    time_attendance: Mapped[TimeAttendanceModel] = relationship(
        back_populates="breaks", lazy="raise"
    )


class LeaveRequestModel(Base):
    __tablename__ = "leave_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id"), index=True)
    leave_type: Mapped[str] = mapped_column(String(50))
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    total_days: Mapped[float | None] = mapped_column(Float, nullable=True)
    reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[LeaveStatus] = mapped_column(
        _enum(LeaveStatus), default=LeaveStatus.PENDING, index=True
    )
    approved_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("employees.id"), nullable=True
    )
    applied_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    employee: Mapped[EmployeeModel] = relationship(
        foreign_keys=[employee_id], lazy="raise"
    )
    approved_by: Mapped[EmployeeModel | None] = relationship(
        foreign_keys=[approved_by_id], lazy="raise"
    )


class AuditLogModel(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    username: Mapped[str | None] = mapped_column(String(100), nullable=True)
    action_type: Mapped[AuditAction] = mapped_column(_enum(AuditAction))
    entity_type: Mapped[str] = mapped_column(String(50), index=True)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, index=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    request_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    http_method: Mapped[str | None] = mapped_column(String(10), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, default=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    security_event: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)


HR_MODELS: tuple[type[Base], ...] = (
    DepartmentModel,
    PositionModel,
    EmployeeModel,
    TimeAttendanceModel,
    AttendanceBreakModel,
    LeaveRequestModel,
    AuditLogModel,
)
