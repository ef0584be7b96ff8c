"""SQLAlchemy ORM models for contractor schedules, services, and the appointment ledger."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booking_engine.db.base import Base
from booking_engine.db.enums import (
    DEFAULT_APPOINTMENT_STATUS,
    BufferMode,
    PaymentStatus,
    RefundMode,
)
from booking_engine.db.types import utcnow


# =============================================================================
# Schedule Configuration
# =============================================================================

class ContractorSchedule(Base):
    """
    A contractor's scheduling configuration (one per contractor).

    Holds booking-window rules, deposit settings, and the cancellation policy.
    The weekly template, recurring windows, blackout dates and service catalog
    hang off this row. `version` increments on every update.
    """

    __tablename__ = "contractor_schedules"
    __table_args__ = (
        UniqueConstraint("contractor_id", name="uq_contractor_schedule"),
        CheckConstraint("buffer_minutes >= 0", name="ck_schedule_buffer"),
        CheckConstraint(
            "deposit_percentage >= 0 AND deposit_percentage <= 100",
            name="ck_schedule_deposit_pct",
        ),
        CheckConstraint(
            "partial_refund_percentage >= 0 AND partial_refund_percentage <= 100",
            name="ck_schedule_refund_pct",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contractor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), nullable=False)

    # Booking window
    buffer_minutes: Mapped[int] = mapped_column(Integer, default=15, nullable=False)
    buffer_mode: Mapped[str] = mapped_column(
        String(20), default=BufferMode.SYMMETRIC.value, nullable=False
    )
    advance_booking_days: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    minimum_notice_hours: Mapped[int] = mapped_column(Integer, default=24, nullable=False)
    is_accepting_bookings: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    auto_confirm_bookings: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Deposits
    requires_deposit: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    deposit_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("25.00"), nullable=False
    )

    # Cancellation policy
    allow_cancellation: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    cancellation_deadline_hours: Mapped[int] = mapped_column(Integer, default=24, nullable=False)
    refund_mode: Mapped[str] = mapped_column(
        String(20), default=RefundMode.PARTIAL.value, nullable=False
    )
    partial_refund_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), default=Decimal("50.00"), nullable=False
    )

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    working_hours: Mapped[list[WorkingHours]] = relationship(
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="WorkingHours.day_of_week",
    )
    recurring_windows: Mapped[list[RecurringUnavailableWindow]] = relationship(
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="RecurringUnavailableWindow.day_of_week",
    )
    blackout_dates: Mapped[list[BlackoutDate]] = relationship(
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="BlackoutDate.blackout_date",
    )
    services: Mapped[list[ScheduleService]] = relationship(back_populates="schedule")


class WorkingHours(Base):
    """Weekly working-hours window for one weekday (Monday=0)."""

    __tablename__ = "working_hours"
    __table_args__ = (
        UniqueConstraint("schedule_id", "day_of_week", name="uq_working_hours_day"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_working_hours_dow"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contractor_schedules.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    schedule: Mapped[ContractorSchedule] = relationship(back_populates="working_hours")


class RecurringUnavailableWindow(Base):
    """Weekly-recurring unavailable range, e.g. a lunch block."""

    __tablename__ = "recurring_unavailable_windows"
    __table_args__ = (
        Index("idx_recurring_windows_schedule", "schedule_id", "day_of_week"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_recurring_dow"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contractor_schedules.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    label: Mapped[str | None] = mapped_column(String(100), nullable=True)

    schedule: Mapped[ContractorSchedule] = relationship(back_populates="recurring_windows")


class BlackoutDate(Base):
    """Whole calendar day removed from availability."""

    __tablename__ = "blackout_dates"
    __table_args__ = (
        UniqueConstraint("schedule_id", "blackout_date", name="uq_blackout_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contractor_schedules.id", ondelete="CASCADE"), nullable=False
    )
    blackout_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    schedule: Mapped[ContractorSchedule] = relationship(back_populates="blackout_dates")


# =============================================================================
# Service Catalog
# =============================================================================

class ScheduleService(Base):
    """
    Bookable service definition.

    Timing and deposit fields are frozen once an appointment references the
    service; soft-deleted through `is_active`.
    """

    __tablename__ = "schedule_services"
    __table_args__ = (
        Index("idx_schedule_services_contractor", "contractor_id", "is_active"),
        CheckConstraint("duration_minutes > 0", name="ck_service_duration"),
        CheckConstraint(
            "preparation_minutes >= 0 AND cleanup_minutes >= 0", name="ck_service_prep_cleanup"
        ),
        CheckConstraint("price >= 0", name="ck_service_price"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contractor_schedules.id", ondelete="CASCADE"), nullable=False
    )
    contractor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)

    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    preparation_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cleanup_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False)

    # None = follow the schedule's requires_deposit
    deposit_required: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    # Fixed deposit; None = schedule percentage of price
    deposit_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    schedule: Mapped[ContractorSchedule] = relationship(back_populates="services")

    @property
    def block_minutes(self) -> int:
        return self.preparation_minutes + self.duration_minutes + self.cleanup_minutes


# =============================================================================
# Appointment Ledger
# =============================================================================

class Appointment(Base):
    """
    Booked appointment.

    Lifecycle: requested → confirmed → completed/cancelled/no_show
    scheduled_end and the buffer snapshot are frozen at booking time. Rows are
    never deleted; transitions are recorded in appointment_status_changes.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_contractor_start", "contractor_id", "scheduled_start"),
        Index("idx_appointments_contractor_status", "contractor_id", "status"),
        Index("idx_appointments_service", "service_id"),
        Index("idx_appointments_client", "client_id"),
        CheckConstraint("scheduled_end > scheduled_start", name="ck_appointment_span"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contractor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    schedule_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contractor_schedules.id", ondelete="RESTRICT"), nullable=False
    )
    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("schedule_services.id", ondelete="RESTRICT"), nullable=False
    )
    client_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    # Client contact record (caller supplied)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[str] = mapped_column(String(320), nullable=False)
    client_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    client_address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    client_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Scheduling (stored in UTC)
    scheduled_start: Mapped[datetime] = mapped_column(nullable=False)
    scheduled_end: Mapped[datetime] = mapped_column(nullable=False)
    block_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    buffer_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    buffer_mode: Mapped[str] = mapped_column(
        String(20), default=BufferMode.SYMMETRIC.value, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_APPOINTMENT_STATUS.value, nullable=False
    )

    # Money (decisions only; capture/settlement is external)
    total_price: Mapped[Decimal] = mapped_column(nullable=False)
    deposit_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deposit_amount: Mapped[Decimal] = mapped_column(default=Decimal("0.00"), nullable=False)
    deposit_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(default=Decimal("0.00"), nullable=False)
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.NOT_REQUIRED.value, nullable=False
    )
    payment_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Lifecycle
    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    refund_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    refund_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    service: Mapped[ScheduleService] = relationship()
    status_changes: Mapped[list[AppointmentStatusChange]] = relationship(
        back_populates="appointment",
        order_by="AppointmentStatusChange.changed_at",
    )


class AppointmentStatusChange(Base):
    """Append-only history of appointment status transitions."""

    __tablename__ = "appointment_status_changes"
    __table_args__ = (
        Index("idx_status_changes_appointment", "appointment_id", "changed_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False
    )
    from_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    appointment: Mapped[Appointment] = relationship(back_populates="status_changes")
