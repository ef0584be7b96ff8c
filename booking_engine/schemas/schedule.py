"""Schedule schemas - Pydantic models for schedule configuration and services."""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from booking_engine.db.enums import BufferMode, RefundMode

HHMM = r"^\d{2}:\d{2}$"


# =============================================================================
# Schedule sections
# =============================================================================

class WorkingHoursInput(BaseModel):
    """Working-hours window for one weekday."""
    day_of_week: int = Field(..., ge=0, le=6, description="Monday=0, Sunday=6")
    start_time: str = Field(..., pattern=HHMM, description="HH:MM format")
    end_time: str = Field(..., pattern=HHMM, description="HH:MM format")
    enabled: bool = True


class RecurringWindowInput(BaseModel):
    """Weekly unavailable window, e.g. lunch."""
    day_of_week: int = Field(..., ge=0, le=6, description="Monday=0, Sunday=6")
    start_time: str = Field(..., pattern=HHMM)
    end_time: str = Field(..., pattern=HHMM)
    label: str | None = Field(None, max_length=100)


class BlackoutDateInput(BaseModel):
    date: date
    reason: str | None = Field(None, max_length=255)


class ScheduleOptions(BaseModel):
    """Scalar booking-window, deposit, and cancellation settings."""
    buffer_minutes: int | None = Field(None, ge=0, le=480)
    buffer_mode: BufferMode | None = None
    advance_booking_days: int | None = Field(None, ge=0, le=730)
    minimum_notice_hours: int | None = Field(None, ge=0, le=24 * 60)
    is_accepting_bookings: bool | None = None
    auto_confirm_bookings: bool | None = None
    requires_deposit: bool | None = None
    deposit_percentage: Decimal | None = Field(None, ge=0, le=100)
    allow_cancellation: bool | None = None
    cancellation_deadline_hours: int | None = Field(None, ge=0, le=24 * 90)
    refund_mode: RefundMode | None = None
    partial_refund_percentage: Decimal | None = Field(None, ge=0, le=100)


class ScheduleCreate(ScheduleOptions):
    """Schema for creating a contractor schedule (omitted fields take defaults)."""
    contractor_id: UUID
    timezone: str | None = Field(None, max_length=50)
    working_hours: list[WorkingHoursInput] | None = None
    recurring_unavailable: list[RecurringWindowInput] | None = None
    blackout_dates: list[BlackoutDateInput] | None = None


class ScheduleUpdate(ScheduleOptions):
    """Schema for updating a schedule; lists replace the stored section."""
    expected_version: int | None = Field(None, ge=1)
    timezone: str | None = Field(None, max_length=50)
    working_hours: list[WorkingHoursInput] | None = None
    recurring_unavailable: list[RecurringWindowInput] | None = None
    blackout_dates: list[BlackoutDateInput] | None = None


class WorkingHoursRead(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    enabled: bool


class RecurringWindowRead(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    label: str | None


class BlackoutDateRead(BaseModel):
    date: date
    reason: str | None


class CancellationPolicyRead(BaseModel):
    allow_cancellation: bool
    cancellation_deadline_hours: int
    refund_mode: RefundMode
    partial_refund_percentage: Decimal


class ScheduleRead(BaseModel):
    """Schema for reading a contractor schedule."""
    id: UUID
    contractor_id: UUID
    timezone: str
    working_hours: list[WorkingHoursRead]
    recurring_unavailable: list[RecurringWindowRead]
    blackout_dates: list[BlackoutDateRead]
    buffer_minutes: int
    buffer_mode: BufferMode
    advance_booking_days: int
    minimum_notice_hours: int
    is_accepting_bookings: bool
    auto_confirm_bookings: bool
    requires_deposit: bool
    deposit_percentage: Decimal
    cancellation_policy: CancellationPolicyRead
    version: int
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Services
# =============================================================================

class ServiceCreate(BaseModel):
    """Schema for creating a bookable service."""
    name: str = Field(..., min_length=1, max_length=150)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    duration_minutes: int = Field(..., ge=5, le=24 * 60)
    preparation_minutes: int = Field(0, ge=0, le=480)
    cleanup_minutes: int = Field(0, ge=0, le=480)
    price: Decimal = Field(..., ge=0)
    deposit_required: bool | None = None
    deposit_amount: Decimal | None = Field(None, ge=0)


class ServiceUpdate(BaseModel):
    """Schema for updating a service; timing is frozen once booked."""
    name: str | None = Field(None, min_length=1, max_length=150)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    duration_minutes: int | None = Field(None, ge=5, le=24 * 60)
    preparation_minutes: int | None = Field(None, ge=0, le=480)
    cleanup_minutes: int | None = Field(None, ge=0, le=480)
    price: Decimal | None = Field(None, ge=0)
    deposit_required: bool | None = None
    deposit_amount: Decimal | None = Field(None, ge=0)
    is_active: bool | None = None


class ServiceRead(BaseModel):
    """Schema for reading a service."""
    id: UUID
    contractor_id: UUID
    name: str
    description: str | None
    category: str | None
    duration_minutes: int
    preparation_minutes: int
    cleanup_minutes: int
    block_minutes: int
    price: Decimal
    deposit_required: bool | None
    deposit_amount: Decimal | None
    is_active: bool
    created_at: datetime
    updated_at: datetime
