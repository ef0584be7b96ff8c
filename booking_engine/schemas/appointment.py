"""Appointment schemas - Pydantic models for availability and booking API."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


# =============================================================================
# Availability
# =============================================================================

class SlotRead(BaseModel):
    """Candidate slot; `reason` explains unavailable ones."""
    start: datetime
    end: datetime
    available: bool
    reason: str | None = None


class AvailabilityRangeRequest(BaseModel):
    """Per-day availability summary request."""
    contractor_id: UUID
    start_date: date
    end_date: date
    service_id: UUID | None = None


class DaySummaryRead(BaseModel):
    date: date
    available: bool
    reason: str | None
    available_slots: int
    first_available: datetime | None
    last_available: datetime | None


class AvailabilityRangeResponse(BaseModel):
    contractor_id: UUID
    timezone: str
    block_minutes: int
    days: list[DaySummaryRead]


# =============================================================================
# Appointments
# =============================================================================

class ClientInfoInput(BaseModel):
    """Client contact record supplied with a booking."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str | None = Field(None, max_length=30)
    address: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)


class AppointmentCreate(BaseModel):
    """Schema for booking a slot."""
    contractor_id: UUID
    service_id: UUID
    start: datetime = Field(..., description="ISO datetime; naive values use the contractor timezone")
    client: ClientInfoInput


class AppointmentAction(BaseModel):
    """PATCH body: one state-machine action."""
    action: Literal["cancel", "confirm", "complete", "no_show"]
    reason: str | None = Field(None, max_length=500)


class DepositPayment(BaseModel):
    """Payment collaborator callback."""
    amount: Decimal = Field(..., gt=0)
    reference: str | None = Field(None, max_length=255)


class AppointmentRead(BaseModel):
    """Schema for reading an appointment."""
    id: UUID
    contractor_id: UUID
    service_id: UUID
    client_id: UUID | None
    client_name: str
    client_email: str
    client_phone: str | None
    client_address: str | None
    client_notes: str | None
    scheduled_start: datetime
    scheduled_end: datetime
    block_minutes: int
    buffer_minutes: int
    status: str
    total_price: Decimal
    deposit_required: bool
    deposit_amount: Decimal
    deposit_paid: bool
    amount_paid: Decimal
    payment_status: str
    payment_reference: str | None
    confirmed_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    refund_amount: Decimal | None
    refund_reason: str | None
    created_at: datetime
    updated_at: datetime


class AppointmentListResponse(BaseModel):
    items: list[AppointmentRead]
    total: int


class CancellationResponse(BaseModel):
    """Outcome of a cancel action."""
    allowed: bool
    refund_amount: Decimal
    refund_reason: str
    is_late: bool
    appointment: AppointmentRead


class StatusChangeRead(BaseModel):
    from_status: str | None
    to_status: str
    changed_by: UUID | None
    reason: str | None
    changed_at: datetime


class CancellationPreviewRead(BaseModel):
    """Refund eligibility if the appointment were cancelled now."""
    appointment_id: UUID
    can_cancel: bool
    hours_until_appointment: float
    cancellation_deadline_hours: int
    refund_mode: str
    is_late: bool
    potential_refund: Decimal
    refund_reason: str
    amount_paid: Decimal
    deposit_paid: bool


class RefundSettled(BaseModel):
    """Payment collaborator callback: a cancellation refund went out."""
    reference: str | None = Field(None, max_length=255)
