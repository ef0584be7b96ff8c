"""Availability router - bookable slots and per-day summaries."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booking_engine.core.deps import get_current_session, get_db
from booking_engine.schemas.appointment import (
    AvailabilityRangeRequest,
    AvailabilityRangeResponse,
    DaySummaryRead,
    SlotRead,
)
from booking_engine.schemas.auth import ActorSession
from booking_engine.services import appointment_service

router = APIRouter()


@router.get("", response_model=list[SlotRead])
def get_availability(
    contractor_id: UUID = Query(...),
    service_id: UUID = Query(...),
    date: date = Query(..., description="Day in the contractor's timezone"),
    end_date: date | None = Query(None),
    include_unavailable: bool = Query(True),
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Candidate slots for a service; unavailable ones carry a reason."""
    _, slots = appointment_service.get_available_slots(
        db,
        contractor_id=contractor_id,
        service_id=service_id,
        date_start=date,
        date_end=end_date,
    )
    return [
        SlotRead(start=slot.start, end=slot.end, available=slot.available, reason=slot.reason)
        for slot in slots
        if include_unavailable or slot.available
    ]


@router.post("", response_model=AvailabilityRangeResponse)
def get_availability_summary(
    data: AvailabilityRangeRequest,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Per-day availability summary over a date range."""
    config, block_minutes, days = appointment_service.get_availability_summary(
        db,
        contractor_id=data.contractor_id,
        date_start=data.start_date,
        date_end=data.end_date,
        service_id=data.service_id,
    )
    return AvailabilityRangeResponse(
        contractor_id=data.contractor_id,
        timezone=config.timezone,
        block_minutes=block_minutes,
        days=[DaySummaryRead(**day._asdict()) for day in days],
    )
