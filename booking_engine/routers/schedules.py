"""Schedules router - contractor schedule configuration and service catalog."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from booking_engine.core.deps import get_current_session, get_db
from booking_engine.db.enums import ActorRole
from booking_engine.schemas.auth import ActorSession
from booking_engine.schemas.schedule import (
    BlackoutDateRead,
    CancellationPolicyRead,
    RecurringWindowRead,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
    WorkingHoursRead,
)
from booking_engine.services import schedule_service

router = APIRouter()

_SECTION_FIELDS = {"contractor_id", "expected_version", "timezone", "working_hours", "recurring_unavailable", "blackout_dates"}


# =============================================================================
# Helper Functions
# =============================================================================

def _require_owner(session: ActorSession, contractor_id: UUID) -> None:
    if session.role == ActorRole.ADMIN:
        return
    if session.role == ActorRole.CONTRACTOR and session.actor_id == contractor_id:
        return
    raise HTTPException(status_code=403, detail="Not authorized")


def _schedule_to_read(schedule) -> ScheduleRead:
    """Convert ContractorSchedule model to read schema."""
    return ScheduleRead(
        id=schedule.id,
        contractor_id=schedule.contractor_id,
        timezone=schedule.timezone,
        working_hours=[
            WorkingHoursRead(
                day_of_week=rule.day_of_week,
                start_time=rule.start_time,
                end_time=rule.end_time,
                enabled=rule.is_enabled,
            )
            for rule in schedule.working_hours
        ],
        recurring_unavailable=[
            RecurringWindowRead(
                day_of_week=window.day_of_week,
                start_time=window.start_time,
                end_time=window.end_time,
                label=window.label,
            )
            for window in schedule.recurring_windows
        ],
        blackout_dates=[
            BlackoutDateRead(date=blackout.blackout_date, reason=blackout.reason)
            for blackout in schedule.blackout_dates
        ],
        buffer_minutes=schedule.buffer_minutes,
        buffer_mode=schedule.buffer_mode,
        advance_booking_days=schedule.advance_booking_days,
        minimum_notice_hours=schedule.minimum_notice_hours,
        is_accepting_bookings=schedule.is_accepting_bookings,
        auto_confirm_bookings=schedule.auto_confirm_bookings,
        requires_deposit=schedule.requires_deposit,
        deposit_percentage=schedule.deposit_percentage,
        cancellation_policy=CancellationPolicyRead(
            allow_cancellation=schedule.allow_cancellation,
            cancellation_deadline_hours=schedule.cancellation_deadline_hours,
            refund_mode=schedule.refund_mode,
            partial_refund_percentage=schedule.partial_refund_percentage,
        ),
        version=schedule.version,
        created_at=schedule.created_at,
        updated_at=schedule.updated_at,
    )


def _service_to_read(service) -> ServiceRead:
    """Convert ScheduleService model to read schema."""
    return ServiceRead(
        id=service.id,
        contractor_id=service.contractor_id,
        name=service.name,
        description=service.description,
        category=service.category,
        duration_minutes=service.duration_minutes,
        preparation_minutes=service.preparation_minutes,
        cleanup_minutes=service.cleanup_minutes,
        block_minutes=service.block_minutes,
        price=service.price,
        deposit_required=service.deposit_required,
        deposit_amount=service.deposit_amount,
        is_active=service.is_active,
        created_at=service.created_at,
        updated_at=service.updated_at,
    )


def _sections(data) -> dict:
    """Section lists as plain dicts; None means leave unchanged."""
    return {
        "working_hours": (
            [item.model_dump() for item in data.working_hours] if data.working_hours is not None else None
        ),
        "recurring_unavailable": (
            [item.model_dump() for item in data.recurring_unavailable]
            if data.recurring_unavailable is not None else None
        ),
        "blackout_dates": (
            [item.model_dump() for item in data.blackout_dates] if data.blackout_dates is not None else None
        ),
    }


def _options(data) -> dict:
    return {
        key: value.value if hasattr(value, "value") else value
        for key, value in data.model_dump(exclude_none=True).items()
        if key not in _SECTION_FIELDS
    }


# =============================================================================
# Schedules
# =============================================================================

@router.post("", response_model=ScheduleRead, status_code=201)
def create_schedule(
    data: ScheduleCreate,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create a contractor's schedule with defaults for omitted fields."""
    _require_owner(session, data.contractor_id)
    schedule = schedule_service.create_schedule(
        db,
        data.contractor_id,
        timezone_name=data.timezone,
        **_sections(data),
        **_options(data),
    )
    return _schedule_to_read(schedule)


@router.get("/{contractor_id}", response_model=ScheduleRead)
def get_schedule(
    contractor_id: UUID,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _schedule_to_read(schedule_service.get_schedule(db, contractor_id))


@router.put("/{contractor_id}", response_model=ScheduleRead)
def update_schedule(
    contractor_id: UUID,
    data: ScheduleUpdate,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update a schedule; pass expected_version for optimistic concurrency."""
    _require_owner(session, contractor_id)
    schedule = schedule_service.update_schedule(
        db,
        contractor_id,
        expected_version=data.expected_version,
        timezone_name=data.timezone,
        **_sections(data),
        **_options(data),
    )
    return _schedule_to_read(schedule)


# =============================================================================
# Services
# =============================================================================

@router.get("/{contractor_id}/services", response_model=list[ServiceRead])
def list_services(
    contractor_id: UUID,
    active_only: bool = Query(True),
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    services = schedule_service.list_services(db, contractor_id, active_only=active_only)
    return [_service_to_read(service) for service in services]


@router.post("/{contractor_id}/services", response_model=ServiceRead, status_code=201)
def create_service(
    contractor_id: UUID,
    data: ServiceCreate,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    _require_owner(session, contractor_id)
    service = schedule_service.create_service(db, contractor_id, **data.model_dump())
    return _service_to_read(service)


@router.patch("/{contractor_id}/services/{service_id}", response_model=ServiceRead)
def update_service(
    contractor_id: UUID,
    service_id: UUID,
    data: ServiceUpdate,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Update a service; timing fields are frozen once it has been booked."""
    _require_owner(session, contractor_id)
    service = schedule_service.update_service(
        db, contractor_id, service_id, **data.model_dump(exclude_none=True)
    )
    return _service_to_read(service)


@router.delete("/{contractor_id}/services/{service_id}", response_model=ServiceRead)
def deactivate_service(
    contractor_id: UUID,
    service_id: UUID,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Soft delete a service."""
    _require_owner(session, contractor_id)
    return _service_to_read(schedule_service.deactivate_service(db, contractor_id, service_id))
