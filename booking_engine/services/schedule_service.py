"""Schedule configuration store - contractor schedules and the service catalog.

Pure data with validation. Booking activity never writes here; every update
bumps `ContractorSchedule.version` and the calculator/ledger work from an
immutable snapshot built by `build_config_snapshot`.
"""

import logging
from datetime import date, time
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from booking_engine.core.config import settings
from booking_engine.core.structured_logging import build_log_context
from booking_engine.db.enums import BufferMode, RefundMode
from booking_engine.db.models import (
    Appointment,
    BlackoutDate,
    ContractorSchedule,
    RecurringUnavailableWindow,
    ScheduleService,
    WorkingHours,
)
from booking_engine.services.availability_service import (
    DayWindow,
    RecurringWindow,
    ScheduleConfig,
    ServiceDefinition,
)
from booking_engine.services.errors import NotFoundError, ValidationError, VersionConflictError
from booking_engine.services.refund_policy import CancellationPolicy

logger = logging.getLogger(__name__)


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_WORKING_HOURS = [
    {"day_of_week": day, "start_time": "09:00", "end_time": "17:00", "enabled": True}
    for day in range(5)
] + [
    {"day_of_week": 5, "start_time": "10:00", "end_time": "14:00", "enabled": False},
    {"day_of_week": 6, "start_time": "10:00", "end_time": "14:00", "enabled": False},
]

# Scalar schedule options that may be passed to create/update
SCHEDULE_OPTIONS = (
    "buffer_minutes",
    "buffer_mode",
    "advance_booking_days",
    "minimum_notice_hours",
    "is_accepting_bookings",
    "auto_confirm_bookings",
    "requires_deposit",
    "deposit_percentage",
    "allow_cancellation",
    "cancellation_deadline_hours",
    "refund_mode",
    "partial_refund_percentage",
)

_NON_NEGATIVE_INT_OPTIONS = (
    "buffer_minutes",
    "advance_booking_days",
    "minimum_notice_hours",
    "cancellation_deadline_hours",
)
_PERCENT_OPTIONS = ("deposit_percentage", "partial_refund_percentage")

# Service fields frozen once an appointment references the service
FROZEN_SERVICE_FIELDS = (
    "duration_minutes",
    "preparation_minutes",
    "cleanup_minutes",
    "deposit_required",
    "deposit_amount",
)
EDITABLE_SERVICE_FIELDS = ("name", "description", "category", "price", "is_active")


# =============================================================================
# Validation helpers
# =============================================================================

def _validate_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {name}", reason="invalid_timezone")
    return name


def _parse_time(value: Any, field: str) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be HH:MM", reason="invalid_time")


def _parse_day(value: Any) -> int:
    if not isinstance(value, int) or not 0 <= value <= 6:
        raise ValidationError("day_of_week must be 0-6 (Monday=0)", reason="invalid_day_of_week")
    return value


def _to_decimal(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", reason="invalid_number")


def _clean_working_hours(entries: list[dict]) -> list[dict]:
    """Exactly one entry per weekday; enabled windows need end > start."""
    cleaned = {}
    for entry in entries:
        day = _parse_day(entry.get("day_of_week"))
        if day in cleaned:
            raise ValidationError(
                f"Duplicate working hours for day {day}", reason="duplicate_day"
            )
        start = _parse_time(entry.get("start_time"), "start_time")
        end = _parse_time(entry.get("end_time"), "end_time")
        enabled = bool(entry.get("enabled", True))
        if enabled and end <= start:
            raise ValidationError(
                f"Working hours end must be after start (day {day})",
                reason="end_before_start",
            )
        cleaned[day] = {"day_of_week": day, "start_time": start, "end_time": end, "is_enabled": enabled}
    if sorted(cleaned) != list(range(7)):
        raise ValidationError(
            "Working hours must define all 7 weekdays", reason="invalid_working_hours"
        )
    return [cleaned[day] for day in range(7)]


def _clean_recurring(entries: list[dict]) -> list[dict]:
    cleaned = []
    for entry in entries:
        day = _parse_day(entry.get("day_of_week"))
        start = _parse_time(entry.get("start_time"), "start_time")
        end = _parse_time(entry.get("end_time"), "end_time")
        if end <= start:
            raise ValidationError(
                "Recurring window end must be after start", reason="end_before_start"
            )
        cleaned.append(
            {"day_of_week": day, "start_time": start, "end_time": end, "label": entry.get("label")}
        )
    return cleaned


def _clean_blackouts(entries: list) -> list[dict]:
    cleaned: dict[date, dict] = {}
    for entry in entries:
        if isinstance(entry, date):
            entry = {"date": entry}
        value = entry.get("date") or entry.get("blackout_date")
        if isinstance(value, str):
            try:
                value = date.fromisoformat(value)
            except ValueError:
                raise ValidationError("Blackout date must be YYYY-MM-DD", reason="invalid_date")
        if not isinstance(value, date):
            raise ValidationError("Blackout date is required", reason="invalid_date")
        cleaned[value] = {"blackout_date": value, "reason": entry.get("reason")}
    return [cleaned[key] for key in sorted(cleaned)]


def _clean_options(options: dict[str, Any]) -> dict[str, Any]:
    unknown = set(options) - set(SCHEDULE_OPTIONS)
    if unknown:
        raise ValidationError(
            f"Unknown schedule fields: {', '.join(sorted(unknown))}", reason="unknown_field"
        )
    cleaned = {}
    for key, value in options.items():
        if value is None:
            continue
        if key in _NON_NEGATIVE_INT_OPTIONS:
            if int(value) < 0:
                raise ValidationError(f"{key} must not be negative", reason="negative_duration")
            value = int(value)
        elif key in _PERCENT_OPTIONS:
            value = _to_decimal(value, key)
            if not Decimal(0) <= value <= Decimal(100):
                raise ValidationError(f"{key} must be between 0 and 100", reason="invalid_percentage")
        elif key == "refund_mode":
            try:
                value = RefundMode(value).value
            except ValueError:
                raise ValidationError(f"Unknown refund mode: {value}", reason="invalid_refund_mode")
        elif key == "buffer_mode":
            try:
                value = BufferMode(value).value
            except ValueError:
                raise ValidationError(f"Unknown buffer mode: {value}", reason="invalid_buffer_mode")
        else:
            value = bool(value)
        cleaned[key] = value
    return cleaned


def _replace_sections(
    schedule: ContractorSchedule,
    working_hours: list[dict] | None,
    recurring_unavailable: list[dict] | None,
    blackout_dates: list | None,
) -> None:
    # Rows with unique keys are updated in place; the unit of work flushes
    # inserts before deletes, so swapping them would trip the constraints.
    if working_hours is not None:
        existing = {rule.day_of_week: rule for rule in schedule.working_hours}
        rules = []
        for entry in _clean_working_hours(working_hours):
            rule = existing.get(entry["day_of_week"]) or WorkingHours(day_of_week=entry["day_of_week"])
            rule.start_time = entry["start_time"]
            rule.end_time = entry["end_time"]
            rule.is_enabled = entry["is_enabled"]
            rules.append(rule)
        schedule.working_hours = rules
    if recurring_unavailable is not None:
        schedule.recurring_windows = [
            RecurringUnavailableWindow(**entry) for entry in _clean_recurring(recurring_unavailable)
        ]
    if blackout_dates is not None:
        existing_dates = {b.blackout_date: b for b in schedule.blackout_dates}
        blackouts = []
        for entry in _clean_blackouts(blackout_dates):
            blackout = existing_dates.get(entry["blackout_date"]) or BlackoutDate(
                blackout_date=entry["blackout_date"]
            )
            blackout.reason = entry["reason"]
            blackouts.append(blackout)
        schedule.blackout_dates = blackouts


# =============================================================================
# Schedules
# =============================================================================

def get_schedule(db: Session, contractor_id: UUID) -> ContractorSchedule:
    """Get a contractor's schedule or raise NotFoundError."""
    schedule = db.query(ContractorSchedule).filter(
        ContractorSchedule.contractor_id == contractor_id,
    ).first()
    if not schedule:
        raise NotFoundError("Contractor schedule not found", reason="schedule_not_found")
    return schedule


def create_schedule(
    db: Session,
    contractor_id: UUID,
    timezone_name: str | None = None,
    working_hours: list[dict] | None = None,
    recurring_unavailable: list[dict] | None = None,
    blackout_dates: list | None = None,
    **options: Any,
) -> ContractorSchedule:
    """Create a contractor's schedule; omitted sections take the defaults."""
    existing = db.query(ContractorSchedule).filter(
        ContractorSchedule.contractor_id == contractor_id,
    ).first()
    if existing:
        raise ValidationError("Schedule already exists for contractor", reason="schedule_exists")

    schedule = ContractorSchedule(
        contractor_id=contractor_id,
        timezone=_validate_timezone(timezone_name or settings.DEFAULT_TIMEZONE),
        version=1,
        **_clean_options(options),
    )
    _replace_sections(
        schedule,
        working_hours if working_hours is not None else DEFAULT_WORKING_HOURS,
        recurring_unavailable or [],
        blackout_dates or [],
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    logger.info("Schedule created", extra=build_log_context(contractor_id=contractor_id))
    return schedule


def update_schedule(
    db: Session,
    contractor_id: UUID,
    expected_version: int | None = None,
    timezone_name: str | None = None,
    working_hours: list[dict] | None = None,
    recurring_unavailable: list[dict] | None = None,
    blackout_dates: list | None = None,
    **options: Any,
) -> ContractorSchedule:
    """
    Update a schedule and bump its version.

    Sections passed as lists replace the stored ones; None leaves them alone.
    Booked appointments keep their frozen end times.
    """
    schedule = db.query(ContractorSchedule).filter(
        ContractorSchedule.contractor_id == contractor_id,
    ).with_for_update().populate_existing().first()
    if not schedule:
        raise NotFoundError("Contractor schedule not found", reason="schedule_not_found")
    if expected_version is not None and expected_version != schedule.version:
        db.rollback()
        raise VersionConflictError(expected_version, schedule.version)

    try:
        cleaned = _clean_options(options)
        if timezone_name is not None:
            schedule.timezone = _validate_timezone(timezone_name)
        for key, value in cleaned.items():
            setattr(schedule, key, value)
        _replace_sections(schedule, working_hours, recurring_unavailable, blackout_dates)
    except ValidationError:
        db.rollback()
        raise

    schedule.version += 1
    db.commit()
    db.refresh(schedule)
    logger.info(
        "Schedule updated to version %s",
        schedule.version,
        extra=build_log_context(contractor_id=contractor_id),
    )
    return schedule


def build_config_snapshot(schedule: ContractorSchedule) -> ScheduleConfig:
    """Freeze a schedule row into the calculator's immutable config."""
    by_day = {rule.day_of_week: rule for rule in schedule.working_hours}
    days = []
    for day in range(7):
        rule = by_day.get(day)
        if rule is None:
            days.append(DayWindow(start=time(0, 0), end=time(0, 0), enabled=False))
        else:
            days.append(DayWindow(start=rule.start_time, end=rule.end_time, enabled=rule.is_enabled))

    return ScheduleConfig(
        timezone=schedule.timezone,
        working_hours=tuple(days),
        blackout_dates=frozenset(b.blackout_date for b in schedule.blackout_dates),
        recurring_unavailable=tuple(
            RecurringWindow(day_of_week=w.day_of_week, start=w.start_time, end=w.end_time)
            for w in schedule.recurring_windows
        ),
        buffer_minutes=schedule.buffer_minutes,
        buffer_mode=BufferMode(schedule.buffer_mode),
        advance_booking_days=schedule.advance_booking_days,
        minimum_notice_hours=schedule.minimum_notice_hours,
        is_accepting_bookings=schedule.is_accepting_bookings,
        auto_confirm_bookings=schedule.auto_confirm_bookings,
        requires_deposit=schedule.requires_deposit,
        deposit_percentage=Decimal(schedule.deposit_percentage),
        cancellation_policy=CancellationPolicy(
            allow_cancellation=schedule.allow_cancellation,
            deadline_hours=schedule.cancellation_deadline_hours,
            refund_mode=RefundMode(schedule.refund_mode),
            partial_refund_percentage=Decimal(schedule.partial_refund_percentage),
        ),
        contractor_id=schedule.contractor_id,
        version=schedule.version,
    )


# =============================================================================
# Service Catalog
# =============================================================================

def build_service_definition(service: ScheduleService) -> ServiceDefinition:
    return ServiceDefinition(
        id=service.id,
        name=service.name,
        duration_minutes=service.duration_minutes,
        preparation_minutes=service.preparation_minutes,
        cleanup_minutes=service.cleanup_minutes,
        price=Decimal(service.price),
        deposit_required=service.deposit_required,
        deposit_amount=Decimal(service.deposit_amount) if service.deposit_amount is not None else None,
    )


def _validate_service_fields(fields: dict[str, Any]) -> None:
    if "duration_minutes" in fields and int(fields["duration_minutes"]) <= 0:
        raise ValidationError("duration_minutes must be positive", reason="invalid_duration")
    for key in ("preparation_minutes", "cleanup_minutes"):
        if key in fields and int(fields[key]) < 0:
            raise ValidationError(f"{key} must not be negative", reason="negative_duration")
    if "price" in fields and _to_decimal(fields["price"], "price") < 0:
        raise ValidationError("price must not be negative", reason="invalid_price")
    if fields.get("deposit_amount") is not None:
        deposit = _to_decimal(fields["deposit_amount"], "deposit_amount")
        if deposit < 0:
            raise ValidationError("deposit_amount must not be negative", reason="invalid_price")


def create_service(
    db: Session,
    contractor_id: UUID,
    name: str,
    duration_minutes: int,
    price: Decimal,
    description: str | None = None,
    category: str | None = None,
    preparation_minutes: int = 0,
    cleanup_minutes: int = 0,
    deposit_required: bool | None = None,
    deposit_amount: Decimal | None = None,
) -> ScheduleService:
    """Add a bookable service to a contractor's catalog."""
    schedule = get_schedule(db, contractor_id)
    fields = {
        "duration_minutes": duration_minutes,
        "preparation_minutes": preparation_minutes,
        "cleanup_minutes": cleanup_minutes,
        "price": price,
        "deposit_amount": deposit_amount,
    }
    _validate_service_fields(fields)
    if not name or not name.strip():
        raise ValidationError("name is required", reason="invalid_name")

    service = ScheduleService(
        schedule_id=schedule.id,
        contractor_id=contractor_id,
        name=name.strip(),
        description=description,
        category=category,
        duration_minutes=duration_minutes,
        preparation_minutes=preparation_minutes,
        cleanup_minutes=cleanup_minutes,
        price=_to_decimal(price, "price"),
        deposit_required=deposit_required,
        deposit_amount=_to_decimal(deposit_amount, "deposit_amount") if deposit_amount is not None else None,
        is_active=True,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def get_service(db: Session, contractor_id: UUID, service_id: UUID) -> ScheduleService:
    """Get a contractor's service or raise NotFoundError."""
    service = db.query(ScheduleService).filter(
        ScheduleService.id == service_id,
        ScheduleService.contractor_id == contractor_id,
    ).first()
    if not service:
        raise NotFoundError("Service not found", reason="service_not_found")
    return service


def list_services(
    db: Session,
    contractor_id: UUID,
    active_only: bool = True,
) -> list[ScheduleService]:
    query = db.query(ScheduleService).filter(ScheduleService.contractor_id == contractor_id)
    if active_only:
        query = query.filter(ScheduleService.is_active == True)  # noqa: E712
    return query.order_by(ScheduleService.name).all()


def is_service_referenced(db: Session, service_id: UUID) -> bool:
    return db.query(Appointment.id).filter(Appointment.service_id == service_id).first() is not None


def update_service(
    db: Session,
    contractor_id: UUID,
    service_id: UUID,
    **changes: Any,
) -> ScheduleService:
    """
    Update a service.

    Once any appointment references the service only name, description,
    category, price and is_active may change; booked appointments keep the
    price and end time captured at booking.
    """
    service = get_service(db, contractor_id, service_id)
    changes = {key: value for key, value in changes.items() if value is not None}
    unknown = set(changes) - set(FROZEN_SERVICE_FIELDS) - set(EDITABLE_SERVICE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown service fields: {', '.join(sorted(unknown))}", reason="unknown_field"
        )
    _validate_service_fields(changes)

    frozen_changes = [
        key for key in FROZEN_SERVICE_FIELDS
        if key in changes and changes[key] != getattr(service, key)
    ]
    if frozen_changes and is_service_referenced(db, service.id):
        raise ValidationError(
            f"Service is referenced by appointments; cannot change {', '.join(frozen_changes)}",
            reason="service_in_use",
        )

    for key, value in changes.items():
        if key in ("price", "deposit_amount"):
            value = _to_decimal(value, key)
        setattr(service, key, value)
    db.commit()
    db.refresh(service)
    return service


def deactivate_service(db: Session, contractor_id: UUID, service_id: UUID) -> ScheduleService:
    """Soft delete: inactive services cannot be booked but history is kept."""
    service = get_service(db, contractor_id, service_id)
    service.is_active = False
    db.commit()
    db.refresh(service)
    return service
