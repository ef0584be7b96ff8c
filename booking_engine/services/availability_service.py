"""Availability calculator - pure slot computation for contractor schedules.

Handles:
- Weekly working-hours template with blackout dates and recurring windows
- Advance-booking horizon and minimum-notice rules
- Buffer-aware conflict detection against existing appointments
- Validation of a single requested start (shared with the ledger)

Everything here is deterministic and side-effect free: inputs are frozen
snapshots, `now` is always passed in, and no database access happens.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, NamedTuple, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

from booking_engine.core.config import settings
from booking_engine.db.enums import BufferMode
from booking_engine.services.errors import (
    HorizonViolationError,
    NoticeViolationError,
    SlotUnavailableError,
    ValidationError,
)
from booking_engine.services.refund_policy import CancellationPolicy


# =============================================================================
# Types
# =============================================================================

@dataclass(frozen=True)
class DayWindow:
    """Working-hours window for one weekday."""
    start: time
    end: time
    enabled: bool = True


@dataclass(frozen=True)
class RecurringWindow:
    """Weekly unavailable range (Monday=0)."""
    day_of_week: int
    start: time
    end: time


@dataclass(frozen=True)
class ScheduleConfig:
    """Immutable per-request snapshot of a contractor's schedule."""
    timezone: str
    working_hours: tuple[DayWindow, ...]  # 7 entries, Monday=0
    blackout_dates: frozenset[date] = frozenset()
    recurring_unavailable: tuple[RecurringWindow, ...] = ()
    buffer_minutes: int = 15
    buffer_mode: BufferMode = BufferMode.SYMMETRIC
    advance_booking_days: int = 30
    minimum_notice_hours: int = 24
    is_accepting_bookings: bool = True
    auto_confirm_bookings: bool = False
    requires_deposit: bool = True
    deposit_percentage: Decimal = Decimal("25")
    cancellation_policy: CancellationPolicy = field(default_factory=CancellationPolicy)
    contractor_id: UUID | None = None
    version: int = 1

    def __post_init__(self):
        if len(self.working_hours) != 7:
            raise ValidationError(
                "working_hours must have exactly 7 entries (Monday=0)",
                reason="invalid_working_hours",
            )


@dataclass(frozen=True)
class ServiceDefinition:
    """Timing and pricing of a bookable service."""
    duration_minutes: int
    preparation_minutes: int = 0
    cleanup_minutes: int = 0
    price: Decimal = Decimal("0")
    deposit_required: bool | None = None
    deposit_amount: Decimal | None = None
    id: UUID | None = None
    name: str = ""

    @property
    def block_minutes(self) -> int:
        return self.preparation_minutes + self.duration_minutes + self.cleanup_minutes


class BusyInterval(NamedTuple):
    """Scheduled span of an active appointment (UTC) with its buffer snapshot."""
    start: datetime
    end: datetime
    buffer_minutes: int


class Slot(NamedTuple):
    """Candidate slot. `reason` is None when available."""
    start: datetime
    end: datetime
    available: bool
    reason: str | None = None


class DaySummary(NamedTuple):
    """Per-day rollup for range queries."""
    date: date
    available: bool
    reason: str | None
    available_slots: int
    first_available: datetime | None
    last_available: datetime | None


# Day-level rejection reasons
BLACKOUT = "blackout"
DAY_DISABLED = "day_disabled"
BEFORE_TODAY = "before_today"
BEYOND_HORIZON = "beyond_horizon"
NOT_ACCEPTING = "not_accepting_bookings"
NO_WORKING_HOURS = "no_working_hours"

# Slot-level reasons
CONFLICT = "conflict"
MINIMUM_NOTICE = "minimum_notice"


def get_timezone(name: str | None) -> ZoneInfo:
    """Get a ZoneInfo timezone with safe fallback."""
    if not name:
        return ZoneInfo(settings.DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(name)
    except Exception:
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def normalize_start(start: datetime, timezone_name: str) -> datetime:
    """Ensure start is timezone-aware (naive = contractor local) and in UTC."""
    if start.tzinfo is None:
        start = start.replace(tzinfo=get_timezone(timezone_name))
    return start.astimezone(timezone.utc)


# =============================================================================
# Interval arithmetic
# =============================================================================

def _subtract(
    windows: list[tuple[time, time]],
    cut_start: time,
    cut_end: time,
) -> list[tuple[time, time]]:
    """Remove [cut_start, cut_end) from each window."""
    remaining = []
    for start, end in windows:
        if cut_end <= start or cut_start >= end:
            remaining.append((start, end))
            continue
        if start < cut_start:
            remaining.append((start, cut_start))
        if cut_end < end:
            remaining.append((cut_end, end))
    return remaining


def intervals_conflict(
    start: datetime,
    end: datetime,
    buffer_minutes: int,
    busy: BusyInterval,
    mode: BufferMode,
) -> bool:
    """
    True when a block [start, end) is too close to an existing appointment.

    SYMMETRIC: both effective intervals (span +/- own buffer) must not overlap,
    so the gap must be at least the sum of both buffers.
    BETWEEN: only one buffer gap (the larger of the two) is required.
    """
    if BufferMode(mode) == BufferMode.SYMMETRIC:
        gap = timedelta(minutes=buffer_minutes + busy.buffer_minutes)
    else:
        gap = timedelta(minutes=max(buffer_minutes, busy.buffer_minutes))
    return start < busy.end + gap and busy.start < end + gap


def find_conflict(
    start: datetime,
    end: datetime,
    buffer_minutes: int,
    busy: Iterable[BusyInterval],
    mode: BufferMode,
) -> BusyInterval | None:
    for interval in busy:
        if intervals_conflict(start, end, buffer_minutes, interval, mode):
            return interval
    return None


# =============================================================================
# Day rules
# =============================================================================

def _local_today(config: ScheduleConfig, now: datetime) -> date:
    return now.astimezone(get_timezone(config.timezone)).date()


def day_rejection(config: ScheduleConfig, day: date, now: datetime) -> str | None:
    """Return why a whole day is unbookable, or None."""
    if not config.is_accepting_bookings:
        return NOT_ACCEPTING
    if day in config.blackout_dates:
        return BLACKOUT
    window = config.working_hours[day.weekday()]
    if not window.enabled:
        return DAY_DISABLED
    today = _local_today(config, now)
    if day < today:
        return BEFORE_TODAY
    if day > today + timedelta(days=config.advance_booking_days):
        return BEYOND_HORIZON
    if window.end <= window.start:
        return NO_WORKING_HOURS
    return None


def bookable_windows(config: ScheduleConfig, day: date) -> list[tuple[datetime, datetime]]:
    """Working window minus recurring windows, converted to UTC."""
    window = config.working_hours[day.weekday()]
    local = [(window.start, window.end)]
    for recurring in config.recurring_unavailable:
        if recurring.day_of_week == day.weekday():
            local = _subtract(local, recurring.start, recurring.end)

    tz = get_timezone(config.timezone)
    windows = []
    for start, end in sorted(local):
        # Resolve wall-clock times in the contractor's zone before any arithmetic
        start_utc = datetime.combine(day, start, tzinfo=tz).astimezone(timezone.utc)
        end_utc = datetime.combine(day, end, tzinfo=tz).astimezone(timezone.utc)
        if end_utc > start_utc:
            windows.append((start_utc, end_utc))
    return windows


def _iter_days(range_start: date, range_end: date) -> Iterable[date]:
    if range_end < range_start:
        raise ValidationError("end date must not be before start date", reason="invalid_range")
    if (range_end - range_start).days + 1 > settings.MAX_RANGE_DAYS:
        raise ValidationError(
            f"date range cannot exceed {settings.MAX_RANGE_DAYS} days",
            reason="range_too_large",
        )
    current = range_start
    while current <= range_end:
        yield current
        current += timedelta(days=1)


def _build_day_slots(
    config: ScheduleConfig,
    block_minutes: int,
    busy: Sequence[BusyInterval],
    day: date,
    now: datetime,
    step_minutes: int,
) -> list[Slot]:
    """Build every candidate slot for one accepted day."""
    slots = []
    block = timedelta(minutes=block_minutes)
    step = timedelta(minutes=step_minutes)
    notice_cutoff = now + timedelta(hours=config.minimum_notice_hours)

    for window_start, window_end in bookable_windows(config, day):
        current = window_start
        while current + block <= window_end:
            end = current + block
            reason = None
            if find_conflict(current, end, config.buffer_minutes, busy, config.buffer_mode):
                reason = CONFLICT
            elif current < notice_cutoff:
                reason = MINIMUM_NOTICE
            slots.append(Slot(start=current, end=end, available=reason is None, reason=reason))
            current += step
    return slots


# =============================================================================
# Public API
# =============================================================================

def compute_availability(
    config: ScheduleConfig,
    service: ServiceDefinition,
    appointments: Sequence[BusyInterval],
    range_start: date,
    range_end: date,
    now: datetime,
    step_minutes: int | None = None,
) -> list[Slot]:
    """
    Compute candidate slots for every local calendar day in [range_start, range_end].

    Rejected days contribute no slots. Unavailable candidates are included with
    a reason; callers usually filter on `available`.
    """
    step = step_minutes or settings.SLOT_STEP_MINUTES
    if step <= 0:
        raise ValidationError("step must be positive", reason="invalid_step")
    if service.block_minutes <= 0:
        raise ValidationError("service block length must be positive", reason="invalid_service")

    slots: list[Slot] = []
    for day in _iter_days(range_start, range_end):
        if day_rejection(config, day, now):
            continue
        slots.extend(
            _build_day_slots(config, service.block_minutes, appointments, day, now, step)
        )
    return slots


def summarize_days(
    config: ScheduleConfig,
    block_minutes: int,
    appointments: Sequence[BusyInterval],
    range_start: date,
    range_end: date,
    now: datetime,
    step_minutes: int | None = None,
) -> list[DaySummary]:
    """Per-day availability summary over a date range."""
    step = step_minutes or settings.SLOT_STEP_MINUTES
    summaries = []
    for day in _iter_days(range_start, range_end):
        reason = day_rejection(config, day, now)
        if reason:
            summaries.append(DaySummary(day, False, reason, 0, None, None))
            continue
        available = [
            slot for slot in _build_day_slots(config, block_minutes, appointments, day, now, step)
            if slot.available
        ]
        if not available:
            summaries.append(DaySummary(day, False, "fully_booked", 0, None, None))
            continue
        summaries.append(
            DaySummary(
                date=day,
                available=True,
                reason=None,
                available_slots=len(available),
                first_available=available[0].start,
                last_available=available[-1].start,
            )
        )
    return summaries


def validate_requested_start(
    config: ScheduleConfig,
    service: ServiceDefinition,
    appointments: Sequence[BusyInterval],
    start: datetime,
    now: datetime,
    step_minutes: int | None = None,
) -> datetime:
    """
    Check a requested start against the same rules the calculator applies.

    Returns the computed end. Raises HorizonViolationError, NoticeViolationError
    or SlotUnavailableError naming the rule that failed.
    """
    step = timedelta(minutes=step_minutes or settings.SLOT_STEP_MINUTES)
    block = timedelta(minutes=service.block_minutes)
    start = start.astimezone(timezone.utc)
    end = start + block
    day = start.astimezone(get_timezone(config.timezone)).date()

    reason = day_rejection(config, day, now)
    if reason in (BEFORE_TODAY, BEYOND_HORIZON):
        raise HorizonViolationError(
            f"Requested start is outside the {config.advance_booking_days}-day booking window",
            reason=reason,
        )
    if reason:
        raise SlotUnavailableError(f"Requested day is unavailable ({reason})", reason=reason)
    if start < now:
        raise HorizonViolationError("Requested start is in the past", reason="in_past")

    windows = bookable_windows(config, day)
    if not any(
        window_start <= start and end <= window_end and (start - window_start) % step == timedelta(0)
        for window_start, window_end in windows
    ):
        if any(window_start <= start < window_end for window_start, window_end in windows):
            reason = "not_on_slot_grid" if end <= _containing_end(windows, start) else "exceeds_window"
        elif _in_recurring_window(config, start):
            reason = "recurring_unavailable"
        else:
            reason = "outside_working_hours"
        raise SlotUnavailableError(f"Requested start is not a bookable slot ({reason})", reason=reason)

    if start < now + timedelta(hours=config.minimum_notice_hours):
        raise NoticeViolationError(
            f"Bookings require at least {config.minimum_notice_hours} hours notice",
            reason=MINIMUM_NOTICE,
        )

    if find_conflict(start, end, config.buffer_minutes, appointments, config.buffer_mode):
        raise SlotUnavailableError("Selected time is no longer available", reason=CONFLICT)

    return end


def _containing_end(windows: list[tuple[datetime, datetime]], start: datetime) -> datetime:
    for window_start, window_end in windows:
        if window_start <= start < window_end:
            return window_end
    return start


def _in_recurring_window(config: ScheduleConfig, start: datetime) -> bool:
    local = start.astimezone(get_timezone(config.timezone))
    return any(
        window.day_of_week == local.weekday() and window.start <= local.time() < window.end
        for window in config.recurring_unavailable
    )
