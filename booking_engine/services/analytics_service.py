"""Scheduling analytics - read-only rollups over the appointment ledger.

Provides booking counts by status, utilization against enabled working
hours, revenue figures, a per-service breakdown, and a time series bucketed
by day, week, month, quarter or year in the contractor timezone.
"""
from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from booking_engine.db.enums import AppointmentStatus
from booking_engine.db.models import Appointment, ScheduleService
from booking_engine.services import schedule_service
from booking_engine.services.availability_service import (
    ScheduleConfig,
    bookable_windows,
    get_timezone,
)
from booking_engine.services.errors import ValidationError

MAX_ANALYTICS_DAYS = 366

PERIODS = ("day", "week", "month", "quarter", "year")
DEFAULT_PERIOD = "month"

# Statuses whose block counts as utilized time
UTILIZED_STATUSES = (AppointmentStatus.CONFIRMED.value, AppointmentStatus.COMPLETED.value)
PROJECTED_STATUSES = (AppointmentStatus.REQUESTED.value, AppointmentStatus.CONFIRMED.value)


def _empty_summary(
    contractor_id: UUID, date_start: date, date_end: date, period: str = DEFAULT_PERIOD
) -> dict[str, Any]:
    return {
        "contractor_id": contractor_id,
        "start_date": date_start,
        "end_date": date_end,
        "period": period,
        "total_appointments": 0,
        "requested_count": 0,
        "confirmed_count": 0,
        "completed_count": 0,
        "cancelled_count": 0,
        "no_show_count": 0,
        "booked_minutes": 0,
        "available_minutes": 0,
        "utilization_ratio": 0.0,
        "total_revenue": Decimal("0.00"),
        "projected_revenue": Decimal("0.00"),
        "average_booking_value": Decimal("0.00"),
        "cancellation_rate": 0.0,
        "repeat_client_count": 0,
        "service_breakdown": [],
        "time_series": [],
        "revenue_by_month": {},
    }


def enabled_working_minutes(config: ScheduleConfig, date_start: date, date_end: date) -> int:
    """Working minutes over a date range, minus blackouts and recurring windows."""
    total = 0
    current = date_start
    while current <= date_end:
        window = config.working_hours[current.weekday()]
        if window.enabled and current not in config.blackout_dates:
            for start, end in bookable_windows(config, current):
                total += int((end - start).total_seconds() // 60)
        current += timedelta(days=1)
    return total


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    return day.replace(year=day.year + month_index // 12, month=month_index % 12 + 1, day=1)


def _bucket_start(day: date, period: str) -> date:
    if period == "day":
        return day
    if period == "week":
        return day - timedelta(days=day.weekday())
    if period == "month":
        return day.replace(day=1)
    if period == "quarter":
        return day.replace(month=3 * ((day.month - 1) // 3) + 1, day=1)
    return day.replace(month=1, day=1)


def _next_bucket(start: date, period: str) -> date:
    if period == "day":
        return start + timedelta(days=1)
    if period == "week":
        return start + timedelta(days=7)
    if period == "month":
        return _add_months(start, 1)
    if period == "quarter":
        return _add_months(start, 3)
    return start.replace(year=start.year + 1)


def _bucket_label(start: date, period: str) -> str:
    if period == "day":
        return start.isoformat()
    if period == "week":
        year, week, _ = start.isocalendar()
        return f"{year}-W{week:02d}"
    if period == "month":
        return f"{start.year}-{start.month:02d}"
    if period == "quarter":
        return f"{start.year}-Q{(start.month - 1) // 3 + 1}"
    return str(start.year)


def period_buckets(date_start: date, date_end: date, period: str) -> list[tuple[str, date, date]]:
    """
    Calendar buckets covering [date_start, date_end], clipped to the range.

    Weeks start on Monday. Returns (label, first day, last day) per bucket.
    """
    if period not in PERIODS:
        raise ValidationError(f"Unknown analytics period: {period}", reason="invalid_period")
    buckets = []
    current = _bucket_start(date_start, period)
    while current <= date_end:
        following = _next_bucket(current, period)
        buckets.append((
            _bucket_label(current, period),
            max(current, date_start),
            min(following - timedelta(days=1), date_end),
        ))
        current = following
    return buckets


def _time_series(
    appointments: list[Appointment],
    buckets: list[tuple[str, date, date]],
    tz,
) -> list[dict[str, Any]]:
    """Bookings, completions, cancellations and completed revenue per bucket."""
    series = [
        {
            "label": label,
            "start_date": first,
            "end_date": last,
            "bookings": 0,
            "completed": 0,
            "cancelled": 0,
            "revenue": Decimal("0.00"),
        }
        for label, first, last in buckets
    ]
    for appt in appointments:
        local_day = appt.scheduled_start.astimezone(tz).date()
        for entry in series:
            if entry["start_date"] <= local_day <= entry["end_date"]:
                entry["bookings"] += 1
                if appt.status == AppointmentStatus.COMPLETED.value:
                    entry["completed"] += 1
                    entry["revenue"] += Decimal(appt.total_price)
                elif appt.status == AppointmentStatus.CANCELLED.value:
                    entry["cancelled"] += 1
                break
    for entry in series:
        entry["revenue"] = entry["revenue"].quantize(Decimal("0.01"))
    return series


def _revenue_by_month(appointments: list[Appointment], tz) -> dict[str, Decimal]:
    """Completed revenue keyed by contractor-local YYYY-MM."""
    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for appt in appointments:
        if appt.status == AppointmentStatus.COMPLETED.value:
            month = appt.scheduled_start.astimezone(tz).strftime("%Y-%m")
            totals[month] += Decimal(appt.total_price)
    return {month: totals[month].quantize(Decimal("0.01")) for month in sorted(totals)}


def summarize(
    db: Session,
    contractor_id: UUID,
    date_start: date,
    date_end: date,
    period: str = DEFAULT_PERIOD,
) -> dict[str, Any]:
    """
    Summarize a contractor's ledger over [date_start, date_end] (contractor local days).

    utilization_ratio = CONFIRMED/COMPLETED block minutes / enabled working minutes.
    Returns zeros for an empty range instead of dividing by zero. `period`
    picks the bucket size of the time series.
    """
    if period not in PERIODS:
        raise ValidationError(f"Unknown analytics period: {period}", reason="invalid_period")
    if date_end < date_start:
        return _empty_summary(contractor_id, date_start, date_end, period)
    if (date_end - date_start).days + 1 > MAX_ANALYTICS_DAYS:
        raise ValidationError(
            f"Analytics range cannot exceed {MAX_ANALYTICS_DAYS} days", reason="range_too_large"
        )

    schedule = schedule_service.get_schedule(db, contractor_id)
    config = schedule_service.build_config_snapshot(schedule)
    tz = get_timezone(config.timezone)
    range_start = datetime.combine(date_start, time.min, tzinfo=tz).astimezone(timezone.utc)
    range_end = datetime.combine(
        date_end + timedelta(days=1), time.min, tzinfo=tz
    ).astimezone(timezone.utc)

    appointments = db.query(Appointment).filter(
        Appointment.contractor_id == contractor_id,
        Appointment.scheduled_start >= range_start,
        Appointment.scheduled_start < range_end,
    ).all()

    summary = _empty_summary(contractor_id, date_start, date_end, period)
    available_minutes = enabled_working_minutes(config, date_start, date_end)
    summary["available_minutes"] = available_minutes
    summary["time_series"] = _time_series(
        appointments, period_buckets(date_start, date_end, period), tz
    )
    if not appointments:
        return summary

    status_counts = Counter(appt.status for appt in appointments)
    booked_minutes = sum(appt.block_minutes for appt in appointments if appt.status in UTILIZED_STATUSES)
    completed = [appt for appt in appointments if appt.status == AppointmentStatus.COMPLETED.value]
    total_revenue = sum((Decimal(appt.total_price) for appt in completed), Decimal("0.00"))
    projected = sum(
        (Decimal(appt.total_price) for appt in appointments if appt.status in PROJECTED_STATUSES),
        Decimal("0.00"),
    )
    client_counts = Counter(appt.client_email for appt in appointments)

    total = len(appointments)
    summary.update(
        total_appointments=total,
        requested_count=status_counts[AppointmentStatus.REQUESTED.value],
        confirmed_count=status_counts[AppointmentStatus.CONFIRMED.value],
        completed_count=status_counts[AppointmentStatus.COMPLETED.value],
        cancelled_count=status_counts[AppointmentStatus.CANCELLED.value],
        no_show_count=status_counts[AppointmentStatus.NO_SHOW.value],
        booked_minutes=booked_minutes,
        utilization_ratio=round(booked_minutes / available_minutes, 4) if available_minutes else 0.0,
        total_revenue=total_revenue.quantize(Decimal("0.01")),
        projected_revenue=projected.quantize(Decimal("0.01")),
        average_booking_value=(
            (total_revenue / len(completed)).quantize(Decimal("0.01"))
            if completed else Decimal("0.00")
        ),
        cancellation_rate=round(status_counts[AppointmentStatus.CANCELLED.value] / total, 4),
        repeat_client_count=sum(1 for count in client_counts.values() if count > 1),
        service_breakdown=_service_breakdown(db, appointments),
        revenue_by_month=_revenue_by_month(appointments, tz),
    )
    return summary


def _service_breakdown(db: Session, appointments: list[Appointment]) -> list[dict[str, Any]]:
    """Per-service bookings, completions, cancellations and completed revenue."""
    stats: dict[UUID, dict[str, Any]] = defaultdict(
        lambda: {"bookings": 0, "completed": 0, "cancelled": 0, "revenue": Decimal("0.00")}
    )
    for appt in appointments:
        entry = stats[appt.service_id]
        entry["bookings"] += 1
        if appt.status == AppointmentStatus.COMPLETED.value:
            entry["completed"] += 1
            entry["revenue"] += Decimal(appt.total_price)
        elif appt.status == AppointmentStatus.CANCELLED.value:
            entry["cancelled"] += 1

    names = dict(
        db.query(ScheduleService.id, ScheduleService.name).filter(
            ScheduleService.id.in_(list(stats)),
        ).all()
    )
    breakdown = [
        {
            "service_id": service_id,
            "service_name": names.get(service_id, "Unknown"),
            "bookings": entry["bookings"],
            "completed": entry["completed"],
            "cancelled": entry["cancelled"],
            "revenue": entry["revenue"].quantize(Decimal("0.01")),
        }
        for service_id, entry in stats.items()
    ]
    return sorted(breakdown, key=lambda item: (-item["bookings"], item["service_name"]))
