"""Tests for scheduling analytics."""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from booking_engine.db.enums import ActorRole
from booking_engine.services import analytics_service, appointment_service, schedule_service
from booking_engine.services.appointment_service import Actor, ClientInfo
from booking_engine.services.errors import ValidationError

LA = ZoneInfo("America/Los_Angeles")
TUESDAY = date(2026, 3, 3)


def local(day: date, hour: int) -> datetime:
    return datetime.combine(day, time(hour), tzinfo=LA).astimezone(timezone.utc)


@pytest.fixture
def booked(db, contractor_id, service, now):
    """Three bookings on Tuesday: one completed, one cancelled, one requested."""
    def _book(hour, email):
        return appointment_service.book(
            db,
            contractor_id=contractor_id,
            service_id=service.id,
            requested_start=local(TUESDAY, hour),
            client=ClientInfo(name="Client", email=email),
            actor=Actor(id=uuid.uuid4(), role=ActorRole.CLIENT),
            now=now,
        )

    completed = _book(9, "repeat@example.com")
    cancelled = _book(11, "repeat@example.com")
    requested = _book(13, "once@example.com")
    appointment_service.complete(db, completed.id, now=now)
    appointment_service.cancel(db, cancelled.id, now=now)
    return completed, cancelled, requested


def test_summary_counts_and_revenue(db, contractor_id, service, booked):
    summary = analytics_service.summarize(db, contractor_id, TUESDAY, TUESDAY)

    assert summary["total_appointments"] == 3
    assert summary["completed_count"] == 1
    assert summary["cancelled_count"] == 1
    assert summary["requested_count"] == 1
    assert summary["total_revenue"] == Decimal("100.00")
    assert summary["projected_revenue"] == Decimal("100.00")
    assert summary["average_booking_value"] == Decimal("100.00")
    assert summary["cancellation_rate"] == pytest.approx(0.3333, abs=1e-4)
    assert summary["repeat_client_count"] == 1

    breakdown = summary["service_breakdown"]
    assert breakdown == [
        {
            "service_id": service.id,
            "service_name": "Standard Cleaning",
            "bookings": 3,
            "completed": 1,
            "cancelled": 1,
            "revenue": Decimal("100.00"),
        }
    ]
    assert summary["revenue_by_month"] == {"2026-03": Decimal("100.00")}


def test_utilization_against_working_minutes(db, contractor_id, booked):
    summary = analytics_service.summarize(db, contractor_id, TUESDAY, TUESDAY)

    assert summary["available_minutes"] == 8 * 60
    assert summary["booked_minutes"] == 60  # only the completed one counts
    assert summary["utilization_ratio"] == round(60 / 480, 4)


def test_working_minutes_skip_blackouts_and_recurring(db, contractor_id, schedule):
    schedule_service.update_schedule(
        db,
        contractor_id,
        blackout_dates=[{"date": TUESDAY}],
        recurring_unavailable=[{"day_of_week": 2, "start_time": "12:00", "end_time": "13:00"}],
    )
    config = schedule_service.build_config_snapshot(schedule_service.get_schedule(db, contractor_id))

    # Mon full, Tue blackout, Wed minus lunch, Thu, Fri, weekend disabled
    minutes = analytics_service.enabled_working_minutes(config, date(2026, 3, 2), date(2026, 3, 8))
    assert minutes == 480 + 0 + 420 + 480 + 480


def test_empty_range_has_zero_utilization(db, contractor_id, schedule):
    saturday = date(2026, 3, 7)
    summary = analytics_service.summarize(db, contractor_id, saturday, saturday)

    assert summary["available_minutes"] == 0
    assert summary["utilization_ratio"] == 0.0
    assert summary["total_appointments"] == 0


def test_inverted_range_returns_zero_summary(db, contractor_id, schedule):
    summary = analytics_service.summarize(db, contractor_id, TUESDAY, TUESDAY - timedelta(days=1))
    assert summary["total_appointments"] == 0
    assert summary["service_breakdown"] == []


def test_range_limit(db, contractor_id, schedule):
    with pytest.raises(ValidationError):
        analytics_service.summarize(db, contractor_id, TUESDAY, TUESDAY + timedelta(days=400))


# =============================================================================
# Time series
# =============================================================================

@pytest.mark.parametrize(
    "period,start,end,expected",
    [
        (
            "week", date(2026, 3, 4), date(2026, 3, 17),
            [
                ("2026-W10", date(2026, 3, 4), date(2026, 3, 8)),
                ("2026-W11", date(2026, 3, 9), date(2026, 3, 15)),
                ("2026-W12", date(2026, 3, 16), date(2026, 3, 17)),
            ],
        ),
        (
            "month", date(2026, 1, 15), date(2026, 3, 10),
            [
                ("2026-01", date(2026, 1, 15), date(2026, 1, 31)),
                ("2026-02", date(2026, 2, 1), date(2026, 2, 28)),
                ("2026-03", date(2026, 3, 1), date(2026, 3, 10)),
            ],
        ),
        (
            "quarter", date(2025, 12, 1), date(2026, 4, 2),
            [
                ("2025-Q4", date(2025, 12, 1), date(2025, 12, 31)),
                ("2026-Q1", date(2026, 1, 1), date(2026, 3, 31)),
                ("2026-Q2", date(2026, 4, 1), date(2026, 4, 2)),
            ],
        ),
        (
            "year", date(2025, 12, 31), date(2026, 1, 1),
            [
                ("2025", date(2025, 12, 31), date(2025, 12, 31)),
                ("2026", date(2026, 1, 1), date(2026, 1, 1)),
            ],
        ),
        ("day", TUESDAY, TUESDAY, [("2026-03-03", TUESDAY, TUESDAY)]),
    ],
)
def test_period_buckets_clip_to_range(period, start, end, expected):
    assert analytics_service.period_buckets(start, end, period) == expected


def test_unknown_period_rejected(db, contractor_id, schedule):
    with pytest.raises(ValidationError) as exc:
        analytics_service.summarize(db, contractor_id, TUESDAY, TUESDAY, period="fortnight")
    assert exc.value.reason == "invalid_period"


def test_weekly_time_series(db, contractor_id, booked):
    summary = analytics_service.summarize(
        db, contractor_id, date(2026, 3, 2), date(2026, 3, 15), period="week"
    )

    assert summary["period"] == "week"
    first, second = summary["time_series"]
    assert (first["label"], first["bookings"], first["completed"], first["cancelled"]) == ("2026-W10", 3, 1, 1)
    assert first["revenue"] == Decimal("100.00")
    assert (second["label"], second["bookings"], second["revenue"]) == ("2026-W11", 0, Decimal("0.00"))


def test_time_series_uses_contractor_local_day(db, contractor_id, service, now):
    every_day = [
        {"day_of_week": day, "start_time": "09:00", "end_time": "22:00"} for day in range(7)
    ]
    schedule_service.update_schedule(db, contractor_id, working_hours=every_day)
    # 20:00 PDT on March 31 is already April 1 in UTC
    evening = local(date(2026, 3, 31), 20)
    assert evening.date() == date(2026, 4, 1)
    appt = appointment_service.book(
        db,
        contractor_id=contractor_id,
        service_id=service.id,
        requested_start=evening,
        client=ClientInfo(name="Late Client", email="late@example.com"),
        now=now,
    )
    appointment_service.complete(db, appt.id, now=now)

    summary = analytics_service.summarize(db, contractor_id, date(2026, 3, 1), date(2026, 4, 30))

    march, april = summary["time_series"]
    assert (march["label"], march["completed"], march["revenue"]) == ("2026-03", 1, Decimal("100.00"))
    assert (april["label"], april["bookings"]) == ("2026-04", 0)
    assert summary["revenue_by_month"] == {"2026-03": Decimal("100.00")}


def test_empty_range_still_has_buckets(db, contractor_id, schedule):
    summary = analytics_service.summarize(db, contractor_id, TUESDAY, TUESDAY + timedelta(days=1), period="day")
    assert [bucket["bookings"] for bucket in summary["time_series"]] == [0, 0]
    assert summary["revenue_by_month"] == {}
