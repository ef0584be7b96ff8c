"""
Concurrent booking tests.

Each worker uses its own session (its own connection), released together
through a barrier so their pre-checks race against each other's commits.
"""

import random
import threading
import uuid
from datetime import date, datetime, time, timedelta, timezone
from itertools import combinations
from zoneinfo import ZoneInfo

from booking_engine.db.enums import ActorRole, BufferMode
from booking_engine.db.session import SessionLocal
from booking_engine.services import appointment_service
from booking_engine.services.appointment_service import Actor, ClientInfo
from booking_engine.services.availability_service import BusyInterval, intervals_conflict
from booking_engine.services.errors import SchedulingError, SlotUnavailableError

LA = ZoneInfo("America/Los_Angeles")
TUESDAY = date(2026, 3, 3)


def local(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=LA).astimezone(timezone.utc)


def run_concurrently(contractor_id, service_id, starts, now):
    """Book each start from its own thread; returns (successes, errors)."""
    barrier = threading.Barrier(len(starts))
    successes, errors = [], []
    guard = threading.Lock()

    def worker(index, start):
        session = SessionLocal()
        try:
            barrier.wait()
            appt = appointment_service.book(
                session,
                contractor_id=contractor_id,
                service_id=service_id,
                requested_start=start,
                client=ClientInfo(name=f"Client {index}", email=f"client{index}@example.com"),
                actor=Actor(id=uuid.uuid4(), role=ActorRole.CLIENT),
                now=now,
            )
            with guard:
                successes.append(appt.id)
        except SchedulingError as exc:
            with guard:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i, start)) for i, start in enumerate(starts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return successes, errors


def test_identical_slot_exactly_one_wins(db, contractor_id, service, now):
    start = local(TUESDAY, 10)
    successes, errors = run_concurrently(contractor_id, service.id, [start] * 8, now)

    assert len(successes) == 1
    assert len(errors) == 7
    assert all(isinstance(exc, SlotUnavailableError) for exc in errors)
    assert all(exc.reason == "conflict" for exc in errors)

    booked = appointment_service.list_appointments(db, contractor_id)
    assert [appt.id for appt in booked] == successes


def test_randomized_bookings_never_overlap(db, contractor_id, service, now):
    rng = random.Random(20260303)
    grid = [local(TUESDAY, 9) + timedelta(minutes=15 * step) for step in range(29)]
    starts = [rng.choice(grid) for _ in range(16)]

    successes, errors = run_concurrently(contractor_id, service.id, starts, now)

    assert len(successes) + len(errors) == len(starts)
    assert successes
    booked = appointment_service.list_appointments(db, contractor_id)
    assert len(booked) == len(successes)
    for first, second in combinations(booked, 2):
        existing = BusyInterval(first.scheduled_start, first.scheduled_end, first.buffer_minutes)
        assert not intervals_conflict(
            second.scheduled_start,
            second.scheduled_end,
            second.buffer_minutes,
            existing,
            BufferMode.SYMMETRIC,
        )
