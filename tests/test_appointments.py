"""
Tests for the appointment ledger.

Coverage:
- Booking (status, deposit, snapshots, history)
- Rule violations and commit-time conflicts
- Cancellation through the policy engine
- Status transitions and authorization
- Payment / notification isolation
- Storage retry behaviour
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from booking_engine.db.enums import ActorRole, AppointmentStatus, PaymentStatus
from booking_engine.db.models import AppointmentStatusChange
from booking_engine.services import appointment_service, schedule_service
from booking_engine.services.appointment_service import Actor, ClientInfo
from booking_engine.services.errors import (
    ConflictError,
    HorizonViolationError,
    InvalidTransitionError,
    NoticeViolationError,
    PolicyViolationError,
    ServiceUnavailableError,
    SlotUnavailableError,
    ValidationError,
)
from booking_engine.services.notifications import NotificationEvent
from booking_engine.services.payments import PaymentGatewayError

LA = ZoneInfo("America/Los_Angeles")
TUESDAY = date(2026, 3, 3)
CLIENT = ClientInfo(name="Jane Client", email="Jane@Example.com", phone="555-0100")


def local(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=LA).astimezone(timezone.utc)


@pytest.fixture
def client_actor_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def book(db, contractor_id, service, now, client_actor_id):
    """Book for the default client; keyword overrides pass through."""

    def _book(start=None, **kwargs):
        kwargs.setdefault("actor", Actor(id=client_actor_id, role=ActorRole.CLIENT))
        kwargs.setdefault("now", now)
        return appointment_service.book(
            db,
            contractor_id=contractor_id,
            service_id=kwargs.pop("service_id", service.id),
            requested_start=start or local(TUESDAY, 10),
            client=kwargs.pop("client", CLIENT),
            **kwargs,
        )

    return _book


def history(db, appointment_id) -> list[AppointmentStatusChange]:
    return appointment_service.get_status_history(db, appointment_id)


# =============================================================================
# Booking
# =============================================================================

class TestBooking:
    def test_book_creates_requested_appointment(self, db, book, service, client_actor_id):
        appt = book()

        assert appt.status == AppointmentStatus.REQUESTED.value
        assert appt.scheduled_start == local(TUESDAY, 10)
        assert appt.scheduled_end == local(TUESDAY, 11)
        assert appt.block_minutes == 60
        assert appt.buffer_minutes == 15
        assert appt.total_price == Decimal("100.00")
        assert appt.client_id == client_actor_id
        assert appt.client_email == "jane@example.com"
        assert appt.payment_status == PaymentStatus.NOT_REQUIRED.value
        assert appt.confirmed_at is None

        changes = history(db, appt.id)
        assert [(c.from_status, c.to_status, c.reason) for c in changes] == [(None, "requested", "booked")]

    def test_booked_slot_leaves_availability(self, db, book, contractor_id, service, now):
        book()
        _, slots = appointment_service.get_available_slots(db, contractor_id, service.id, TUESDAY, now=now)
        by_start = {slot.start: slot for slot in slots}

        assert not by_start[local(TUESDAY, 10)].available
        assert by_start[local(TUESDAY, 10)].reason == "conflict"
        assert by_start[local(TUESDAY, 11, 30)].available

    def test_naive_start_is_contractor_local(self, book):
        appt = book(start=datetime(2026, 3, 3, 10, 0))
        assert appt.scheduled_start == local(TUESDAY, 10)

    def test_auto_confirm(self, db, book, contractor_id, notifier):
        schedule_service.update_schedule(db, contractor_id, auto_confirm_bookings=True)
        appt = book(notifier=notifier)

        assert appt.status == AppointmentStatus.CONFIRMED.value
        assert appt.confirmed_at is not None
        assert notifier.names == [NotificationEvent.BOOKED.value, NotificationEvent.CONFIRMED.value]

    def test_deposit_from_schedule_percentage(self, db, book, contractor_id, gateway):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True, deposit_percentage=25)
        appt = book(payment_gateway=gateway)

        assert appt.deposit_required is True
        assert appt.deposit_amount == Decimal("25.00")
        assert appt.payment_status == PaymentStatus.PENDING.value
        assert appt.payment_reference == "pi_test_123"
        assert gateway.calls == [(appt.id, Decimal("25.00"), "usd")]

    def test_service_fixed_deposit_capped_at_price(self, db, book, contractor_id):
        service = schedule_service.create_service(
            db, contractor_id, name="Quick Fix", duration_minutes=30,
            price=Decimal("40.00"), deposit_required=True, deposit_amount=Decimal("60.00"),
        )
        appt = book(service_id=service.id)
        assert appt.deposit_amount == Decimal("40.00")

    def test_no_gateway_call_without_deposit(self, book, gateway):
        book(payment_gateway=gateway)
        assert gateway.calls == []


class TestBookingRejections:
    def test_overlap_rejected(self, book):
        book()
        with pytest.raises(SlotUnavailableError) as exc:
            book(start=local(TUESDAY, 10, 30))
        assert exc.value.reason == "conflict"

    def test_buffer_respected(self, book):
        book()
        with pytest.raises(SlotUnavailableError):
            book(start=local(TUESDAY, 11, 15))
        assert book(start=local(TUESDAY, 11, 30)).status == AppointmentStatus.REQUESTED.value

    def test_minimum_notice(self, db, book, contractor_id):
        schedule_service.update_schedule(db, contractor_id, minimum_notice_hours=48)
        with pytest.raises(NoticeViolationError):
            book()

    def test_beyond_horizon(self, book):
        with pytest.raises(HorizonViolationError):
            book(start=local(date(2026, 4, 13), 10))

    def test_blackout(self, db, book, contractor_id):
        schedule_service.update_schedule(db, contractor_id, blackout_dates=[{"date": TUESDAY}])
        with pytest.raises(SlotUnavailableError) as exc:
            book()
        assert exc.value.reason == "blackout"

    def test_inactive_service(self, db, book, contractor_id, service):
        schedule_service.deactivate_service(db, contractor_id, service.id)
        with pytest.raises(ValidationError) as exc:
            book()
        assert exc.value.reason == "service_inactive"

    def test_missing_client_email(self, book):
        with pytest.raises(ValidationError):
            book(client=ClientInfo(name="No Email", email=""))

    def test_contractor_cannot_book_for_another_contractor(self, book):
        with pytest.raises(PolicyViolationError):
            book(actor=Actor(id=uuid.uuid4(), role=ActorRole.CONTRACTOR))

    def test_lost_race_raises_conflict(self, db, book, contractor_id, monkeypatch):
        book()
        real = appointment_service.get_busy_intervals
        calls = []

        def stale_then_real(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                return []  # pre-check sees the ledger before the first commit
            return real(*args, **kwargs)

        monkeypatch.setattr(appointment_service, "get_busy_intervals", stale_then_real)
        with pytest.raises(ConflictError):
            book()

        assert len(appointment_service.list_appointments(db, contractor_id)) == 1


# =============================================================================
# Cancellation
# =============================================================================

class TestCancellation:
    def test_client_cancels_before_deadline(self, db, book, client_actor_id, now, notifier, service, contractor_id):
        appt = book()
        result = appointment_service.cancel(
            db, appt.id, actor=Actor(id=client_actor_id, role=ActorRole.CLIENT),
            reason="Plans changed", now=now, notifier=notifier,
        )

        assert result.decision.allowed
        assert result.decision.refund_reason == "cancelled_before_deadline"
        assert result.appointment.status == AppointmentStatus.CANCELLED.value
        assert result.appointment.cancelled_by == client_actor_id
        assert result.appointment.cancellation_reason == "Plans changed"
        assert notifier.names == [NotificationEvent.CANCELLED.value, NotificationEvent.REFUND_DECIDED.value]

        # Slot is free again
        rebooked = book()
        assert rebooked.id != appt.id

    def test_denied_cancellation_leaves_appointment_untouched(self, db, book, contractor_id, client_actor_id, now):
        schedule_service.update_schedule(db, contractor_id, allow_cancellation=False)
        appt = book()

        with pytest.raises(PolicyViolationError) as exc:
            appointment_service.cancel(
                db, appt.id, actor=Actor(id=client_actor_id, role=ActorRole.CLIENT), now=now
            )

        assert exc.value.reason == "policy_disallows_cancellation"
        db.expire_all()
        reloaded = appointment_service.get_appointment(db, appt.id)
        assert reloaded.status == AppointmentStatus.REQUESTED.value
        assert reloaded.cancelled_at is None
        assert len(history(db, appt.id)) == 1

    @pytest.mark.parametrize("role", [ActorRole.CONTRACTOR, ActorRole.ADMIN])
    def test_policy_applies_to_contractor_and_admin(self, db, book, contractor_id, now, role):
        schedule_service.update_schedule(db, contractor_id, allow_cancellation=False)
        appt = book()
        actor_id = contractor_id if role == ActorRole.CONTRACTOR else uuid.uuid4()

        with pytest.raises(PolicyViolationError) as exc:
            appointment_service.cancel(db, appt.id, actor=Actor(id=actor_id, role=role), now=now)

        assert exc.value.reason == "policy_disallows_cancellation"
        db.expire_all()
        assert appointment_service.get_appointment(db, appt.id).status == AppointmentStatus.REQUESTED.value

    def test_contractor_late_cancellation_uses_refund_mode(self, db, book, contractor_id):
        schedule_service.update_schedule(
            db, contractor_id, requires_deposit=True, deposit_percentage=25, refund_mode="none"
        )
        appt = book()
        appointment_service.record_deposit_payment(db, appt.id, Decimal("25.00"))

        result = appointment_service.cancel(
            db, appt.id, actor=Actor(id=contractor_id, role=ActorRole.CONTRACTOR),
            now=appt.scheduled_start - timedelta(hours=2),
        )

        assert result.decision.refund_amount == Decimal("0.00")
        assert result.decision.refund_reason == "late_cancellation_no_refund"
        assert result.appointment.status == AppointmentStatus.CANCELLED.value
        assert result.appointment.payment_status == PaymentStatus.DEPOSIT_PAID.value

    def test_late_cancellation_partial_refund(self, db, book, contractor_id, client_actor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True, deposit_percentage=25)
        appt = book()
        appointment_service.record_deposit_payment(db, appt.id, Decimal("25.00"), reference="pay_1")

        result = appointment_service.cancel(
            db, appt.id, actor=Actor(id=client_actor_id, role=ActorRole.CLIENT),
            now=appt.scheduled_start - timedelta(hours=2),
        )

        assert result.decision.is_late
        assert result.decision.refund_amount == Decimal("12.50")
        assert result.appointment.refund_amount == Decimal("12.50")
        assert result.appointment.refund_reason == "late_cancellation_partial_refund"
        assert result.appointment.payment_status == PaymentStatus.REFUND_PENDING.value

    def test_other_client_cannot_cancel(self, db, book, now):
        appt = book()
        with pytest.raises(PolicyViolationError) as exc:
            appointment_service.cancel(db, appt.id, actor=Actor(id=uuid.uuid4(), role=ActorRole.CLIENT), now=now)
        assert exc.value.reason == "not_appointment_client"

    def test_cannot_cancel_twice(self, db, book, now):
        appt = book()
        appointment_service.cancel(db, appt.id, now=now)
        with pytest.raises(InvalidTransitionError):
            appointment_service.cancel(db, appt.id, now=now)


class TestCancellationPreview:
    def test_preview_matches_cancel_outcome(self, db, book, contractor_id, client_actor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True, deposit_percentage=25)
        appt = book()
        appointment_service.record_deposit_payment(db, appt.id, Decimal("25.00"))
        actor = Actor(id=client_actor_id, role=ActorRole.CLIENT)
        when = appt.scheduled_start - timedelta(hours=3)

        preview = appointment_service.preview_cancellation(db, appt.id, actor=actor, now=when)
        assert preview.can_cancel
        assert preview.hours_until_appointment == 3.0
        assert preview.policy.deadline_hours == 24
        assert preview.decision.is_late

        db.expire_all()
        assert appointment_service.get_appointment(db, appt.id).status == AppointmentStatus.REQUESTED.value
        assert len(history(db, appt.id)) == 1

        result = appointment_service.cancel(db, appt.id, actor=actor, now=when)
        assert result.decision == preview.decision
        assert result.decision.refund_amount == Decimal("12.50")

    def test_preview_when_policy_disallows(self, db, book, contractor_id, now):
        schedule_service.update_schedule(db, contractor_id, allow_cancellation=False)
        appt = book()
        preview = appointment_service.preview_cancellation(db, appt.id, now=now)

        assert not preview.can_cancel
        assert preview.decision.refund_reason == "policy_disallows_cancellation"

    def test_preview_of_cancelled_appointment(self, db, book, now):
        appt = book()
        appointment_service.cancel(db, appt.id, now=now)
        preview = appointment_service.preview_cancellation(db, appt.id, now=now)
        assert not preview.can_cancel

    def test_preview_hours_floor_at_zero(self, db, book):
        appt = book()
        preview = appointment_service.preview_cancellation(
            db, appt.id, now=appt.scheduled_start + timedelta(hours=1)
        )
        assert preview.hours_until_appointment == 0.0

    def test_other_client_cannot_preview(self, db, book, now):
        appt = book()
        with pytest.raises(PolicyViolationError):
            appointment_service.preview_cancellation(
                db, appt.id, actor=Actor(id=uuid.uuid4(), role=ActorRole.CLIENT), now=now
            )


# =============================================================================
# Status transitions
# =============================================================================

class TestTransitions:
    def test_confirm_then_complete(self, db, book, contractor_id, now, notifier):
        appt = book()
        contractor = Actor(id=contractor_id, role=ActorRole.CONTRACTOR)

        confirmed = appointment_service.confirm(db, appt.id, actor=contractor, now=now + timedelta(minutes=1), notifier=notifier)
        assert confirmed.status == AppointmentStatus.CONFIRMED.value
        assert confirmed.confirmed_at is not None

        completed = appointment_service.complete(db, appt.id, actor=contractor, now=now + timedelta(minutes=2), notifier=notifier)
        assert completed.status == AppointmentStatus.COMPLETED.value
        assert completed.completed_at is not None

        assert [c.to_status for c in history(db, appt.id)] == ["requested", "confirmed", "completed"]
        assert notifier.names == [NotificationEvent.CONFIRMED.value, NotificationEvent.COMPLETED.value]

    def test_complete_directly_from_requested(self, db, book, now):
        appt = book()
        assert appointment_service.complete(db, appt.id, now=now).status == AppointmentStatus.COMPLETED.value

    def test_no_show_requires_confirmed(self, db, book, now):
        appt = book()
        with pytest.raises(InvalidTransitionError):
            appointment_service.mark_no_show(db, appt.id, now=now)

        appointment_service.confirm(db, appt.id, now=now)
        assert appointment_service.mark_no_show(db, appt.id, reason="No answer", now=now).status == "no_show"

    @pytest.mark.parametrize("terminal", ["cancel", "complete"])
    def test_terminal_states_reject_transitions(self, db, book, now, terminal):
        appt = book()
        getattr(appointment_service, terminal)(db, appt.id, now=now)

        with pytest.raises(InvalidTransitionError):
            appointment_service.confirm(db, appt.id, now=now)
        with pytest.raises(InvalidTransitionError):
            appointment_service.complete(db, appt.id, now=now)

    def test_client_cannot_confirm(self, db, book, client_actor_id, now):
        appt = book()
        with pytest.raises(PolicyViolationError):
            appointment_service.confirm(db, appt.id, actor=Actor(id=client_actor_id, role=ActorRole.CLIENT), now=now)

    def test_confirm_does_not_release_slot(self, db, book, now):
        appt = book()
        appointment_service.confirm(db, appt.id, now=now)
        with pytest.raises(SlotUnavailableError):
            book()


# =============================================================================
# Collaborator isolation
# =============================================================================

class FailingGateway:
    def create_deposit_intent(self, appointment_id, amount, currency):
        raise PaymentGatewayError("card network down")


class FailingNotifier:
    def notify(self, event, payload):
        raise RuntimeError("webhook unreachable")


class TestCollaborators:
    def test_payment_failure_keeps_booking(self, db, book, contractor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True)
        appt = book(payment_gateway=FailingGateway())

        assert appt.status == AppointmentStatus.REQUESTED.value
        assert appt.payment_status == PaymentStatus.PENDING.value
        assert appt.payment_reference is None

    def test_deferred_deposit_intent(self, db, book, contractor_id, gateway):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True)
        appt = book()
        assert gateway.calls == []

        appointment_service.request_deposit_intent(appt.id, gateway)

        assert len(gateway.calls) == 1
        assert gateway.calls[0][0] == appt.id
        db.expire_all()
        assert appointment_service.get_appointment(db, appt.id).payment_reference == "pi_test_123"

    def test_deferred_deposit_intent_skips_cancelled(self, db, book, contractor_id, gateway, now):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True)
        appt = book()
        appointment_service.cancel(db, appt.id, now=now)

        appointment_service.request_deposit_intent(appt.id, gateway)
        assert gateway.calls == []

    def test_deferred_deposit_intent_failure_is_logged(self, db, book, contractor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True)
        appt = book()

        appointment_service.request_deposit_intent(appt.id, FailingGateway())

        db.expire_all()
        reloaded = appointment_service.get_appointment(db, appt.id)
        assert reloaded.payment_status == PaymentStatus.PENDING.value
        assert reloaded.payment_reference is None

    def test_notification_failure_is_swallowed(self, db, book, now):
        appt = book(notifier=FailingNotifier())
        assert appt.id is not None
        result = appointment_service.cancel(db, appt.id, now=now, notifier=FailingNotifier())
        assert result.appointment.status == AppointmentStatus.CANCELLED.value


# =============================================================================
# Payments
# =============================================================================

class TestDepositPayments:
    def test_deposit_then_balance(self, db, book, contractor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True, deposit_percentage=25)
        appt = book()

        paid = appointment_service.record_deposit_payment(db, appt.id, Decimal("25"), reference="pay_1")
        assert paid.deposit_paid is True
        assert paid.payment_status == PaymentStatus.DEPOSIT_PAID.value
        assert paid.payment_reference == "pay_1"
        assert paid.status == AppointmentStatus.REQUESTED.value

        settled = appointment_service.record_deposit_payment(db, appt.id, Decimal("75"))
        assert settled.amount_paid == Decimal("100.00")
        assert settled.payment_status == PaymentStatus.PAID.value

    def test_partial_deposit_stays_pending(self, db, book, contractor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True, deposit_percentage=25)
        appt = book()
        paid = appointment_service.record_deposit_payment(db, appt.id, Decimal("10"))
        assert paid.deposit_paid is False
        assert paid.payment_status == PaymentStatus.PENDING.value

    def test_rejects_non_positive_amount(self, db, book):
        appt = book()
        with pytest.raises(ValidationError):
            appointment_service.record_deposit_payment(db, appt.id, Decimal("0"))

    def test_rejects_cancelled_appointment(self, db, book, now):
        appt = book()
        appointment_service.cancel(db, appt.id, now=now)
        with pytest.raises(InvalidTransitionError) as exc:
            appointment_service.record_deposit_payment(db, appt.id, Decimal("10"))
        assert exc.value.reason == "appointment_cancelled"

    def test_refund_settlement(self, db, book, contractor_id, client_actor_id):
        schedule_service.update_schedule(db, contractor_id, requires_deposit=True, deposit_percentage=25)
        appt = book()
        appointment_service.record_deposit_payment(db, appt.id, Decimal("25.00"))
        appointment_service.cancel(
            db, appt.id, actor=Actor(id=client_actor_id, role=ActorRole.CLIENT),
            now=appt.scheduled_start - timedelta(days=2),
        )

        refunded = appointment_service.record_refund(db, appt.id, reference="re_1")
        assert refunded.payment_status == PaymentStatus.REFUNDED.value
        assert refunded.payment_reference == "re_1"
        assert refunded.refund_amount == Decimal("25.00")

        with pytest.raises(InvalidTransitionError) as exc:
            appointment_service.record_refund(db, appt.id)
        assert exc.value.reason == "no_refund_pending"

    def test_refund_settlement_requires_pending_refund(self, db, book):
        appt = book()
        with pytest.raises(InvalidTransitionError) as exc:
            appointment_service.record_refund(db, appt.id)
        assert exc.value.reason == "no_refund_pending"


# =============================================================================
# Storage retries
# =============================================================================

def _locked_error() -> OperationalError:
    return OperationalError("SELECT", {}, Exception("database is locked"))


class TestStorageRetries:
    def test_transient_failure_is_retried(self, db, book, monkeypatch):
        real = appointment_service._lock_schedule
        attempts = []

        def flaky(*args, **kwargs):
            attempts.append(1)
            if len(attempts) == 1:
                raise _locked_error()
            return real(*args, **kwargs)

        monkeypatch.setattr(appointment_service, "_lock_schedule", flaky)
        appt = book()

        assert len(attempts) == 2
        assert appt.status == AppointmentStatus.REQUESTED.value

    def test_persistent_failure_surfaces_service_unavailable(self, db, book, contractor_id, monkeypatch):
        attempts = []

        def broken(*args, **kwargs):
            attempts.append(1)
            raise _locked_error()

        monkeypatch.setattr(appointment_service, "_lock_schedule", broken)
        with pytest.raises(ServiceUnavailableError):
            book()

        assert len(attempts) == appointment_service.settings.LEDGER_MAX_RETRIES
        assert appointment_service.list_appointments(db, contractor_id) == []

    def test_business_errors_are_not_retried(self, db, book, monkeypatch):
        book()
        calls = []
        real = appointment_service._lock_schedule

        def counting(*args, **kwargs):
            calls.append(1)
            return real(*args, **kwargs)

        real_busy = appointment_service.get_busy_intervals
        seen = []

        def stale_then_real(*args, **kwargs):
            seen.append(1)
            return [] if len(seen) == 1 else real_busy(*args, **kwargs)

        monkeypatch.setattr(appointment_service, "_lock_schedule", counting)
        monkeypatch.setattr(appointment_service, "get_busy_intervals", stale_then_real)
        with pytest.raises(ConflictError):
            book()
        assert len(calls) == 1


# =============================================================================
# Reads
# =============================================================================

class TestReads:
    def test_list_filters(self, db, book, contractor_id, now):
        first = book()
        second = book(start=local(TUESDAY + timedelta(days=1), 10))
        appointment_service.cancel(db, first.id, now=now)

        assert [a.id for a in appointment_service.list_appointments(db, contractor_id)] == [first.id, second.id]
        assert [a.id for a in appointment_service.list_appointments(db, contractor_id, status="requested")] == [second.id]
        in_range = appointment_service.list_appointments(
            db, contractor_id, date_start=TUESDAY + timedelta(days=1),
            date_end=TUESDAY + timedelta(days=1), timezone_name="America/Los_Angeles",
        )
        assert [a.id for a in in_range] == [second.id]

    def test_list_for_client(self, db, book, contractor_id, client_actor_id):
        book()
        assert len(appointment_service.list_appointments(db, contractor_id, client_id=client_actor_id)) == 1
        assert appointment_service.list_appointments(db, contractor_id, client_id=uuid.uuid4()) == []

    def test_availability_summary(self, db, book, contractor_id, service, now):
        book()
        _, block, days = appointment_service.get_availability_summary(
            db, contractor_id, TUESDAY, TUESDAY + timedelta(days=5), service_id=service.id, now=now
        )
        assert block == 60
        assert [d.available for d in days] == [True, True, True, True, False, False]
        assert days[0].available_slots == 29 - 10  # 09:00-11:15 starts blocked by the booking
        assert [d.reason for d in days[4:]] == ["day_disabled", "day_disabled"]

    def test_inactive_service_has_no_slots(self, db, contractor_id, service, now):
        schedule_service.deactivate_service(db, contractor_id, service.id)
        _, slots = appointment_service.get_available_slots(db, contractor_id, service.id, TUESDAY, now=now)
        assert slots == []
