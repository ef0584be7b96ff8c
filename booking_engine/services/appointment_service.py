"""Appointment ledger - booking, cancellation, and status transitions.

Handles:
- Booking with re-validation at commit time (no double-booking)
- Cancellation through the refund policy engine
- Confirm / complete / no-show transitions with history rows
- Deposit status recorded from the payment collaborator
- Availability queries over a ledger snapshot

All writes for a contractor are serialized by a process-local lock plus a
row lock on the contractor's schedule. Storage failures are retried a bounded
number of times; business-rule failures are never retried.
"""

import logging
import threading
import time as time_module
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Iterator, NamedTuple, TypeVar
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from booking_engine.core.config import settings
from booking_engine.core.structured_logging import build_log_context
from booking_engine.db.enums import (
    ACTIVE_APPOINTMENT_STATUSES,
    APPOINTMENT_TRANSITIONS,
    ActorRole,
    AppointmentStatus,
    PaymentStatus,
)
from booking_engine.db.models import Appointment, AppointmentStatusChange, ContractorSchedule
from booking_engine.db.session import SessionLocal
from booking_engine.db.types import utcnow
from booking_engine.services import schedule_service
from booking_engine.services.availability_service import (
    BusyInterval,
    DaySummary,
    ScheduleConfig,
    ServiceDefinition,
    Slot,
    compute_availability,
    find_conflict,
    get_timezone,
    normalize_start,
    summarize_days,
    validate_requested_start,
)
from booking_engine.services.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PolicyViolationError,
    SchedulingError,
    ServiceUnavailableError,
    ValidationError,
)
from booking_engine.services.http_service import backoff_delay
from booking_engine.services.notifications import NotificationEvent, Notifier, dispatch
from booking_engine.services.payments import PaymentGateway, PaymentGatewayError
from booking_engine.services.refund_policy import (
    CancellationPolicy,
    RefundDecision,
    hours_until,
    resolve_cancellation,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CENTS = Decimal("0.01")

# Busy intervals are loaded with this margin so appointments spanning
# midnight, and their buffers, are always seen.
BUSY_LOOKUP_MARGIN = timedelta(hours=24)


# =============================================================================
# Types
# =============================================================================

class ClientInfo(NamedTuple):
    """Client-supplied contact record."""
    name: str
    email: str
    phone: str | None = None
    address: str | None = None
    notes: str | None = None


class Actor(NamedTuple):
    """Pre-authenticated caller identity."""
    id: UUID | None
    role: ActorRole


class CancellationResult(NamedTuple):
    decision: RefundDecision
    appointment: Appointment


class CancellationPreview(NamedTuple):
    """What cancelling now would do; nothing is written."""
    can_cancel: bool
    decision: RefundDecision
    hours_until_appointment: float
    policy: CancellationPolicy
    appointment: Appointment


SYSTEM_ACTOR = Actor(id=None, role=ActorRole.ADMIN)


# =============================================================================
# Contractor-scoped serialization
# =============================================================================

_locks_guard = threading.Lock()
_contractor_locks: dict[UUID, threading.Lock] = {}


@contextmanager
def contractor_lock(contractor_id: UUID) -> Iterator[None]:
    """Serialize ledger writes for one contractor within this process."""
    with _locks_guard:
        lock = _contractor_locks.setdefault(contractor_id, threading.Lock())
    with lock:
        yield


def _lock_schedule(db: Session, contractor_id: UUID) -> ContractorSchedule:
    """Row-lock the contractor's schedule (serializes writers across processes)."""
    schedule = db.query(ContractorSchedule).filter(
        ContractorSchedule.contractor_id == contractor_id,
    ).with_for_update().populate_existing().first()
    if not schedule:
        raise NotFoundError("Contractor schedule not found", reason="schedule_not_found")
    return schedule


def _run_with_storage_retries(
    db: Session,
    operation: Callable[[], T],
    log_context: dict[str, Any],
) -> T:
    """Retry `operation` on storage failures; business errors pass straight through."""
    attempts = max(settings.LEDGER_MAX_RETRIES, 1)
    for attempt in range(attempts):
        try:
            return operation()
        except OperationalError as exc:
            db.rollback()
            if attempt >= attempts - 1:
                logger.error(
                    "Ledger storage failure after %s attempts", attempts, extra=log_context
                )
                raise ServiceUnavailableError(
                    "Booking storage is temporarily unavailable, please retry"
                ) from exc
            logger.warning(
                "Ledger storage failure, retrying (attempt %s)", attempt + 1, extra=log_context
            )
            delay = backoff_delay(attempt, settings.LEDGER_RETRY_BASE_DELAY, 1.0)
            if delay:
                time_module.sleep(delay)
    raise AssertionError("unreachable")


# =============================================================================
# Helpers
# =============================================================================

def get_busy_intervals(
    db: Session,
    contractor_id: UUID,
    window_start: datetime,
    window_end: datetime,
    exclude_appointment_id: UUID | None = None,
) -> list[BusyInterval]:
    """Active (REQUESTED/CONFIRMED) appointments near a window, as busy intervals."""
    query = db.query(Appointment).filter(
        Appointment.contractor_id == contractor_id,
        Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
        Appointment.scheduled_start < window_end + BUSY_LOOKUP_MARGIN,
        Appointment.scheduled_end > window_start - BUSY_LOOKUP_MARGIN,
    )
    if exclude_appointment_id:
        query = query.filter(Appointment.id != exclude_appointment_id)
    return [
        BusyInterval(start=appt.scheduled_start, end=appt.scheduled_end, buffer_minutes=appt.buffer_minutes)
        for appt in query.populate_existing().order_by(Appointment.scheduled_start).all()
    ]


def compute_deposit(config: ScheduleConfig, service: ServiceDefinition) -> tuple[bool, Decimal]:
    """Deposit requirement and amount: service override first, then schedule percentage."""
    required = service.deposit_required if service.deposit_required is not None else config.requires_deposit
    if not required:
        return False, Decimal("0.00")
    if service.deposit_amount is not None:
        amount = min(service.deposit_amount, service.price)
    else:
        amount = service.price * config.deposit_percentage / Decimal(100)
    amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount <= 0:
        return False, Decimal("0.00")
    return True, amount


def _record_status_change(
    db: Session,
    appointment: Appointment,
    from_status: str | None,
    to_status: str,
    actor: Actor,
    reason: str | None,
    now: datetime,
) -> None:
    db.add(
        AppointmentStatusChange(
            appointment_id=appointment.id,
            from_status=from_status,
            to_status=to_status,
            changed_by=actor.id,
            reason=reason,
            changed_at=now,
        )
    )


def _event_payload(appointment: Appointment, **extra: Any) -> dict[str, Any]:
    payload = {
        "appointment_id": str(appointment.id),
        "contractor_id": str(appointment.contractor_id),
        "service_id": str(appointment.service_id),
        "status": appointment.status,
        "scheduled_start": appointment.scheduled_start.isoformat(),
        "scheduled_end": appointment.scheduled_end.isoformat(),
        "client_email": appointment.client_email,
        "client_name": appointment.client_name,
    }
    payload.update(extra)
    return payload


def _authorize_contractor_action(actor: Actor, contractor_id: UUID) -> None:
    role = ActorRole(actor.role)
    if role == ActorRole.ADMIN:
        return
    if role == ActorRole.CONTRACTOR and actor.id == contractor_id:
        return
    raise PolicyViolationError("Not authorized for this contractor", reason="not_authorized")


def _authorize_appointment_access(actor: Actor, appointment: Appointment) -> None:
    role = ActorRole(actor.role)
    if role == ActorRole.CLIENT:
        if appointment.client_id is None or appointment.client_id != actor.id:
            raise PolicyViolationError(
                "Not authorized for this appointment", reason="not_appointment_client"
            )
        return
    _authorize_contractor_action(actor, appointment.contractor_id)


# =============================================================================
# Booking
# =============================================================================

def book(
    db: Session,
    contractor_id: UUID,
    service_id: UUID,
    requested_start: datetime,
    client: ClientInfo,
    actor: Actor = SYSTEM_ACTOR,
    now: datetime | None = None,
    payment_gateway: PaymentGateway | None = None,
    notifier: Notifier | None = None,
) -> Appointment:
    """
    Book a slot.

    - Pre-checks the request against a snapshot (SlotUnavailableError,
      NoticeViolationError, HorizonViolationError)
    - Re-checks under the contractor lock; a lost race raises ConflictError
    - Inserts REQUESTED (CONFIRMED with auto-confirm) with deposit decision
    - After commit: deposit intent and notification, both isolated. HTTP
      callers leave payment_gateway unset and schedule request_deposit_intent
      as a background task instead
    """
    now = now or utcnow()
    role = ActorRole(actor.role)
    if role == ActorRole.CONTRACTOR:
        _authorize_contractor_action(actor, contractor_id)
    client_id = actor.id if role == ActorRole.CLIENT else None
    log_context = build_log_context(contractor_id=contractor_id, actor_id=actor.id)

    if not client.name or not client.name.strip():
        raise ValidationError("Client name is required", reason="invalid_client")
    if not client.email or "@" not in client.email:
        raise ValidationError("Client email is required", reason="invalid_client")

    schedule = schedule_service.get_schedule(db, contractor_id)
    service = schedule_service.get_service(db, contractor_id, service_id)
    if not service.is_active:
        raise ValidationError("Service is not available for booking", reason="service_inactive")

    config = schedule_service.build_config_snapshot(schedule)
    definition = schedule_service.build_service_definition(service)
    start = normalize_start(requested_start, config.timezone)
    end = start + timedelta(minutes=definition.block_minutes)

    # Pre-commit check against the current snapshot
    busy = get_busy_intervals(db, contractor_id, start, end)
    try:
        validate_requested_start(config, definition, busy, start, now)
    except SchedulingError as exc:
        logger.info("Booking rejected: %s", exc.reason, extra=log_context)
        raise

    def _commit() -> Appointment:
        with contractor_lock(contractor_id):
            # Drop anything loaded by the pre-check; the re-check must see current rows
            db.expire_all()
            try:
                locked = _lock_schedule(db, contractor_id)
                fresh_config = schedule_service.build_config_snapshot(locked)
                fresh_service = schedule_service.get_service(db, contractor_id, service_id)
                fresh_definition = schedule_service.build_service_definition(fresh_service)
                if not fresh_service.is_active:
                    raise ValidationError(
                        "Service is not available for booking", reason="service_inactive"
                    )

                # Same rules against the latest config, then the overlap check
                # against the ledger as it is now.
                fresh_end = validate_requested_start(fresh_config, fresh_definition, [], start, now)
                current = get_busy_intervals(db, contractor_id, start, fresh_end)
                if find_conflict(
                    start, fresh_end, fresh_config.buffer_minutes, current, fresh_config.buffer_mode
                ):
                    raise ConflictError(
                        "Selected time is no longer available; re-check availability and retry"
                    )

                deposit_required, deposit_amount = compute_deposit(fresh_config, fresh_definition)
                status = (
                    AppointmentStatus.CONFIRMED.value
                    if fresh_config.auto_confirm_bookings
                    else AppointmentStatus.REQUESTED.value
                )
                appointment = Appointment(
                    contractor_id=contractor_id,
                    schedule_id=locked.id,
                    service_id=fresh_service.id,
                    client_id=client_id,
                    client_name=client.name.strip(),
                    client_email=client.email.strip().lower(),
                    client_phone=client.phone,
                    client_address=client.address,
                    client_notes=client.notes,
                    scheduled_start=start,
                    scheduled_end=fresh_end,
                    block_minutes=fresh_definition.block_minutes,
                    buffer_minutes=fresh_config.buffer_minutes,
                    buffer_mode=fresh_config.buffer_mode.value,
                    status=status,
                    total_price=fresh_definition.price,
                    deposit_required=deposit_required,
                    deposit_amount=deposit_amount,
                    deposit_paid=False,
                    amount_paid=Decimal("0.00"),
                    payment_status=(
                        PaymentStatus.PENDING.value if deposit_required
                        else PaymentStatus.NOT_REQUIRED.value
                    ),
                    confirmed_at=now if status == AppointmentStatus.CONFIRMED.value else None,
                )
                db.add(appointment)
                db.flush()
                _record_status_change(db, appointment, None, status, actor, "booked", now)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return appointment

    try:
        appointment = _run_with_storage_retries(db, _commit, log_context)
    except ConflictError:
        logger.info("Booking lost commit-time race", extra=log_context)
        raise
    db.refresh(appointment)

    log_context = build_log_context(
        contractor_id=contractor_id, appointment_id=appointment.id, actor_id=actor.id
    )
    logger.info("Booking committed with status %s", appointment.status, extra=log_context)

    if appointment.deposit_required and payment_gateway is not None:
        _request_deposit(db, appointment, payment_gateway, log_context)

    dispatch(notifier, NotificationEvent.BOOKED, _event_payload(appointment))
    if appointment.status == AppointmentStatus.CONFIRMED.value:
        dispatch(notifier, NotificationEvent.CONFIRMED, _event_payload(appointment))
    return appointment


def _request_deposit(
    db: Session,
    appointment: Appointment,
    payment_gateway: PaymentGateway,
    log_context: dict[str, Any],
) -> None:
    """Ask the payment collaborator for a deposit intent; the slot is held regardless."""
    try:
        reference = payment_gateway.create_deposit_intent(
            appointment.id, appointment.deposit_amount, settings.CURRENCY
        )
    except PaymentGatewayError:
        logger.warning(
            "Deposit intent failed; appointment kept with deposit pending",
            exc_info=True,
            extra=log_context,
        )
        return
    if not reference:
        return
    appointment.payment_reference = reference
    try:
        db.commit()
    except OperationalError:
        db.rollback()
        logger.warning("Could not store payment reference", exc_info=True, extra=log_context)
        return
    db.refresh(appointment)


def request_deposit_intent(appointment_id: UUID, payment_gateway: PaymentGateway) -> None:
    """
    Deposit intent for a committed booking, run after the response is sent.

    Opens its own session; the request session is closed by then.
    """
    db = SessionLocal()
    try:
        appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment or not appointment.deposit_required:
            return
        if appointment.status == AppointmentStatus.CANCELLED.value:
            return
        log_context = build_log_context(
            contractor_id=appointment.contractor_id, appointment_id=appointment_id
        )
        _request_deposit(db, appointment, payment_gateway, log_context)
    finally:
        db.close()


# =============================================================================
# Cancellation
# =============================================================================

def cancel(
    db: Session,
    appointment_id: UUID,
    actor: Actor = SYSTEM_ACTOR,
    reason: str | None = None,
    now: datetime | None = None,
    notifier: Notifier | None = None,
) -> CancellationResult:
    """
    Cancel through the policy engine.

    Denied cancellations raise PolicyViolationError and leave the appointment
    untouched. Allowed ones record the refund decision and move to CANCELLED.
    """
    now = now or utcnow()
    appointment = get_appointment(db, appointment_id)
    contractor_id = appointment.contractor_id
    log_context = build_log_context(
        contractor_id=contractor_id, appointment_id=appointment_id, actor_id=actor.id
    )

    def _commit() -> CancellationResult:
        with contractor_lock(contractor_id):
            try:
                schedule = _lock_schedule(db, contractor_id)
                appt = _load_for_update(db, appointment_id)
                _authorize_appointment_access(actor, appt)
                _check_transition(appt, AppointmentStatus.CANCELLED)

                policy = schedule_service.build_config_snapshot(schedule).cancellation_policy
                decision = resolve_cancellation(appt, policy, now)
                if not decision.allowed:
                    raise PolicyViolationError(
                        "Cancellation is not allowed by the contractor's policy",
                        reason=decision.refund_reason,
                    )

                previous = appt.status
                appt.status = AppointmentStatus.CANCELLED.value
                appt.cancelled_at = now
                appt.cancelled_by = actor.id
                appt.cancellation_reason = reason
                appt.refund_amount = decision.refund_amount
                appt.refund_reason = decision.refund_reason
                if decision.refund_amount > 0:
                    appt.payment_status = PaymentStatus.REFUND_PENDING.value
                _record_status_change(
                    db, appt, previous, appt.status, actor, reason or decision.refund_reason, now
                )
                db.commit()
            except Exception:
                db.rollback()
                raise
        return CancellationResult(decision=decision, appointment=appt)

    result = _run_with_storage_retries(db, _commit, log_context)
    db.refresh(result.appointment)
    logger.info(
        "Appointment cancelled (%s, refund %s)",
        result.decision.refund_reason,
        result.decision.refund_amount,
        extra=log_context,
    )
    dispatch(notifier, NotificationEvent.CANCELLED, _event_payload(result.appointment))
    dispatch(
        notifier,
        NotificationEvent.REFUND_DECIDED,
        _event_payload(
            result.appointment,
            refund_amount=str(result.decision.refund_amount),
            refund_reason=result.decision.refund_reason,
        ),
    )
    return result


def preview_cancellation(
    db: Session,
    appointment_id: UUID,
    actor: Actor = SYSTEM_ACTOR,
    now: datetime | None = None,
) -> CancellationPreview:
    """Refund eligibility if the appointment were cancelled now. Read-only."""
    now = now or utcnow()
    appointment = get_appointment(db, appointment_id)
    _authorize_appointment_access(actor, appointment)
    schedule = schedule_service.get_schedule(db, appointment.contractor_id)
    policy = schedule_service.build_config_snapshot(schedule).cancellation_policy
    decision = resolve_cancellation(appointment, policy, now)
    transition_ok = AppointmentStatus.CANCELLED.value in APPOINTMENT_TRANSITIONS.get(
        appointment.status, ()
    )
    return CancellationPreview(
        can_cancel=decision.allowed and transition_ok,
        decision=decision,
        hours_until_appointment=round(hours_until(appointment, now), 2),
        policy=policy,
        appointment=appointment,
    )


# =============================================================================
# Status transitions
# =============================================================================

def _load_for_update(db: Session, appointment_id: UUID) -> Appointment:
    appt = db.query(Appointment).filter(
        Appointment.id == appointment_id,
    ).with_for_update().populate_existing().first()
    if not appt:
        raise NotFoundError("Appointment not found", reason="appointment_not_found")
    return appt


def _check_transition(appointment: Appointment, target: AppointmentStatus) -> None:
    allowed = APPOINTMENT_TRANSITIONS.get(appointment.status, ())
    if target.value not in allowed:
        raise InvalidTransitionError(
            f"Cannot move appointment from {appointment.status} to {target.value}"
        )


_TRANSITION_EVENTS = {
    AppointmentStatus.CONFIRMED: NotificationEvent.CONFIRMED,
    AppointmentStatus.COMPLETED: NotificationEvent.COMPLETED,
    AppointmentStatus.NO_SHOW: NotificationEvent.NO_SHOW,
}


def _transition(
    db: Session,
    appointment_id: UUID,
    target: AppointmentStatus,
    actor: Actor,
    reason: str | None,
    now: datetime | None,
    notifier: Notifier | None,
) -> Appointment:
    now = now or utcnow()
    appointment = get_appointment(db, appointment_id)
    contractor_id = appointment.contractor_id
    log_context = build_log_context(
        contractor_id=contractor_id, appointment_id=appointment_id, actor_id=actor.id
    )

    def _commit() -> Appointment:
        with contractor_lock(contractor_id):
            try:
                _lock_schedule(db, contractor_id)
                appt = _load_for_update(db, appointment_id)
                _authorize_contractor_action(actor, appt.contractor_id)
                _check_transition(appt, target)
                previous = appt.status
                appt.status = target.value
                if target == AppointmentStatus.CONFIRMED:
                    appt.confirmed_at = now
                elif target == AppointmentStatus.COMPLETED:
                    appt.completed_at = now
                _record_status_change(db, appt, previous, appt.status, actor, reason, now)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return appt

    appointment = _run_with_storage_retries(db, _commit, log_context)
    db.refresh(appointment)
    logger.info("Appointment moved to %s", target.value, extra=log_context)
    dispatch(notifier, _TRANSITION_EVENTS[target], _event_payload(appointment))
    return appointment


def confirm(
    db: Session,
    appointment_id: UUID,
    actor: Actor = SYSTEM_ACTOR,
    now: datetime | None = None,
    notifier: Notifier | None = None,
) -> Appointment:
    """REQUESTED → CONFIRMED. The slot is already held, no re-check needed."""
    return _transition(db, appointment_id, AppointmentStatus.CONFIRMED, actor, None, now, notifier)


def complete(
    db: Session,
    appointment_id: UUID,
    actor: Actor = SYSTEM_ACTOR,
    now: datetime | None = None,
    notifier: Notifier | None = None,
) -> Appointment:
    """REQUESTED|CONFIRMED → COMPLETED (service rendered)."""
    return _transition(db, appointment_id, AppointmentStatus.COMPLETED, actor, None, now, notifier)


def mark_no_show(
    db: Session,
    appointment_id: UUID,
    actor: Actor = SYSTEM_ACTOR,
    reason: str | None = None,
    now: datetime | None = None,
    notifier: Notifier | None = None,
) -> Appointment:
    """CONFIRMED → NO_SHOW."""
    return _transition(db, appointment_id, AppointmentStatus.NO_SHOW, actor, reason, now, notifier)


# =============================================================================
# Payment callback
# =============================================================================

def record_deposit_payment(
    db: Session,
    appointment_id: UUID,
    amount: Decimal,
    reference: str | None = None,
) -> Appointment:
    """
    Record money captured by the payment collaborator.

    Flips deposit_paid once the deposit is covered. Appointment status is
    never changed here.
    """
    amount = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
    if amount <= 0:
        raise ValidationError("Payment amount must be positive", reason="invalid_amount")
    appointment = get_appointment(db, appointment_id)
    contractor_id = appointment.contractor_id
    log_context = build_log_context(contractor_id=contractor_id, appointment_id=appointment_id)

    def _commit() -> Appointment:
        with contractor_lock(contractor_id):
            try:
                appt = _load_for_update(db, appointment_id)
                if appt.status == AppointmentStatus.CANCELLED.value:
                    raise InvalidTransitionError(
                        "Cannot record payment for a cancelled appointment",
                        reason="appointment_cancelled",
                    )
                appt.amount_paid = Decimal(appt.amount_paid) + amount
                if reference:
                    appt.payment_reference = reference
                if appt.amount_paid >= Decimal(appt.total_price):
                    appt.payment_status = PaymentStatus.PAID.value
                    appt.deposit_paid = True
                elif appt.amount_paid >= Decimal(appt.deposit_amount):
                    appt.payment_status = PaymentStatus.DEPOSIT_PAID.value
                    appt.deposit_paid = True
                db.commit()
            except Exception:
                db.rollback()
                raise
        return appt

    appointment = _run_with_storage_retries(db, _commit, log_context)
    db.refresh(appointment)
    logger.info("Payment recorded (%s)", appointment.payment_status, extra=log_context)
    return appointment


def record_refund(
    db: Session,
    appointment_id: UUID,
    reference: str | None = None,
) -> Appointment:
    """Payment collaborator settled a cancellation refund: REFUND_PENDING → REFUNDED."""
    appointment = get_appointment(db, appointment_id)
    contractor_id = appointment.contractor_id
    log_context = build_log_context(contractor_id=contractor_id, appointment_id=appointment_id)

    def _commit() -> Appointment:
        with contractor_lock(contractor_id):
            try:
                appt = _load_for_update(db, appointment_id)
                if appt.payment_status != PaymentStatus.REFUND_PENDING.value:
                    raise InvalidTransitionError(
                        f"No refund pending (payment status is {appt.payment_status})",
                        reason="no_refund_pending",
                    )
                appt.payment_status = PaymentStatus.REFUNDED.value
                if reference:
                    appt.payment_reference = reference
                db.commit()
            except Exception:
                db.rollback()
                raise
        return appt

    appointment = _run_with_storage_retries(db, _commit, log_context)
    db.refresh(appointment)
    logger.info("Refund settled (%s)", appointment.refund_amount, extra=log_context)
    return appointment


# =============================================================================
# Reads
# =============================================================================

def get_appointment(db: Session, appointment_id: UUID) -> Appointment:
    """Get appointment by ID or raise NotFoundError."""
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise NotFoundError("Appointment not found", reason="appointment_not_found")
    return appointment


def list_appointments(
    db: Session,
    contractor_id: UUID,
    status: str | None = None,
    date_start: date | None = None,
    date_end: date | None = None,
    timezone_name: str | None = None,
    client_id: UUID | None = None,
) -> list[Appointment]:
    """List a contractor's appointments (read-committed; display only)."""
    query = db.query(Appointment).filter(Appointment.contractor_id == contractor_id)
    if status:
        query = query.filter(Appointment.status == status)
    if client_id:
        query = query.filter(Appointment.client_id == client_id)
    tz = get_timezone(timezone_name)
    if date_start:
        start_dt = datetime.combine(date_start, time.min, tzinfo=tz).astimezone(timezone.utc)
        query = query.filter(Appointment.scheduled_start >= start_dt)
    if date_end:
        end_dt = datetime.combine(
            date_end + timedelta(days=1), time.min, tzinfo=tz
        ).astimezone(timezone.utc)
        query = query.filter(Appointment.scheduled_start < end_dt)
    return query.order_by(Appointment.scheduled_start).all()


def get_status_history(db: Session, appointment_id: UUID) -> list[AppointmentStatusChange]:
    get_appointment(db, appointment_id)
    return db.query(AppointmentStatusChange).filter(
        AppointmentStatusChange.appointment_id == appointment_id,
    ).order_by(AppointmentStatusChange.changed_at).all()


# =============================================================================
# Availability queries (ledger snapshot + calculator)
# =============================================================================

def _local_range_utc(timezone_name: str, date_start: date, date_end: date) -> tuple[datetime, datetime]:
    tz = get_timezone(timezone_name)
    start = datetime.combine(date_start, time.min, tzinfo=tz).astimezone(timezone.utc)
    end = datetime.combine(date_end + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)
    return start, end


def get_available_slots(
    db: Session,
    contractor_id: UUID,
    service_id: UUID,
    date_start: date,
    date_end: date | None = None,
    now: datetime | None = None,
) -> tuple[ScheduleConfig, list[Slot]]:
    """Slots for a service over local days, computed from a ledger snapshot."""
    now = now or utcnow()
    date_end = date_end or date_start
    schedule = schedule_service.get_schedule(db, contractor_id)
    service = schedule_service.get_service(db, contractor_id, service_id)
    config = schedule_service.build_config_snapshot(schedule)
    if not service.is_active:
        return config, []
    window_start, window_end = _local_range_utc(config.timezone, date_start, date_end)
    busy = get_busy_intervals(db, contractor_id, window_start, window_end)
    slots = compute_availability(
        config,
        schedule_service.build_service_definition(service),
        busy,
        date_start,
        date_end,
        now,
    )
    return config, slots


def get_availability_summary(
    db: Session,
    contractor_id: UUID,
    date_start: date,
    date_end: date,
    service_id: UUID | None = None,
    now: datetime | None = None,
) -> tuple[ScheduleConfig, int, list[DaySummary]]:
    """Per-day summary; without a service the default slot length is used."""
    now = now or utcnow()
    schedule = schedule_service.get_schedule(db, contractor_id)
    config = schedule_service.build_config_snapshot(schedule)
    if service_id:
        service = schedule_service.get_service(db, contractor_id, service_id)
        block_minutes = service.block_minutes
    else:
        block_minutes = settings.DEFAULT_SLOT_MINUTES
    window_start, window_end = _local_range_utc(config.timezone, date_start, date_end)
    busy = get_busy_intervals(db, contractor_id, window_start, window_end)
    days = summarize_days(config, block_minutes, busy, date_start, date_end, now)
    return config, block_minutes, days
