"""Appointments router - booking, lifecycle actions, and payment callbacks."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from booking_engine.core.deps import get_current_session, get_db, require_roles
from booking_engine.core.rate_limit import BOOKING_LIMIT, limiter
from booking_engine.db.enums import ActorRole, AppointmentStatus
from booking_engine.schemas.appointment import (
    AppointmentAction,
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentRead,
    CancellationPreviewRead,
    CancellationResponse,
    DepositPayment,
    RefundSettled,
    StatusChangeRead,
)
from booking_engine.schemas.auth import ActorSession
from booking_engine.services import appointment_service, schedule_service
from booking_engine.services.notifications import Notifier, get_notifier
from booking_engine.services.payments import PaymentGateway, get_payment_gateway

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================

def _actor(session: ActorSession) -> appointment_service.Actor:
    return appointment_service.Actor(id=session.actor_id, role=session.role)


def _appointment_to_read(appt) -> AppointmentRead:
    """Convert Appointment model to read schema."""
    return AppointmentRead(
        id=appt.id,
        contractor_id=appt.contractor_id,
        service_id=appt.service_id,
        client_id=appt.client_id,
        client_name=appt.client_name,
        client_email=appt.client_email,
        client_phone=appt.client_phone,
        client_address=appt.client_address,
        client_notes=appt.client_notes,
        scheduled_start=appt.scheduled_start,
        scheduled_end=appt.scheduled_end,
        block_minutes=appt.block_minutes,
        buffer_minutes=appt.buffer_minutes,
        status=appt.status,
        total_price=appt.total_price,
        deposit_required=appt.deposit_required,
        deposit_amount=appt.deposit_amount,
        deposit_paid=appt.deposit_paid,
        amount_paid=appt.amount_paid,
        payment_status=appt.payment_status,
        payment_reference=appt.payment_reference,
        confirmed_at=appt.confirmed_at,
        completed_at=appt.completed_at,
        cancelled_at=appt.cancelled_at,
        cancellation_reason=appt.cancellation_reason,
        refund_amount=appt.refund_amount,
        refund_reason=appt.refund_reason,
        created_at=appt.created_at,
        updated_at=appt.updated_at,
    )


def _ensure_can_view(session: ActorSession, appt) -> None:
    if session.role == ActorRole.ADMIN:
        return
    if session.role == ActorRole.CONTRACTOR and appt.contractor_id == session.actor_id:
        return
    if session.role == ActorRole.CLIENT and appt.client_id == session.actor_id:
        return
    raise HTTPException(status_code=403, detail="Not authorized")


# =============================================================================
# Booking
# =============================================================================

@router.post("", response_model=AppointmentRead, status_code=201)
@limiter.limit(BOOKING_LIMIT)
def create_appointment(
    request: Request,
    data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    payment_gateway: PaymentGateway = Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Book a slot; conflicts and rule violations come back as typed errors.

    The deposit intent runs after the response is sent.
    """
    appointment = appointment_service.book(
        db,
        contractor_id=data.contractor_id,
        service_id=data.service_id,
        requested_start=data.start,
        client=appointment_service.ClientInfo(
            name=data.client.name,
            email=str(data.client.email),
            phone=data.client.phone,
            address=data.client.address,
            notes=data.client.notes,
        ),
        actor=_actor(session),
        notifier=notifier,
    )
    if appointment.deposit_required:
        background_tasks.add_task(
            appointment_service.request_deposit_intent,
            appointment.id,
            payment_gateway,
        )
    return _appointment_to_read(appointment)


# =============================================================================
# Reads
# =============================================================================

@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    contractor_id: UUID = Query(...),
    status: AppointmentStatus | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List a contractor's appointments; clients only see their own."""
    client_id = None
    if session.role == ActorRole.CLIENT:
        client_id = session.actor_id
    elif session.role == ActorRole.CONTRACTOR and session.actor_id != contractor_id:
        raise HTTPException(status_code=403, detail="Not authorized")

    schedule = schedule_service.get_schedule(db, contractor_id)
    appointments = appointment_service.list_appointments(
        db,
        contractor_id=contractor_id,
        status=status.value if status else None,
        date_start=start_date,
        date_end=end_date,
        timezone_name=schedule.timezone,
        client_id=client_id,
    )
    return AppointmentListResponse(
        items=[_appointment_to_read(appt) for appt in appointments],
        total=len(appointments),
    )


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(
    appointment_id: UUID,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    appointment = appointment_service.get_appointment(db, appointment_id)
    _ensure_can_view(session, appointment)
    return _appointment_to_read(appointment)


@router.get("/{appointment_id}/history", response_model=list[StatusChangeRead])
def get_appointment_history(
    appointment_id: UUID,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Status transition history (dispute resolution)."""
    appointment = appointment_service.get_appointment(db, appointment_id)
    _ensure_can_view(session, appointment)
    return [
        StatusChangeRead(
            from_status=change.from_status,
            to_status=change.to_status,
            changed_by=change.changed_by,
            reason=change.reason,
            changed_at=change.changed_at,
        )
        for change in appointment_service.get_status_history(db, appointment_id)
    ]


@router.get("/{appointment_id}/cancellation", response_model=CancellationPreviewRead)
def get_cancellation_preview(
    appointment_id: UUID,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Refund eligibility for cancelling now. Nothing is changed."""
    preview = appointment_service.preview_cancellation(db, appointment_id, actor=_actor(session))
    appt = preview.appointment
    return CancellationPreviewRead(
        appointment_id=appt.id,
        can_cancel=preview.can_cancel,
        hours_until_appointment=preview.hours_until_appointment,
        cancellation_deadline_hours=preview.policy.deadline_hours,
        refund_mode=preview.policy.refund_mode.value,
        is_late=preview.decision.is_late,
        potential_refund=preview.decision.refund_amount,
        refund_reason=preview.decision.refund_reason,
        amount_paid=appt.amount_paid,
        deposit_paid=appt.deposit_paid,
    )


# =============================================================================
# Lifecycle actions
# =============================================================================

@router.patch("/{appointment_id}")
def update_appointment(
    appointment_id: UUID,
    data: AppointmentAction,
    session: ActorSession = Depends(get_current_session),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """
    Apply a state-machine action.

    cancel returns the refund decision; other actions return the appointment.
    """
    actor = _actor(session)
    if data.action == "cancel":
        result = appointment_service.cancel(
            db, appointment_id, actor=actor, reason=data.reason, notifier=notifier
        )
        return CancellationResponse(
            allowed=result.decision.allowed,
            refund_amount=result.decision.refund_amount,
            refund_reason=result.decision.refund_reason,
            is_late=result.decision.is_late,
            appointment=_appointment_to_read(result.appointment),
        )
    if data.action == "confirm":
        appointment = appointment_service.confirm(db, appointment_id, actor=actor, notifier=notifier)
    elif data.action == "complete":
        appointment = appointment_service.complete(db, appointment_id, actor=actor, notifier=notifier)
    else:
        appointment = appointment_service.mark_no_show(
            db, appointment_id, actor=actor, reason=data.reason, notifier=notifier
        )
    return _appointment_to_read(appointment)


@router.post("/{appointment_id}/deposit", response_model=AppointmentRead)
def record_deposit(
    appointment_id: UUID,
    data: DepositPayment,
    session: ActorSession = Depends(require_roles(ActorRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """Payment collaborator callback: record captured money."""
    appointment = appointment_service.record_deposit_payment(
        db, appointment_id, amount=data.amount, reference=data.reference
    )
    return _appointment_to_read(appointment)


@router.post("/{appointment_id}/refund", response_model=AppointmentRead)
def record_refund(
    appointment_id: UUID,
    data: RefundSettled,
    session: ActorSession = Depends(require_roles(ActorRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """Payment collaborator callback: the pending refund was paid out."""
    appointment = appointment_service.record_refund(db, appointment_id, reference=data.reference)
    return _appointment_to_read(appointment)
