"""Enum definitions for scheduling constants."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: requested → confirmed → completed
              ↘ completed    ↘ no_show
              ↘ cancelled    ↘ cancelled
    """

    REQUESTED = "requested"  # Awaiting contractor confirmation
    CONFIRMED = "confirmed"  # Confirmed, slot held
    CANCELLED = "cancelled"  # Cancelled by client or contractor
    COMPLETED = "completed"  # Service rendered
    NO_SHOW = "no_show"  # Client didn't show up


# Statuses that hold a slot on the contractor's calendar
ACTIVE_APPOINTMENT_STATUSES = (
    AppointmentStatus.REQUESTED.value,
    AppointmentStatus.CONFIRMED.value,
)

# Allowed transitions, keyed by current status
APPOINTMENT_TRANSITIONS: dict[str, tuple[str, ...]] = {
    AppointmentStatus.REQUESTED.value: (
        AppointmentStatus.CONFIRMED.value,
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.COMPLETED.value,
    ),
    AppointmentStatus.CONFIRMED.value: (
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.NO_SHOW.value,
    ),
    AppointmentStatus.CANCELLED.value: (),
    AppointmentStatus.COMPLETED.value: (),
    AppointmentStatus.NO_SHOW.value: (),
}


class PaymentStatus(str, Enum):
    """Deposit/payment state recorded from the payment collaborator."""

    NOT_REQUIRED = "not_required"
    PENDING = "pending"
    DEPOSIT_PAID = "deposit_paid"
    PAID = "paid"
    REFUND_PENDING = "refund_pending"
    REFUNDED = "refunded"


class RefundMode(str, Enum):
    """Refund applied to late cancellations."""

    FULL = "full"
    PARTIAL = "partial"  # Uses partial_refund_percentage
    NONE = "none"


class BufferMode(str, Enum):
    """How the schedule buffer separates appointments."""

    SYMMETRIC = "symmetric"  # Buffer on both sides of every appointment
    BETWEEN = "between"  # One buffer gap between consecutive appointments


class ActorRole(str, Enum):
    """Role of the pre-authenticated caller."""

    CONTRACTOR = "contractor"
    CLIENT = "client"
    ADMIN = "admin"


DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.REQUESTED
