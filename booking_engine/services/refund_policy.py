"""Cancellation & refund policy engine.

Pure functions: given an appointment, the contractor's cancellation policy and
the current time, decide whether cancellation is allowed and how much of the
amount already paid is refunded. No I/O, no ledger access.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

from booking_engine.db.enums import RefundMode

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


class Cancellable(Protocol):
    scheduled_start: datetime
    amount_paid: Decimal


@dataclass(frozen=True)
class CancellationPolicy:
    allow_cancellation: bool = True
    deadline_hours: int = 24
    refund_mode: RefundMode = RefundMode.PARTIAL
    partial_refund_percentage: Decimal = Decimal("50")


@dataclass(frozen=True)
class RefundDecision:
    allowed: bool
    refund_amount: Decimal
    refund_reason: str
    is_late: bool = False


def _percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    return (amount * Decimal(percentage) / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _clamp(amount: Decimal, paid: Decimal) -> Decimal:
    return min(max(amount, ZERO), paid).quantize(CENTS, rounding=ROUND_HALF_UP)


def hours_until(appointment: Cancellable, now: datetime) -> float:
    """Lead time before the appointment starts, floored at zero."""
    return max((appointment.scheduled_start - now).total_seconds() / 3600, 0.0)


def resolve_cancellation(
    appointment: Cancellable,
    policy: CancellationPolicy,
    now: datetime,
) -> RefundDecision:
    """
    Decide a cancellation outcome. Applies to every caller role.

    - Policy disallows cancellation: denied, nothing refunded.
    - Lead time at or beyond the deadline: full refund of the amount paid.
    - Late cancellation: FULL, PARTIAL(percentage) or NONE per the policy.
    Refunds are clamped to [0, amount paid].
    """
    paid = max(Decimal(appointment.amount_paid or ZERO), ZERO)

    if not policy.allow_cancellation:
        return RefundDecision(
            allowed=False,
            refund_amount=ZERO,
            refund_reason="policy_disallows_cancellation",
        )

    lead_time = appointment.scheduled_start - now
    if lead_time >= timedelta(hours=policy.deadline_hours):
        return RefundDecision(
            allowed=True,
            refund_amount=_clamp(paid, paid),
            refund_reason="cancelled_before_deadline",
        )

    mode = RefundMode(policy.refund_mode)
    if mode == RefundMode.FULL:
        amount, reason = paid, "late_cancellation_full_refund"
    elif mode == RefundMode.PARTIAL:
        amount = _percent_of(paid, policy.partial_refund_percentage)
        reason = "late_cancellation_partial_refund"
    elif mode == RefundMode.NONE:
        amount, reason = ZERO, "late_cancellation_no_refund"
    else:  # pragma: no cover - RefundMode is closed
        raise ValueError(f"Unknown refund mode: {mode}")

    return RefundDecision(
        allowed=True,
        refund_amount=_clamp(amount, paid),
        refund_reason=reason,
        is_late=True,
    )
