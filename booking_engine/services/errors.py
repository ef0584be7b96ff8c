"""Typed scheduling errors shared by the services and mapped to HTTP in main."""


class SchedulingError(Exception):
    """Base exception for scheduling engine errors."""

    status_code = 400
    default_reason = "scheduling_error"

    def __init__(self, message: str, reason: str | None = None):
        self.message = message
        self.reason = reason or self.default_reason
        super().__init__(message)


class ValidationError(SchedulingError):
    """Malformed request or configuration (e.g. end before start)."""

    default_reason = "invalid_request"


class InvalidTransitionError(ValidationError):
    """Appointment status transition not allowed by the state machine."""

    default_reason = "invalid_transition"


class NotFoundError(SchedulingError):
    """Unknown contractor schedule, service, or appointment."""

    status_code = 404
    default_reason = "not_found"


class PolicyViolationError(SchedulingError):
    """Operation forbidden by policy (cancellation disallowed, wrong caller)."""

    status_code = 403
    default_reason = "policy_violation"


class SlotUnavailableError(SchedulingError):
    """Requested slot is not bookable (conflict, blackout, outside hours)."""

    status_code = 409
    default_reason = "slot_unavailable"


class ConflictError(SlotUnavailableError):
    """Lost a race at commit time; re-query availability and retry."""

    default_reason = "conflict"


class NoticeViolationError(SchedulingError):
    """Requested start is inside the minimum-notice window."""

    status_code = 422
    default_reason = "minimum_notice"


class HorizonViolationError(SchedulingError):
    """Requested start is outside the advance-booking window."""

    status_code = 422
    default_reason = "beyond_horizon"


class VersionConflictError(SchedulingError):
    """Raised when expected_version doesn't match current version."""

    status_code = 409
    default_reason = "version_conflict"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Version conflict: expected {expected}, got {actual}")


class ServiceUnavailableError(SchedulingError):
    """Ledger storage kept failing after bounded retries."""

    status_code = 503
    default_reason = "storage_unavailable"
