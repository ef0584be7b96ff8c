"""Structured logging helpers (contact-detail safe)."""

from typing import Any
from uuid import UUID


def build_log_context(
    *,
    contractor_id: UUID | str | None = None,
    appointment_id: UUID | str | None = None,
    actor_id: UUID | str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict without client contact details."""
    context: dict[str, Any] = {}
    if contractor_id:
        context["contractor_id"] = str(contractor_id)
    if appointment_id:
        context["appointment_id"] = str(appointment_id)
    if actor_id:
        context["actor_id"] = str(actor_id)
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
