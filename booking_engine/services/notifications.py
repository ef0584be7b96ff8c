"""Notification collaborator for booking lifecycle events.

Dispatch is fire-and-forget: the ledger has already committed when events are
sent, so failures are logged and never propagate.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

import httpx

from booking_engine.core.config import settings
from booking_engine.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    """Events sent to the notification collaborator."""

    BOOKED = "appointment.booked"
    CONFIRMED = "appointment.confirmed"
    CANCELLED = "appointment.cancelled"
    REFUND_DECIDED = "appointment.refund_decided"
    COMPLETED = "appointment.completed"
    NO_SHOW = "appointment.no_show"


class Notifier(Protocol):
    def notify(self, event: str, payload: dict[str, Any]) -> None:
        ...


class LoggingNotifier:
    """Default notifier when no webhook is configured."""

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        logger.info(
            "Notification event %s",
            event,
            extra=build_log_context(
                contractor_id=payload.get("contractor_id"),
                appointment_id=payload.get("appointment_id"),
            ),
        )


class WebhookNotifier:
    """POSTs events as JSON to a webhook."""

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.post(self.url, json={"event": event, "payload": payload})
            response.raise_for_status()


def dispatch(notifier: Notifier | None, event: NotificationEvent, payload: dict[str, Any]) -> None:
    """Send an event; failures are logged and swallowed."""
    if notifier is None:
        return
    try:
        notifier.notify(event.value, payload)
    except Exception:
        logger.warning(
            "Notification %s failed",
            event.value,
            exc_info=True,
            extra=build_log_context(
                contractor_id=payload.get("contractor_id"),
                appointment_id=payload.get("appointment_id"),
            ),
        )


def get_notifier() -> Notifier:
    """FastAPI dependency: pick the notifier from settings."""
    if settings.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotifier(
            settings.NOTIFICATION_WEBHOOK_URL,
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        )
    return LoggingNotifier()
