"""Payment collaborator: deposit intents are created externally.

The ledger only stores the returned reference and payment status; capture and
settlement happen elsewhere and are reported back via
`appointment_service.record_deposit_payment`.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol
from uuid import UUID

import httpx

from booking_engine.core.config import settings
from booking_engine.services.http_service import request_with_retries

logger = logging.getLogger(__name__)


class PaymentGatewayError(Exception):
    """Deposit intent could not be created."""

    pass


class PaymentGateway(Protocol):
    def create_deposit_intent(
        self, appointment_id: UUID, amount: Decimal, currency: str
    ) -> str | None:
        """Return a payment reference, or None when capture is not handled."""
        ...


class NullPaymentGateway:
    """No payment service configured: deposits stay pending."""

    def create_deposit_intent(
        self, appointment_id: UUID, amount: Decimal, currency: str
    ) -> str | None:
        logger.info("No payment service configured; deposit left pending")
        return None


class HttpPaymentGateway:
    """POSTs deposit intents to the payment service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        max_attempts: int = 3,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.transport = transport

    def create_deposit_intent(
        self, appointment_id: UUID, amount: Decimal, currency: str
    ) -> str | None:
        payload = {
            "appointment_id": str(appointment_id),
            "amount": str(amount),
            "currency": currency,
            "idempotency_key": f"deposit-{appointment_id}",
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = request_with_retries(
                    lambda: client.post(f"{self.base_url}/deposits", json=payload),
                    max_attempts=self.max_attempts,
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PaymentGatewayError(f"Deposit intent failed: {exc}") from exc

        reference = data.get("id") or data.get("reference")
        if not reference:
            raise PaymentGatewayError("Payment service returned no reference")
        return str(reference)


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency: pick the gateway from settings."""
    if settings.PAYMENT_SERVICE_URL:
        return HttpPaymentGateway(
            settings.PAYMENT_SERVICE_URL,
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
            max_attempts=settings.PAYMENT_MAX_ATTEMPTS,
        )
    return NullPaymentGateway()
