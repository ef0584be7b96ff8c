"""Tests for structured logging helpers."""

import uuid

from booking_engine.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    contractor_id = uuid.uuid4()
    context = build_log_context(
        contractor_id=contractor_id,
        appointment_id="appt-1",
        request_id="req-1",
        route="/appointments",
        method="POST",
    )

    assert context == {
        "contractor_id": str(contractor_id),
        "appointment_id": "appt-1",
        "request_id": "req-1",
        "route": "/appointments",
        "method": "POST",
    }


def test_build_log_context_ignores_empty_fields():
    context = build_log_context(
        contractor_id="",
        actor_id=None,
        request_id="req-1",
    )

    assert context == {"request_id": "req-1"}
