"""Analytics schemas."""

from datetime import date
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

AnalyticsPeriod = Literal["day", "week", "month", "quarter", "year"]


class ServiceBreakdownRead(BaseModel):
    service_id: UUID
    service_name: str
    bookings: int
    completed: int
    cancelled: int
    revenue: Decimal


class TimeBucketRead(BaseModel):
    """One calendar bucket, clipped to the requested range."""
    label: str
    start_date: date
    end_date: date
    bookings: int
    completed: int
    cancelled: int
    revenue: Decimal


class AnalyticsSummary(BaseModel):
    """Aggregate scheduling summary for a contractor and date range."""
    contractor_id: UUID
    start_date: date
    end_date: date
    period: AnalyticsPeriod
    total_appointments: int
    requested_count: int
    confirmed_count: int
    completed_count: int
    cancelled_count: int
    no_show_count: int
    booked_minutes: int
    available_minutes: int
    utilization_ratio: float
    total_revenue: Decimal
    projected_revenue: Decimal
    average_booking_value: Decimal
    cancellation_rate: float
    repeat_client_count: int
    service_breakdown: list[ServiceBreakdownRead]
    time_series: list[TimeBucketRead]
    revenue_by_month: dict[str, Decimal]
