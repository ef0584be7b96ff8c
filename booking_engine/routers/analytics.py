"""Analytics router - scheduling summaries for contractors."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from booking_engine.core.deps import get_db, require_roles
from booking_engine.db.enums import ActorRole
from booking_engine.schemas.analytics import AnalyticsPeriod, AnalyticsSummary
from booking_engine.schemas.auth import ActorSession
from booking_engine.services import analytics_service

router = APIRouter()


@router.get("", response_model=AnalyticsSummary)
def get_summary(
    contractor_id: UUID = Query(...),
    start_date: date = Query(...),
    end_date: date = Query(...),
    period: AnalyticsPeriod = Query("month"),
    session: ActorSession = Depends(require_roles(ActorRole.CONTRACTOR, ActorRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """Booking counts, utilization and revenue over a date range, bucketed by `period`."""
    if session.role == ActorRole.CONTRACTOR and session.actor_id != contractor_id:
        raise HTTPException(status_code=403, detail="Not authorized")
    return analytics_service.summarize(db, contractor_id, start_date, end_date, period)
