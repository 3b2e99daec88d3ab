"""
Clock-in/clock-out API routes.

GET /api/clock-in-out?start_date=2024-01-01&end_date=2024-01-31&worker_id=...
GET /api/clock-in-out?date=2024-01-05
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from flextime.api.aggregations import check_range
from flextime.api.deps import get_repository
from flextime.db.repository import TimeTrackingRepository
from flextime.schemas.clock import ClockInOutResponse
from flextime.services.clock_in_out import build_clock_records, resolve_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ClockInOutResponse,
    summary="First clock-in and last clock-out per worker per day",
)
async def get_clock_in_out(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    day: date | None = Query(default=None, alias="date", description="Single ISO date"),
    worker_id: str | None = Query(default=None),
    group_id: str | None = Query(default=None),
    timezone: str | None = Query(default=None, description="IANA zone for local times"),
    repository: TimeTrackingRepository = Depends(get_repository),
) -> ClockInOutResponse:
    if day is not None:
        start_date = end_date = day
    elif start_date is None or end_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either (start_date and end_date) or date is required",
        )
    check_range(start_date, end_date)

    try:
        resolve_timezone(timezone)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    punches = await repository.fetch_punches(start_date, end_date, worker_id, group_id)
    metadata = await repository.load_metadata()
    records = build_clock_records(punches, metadata, timezone=timezone)

    logger.info(
        "Clock view %s..%s: %d punches -> %d records", start_date, end_date, len(punches), len(records)
    )
    return ClockInOutResponse(count=len(records), records=records)
