"""
Aggregation API routes.

GET /api/aggregations?type=hoursByWorker&start_date=2024-01-01&end_date=2024-01-31
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from flextime.api.deps import get_repository
from flextime.core.exceptions import UnknownRollupError
from flextime.db.repository import TimeTrackingRepository
from flextime.schemas.aggregations import AggregationOptions
from flextime.services.aggregations import ROLLUPS, aggregate

logger = logging.getLogger(__name__)

router = APIRouter()


def split_ids(raw: str | None) -> list[str] | None:
    """Split "a,b,,c" into ["a", "b", "c"]; empty or missing gives None (no restriction)."""
    if raw is None:
        return None
    ids = [part.strip() for part in raw.split(",") if part.strip()]
    return ids or None


def split_activity_ids(raw: str | None) -> list[str | None] | None:
    """Like split_ids; the token "null" selects sessions without an activity."""
    ids = split_ids(raw)
    if ids is None:
        return None
    return [None if i.lower() == "null" else i for i in ids]


def check_range(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date",
        )


@router.get("", summary="Hours rollups over derived sessions")
async def get_aggregation(
    kind: str = Query(default="summary", alias="type", description=f"One of: {', '.join(ROLLUPS)}"),
    start_date: date = Query(..., description="ISO date YYYY-MM-DD"),
    end_date: date = Query(..., description="ISO date YYYY-MM-DD"),
    worker_ids: str | None = Query(default=None, description="Comma-separated worker ids"),
    group_ids: str | None = Query(default=None, description="Comma-separated group ids"),
    activity_ids: str | None = Query(default=None, description="Comma-separated activity ids; \"null\" for none"),
    include_incomplete: bool = Query(default=True),
    repository: TimeTrackingRepository = Depends(get_repository),
) -> dict:
    if kind not in ROLLUPS:
        raise UnknownRollupError(kind, list(ROLLUPS))
    check_range(start_date, end_date)

    options = AggregationOptions(
        start_date=start_date,
        end_date=end_date,
        worker_ids=split_ids(worker_ids),
        group_ids=split_ids(group_ids),
        activity_ids=split_activity_ids(activity_ids),
        include_incomplete=include_incomplete,
    )

    sessions = await repository.fetch_sessions(options)
    metadata = await repository.load_metadata()
    result = aggregate(kind, sessions, options, metadata)

    logger.info(
        "Aggregation %s for %s..%s over %d sessions",
        kind, start_date, end_date, len(sessions),
    )
    return {
        "success": True,
        "type": kind,
        "options": options.model_dump(mode="json"),
        "result": result,
    }
