import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from flextime.api.aggregations import check_range
from flextime.api.deps import get_repository
from flextime.db.repository import TimeTrackingRepository
from flextime.schemas.report import WeeklyReport
from flextime.services.weekly_report import (
    WeeklyReportService,
    format_weekly_report,
    previous_week,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _period(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    if start_date is None and end_date is None:
        return previous_week(date.today())
    if start_date is None or end_date is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide both start_date and end_date, or neither for the previous week",
        )
    check_range(start_date, end_date)
    return start_date, end_date


@router.get(
    "/weekly",
    response_model=WeeklyReport,
    summary="Weekly report for one client (defaults to the previous Sunday-Saturday week)",
)
async def get_weekly_report(
    client_email: str = Query(...),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    include_incomplete: bool = Query(default=True),
    repository: TimeTrackingRepository = Depends(get_repository),
) -> WeeklyReport:
    start, end = _period(start_date, end_date)
    return await WeeklyReportService(repository).for_client(
        client_email, start, end, include_incomplete
    )


@router.get(
    "/weekly/text",
    response_class=PlainTextResponse,
    summary="Weekly report rendered as the plain-text email digest",
)
async def get_weekly_report_text(
    client_email: str = Query(...),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    repository: TimeTrackingRepository = Depends(get_repository),
) -> str:
    start, end = _period(start_date, end_date)
    report = await WeeklyReportService(repository).for_client(client_email, start, end)
    return format_weekly_report(report)


@router.get(
    "/weekly/all",
    response_model=list[WeeklyReport],
    summary="Weekly reports for every client in the directory",
)
async def get_all_weekly_reports(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    repository: TimeTrackingRepository = Depends(get_repository),
) -> list[WeeklyReport]:
    start, end = _period(start_date, end_date)
    reports = await WeeklyReportService(repository).for_all_clients(start, end)
    logger.info("Generated %d weekly reports for %s..%s", len(reports), start, end)
    return reports
