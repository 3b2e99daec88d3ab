from datetime import date, datetime

from pydantic import BaseModel

from flextime.schemas.aggregations import (
    HoursByActivity,
    HoursByGroup,
    HoursByWorker,
    SummaryStats,
)


class IncompleteSessionDetail(BaseModel):
    worker_id: str
    worker_name: str
    group_id: str
    group_name: str
    start_time_utc: datetime
    belongs_to_date: date


class WeeklyReport(BaseModel):
    client_email: str
    period_start: date
    period_end: date
    summary: SummaryStats
    hours_by_worker: list[HoursByWorker]
    hours_by_activity: list[HoursByActivity]
    hours_by_group: list[HoursByGroup]
    incomplete_sessions_detail: list[IncompleteSessionDetail]
