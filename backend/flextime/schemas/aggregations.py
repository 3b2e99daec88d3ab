from datetime import date
from typing import Literal

from pydantic import BaseModel

RollupKind = Literal[
    "summary",
    "hoursByWorker",
    "hoursByActivity",
    "hoursByDay",
    "hoursByGroup",
    "hoursByWorkerAndActivity",
    "hoursByGroupAndActivity",
    "hoursByWorkerAndDay",
]


class AggregationOptions(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    worker_ids: list[str] | None = None
    group_ids: list[str] | None = None
    # None selects sessions without an activity
    activity_ids: list[str | None] | None = None
    include_incomplete: bool = True


class HoursByWorker(BaseModel):
    worker_id: str
    worker_name: str
    worker_email: str | None = None
    total_hours: float
    total_minutes: int
    session_count: int
    incomplete_sessions: int


class HoursByActivity(BaseModel):
    activity_id: str | None
    activity_name: str
    total_hours: float
    total_minutes: int
    session_count: int


class HoursByDay(BaseModel):
    date: date
    date_formatted: str
    total_hours: float
    total_minutes: int
    session_count: int


class HoursByGroup(BaseModel):
    group_id: str
    group_name: str
    total_hours: float
    total_minutes: int
    session_count: int
    agent_count: int
    incomplete_sessions: int


class HoursByWorkerAndActivity(BaseModel):
    worker_id: str
    worker_name: str
    activity_id: str | None
    activity_name: str
    total_hours: float
    total_minutes: int
    session_count: int


class HoursByGroupAndActivity(BaseModel):
    group_id: str
    group_name: str
    activity_id: str | None
    activity_name: str
    total_hours: float
    total_minutes: int
    session_count: int


class HoursByWorkerAndDay(BaseModel):
    worker_id: str
    worker_name: str
    date: date
    total_hours: float
    total_minutes: int
    session_count: int
    incomplete_sessions: int


class SummaryStats(BaseModel):
    total_hours: float = 0.0
    total_minutes: int = 0
    total_sessions: int = 0
    incomplete_sessions: int = 0
    unique_workers: int = 0
    unique_groups: int = 0
    unique_activities: int = 0
