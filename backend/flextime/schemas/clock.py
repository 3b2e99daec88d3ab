from datetime import date, datetime

from pydantic import BaseModel


class ClockInOutRecord(BaseModel):
    worker_id: str
    worker_name: str
    date: date
    clock_in_time_utc: datetime | None = None
    clock_in_time_local: str | None = None
    clock_out_time_utc: datetime | None = None
    clock_out_time_local: str | None = None
    total_hours: float | None = None
    is_complete: bool = False


class ClockInOutResponse(BaseModel):
    success: bool = True
    count: int
    records: list[ClockInOutRecord]
