from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from flextime.utils.durations import minutes_between

PunchDirection = Literal["In", "Out"]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PunchEvent(BaseModel):
    """A single clock-in or clock-out, as delivered by ingestion."""

    model_config = ConfigDict(frozen=True)

    source_id: str | None = None
    worker_id: str
    group_id: str
    activity_id: str | None = None
    direction: PunchDirection
    timestamp_utc: datetime
    local_time: str | None = None
    belongs_to_date: date

    @field_validator("timestamp_utc")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_validator("worker_id", "group_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field must not be empty")
        return v


class WorkSession(BaseModel):
    """One continuous work span derived from an In punch and, optionally, its Out."""

    model_config = ConfigDict(frozen=True)

    worker_id: str
    group_id: str
    activity_id: str | None = None
    start_time_utc: datetime
    end_time_utc: datetime | None = None
    duration_minutes: int | None = None
    is_complete: bool

    @field_validator("start_time_utc", "end_time_utc")
    @classmethod
    def normalize_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v) if v is not None else None

    @model_validator(mode="after")
    def check_completeness(self) -> "WorkSession":
        if self.is_complete:
            if self.end_time_utc is None:
                raise ValueError("complete session requires end_time_utc")
            expected = minutes_between(self.start_time_utc, self.end_time_utc)
            if self.duration_minutes != expected:
                raise ValueError(
                    f"duration_minutes={self.duration_minutes} does not match span ({expected} min)"
                )
        elif self.end_time_utc is not None or self.duration_minutes is not None:
            raise ValueError("incomplete session must not carry end_time_utc or duration_minutes")
        return self

    @classmethod
    def closed(cls, opening: PunchEvent, closing: PunchEvent) -> "WorkSession":
        return cls(
            worker_id=opening.worker_id,
            group_id=opening.group_id,
            activity_id=opening.activity_id,
            start_time_utc=opening.timestamp_utc,
            end_time_utc=closing.timestamp_utc,
            duration_minutes=minutes_between(opening.timestamp_utc, closing.timestamp_utc),
            is_complete=True,
        )

    @classmethod
    def unterminated(cls, opening: PunchEvent) -> "WorkSession":
        return cls(
            worker_id=opening.worker_id,
            group_id=opening.group_id,
            activity_id=opening.activity_id,
            start_time_utc=opening.timestamp_utc,
            is_complete=False,
        )

    @property
    def start_date(self) -> date:
        return self.start_time_utc.date()
