from datetime import date

from pydantic import BaseModel, model_validator


class DeriveSessionsRequest(BaseModel):
    start_date: date
    end_date: date
    worker_id: str | None = None
    group_id: str | None = None
    dry_run: bool = False

    @model_validator(mode="after")
    def check_range(self) -> "DeriveSessionsRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class DeriveSessionsResponse(BaseModel):
    start_date: date
    end_date: date
    punches: int
    worker_days: int
    derived: int
    complete: int
    incomplete: int
    orphan_outs: int
    inserted: int
    skipped: int
    dry_run: bool
