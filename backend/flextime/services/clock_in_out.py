"""
Clock-in/clock-out view: one row per worker per day.

Unlike session derivation this collapses a whole day into a single span, the
earliest In to the latest Out, however many pairs happened in between. Both
extremes are taken with explicit min/max so arrival order does not matter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flextime.core.config import settings
from flextime.schemas.clock import ClockInOutRecord
from flextime.schemas.punches import PunchEvent
from flextime.services.metadata import EMPTY_METADATA, MetadataResolver
from flextime.utils.durations import minutes_between, minutes_to_hours

logger = logging.getLogger(__name__)

_LOCAL_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_timezone(name: str | None) -> ZoneInfo | None:
    """Return the ZoneInfo for ``name``; raise ValueError for unknown zones."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone '{name}'") from exc


def _local(punch: PunchEvent, tz: ZoneInfo | None) -> str | None:
    if punch.local_time:
        return punch.local_time
    if tz is None:
        return None
    return punch.timestamp_utc.astimezone(tz).strftime(_LOCAL_FORMAT)


def build_clock_records(
    punches: Iterable[PunchEvent],
    metadata: MetadataResolver | None = None,
    *,
    timezone: str | None = None,
) -> list[ClockInOutRecord]:
    tz = resolve_timezone(timezone or settings.DEFAULT_TIMEZONE)
    metadata = metadata or EMPTY_METADATA

    first_in: dict[tuple, PunchEvent] = {}
    last_out: dict[tuple, PunchEvent] = {}
    keys: list[tuple] = []

    for punch in punches:
        key = (punch.worker_id, punch.belongs_to_date)
        if key not in first_in and key not in last_out:
            keys.append(key)
        if punch.direction == "In":
            current = first_in.get(key)
            if current is None or punch.timestamp_utc < current.timestamp_utc:
                first_in[key] = punch
        else:
            current = last_out.get(key)
            if current is None or punch.timestamp_utc > current.timestamp_utc:
                last_out[key] = punch

    records: list[ClockInOutRecord] = []
    for key in keys:
        worker_id, day = key
        info = metadata.worker(worker_id)
        clock_in = first_in.get(key)
        clock_out = last_out.get(key)

        total_hours = None
        if clock_in is not None and clock_out is not None:
            total_hours = minutes_to_hours(
                minutes_between(clock_in.timestamp_utc, clock_out.timestamp_utc)
            )

        records.append(
            ClockInOutRecord(
                worker_id=worker_id,
                worker_name=info.name if info and info.name else settings.UNKNOWN_LABEL,
                date=day,
                clock_in_time_utc=clock_in.timestamp_utc if clock_in else None,
                clock_in_time_local=_local(clock_in, tz) if clock_in else None,
                clock_out_time_utc=clock_out.timestamp_utc if clock_out else None,
                clock_out_time_local=_local(clock_out, tz) if clock_out else None,
                total_hours=total_hours,
                is_complete=total_hours is not None,
            )
        )

    incomplete = sum(1 for r in records if not r.is_complete)
    if incomplete:
        logger.info("Clock view: %d of %d worker-days lack a clock-in or clock-out", incomplete, len(records))

    records.sort(key=lambda r: (r.date, r.worker_name, r.worker_id))
    return records

