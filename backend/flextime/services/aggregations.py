"""
Hours aggregation over derived work sessions.

Every rollup follows the same rules:

- minutes are summed only over sessions that have a duration; incomplete
  sessions still count towards ``session_count`` / ``incomplete_sessions``;
- hours are computed once from the final minute sum (two decimals, half-up);
- with ``include_incomplete=False`` incomplete sessions are removed before
  grouping, so they disappear from every count;
- sessions without an activity form their own bucket and are never dropped;
- unresolvable names fall back to ``settings.UNKNOWN_LABEL``.

All functions are pure: they take an in-memory session population and return
new rows. Output order is deterministic (hours descending, ties by label and
id; per-day rollups by date ascending).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel

from flextime.core.config import settings
from flextime.core.exceptions import UnknownRollupError
from flextime.schemas.aggregations import (
    AggregationOptions,
    HoursByActivity,
    HoursByDay,
    HoursByGroup,
    HoursByGroupAndActivity,
    HoursByWorker,
    HoursByWorkerAndActivity,
    HoursByWorkerAndDay,
    SummaryStats,
)
from flextime.schemas.punches import WorkSession
from flextime.services.metadata import EMPTY_METADATA, MetadataResolver, WorkerInfo
from flextime.utils.durations import minutes_to_hours

logger = logging.getLogger(__name__)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass
class _Bucket:
    total_minutes: int = 0
    session_count: int = 0
    incomplete_sessions: int = 0
    workers: set[str] = field(default_factory=set)

    def add(self, session: WorkSession) -> None:
        self.session_count += 1
        self.workers.add(session.worker_id)
        if not session.is_complete:
            self.incomplete_sessions += 1
        if session.duration_minutes is not None:
            self.total_minutes += session.duration_minutes

    @property
    def total_hours(self) -> float:
        return minutes_to_hours(self.total_minutes)


def _accumulate(
    sessions: Iterable[WorkSession], key: Callable[[WorkSession], Hashable]
) -> dict[Any, _Bucket]:
    buckets: dict[Any, _Bucket] = {}
    for session in sessions:
        k = key(session)
        bucket = buckets.get(k)
        if bucket is None:
            bucket = buckets[k] = _Bucket()
        bucket.add(session)
    return buckets


class _Labels:
    """Metadata lookups with fallback labels, never raising."""

    def __init__(self, metadata: MetadataResolver | None) -> None:
        self._metadata = metadata or EMPTY_METADATA
        self._missing: set[tuple[str, str]] = set()

    def _note_missing(self, kind: str, ident: str) -> None:
        if (kind, ident) not in self._missing:
            self._missing.add((kind, ident))
            logger.warning("No %s metadata for id=%s; using '%s'", kind, ident, settings.UNKNOWN_LABEL)

    def worker(self, worker_id: str) -> WorkerInfo:
        info = self._metadata.worker(worker_id)
        if info is None or not info.name:
            self._note_missing("worker", worker_id)
            return WorkerInfo(name=settings.UNKNOWN_LABEL, email=info.email if info else None)
        return info

    def group(self, group_id: str) -> str:
        name = self._metadata.group_name(group_id)
        if not name:
            self._note_missing("group", group_id)
            return settings.UNKNOWN_LABEL
        return name

    def activity(self, activity_id: str | None) -> str:
        if activity_id is None:
            return settings.UNSPECIFIED_ACTIVITY_LABEL
        name = self._metadata.activity_name(activity_id)
        if not name:
            self._note_missing("activity", activity_id)
            return settings.UNKNOWN_LABEL
        return name


def _ranked(rows: list, tiebreak: Callable[[Any], tuple]) -> list:
    return sorted(rows, key=lambda r: (-r.total_hours, *tiebreak(r)))


def format_day_label(d: date) -> str:
    """2024-11-02 -> "Nov 2"."""
    return f"{_MONTHS[d.month - 1]} {d.day}"


def filter_sessions(
    sessions: Iterable[WorkSession], options: AggregationOptions | None = None
) -> list[WorkSession]:
    """Restrict the population to the requested range, ids and completeness."""
    if options is None:
        return list(sessions)

    workers = set(options.worker_ids) if options.worker_ids else None
    groups = set(options.group_ids) if options.group_ids else None
    activities = set(options.activity_ids) if options.activity_ids else None

    kept = []
    for s in sessions:
        if options.start_date and s.start_date < options.start_date:
            continue
        if options.end_date and s.start_date > options.end_date:
            continue
        if workers is not None and s.worker_id not in workers:
            continue
        if groups is not None and s.group_id not in groups:
            continue
        if activities is not None and s.activity_id not in activities:
            continue
        if not options.include_incomplete and not s.is_complete:
            continue
        kept.append(s)
    return kept


def hours_by_worker(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByWorker]:
    labels = _Labels(metadata)
    rows = []
    for worker_id, b in _accumulate(filter_sessions(sessions, options), lambda s: s.worker_id).items():
        info = labels.worker(worker_id)
        rows.append(
            HoursByWorker(
                worker_id=worker_id,
                worker_name=info.name,
                worker_email=info.email,
                total_hours=b.total_hours,
                total_minutes=b.total_minutes,
                session_count=b.session_count,
                incomplete_sessions=b.incomplete_sessions,
            )
        )
    return _ranked(rows, lambda r: (r.worker_name, r.worker_id))


def hours_by_activity(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByActivity]:
    labels = _Labels(metadata)
    rows = [
        HoursByActivity(
            activity_id=activity_id,
            activity_name=labels.activity(activity_id),
            total_hours=b.total_hours,
            total_minutes=b.total_minutes,
            session_count=b.session_count,
        )
        for activity_id, b in _accumulate(
            filter_sessions(sessions, options), lambda s: s.activity_id
        ).items()
    ]
    return _ranked(rows, lambda r: (r.activity_name, r.activity_id or ""))


def hours_by_day(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByDay]:
    rows = [
        HoursByDay(
            date=day,
            date_formatted=format_day_label(day),
            total_hours=b.total_hours,
            total_minutes=b.total_minutes,
            session_count=b.session_count,
        )
        for day, b in _accumulate(filter_sessions(sessions, options), lambda s: s.start_date).items()
    ]
    return sorted(rows, key=lambda r: r.date)


def hours_by_group(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByGroup]:
    labels = _Labels(metadata)
    rows = [
        HoursByGroup(
            group_id=group_id,
            group_name=labels.group(group_id),
            total_hours=b.total_hours,
            total_minutes=b.total_minutes,
            session_count=b.session_count,
            agent_count=len(b.workers),
            incomplete_sessions=b.incomplete_sessions,
        )
        for group_id, b in _accumulate(filter_sessions(sessions, options), lambda s: s.group_id).items()
    ]
    return _ranked(rows, lambda r: (r.group_name, r.group_id))


def hours_by_worker_and_activity(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByWorkerAndActivity]:
    labels = _Labels(metadata)
    rows = []
    buckets = _accumulate(
        filter_sessions(sessions, options), lambda s: (s.worker_id, s.activity_id)
    )
    for (worker_id, activity_id), b in buckets.items():
        rows.append(
            HoursByWorkerAndActivity(
                worker_id=worker_id,
                worker_name=labels.worker(worker_id).name,
                activity_id=activity_id,
                activity_name=labels.activity(activity_id),
                total_hours=b.total_hours,
                total_minutes=b.total_minutes,
                session_count=b.session_count,
            )
        )
    return _ranked(
        rows,
        lambda r: (r.worker_name, r.worker_id, r.activity_name, r.activity_id or ""),
    )


def hours_by_group_and_activity(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByGroupAndActivity]:
    labels = _Labels(metadata)
    rows = []
    buckets = _accumulate(
        filter_sessions(sessions, options), lambda s: (s.group_id, s.activity_id)
    )
    for (group_id, activity_id), b in buckets.items():
        rows.append(
            HoursByGroupAndActivity(
                group_id=group_id,
                group_name=labels.group(group_id),
                activity_id=activity_id,
                activity_name=labels.activity(activity_id),
                total_hours=b.total_hours,
                total_minutes=b.total_minutes,
                session_count=b.session_count,
            )
        )
    return _ranked(
        rows,
        lambda r: (r.group_name, r.group_id, r.activity_name, r.activity_id or ""),
    )


def hours_by_worker_and_day(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> list[HoursByWorkerAndDay]:
    labels = _Labels(metadata)
    rows = []
    buckets = _accumulate(
        filter_sessions(sessions, options), lambda s: (s.worker_id, s.start_date)
    )
    for (worker_id, day), b in buckets.items():
        rows.append(
            HoursByWorkerAndDay(
                worker_id=worker_id,
                worker_name=labels.worker(worker_id).name,
                date=day,
                total_hours=b.total_hours,
                total_minutes=b.total_minutes,
                session_count=b.session_count,
                incomplete_sessions=b.incomplete_sessions,
            )
        )
    return sorted(rows, key=lambda r: (r.date, -r.total_hours, r.worker_name, r.worker_id))


def summarize(
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> SummaryStats:
    population = filter_sessions(sessions, options)
    total = _Bucket()
    for s in population:
        total.add(s)

    return SummaryStats(
        total_hours=total.total_hours,
        total_minutes=total.total_minutes,
        total_sessions=total.session_count,
        incomplete_sessions=total.incomplete_sessions,
        unique_workers=len(total.workers),
        unique_groups=len({s.group_id for s in population}),
        unique_activities=len({s.activity_id for s in population}),
    )


ROLLUPS: dict[str, Callable[..., SummaryStats | list[BaseModel]]] = {
    "summary": summarize,
    "hoursByWorker": hours_by_worker,
    "hoursByActivity": hours_by_activity,
    "hoursByDay": hours_by_day,
    "hoursByGroup": hours_by_group,
    "hoursByWorkerAndActivity": hours_by_worker_and_activity,
    "hoursByGroupAndActivity": hours_by_group_and_activity,
    "hoursByWorkerAndDay": hours_by_worker_and_day,
}


def aggregate(
    kind: str,
    sessions: Iterable[WorkSession],
    options: AggregationOptions | None = None,
    metadata: MetadataResolver | None = None,
) -> SummaryStats | list[BaseModel]:
    """Dispatch to the rollup registered under ``kind``."""
    rollup = ROLLUPS.get(kind)
    if rollup is None:
        raise UnknownRollupError(kind, list(ROLLUPS))
    return rollup(sessions, options, metadata)
