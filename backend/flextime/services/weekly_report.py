"""
Weekly client digests built on top of the aggregation rollups.

A client can own several groups; the report covers all of them. Weeks run
Sunday 00:00 to Saturday 23:59:59 (UTC dates).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from sqlalchemy.exc import SQLAlchemyError

from flextime.core.config import settings
from flextime.core.exceptions import ClientNotFoundError, NoGroupsForClientError
from flextime.db.repository import TimeTrackingRepository
from flextime.schemas.aggregations import AggregationOptions
from flextime.schemas.punches import WorkSession
from flextime.schemas.report import IncompleteSessionDetail, WeeklyReport
from flextime.services import aggregations
from flextime.services.metadata import MetadataResolver
from flextime.utils.format_hours import format_hours_long

logger = logging.getLogger(__name__)


def previous_week(today: date) -> tuple[date, date]:
    """Sunday..Saturday of the last complete week before ``today``."""
    days_since_saturday = (today.weekday() + 1) % 7 + 1
    end = today - timedelta(days=days_since_saturday)
    return end - timedelta(days=6), end


def compose_weekly_report(
    client_email: str,
    group_ids: Iterable[str],
    sessions: Iterable[WorkSession],
    metadata: MetadataResolver,
    start: date,
    end: date,
    include_incomplete: bool = True,
) -> WeeklyReport:
    group_ids = list(group_ids)
    options = AggregationOptions(
        start_date=start,
        end_date=end,
        group_ids=group_ids,
        include_incomplete=include_incomplete,
    )
    # no groups means an empty report, not an unrestricted one
    population = aggregations.filter_sessions(sessions, options) if group_ids else []

    incomplete = []
    for s in population:
        if s.is_complete:
            continue
        worker = metadata.worker(s.worker_id)
        incomplete.append(
            IncompleteSessionDetail(
                worker_id=s.worker_id,
                worker_name=worker.name if worker and worker.name else settings.UNKNOWN_LABEL,
                group_id=s.group_id,
                group_name=metadata.group_name(s.group_id) or settings.UNKNOWN_LABEL,
                start_time_utc=s.start_time_utc,
                belongs_to_date=s.start_date,
            )
        )

    return WeeklyReport(
        client_email=client_email,
        period_start=start,
        period_end=end,
        summary=aggregations.summarize(population),
        hours_by_worker=aggregations.hours_by_worker(population, metadata=metadata),
        hours_by_activity=aggregations.hours_by_activity(population, metadata=metadata),
        hours_by_group=aggregations.hours_by_group(population, metadata=metadata),
        incomplete_sessions_detail=sorted(incomplete, key=lambda d: (d.start_time_utc, d.worker_name)),
    )


def format_weekly_report(report: WeeklyReport) -> str:
    """Render a report as the plain-text email digest."""
    lines = [
        "Weekly Time Tracking Report",
        f"Period: {report.period_start.isoformat()} to {report.period_end.isoformat()}",
        "",
        "Summary:",
        f"  Total Hours: {format_hours_long(report.summary.total_hours)}",
        f"  Total Sessions: {report.summary.total_sessions}",
        f"  Unique Workers: {report.summary.unique_workers}",
        f"  Unique Groups: {report.summary.unique_groups}",
    ]
    if report.summary.incomplete_sessions > 0:
        lines.append(f"  Incomplete Sessions: {report.summary.incomplete_sessions}")
    lines.append("")

    if report.hours_by_worker:
        lines.append("Hours by Worker:")
        for w in report.hours_by_worker:
            lines.append(
                f"  {w.worker_name}: {format_hours_long(w.total_hours)} ({w.session_count} sessions)"
            )
            if w.incomplete_sessions > 0:
                lines.append(f"    {w.incomplete_sessions} incomplete session(s)")
        lines.append("")

    if report.hours_by_activity:
        lines.append("Hours by Activity:")
        for a in report.hours_by_activity:
            lines.append(
                f"  {a.activity_name}: {format_hours_long(a.total_hours)} ({a.session_count} sessions)"
            )
        lines.append("")

    if report.incomplete_sessions_detail:
        lines.append("Incomplete Sessions (Notes):")
        for d in report.incomplete_sessions_detail:
            lines.append(
                f"  {d.worker_name} ({d.group_name}) - Started: {d.start_time_utc.isoformat()}"
            )
        lines.append("")

    return "\n".join(lines)


class WeeklyReportService:
    def __init__(self, repository: TimeTrackingRepository) -> None:
        self.repository = repository

    async def for_client(
        self,
        client_email: str,
        start: date,
        end: date,
        include_incomplete: bool = True,
    ) -> WeeklyReport:
        group_ids = await self.repository.client_group_ids(client_email)
        if group_ids is None:
            raise ClientNotFoundError(client_email)
        if not group_ids:
            raise NoGroupsForClientError(client_email)

        options = AggregationOptions(
            start_date=start,
            end_date=end,
            group_ids=group_ids,
            include_incomplete=include_incomplete,
        )
        sessions = await self.repository.fetch_sessions(options)
        metadata = await self.repository.load_metadata()

        report = compose_weekly_report(
            client_email, group_ids, sessions, metadata, start, end, include_incomplete
        )
        logger.info(
            "Weekly report for %s (%s..%s): %d sessions over %d groups",
            client_email, start, end, report.summary.total_sessions, len(group_ids),
        )
        return report

    async def for_all_clients(
        self, start: date, end: date, include_incomplete: bool = True
    ) -> list[WeeklyReport]:
        reports: list[WeeklyReport] = []
        failed: list[str] = []

        for email in await self.repository.list_client_emails():
            try:
                reports.append(await self.for_client(email, start, end, include_incomplete))
            except (ClientNotFoundError, NoGroupsForClientError) as exc:
                logger.warning("Skipping weekly report for %s: %s", email, exc)
                failed.append(email)
            except SQLAlchemyError:
                logger.exception("Weekly report for %s failed on a database error", email)
                await self.repository.rollback()
                failed.append(email)

        if failed:
            logger.warning("Weekly reports skipped for %d clients: %s", len(failed), ", ".join(failed))
        return reports
