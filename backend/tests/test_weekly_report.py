"""
Weekly client report tests.

Tests:
  - previous_week : Sunday..Saturday window before a given day
  - compose_weekly_report / format_weekly_report : content and text digest
  - WeeklyReportService : client lookup failures and the all-clients sweep
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from flextime.core.exceptions import ClientNotFoundError, NoGroupsForClientError
from flextime.services.weekly_report import (
    WeeklyReportService,
    compose_weekly_report,
    format_weekly_report,
    previous_week,
)
from tests.factories import MONDAY, FakeRepository, at, session

TUESDAY = MONDAY + timedelta(days=1)
SUNDAY = date(2024, 11, 3)
SATURDAY = date(2024, 11, 9)


@pytest.fixture
def sessions() -> list:
    return [
        session(at(9), 60, worker_id="w1"),
        session(at(13), 90, worker_id="w1"),
        session(at(8, day=TUESDAY), None, worker_id="w1"),
        session(at(10), 30, worker_id="w2", activity_id=None),
        session(at(11, day=TUESDAY), 45, worker_id="w2", group_id="g2", activity_id="a2"),
        # another client's group
        session(at(9), 120, worker_id="w2", group_id="g3"),
        # following week
        session(at(9, day=date(2024, 11, 12)), 60, worker_id="w1"),
    ]


class TestPreviousWeek:
    @pytest.mark.parametrize(
        "today",
        [date(2024, 11, 10), date(2024, 11, 13), date(2024, 11, 16)],
    )
    def test_returns_last_complete_week(self, today: date) -> None:
        assert previous_week(today) == (SUNDAY, SATURDAY)

    def test_saturday_does_not_count_its_own_week(self) -> None:
        assert previous_week(SATURDAY) == (date(2024, 10, 27), date(2024, 11, 2))

    def test_window_is_sunday_to_saturday(self) -> None:
        start, end = previous_week(date(2025, 3, 5))

        assert start.weekday() == 6
        assert end.weekday() == 5
        assert end - start == timedelta(days=6)


class TestComposeReport:
    def test_only_client_groups_and_period(self, sessions, metadata) -> None:
        report = compose_weekly_report(
            "client@acme.com", ["g1", "g2"], sessions, metadata, SUNDAY, SATURDAY
        )

        assert report.client_email == "client@acme.com"
        assert report.summary.total_sessions == 5
        assert report.summary.total_hours == 3.75
        assert report.summary.unique_groups == 2
        assert {g.group_id for g in report.hours_by_group} == {"g1", "g2"}

    def test_incomplete_session_notes(self, sessions, metadata) -> None:
        report = compose_weekly_report(
            "client@acme.com", ["g1", "g2"], sessions, metadata, SUNDAY, SATURDAY
        )

        [note] = report.incomplete_sessions_detail
        assert note.worker_name == "Alice Moreno"
        assert note.group_name == "Acme Support"
        assert note.start_time_utc == at(8, day=TUESDAY)
        assert note.belongs_to_date == TUESDAY

    def test_without_incomplete(self, sessions, metadata) -> None:
        report = compose_weekly_report(
            "client@acme.com", ["g1", "g2"], sessions, metadata, SUNDAY, SATURDAY,
            include_incomplete=False,
        )

        assert report.summary.total_sessions == 4
        assert report.incomplete_sessions_detail == []

    def test_text_digest(self, sessions, metadata) -> None:
        report = compose_weekly_report(
            "client@acme.com", ["g1", "g2"], sessions, metadata, SUNDAY, SATURDAY
        )
        text = format_weekly_report(report)
        lines = text.splitlines()

        assert lines[0] == "Weekly Time Tracking Report"
        assert lines[1] == "Period: 2024-11-03 to 2024-11-09"
        assert "  Total Hours: 3 hrs, 45 min" in lines
        assert "  Incomplete Sessions: 1" in lines
        assert "  Alice Moreno: 2 hrs, 30 min (3 sessions)" in lines
        assert "    1 incomplete session(s)" in lines
        assert "  Unspecified: 30 min (1 sessions)" in lines
        assert "  Alice Moreno (Acme Support) - Started: 2024-11-05T08:00:00+00:00" in lines

    def test_text_digest_for_empty_week(self, metadata) -> None:
        report = compose_weekly_report(
            "client@acme.com", ["g1"], [], metadata, SUNDAY, SATURDAY
        )
        text = format_weekly_report(report)

        assert "  Total Hours: 0 hrs, 0 min" in text
        assert "Hours by Worker:" not in text
        assert "Incomplete Sessions" not in text

    def test_no_groups_gives_empty_report(self, sessions, metadata) -> None:
        """An empty group list restricts to nothing rather than to everything."""
        report = compose_weekly_report(
            "client@acme.com", [], sessions, metadata, SUNDAY, SATURDAY
        )

        assert report.summary.total_sessions == 0
        assert report.hours_by_worker == []
        assert report.hours_by_group == []
        assert report.incomplete_sessions_detail == []


class _FlakyRepository(FakeRepository):
    """Fails with a database error when fetching one client's groups."""

    def __init__(self, broken_email: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.broken_email = broken_email

    async def client_group_ids(self, email):
        if email == self.broken_email:
            raise OperationalError("SELECT client_groups", {}, Exception("connection reset"))
        return await super().client_group_ids(email)


class TestWeeklyReportService:
    async def test_for_client(self, sessions, metadata) -> None:
        repo = FakeRepository(
            sessions=sessions, metadata=metadata, clients={"client@acme.com": ["g1", "g2"]}
        )

        report = await WeeklyReportService(repo).for_client("Client@Acme.com", SUNDAY, SATURDAY)

        assert report.summary.total_sessions == 5

    async def test_unknown_client(self, metadata) -> None:
        repo = FakeRepository(metadata=metadata)

        with pytest.raises(ClientNotFoundError):
            await WeeklyReportService(repo).for_client("nobody@example.com", SUNDAY, SATURDAY)

    async def test_client_without_groups(self, metadata) -> None:
        repo = FakeRepository(metadata=metadata, clients={"empty@example.com": []})

        with pytest.raises(NoGroupsForClientError):
            await WeeklyReportService(repo).for_client("empty@example.com", SUNDAY, SATURDAY)

    async def test_all_clients_skips_failures(self, sessions, metadata) -> None:
        repo = FakeRepository(
            sessions=sessions,
            metadata=metadata,
            clients={
                "client@acme.com": ["g1", "g2"],
                "empty@example.com": [],
                "other@globex.com": ["g3"],
            },
        )

        reports = await WeeklyReportService(repo).for_all_clients(SUNDAY, SATURDAY)

        assert [r.client_email for r in reports] == ["client@acme.com", "other@globex.com"]
        assert reports[1].summary.total_minutes == 120

    async def test_all_clients_survives_database_error(self, sessions, metadata) -> None:
        repo = _FlakyRepository(
            "broken@example.com",
            sessions=sessions,
            metadata=metadata,
            clients={
                "broken@example.com": ["g1"],
                "client@acme.com": ["g1", "g2"],
                "other@globex.com": ["g3"],
            },
        )

        reports = await WeeklyReportService(repo).for_all_clients(SUNDAY, SATURDAY)

        assert [r.client_email for r in reports] == ["client@acme.com", "other@globex.com"]
        assert repo.rollbacks == 1
