"""
HTTP API tests (in-memory repository, no database).

Tests:
  - GET  /api/aggregations      : rollups, validation, error envelope
  - GET  /api/clock-in-out      : date/range parameters, timezone
  - POST /api/sessions/derive   : derive + store, duplicates, dry run
  - GET  /api/reports/weekly*   : JSON, text and all-clients reports
  - POST /api/clients/upload    : directory import, history
"""

from __future__ import annotations

from datetime import timedelta

from httpx import AsyncClient

from flextime.db.repository import GroupRef
from tests.factories import MONDAY, FakeRepository, at, punch, session

TUESDAY = MONDAY + timedelta(days=1)
RANGE = {"start_date": "2024-11-04", "end_date": "2024-11-10"}


def _fill_sessions(repository: FakeRepository) -> None:
    repository.sessions = [
        session(at(9), 60, worker_id="w1"),
        session(at(13), 90, worker_id="w1"),
        session(at(8, day=TUESDAY), None, worker_id="w1"),
        session(at(10), 30, worker_id="w2", group_id="g2", activity_id=None),
    ]


def _fill_punches(repository: FakeRepository) -> None:
    repository.punches = [
        punch("In", at(9), worker_id="w1"),
        punch("Out", at(12), worker_id="w1"),
        punch("In", at(13), worker_id="w1"),
        punch("Out", at(17, 30), worker_id="w1"),
        punch("Out", at(7), worker_id="w2"),
        punch("In", at(8), worker_id="w2"),
    ]


class TestHealth:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestAggregationsEndpoint:
    async def test_hours_by_worker(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_sessions(repository)

        resp = await client.get("/api/aggregations", params={"type": "hoursByWorker", **RANGE})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["type"] == "hoursByWorker"
        assert body["options"]["start_date"] == "2024-11-04"
        rows = body["result"]
        assert rows[0]["worker_name"] == "Alice Moreno"
        assert rows[0]["total_hours"] == 2.5
        assert rows[0]["incomplete_sessions"] == 1

    async def test_summary_is_default(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_sessions(repository)

        resp = await client.get("/api/aggregations", params=RANGE)

        assert resp.status_code == 200
        assert resp.json()["type"] == "summary"
        assert resp.json()["result"]["total_sessions"] == 4

    async def test_filters_and_incomplete_flag(
        self, client: AsyncClient, repository: FakeRepository
    ) -> None:
        _fill_sessions(repository)

        resp = await client.get(
            "/api/aggregations",
            params={
                "type": "summary",
                "worker_ids": "w1, ,",
                "include_incomplete": "false",
                **RANGE,
            },
        )

        result = resp.json()["result"]
        assert result["total_sessions"] == 2
        assert result["incomplete_sessions"] == 0
        assert result["total_hours"] == 2.5

    async def test_empty_range(self, client: AsyncClient) -> None:
        resp = await client.get("/api/aggregations", params={"type": "hoursByDay", **RANGE})

        assert resp.status_code == 200
        assert resp.json()["result"] == []

    async def test_unknown_type(self, client: AsyncClient) -> None:
        resp = await client.get("/api/aggregations", params={"type": "hoursByMoon", **RANGE})

        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert "Unknown aggregation type: hoursByMoon" in body["detail"]

    async def test_missing_dates(self, client: AsyncClient) -> None:
        resp = await client.get("/api/aggregations", params={"type": "summary"})

        assert resp.status_code == 422

    async def test_invalid_date(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/aggregations", params={"start_date": "2024-13-01", "end_date": "2024-11-10"}
        )

        assert resp.status_code == 422

    async def test_inverted_range(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/aggregations", params={"start_date": "2024-11-10", "end_date": "2024-11-04"}
        )

        assert resp.status_code == 400
        assert resp.json()["success"] is False

    async def test_null_activity_token(
        self, client: AsyncClient, repository: FakeRepository
    ) -> None:
        _fill_sessions(repository)

        resp = await client.get(
            "/api/aggregations",
            params={"type": "hoursByActivity", "activity_ids": "null", **RANGE},
        )

        rows = resp.json()["result"]
        assert [(r["activity_id"], r["activity_name"]) for r in rows] == [(None, "Unspecified")]
        assert resp.json()["options"]["activity_ids"] == [None]


class TestClockEndpoint:
    async def test_single_date(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_punches(repository)

        resp = await client.get("/api/clock-in-out", params={"date": "2024-11-04"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["count"] == 2
        alice, bob = body["records"]
        assert alice["worker_name"] == "Alice Moreno"
        assert alice["total_hours"] == 8.5
        assert alice["is_complete"] is True
        assert bob["clock_in_time_utc"] is not None
        assert bob["clock_out_time_utc"] is not None
        assert bob["total_hours"] == -1.0

    async def test_worker_filter_and_timezone(
        self, client: AsyncClient, repository: FakeRepository
    ) -> None:
        _fill_punches(repository)

        resp = await client.get(
            "/api/clock-in-out",
            params={"worker_id": "w1", "timezone": "America/New_York", **RANGE},
        )

        [record] = resp.json()["records"]
        assert record["clock_in_time_local"] == "2024-11-04 04:00:00"

    async def test_requires_dates(self, client: AsyncClient) -> None:
        resp = await client.get("/api/clock-in-out")

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Either (start_date and end_date) or date is required"

    async def test_unknown_timezone(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/clock-in-out", params={"date": "2024-11-04", "timezone": "Nowhere/Land"}
        )

        assert resp.status_code == 400
        assert "Unknown timezone" in resp.json()["detail"]


class TestDeriveEndpoint:
    async def test_derive_and_store(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_punches(repository)

        resp = await client.post("/api/sessions/derive", json=RANGE)

        assert resp.status_code == 200
        body = resp.json()
        assert body["punches"] == 6
        assert body["worker_days"] == 2
        assert body["derived"] == 3
        assert body["complete"] == 2
        assert body["incomplete"] == 1
        assert body["orphan_outs"] == 1
        assert body["inserted"] == 3
        assert body["skipped"] == 0
        assert len(repository.sessions) == 3

    async def test_rederive_skips_duplicates(
        self, client: AsyncClient, repository: FakeRepository
    ) -> None:
        _fill_punches(repository)

        await client.post("/api/sessions/derive", json=RANGE)
        resp = await client.post("/api/sessions/derive", json=RANGE)

        body = resp.json()
        assert body["inserted"] == 0
        assert body["skipped"] == 3
        assert len(repository.sessions) == 3

    async def test_dry_run_stores_nothing(
        self, client: AsyncClient, repository: FakeRepository
    ) -> None:
        _fill_punches(repository)

        resp = await client.post("/api/sessions/derive", json={**RANGE, "dry_run": True})

        assert resp.json()["derived"] == 3
        assert resp.json()["inserted"] == 0
        assert repository.sessions == []

    async def test_inverted_range_rejected(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/sessions/derive", json={"start_date": "2024-11-10", "end_date": "2024-11-04"}
        )

        assert resp.status_code == 422


class TestReportsEndpoint:
    async def test_weekly_json(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_sessions(repository)
        repository.clients = {"client@acme.com": ["g1"]}

        resp = await client.get(
            "/api/reports/weekly",
            params={"client_email": "client@acme.com", "start_date": "2024-11-03", "end_date": "2024-11-09"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["summary"]["total_sessions"] == 3
        assert body["hours_by_group"][0]["group_name"] == "Acme Support"
        assert len(body["incomplete_sessions_detail"]) == 1

    async def test_weekly_text(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_sessions(repository)
        repository.clients = {"client@acme.com": ["g1", "g2"]}

        resp = await client.get(
            "/api/reports/weekly/text",
            params={"client_email": "client@acme.com", "start_date": "2024-11-03", "end_date": "2024-11-09"},
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text.startswith("Weekly Time Tracking Report\nPeriod: 2024-11-03 to 2024-11-09")

    async def test_unknown_client(self, client: AsyncClient) -> None:
        resp = await client.get("/api/reports/weekly", params={"client_email": "who@example.com"})

        assert resp.status_code == 404
        assert resp.json() == {"detail": "Client not found: who@example.com", "success": False}

    async def test_half_open_period_rejected(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/reports/weekly",
            params={"client_email": "client@acme.com", "start_date": "2024-11-03"},
        )

        assert resp.status_code == 400

    async def test_all_clients(self, client: AsyncClient, repository: FakeRepository) -> None:
        _fill_sessions(repository)
        repository.clients = {"client@acme.com": ["g1"], "idle@example.com": []}

        resp = await client.get(
            "/api/reports/weekly/all", params={"start_date": "2024-11-03", "end_date": "2024-11-09"}
        )

        assert resp.status_code == 200
        assert [r["client_email"] for r in resp.json()] == ["client@acme.com"]


class TestClientDirectoryEndpoint:
    async def test_upload_csv(self, client: AsyncClient, repository: FakeRepository) -> None:
        repository.groups = [
            GroupRef(id="g1", external_id="grp-acme", name="Acme Support"),
            GroupRef(id="g2", external_id="grp-globex", name="Globex Ops"),
        ]
        content = b"Email,Groups\nclient@acme.com,Acme Support;grp-globex;Umbrella\n"

        resp = await client.post(
            "/api/clients/upload", files={"file": ("directory.csv", content, "text/csv")}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["clients"] == 1
        assert body["mappings_added"] == 2
        assert body["unmatched_groups"] == ["client@acme.com: Umbrella"]
        assert body["status"] == "partial"
        assert sorted(repository.clients["client@acme.com"]) == ["g1", "g2"]

        history = await client.get("/api/clients/history")
        assert history.json()["total"] == 1
        assert history.json()["items"][0]["status"] == "partial"

    async def test_upload_rejects_other_extensions(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/clients/upload", files={"file": ("notes.txt", b"hello", "text/plain")}
        )

        assert resp.status_code == 400
        assert "Unsupported file type" in resp.json()["detail"]
