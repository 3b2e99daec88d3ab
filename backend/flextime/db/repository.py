"""
SQLAlchemy-backed storage for punches, sessions, metadata and the client
directory.

Queries narrow the population in SQL; the exact filtering rules still come
from ``flextime.services.aggregations.filter_sessions`` so the database and
the in-memory path agree on membership semantics.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from flextime.core.config import settings
from flextime.db.models import (
    ActivityType,
    Client,
    ClientGroup,
    ClientGroupMapping,
    DirectoryImport,
    PunchEventRow,
    WorkSessionRow,
    Worker,
)
from flextime.schemas.aggregations import AggregationOptions
from flextime.schemas.punches import PunchEvent, WorkSession
from flextime.services.aggregations import filter_sessions
from flextime.services.metadata import DirectoryMetadata, WorkerInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupRef:
    id: str
    external_id: str
    name: str


def _uuids(values: Iterable[str]) -> list[uuid.UUID]:
    parsed = []
    for v in values:
        try:
            parsed.append(uuid.UUID(str(v)))
        except ValueError:
            logger.debug("Ignoring malformed id filter value '%s'", v)
    return parsed


def _str_or_none(value: uuid.UUID | None) -> str | None:
    return str(value) if value is not None else None


class TimeTrackingRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def rollback(self) -> None:
        """Discard a failed transaction so the session can keep serving queries."""
        await self.db.rollback()

    # --- punches / sessions ---------------------------------------------

    async def fetch_punches(
        self,
        start_date: date,
        end_date: date,
        worker_id: str | None = None,
        group_id: str | None = None,
    ) -> list[PunchEvent]:
        stmt = select(PunchEventRow).where(
            PunchEventRow.belongs_to_date >= start_date,
            PunchEventRow.belongs_to_date <= end_date,
        )
        if worker_id is not None:
            stmt = stmt.where(PunchEventRow.worker_id.in_(_uuids([worker_id])))
        if group_id is not None:
            stmt = stmt.where(PunchEventRow.group_id.in_(_uuids([group_id])))
        stmt = stmt.order_by(PunchEventRow.time_utc, PunchEventRow.id)

        result = await self.db.execute(stmt)
        return [
            PunchEvent(
                source_id=row.source_id,
                worker_id=str(row.worker_id),
                group_id=str(row.group_id),
                activity_id=_str_or_none(row.activity_id),
                direction=row.direction,
                timestamp_utc=row.time_utc,
                local_time=row.local_time,
                belongs_to_date=row.belongs_to_date,
            )
            for row in result.scalars().all()
        ]

    async def fetch_sessions(self, options: AggregationOptions) -> list[WorkSession]:
        stmt = select(WorkSessionRow)
        if options.start_date is not None:
            stmt = stmt.where(
                WorkSessionRow.start_time_utc
                >= datetime.combine(options.start_date, time.min, tzinfo=timezone.utc)
            )
        if options.end_date is not None:
            stmt = stmt.where(
                WorkSessionRow.start_time_utc
                <= datetime.combine(options.end_date, time.max, tzinfo=timezone.utc)
            )
        if options.worker_ids:
            stmt = stmt.where(WorkSessionRow.worker_id.in_(_uuids(options.worker_ids)))
        if options.group_ids:
            stmt = stmt.where(WorkSessionRow.group_id.in_(_uuids(options.group_ids)))
        if not options.include_incomplete:
            stmt = stmt.where(WorkSessionRow.is_complete.is_(True))
        stmt = stmt.order_by(WorkSessionRow.start_time_utc, WorkSessionRow.id)

        result = await self.db.execute(stmt)
        sessions = [
            WorkSession(
                worker_id=str(row.worker_id),
                group_id=str(row.group_id),
                activity_id=_str_or_none(row.activity_id),
                start_time_utc=row.start_time_utc,
                end_time_utc=row.end_time_utc,
                duration_minutes=row.duration_minutes,
                is_complete=row.is_complete,
            )
            for row in result.scalars().all()
        ]
        return filter_sessions(sessions, options)

    async def store_sessions(self, sessions: Sequence[WorkSession]) -> tuple[int, int]:
        """Insert sessions; rows already present count as skipped, not failed."""
        inserted = 0
        batch_size = max(settings.SESSION_INSERT_BATCH_SIZE, 1)

        for offset in range(0, len(sessions), batch_size):
            batch = sessions[offset : offset + batch_size]
            rows = [
                {
                    "worker_id": uuid.UUID(s.worker_id),
                    "group_id": uuid.UUID(s.group_id),
                    "activity_id": uuid.UUID(s.activity_id) if s.activity_id else None,
                    "start_time_utc": s.start_time_utc,
                    "end_time_utc": s.end_time_utc,
                    "duration_minutes": s.duration_minutes,
                    "is_complete": s.is_complete,
                }
                for s in batch
            ]
            stmt = pg_insert(WorkSessionRow).values(rows)
            stmt = stmt.on_conflict_do_nothing(constraint="uq_work_session_start")
            result = await self.db.execute(stmt)
            inserted += result.rowcount

        await self.db.commit()

        skipped = len(sessions) - inserted
        if skipped > 0:
            logger.info(
                "Sessions already stored: %d skipped by uq_work_session_start", skipped
            )
        return inserted, skipped

    # --- metadata ---------------------------------------------------------

    async def load_metadata(self) -> DirectoryMetadata:
        workers = await self.db.execute(select(Worker.id, Worker.name, Worker.email))
        groups = await self.db.execute(select(ClientGroup.id, ClientGroup.group_name))
        activities = await self.db.execute(select(ActivityType.id, ActivityType.name))

        return DirectoryMetadata(
            workers={
                str(wid): WorkerInfo(name=name or "", email=email)
                for wid, name, email in workers.all()
            },
            groups={str(gid): name for gid, name in groups.all()},
            activities={str(aid): name for aid, name in activities.all()},
        )

    async def list_groups(self) -> list[GroupRef]:
        result = await self.db.execute(
            select(ClientGroup.id, ClientGroup.external_id, ClientGroup.group_name)
        )
        return [GroupRef(id=str(gid), external_id=ext, name=name) for gid, ext, name in result.all()]

    # --- client directory -------------------------------------------------

    async def client_group_ids(self, email: str) -> list[str] | None:
        """Group ids mapped to ``email``; None when the client is unknown."""
        client = await self.db.execute(select(Client.id).where(Client.email == email.lower()))
        client_id = client.scalar_one_or_none()
        if client_id is None:
            return None
        result = await self.db.execute(
            select(ClientGroupMapping.group_id).where(ClientGroupMapping.client_id == client_id)
        )
        return [str(gid) for gid in result.scalars().all()]

    async def list_client_emails(self) -> list[str]:
        result = await self.db.execute(select(Client.email).order_by(Client.email))
        return list(result.scalars().all())

    async def upsert_client_mappings(self, email: str, group_ids: Iterable[str]) -> int:
        """Ensure the client exists and is mapped to each group; returns new mappings."""
        stmt = (
            pg_insert(Client)
            .values(email=email.lower())
            .on_conflict_do_nothing(index_elements=["email"])
        )
        await self.db.execute(stmt)
        client = await self.db.execute(select(Client.id).where(Client.email == email.lower()))
        client_id = client.scalar_one()

        rows = [{"client_id": client_id, "group_id": uuid.UUID(gid)} for gid in set(group_ids)]
        if not rows:
            return 0
        result = await self.db.execute(
            pg_insert(ClientGroupMapping)
            .values(rows)
            .on_conflict_do_nothing(constraint="uq_client_group_mapping")
        )
        return result.rowcount

    async def record_import(self, filename: str, status: str, logs: dict) -> None:
        self.db.add(
            DirectoryImport(
                filename=filename,
                uploaded_at=datetime.now(timezone.utc),
                status=status,
                logs=logs,
            )
        )
        await self.db.commit()

    async def list_imports(self, page: int, per_page: int) -> dict:
        total_result = await self.db.execute(select(func.count(DirectoryImport.id)))
        total = int(total_result.scalar_one())

        result = await self.db.execute(
            select(DirectoryImport)
            .order_by(DirectoryImport.uploaded_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        items = [
            {
                "id": h.id,
                "filename": h.filename,
                "uploaded_at": h.uploaded_at.isoformat(),
                "status": h.status,
                "logs": h.logs,
            }
            for h in result.scalars().all()
        ]
        return {
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": math.ceil(total / per_page) if total > 0 else 1,
            "items": items,
        }
