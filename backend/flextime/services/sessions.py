"""
Session derivation.

Pairs raw In/Out punches into work sessions, independently per worker per
calendar day (``belongs_to_date``). Each punch ends up in exactly one of
three places:

  In  with nothing pending      -> becomes the pending opening punch
  In  while another is pending  -> the pending one is emitted as an
                                   incomplete session, the new In replaces it
  Out while an In is pending    -> complete session, pending cleared
  Out with nothing pending      -> orphan, dropped (counted, not emitted)

A pending In left over at the end of the day is emitted as incomplete.
Nothing here raises for a malformed sequence and nothing touches storage;
persisting the result is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from operator import attrgetter

from flextime.schemas.punches import PunchEvent, WorkSession

logger = logging.getLogger(__name__)

WorkerDay = tuple[str, date]


@dataclass
class DerivationResult:
    sessions: list[WorkSession] = field(default_factory=list)
    worker_days: int = 0
    orphan_outs: int = 0

    @property
    def complete_count(self) -> int:
        return sum(1 for s in self.sessions if s.is_complete)

    @property
    def incomplete_count(self) -> int:
        return len(self.sessions) - self.complete_count

    @property
    def unterminated_ins(self) -> int:
        return self.incomplete_count


def group_by_worker_day(punches: Iterable[PunchEvent]) -> dict[WorkerDay, list[PunchEvent]]:
    """Bucket punches by (worker_id, belongs_to_date), keeping arrival order."""
    groups: dict[WorkerDay, list[PunchEvent]] = {}
    for punch in punches:
        groups.setdefault((punch.worker_id, punch.belongs_to_date), []).append(punch)
    return groups


def pair_worker_day(punches: Sequence[PunchEvent]) -> tuple[list[WorkSession], int]:
    """
    Run the pairing state machine over one worker-day.

    Returns (sessions, orphan_out_count). Punches are stably sorted by
    timestamp, so equal timestamps keep their source order.
    """
    sessions: list[WorkSession] = []
    orphan_outs = 0
    pending: PunchEvent | None = None

    for punch in sorted(punches, key=attrgetter("timestamp_utc")):
        if punch.direction == "In":
            if pending is not None:
                logger.debug(
                    "Unterminated In for worker=%s at %s (interrupted by In at %s)",
                    pending.worker_id, pending.timestamp_utc, punch.timestamp_utc,
                )
                sessions.append(WorkSession.unterminated(pending))
            pending = punch
        elif pending is not None:
            sessions.append(WorkSession.closed(pending, punch))
            pending = None
        else:
            orphan_outs += 1
            logger.debug(
                "Orphan Out dropped for worker=%s at %s (source_id=%s)",
                punch.worker_id, punch.timestamp_utc, punch.source_id,
            )

    if pending is not None:
        logger.debug(
            "Unterminated In for worker=%s at %s (no Out before end of day)",
            pending.worker_id, pending.timestamp_utc,
        )
        sessions.append(WorkSession.unterminated(pending))

    return sessions, orphan_outs


def derive(
    punches: Iterable[PunchEvent],
    *,
    worker_id: str | None = None,
    group_id: str | None = None,
) -> DerivationResult:
    """Derive sessions for every worker-day in ``punches``, optionally scoped."""
    scoped = (
        p for p in punches
        if (worker_id is None or p.worker_id == worker_id)
        and (group_id is None or p.group_id == group_id)
    )

    result = DerivationResult()
    for day_punches in group_by_worker_day(scoped).values():
        sessions, orphan_outs = pair_worker_day(day_punches)
        result.sessions.extend(sessions)
        result.orphan_outs += orphan_outs
        result.worker_days += 1

    logger.info(
        "Derived %d sessions from %d worker-days (complete=%d, incomplete=%d, orphan_outs=%d)",
        len(result.sessions), result.worker_days,
        result.complete_count, result.incomplete_count, result.orphan_outs,
    )
    return result


def derive_sessions(
    punches: Iterable[PunchEvent],
    *,
    worker_id: str | None = None,
    group_id: str | None = None,
) -> list[WorkSession]:
    return derive(punches, worker_id=worker_id, group_id=group_id).sessions
