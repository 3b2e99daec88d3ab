import logging

from fastapi import APIRouter, Depends

from flextime.api.deps import get_repository
from flextime.db.repository import TimeTrackingRepository
from flextime.schemas.sessions import DeriveSessionsRequest, DeriveSessionsResponse
from flextime.services.sessions import derive

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/derive",
    response_model=DeriveSessionsResponse,
    summary="Derive work sessions from punches and store them",
)
async def derive_sessions_for_range(
    body: DeriveSessionsRequest,
    repository: TimeTrackingRepository = Depends(get_repository),
) -> DeriveSessionsResponse:
    punches = await repository.fetch_punches(
        body.start_date, body.end_date, body.worker_id, body.group_id
    )
    result = derive(punches, worker_id=body.worker_id, group_id=body.group_id)

    inserted = skipped = 0
    if result.sessions and not body.dry_run:
        inserted, skipped = await repository.store_sessions(result.sessions)

    logger.info(
        "Derivation %s..%s: punches=%d, sessions=%d, inserted=%d, duplicates=%d, orphan_outs=%d%s",
        body.start_date, body.end_date, len(punches), len(result.sessions),
        inserted, skipped, result.orphan_outs, " (dry run)" if body.dry_run else "",
    )
    return DeriveSessionsResponse(
        start_date=body.start_date,
        end_date=body.end_date,
        punches=len(punches),
        worker_days=result.worker_days,
        derived=len(result.sessions),
        complete=result.complete_count,
        incomplete=result.incomplete_count,
        orphan_outs=result.orphan_outs,
        inserted=inserted,
        skipped=skipped,
        dry_run=body.dry_run,
    )
