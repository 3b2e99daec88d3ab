import io
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status

from flextime.api.deps import get_repository
from flextime.db.repository import TimeTrackingRepository
from flextime.schemas.directory import DirectoryImportResponse
from flextime.services.directory_parser import parse_directory
from flextime.services.group_matcher import GroupMatcher

logger = logging.getLogger(__name__)

router = APIRouter()

_ALLOWED_EXTENSIONS = {".csv", ".xlsx"}


def _file_extension(filename: str | None) -> str:
    if not filename:
        return ""
    idx = filename.rfind(".")
    return filename[idx:].lower() if idx != -1 else ""


@router.post(
    "/upload",
    response_model=DirectoryImportResponse,
    summary="Upload the client directory (email -> groups) as CSV or XLSX",
)
async def upload_directory(
    file: UploadFile,
    repository: TimeTrackingRepository = Depends(get_repository),
) -> DirectoryImportResponse:
    filename = file.filename or "unknown"
    ext = _file_extension(file.filename)
    logger.info("Directory upload: '%s' (extension: '%s')", filename, ext)

    if ext not in _ALLOWED_EXTENSIONS:
        logger.warning("Rejected file '%s': unsupported extension '%s'", filename, ext)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(_ALLOWED_EXTENSIONS))}",
        )

    content = await file.read()
    entries, errors = parse_directory(io.BytesIO(content), filename)

    matcher = GroupMatcher(await repository.list_groups())
    unmatched: list[str] = []
    mappings_added = 0

    for entry in entries:
        group_ids = []
        for label in entry.group_labels:
            group = matcher.match(label)
            if group is None:
                unmatched.append(f"{entry.email}: {label}")
                continue
            group_ids.append(group.id)
        mappings_added += await repository.upsert_client_mappings(entry.email, group_ids)

    if not entries:
        import_status = "failed"
    elif errors or unmatched:
        import_status = "partial"
    else:
        import_status = "success"

    logger.info(
        "Directory import finished [%s]: status=%s, clients=%d, new mappings=%d, unmatched=%d, errors=%d",
        filename, import_status, len(entries), mappings_added, len(unmatched), len(errors),
    )

    await repository.record_import(
        filename,
        import_status,
        {
            "clients": len(entries),
            "mappings_added": mappings_added,
            "unmatched_groups": unmatched[:100],
            "errors": errors[:100],
        },
    )

    return DirectoryImportResponse(
        filename=filename,
        clients=len(entries),
        mappings_added=mappings_added,
        unmatched_groups=unmatched,
        error_count=len(errors),
        errors=errors,
        status=import_status,
    )


@router.get(
    "/history",
    summary="List directory import history (paginated)",
)
async def list_history(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    repository: TimeTrackingRepository = Depends(get_repository),
) -> dict:
    return await repository.list_imports(page, per_page)
