from typing import Literal

from pydantic import BaseModel


class DirectoryImportResponse(BaseModel):
    filename: str
    clients: int
    mappings_added: int
    unmatched_groups: list[str]
    error_count: int
    errors: list[str]
    status: Literal["success", "partial", "failed"]
