"""
Display metadata for rollup rows.

Names only decorate output; they never decide grouping. A lookup that finds
nothing returns None and callers substitute a fallback label.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class WorkerInfo:
    name: str
    email: str | None = None


class MetadataResolver(Protocol):
    def worker(self, worker_id: str) -> WorkerInfo | None: ...

    def group_name(self, group_id: str) -> str | None: ...

    def activity_name(self, activity_id: str) -> str | None: ...


@dataclass
class DirectoryMetadata:
    workers: dict[str, WorkerInfo] = field(default_factory=dict)
    groups: dict[str, str] = field(default_factory=dict)
    activities: dict[str, str] = field(default_factory=dict)

    def worker(self, worker_id: str) -> WorkerInfo | None:
        return self.workers.get(worker_id)

    def group_name(self, group_id: str) -> str | None:
        return self.groups.get(group_id)

    def activity_name(self, activity_id: str) -> str | None:
        return self.activities.get(activity_id)


EMPTY_METADATA = DirectoryMetadata()
