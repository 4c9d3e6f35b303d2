"""Task and TaskDocument data models shared by parsing, planning and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class TaskSize(str, Enum):
    S = "S"
    M = "M"
    L = "L"

    @property
    def weight(self) -> float:
        """Duration in arbitrary day units."""
        return SIZE_WEIGHTS[self]


SIZE_WEIGHTS: dict[TaskSize, float] = {
    TaskSize.S: 0.5,
    TaskSize.M: 1.5,
    TaskSize.L: 3.0,
}


class TaskStatus(str, Enum):
    PENDING = "pending"
    BLOCKED = "blocked"  # derived view only, never persisted
    READY = "ready"
    IN_PROGRESS = "in_progress"
    DONE = "done"


@dataclass
class Task:
    id: str
    title: str = ""
    size: TaskSize = TaskSize.M
    status: TaskStatus = TaskStatus.PENDING
    depends_on: list[str] = field(default_factory=list)
    deliverables: list[str] = field(default_factory=list)
    tests: list[str] = field(default_factory=list)
    mutex: list[str] = field(default_factory=list)

    @property
    def weight(self) -> float:
        return self.size.weight

    @property
    def completed(self) -> bool:
        return self.status == TaskStatus.DONE


@dataclass
class TaskDocument:
    """A parsed tasks summary together with its per-task details."""

    title: str = ""
    path: Path | None = None
    tasks: list[Task] = field(default_factory=list)

    def pending_ids(self) -> list[str]:
        return [t.id for t in self.tasks if not t.completed]

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None
