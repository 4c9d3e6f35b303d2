"""Error taxonomy for task parsing, graph resolution and planning.

All of these are deterministic input-validation failures: they are raised
where the defect is detected and reported once at the CLI boundary. None of
them is retried or repaired automatically.
"""

from __future__ import annotations

from pathlib import Path


class TaskPlanError(Exception):
    """Base class for every error raised by taskplan."""


class ParseError(TaskPlanError):
    """A summary or per-task Markdown file is malformed."""

    def __init__(self, path: Path | str, line: int, message: str) -> None:
        self.path = Path(path)
        self.line = line
        self.message = message
        location = f"{self.path}:{line}" if line else str(self.path)
        super().__init__(f"{location}: {message}")


class DuplicateTaskError(TaskPlanError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Duplicate task id: {task_id}")


class UnknownDependencyError(TaskPlanError):
    def __init__(self, task_id: str, dependency: str) -> None:
        self.task_id = task_id
        self.dependency = dependency
        super().__init__(f"Task {task_id} depends on unknown task {dependency}")


class CycleError(TaskPlanError):
    """The dependency relation contains a cycle.

    ``cycle`` lists the task ids on the cycle in dependency order, without
    repeating the first id at the end.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Dependency cycle: {path}")


class InvalidBatchSizeError(TaskPlanError):
    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"Batch size must be at least 1, got {size}")


class InvalidLaneCountError(TaskPlanError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Lane count must be at least 1, got {count}")


class InvalidTransitionError(TaskPlanError):
    def __init__(self, task_id: str, current: str, target: str, reason: str = "") -> None:
        self.task_id = task_id
        self.current = current
        self.target = target
        msg = f"Task {task_id}: cannot move {current} -> {target}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
