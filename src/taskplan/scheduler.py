"""Task status state machine over a dependency graph."""

from __future__ import annotations

from taskplan import log
from taskplan.errors import InvalidTransitionError
from taskplan.graph import DependencyGraph, id_sort_key
from taskplan.tasks.model import TaskStatus

_NEXT: dict[TaskStatus, TaskStatus] = {
    TaskStatus.PENDING: TaskStatus.READY,
    TaskStatus.READY: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.DONE,
}


class Scheduler:
    """Drive tasks through ``pending -> ready -> in_progress -> done``.

    Usage::

        sched = Scheduler(graph)
        sched.refresh()                 # pending -> ready where deps are done
        ready = sched.get_ready()
        sched.start_task(tid)           # ready -> in_progress
        sched.complete_task(tid)        # in_progress -> done

    ``blocked`` is never stored; :meth:`view` reports pending tasks with unmet
    dependencies as blocked. Status changes are written back to the graph's
    Task objects.
    """

    def __init__(self, graph: DependencyGraph) -> None:
        self._graph = graph
        for task in graph:
            if task.status == TaskStatus.BLOCKED:
                task.status = TaskStatus.PENDING

    # ── state queries ────────────────────────────────────────────

    def state(self, task_id: str) -> TaskStatus:
        return self._graph.task(task_id).status

    def view(self, task_id: str) -> TaskStatus:
        """Status as reported to users, with ``blocked`` derived."""
        st = self.state(task_id)
        if st == TaskStatus.PENDING and not self.deps_satisfied(task_id):
            return TaskStatus.BLOCKED
        return st

    def count(self, status: TaskStatus) -> int:
        return sum(1 for t in self._graph if self.view(t.id) == status)

    def is_finished(self) -> bool:
        return all(t.status == TaskStatus.DONE for t in self._graph)

    # ── dependency checks ────────────────────────────────────────

    def deps_satisfied(self, task_id: str) -> bool:
        return all(
            self.state(dep) == TaskStatus.DONE
            for dep in self._graph.blocked_by_of(task_id)
        )

    def get_ready(self) -> list[str]:
        """Ready task ids in natural ascending order."""
        return sorted((t.id for t in self._graph if t.status == TaskStatus.READY), key=id_sort_key)

    def refresh(self) -> list[str]:
        """Promote every pending task whose deps are done. Returns promoted ids."""
        promoted: list[str] = []
        for tid in self._graph.topological_order():
            if self.state(tid) == TaskStatus.PENDING and self.deps_satisfied(tid):
                self._transition(tid, TaskStatus.READY)
                promoted.append(tid)
        return promoted

    # ── transitions ──────────────────────────────────────────────

    def mark_ready(self, task_id: str) -> None:
        self._transition(task_id, TaskStatus.READY)

    def start_task(self, task_id: str) -> None:
        self._transition(task_id, TaskStatus.IN_PROGRESS)

    def complete_task(self, task_id: str) -> list[str]:
        """Finish *task_id* and return dependents that became ready."""
        self._transition(task_id, TaskStatus.DONE)
        promoted: list[str] = []
        for tid in self._graph.unblocks_of(task_id):
            if self.state(tid) == TaskStatus.PENDING and self.deps_satisfied(tid):
                self._transition(tid, TaskStatus.READY)
                promoted.append(tid)
        return promoted

    def _transition(self, task_id: str, target: TaskStatus) -> None:
        task = self._graph.task(task_id)
        current = task.status
        if _NEXT.get(current) != target:
            raise InvalidTransitionError(task_id, current.value, target.value)
        if target == TaskStatus.READY and not self.deps_satisfied(task_id):
            raise InvalidTransitionError(
                task_id, current.value, target.value, self.explain_block(task_id)
            )
        task.status = target
        log.debug(f"Task {task_id}: {current.value} -> {target.value}")

    # ── diagnostics ──────────────────────────────────────────────

    def explain_block(self, task_id: str) -> str:
        """Human-readable explanation of why *task_id* is blocked."""
        blocked_deps = [
            f"{dep} ({self.view(dep).value})"
            for dep in self._graph.blocked_by_of(task_id)
            if self.state(dep) != TaskStatus.DONE
        ]
        if not blocked_deps:
            return ""
        return f"dependsOn: {' '.join(blocked_deps)}"
