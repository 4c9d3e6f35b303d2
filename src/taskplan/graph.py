"""Dependency graph resolution: validation, layering and critical path."""

from __future__ import annotations

import re
from typing import Iterable, Iterator, NamedTuple

from taskplan import log
from taskplan.errors import CycleError, DuplicateTaskError, UnknownDependencyError
from taskplan.tasks.model import Task

_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2

_DIGITS = re.compile(r"(\d+)")


def id_sort_key(task_id: str) -> tuple[list[object], str]:
    """Natural order for task ids, so ``2.0`` sorts before ``10.0``."""
    parts: list[object] = [int(p) if i % 2 else p for i, p in enumerate(_DIGITS.split(task_id))]
    return parts, task_id


class CriticalPath(NamedTuple):
    task_ids: list[str]
    weight: float


class DependencyGraph:
    """Immutable view over a validated, acyclic set of tasks.

    Build one with :func:`build_graph`; adding tasks produces a new graph via
    :meth:`with_tasks`. Task *status* may still change (see
    :class:`taskplan.scheduler.Scheduler`), but the edges never do.
    """

    def __init__(self, tasks: dict[str, Task], deps: dict[str, list[str]], order: list[str]) -> None:
        self._tasks = tasks
        self._deps = deps
        self._index = {tid: i for i, tid in enumerate(tasks)}
        self._order = order  # dependencies before dependents

        self._unblocks: dict[str, list[str]] = {tid: [] for tid in tasks}
        for tid, task_deps in deps.items():
            for dep in task_deps:
                self._unblocks[dep].append(tid)

        self._layer_of: dict[str, int] = {}
        for tid in order:
            task_deps = deps[tid]
            self._layer_of[tid] = 1 + max(self._layer_of[d] for d in task_deps) if task_deps else 0

    # ── lookups ──────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    @property
    def tasks(self) -> list[Task]:
        """Tasks in insertion (declaration) order."""
        return list(self._tasks.values())

    def task(self, task_id: str) -> Task:
        return self._tasks[task_id]

    def blocked_by_of(self, task_id: str) -> list[str]:
        return list(self._deps[task_id])

    def unblocks_of(self, task_id: str) -> list[str]:
        return list(self._unblocks[task_id])

    # ── ordering ─────────────────────────────────────────────────

    def layer_of(self, task_id: str) -> int:
        return self._layer_of[task_id]

    def layers(self) -> list[list[str]]:
        """Greedy layering: layer k+1 holds tasks whose deps all lie in layers 0..k.

        Ids inside a layer are in natural ascending order (see :func:`id_sort_key`)
        so output is stable across runs.
        """
        if not self._tasks:
            return []
        grouped: list[list[str]] = [[] for _ in range(max(self._layer_of.values()) + 1)]
        for tid, layer in self._layer_of.items():
            grouped[layer].append(tid)
        return [sorted(layer, key=id_sort_key) for layer in grouped]

    def topological_order(self) -> list[str]:
        return [tid for layer in self.layers() for tid in layer]

    def critical_path(self) -> CriticalPath:
        """Longest size-weighted chain through the DAG.

        On equal weight the first-declared task wins, both when choosing a
        predecessor and when choosing where the path ends.
        """
        if not self._tasks:
            return CriticalPath([], 0.0)

        dist: dict[str, float] = {}
        prev: dict[str, str | None] = {}
        for tid in self._order:
            best: str | None = None
            for dep in sorted(self._deps[tid], key=self._index.__getitem__):
                if best is None or dist[dep] > dist[best]:
                    best = dep
            dist[tid] = self._tasks[tid].weight + (dist[best] if best is not None else 0.0)
            prev[tid] = best

        end: str | None = None
        for tid in self._tasks:
            if end is None or dist[tid] > dist[end]:
                end = tid

        path: list[str] = []
        node = end
        while node is not None:
            path.append(node)
            node = prev[node]
        path.reverse()
        return CriticalPath(path, dist[path[-1]])

    # ── rebuild ──────────────────────────────────────────────────

    def with_tasks(self, tasks: Iterable[Task]) -> DependencyGraph:
        """Return a new graph containing the current tasks plus *tasks*."""
        return build_graph([*self._tasks.values(), *tasks])


def build_graph(tasks: Iterable[Task]) -> DependencyGraph:
    """Validate *tasks* and return their dependency graph.

    Raises :class:`DuplicateTaskError`, :class:`UnknownDependencyError` or
    :class:`CycleError`. Unknown ids are reported before cycles.
    """
    by_id: dict[str, Task] = {}
    for task in tasks:
        if task.id in by_id:
            raise DuplicateTaskError(task.id)
        by_id[task.id] = task

    deps: dict[str, list[str]] = {}
    for tid, task in by_id.items():
        seen: list[str] = []
        for dep in task.depends_on:
            if not dep or dep in seen:
                continue
            if dep not in by_id:
                raise UnknownDependencyError(tid, dep)
            seen.append(dep)
        deps[tid] = seen

    order = postorder(deps)
    log.debug(f"Built graph: {len(by_id)} task(s), {sum(len(d) for d in deps.values())} edge(s)")
    return DependencyGraph(by_id, deps, order)


def postorder(deps: dict[str, list[str]]) -> list[str]:
    """Depth-first post-order over *deps*; raises CycleError on a back edge.

    Every id named in a dependency list must be a key of *deps*.
    """
    color = dict.fromkeys(deps, _UNVISITED)
    path: list[str] = []
    order: list[str] = []

    def visit(tid: str) -> None:
        color[tid] = _IN_PROGRESS
        path.append(tid)
        for dep in deps[tid]:
            if color[dep] == _IN_PROGRESS:
                raise CycleError(path[path.index(dep):])
            if color[dep] == _UNVISITED:
                visit(dep)
        path.pop()
        color[tid] = _DONE
        order.append(tid)

    for tid in deps:
        if color[tid] == _UNVISITED:
            visit(tid)
    return order
