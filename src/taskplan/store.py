"""Thread-safe task store for long-lived callers that add tasks incrementally."""

from __future__ import annotations

import threading
from typing import Iterable, NamedTuple

from taskplan import log
from taskplan.batches import Batch, group_batches
from taskplan.graph import DependencyGraph, build_graph
from taskplan.lanes import Lane, plan_lanes
from taskplan.tasks.model import Task


class Plan(NamedTuple):
    graph: DependencyGraph
    lanes: list[Lane]
    batches: list[Batch]


class TaskStore:
    """Holds the current graph snapshot; every update rebuilds it from scratch.

    A single lock serializes updates. Readers always get a complete graph:
    either the one before an update or the one after it. A rebuild that
    fails (cycle, unknown dependency) leaves the previous snapshot in place
    and re-raises.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._lock = threading.Lock()
        self._graph = build_graph(tasks)

    def snapshot(self) -> DependencyGraph:
        with self._lock:
            return self._graph

    def add_tasks(self, tasks: Iterable[Task]) -> DependencyGraph:
        new_tasks = list(tasks)
        with self._lock:
            graph = self._graph.with_tasks(new_tasks)
            self._graph = graph
        log.debug(f"Store rebuilt with {len(new_tasks)} new task(s); {len(graph)} total")
        return graph

    def replace(self, tasks: Iterable[Task]) -> DependencyGraph:
        graph = build_graph(tasks)
        with self._lock:
            self._graph = graph
        return graph

    def plan(
        self,
        max_lanes: int | None = None,
        max_batch_size: int = 3,
        strict: bool = False,
    ) -> Plan:
        """Lanes and batches computed from one consistent snapshot."""
        graph = self.snapshot()
        return Plan(
            graph=graph,
            lanes=plan_lanes(graph, max_lanes),
            batches=group_batches(graph, max_batch_size, strict=strict),
        )
