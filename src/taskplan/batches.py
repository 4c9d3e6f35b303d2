"""Group tasks into review-sized commit batches."""

from __future__ import annotations

from dataclasses import dataclass, field

from taskplan import log
from taskplan.errors import InvalidBatchSizeError
from taskplan.graph import DependencyGraph


@dataclass
class Batch:
    number: int
    task_ids: list[str] = field(default_factory=list)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self.task_ids

    def __len__(self) -> int:
        return len(self.task_ids)


def group_batches(
    graph: DependencyGraph,
    max_batch_size: int,
    strict: bool = False,
) -> list[Batch]:
    """Pack tasks, in layered order, into batches of at most *max_batch_size*.

    Tasks inside a batch keep commit order, so by default a task may depend on
    an earlier task of its own batch. With ``strict=True`` a task whose
    dependency sits in the open batch closes it, so every dependency is met
    by a strictly earlier batch.
    """
    if max_batch_size < 1:
        raise InvalidBatchSizeError(max_batch_size)

    batches: list[Batch] = []
    current: Batch | None = None

    for tid in graph.topological_order():
        if current is not None:
            full = len(current) >= max_batch_size
            crosses = strict and any(dep in current for dep in graph.blocked_by_of(tid))
            if full or crosses:
                batches.append(current)
                current = None
        if current is None:
            current = Batch(number=len(batches) + 1)
        current.task_ids.append(tid)

    if current is not None:
        batches.append(current)

    log.debug(f"Grouped {len(graph)} task(s) into {len(batches)} batch(es) (max {max_batch_size})")
    return batches
