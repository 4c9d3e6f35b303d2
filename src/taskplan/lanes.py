"""Execution lane planning: spread each dependency layer across parallel tracks."""

from __future__ import annotations

from dataclasses import dataclass, field

from taskplan import log
from taskplan.errors import InvalidLaneCountError
from taskplan.graph import DependencyGraph


@dataclass
class Lane:
    """One parallel execution track.

    ``task_ids`` is in execution order. ``layer_of`` records the layer each
    task belongs to; every lane finishes layer k before any lane starts k+1.
    """

    number: int
    task_ids: list[str] = field(default_factory=list)
    layer_of: dict[str, int] = field(default_factory=dict)

    def tasks_in_layer(self, layer: int) -> list[str]:
        return [tid for tid in self.task_ids if self.layer_of[tid] == layer]


def _mutex_groups(graph: DependencyGraph, layer: list[str]) -> list[list[str]]:
    """Split *layer* into groups of tasks linked by shared mutexes, transitively.

    Groups keep the layer's order, both among themselves (by first member)
    and inside each group.
    """
    parent = {tid: tid for tid in layer}

    def find(tid: str) -> str:
        if parent[tid] != tid:
            parent[tid] = find(parent[tid])
        return parent[tid]

    holder: dict[str, str] = {}  # mutex -> first task holding it
    for tid in layer:
        for mx in graph.task(tid).mutex:
            if mx not in holder:
                holder[mx] = tid
                continue
            a, b = find(holder[mx]), find(tid)
            if a != b:
                parent[b] = a

    groups: dict[str, list[str]] = {}
    for tid in layer:
        groups.setdefault(find(tid), []).append(tid)
    return list(groups.values())


def plan_lanes(graph: DependencyGraph, max_lanes: int | None = None) -> list[Lane]:
    """Assign every task to a lane, layer by layer.

    Within a layer tasks are dealt round-robin in ascending id order, starting
    again at lane 1 for each layer. ``max_lanes=None`` means one lane per task
    of the widest layer. Tasks of one layer that share a mutex, directly or
    through other tasks, are dealt together into a single lane, so no two
    lanes ever hold conflicting tasks at the same time.
    """
    if max_lanes is not None and max_lanes < 1:
        raise InvalidLaneCountError(max_lanes)

    layers = graph.layers()
    if not layers:
        return []

    width = max(len(layer) for layer in layers)
    count = width if max_lanes is None else min(max_lanes, width)
    lanes = [Lane(number=i + 1) for i in range(count)]

    for layer_idx, layer in enumerate(layers):
        for slot, group in enumerate(_mutex_groups(graph, layer)):
            target = lanes[slot % count]
            if len(group) > 1:
                log.debug(
                    f"Tasks {', '.join(group)}: share a mutex in layer {layer_idx}, "
                    f"serialized in lane {target.number}"
                )
            for tid in group:
                target.task_ids.append(tid)
                target.layer_of[tid] = layer_idx

    # Mutex grouping can leave trailing lanes unused.
    lanes = [lane for lane in lanes if lane.task_ids]
    for i, lane in enumerate(lanes, 1):
        lane.number = i

    log.debug(f"Planned {len(lanes)} lane(s) over {len(layers)} layer(s)")
    return lanes
