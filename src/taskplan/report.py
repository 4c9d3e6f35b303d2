"""Render the Execution Plan and Batch Plan sections of a tasks summary."""

from __future__ import annotations

import re

from taskplan.batches import Batch
from taskplan.graph import DependencyGraph
from taskplan.lanes import Lane
from taskplan.tasks.model import TaskStatus
from taskplan.tasks.parse import GENERATED_SECTIONS, track_fence

_MARKS: dict[TaskStatus, str] = {
    TaskStatus.DONE: "x",
    TaskStatus.IN_PROGRESS: "~",
}

_HEADING = re.compile(r"^(?P<level>#{1,6})\s+(?P<name>.+?)\s*$")


def _fmt_days(weight: float) -> str:
    return f"{weight:g} day" if weight == 1 else f"{weight:g} days"


def _task_line(graph: DependencyGraph, tid: str) -> str:
    task = graph.task(tid)
    mark = _MARKS.get(task.status, " ")
    return f"- [{mark}] {task.id} {task.title} ({task.size.value})"


def render_execution_plan(graph: DependencyGraph, lanes: list[Lane]) -> str:
    lines = ["## Execution Plan", ""]

    path = graph.critical_path()
    if path.task_ids:
        chain = " → ".join(path.task_ids)
        lines.append(f"**Critical path:** {chain} ({_fmt_days(path.weight)})")
    else:
        lines.append("**Critical path:** none (no tasks)")
    lines.append("")

    layers = graph.layers()
    if layers:
        lines += ["| Layer | Tasks |", "|-------|-------|"]
        for idx, layer in enumerate(layers):
            lines.append(f"| {idx} | {', '.join(layer)} |")
        lines.append("")

    for lane in lanes:
        lines += [f"### Lane {lane.number}", ""]
        lines += [_task_line(graph, tid) for tid in lane.task_ids]
        lines.append("")

    return "\n".join(lines)


def render_batch_plan(graph: DependencyGraph, batches: list[Batch]) -> str:
    lines = ["## Batch Plan", ""]
    if not batches:
        lines += ["No tasks to batch.", ""]
    for batch in batches:
        weight = sum(graph.task(tid).weight for tid in batch.task_ids)
        lines += [f"### Batch {batch.number} ({_fmt_days(weight)})", ""]
        lines += [_task_line(graph, tid) for tid in batch.task_ids]
        lines.append("")
    return "\n".join(lines)


def render(graph: DependencyGraph, lanes: list[Lane], batches: list[Batch]) -> str:
    """Render both plan sections as Markdown, ending with a single newline."""
    text = render_execution_plan(graph, lanes) + "\n" + render_batch_plan(graph, batches)
    return text.rstrip("\n") + "\n"


def update_summary(text: str, rendered: str) -> str:
    """Replace the generated sections in *text* with *rendered*.

    The sections are inserted where the first old one was, or appended at the
    end when the summary has none yet. Everything else is kept as-is,
    including headings inside fenced code blocks.
    """
    kept: list[str] = []
    insert_at: int | None = None
    skipping = False
    fence: str | None = None

    for line in text.splitlines():
        in_fence = fence is not None
        fence = track_fence(line, fence)
        m = None if in_fence or fence is not None else _HEADING.match(line)
        if m and len(m.group("level")) <= 2:
            skipping = m.group("name") in GENERATED_SECTIONS
            if skipping and insert_at is None:
                insert_at = len(kept)
        if not skipping:
            kept.append(line)

    block = rendered.rstrip("\n").splitlines()
    if insert_at is None:
        while kept and not kept[-1].strip():
            kept.pop()
        merged = kept + ([""] if kept else []) + block
    else:
        before = kept[:insert_at]
        after = kept[insert_at:]
        while before and not before[-1].strip():
            before.pop()
        merged = before + ([""] if before else []) + block + ([""] if after else []) + after

    return "\n".join(merged).rstrip("\n") + "\n"
