"""taskplan CLI: validate, plan and inspect Markdown task breakdowns.

Installed as the ``taskplan`` console_script; also runnable as
``python -m taskplan``.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.markup import escape

from taskplan import __version__
from taskplan import log as glog
from taskplan.config import Config
from taskplan.errors import TaskPlanError
from taskplan.graph import DependencyGraph, build_graph
from taskplan.io_utils import read_text, replace_text, write_text
from taskplan.tasks.model import TaskDocument, TaskStatus

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

SUMMARY_ARG = click.argument(
    "summary",
    type=click.Path(exists=True, path_type=Path),
)


def _fail(exc: Exception) -> NoReturn:
    glog.error(str(exc))
    sys.exit(1)


def _build_config(**kwargs: object) -> Config:
    try:
        return Config(**kwargs)  # type: ignore[arg-type]
    except TaskPlanError as exc:
        raise click.BadParameter(str(exc)) from None
    except ValueError as exc:
        raise click.UsageError(str(exc)) from None


def _resolve_summary(path: Path, cfg: Config) -> Path:
    from taskplan.tasks.parse import find_summary

    if path.is_file():
        return path
    found = find_summary(path, cfg.summary_names)
    if found is None:
        glog.error(
            f"No tasks summary in {path} (looked for {', '.join(cfg.summary_names)})"
        )
        sys.exit(1)
    return found


def _load(path: Path, cfg: Config) -> tuple[Path, TaskDocument, DependencyGraph]:
    """Load the summary at *path* and build its graph, exiting on any error."""
    from taskplan.tasks.parse import load_task_document

    summary = _resolve_summary(path, cfg)
    try:
        doc = load_task_document(summary)
        graph = build_graph(doc.tasks)
    except TaskPlanError as exc:
        _fail(exc)
    glog.debug(f"Loaded {len(doc.tasks)} task(s) from {summary}")
    return summary, doc, graph


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="taskplan")
def main(verbose: bool) -> None:
    """TASKPLAN: dependency-aware planning for Markdown task breakdowns.

    Reads a tasks summary (``- [ ] 1.0 Title (S/M/L)`` lines) and the
    per-task files beside it (``Dependencies:`` field), then computes the
    critical path, parallel lanes and commit batches.

    \b
    EXAMPLES:
      taskplan validate tasks/                     # Check ids, deps, cycles
      taskplan plan tasks/_index.md                # Print the plan
      taskplan plan tasks/ --max-lanes 2 --write   # Update summary in place
      taskplan critical-path tasks/
      taskplan next tasks/                         # What can start now?
    """
    glog.set_verbose(verbose)


# ── validate ─────────────────────────────────────────────────────


@main.command()
@SUMMARY_ARG
def validate(summary: Path) -> None:
    """Check a task breakdown for duplicate ids, unknown deps and cycles."""
    from taskplan.tasks.parse import load_task_document
    from taskplan.tasks.validate import validate_and_report

    cfg = _build_config()
    path = _resolve_summary(summary, cfg)
    try:
        doc = load_task_document(path)
    except TaskPlanError as exc:
        _fail(exc)
    if not validate_and_report(doc):
        sys.exit(1)


# ── plan ─────────────────────────────────────────────────────────


@main.command()
@SUMMARY_ARG
@click.option("--max-lanes", type=int, default=None, help="Max parallel lanes (default: unbounded)")
@click.option("--max-batch-size", type=int, default=None, help="Max tasks per commit batch")
@click.option("--strict-batches", is_flag=True, help="Never batch a task with its own dependency")
@click.option("--write", "write_back", is_flag=True, help="Update the summary file in place")
@click.option("--output", "-o", default="", help="Write the updated summary to this file")
def plan(
    summary: Path,
    max_lanes: int | None,
    max_batch_size: int | None,
    strict_batches: bool,
    write_back: bool,
    output: str,
) -> None:
    """Render the Execution Plan and Batch Plan sections."""
    from taskplan.batches import group_batches
    from taskplan.lanes import plan_lanes
    from taskplan.report import render, update_summary

    if write_back and output:
        raise click.UsageError("Use either --write or --output, not both.")

    cfg = _build_config(
        max_lanes=max_lanes,
        max_batch_size=max_batch_size,
        strict_batches=True if strict_batches else None,
    )
    path, doc, graph = _load(summary, cfg)

    try:
        lanes = plan_lanes(graph, cfg.max_lanes)
        batches = group_batches(graph, cfg.max_batch_size, strict=bool(cfg.strict_batches))
    except TaskPlanError as exc:
        _fail(exc)

    rendered = render(graph, lanes, batches)

    if not write_back and not output:
        click.echo(rendered, nl=False)
        return

    updated = update_summary(read_text(path), rendered)
    if write_back:
        replace_text(path, updated)
        target = path
    else:
        target = Path(output)
        target.parent.mkdir(parents=True, exist_ok=True)
        write_text(target, updated)
    glog.success(
        f"Wrote plan for {len(doc.tasks)} task(s): "
        f"{len(lanes)} lane(s), {len(batches)} batch(es) -> {target}"
    )


# ── critical-path ────────────────────────────────────────────────


@main.command("critical-path")
@SUMMARY_ARG
def critical_path(summary: Path) -> None:
    """Show the longest size-weighted dependency chain."""
    cfg = _build_config()
    _, _, graph = _load(summary, cfg)

    path = graph.critical_path()
    if not path.task_ids:
        glog.warn("No tasks.")
        return

    glog.console.print(f"[bold]Critical path[/bold] ({path.weight:g} days)")
    for tid in path.task_ids:
        task = graph.task(tid)
        glog.console.print(f"  {tid}  {escape(task.title)} [dim]({task.size.value}, {task.weight:g}d)[/dim]")


# ── next ─────────────────────────────────────────────────────────


@main.command("next")
@SUMMARY_ARG
def next_tasks(summary: Path) -> None:
    """List tasks that can start now and explain what blocks the rest."""
    from taskplan.scheduler import Scheduler

    cfg = _build_config()
    _, _, graph = _load(summary, cfg)

    sched = Scheduler(graph)
    sched.refresh()

    if sched.is_finished():
        glog.success("All tasks done.")
        return

    ready = sched.get_ready()
    running = [t.id for t in graph if t.status == TaskStatus.IN_PROGRESS]
    blocked = [t.id for t in graph if sched.view(t.id) == TaskStatus.BLOCKED]

    if running:
        glog.console.print("[bold]In progress[/bold]")
        for tid in running:
            glog.console.print(f"  - {tid} {escape(graph.task(tid).title)}")
    if ready:
        glog.console.print("[bold]Ready[/bold]")
        for tid in ready:
            glog.console.print(f"  - {tid} {escape(graph.task(tid).title)}")
    if blocked:
        glog.console.print("[bold]Blocked[/bold]")
        for tid in blocked:
            glog.console.print(f"  - {tid} [dim]{sched.explain_block(tid)}[/dim]")

    glog.info(
        f"{len(ready)} ready, {len(running)} in progress, "
        f"{len(blocked)} blocked, {sched.count(TaskStatus.DONE)} done"
    )
