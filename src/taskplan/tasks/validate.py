"""Task document validation: collect every problem instead of stopping at the first."""

from __future__ import annotations

from taskplan import log
from taskplan.errors import CycleError
from taskplan.graph import postorder
from taskplan.tasks.model import TaskDocument


def detect_cycles(doc: TaskDocument) -> str:
    """Return the first cycle as ``"A -> B -> A"``, or ``""`` when acyclic.

    Unknown dependency ids are ignored here; :func:`validate` reports them.
    """
    deps: dict[str, list[str]] = {}
    for t in doc.tasks:
        deps.setdefault(t.id, list(t.depends_on))
    for tid, task_deps in deps.items():
        deps[tid] = [d for d in task_deps if d and d in deps]

    try:
        postorder(deps)
    except CycleError as exc:
        return " -> ".join(exc.cycle + exc.cycle[:1])
    return ""


def validate(doc: TaskDocument) -> list[str]:
    """Return a list of human-readable problems (empty when valid)."""
    errors: list[str] = []

    if not doc.tasks:
        errors.append("No tasks found")
        return errors

    seen: set[str] = set()
    for idx, task in enumerate(doc.tasks, 1):
        if not task.id:
            errors.append(f"Task #{idx}: missing id")
            continue
        if task.id in seen:
            errors.append(f"Duplicate id: {task.id}")
        seen.add(task.id)
        if not task.title:
            errors.append(f"Task {task.id}: missing title")

    for task in doc.tasks:
        for dep in task.depends_on:
            if dep == task.id:
                errors.append(f"Task {task.id}: depends on itself")
            elif dep and dep not in seen:
                errors.append(f"Task {task.id}: dependency {dep} not found")

    cycle = detect_cycles(doc)
    if cycle:
        errors.append(f"Cycle detected: {cycle}")

    return errors


def validate_and_report(doc: TaskDocument) -> bool:
    """Validate *doc*, logging each problem. Returns ``True`` if valid."""
    errors = validate(doc)
    if not errors:
        log.success(f"{len(doc.tasks)} task(s) valid")
        return True
    for e in errors:
        log.error(e)
    log.error(f"{len(errors)} problem(s) in {doc.path or 'task document'}")
    return False
