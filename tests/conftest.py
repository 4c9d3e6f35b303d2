"""Shared fixtures for taskplan tests.

File handling in tests:
- Use tmp_path for any directory or file creation so tests are isolated and cleaned up.
- Use taskplan.io_utils read_text/write_text for consistent UTF-8 I/O.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from taskplan import log
from taskplan.graph import DependencyGraph, build_graph
from taskplan.io_utils import write_text
from taskplan.tasks.model import Task, TaskSize, TaskStatus


def _make_task(
    id: str,
    title: str = "",
    size: str = "M",
    status: TaskStatus = TaskStatus.PENDING,
    depends_on: list[str] | None = None,
    mutex: list[str] | None = None,
) -> Task:
    return Task(
        id=id,
        title=title or f"Task {id}",
        size=TaskSize(size),
        status=status,
        depends_on=depends_on or [],
        mutex=mutex or [],
    )


def _diamond() -> DependencyGraph:
    """A; B(A); C(A); D(B, C), all size M."""
    return build_graph([
        _make_task("A"),
        _make_task("B", depends_on=["A"]),
        _make_task("C", depends_on=["A"]),
        _make_task("D", depends_on=["B", "C"]),
    ])


@pytest.fixture(autouse=True)
def _reset_verbose():
    log.set_verbose(False)
    yield
    log.set_verbose(False)


@pytest.fixture
def diamond() -> DependencyGraph:
    return _diamond()


SUMMARY = """\
# Tasks: User login

## Tasks

- [x] 1.0 Create users table (S)
- [ ] 2.0 Add login endpoint (M)
- [ ] 3.0 Add session store (L)
- [ ] 4.0 Wire login form (M)
"""

DETAILS = {
    "1.0-users-table.md": "# 1.0 Create users table\n\nDependencies: None\nMutex: db-migrations\n",
    "2.0-login-endpoint.md": (
        "# Task 2.0: Add login endpoint\n\n"
        "**Dependencies:** 1.0\n\n"
        "## Deliverables\n\n- POST /login\n- [ ] Password check\n\n"
        "## Tests\n\n- test_login_ok\n- test_login_bad_password\n"
    ),
    "3.0-session-store.md": "# 3.0 Add session store\n\nDependencies: 1.0\nMutex: db-migrations\n",
    "4.0-login-form.md": "# 4.0 Wire login form\n\nDependencies: 2.0, 3.0\n",
}


@pytest.fixture
def breakdown(tmp_path: Path) -> Path:
    """Write a summary plus detail files; returns the summary path."""
    tasks_dir = tmp_path / "tasks"
    tasks_dir.mkdir()
    summary = tasks_dir / "_index.md"
    write_text(summary, SUMMARY)
    for name, text in DETAILS.items():
        write_text(tasks_dir / name, text)
    return summary
