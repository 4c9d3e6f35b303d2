"""Markdown task loading: a tasks summary plus one detail file per task.

Summary lines look like::

    - [ ] 1.0 Set up database schema (M)
    - [x] 2.0 Add login endpoint (S)

Only un-indented checkbox items are tasks; indented ones are sub-steps. The
generated ``## Execution Plan`` and ``## Batch Plan`` sections are skipped so
a summary can be re-read after ``taskplan plan --write``.

Detail files live next to the summary and carry the ``Dependencies:`` field
plus optional ``Mutex:``, ``## Deliverables`` and ``## Tests`` sections.
"""

from __future__ import annotations

import re
from pathlib import Path

from taskplan import log
from taskplan.errors import ParseError
from taskplan.io_utils import read_text
from taskplan.tasks.model import Task, TaskDocument, TaskSize, TaskStatus

GENERATED_SECTIONS = ("Execution Plan", "Batch Plan")

_TASK_LINE = re.compile(
    r"^[-*]\s+\[(?P<mark>[ xX~-])\]\s+"
    r"(?P<id>[A-Za-z0-9][\w.-]*)\s+"
    r"(?P<title>.+?)\s*"
    r"\((?P<size>[SMLsml])\)\s*$"
)
_CHECKBOX_LINE = re.compile(r"^[-*]\s+\[.?\]")
_TITLE_LINE = re.compile(r"^#\s+(?P<title>.+?)\s*$")
_SECTION_LINE = re.compile(r"^(?P<level>#{2,})\s+(?P<name>.+?)\s*$")
_HEADING_ID = re.compile(r"^#+\s+(?:Task\s+)?(?P<id>[A-Za-z0-9][\w.-]*)", re.IGNORECASE)
_FIELD_LINE = re.compile(
    r"^\s*(?:[-*]\s+)?\**(?P<key>dependencies|depends on|mutex)\**\s*:\s*\**\s*(?P<value>.*?)\s*$",
    re.IGNORECASE,
)
_BULLET_LINE = re.compile(r"^\s*(?:[-*]|\d+\.)\s+(?:\[[ xX~-]\]\s+)?(?P<text>.+?)\s*$")
_ID_TOKEN = re.compile(r"[A-Za-z0-9][\w.-]*")
_FENCE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})")

_STATUS_MARKS: dict[str, TaskStatus] = {
    " ": TaskStatus.PENDING,
    "x": TaskStatus.DONE,
    "X": TaskStatus.DONE,
    "~": TaskStatus.IN_PROGRESS,
    "-": TaskStatus.IN_PROGRESS,
}

_EMPTY_VALUES = {"", "none", "n/a", "-", "—"}
_FILLER_WORDS = {"task", "tasks", "and"}


def find_summary(directory: Path, names: list[str] | tuple[str, ...]) -> Path | None:
    """Return the first summary file in *directory* matching *names*."""
    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def track_fence(line: str, fence: str | None) -> str | None:
    """Return the code fence still open after *line*, or None outside one."""
    m = _FENCE.match(line)
    if not m:
        return fence
    marker = m.group("fence")
    if fence is None:
        return marker
    closes = (
        marker[0] == fence[0]
        and len(marker) >= len(fence)
        and not line.strip()[len(marker):].strip()
    )
    return None if closes else fence


def parse_summary(text: str, path: Path | str = "<summary>") -> TaskDocument:
    """Parse the tasks summary into a document with tasks in declared order."""
    doc = TaskDocument(path=Path(path))
    seen: dict[str, int] = {}
    in_generated = False
    fence: str | None = None

    for lineno, line in enumerate(text.splitlines(), 1):
        in_fence = fence is not None
        fence = track_fence(line, fence)
        if in_fence or fence is not None:
            continue

        section = _SECTION_LINE.match(line)
        if section:
            if len(section.group("level")) == 2:
                in_generated = section.group("name") in GENERATED_SECTIONS
            continue
        if in_generated:
            continue

        if not doc.title:
            title = _TITLE_LINE.match(line)
            if title:
                doc.title = title.group("title")
                continue

        if not _CHECKBOX_LINE.match(line):
            continue

        m = _TASK_LINE.match(line)
        if not m:
            raise ParseError(
                path, lineno, f"expected '- [ ] <id> <title> (S|M|L)', got {line.strip()!r}"
            )

        tid = m.group("id")
        if tid in seen:
            raise ParseError(path, lineno, f"duplicate task id {tid} (first on line {seen[tid]})")
        seen[tid] = lineno

        doc.tasks.append(
            Task(
                id=tid,
                title=m.group("title"),
                size=TaskSize(m.group("size").upper()),
                status=_STATUS_MARKS[m.group("mark")],
            )
        )

    return doc


def _split_ids(value: str, path: Path | str, lineno: int, what: str) -> list[str]:
    if value.strip().strip("*_`").lower() in _EMPTY_VALUES:
        return []
    ids: list[str] = []
    for raw in re.split(r"[,;\s]+", value):
        token = raw.strip("`*_()[]")
        if token.lower() in _EMPTY_VALUES or token.lower() in _FILLER_WORDS:
            continue
        if not _ID_TOKEN.fullmatch(token):
            raise ParseError(path, lineno, f"invalid {what} {token!r}")
        if token not in ids:
            ids.append(token)
    return ids


def parse_task_details(task: Task, text: str, path: Path | str = "<task>") -> None:
    """Fill *task* with dependencies, mutexes, deliverables and tests from *text*."""
    seen_fields: dict[str, int] = {}
    collecting: list[str] | None = None
    fence: str | None = None

    for lineno, line in enumerate(text.splitlines(), 1):
        in_fence = fence is not None
        fence = track_fence(line, fence)
        if in_fence or fence is not None:
            continue

        section = _SECTION_LINE.match(line)
        if section:
            if len(section.group("level")) > 2:
                continue
            name = section.group("name").strip().rstrip(":").lower()
            if name == "deliverables":
                collecting = task.deliverables
            elif name == "tests":
                collecting = task.tests
            else:
                collecting = None
            continue

        field_m = _FIELD_LINE.match(line)
        if field_m:
            key = field_m.group("key").lower()
            key = "dependencies" if key == "depends on" else key
            if key in seen_fields:
                raise ParseError(
                    path, lineno,
                    f"{key.capitalize()} given twice for task {task.id} "
                    f"(first on line {seen_fields[key]})",
                )
            seen_fields[key] = lineno
            value = field_m.group("value")
            if key == "dependencies":
                task.depends_on = _split_ids(value, path, lineno, "dependency id")
            else:
                task.mutex = _split_ids(value, path, lineno, "mutex name")
            continue

        if collecting is not None:
            bullet = _BULLET_LINE.match(line)
            if bullet:
                collecting.append(bullet.group("text"))


def _detail_owner(path: Path, text: str, known: dict[str, Task]) -> str | None:
    for line in text.splitlines():
        if line.startswith("#"):
            m = _HEADING_ID.match(line)
            if m:
                tid = m.group("id").rstrip(".:")
                if tid in known:
                    return tid
            break

    stem = path.stem
    matches = [
        tid for tid in known
        if stem == tid or stem.startswith(f"{tid}-") or stem.startswith(f"{tid}_")
    ]
    if not matches:
        return None
    return max(matches, key=len)


def load_task_document(summary: Path) -> TaskDocument:
    """Load *summary* and the per-task files that sit beside it."""
    doc = parse_summary(read_text(summary), summary)
    known = {t.id: t for t in doc.tasks}
    owners: dict[str, Path] = {}

    for detail in sorted(summary.parent.glob("*.md")):
        if detail.name.startswith(".") or detail.resolve() == summary.resolve():
            continue
        text = read_text(detail)
        tid = _detail_owner(detail, text, known)
        if tid is None:
            log.debug(f"Skipping {detail.name}: no matching task id")
            continue
        if tid in owners:
            raise ParseError(
                detail, 0, f"task {tid} already described by {owners[tid].name}"
            )
        owners[tid] = detail
        parse_task_details(known[tid], text, detail)
        log.debug(f"Task {tid}: details from {detail.name}")

    for tid in known:
        if tid not in owners:
            log.debug(f"Task {tid}: no detail file, assuming no dependencies")

    return doc
