"""Tests for taskplan.tasks.parse: summary and per-task Markdown loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from taskplan.errors import ParseError
from taskplan.io_utils import write_text
from taskplan.tasks.model import Task, TaskSize, TaskStatus
from taskplan.tasks.parse import (
    find_summary,
    load_task_document,
    parse_summary,
    parse_task_details,
)


# ═══════════════════════════════════════════════════════════════════
#  Summary
# ═══════════════════════════════════════════════════════════════════


class TestParseSummary:
    """Tests for parse_summary()."""

    def test_basic(self):
        doc = parse_summary(
            "# Tasks: Login\n\n"
            "- [ ] 1.0 Create table (S)\n"
            "- [x] 2.0 Add endpoint (L)\n"
            "* [~] 3.0 Build form (m)\n"
        )
        assert doc.title == "Tasks: Login"
        assert [t.id for t in doc.tasks] == ["1.0", "2.0", "3.0"]
        assert [t.size for t in doc.tasks] == [TaskSize.S, TaskSize.L, TaskSize.M]
        assert [t.status for t in doc.tasks] == [
            TaskStatus.PENDING, TaskStatus.DONE, TaskStatus.IN_PROGRESS,
        ]
        assert doc.tasks[1].title == "Add endpoint"

    def test_title_with_parentheses(self):
        doc = parse_summary("- [ ] 1.0 Add cache (Redis) layer (M)\n")
        assert doc.tasks[0].title == "Add cache (Redis) layer"
        assert doc.tasks[0].size == TaskSize.M

    def test_indented_subtasks_ignored(self):
        doc = parse_summary(
            "- [ ] 1.0 Parent (M)\n"
            "  - [ ] 1.1 Sub-step without size\n"
            "    - [x] whatever\n"
        )
        assert [t.id for t in doc.tasks] == ["1.0"]

    def test_plain_bullets_ignored(self):
        doc = parse_summary("## Relevant Files\n\n- src/app.py\n- [ ] 1.0 Real (S)\n")
        assert [t.id for t in doc.tasks] == ["1.0"]

    def test_malformed_checkbox_line(self):
        with pytest.raises(ParseError) as exc:
            parse_summary("# T\n\n- [ ] 1.0 Missing size\n", "sum.md")
        assert exc.value.line == 3
        assert exc.value.path == Path("sum.md")
        assert "sum.md:3" in str(exc.value)

    def test_bad_size(self):
        with pytest.raises(ParseError):
            parse_summary("- [ ] 1.0 Huge (XL)\n")

    def test_duplicate_id(self):
        with pytest.raises(ParseError) as exc:
            parse_summary("- [ ] 1.0 A (S)\n- [ ] 1.0 B (S)\n")
        assert exc.value.line == 2
        assert "line 1" in exc.value.message

    def test_generated_sections_skipped(self):
        doc = parse_summary(
            "# T\n\n"
            "- [ ] 1.0 A (S)\n\n"
            "## Execution Plan\n\n### Lane 1\n\n- [ ] 1.0 A (S)\n\n"
            "## Batch Plan\n\n### Batch 1 (0.5 days)\n\n- [ ] 1.0 A (S)\n\n"
            "## Notes\n\n- [ ] 2.0 B (M)\n"
        )
        assert [t.id for t in doc.tasks] == ["1.0", "2.0"]

    def test_fenced_lines_ignored(self):
        doc = parse_summary(
            "# T\n\n"
            "Format:\n\n"
            "~~~\n- [ ] <id> <title> (S|M|L)\n## Execution Plan\n~~~\n\n"
            "- [ ] 1.0 A (S)\n"
        )
        assert [t.id for t in doc.tasks] == ["1.0"]


# ═══════════════════════════════════════════════════════════════════
#  Per-task details
# ═══════════════════════════════════════════════════════════════════


class TestParseTaskDetails:
    """Tests for parse_task_details()."""

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("Dependencies: 1.0, 2.0", ["1.0", "2.0"]),
            ("**Dependencies:** 1.0 2.0", ["1.0", "2.0"]),
            ("- **Dependencies**: `1.0`", ["1.0"]),
            ("Depends on: Task 1.0 and Task 3.0", ["1.0", "3.0"]),
            ("Dependencies: None", []),
            ("Dependencies: -", []),
            ("Dependencies:", []),
            ("Dependencies: 1.0, 1.0", ["1.0"]),
        ],
    )
    def test_dependencies_field(self, line, expected):
        task = Task(id="9.0")
        parse_task_details(task, f"# 9.0 X\n\n{line}\n")
        assert task.depends_on == expected

    def test_mutex_field(self):
        task = Task(id="1.0")
        parse_task_details(task, "Mutex: db-migrations, lockfile\n")
        assert task.mutex == ["db-migrations", "lockfile"]

    def test_sections(self):
        task = Task(id="1.0")
        parse_task_details(
            task,
            "# 1.0 X\n\n"
            "## Deliverables\n\n- First\n- [x] Second\n1. Third\n\n"
            "## Tests\n\n- test_one\n\n"
            "## Notes\n\n- not collected\n",
        )
        assert task.deliverables == ["First", "Second", "Third"]
        assert task.tests == ["test_one"]

    def test_invalid_dependency_id(self):
        with pytest.raises(ParseError) as exc:
            parse_task_details(Task(id="9.0"), "# 9.0 X\n\nDependencies: 1.0, #2, 3.0\n", "t.md")
        assert exc.value.line == 3
        assert "invalid dependency id '#2'" in exc.value.message

    def test_invalid_mutex_name(self):
        with pytest.raises(ParseError) as exc:
            parse_task_details(Task(id="1.0"), "Mutex: db, @cache\n", "t.md")
        assert exc.value.line == 1
        assert "'@cache'" in exc.value.message

    def test_fenced_example_not_read_as_field(self):
        task = Task(id="1.0")
        parse_task_details(
            task,
            "# 1.0 X\n\nDependencies: None\n\n"
            "```markdown\nDependencies: 7.0, #8\n## Tests\n```\n\n"
            "## Deliverables\n\n- Real\n",
        )
        assert task.depends_on == []
        assert task.deliverables == ["Real"]

    def test_repeated_dependencies_field(self):
        with pytest.raises(ParseError) as exc:
            parse_task_details(Task(id="1.0"), "Dependencies: 2.0\n\nDependencies: 3.0\n", "t.md")
        assert exc.value.line == 3


# ═══════════════════════════════════════════════════════════════════
#  Loading from disk
# ═══════════════════════════════════════════════════════════════════


class TestLoadTaskDocument:
    """Tests for load_task_document() and find_summary()."""

    def test_full_breakdown(self, breakdown: Path):
        doc = load_task_document(breakdown)
        assert doc.title == "Tasks: User login"
        by_id = {t.id: t for t in doc.tasks}
        assert by_id["1.0"].status == TaskStatus.DONE
        assert by_id["1.0"].depends_on == []
        assert by_id["1.0"].mutex == ["db-migrations"]
        assert by_id["2.0"].depends_on == ["1.0"]
        assert by_id["2.0"].deliverables == ["POST /login", "Password check"]
        assert by_id["2.0"].tests == ["test_login_ok", "test_login_bad_password"]
        assert by_id["4.0"].depends_on == ["2.0", "3.0"]

    def test_filename_fallback(self, tmp_path: Path):
        write_text(tmp_path / "tasks.md", "- [ ] A Alpha (S)\n- [ ] B Beta (S)\n")
        write_text(tmp_path / "B_details.md", "No heading here.\n\nDependencies: A\n")
        doc = load_task_document(tmp_path / "tasks.md")
        assert doc.get_task("B").depends_on == ["A"]

    def test_missing_detail_file_means_no_deps(self, tmp_path: Path):
        write_text(tmp_path / "tasks.md", "- [ ] 1.0 Alone (S)\n")
        doc = load_task_document(tmp_path / "tasks.md")
        assert doc.tasks[0].depends_on == []

    def test_unrelated_markdown_ignored(self, breakdown: Path):
        write_text(breakdown.parent / "README.md", "# Notes\n\nDependencies: 7.0\n")
        doc = load_task_document(breakdown)
        assert all("7.0" not in t.depends_on for t in doc.tasks)

    def test_two_files_for_one_task(self, breakdown: Path):
        write_text(breakdown.parent / "2.0-extra.md", "# 2.0 Again\n\nDependencies: None\n")
        with pytest.raises(ParseError) as exc:
            load_task_document(breakdown)
        assert "2.0" in str(exc.value)

    def test_find_summary(self, breakdown: Path):
        assert find_summary(breakdown.parent, ["missing.md", "_index.md"]) == breakdown
        assert find_summary(breakdown.parent, ["missing.md"]) is None
