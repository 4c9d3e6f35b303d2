"""UTF-8 text helpers for summary and per-task Markdown files."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

PathLike = Path | str


def read_text(path: PathLike) -> str:
    """Read *path* as UTF-8 text, normalizing line endings to ``\\n``."""
    p = path if isinstance(path, Path) else Path(path)
    return p.read_text(encoding="utf-8").replace("\r\n", "\n")


def write_text(path: PathLike, text: str) -> None:
    """Write *text* to *path* as UTF-8."""
    p = path if isinstance(path, Path) else Path(path)
    p.write_text(text, encoding="utf-8")


def replace_text(path: PathLike, text: str) -> None:
    """Atomically replace the contents of *path* with *text*.

    The text is written to a sibling temp file first, so a crash never
    leaves a half-written summary behind.
    """
    p = path if isinstance(path, Path) else Path(path)
    fd, tmp = tempfile.mkstemp(dir=p.parent, prefix=f".{p.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
        # os.replace overwrites the destination (required on Windows)
        os.replace(tmp, p)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
