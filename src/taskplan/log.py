"""Console logging with colored prefixes via Rich.

Messages are escaped before printing: they routinely carry task titles and
file paths, and a ``[...]`` in either must not be read as Rich markup.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
_err_console = Console(highlight=False, stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def info(msg: str) -> None:
    console.print(f"[blue]\\[INFO][/blue] {escape(msg)}")


def success(msg: str) -> None:
    console.print(f"[green]\\[OK][/green] {escape(msg)}")


def warn(msg: str) -> None:
    console.print(f"[yellow]\\[WARN][/yellow] {escape(msg)}")


def error(msg: str) -> None:
    _err_console.print(f"[red]\\[ERROR][/red] {escape(msg)}")


def debug(msg: str) -> None:
    if _verbose:
        console.print(f"[dim]\\[DEBUG] {escape(msg)}[/dim]")
