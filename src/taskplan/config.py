"""Configuration defaults and environment overrides for taskplan."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from taskplan.errors import InvalidBatchSizeError, InvalidLaneCountError

DEFAULT_MAX_BATCH_SIZE = 3

DEFAULT_SUMMARY_NAMES: tuple[str, ...] = (
    "_index.md",
    "tasks-summary.md",
    "tasks.md",
)

_TRUTHY = {"1", "true", "yes", "on"}


def _env_int(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class Config:
    """Planning options. Explicit values win over ``TASKPLAN_*`` env vars."""

    # Planning
    max_lanes: int | None = None
    max_batch_size: int | None = None
    strict_batches: bool | None = None

    # Input discovery
    summary_names: list[str] = field(default_factory=lambda: list(DEFAULT_SUMMARY_NAMES))

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.max_lanes is None:
            self.max_lanes = _env_int("TASKPLAN_MAX_LANES")
        if self.max_batch_size is None:
            env_size = _env_int("TASKPLAN_MAX_BATCH_SIZE")
            self.max_batch_size = DEFAULT_MAX_BATCH_SIZE if env_size is None else env_size
        if self.strict_batches is None:
            raw = os.environ.get("TASKPLAN_STRICT_BATCHES", "")
            self.strict_batches = raw.strip().lower() in _TRUTHY

        if self.max_lanes is not None and self.max_lanes < 1:
            raise InvalidLaneCountError(self.max_lanes)
        if self.max_batch_size < 1:
            raise InvalidBatchSizeError(self.max_batch_size)
