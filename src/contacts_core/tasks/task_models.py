# src/contacts_core/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Task:
    """One queued unit of background work: an integer id plus an optional argument."""

    id: int
    arg: Any | None = None

    def describe(self) -> str:
        return f"{self.id},{self.arg}"
