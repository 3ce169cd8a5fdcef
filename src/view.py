"""View projection: the visible subset of the canonical list.

Pure functions only; nothing here touches the store.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from models import FILTERS, Task


def project(tasks: Sequence[Task], filter_value: str) -> List[Task]:
    if filter_value == 'all':
        return list(tasks)
    if filter_value == 'active':
        return [t for t in tasks if not t.done]
    if filter_value == 'completed':
        return [t for t in tasks if t.done]
    raise ValueError(f"unknown filter {filter_value!r}; expected one of {', '.join(FILTERS)}")


def remaining_count(tasks: Sequence[Task]) -> int:
    """Outstanding work over the full canonical list, whatever the filter."""
    return sum(1 for t in tasks if not t.done)


def remaining_label(count: int) -> str:
    return f"{count} {'task' if count == 1 else 'tasks'} left"


@dataclass(frozen=True)
class View:
    visible: Tuple[Task, ...]
    remaining: int
    filter: str

    @property
    def empty(self) -> bool:
        return len(self.visible) == 0


def build_view(tasks: Sequence[Task], filter_value: str) -> View:
    return View(
        visible=tuple(project(tasks, filter_value)),
        remaining=remaining_count(tasks),
        filter=filter_value,
    )
