"""Data models for the terminal to-do list.

Tasks are immutable values; the store swaps whole tasks in and out of its
list instead of mutating them, so a rendered frame can never be changed
behind the store's back.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

FILTERS: Tuple[str, ...] = ("all", "active", "completed")
DEFAULT_FILTER = "all"

SEVERITIES: Tuple[str, ...] = ("info", "warn")


@dataclass(frozen=True)
class Task:
    """A single to-do item.

    Fields:
        id: Opaque unique string, assigned once and never reused.
        text: Trimmed, non-empty title.
        done: Completion flag.
        created_at: Creation time in epoch milliseconds (display only).
    """
    id: str
    text: str
    done: bool = False
    created_at: int = 0

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Task(id={self.id}, text={self.text!r}, done={self.done})"


@dataclass(frozen=True)
class Message:
    """Transient feedback shown on the next rendered frame."""
    text: str
    severity: str = "info"
