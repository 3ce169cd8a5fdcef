"""Pytest fixtures for to-do list tests."""

import re
from typing import Callable, Iterable, List, Optional

import pytest

from app import TodoApp
from models import Task
from storage import MemoryBlobStore, Storage
from store import TaskStore

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def plain(lines: Iterable[str]) -> List[str]:
    """Strip colour codes so assertions do not depend on the terminal."""
    return [ANSI_RE.sub("", line) for line in lines]


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def storage(blobs: MemoryBlobStore) -> Storage:
    return Storage(blobs)


@pytest.fixture
def abcd() -> List[Task]:
    """Canonical [A(done), B, C(done), D]."""
    return [
        Task(id="A", text="alpha", done=True, created_at=1),
        Task(id="B", text="bravo", done=False, created_at=2),
        Task(id="C", text="charlie", done=True, created_at=3),
        Task(id="D", text="delta", done=False, created_at=4),
    ]


@pytest.fixture
def make_store(clock: FakeClock) -> Callable[..., TaskStore]:
    """Build a store over a memory blob store pre-filled with ``tasks``."""

    def factory(tasks: Iterable[Task] = (), blobs: Optional[MemoryBlobStore] = None) -> TaskStore:
        blobs = blobs if blobs is not None else MemoryBlobStore()
        storage = Storage(blobs)
        tasks = list(tasks)
        if tasks:
            storage.save(tasks)
        return TaskStore(storage, clock=clock)

    return factory


@pytest.fixture
def make_app(clock: FakeClock) -> Callable[..., TodoApp]:
    """Build a started-or-not app over a memory blob store."""

    def factory(tasks: Iterable[Task] = (), blobs: Optional[MemoryBlobStore] = None,
                delete_delay: float = 0.24) -> TodoApp:
        blobs = blobs if blobs is not None else MemoryBlobStore()
        storage = Storage(blobs)
        tasks = list(tasks)
        if tasks:
            storage.save(tasks)
        return TodoApp(storage, delete_delay=delete_delay, clock=clock, width_fn=lambda: 60)

    return factory
