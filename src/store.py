"""Task store: owns the canonical ordered task list and the active filter.

Every successful mutation builds a new list, swaps it in, persists it and
notifies subscribers (the render engine). Newly added tasks go to the top;
the order otherwise only changes through ``reorder``.
"""
from __future__ import annotations
import logging
import time
import uuid
from dataclasses import replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from errors import NoOpWarning, PersistenceWriteFailure, ValidationError
from models import DEFAULT_FILTER, FILTERS, Task
from storage import Storage

logger = logging.getLogger(__name__)

EXAMPLE_TASKS: Tuple[str, ...] = (
    "Welcome, try adding a task!",
    'Type "edit <n>" to change a task',
    'Type "mv <n> <m>" to reorder tasks',
)

Listener = Callable[[], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


def reconcile_order(canonical_ids: Sequence[str], ordered_ids: Iterable[str]) -> List[str]:
    """Merge a (possibly partial) ordering back into the canonical ids.

    Known ids from ``ordered_ids`` come first in that order; unknown and
    repeated ids are dropped. Canonical ids that were not mentioned follow,
    keeping their prior relative order.
    """
    known = set(canonical_ids)
    placed: List[str] = []
    seen = set()
    for tid in ordered_ids:
        if tid in known and tid not in seen:
            placed.append(tid)
            seen.add(tid)
    placed.extend(tid for tid in canonical_ids if tid not in seen)
    return placed


class TaskStore:
    def __init__(self, storage: Storage,
                 clock: Callable[[], float] = time.monotonic,
                 now_ms: Callable[[], int] = _now_ms,
                 id_factory: Callable[[], str] = _new_id):
        self.storage = storage
        self.clock = clock
        self._now_ms = now_ms
        self._id_factory = id_factory
        self._tasks: List[Task] = storage.load()
        self.filter: str = DEFAULT_FILTER
        # task id -> monotonic deadline of a fading delete
        self._pending: Dict[str, float] = {}
        self._listeners: List[Listener] = []
        logger.debug("Loaded %d tasks", len(self._tasks))

    # -------------------- subscription / commit --------------------
    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def persist(self) -> None:
        """Best-effort write of the full canonical list."""
        try:
            self.storage.save(self._tasks)
        except PersistenceWriteFailure as exc:
            logger.warning("Keeping in-memory tasks, save failed: %s", exc)

    def _commit(self, tasks: List[Task]) -> None:
        self._tasks = tasks
        self.persist()
        self._notify()

    # -------------------- queries --------------------
    @property
    def tasks(self) -> Tuple[Task, ...]:
        return tuple(self._tasks)

    def ids(self) -> List[str]:
        return [t.id for t in self._tasks]

    def get(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    # -------------------- task operations --------------------
    def _fresh_id(self) -> str:
        taken = set(self.ids())
        tid = self._id_factory()
        while tid in taken:
            tid = self._id_factory()
        return tid

    def add(self, text: str) -> Task:
        text = text.strip()
        if not text:
            raise ValidationError("empty text")
        task = Task(id=self._fresh_id(), text=text, done=False, created_at=self._now_ms())
        self._commit([task] + self._tasks)
        logger.info("Added task %s", task.id)
        return task

    def _replace(self, task_id: str, **changes) -> Optional[Task]:
        for idx, task in enumerate(self._tasks):
            if task.id == task_id:
                updated = replace(task, **changes)
                tasks = list(self._tasks)
                tasks[idx] = updated
                self._commit(tasks)
                return updated
        logger.debug("Ignoring update of unknown task %s", task_id)
        return None

    def toggle(self, task_id: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None:
            return None
        return self._replace(task_id, done=not task.done)

    def edit(self, task_id: str, text: str) -> Optional[Task]:
        text = text.strip()
        if not text:
            raise ValidationError("empty text")
        return self._replace(task_id, text=text)

    def delete(self, task_id: str) -> bool:
        self._pending.pop(task_id, None)
        if self.get(task_id) is None:
            return False
        self._commit([t for t in self._tasks if t.id != task_id])
        logger.info("Deleted task %s", task_id)
        return True

    def reorder(self, new_order: Iterable[str]) -> None:
        by_id = {t.id: t for t in self._tasks}
        order = reconcile_order(list(by_id), new_order)
        self._commit([by_id[tid] for tid in order])

    def clear_completed(self) -> int:
        remaining = [t for t in self._tasks if not t.done]
        removed = len(self._tasks) - len(remaining)
        if not removed:
            raise NoOpWarning("no completed tasks to clear")
        kept = {t.id for t in remaining}
        self._pending = {tid: at for tid, at in self._pending.items() if tid in kept}
        self._commit(remaining)
        logger.info("Cleared %d completed tasks", removed)
        return removed

    def toggle_all(self) -> None:
        all_done = all(t.done for t in self._tasks)
        self._commit([replace(t, done=not all_done) for t in self._tasks])

    def set_filter(self, value: str) -> None:
        if value not in FILTERS:
            raise ValidationError(f"unknown filter {value!r}")
        self.filter = value
        self._notify()

    def seed_if_empty(self) -> bool:
        """Synthesize the example tasks when the list is empty."""
        if self._tasks:
            return False
        now = self._now_ms()
        tasks: List[Task] = []
        for text in EXAMPLE_TASKS:
            taken = {t.id for t in tasks}
            tid = self._id_factory()
            while tid in taken:
                tid = self._id_factory()
            tasks.append(Task(id=tid, text=text, done=False, created_at=now))
        self._commit(tasks)
        return True

    # -------------------- deferred deletion --------------------
    @property
    def pending_ids(self) -> FrozenSet[str]:
        return frozenset(self._pending)

    @property
    def next_due(self) -> Optional[float]:
        return min(self._pending.values()) if self._pending else None

    def schedule_delete(self, task_id: str, delay: float) -> bool:
        """Start the fade-out timer for a task.

        Returns False when the task is unknown or already fading; the first
        timer keeps running in that case.
        """
        if task_id in self._pending or self.get(task_id) is None:
            return False
        if delay <= 0:
            return self.delete(task_id)
        self._pending[task_id] = self.clock() + delay
        self._notify()
        return True

    def cancel_delete(self, task_id: str) -> bool:
        if self._pending.pop(task_id, None) is None:
            return False
        self._notify()
        return True

    def run_due(self, now: Optional[float] = None) -> List[str]:
        """Remove every task whose fade has finished; one commit for all."""
        now = self.clock() if now is None else now
        due = [tid for tid, at in self._pending.items() if at <= now]
        if not due:
            return []
        for tid in due:
            del self._pending[tid]
        live = set(self.ids())
        removed = [tid for tid in due if tid in live]
        if removed:
            gone = set(removed)
            self._commit([t for t in self._tasks if t.id not in gone])
            logger.info("Deleted %d faded task(s)", len(removed))
        return removed

    def flush_pending(self) -> List[str]:
        return self.run_due(now=float('inf'))
