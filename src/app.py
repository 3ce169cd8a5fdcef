"""Application root: owns the store, the render engine and the drag translator.

The methods here are the UI event surface. Validation and no-op signals from
the store are turned into transient messages on the next frame; nothing
below raises to the presentation layer.
"""
from __future__ import annotations
import logging
import time
from typing import Callable, List, Optional, Sequence

from drag import DragReorder
from errors import NoOpWarning, ValidationError
from models import Task
from render import Frame, SyncEngine
from storage import Storage
from store import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_DELETE_DELAY = 0.24


class TodoApp:
    def __init__(self, storage: Storage,
                 delete_delay: float = DEFAULT_DELETE_DELAY,
                 clock: Callable[[], float] = time.monotonic,
                 width_fn: Optional[Callable[[], int]] = None):
        self.store = TaskStore(storage, clock=clock)
        self.delete_delay = delete_delay
        self.engine = SyncEngine(self.store, self, width_fn=width_fn)
        self.drag = DragReorder(self.store)

    @property
    def frame(self) -> Frame:
        return self.engine.frame or self.engine.render()

    def start(self) -> Frame:
        if self.store.seed_if_empty():
            logger.info("Seeded example tasks")
        return self.engine.render()

    def shutdown(self) -> None:
        """Apply any fading deletes and make the final save."""
        self.store.flush_pending()
        self.store.persist()

    def tick(self, now: Optional[float] = None) -> List[str]:
        return self.store.run_due(now)

    def fade_remaining(self) -> Optional[float]:
        """Seconds until the next fading delete is due, or None."""
        due = self.store.next_due
        if due is None:
            return None
        return max(0.0, due - self.store.clock())

    def warn(self, text: str) -> None:
        self.engine.flash(text, 'warn')
        self.engine.render()

    # -------------------- UI events --------------------
    def submit_new_task(self, text: str) -> Optional[Task]:
        try:
            return self.store.add(text)
        except ValidationError:
            self.warn('Please enter a task')
            return None

    def toggle(self, task_id: str) -> None:
        self.store.toggle(task_id)

    def edit_start(self, task_id: str) -> bool:
        if self.store.get(task_id) is None:
            return False
        self.engine.editing_id = task_id
        self.engine.render()
        return True

    def edit_commit(self, task_id: str, text: str) -> bool:
        """Save an edit; on empty text the editor stays open and a warning shows."""
        try:
            self.store.edit(task_id, text)
        except ValidationError:
            self.warn("Task can't be empty")
            return False
        if self.engine.editing_id == task_id:
            self.engine.editing_id = None
            self.engine.render()
        return True

    def edit_cancel(self, task_id: str) -> None:
        if self.engine.editing_id == task_id:
            self.engine.editing_id = None
            self.engine.render()

    def delete(self, task_id: str) -> bool:
        return self.store.schedule_delete(task_id, self.delete_delay)

    def set_filter(self, value: str) -> bool:
        try:
            self.store.set_filter(value)
        except ValidationError:
            self.warn(f'Unknown filter "{value}"')
            return False
        return True

    def clear_completed(self) -> int:
        try:
            return self.store.clear_completed()
        except NoOpWarning:
            self.warn('No completed tasks to clear')
            return 0

    def toggle_all(self) -> None:
        self.store.toggle_all()

    # -------------------- drag & drop --------------------
    def drag_start(self, task_id: str) -> bool:
        frame = self.frame
        heights = {item.task_id: item.row.height for item in frame.items}
        origin = frame.items[0].row.top if frame.items else 0
        return self.drag.start(task_id, frame.visible_ids(), heights, origin)

    def drag_over(self, target_id: str, pointer_y: float) -> None:
        self.drag.over(target_id, pointer_y)

    def drop(self, final_visible_order: Optional[Sequence[str]] = None) -> Optional[List[str]]:
        return self.drag.drop(final_visible_order)

    def drag_cancel(self) -> None:
        self.drag.cancel()
