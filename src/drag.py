"""Drag-to-reorder translator.

A three-state machine (IDLE -> DRAGGING -> RECONCILING -> IDLE) driven by
abstract pointer events. While dragging only the visual order changes; the
canonical list is touched once, on drop, after the visual order has been
merged back with any tasks the active filter hides.

Row positions are laid out from the current visual order, so the midpoint
test always uses where a sibling sits now, not where it was drawn when the
gesture began.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from store import TaskStore, reconcile_order

logger = logging.getLogger(__name__)

DEFAULT_ROW_HEIGHT = 1.0


class DragState(Enum):
    IDLE = 'idle'
    DRAGGING = 'dragging'
    RECONCILING = 'reconciling'


class DragReorder:
    def __init__(self, store: TaskStore):
        self.store = store
        self.state = DragState.IDLE
        self.dragged_id: Optional[str] = None
        self.visual_order: List[str] = []
        self.heights: Dict[str, float] = {}
        self.origin = 0.0

    def start(self, task_id: str, visible_ids: Sequence[str],
              heights: Optional[Mapping[str, float]] = None, origin: float = 0.0) -> bool:
        """Begin dragging ``task_id``.

        ``heights`` maps visible ids to their row heights (missing ids count
        as one line) and ``origin`` is the top of the first visible row.
        """
        if task_id not in visible_ids:
            logger.debug("Drag start on invisible task %s ignored", task_id)
            return False
        if self.state is DragState.DRAGGING:
            logger.debug("Abandoning drag of %s", self.dragged_id)
        self.state = DragState.DRAGGING
        self.dragged_id = task_id
        self.visual_order = list(visible_ids)
        self.heights = dict(heights or {})
        self.origin = origin
        return True

    def slot(self, task_id: str) -> Optional[Tuple[float, float]]:
        """(top, height) of ``task_id`` in the current visual order."""
        if task_id not in self.visual_order:
            return None
        top = self.origin
        for tid in self.visual_order:
            height = self.heights.get(tid, DEFAULT_ROW_HEIGHT)
            if tid == task_id:
                return top, height
            top += height
        return None

    def over(self, target_id: str, pointer_y: float) -> None:
        """Move the dragged task before or after ``target_id`` by the target's midpoint."""
        if self.state is not DragState.DRAGGING or self.dragged_id is None:
            return
        if target_id == self.dragged_id:
            return
        slot = self.slot(target_id)
        if slot is None:
            return
        top, height = slot
        order = [tid for tid in self.visual_order if tid != self.dragged_id]
        idx = order.index(target_id)
        if pointer_y - top > height / 2:
            idx += 1
        order.insert(idx, self.dragged_id)
        self.visual_order = order

    def drop(self, final_order: Optional[Sequence[str]] = None) -> Optional[List[str]]:
        """Commit the visual order; returns the new canonical id order."""
        if self.state is not DragState.DRAGGING:
            return None
        self.state = DragState.RECONCILING
        try:
            visual = list(final_order) if final_order is not None else self.visual_order
            order = reconcile_order(self.store.ids(), visual)
            self.store.reorder(order)
            return order
        finally:
            self._reset()

    def cancel(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.dragged_id = None
        self.visual_order = []
        self.heights = {}
        self.origin = 0.0
