"""Render/sync engine: full-rebuild rendering of the projected task view.

Every store change throws the previous frame away and builds a new one:
filter bar, one numbered row per visible task, empty-state line, remaining
count and the pending transient message. Each rendered row gets a fresh set
of handlers keyed by task id; handlers from an older frame are inert.
"""
from __future__ import annotations
import logging
import re
import shutil
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Tuple

from models import FILTERS, SEVERITIES, Message, Task
from store import TaskStore
from theme import (color, HEADER_COLOR, ID_COLOR, EMPTY_COLOR, FILTER_ACTIVE_COLOR,
                   TASK_COLOR, DONE_COLOR, FADING_COLOR, SEVERITY_COLOR, BOLD)
from view import View, build_view, remaining_label

logger = logging.getLogger(__name__)

FILTER_TITLES = {'all': 'All', 'active': 'Active', 'completed': 'Completed'}
EMPTY_TEXT = 'Nothing to show here.'
MIN_WIDTH = 24
SEP = '  '
CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize(text: str) -> str:
    """Neutralize control characters (incl. ESC) so task text cannot drive the terminal."""
    return CONTROL_RE.sub('\N{REPLACEMENT CHARACTER}', text)


@dataclass(frozen=True)
class Row:
    """Layout of one visible task; its lines span [top, top + height)."""
    position: int
    task_id: str
    top: int
    height: int


@dataclass(frozen=True)
class ItemHandlers:
    toggle: Callable[[], object]
    edit_start: Callable[[], object]
    edit_commit: Callable[[str], object]
    edit_cancel: Callable[[], object]
    delete: Callable[[], object]
    drag_start: Callable[[], object]


@dataclass(frozen=True)
class RenderedItem:
    row: Row
    handlers: ItemHandlers

    @property
    def task_id(self) -> str:
        return self.row.task_id


@dataclass(frozen=True)
class Frame:
    generation: int
    lines: Tuple[str, ...]
    items: Tuple[RenderedItem, ...]
    visible: Tuple[Task, ...]
    remaining: int
    remaining_text: str
    empty: bool
    filter: str
    message: Optional[Message] = None

    def item(self, position: int) -> Optional[RenderedItem]:
        """Look up a row by its 1-based visible number."""
        if 1 <= position <= len(self.items):
            return self.items[position - 1]
        return None

    def find(self, task_id: str) -> Optional[RenderedItem]:
        for item in self.items:
            if item.task_id == task_id:
                return item
        return None

    def visible_ids(self) -> List[str]:
        return [item.task_id for item in self.items]


# -------------------- pure rendering --------------------
def render_filter_bar(active: str) -> str:
    cells: List[str] = []
    for f in FILTERS:
        title = FILTER_TITLES[f]
        if f == active:
            cells.append(color(f'[{title}]', FILTER_ACTIVE_COLOR))
        else:
            cells.append(color(f' {title} ', HEADER_COLOR))
    return SEP.join(cells)


def _wrap_words(text: str, limit: int) -> List[str]:
    lines: List[str] = []
    current = ''
    for w in text.split():
        while len(w) > limit:  # hard-split words longer than a line
            if current:
                lines.append(current)
                current = ''
            lines.append(w[:limit])
            w = w[limit:]
        candidate = w if not current else current + ' ' + w
        if len(candidate) <= limit:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = w
    if current:
        lines.append(current)
    return lines or ['']


def render_task(task: Task, position: int, width: int,
                fading: bool = False, editing: bool = False) -> List[str]:
    box = '[x]' if task.done else '[ ]'
    prefix_visible = f"{position}. {box} "
    prefix_colored = color(f"{position}.", ID_COLOR) + ' ' + box + ' '
    suffix = ''
    if editing:
        suffix = ' (editing)'
    elif fading:
        suffix = ' (deleting)'
    style = FADING_COLOR if fading else (DONE_COLOR if task.done else TASK_COLOR)
    if editing:
        style += BOLD
    limit = max(1, width - len(prefix_visible))
    raw = _wrap_words(sanitize(task.text), limit)
    if suffix:
        if len(raw[-1]) + len(suffix) <= limit:
            raw[-1] = raw[-1] + suffix
        else:
            raw.append(suffix.strip())
    indent = ' ' * len(prefix_visible)
    out: List[str] = []
    for idx, line in enumerate(raw):
        lead = prefix_colored if idx == 0 else indent
        out.append(lead + color(line, style))
    return out


def render_frame(view: View, width: int,
                 pending: FrozenSet[str] = frozenset(),
                 editing_id: Optional[str] = None,
                 message: Optional[Message] = None) -> Tuple[List[str], List[Row]]:
    """Build every line of a frame from scratch, plus the row layout."""
    width = max(MIN_WIDTH, width)
    lines: List[str] = [render_filter_bar(view.filter), color('-' * width, HEADER_COLOR)]
    rows: List[Row] = []
    for position, task in enumerate(view.visible, start=1):
        task_lines = render_task(task, position, width,
                                 fading=task.id in pending, editing=task.id == editing_id)
        rows.append(Row(position=position, task_id=task.id, top=len(lines), height=len(task_lines)))
        lines.extend(task_lines)
    if view.empty:
        lines.append(color(EMPTY_TEXT, EMPTY_COLOR))
    lines.append(color('-' * width, HEADER_COLOR))
    lines.append(remaining_label(view.remaining))
    if message is not None:
        marker = '!' if message.severity == 'warn' else '*'
        lines.append(color(f'{marker} {sanitize(message.text)}',
                           SEVERITY_COLOR.get(message.severity, '')))
    return lines, rows


# -------------------- sync engine --------------------
class SyncEngine:
    def __init__(self, store: TaskStore, actions, width_fn: Optional[Callable[[], int]] = None):
        """Subscribe to ``store`` and re-render on every change.

        ``actions`` receives the per-item events (toggle, edit_start,
        edit_commit, edit_cancel, delete, drag_start), always with the
        task id as first argument.
        """
        self.store = store
        self.actions = actions
        self._width_fn = width_fn or (lambda: shutil.get_terminal_size((80, 24)).columns)
        self.generation = 0
        self.frame: Optional[Frame] = None
        self.editing_id: Optional[str] = None
        self._message: Optional[Message] = None
        store.subscribe(self.render)

    def flash(self, text: str, severity: str = 'info') -> None:
        """Queue a transient message for the next frame."""
        if severity not in SEVERITIES:
            raise ValueError(f"unknown severity {severity!r}")
        self._message = Message(text, severity)

    def render(self) -> Frame:
        view = build_view(self.store.tasks, self.store.filter)
        if self.editing_id is not None and self.store.get(self.editing_id) is None:
            self.editing_id = None
        message, self._message = self._message, None
        lines, rows = render_frame(view, self._width_fn(), self.store.pending_ids,
                                   self.editing_id, message)
        self.generation += 1
        items = tuple(RenderedItem(row, self._bind(row.task_id, self.generation)) for row in rows)
        self.frame = Frame(
            generation=self.generation,
            lines=tuple(lines),
            items=items,
            visible=view.visible,
            remaining=view.remaining,
            remaining_text=remaining_label(view.remaining),
            empty=view.empty,
            filter=view.filter,
            message=message,
        )
        return self.frame

    def _bind(self, task_id: str, generation: int) -> ItemHandlers:
        def guarded(name: str):
            def handler(*args):
                if generation != self.generation:
                    logger.debug("Ignoring stale %s for %s (frame %d, current %d)",
                                 name, task_id, generation, self.generation)
                    return None
                return getattr(self.actions, name)(task_id, *args)
            return handler
        return ItemHandlers(
            toggle=guarded('toggle'),
            edit_start=guarded('edit_start'),
            edit_commit=guarded('edit_commit'),
            edit_cancel=guarded('edit_cancel'),
            delete=guarded('delete'),
            drag_start=guarded('drag_start'),
        )

    def display(self) -> None:
        frame = self.frame or self.render()
        for line in frame.lines:
            print(line)
