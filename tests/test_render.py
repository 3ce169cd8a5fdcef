"""Tests for frame rendering and the sync engine's handler binding."""

from typing import Callable, List

import pytest

from app import TodoApp
from conftest import plain
from models import Message, Task
from render import Row, render_frame, render_task, sanitize
from view import build_view


class TestRenderFrame:
    def test_layout(self, abcd: List[Task]) -> None:
        lines, rows = render_frame(build_view(abcd, "all"), 40)
        text = plain(lines)
        assert "[All]" in text[0]
        assert "Active" in text[0] and "[Active]" not in text[0]
        assert text[2] == "1. [x] alpha"
        assert text[3] == "2. [ ] bravo"
        assert text[-1] == "2 tasks left"
        assert [r.task_id for r in rows] == ["A", "B", "C", "D"]
        assert rows[0] == Row(position=1, task_id="A", top=2, height=1)

    def test_filtered_rows_are_renumbered(self, abcd: List[Task]) -> None:
        lines, rows = render_frame(build_view(abcd, "active"), 40)
        text = plain(lines)
        assert "[Active]" in text[0]
        assert text[2] == "1. [ ] bravo"
        assert text[3] == "2. [ ] delta"
        assert [(r.position, r.task_id) for r in rows] == [(1, "B"), (2, "D")]

    def test_empty_state(self) -> None:
        lines, rows = render_frame(build_view([], "all"), 40)
        text = plain(lines)
        assert rows == []
        assert "Nothing to show here." in text
        assert text[-1] == "0 tasks left"

    def test_singular_remaining(self) -> None:
        lines, _ = render_frame(build_view([Task(id="a", text="one")], "all"), 40)
        assert plain(lines)[-1] == "1 task left"

    def test_message_line(self, abcd: List[Task]) -> None:
        lines, _ = render_frame(build_view(abcd, "all"), 40,
                                message=Message("No completed tasks to clear", "warn"))
        assert plain(lines)[-1] == "! No completed tasks to clear"
        lines, _ = render_frame(build_view(abcd, "all"), 40, message=Message("Saved", "info"))
        assert plain(lines)[-1] == "* Saved"

    def test_fading_and_editing_markers(self, abcd: List[Task]) -> None:
        lines, _ = render_frame(build_view(abcd, "all"), 60, pending=frozenset({"B"}), editing_id="C")
        text = plain(lines)
        assert text[3] == "2. [ ] bravo (deleting)"
        assert text[4] == "3. [x] charlie (editing)"

    def test_long_text_wraps_with_indent(self) -> None:
        task = Task(id="w", text="one two three four five six seven eight nine ten")
        lines, rows = render_frame(build_view([task], "all"), 24)
        body = plain(lines[rows[0].top:rows[0].top + rows[0].height])
        assert rows[0].height == len(body) > 1
        assert body[0].startswith("1. [ ] one")
        assert all(line.startswith(" " * 7) for line in body[1:])
        assert " ".join(line.strip() for line in body).replace("1. [ ] ", "") == task.text
        assert all(len(line) <= 24 for line in body)

    def test_overlong_word_is_split(self) -> None:
        body = plain(render_task(Task(id="w", text="x" * 40), 1, 24))
        assert [line.strip() for line in body] == ["1. [ ] " + "x" * 17, "x" * 17, "x" * 6]
        assert all(len(line) <= 24 for line in body)

    def test_control_characters_neutralized(self) -> None:
        assert "\x1b" not in sanitize("evil\x1b[2Jtext")
        body = plain(render_task(Task(id="e", text="bad\x1b[31m red"), 1, 40))
        assert "\x1b" not in "".join(body)

    def test_c1_controls_neutralized(self) -> None:
        """Single-byte CSI and other C1 codes are replaced like C0 ones."""
        assert sanitize("a\x9b2Jb\x85c") == "a\ufffd2Jb\ufffdc"
        assert sanitize("caf\xe9") == "caf\xe9"


class TestSyncEngine:
    def test_every_change_rebuilds_frame(self, make_app: Callable[..., TodoApp], abcd: List[Task]) -> None:
        app = make_app(abcd)
        first = app.engine.render()
        app.toggle("B")
        second = app.engine.frame
        assert second is not first
        assert second.generation == first.generation + 1
        assert second.remaining == 1

    def test_frame_facts(self, make_app: Callable[..., TodoApp], abcd: List[Task]) -> None:
        app = make_app(abcd)
        app.set_filter("completed")
        frame = app.frame
        assert frame.filter == "completed"
        assert frame.visible_ids() == ["A", "C"]
        assert [t.id for t in frame.visible] == ["A", "C"]
        assert frame.remaining == 2
        assert frame.remaining_text == "2 tasks left"
        assert frame.empty is False
        app.store.clear_completed()
        assert app.frame.empty is True

    def test_handlers_bound_by_id(self, make_app: Callable[..., TodoApp], abcd: List[Task]) -> None:
        app = make_app(abcd)
        app.set_filter("active")
        item = app.frame.item(2)
        assert item.task_id == "D"
        item.handlers.toggle()
        assert app.store.get("D").done is True
        assert app.frame.visible_ids() == ["B"]

    def test_stale_handlers_are_inert(self, make_app: Callable[..., TodoApp], abcd: List[Task]) -> None:
        app = make_app(abcd)
        stale = app.engine.render().item(1)
        app.store.reorder(["D", "C", "B", "A"])
        assert stale.handlers.toggle() is None
        assert stale.handlers.delete() is None
        assert app.store.get("A").done is True
        assert app.store.pending_ids == frozenset()

    def test_message_shown_once(self, make_app: Callable[..., TodoApp], abcd: List[Task]) -> None:
        app = make_app(abcd)
        app.engine.flash("hello", "info")
        assert app.engine.render().message == Message("hello", "info")
        assert app.engine.render().message is None

    def test_unknown_severity_rejected(self, make_app: Callable[..., TodoApp]) -> None:
        app = make_app()
        with pytest.raises(ValueError):
            app.engine.flash("hello", "shout")

    def test_editing_cleared_when_task_disappears(self, make_app: Callable[..., TodoApp], abcd: List[Task]) -> None:
        app = make_app(abcd)
        app.edit_start("B")
        assert app.engine.editing_id == "B"
        app.store.delete("B")
        assert app.engine.editing_id is None

    def test_display_prints_frame(self, make_app: Callable[..., TodoApp], abcd: List[Task],
                                  capsys: pytest.CaptureFixture) -> None:
        app = make_app(abcd)
        app.engine.display()
        out = plain(capsys.readouterr().out.splitlines())
        assert "1. [x] alpha" in out
        assert out[-1] == "2 tasks left"
