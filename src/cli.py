"""Command-line REPL for the to-do list.

Rows are addressed by their visible number in the current frame; the number
is resolved to a task id through that frame's handlers, so commands always
act on the task the user saw, whatever the filter or order.
"""
import logging
import time
from typing import Callable, List, Optional

from app import TodoApp
from render import RenderedItem

logger = logging.getLogger(__name__)

# --- terminal control helpers ---
# ESC[3J (scrollback), ESC[H (home), ESC[2J (screen), ESC[H (home); 3J first.
def _clear_screen() -> None:
    print("\033[3J\033[H\033[2J\033[H", end="", flush=True)


def _enter_alt_screen() -> None:
    print("\033[?1049h", end="", flush=True)


def _leave_alt_screen() -> None:
    print("\033[?1049l", end="", flush=True)


FILTER_ALIASES = {
    'a': 'all',
    'all': 'all',
    'ac': 'active',
    'active': 'active',
    'c': 'completed',
    'done': 'completed',
    'completed': 'completed',
}


class CLI:
    def __init__(self, app: TodoApp, alt_screen: bool = True,
                 input_fn: Callable[[str], str] = input,
                 sleep: Callable[[float], None] = time.sleep):
        self.app = app
        self.alt_screen = alt_screen
        self._input = input_fn
        self._sleep = sleep

    def run(self) -> None:
        """Main REPL loop; the whole list is cleared/redrawn each cycle."""
        exit_message: Optional[str] = None
        if self.alt_screen:
            _enter_alt_screen()
        try:
            self.app.start()
            while True:
                self._redraw()
                line = self._input("\n: ").strip()
                if not line:
                    continue
                lower = line.lower()
                if lower == 'help':
                    _clear_screen()
                    self._help()
                    self._input("\nPress Enter to return to the list...")
                    continue
                if lower in ('exit', 'quit', 'q'):
                    exit_message = "Goodbye."
                    break
                self._handle_command(line)
                self._settle()
        except (KeyboardInterrupt, EOFError):
            exit_message = "Interrupted. Goodbye."
        finally:
            self.app.shutdown()
            if self.alt_screen:
                _leave_alt_screen()
            if exit_message:
                print(exit_message)

    def _redraw(self) -> None:
        _clear_screen()
        print("To-Do List:")
        self.app.engine.display()

    def _settle(self) -> None:
        """Show fading rows, wait out the fade, then apply the removals."""
        due = self.app.store.next_due
        if due is None:
            return
        self._redraw()
        wait = self.app.fade_remaining()
        if wait:
            self._sleep(wait)
        self.app.tick(due)

    # -------------------- command dispatch --------------------
    def _handle_command(self, line: str) -> None:
        tokens = line.split()
        cmd = tokens[0].lower()
        if cmd == 'add':
            self._cmd_add(line[len(tokens[0]):])
        elif cmd in ('x', 'toggle', 'done'):
            item = self._resolve(tokens, "x <n>")
            if item:
                item.handlers.toggle()
        elif cmd == 'edit':
            self._cmd_edit(tokens, line)
        elif cmd in ('rm', 'remove', 'del'):
            item = self._resolve(tokens, "rm <n>")
            if item:
                item.handlers.delete()
        elif cmd == 'mv':
            self._cmd_mv(tokens)
        elif cmd in ('filter', 'f'):
            if len(tokens) != 2:
                self.app.warn("Usage: filter all|active|completed")
                return
            self._cmd_filter(tokens[1])
        elif cmd in ('all', 'active', 'completed') and len(tokens) == 1:
            self._cmd_filter(cmd)
        elif cmd == 'clear':
            self.app.clear_completed()
        elif cmd in ('ta', 'toggle-all'):
            self.app.toggle_all()
        else:
            self.app.warn("Unknown command. Type 'help' for instructions.")

    # ---- individual command helpers ----
    def _resolve(self, tokens: List[str], usage: str, index: int = 1) -> Optional[RenderedItem]:
        if len(tokens) <= index:
            self.app.warn(f"Usage: {usage}")
            return None
        raw = tokens[index].rstrip('.')
        if not raw.isdigit():
            self.app.warn("Invalid number.")
            return None
        item = self.app.frame.item(int(raw))
        if item is None:
            self.app.warn(f"No task #{raw} in this view.")
        return item

    def _cmd_add(self, rest: str) -> None:
        text = rest if rest.strip() else self._input("Enter task: ")
        self.app.submit_new_task(text)

    def _cmd_edit(self, tokens: List[str], line: str) -> None:
        item = self._resolve(tokens, "edit <n> [text]")
        if not item:
            return
        if len(tokens) > 2:
            # inline shorthand: text is everything after the row number
            text = line.split(None, 2)[2]
            item.handlers.edit_start()
            self.app.frame.find(item.task_id).handlers.edit_commit(text)
            return
        item.handlers.edit_start()
        task_id = item.task_id
        while True:
            self._redraw()
            task = self.app.store.get(task_id)
            if task is None:
                return
            print(f"\nCurrent: {task.text}")
            try:
                text = self._input("New text (Ctrl-C to cancel): ")
            except (KeyboardInterrupt, EOFError):
                current = self.app.frame.find(task_id)
                if current:
                    current.handlers.edit_cancel()
                return
            current = self.app.frame.find(task_id)
            if current is None or current.handlers.edit_commit(text):
                return

    def _cmd_mv(self, tokens: List[str]) -> None:
        if len(tokens) != 3:
            self.app.warn("Usage: mv <n> <m>")
            return
        source = self._resolve(tokens, "mv <n> <m>", 1)
        target = self._resolve(tokens, "mv <n> <m>", 2) if source else None
        if not source or not target or source.task_id == target.task_id:
            return
        if not source.handlers.drag_start():
            return
        # moving up: pointer on the target's top half; moving down: bottom half
        top, height = self.app.drag.slot(target.task_id)
        if target.row.position < source.row.position:
            pointer_y = top
        else:
            pointer_y = top + height - 0.25
        self.app.drag_over(target.task_id, pointer_y)
        self.app.drop()

    def _cmd_filter(self, value: str) -> None:
        self.app.set_filter(FILTER_ALIASES.get(value.lower(), value))

    # -------------------- user-interactive flows --------------------
    def _help(self) -> None:
        print("Commands:")
        print("  add                 Add a new task (prompts for text)")
        print("  add <text...>       Shorthand add with inline text (e.g., add buy milk)")
        print("  x <n>               Toggle task number n done/not done (also: toggle, done)")
        print("  edit <n>            Edit task n (prompts; Ctrl-C cancels)")
        print("  edit <n> <text...>  Shorthand edit with inline text")
        print("  rm <n>              Delete task n")
        print("  mv <n> <m>          Drag task n to the position of task m")
        print("  filter <f>          Show all / active / completed (or just type the filter)")
        print("  clear               Remove all completed tasks")
        print("  ta                  Toggle all: complete everything, or reopen if all done")
        print("  help                Show this help (press Enter to return)")
        print("  exit                Save and exit")
