"""Headless host editor used by the command line and the test suite.

The model is deliberately plain: one cursor, one selection, no soft wrap and
no folds, so screen rows and buffer rows coincide.
"""

import inspect
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from ..engine.differ import TextDiffer
from .base import (
    CommandRegistry,
    Disposable,
    Host,
    NotificationManager,
    Point,
    Range,
    TextBuffer,
    TextEditor,
    WillSaveCallback,
    Workspace,
)

logger = logging.getLogger(__name__)

SCOPES_BY_EXTENSION = {
    ".css": "source.css",
    ".scss": "source.css.scss",
    ".less": "source.css.less",
    ".html": "text.html.basic",
    ".htm": "text.html.basic",
}
DEFAULT_SCOPE = "text.plain"


def scope_for_path(path: Path) -> str:
    """Guess a grammar scope name from a file extension."""
    return SCOPES_BY_EXTENSION.get(Path(path).suffix.lower(), DEFAULT_SCOPE)


class Marker:
    """A buffer range that follows edits made around it."""

    def __init__(self, buffer: "MemoryBuffer", start: int, end: int):
        self._buffer = buffer
        self.start = start
        self.end = end
        self.valid = True

    def get_range(self) -> Range:
        return Range(
            self._buffer.position_for_index(self.start),
            self._buffer.position_for_index(self.end),
        )

    def get_text(self) -> str:
        return self._buffer.get_text()[self.start : self.end]

    def destroy(self) -> None:
        self._buffer._markers.discard(self)

    def _splice(self, start: int, end: int, new_length: int) -> None:
        if start < end:
            touched = max(start, self.start) < min(end, self.end)
        else:
            touched = self.start < start < self.end
        if touched:
            self.valid = False

        delta = new_length - (end - start)
        self.start = _shift_point(self.start, start, end, delta, new_length, True)
        self.end = _shift_point(self.end, start, end, delta, new_length, False)


def _shift_point(
    offset: int, start: int, end: int, delta: int, new_length: int, leading: bool
) -> int:
    if offset < start:
        return offset
    if offset > end:
        return offset + delta
    if start == end:
        # Insertion exactly at the offset: a marker start moves past the new
        # text, a marker end stays before it.
        return offset + delta if leading else offset
    if offset == end:
        return offset + delta
    if offset == start:
        return offset
    return start if leading else start + new_length


@dataclass
class _Change:
    start: int
    old: str
    new: str


class MemoryBuffer(TextBuffer):
    """In-memory text buffer with markers, grouped undo and save hooks."""

    def __init__(self, text: str = "", path: Optional[Path] = None):
        self._text = text
        self.path = Path(path) if path else None
        self._saved_text = text
        self._markers: set[Marker] = set()
        self._will_save: list[WillSaveCallback] = []
        self._undo_stack: list[list[_Change]] = []
        self._transaction: Optional[list[_Change]] = None
        self.differ = TextDiffer()

    @classmethod
    def load(cls, path: Path) -> "MemoryBuffer":
        path = Path(path)
        return cls(path.read_text(encoding="utf-8"), path=path)

    # Reading

    def get_text(self) -> str:
        return self._text

    def get_line_count(self) -> int:
        return self._text.count("\n") + 1

    def line_for_row(self, row: int) -> str:
        return self._text.split("\n")[row]

    def position_for_index(self, index: int) -> Point:
        index = max(0, min(index, len(self._text)))
        row = self._text.count("\n", 0, index)
        line_start = self._text.rfind("\n", 0, index) + 1
        return Point(row, index - line_start)

    def index_for_position(self, position: Point) -> int:
        position = self.clip_position(position)
        lines = self._text.split("\n")
        return sum(len(line) + 1 for line in lines[: position.row]) + position.column

    def clip_position(self, position: Point) -> Point:
        """Clamp a position to the nearest valid one."""
        position = Point.coerce(position)
        lines = self._text.split("\n")
        if position.row < 0:
            return Point(0, 0)
        if position.row >= len(lines):
            return Point(len(lines) - 1, len(lines[-1]))
        return Point(position.row, max(0, min(position.column, len(lines[position.row]))))

    def get_range(self) -> Range:
        return Range(Point(0, 0), self.position_for_index(len(self._text)))

    def is_modified(self) -> bool:
        return self._text != self._saved_text

    # Writing

    def set_text(self, text: str) -> Range:
        return self.set_text_in_range(self.get_range(), text)

    def set_text_in_range(self, range: Range, text: str) -> Range:
        range = Range.coerce(range).normalized()
        start = self.index_for_position(range.start)
        end = self.index_for_position(range.end)
        with self.transact():
            self._splice(start, end, text)
        return Range(
            self.position_for_index(start), self.position_for_index(start + len(text))
        )

    def set_text_via_diff(self, text: str) -> None:
        diff = self.differ.diff(self._text, text)
        if not diff.changed:
            return
        logger.debug(
            f"Applying {len(diff.edits)} edit(s) via diff "
            f"(similarity {diff.similarity:.2f})"
        )
        with self.transact():
            # Back to front keeps earlier offsets valid
            for edit in reversed(diff.edits):
                self._splice(edit.start, edit.end, edit.new)

    def mark_range(self, range: Range) -> Marker:
        range = Range.coerce(range).normalized()
        marker = Marker(
            self,
            self.index_for_position(range.start),
            self.index_for_position(range.end),
        )
        self._markers.add(marker)
        return marker

    @contextmanager
    def transact(self) -> Iterator[None]:
        """Group every change made inside the block into one undo step."""
        if self._transaction is not None:
            yield
            return
        self._transaction = []
        try:
            yield
        finally:
            changes, self._transaction = self._transaction, None
            if changes:
                self._undo_stack.append(changes)

    def undo(self) -> bool:
        if not self._undo_stack:
            return False
        for change in reversed(self._undo_stack.pop()):
            self._splice(change.start, change.start + len(change.new), change.old, record=False)
        return True

    def _splice(self, start: int, end: int, text: str, record: bool = True) -> None:
        old = self._text[start:end]
        if old == text:
            return
        self._text = self._text[:start] + text + self._text[end:]
        for marker in list(self._markers):
            marker._splice(start, end, len(text))
        if record and self._transaction is not None:
            self._transaction.append(_Change(start, old, text))

    # Saving

    def on_will_save(self, callback: WillSaveCallback) -> Disposable:
        self._will_save.append(callback)
        return Disposable(lambda: self._remove_will_save(callback))

    def _remove_will_save(self, callback: WillSaveCallback) -> None:
        if callback in self._will_save:
            self._will_save.remove(callback)

    async def save(self) -> None:
        """Run will-save handlers in registration order, then write."""
        for callback in list(self._will_save):
            result = callback()
            if inspect.isawaitable(result):
                await result
        if self.path is not None:
            self.path.write_text(self._text, encoding="utf-8")
            logger.info(f"Saved {self.path}")
        self._saved_text = self._text


class MemoryEditor(TextEditor):
    """Editor state over a :class:`MemoryBuffer`."""

    def __init__(
        self,
        buffer: MemoryBuffer,
        scope_name: str = DEFAULT_SCOPE,
        rows_per_page: int = 40,
        vertical_scroll_margin: int = 2,
    ):
        self.buffer = buffer
        self.scope_name = scope_name
        self.rows_per_page = rows_per_page
        self.vertical_scroll_margin = vertical_scroll_margin
        self._cursor = Point(0, 0)
        self._selection_tail: Optional[Point] = None
        self._first_visible_row = 0

    def get_buffer(self) -> MemoryBuffer:
        return self.buffer

    def get_grammar_scope(self) -> str:
        return self.scope_name

    def get_text(self) -> str:
        return self.buffer.get_text()

    # Cursor and selection

    def get_cursor_buffer_position(self) -> Point:
        return self.buffer.clip_position(self._cursor)

    def set_cursor_buffer_position(self, position: Point) -> None:
        self._cursor = self.buffer.clip_position(position)
        self._selection_tail = None
        self._autoscroll(self._cursor.row)

    def set_selected_buffer_range(self, range: Range) -> None:
        range = Range.coerce(range).normalized()
        self._selection_tail = self.buffer.clip_position(range.start)
        self._cursor = self.buffer.clip_position(range.end)
        self._autoscroll(self._cursor.row)

    def get_selected_buffer_range(self) -> Range:
        cursor = self.get_cursor_buffer_position()
        if self._selection_tail is None:
            return Range(cursor, cursor)
        tail = self.buffer.clip_position(self._selection_tail)
        return Range(tail, cursor).normalized()

    def get_selected_text(self) -> str:
        range = self.get_selected_buffer_range()
        text = self.buffer.get_text()
        return text[
            self.buffer.index_for_position(range.start) : self.buffer.index_for_position(range.end)
        ]

    def set_text_in_buffer_range(self, range: Range, text: str) -> Range:
        return self.buffer.set_text_in_range(range, text)

    # Viewport

    def get_first_visible_screen_row(self) -> int:
        return min(self._first_visible_row, self.get_screen_line_count() - 1)

    def set_first_visible_screen_row(self, row: int) -> None:
        self._first_visible_row = max(0, min(row, self.get_screen_line_count() - 1))

    def get_vertical_scroll_margin(self) -> int:
        return self.vertical_scroll_margin

    def get_screen_line_count(self) -> int:
        return self.buffer.get_line_count()

    def scroll_to_screen_position(self, position: Point) -> None:
        self._autoscroll(Point.coerce(position).row)

    def _autoscroll(self, row: int) -> None:
        """Scroll the minimum needed to show ``row`` inside the margins."""
        margin = self.vertical_scroll_margin
        first = self.get_first_visible_screen_row()
        if row - margin < first:
            first = row - margin
        elif row + margin >= first + self.rows_per_page:
            first = row + margin - self.rows_per_page + 1
        self.set_first_visible_screen_row(first)


class MemoryWorkspace(Workspace):
    """Open editors and the active one."""

    def __init__(self):
        self.editors: list[MemoryEditor] = []
        self._active: Optional[MemoryEditor] = None
        self._observers: list[Callable[[TextEditor], None]] = []

    def add_editor(self, editor: MemoryEditor, activate: bool = True) -> MemoryEditor:
        self.editors.append(editor)
        if activate:
            self._active = editor
        for observer in list(self._observers):
            observer(editor)
        return editor

    def open(self, path: Path, scope_name: Optional[str] = None) -> MemoryEditor:
        buffer = MemoryBuffer.load(path)
        editor = MemoryEditor(buffer, scope_name or scope_for_path(path))
        logger.debug(f"Opened {path} as {editor.scope_name}")
        return self.add_editor(editor)

    def close(self, editor: MemoryEditor) -> None:
        self.editors.remove(editor)
        if self._active is editor:
            self._active = self.editors[-1] if self.editors else None

    def get_active_text_editor(self) -> Optional[MemoryEditor]:
        return self._active

    def set_active_text_editor(self, editor: Optional[MemoryEditor]) -> None:
        self._active = editor

    def observe_text_editors(
        self, callback: Callable[[TextEditor], None]
    ) -> Disposable:
        for editor in list(self.editors):
            callback(editor)
        self._observers.append(callback)
        return Disposable(lambda: self._observers.remove(callback))


class MemoryCommandRegistry(CommandRegistry):
    """Commands keyed by (target, name)."""

    def __init__(self):
        self._commands: dict[tuple[str, str], list[Callable[[], Any]]] = {}

    def add(self, target: str, name: str, callback: Callable[[], Any]) -> Disposable:
        callbacks = self._commands.setdefault((target, name), [])
        callbacks.append(callback)
        return Disposable(lambda: callbacks.remove(callback))

    def has(self, target: str, name: str) -> bool:
        return bool(self._commands.get((target, name)))

    async def dispatch(self, target: str, name: str) -> list[Any]:
        """Invoke every callback for the command and await async ones."""
        results = []
        for callback in list(self._commands.get((target, name), [])):
            result = callback()
            if inspect.isawaitable(result):
                result = await result
            results.append(result)
        return results


@dataclass
class Notification:
    """A notification shown to the user."""

    type: str  # "warning" or "error"
    title: str
    detail: str


class MemoryNotificationManager(NotificationManager):
    """Keeps notifications in a list instead of rendering them."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def add_warning(self, title: str, detail: str = "") -> None:
        logger.warning(f"{title}: {detail}")
        self.notifications.append(Notification("warning", title, detail))

    def add_error(self, title: str, detail: str = "") -> None:
        logger.error(f"{title}: {detail}")
        self.notifications.append(Notification("error", title, detail))

    def of_type(self, type: str) -> list[Notification]:
        return [n for n in self.notifications if n.type == type]

    def clear(self) -> None:
        self.notifications.clear()


def create_memory_host() -> Host:
    """Build a host wired to the in-memory implementations."""
    return Host(
        workspace=MemoryWorkspace(),
        commands=MemoryCommandRegistry(),
        notifications=MemoryNotificationManager(),
    )
