"""Host editor interfaces the extension is written against."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union


@dataclass(frozen=True, order=True)
class Point:
    """A zero-based (row, column) position in a buffer or on screen."""

    row: int
    column: int

    @classmethod
    def coerce(cls, value: Union["Point", tuple[int, int], list[int]]) -> "Point":
        if isinstance(value, Point):
            return value
        row, column = value
        return cls(row, column)


@dataclass(frozen=True)
class Range:
    """A half-open span between two points."""

    start: Point
    end: Point

    @classmethod
    def coerce(cls, value: Union["Range", tuple[Any, Any]]) -> "Range":
        if isinstance(value, Range):
            return value
        start, end = value
        return cls(Point.coerce(start), Point.coerce(end))

    def normalized(self) -> "Range":
        if self.end < self.start:
            return Range(self.end, self.start)
        return self

    def is_empty(self) -> bool:
        return self.start == self.end


class Disposable:
    """A handle whose single ``dispose`` call releases a subscription."""

    def __init__(self, release: Optional[Callable[[], None]] = None):
        self._release = release
        self.disposed = False

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._release is not None:
            self._release()
            self._release = None


@dataclass
class CompositeDisposable:
    """A group of disposables released together."""

    _disposables: list[Disposable] = field(default_factory=list)
    disposed: bool = False

    def add(self, *disposables: Disposable) -> None:
        for disposable in disposables:
            if self.disposed:
                # Late additions to a dead group must not leak.
                disposable.dispose()
            else:
                self._disposables.append(disposable)

    def remove(self, disposable: Disposable) -> None:
        if disposable in self._disposables:
            self._disposables.remove(disposable)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        disposables, self._disposables = self._disposables, []
        for disposable in disposables:
            disposable.dispose()

    def __len__(self) -> int:
        return len(self._disposables)


WillSaveCallback = Callable[[], Optional[Awaitable[None]]]


class TextBuffer(ABC):
    """Text storage behind one or more editors."""

    @abstractmethod
    def get_text(self) -> str:
        """Return the full buffer content."""
        pass

    @abstractmethod
    def set_text_in_range(self, range: Range, text: str) -> Range:
        """Replace ``range`` with ``text`` and return the range of the new text."""
        pass

    @abstractmethod
    def set_text_via_diff(self, text: str) -> None:
        """Replace the whole content by applying only the differing edits."""
        pass

    @abstractmethod
    def on_will_save(self, callback: WillSaveCallback) -> Disposable:
        """Register a callback awaited before the buffer is written."""
        pass


class TextEditor(ABC):
    """An editor pane showing a buffer with its cursor and viewport."""

    @abstractmethod
    def get_buffer(self) -> TextBuffer:
        pass

    @abstractmethod
    def get_grammar_scope(self) -> str:
        """Return the scope name of the grammar, e.g. ``source.css``."""
        pass

    @abstractmethod
    def get_text(self) -> str:
        pass

    @abstractmethod
    def get_selected_text(self) -> str:
        pass

    @abstractmethod
    def get_selected_buffer_range(self) -> Range:
        pass

    @abstractmethod
    def set_text_in_buffer_range(self, range: Range, text: str) -> Range:
        pass

    @abstractmethod
    def get_cursor_buffer_position(self) -> Point:
        pass

    @abstractmethod
    def set_cursor_buffer_position(self, position: Point) -> None:
        """Move the cursor, clamping it to the buffer bounds."""
        pass

    @abstractmethod
    def get_first_visible_screen_row(self) -> int:
        pass

    @abstractmethod
    def get_vertical_scroll_margin(self) -> int:
        pass

    @abstractmethod
    def get_screen_line_count(self) -> int:
        pass

    @abstractmethod
    def scroll_to_screen_position(self, position: Point) -> None:
        pass


class Workspace(ABC):
    """The set of open editors."""

    @abstractmethod
    def get_active_text_editor(self) -> Optional[TextEditor]:
        pass

    @abstractmethod
    def observe_text_editors(
        self, callback: Callable[[TextEditor], None]
    ) -> Disposable:
        """Call ``callback`` for every current and future editor."""
        pass


class CommandRegistry(ABC):
    """Named user-invocable commands."""

    @abstractmethod
    def add(self, target: str, name: str, callback: Callable[[], Any]) -> Disposable:
        pass


class NotificationManager(ABC):
    """User-facing notifications."""

    @abstractmethod
    def add_warning(self, title: str, detail: str = "") -> None:
        pass

    @abstractmethod
    def add_error(self, title: str, detail: str = "") -> None:
        pass


@dataclass
class Host:
    """The services a host editor hands to the extension at activation."""

    workspace: Workspace
    commands: CommandRegistry
    notifications: NotificationManager
