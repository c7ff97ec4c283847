"""Host editor API and its headless implementation."""

from .base import (
    CommandRegistry,
    CompositeDisposable,
    Disposable,
    Host,
    NotificationManager,
    Point,
    Range,
    TextBuffer,
    TextEditor,
    Workspace,
)
from .memory import (
    Marker,
    MemoryBuffer,
    MemoryCommandRegistry,
    MemoryEditor,
    MemoryNotificationManager,
    MemoryWorkspace,
    Notification,
    create_memory_host,
    scope_for_path,
)

__all__ = [
    "CommandRegistry",
    "CompositeDisposable",
    "Disposable",
    "Host",
    "NotificationManager",
    "Point",
    "Range",
    "TextBuffer",
    "TextEditor",
    "Workspace",
    "Marker",
    "MemoryBuffer",
    "MemoryCommandRegistry",
    "MemoryEditor",
    "MemoryNotificationManager",
    "MemoryWorkspace",
    "Notification",
    "create_memory_host",
    "scope_for_path",
]
