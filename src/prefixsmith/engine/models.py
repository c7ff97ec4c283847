"""Per-invocation data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..host.base import Point, Range


class DocumentScope(str, Enum):
    """Language family of the document being transformed."""

    CSS = "css"
    SCSS = "scss"
    HTML = "html"
    UNSUPPORTED = "unsupported"


class Trigger(str, Enum):
    """What started the invocation."""

    MANUAL = "manual"
    ON_SAVE = "on_save"


class Dialect(str, Enum):
    """Parsing strategy requested from the transformation library."""

    SAFE_CSS = "safe-css"  # postcss-safe-parser
    SCSS = "scss"  # postcss-scss syntax
    HTML = "html"  # posthtml-autoprefixer


class Granularity(str, Enum):
    """How much of the buffer a result replaces."""

    SELECTION = "selection"
    DOCUMENT = "document"


class OutcomeStatus(str, Enum):
    """Terminal state of one invocation."""

    SKIPPED = "skipped"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolvedScope:
    """Dialect and replacement granularity picked for an invocation."""

    dialect: Dialect
    granularity: Granularity


@dataclass(frozen=True)
class InvocationContext:
    """What the invocation was asked to transform."""

    scope: DocumentScope
    scope_name: str
    trigger: Trigger
    full_text: str
    selection_text: Optional[str] = None
    selection_range: Optional[Range] = None

    @property
    def has_selection(self) -> bool:
        return bool(self.selection_text)

    @property
    def target_text(self) -> str:
        return self.selection_text if self.has_selection else self.full_text


@dataclass(frozen=True)
class ViewportSnapshot:
    """Cursor and scroll state captured right before mutation."""

    cursor: Point
    first_visible_row: int
    scroll_margin: int

    @property
    def scroll_row(self) -> int:
        return self.first_visible_row + self.scroll_margin


@dataclass
class TransformWarning:
    """Non-fatal diagnostic from the transformation library."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass
class TransformResult:
    """Successful output of the transformation library."""

    output_text: str
    warnings: list[TransformWarning] = field(default_factory=list)


@dataclass
class InvocationOutcome:
    """Summary handed back to whoever triggered the invocation."""

    status: OutcomeStatus
    resolved: Optional[ResolvedScope] = None
    warnings: list[str] = field(default_factory=list)
    error: Optional[str] = None
    changed: bool = False
