"""Minimal edit computation between two versions of a document."""

import difflib
from dataclasses import dataclass, field
from typing import Optional

# Character-level refinement of a changed line block is quadratic; above this
# many compared character pairs the block is replaced as a whole.
MAX_REFINE_COST = 4_000_000


@dataclass(frozen=True)
class TextEdit:
    """One edit expressed in offsets of the *old* text."""

    type: str  # "insert", "delete" or "replace"
    start: int
    end: int
    old: str
    new: str


@dataclass
class TextDiff:
    """The edits turning ``old_text`` into ``new_text``."""

    old_text: str
    new_text: str
    edits: list[TextEdit] = field(default_factory=list)
    similarity: float = 1.0

    @property
    def changed(self) -> bool:
        return bool(self.edits)

    def apply(self, text: Optional[str] = None) -> str:
        """Apply the edits to ``text`` (the old text by default)."""
        result = self.old_text if text is None else text
        for edit in reversed(self.edits):
            result = result[: edit.start] + edit.new + result[edit.end :]
        return result

    def to_diff_string(self, label: str = "document") -> str:
        """Generate a human-readable unified diff."""
        lines = difflib.unified_diff(
            self.old_text.splitlines(keepends=True),
            self.new_text.splitlines(keepends=True),
            fromfile=f"{label} (original)",
            tofile=f"{label} (prefixed)",
        )
        return "".join(line if line.endswith("\n") else line + "\n" for line in lines)


class TextDiffer:
    """Generates line-then-character minimal edits between two texts."""

    def diff(self, old_text: str, new_text: str) -> TextDiff:
        if old_text == new_text:
            return TextDiff(old_text=old_text, new_text=new_text)

        old_lines = old_text.splitlines(keepends=True)
        new_lines = new_text.splitlines(keepends=True)
        matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

        # Line index -> character offset into the old text
        offsets = [0]
        for line in old_lines:
            offsets.append(offsets[-1] + len(line))

        edits: list[TextEdit] = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            old_block = "".join(old_lines[i1:i2])
            new_block = "".join(new_lines[j1:j2])
            base = offsets[i1]
            if tag == "replace":
                edits.extend(self._refine(old_block, new_block, base))
            elif tag == "delete":
                edits.append(
                    TextEdit("delete", base, base + len(old_block), old_block, "")
                )
            elif tag == "insert":
                edits.append(TextEdit("insert", base, base, "", new_block))

        return TextDiff(
            old_text=old_text,
            new_text=new_text,
            edits=edits,
            similarity=matcher.ratio(),
        )

    def _refine(self, old_block: str, new_block: str, base: int) -> list[TextEdit]:
        """Split a replaced line block into character-level edits."""
        if len(old_block) * len(new_block) > MAX_REFINE_COST:
            return [
                TextEdit("replace", base, base + len(old_block), old_block, new_block)
            ]

        matcher = difflib.SequenceMatcher(None, old_block, new_block, autojunk=False)
        edits = []
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            edits.append(
                TextEdit(
                    tag,
                    base + i1,
                    base + i2,
                    old_block[i1:i2],
                    new_block[j1:j2],
                )
            )
        return edits
