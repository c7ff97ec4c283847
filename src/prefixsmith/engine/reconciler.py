"""Writes transformation output back into a live editor."""

import logging

from ..host.base import Point, TextEditor
from .models import InvocationContext, ViewportSnapshot

logger = logging.getLogger(__name__)


class BufferReconciler:
    """
    Applies output to the buffer without moving the user's place in it.

    Whole-document results go through the buffer's diff-based replacement so
    untouched regions keep their markers and undo history stays fine-grained.
    Selection results replace exactly the range selected at invocation time.
    """

    def snapshot(self, editor: TextEditor) -> ViewportSnapshot:
        """Capture cursor and scroll state before mutation."""
        return ViewportSnapshot(
            cursor=editor.get_cursor_buffer_position(),
            first_visible_row=editor.get_first_visible_screen_row(),
            scroll_margin=editor.get_vertical_scroll_margin(),
        )

    def apply(
        self,
        editor: TextEditor,
        context: InvocationContext,
        output_text: str,
        snapshot: ViewportSnapshot,
    ) -> None:
        """
        Replace the target text with ``output_text`` and restore the viewport.

        Args:
            editor: Editor the invocation ran on
            context: Context captured at invocation start
            output_text: Transformation output
            snapshot: Viewport captured before mutation
        """
        if context.has_selection and context.selection_range is not None:
            logger.info(
                f"Replacing selection {context.selection_range.start}-"
                f"{context.selection_range.end}"
            )
            editor.set_text_in_buffer_range(context.selection_range, output_text)
        else:
            logger.info("Replacing document via diff")
            editor.get_buffer().set_text_via_diff(output_text)

        # The host clamps a cursor that fell off a shortened document
        editor.set_cursor_buffer_position(snapshot.cursor)

        line = snapshot.scroll_row
        if editor.get_screen_line_count() > line:
            editor.scroll_to_screen_position(Point(line, 0))
