"""Tests for the headless host editor."""

import logging

import pytest

from prefixsmith.host import (
    CompositeDisposable,
    Disposable,
    MemoryBuffer,
    MemoryCommandRegistry,
    MemoryEditor,
    MemoryNotificationManager,
    MemoryWorkspace,
    Point,
    Range,
    scope_for_path,
)


class TestDisposables:
    """Tests for subscription handles."""

    def test_dispose_runs_release_once(self):
        """Test that releasing twice is harmless."""
        calls = []
        disposable = Disposable(lambda: calls.append(1))

        disposable.dispose()
        disposable.dispose()

        assert calls == [1]
        assert disposable.disposed is True

    def test_composite_disposes_everything(self):
        """Test that a group releases all members."""
        calls = []
        group = CompositeDisposable()
        group.add(Disposable(lambda: calls.append("a")), Disposable(lambda: calls.append("b")))

        group.dispose()

        assert calls == ["a", "b"]
        assert len(group) == 0

    def test_add_after_dispose_releases_immediately(self):
        """Test that a disposed group does not hold late additions."""
        calls = []
        group = CompositeDisposable()
        group.dispose()

        group.add(Disposable(lambda: calls.append("late")))

        assert calls == ["late"]


class TestMemoryBuffer:
    """Tests for MemoryBuffer."""

    def test_positions_and_indexes(self):
        """Test conversion between offsets and points."""
        buffer = MemoryBuffer("ab\ncde\n")

        assert buffer.get_line_count() == 3
        assert buffer.position_for_index(4) == Point(1, 1)
        assert buffer.index_for_position(Point(1, 1)) == 4
        assert buffer.line_for_row(1) == "cde"

    def test_clip_position(self):
        """Test clamping positions to the buffer bounds."""
        buffer = MemoryBuffer("ab\ncde")

        assert buffer.clip_position(Point(9, 9)) == Point(1, 3)
        assert buffer.clip_position(Point(0, 9)) == Point(0, 2)
        assert buffer.clip_position(Point(-1, 4)) == Point(0, 0)

    def test_set_text_in_range_returns_new_range(self):
        """Test range replacement."""
        buffer = MemoryBuffer("a{x}\nb{y}\n")

        new_range = buffer.set_text_in_range(Range(Point(1, 2), Point(1, 3)), "z;w")

        assert buffer.get_text() == "a{x}\nb{z;w}\n"
        assert new_range == Range(Point(1, 2), Point(1, 5))

    def test_set_text_via_diff_preserves_markers_in_untouched_regions(self):
        """Test that markers outside the changed text stay anchored."""
        buffer = MemoryBuffer("a {\n  display: flex;\n}\nb {\n  color: red;\n}\n")
        marker = buffer.mark_range(Range(Point(4, 2), Point(4, 13)))
        assert marker.get_text() == "color: red;"

        buffer.set_text_via_diff(
            "a {\n  display: -ms-flexbox;\n  display: flex;\n}\nb {\n  color: red;\n}\n"
        )

        assert marker.valid is True
        assert marker.get_text() == "color: red;"
        assert marker.get_range() == Range(Point(5, 2), Point(5, 13))

    def test_marker_inside_changed_text_is_invalidated(self):
        """Test that a marker overlapping an edit is flagged."""
        buffer = MemoryBuffer("abcdef")
        marker = buffer.mark_range(Range(Point(0, 1), Point(0, 5)))

        buffer.set_text_in_range(Range(Point(0, 2), Point(0, 3)), "X")

        assert marker.valid is False
        assert marker.get_text() == "bXde"

    def test_diff_edits_undo_as_one_step(self):
        """Test that a diff replacement is a single undo transaction."""
        buffer = MemoryBuffer("a{display:flex}\nb{display:flex}\n")

        buffer.set_text_via_diff(
            "a{display:-ms-flexbox;display:flex}\nb{display:-ms-flexbox;display:flex}\n"
        )
        assert buffer.undo() is True

        assert buffer.get_text() == "a{display:flex}\nb{display:flex}\n"
        assert buffer.undo() is False

    def test_set_text_via_diff_without_changes_records_nothing(self):
        """Test that an unchanged result leaves no undo step."""
        buffer = MemoryBuffer("a{}")

        buffer.set_text_via_diff("a{}")

        assert buffer.undo() is False
        assert buffer.is_modified() is False

    @pytest.mark.asyncio
    async def test_save_awaits_will_save_handlers_in_order(self, tmp_path):
        """Test that will-save handlers run before the write."""
        path = tmp_path / "style.css"
        path.write_text("a{}", encoding="utf-8")
        buffer = MemoryBuffer.load(path)
        order = []

        async def first():
            order.append("first")
            buffer.set_text("b{}")

        buffer.on_will_save(first)
        buffer.on_will_save(lambda: order.append("second"))

        await buffer.save()

        assert order == ["first", "second"]
        assert path.read_text(encoding="utf-8") == "b{}"
        assert buffer.is_modified() is False

    @pytest.mark.asyncio
    async def test_disposed_will_save_handler_is_not_called(self):
        """Test unsubscribing from the save event."""
        buffer = MemoryBuffer("a{}")
        calls = []
        buffer.on_will_save(lambda: calls.append(1)).dispose()

        await buffer.save()

        assert calls == []


class TestMemoryEditor:
    """Tests for MemoryEditor."""

    def test_selection(self):
        """Test selected text and range."""
        editor = MemoryEditor(MemoryBuffer("a{}\nb{display:flex}\n"), "source.css")

        editor.set_selected_buffer_range(Range(Point(1, 0), Point(1, 15)))

        assert editor.get_selected_text() == "b{display:flex}"
        assert editor.get_selected_buffer_range() == Range(Point(1, 0), Point(1, 15))
        assert editor.get_cursor_buffer_position() == Point(1, 15)

    def test_no_selection_is_empty_range_at_cursor(self):
        """Test the selection when nothing is selected."""
        editor = MemoryEditor(MemoryBuffer("a{}"))
        editor.set_cursor_buffer_position(Point(0, 2))

        assert editor.get_selected_text() == ""
        assert editor.get_selected_buffer_range().is_empty()

    def test_cursor_is_clamped(self):
        """Test that out-of-range cursor positions are clamped."""
        editor = MemoryEditor(MemoryBuffer("a{}\nb{}"))

        editor.set_cursor_buffer_position(Point(10, 0))

        assert editor.get_cursor_buffer_position() == Point(1, 3)

    def test_scroll_keeps_row_visible_with_margin(self):
        """Test minimal autoscroll."""
        editor = MemoryEditor(
            MemoryBuffer("\n" * 100), rows_per_page=10, vertical_scroll_margin=2
        )

        editor.scroll_to_screen_position(Point(50, 0))
        assert editor.get_first_visible_screen_row() == 43

        # Already visible inside the margins: no movement
        editor.scroll_to_screen_position(Point(46, 0))
        assert editor.get_first_visible_screen_row() == 43

        editor.scroll_to_screen_position(Point(0, 0))
        assert editor.get_first_visible_screen_row() == 0


class TestMemoryWorkspace:
    """Tests for MemoryWorkspace and friends."""

    def test_observe_text_editors_sees_existing_and_new(self):
        """Test editor observation."""
        workspace = MemoryWorkspace()
        first = workspace.add_editor(MemoryEditor(MemoryBuffer("")))
        seen = []

        subscription = workspace.observe_text_editors(seen.append)
        second = workspace.add_editor(MemoryEditor(MemoryBuffer("")))
        subscription.dispose()
        workspace.add_editor(MemoryEditor(MemoryBuffer("")))

        assert seen == [first, second]

    def test_open_guesses_scope(self, tmp_path):
        """Test opening files from disk."""
        path = tmp_path / "main.scss"
        path.write_text("$a: 1;", encoding="utf-8")
        workspace = MemoryWorkspace()

        editor = workspace.open(path)

        assert editor.get_grammar_scope() == "source.css.scss"
        assert editor.get_text() == "$a: 1;"
        assert workspace.get_active_text_editor() is editor

    def test_close_moves_active_editor(self):
        """Test closing the active editor."""
        workspace = MemoryWorkspace()
        first = workspace.add_editor(MemoryEditor(MemoryBuffer("")))
        second = workspace.add_editor(MemoryEditor(MemoryBuffer("")))

        workspace.close(second)
        assert workspace.get_active_text_editor() is first
        workspace.close(first)
        assert workspace.get_active_text_editor() is None

    @pytest.mark.parametrize(
        "name, scope",
        [
            ("a.css", "source.css"),
            ("a.SCSS", "source.css.scss"),
            ("a.html", "text.html.basic"),
            ("a.txt", "text.plain"),
        ],
    )
    def test_scope_for_path(self, tmp_path, name, scope):
        """Test scope guessing from extensions."""
        assert scope_for_path(tmp_path / name) == scope

    @pytest.mark.asyncio
    async def test_command_registry_dispatch(self):
        """Test command registration, dispatch and removal."""
        registry = MemoryCommandRegistry()

        async def command():
            return "done"

        subscription = registry.add("atom-workspace", "autoprefixer", command)
        assert await registry.dispatch("atom-workspace", "autoprefixer") == ["done"]

        subscription.dispose()
        assert registry.has("atom-workspace", "autoprefixer") is False
        assert await registry.dispatch("atom-workspace", "autoprefixer") == []

    def test_notifications(self):
        """Test notification recording."""
        notifications = MemoryNotificationManager()

        notifications.add_warning("Autoprefixer", "careful")
        notifications.add_error("Autoprefixer", "broken")

        assert [n.detail for n in notifications.of_type("warning")] == ["careful"]
        assert [n.detail for n in notifications.of_type("error")] == ["broken"]

    def test_notifications_are_logged(self, caplog):
        """Test that each notification is also written to the log."""
        notifications = MemoryNotificationManager()

        with caplog.at_level(logging.WARNING, logger="prefixsmith.host.memory"):
            notifications.add_warning("Autoprefixer", "careful")
            notifications.add_error("Autoprefixer", "broken")

        assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
            (logging.WARNING, "Autoprefixer: careful"),
            (logging.ERROR, "Autoprefixer: broken"),
        ]
