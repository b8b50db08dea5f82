"""Tests for the Qt editor binding."""

import pytest
from PySide6.QtCore import QCoreApplication, QEvent
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from annotation_toolkit.gui.editor_binding import EditorAnchorBinding
from annotation_toolkit.tracking import AnchorTracker

DOCUMENT = "0123456789hello world and the rest"


@pytest.fixture
def editor(qtbot):
    widget = QPlainTextEdit()
    qtbot.addWidget(widget)
    widget.setPlainText(DOCUMENT)
    return widget


@pytest.fixture
def binding(editor, store, timers, make_anchor):
    tracker = AnchorTracker(
        store,
        anchors=[make_anchor("c1", start=10, end=15, quoted="hello")],
        timer_factory=timers,
    )
    bound = EditorAnchorBinding(editor, tracker)
    yield bound
    bound.detach()


def _select(editor, start, end):
    cursor = editor.textCursor()
    cursor.setPosition(start)
    cursor.setPosition(end, QTextCursor.MoveMode.KeepAnchor)
    editor.setTextCursor(cursor)


class TestEditorAnchorBinding:
    
    def test_text_change_emits_relocated_anchors(self, qtbot, editor, binding):
        with qtbot.waitSignal(binding.anchorsChanged, timeout=1000) as blocker:
            editor.setPlainText("ABCDE" + DOCUMENT)
        
        anchors = blocker.args[0]
        assert anchors[0].start_offset == 15
        assert anchors[0].end_offset == 20
    
    def test_rewrite_emits_stale_count(self, qtbot, editor, binding):
        with qtbot.waitSignal(binding.staleCountChanged, timeout=1000) as blocker:
            editor.setPlainText(DOCUMENT.replace("hello", "qvxjk"))
        
        assert blocker.args == [1]
        assert binding.tracker.get("c1").is_stale is True
    
    def test_small_edit_keeps_stale_count_silent(self, qtbot, editor, binding):
        with qtbot.assertNotEmitted(binding.staleCountChanged):
            editor.setPlainText(DOCUMENT.replace("hello", "hellO"))
        assert binding.tracker.has_pending_writes is True
    
    def test_selection_is_captured_in_plain_coordinates(self, editor, binding):
        editor.setPlainText("**hello** world")
        _select(editor, 10, 15)
        
        capture = binding.capture_selection()
        assert (capture.start, capture.end, capture.quoted_text) == (6, 11, "world")
    
    def test_cleared_selection_captures_nothing(self, editor, binding):
        _select(editor, 10, 15)
        editor.moveCursor(QTextCursor.MoveOperation.End)
        assert binding.capture_selection() is None
    
    def test_highlight_segments_follow_current_text(self, editor, binding):
        segments = binding.highlight_segments(active_id="c1")
        highlighted = [segment for segment in segments if segment.is_highlighted]
        assert [segment.text for segment in highlighted] == ["hello"]
        assert highlighted[0].is_active is True
    
    def test_detach_flushes_and_stops_listening(self, editor, binding, store):
        editor.setPlainText(DOCUMENT.replace("hello", "hellO"))
        outcome = binding.detach()
        
        assert outcome.succeeded == ["c1"]
        assert binding.is_attached is False
        
        editor.setPlainText("completely different")
        assert binding.tracker.get("c1").quoted_text == "hellO"
        assert binding.detach().total == 0
    
    def test_editor_destroyed_flushes_pending_writes(self, qtbot, store, timers, make_anchor):
        """Deleting the editor without detach() still persists the last edit."""
        editor = QPlainTextEdit()
        editor.setPlainText(DOCUMENT)
        tracker = AnchorTracker(
            store,
            anchors=[make_anchor("c1", start=10, end=15, quoted="hello")],
            timer_factory=timers,
        )
        binding = EditorAnchorBinding(editor, tracker)
        editor.setPlainText(DOCUMENT.replace("hello", "hellO"))
        assert tracker.has_pending_writes is True
        
        editor.deleteLater()
        QCoreApplication.sendPostedEvents(None, QEvent.Type.DeferredDelete)
        
        assert binding.is_attached is False
        assert tracker.has_pending_writes is False
        assert store.records["c1"].quoted_text == "hellO"
        assert binding.detach().total == 0
