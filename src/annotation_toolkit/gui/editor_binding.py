"""Qt editor binding for anchor tracking.

Feeds a QPlainTextEdit/QTextEdit's edits and selections into an
AnchorTracker and re-emits the committed anchor snapshot, so widgets that
paint highlights or list comments never talk to the tracker directly.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple, Union

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit

from annotation_toolkit.core.models import Anchor
from annotation_toolkit.tracking import (
    AnchorTracker,
    FlushOutcome,
    HighlightSegment,
    SelectionCapture,
    build_highlight_segments,
    normalize,
)

logger = logging.getLogger(__name__)

TextEditor = Union[QPlainTextEdit, QTextEdit]


class EditorAnchorBinding(QObject):
    """Connects one text editor to one AnchorTracker.

    Usage:
        tracker = AnchorTracker(store, anchors=loaded)
        binding = EditorAnchorBinding(editor, tracker)
        binding.anchorsChanged.connect(sidebar.set_anchors)
        ...
        binding.detach()  # on dialog close: disconnects and flushes
    """

    # Emitted with the committed tuple of anchors after each processed edit
    anchorsChanged = Signal(object)
    # Emitted when the number of stale anchors changes
    staleCountChanged = Signal(int)

    def __init__(
        self,
        editor: TextEditor,
        tracker: AnchorTracker,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._editor: Optional[TextEditor] = editor
        self._tracker = tracker
        self._last_text = editor.toPlainText()
        self._stale_count = len(tracker.stale_anchors)

        editor.textChanged.connect(self._on_text_changed)
        editor.selectionChanged.connect(self._on_selection_changed)
        # Closing the dialog without detach() must still flush
        editor.destroyed.connect(self._on_editor_destroyed)

    @property
    def tracker(self) -> AnchorTracker:
        return self._tracker

    @property
    def is_attached(self) -> bool:
        return self._editor is not None

    def highlight_segments(
        self,
        active_id: Optional[str] = None,
        hovered_id: Optional[str] = None,
    ) -> List[HighlightSegment]:
        """Highlight segments for the editor's current plain text."""
        return build_highlight_segments(
            normalize(self._last_text),
            self._tracker.anchors,
            active_id=active_id,
            hovered_id=hovered_id,
        )

    def capture_selection(self) -> Optional[SelectionCapture]:
        """Current selection in plain-text coordinates, for creating a comment."""
        return self._tracker.capture_selection(self._last_text)

    def detach(self) -> FlushOutcome:
        """Disconnect from the editor and flush pending writes.

        Safe to call more than once.
        """
        if self._editor is None:
            return FlushOutcome()

        editor = self._editor
        self._editor = None
        editor.textChanged.disconnect(self._on_text_changed)
        editor.selectionChanged.disconnect(self._on_selection_changed)
        editor.destroyed.disconnect(self._on_editor_destroyed)
        return self._tracker.close()

    # ─────────────────────────────────────────────────────────────────────────
    # Slots
    # ─────────────────────────────────────────────────────────────────────────

    def _on_text_changed(self) -> None:
        if self._editor is None:
            return

        new_text = self._editor.toPlainText()
        old_text = self._last_text
        if new_text == old_text:
            return
        self._last_text = new_text

        anchors: Tuple[Anchor, ...] = self._tracker.on_text_change(old_text, new_text)
        self.anchorsChanged.emit(anchors)

        stale_count = sum(1 for anchor in anchors if anchor.is_stale)
        if stale_count != self._stale_count:
            self._stale_count = stale_count
            self.staleCountChanged.emit(stale_count)

    def _on_selection_changed(self) -> None:
        if self._editor is None:
            return

        cursor = self._editor.textCursor()
        if cursor.hasSelection():
            self._tracker.on_selection_change((cursor.selectionStart(), cursor.selectionEnd()))
        else:
            self._tracker.on_selection_change(None)

    def _on_editor_destroyed(self) -> None:
        # The editor is mid-deletion; its signals must not be touched
        if self._editor is None:
            return
        self._editor = None
        logger.debug("Editor destroyed while attached; flushing anchor writes")
        self._tracker.close()
