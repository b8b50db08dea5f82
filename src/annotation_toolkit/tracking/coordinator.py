"""
Module: tracking.coordinator

Purpose:
    Orchestrate anchor tracking for one open document.
    Normalize → Locate change → Relocate → Evaluate → Diff → Commit → Persist

Key Classes:
    - AnchorTracker: Owns the live anchor set for one editor

Dependencies:
    - tracking.pipeline: Pure relocate/evaluate pass and change diffing
    - tracking.write_queue: Debounced persistence
    - tracking.selection: Selection capture for comment creation

Used By:
    - gui.editor_binding: Qt editor integration

Design Notes:
    Two layers behind one interface. The synchronous layer
    (relocate_and_evaluate + commit) runs to completion on every text
    change and is never affected by storage. The asynchronous layer (the
    write queue) only ever sees snapshots of changed anchors; its failures
    are logged there and never surface to on_text_change() callers.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from annotation_toolkit.core.models import Anchor

from .config import TrackingConfig
from .pipeline import changed_anchors, relocate_and_evaluate
from .selection import SelectionCapture, capture_selection
from .staleness import StalenessEvaluator
from .write_queue import AnchorStore, DebouncedWriteQueue, FlushOutcome, TimerFactory

logger = logging.getLogger(__name__)

SelectionRange = Tuple[int, int]


class AnchorTracker:
    """
    Change batch coordinator for one editor session.

    The tracker is the only writer of its anchor set. Every text change is
    processed synchronously; readers get immutable tuple snapshots.

    Usage:
        with AnchorTracker(store, anchors=loaded) as tracker:
            tracker.on_text_change(old_text, new_text)   # per keystroke
            render(tracker.anchors)
        # leaving the block flushes pending writes

    Attributes:
        config: Tracking configuration
    """

    def __init__(
        self,
        store: AnchorStore,
        config: Optional[TrackingConfig] = None,
        anchors: Iterable[Anchor] = (),
        timer_factory: Optional[TimerFactory] = None,
    ):
        """
        Initialize tracker.

        Args:
            store: Storage collaborator for anchor updates.
            config: Tracking configuration (defaults if None).
            anchors: Initial working set, e.g. the active comments loaded
                    when the editor opened.
            timer_factory: Debounce timer override (tests).
        """
        self.config = config or TrackingConfig()
        self._evaluator = StalenessEvaluator(threshold=self.config.stale_threshold)
        self._queue = DebouncedWriteQueue(
            store,
            debounce_ms=self.config.debounce_ms,
            max_workers=self.config.max_workers,
            timer_factory=timer_factory,
        )
        self._anchors: Tuple[Anchor, ...] = tuple(anchors)
        self._selection: Optional[SelectionRange] = None
        self._closed = False

    # ─────────────────────────────────────────────────────────────────────────
    # Working set
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def anchors(self) -> Tuple[Anchor, ...]:
        """Snapshot of the committed anchor set."""
        return self._anchors

    @property
    def stale_anchors(self) -> Tuple[Anchor, ...]:
        return tuple(anchor for anchor in self._anchors if anchor.is_stale)

    @property
    def has_pending_writes(self) -> bool:
        return self._queue.is_pending

    def get(self, anchor_id: str) -> Optional[Anchor]:
        """Look up an anchor by id."""
        for anchor in self._anchors:
            if anchor.id == anchor_id:
                return anchor
        return None

    def load(self, anchors: Iterable[Anchor]) -> None:
        """Replace the working set (e.g. after reloading comments)."""
        self._anchors = tuple(anchors)
        logger.debug(f"Loaded {len(self._anchors)} anchor(s)")

    def track(self, anchor: Anchor) -> None:
        """Add a newly created anchor, replacing any anchor with the same id."""
        kept = tuple(existing for existing in self._anchors if existing.id != anchor.id)
        self._anchors = kept + (anchor,)

    def untrack(self, anchor_id: str) -> None:
        """
        Stop tracking an anchor (e.g. its comment was resolved).

        Any pending write for the id is dropped as well.
        """
        self._anchors = tuple(anchor for anchor in self._anchors if anchor.id != anchor_id)
        self._queue.discard(anchor_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Editor events
    # ─────────────────────────────────────────────────────────────────────────

    def on_text_change(self, old_markdown: str, new_markdown: str) -> Tuple[Anchor, ...]:
        """
        Process one text change.

        Relocates and re-evaluates every anchor, commits the result
        immediately and schedules only the anchors whose persisted fields
        changed. Never raises into the editing path for malformed anchors.

        Args:
            old_markdown: Document text before the change
            new_markdown: Document text after the change

        Returns:
            The committed anchor snapshot
        """
        if not self.config.enabled or self._closed:
            return self._anchors
        if old_markdown == new_markdown:
            return self._anchors

        before = self._anchors
        after = tuple(relocate_and_evaluate(before, old_markdown, new_markdown, self._evaluator))

        changed = changed_anchors(before, after)
        self._anchors = after

        newly_stale = [anchor.id for anchor in changed if anchor.is_stale]
        if newly_stale:
            logger.info(f"Anchor(s) marked stale: {', '.join(newly_stale)}")

        self.schedule_persist(changed)
        return self._anchors

    def on_selection_change(self, selection: Optional[SelectionRange]) -> None:
        """Record the editor's current raw selection; not otherwise processed."""
        self._selection = selection

    @property
    def selection(self) -> Optional[SelectionRange]:
        return self._selection

    def capture_selection(self, markdown: str) -> Optional[SelectionCapture]:
        """
        Express the current selection in plain-text coordinates.

        Args:
            markdown: Document text the selection refers to

        Returns:
            SelectionCapture for the comment-creation action, or None when
            nothing is selected.
        """
        if self._selection is None:
            return None
        start, end = self._selection
        return capture_selection(markdown, start, end)

    # ─────────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────────

    def schedule_persist(self, changed: Iterable[Anchor]) -> None:
        """Queue changed anchors for a debounced write."""
        self._queue.schedule(changed)

    def flush(self) -> FlushOutcome:
        """Persist pending writes now (e.g. before closing a dialog)."""
        return self._queue.flush()

    def close(self) -> FlushOutcome:
        """
        Tear down: flush pending writes and stop the write threads.

        Best-effort save. Failures are logged, never raised, since the
        editor is going away and there is no UI left to report to.
        """
        if self._closed:
            return FlushOutcome()
        self._closed = True
        try:
            outcome = self._queue.shutdown()
        except Exception as e:
            logger.error(f"Flush during teardown failed: {e}")
            return FlushOutcome()
        if not outcome.ok:
            failed_ids = ", ".join(anchor_id for anchor_id, _ in outcome.failed)
            logger.error(f"Teardown flush left {len(outcome.failed)} anchor(s) unsaved: {failed_ids}")
        return outcome

    def __enter__(self) -> "AnchorTracker":
        return self

    def __exit__(self, *args) -> None:
        self.close()
