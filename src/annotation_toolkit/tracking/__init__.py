"""
Module: tracking

Purpose:
    Keeps comment anchors attached to the right text while a document is
    edited, flags anchors whose quoted text has drifted (stale), and
    persists the changes through a debounced write queue.

Key Functions:
    - relocate_and_evaluate(): Pure per-keystroke pass
    - normalize(): Markdown -> plain-text projection
    - similarity(): Ordered character-match ratio

Key Classes:
    - AnchorTracker: Stateful coordinator for one editor
    - TrackingConfig: Configuration for tracking and persistence
    - DebouncedWriteQueue: Debounced storage writes

Dependencies:
    - annotation_toolkit.core.models: Anchor data model

Used By:
    - annotation_toolkit.gui.editor_binding: Qt editor integration
"""

from .config import TrackingConfig
from .coordinator import AnchorTracker
from .highlights import HighlightSegment, build_highlight_segments
from .markdown import is_same_plain_text, normalize, plain_text_length
from .offsets import calculate_change_length, find_change_start, relocate, relocate_anchor
from .pipeline import changed_anchors, relocate_and_evaluate
from .selection import SelectionCapture, capture_selection
from .similarity import similarity
from .staleness import StalenessEvaluator, StalenessResult, apply_transition
from .write_queue import AnchorStore, DebouncedWriteQueue, FlushOutcome

__all__ = [
    "AnchorStore",
    "AnchorTracker",
    "DebouncedWriteQueue",
    "FlushOutcome",
    "HighlightSegment",
    "SelectionCapture",
    "StalenessEvaluator",
    "StalenessResult",
    "TrackingConfig",
    "apply_transition",
    "build_highlight_segments",
    "calculate_change_length",
    "capture_selection",
    "changed_anchors",
    "find_change_start",
    "is_same_plain_text",
    "normalize",
    "plain_text_length",
    "relocate",
    "relocate_and_evaluate",
    "relocate_anchor",
    "similarity",
]
