"""
Module: tracking.pipeline

Purpose:
    Pure, synchronous transform from (anchors, old text, new text) to the
    relocated and re-evaluated anchors. No I/O and no state, so it is
    testable without a tracker or a store.

Key Functions:
    - relocate_and_evaluate(): Full per-keystroke pass
    - changed_anchors(): Which anchors need persisting after a pass

Dependencies:
    - tracking.markdown: Plain-text projection
    - tracking.offsets: Change detection and relocation
    - tracking.staleness: Evaluation and transition rules

Used By:
    - tracking.coordinator: AnchorTracker.on_text_change()
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from annotation_toolkit.core.models import Anchor

from .markdown import normalize
from .offsets import calculate_change_length, find_change_start, relocate
from .staleness import StalenessEvaluator, apply_transition

logger = logging.getLogger(__name__)


def relocate_and_evaluate(
    anchors: Sequence[Anchor],
    old_markdown: str,
    new_markdown: str,
    evaluator: Optional[StalenessEvaluator] = None,
) -> List[Anchor]:
    """
    Update anchor offsets and stale flags for one text change.

    Steps:
        1. Normalize both texts to plain text
        2. Locate the change (first difference, signed length delta)
        3. Relocate every anchor
        4. Re-evaluate each anchor against the new plain text and apply
           the stale/fresh transitions

    Args:
        anchors: Anchors before the change
        old_markdown: Previous document text (markdown)
        new_markdown: Current document text (markdown)
        evaluator: Evaluator to use; a fresh default one if None

    Returns:
        New list of anchors in the input order

    Example:
        >>> a = Anchor("c1", start_offset=10, end_offset=21, quoted_text="hello world")
        >>> old = "0123456789hello world"
        >>> [b] = relocate_and_evaluate([a], old, "ABCDE" + old)
        >>> (b.start_offset, b.end_offset, b.is_stale)
        (15, 26, False)
    """
    if evaluator is None:
        evaluator = StalenessEvaluator()

    old_plain = normalize(old_markdown)
    new_plain = normalize(new_markdown)

    change_start = find_change_start(old_plain, new_plain)
    change_length = calculate_change_length(old_plain, new_plain)
    logger.debug(f"Text change at {change_start}, length {change_length:+d}")

    relocated = relocate(anchors, change_start, change_length)
    return [
        apply_transition(anchor, evaluator.evaluate(new_plain, anchor))
        for anchor in relocated
    ]


def changed_anchors(before: Sequence[Anchor], after: Sequence[Anchor]) -> List[Anchor]:
    """
    Select the anchors whose persisted fields changed.

    An anchor counts as changed when its quotedText, isStale or
    originalQuotedText differs from the anchor with the same id in
    `before`, or when the id is new. Offsets alone are not persisted.
    General anchors are never included.

    Args:
        before: Anchors before the pass
        after: Anchors after the pass

    Returns:
        Changed anchors from `after`, in order
    """
    previous: Dict[str, Anchor] = {anchor.id: anchor for anchor in before}
    changed: List[Anchor] = []
    for anchor in after:
        if not anchor.is_anchored_kind:
            continue
        original = previous.get(anchor.id)
        if original is None or anchor.to_patch() != original.to_patch():
            changed.append(anchor)
    return changed
