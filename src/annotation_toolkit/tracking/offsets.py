"""
Module: tracking.offsets

Purpose:
    Maps anchor ranges through a single contiguous text change. Given where
    the change starts and its signed length delta, every anchor is shifted,
    grown, shrunk or left alone under fixed overlap rules.

Key Functions:
    - find_change_start(): First index where two texts differ
    - calculate_change_length(): Signed length delta between two texts
    - relocate_anchor(): Apply the overlap rules to one anchor
    - relocate(): Apply the overlap rules to a list of anchors

Dependencies:
    - dataclasses (std)
    - annotation_toolkit.core.models: Anchor

Used By:
    - tracking.pipeline: Relocation step of relocate_and_evaluate()

Design Notes:
    Only one change region per update is detected. Two disjoint edits
    applied in a single update (e.g. a multi-site find/replace) are seen as
    one region spanning from the first difference, so anchors between the
    edit sites are mis-located. Keystroke- and paste-level edits are always
    single-region.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

from annotation_toolkit.core.models import Anchor

logger = logging.getLogger(__name__)


def find_change_start(old_text: str, new_text: str) -> int:
    """
    Find where two texts start to differ.

    Args:
        old_text: Previous text
        new_text: Current text

    Returns:
        Index of the first differing character. If one text is a prefix of
        the other, the length of the shorter one.

    Example:
        >>> find_change_start("hello world", "hello there")
        6
        >>> find_change_start("abc", "abcdef")
        3
    """
    min_length = min(len(old_text), len(new_text))
    for i in range(min_length):
        if old_text[i] != new_text[i]:
            return i
    return min_length


def calculate_change_length(old_text: str, new_text: str) -> int:
    """
    Signed length of a text change.

    Returns:
        Positive for insertion, negative for deletion, 0 for replacement
        of equal length.
    """
    return len(new_text) - len(old_text)


def relocate_anchor(anchor: Anchor, change_start: int, change_length: int) -> Anchor:
    """
    Map one anchor's range through a text change.

    Rules, in priority order:
        1. Change at or after end: unchanged.
        2. Change before start: both offsets shift by change_length,
           floored at 0.
        3. Change within [start, end]: stale anchors collapse end to start
           (frozen until staleness resolves); fresh anchors move end by
           change_length, floored at start.

    A change exactly at start falls under rule 3, so typing at the very
    beginning of a quoted span grows the anchor instead of pushing it away.

    General anchors, anchors without offsets and anchors with negative or
    inverted offsets are returned unchanged.

    Args:
        anchor: Anchor to relocate
        change_start: Plain-text index where the change begins (>= 0)
        change_length: Signed length delta

    Returns:
        The same instance when nothing moves, otherwise a new Anchor

    Example:
        >>> a = Anchor("c1", start_offset=50, end_offset=60, quoted_text="x" * 10)
        >>> relocate_anchor(a, 10, 5).start_offset
        55
        >>> relocate_anchor(a, 55, 3).end_offset
        63
    """
    if not anchor.is_anchored_kind or not anchor.has_range:
        return anchor

    start = anchor.start_offset
    end = anchor.end_offset

    if not anchor.has_valid_range:
        logger.warning(f"Skipping anchor {anchor.id} with invalid offsets: start={start}, end={end}")
        return anchor

    # Rule 1: change entirely after the anchor
    if change_start >= end:
        return anchor

    # Rule 2: change entirely before the anchor
    if change_start < start:
        return replace(
            anchor,
            start_offset=max(0, start + change_length),
            end_offset=max(0, end + change_length),
        )

    # Rule 3: change inside the anchor or at its start boundary
    if anchor.is_stale:
        if end == start:
            return anchor
        return replace(anchor, end_offset=start)

    return replace(anchor, end_offset=max(start, end + change_length))


def relocate(
    anchors: Sequence[Anchor],
    change_start: int,
    change_length: int,
) -> List[Anchor]:
    """
    Map every anchor's range through a single contiguous text change.

    Args:
        anchors: Anchors to relocate
        change_start: Plain-text index where the change begins
        change_length: Signed length delta (positive = insertion)

    Returns:
        New list in the same order. A negative change_start is logged and
        the anchors are returned unchanged.
    """
    if change_start < 0:
        logger.warning(f"Invalid change start {change_start}; offsets left unchanged")
        return list(anchors)

    return [relocate_anchor(anchor, change_start, change_length) for anchor in anchors]
