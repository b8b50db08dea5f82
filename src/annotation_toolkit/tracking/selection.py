"""
Module: tracking.selection

Purpose:
    Converts a selection made in the raw markdown editor into plain-text
    coordinates, ready for the external "create comment" action.

Key Classes:
    - SelectionCapture: Plain-text range plus its quoted text

Key Functions:
    - capture_selection(): Raw editor selection -> SelectionCapture

Dependencies:
    - tracking.markdown: Plain-text projection

Used By:
    - tracking.coordinator: AnchorTracker.capture_selection()
    - gui.editor_binding: Selection forwarding
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .markdown import normalize

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SelectionCapture:
    """
    A selection expressed in plain-text coordinates.

    Attributes:
        start: Inclusive plain-text start
        end: Exclusive plain-text end
        quoted_text: plain_text[start:end]
    """
    start: int
    end: int
    quoted_text: str


def capture_selection(markdown: str, start: int, end: int) -> Optional[SelectionCapture]:
    """
    Map a raw-markdown selection onto the plain-text projection.

    The selected markdown is normalized and searched for in the plain text,
    picking the occurrence nearest the plain length of everything before the
    selection, so repeated words resolve to the one that was selected. When
    the normalized selection cannot be found (e.g. it cut a `**` pair in
    half), the estimated position is used with the selection's plain length.

    Args:
        markdown: Full document text as shown in the editor
        start: Raw selection start
        end: Raw selection end

    Returns:
        SelectionCapture, or None for empty or out-of-range selections

    Example:
        >>> capture_selection("**hello** world", 10, 15)
        SelectionCapture(start=6, end=11, quoted_text='world')
    """
    if start > end:
        start, end = end, start
    start = max(0, start)
    end = min(len(markdown), end)
    if start >= end:
        return None

    plain = normalize(markdown)
    quoted = normalize(markdown[start:end])
    if not quoted:
        return None

    hint = min(len(plain), len(normalize(markdown[:start])))
    found = _closest_occurrence(plain, quoted, hint)
    if found < 0:
        logger.debug(f"Selection {start}-{end} not found in plain text; using estimate {hint}")
        plain_end = min(len(plain), hint + len(quoted))
        return SelectionCapture(start=hint, end=plain_end, quoted_text=plain[hint:plain_end])

    return SelectionCapture(start=found, end=found + len(quoted), quoted_text=quoted)


def _closest_occurrence(plain: str, quoted: str, hint: int) -> int:
    """Index of the occurrence of quoted nearest to hint, or -1."""
    best = -1
    pos = plain.find(quoted)
    while pos >= 0:
        if best < 0 or abs(pos - hint) < abs(best - hint):
            best = pos
        pos = plain.find(quoted, pos + 1)
    return best
