"""
Module: tracking.highlights

Purpose:
    Splits plain text into segments at anchor boundaries so a renderer can
    paint overlapping comment highlights without knowing about offsets.

Key Classes:
    - HighlightSegment: A run of text and the anchors covering it

Key Functions:
    - build_highlight_segments(): Plain text + anchors -> segments

Dependencies:
    - annotation_toolkit.core.models: Anchor

Used By:
    - gui.editor_binding: Exposes segments for the current snapshot
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from annotation_toolkit.core.models import Anchor, is_selected_text


@dataclass(frozen=True, slots=True)
class HighlightSegment:
    """
    Contiguous run of text with a uniform set of covering anchors.

    Attributes:
        text: Segment text
        start: Plain-text start offset
        anchor_ids: Ids of anchors covering the whole segment
        is_active: Covered by the active anchor
        is_hovered: Covered by the hovered anchor
    """
    text: str
    start: int
    anchor_ids: Tuple[str, ...] = ()
    is_active: bool = False
    is_hovered: bool = False

    @property
    def is_highlighted(self) -> bool:
        return bool(self.anchor_ids)

    @property
    def is_overlap(self) -> bool:
        """More than one anchor covers this segment."""
        return len(self.anchor_ids) > 1


def build_highlight_segments(
    plain_text: str,
    anchors: Sequence[Anchor],
    active_id: Optional[str] = None,
    hovered_id: Optional[str] = None,
) -> List[HighlightSegment]:
    """
    Build highlight segments for the given anchors.

    Only fresh, non-empty, complete selected-text anchors are highlighted;
    stale anchors are rendered elsewhere (e.g. muted in a sidebar).
    Offsets beyond the text are clamped to its length.

    Args:
        plain_text: Document plain-text projection
        anchors: Current anchors
        active_id: Id of the selected comment, if any
        hovered_id: Id of the hovered comment, if any

    Returns:
        Segments covering the whole text in order. A single unhighlighted
        segment when no anchor qualifies.

    Example:
        >>> a = Anchor("c1", start_offset=0, end_offset=5, quoted_text="hello")
        >>> [s.text for s in build_highlight_segments("hello world", [a])]
        ['hello', ' world']
    """
    text_length = len(plain_text)
    ranges = [
        (anchor.id, min(anchor.start_offset, text_length), min(anchor.end_offset, text_length))
        for anchor in anchors
        if is_selected_text(anchor)
        and not anchor.is_stale
        and anchor.has_valid_range
        and anchor.start_offset < anchor.end_offset
    ]
    ranges = [(anchor_id, start, end) for anchor_id, start, end in ranges if start < end]

    if not ranges:
        return [HighlightSegment(text=plain_text, start=0)]

    split_points = {0, text_length}
    for _, start, end in ranges:
        split_points.add(start)
        split_points.add(end)
    ordered = sorted(split_points)

    segments: List[HighlightSegment] = []
    for seg_start, seg_end in zip(ordered, ordered[1:]):
        covering = tuple(
            anchor_id for anchor_id, start, end in ranges
            if start <= seg_start and end >= seg_end
        )
        segments.append(
            HighlightSegment(
                text=plain_text[seg_start:seg_end],
                start=seg_start,
                anchor_ids=covering,
                is_active=active_id is not None and active_id in covering,
                is_hovered=hovered_id is not None and hovered_id in covering,
            )
        )
    return segments
