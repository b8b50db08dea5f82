"""
Module: anchors

Purpose:
    Provides the Anchor dataclass - an immutable binding between a comment
    and a character range in the plain-text projection of a document.
    Also defines AnchorPatch, the subset of fields written back to storage
    after a text change.

Key Functions:
    - Anchor.has_range: Both offsets present
    - Anchor.has_valid_range: Offsets present, non-negative, not inverted
    - Anchor.baseline_text: originalQuotedText falling back to quotedText
    - Anchor.to_patch(): Extract the persisted tracking fields
    - Anchor.to_dict() / Anchor.from_dict(): Storage-schema serialization
    - is_selected_text(), is_active(), is_reply(): Type guards

Dependencies:
    - dataclasses (std)
    - enum (std)

Used By:
    - tracking.offsets: Relocates anchor ranges
    - tracking.staleness: Evaluates anchor drift
    - tracking.coordinator: Owns the live anchor working set
    - tracking.write_queue: Persists AnchorPatch per anchor id

Design Notes:
    Unlike SliceBounds-style models, Anchor does NOT validate geometry in
    __post_init__. Anchors come from storage and an inverted range must be
    carried through the editing path untouched rather than raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AnchorKind(str, Enum):
    """Type of comment anchor."""
    SELECTED_TEXT = "selected-text"  # Bound to a range of text
    GENERAL = "general"              # Standalone comment, no range

    def __str__(self) -> str:
        return self.value


class AnchorStatus(str, Enum):
    """Resolution state of the owning comment."""
    ACTIVE = "active"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class AnchorPatch:
    """
    Tracking fields written to storage for one anchor.

    Attributes:
        quoted_text: Current quoted text (plain text)
        is_stale: Whether the anchor has drifted
        original_quoted_text: Baseline captured before the first drift
    """

    quoted_text: Optional[str] = None
    is_stale: bool = False
    original_quoted_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using storage-schema keys."""
        return {
            "quotedText": self.quoted_text,
            "isStale": self.is_stale,
            "originalQuotedText": self.original_quoted_text,
        }


@dataclass(frozen=True, slots=True)
class Anchor:
    """
    Comment anchor in plain-text coordinates (immutable).

    The range is half-open: [start_offset, end_offset). Offsets index the
    markdown-stripped text, never the raw markdown, so formatting-only
    edits leave them unchanged.

    Attributes:
        id: Comment id (storage key)
        kind: SELECTED_TEXT or GENERAL
        start_offset: Inclusive start (None for general comments)
        end_offset: Exclusive end (None for general comments)
        quoted_text: Current best-known text inside the range
        original_quoted_text: Text captured before the first drift to stale.
            Once set it is only replaced by storage, never by tracking.
        is_stale: Whether the live text drifted below the similarity threshold
        status: ACTIVE or RESOLVED
        thread_root_id: Root comment id when this comment is a reply

    Example:
        >>> anchor = Anchor("c1", start_offset=0, end_offset=5, quoted_text="hello")
        >>> anchor.has_valid_range
        True
        >>> anchor.baseline_text
        'hello'
    """

    id: str
    kind: AnchorKind = AnchorKind.SELECTED_TEXT
    start_offset: Optional[int] = None
    end_offset: Optional[int] = None
    quoted_text: Optional[str] = None
    original_quoted_text: Optional[str] = None
    is_stale: bool = False
    status: AnchorStatus = AnchorStatus.ACTIVE
    thread_root_id: Optional[str] = None

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_anchored_kind(self) -> bool:
        """True for selected-text anchors, whether or not their range is set."""
        return self.kind is AnchorKind.SELECTED_TEXT

    @property
    def has_range(self) -> bool:
        """True if both offsets are present."""
        return self.start_offset is not None and self.end_offset is not None

    @property
    def has_valid_range(self) -> bool:
        """True if offsets are present, non-negative and start <= end."""
        if not self.has_range:
            return False
        return 0 <= self.start_offset <= self.end_offset  # type: ignore[operator]

    @property
    def length(self) -> int:
        """Range length, or 0 when the range is missing or malformed."""
        if not self.has_valid_range:
            return 0
        return self.end_offset - self.start_offset  # type: ignore[operator]

    @property
    def baseline_text(self) -> Optional[str]:
        """
        Text used as the fixed comparison point for staleness.

        Returns originalQuotedText when recorded, else quotedText,
        else None.
        """
        return self.original_quoted_text or self.quoted_text or None

    # ─────────────────────────────────────────────────────────────────────────
    # Conversion
    # ─────────────────────────────────────────────────────────────────────────

    def to_patch(self) -> AnchorPatch:
        """Extract the fields persisted after a text change."""
        return AnchorPatch(
            quoted_text=self.quoted_text,
            is_stale=self.is_stale,
            original_quoted_text=self.original_quoted_text,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to the storage schema (camelCase keys).

        Optional fields are omitted when unset.
        """
        d: Dict[str, Any] = {
            "id": self.id,
            "commentType": self.kind.value,
            "status": self.status.value,
            "isStale": self.is_stale,
        }
        if self.start_offset is not None:
            d["startOffset"] = self.start_offset
        if self.end_offset is not None:
            d["endOffset"] = self.end_offset
        if self.quoted_text is not None:
            d["quotedText"] = self.quoted_text
        if self.original_quoted_text is not None:
            d["originalQuotedText"] = self.original_quoted_text
        if self.thread_root_id is not None:
            d["threadRootId"] = self.thread_root_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Anchor:
        """
        Deserialize from a storage record.

        Args:
            data: Dict with at least "id"; other keys optional

        Returns:
            Anchor instance

        Raises:
            KeyError: If "id" is missing
            ValueError: If commentType or status is not a known value
        """
        return cls(
            id=str(data["id"]),
            kind=AnchorKind(data.get("commentType", AnchorKind.SELECTED_TEXT.value)),
            start_offset=data.get("startOffset"),
            end_offset=data.get("endOffset"),
            quoted_text=data.get("quotedText"),
            original_quoted_text=data.get("originalQuotedText"),
            is_stale=bool(data.get("isStale", False)),
            status=AnchorStatus(data.get("status", AnchorStatus.ACTIVE.value)),
            thread_root_id=data.get("threadRootId"),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        if not self.is_anchored_kind:
            return f"Anchor({self.id!r}, general)"
        stale = ", stale" if self.is_stale else ""
        return (
            f"Anchor({self.id!r}, [{self.start_offset}, {self.end_offset}), "
            f"{self.quoted_text!r}{stale})"
        )


def is_selected_text(anchor: Anchor) -> bool:
    """Check if an anchor is a complete selected-text anchor."""
    return (
        anchor.kind is AnchorKind.SELECTED_TEXT
        and anchor.has_range
        and anchor.quoted_text is not None
    )


def is_active(anchor: Anchor) -> bool:
    """Check if an anchor belongs to an unresolved comment."""
    return anchor.status is AnchorStatus.ACTIVE


def is_reply(anchor: Anchor) -> bool:
    """Check if an anchor belongs to a reply within a thread."""
    return bool(anchor.thread_root_id)
