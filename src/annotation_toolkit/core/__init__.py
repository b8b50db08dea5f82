"""
Annotation Toolkit Core Package

Shared data models for anchor tracking.

**COORDINATE SPACE:**

Every offset stored on an Anchor indexes the plain-text projection of the
document (markdown stripped by tracking.markdown.normalize). Raw markdown
offsets are never stored, so turning `**bold**` into `*bold*` moves nothing.
"""

from .models import Anchor, AnchorKind, AnchorPatch, AnchorStatus

__all__ = [
    "Anchor",
    "AnchorKind",
    "AnchorPatch",
    "AnchorStatus",
]
