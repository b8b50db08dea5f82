"""
Core Models Package

Immutable data models shared by the tracking pipeline.

All models in this package are frozen dataclasses. Updates produce new
instances via dataclasses.replace, so a snapshot handed to a renderer can
never change underneath it.
"""

from .anchors import (
    Anchor,
    AnchorKind,
    AnchorPatch,
    AnchorStatus,
    is_active,
    is_reply,
    is_selected_text,
)

__all__ = [
    "Anchor",
    "AnchorKind",
    "AnchorPatch",
    "AnchorStatus",
    "is_active",
    "is_reply",
    "is_selected_text",
]
