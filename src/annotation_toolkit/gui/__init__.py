"""PySide6 integration for annotation tracking."""

from .editor_binding import EditorAnchorBinding

__all__ = ["EditorAnchorBinding"]
