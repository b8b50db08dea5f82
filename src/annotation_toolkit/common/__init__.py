"""Common constants shared across the toolkit."""

from __future__ import annotations

from .thresholds import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_PERSIST_WORKERS,
    STALE_THRESHOLD,
)

__all__ = [
    "DEFAULT_DEBOUNCE_MS",
    "DEFAULT_PERSIST_WORKERS",
    "STALE_THRESHOLD",
]
