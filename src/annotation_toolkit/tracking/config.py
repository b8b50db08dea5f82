"""
Module: tracking.config

Purpose:
    Configuration dataclass for anchor tracking. Immutable settings for the
    staleness threshold and the debounced persistence window.

Key Classes:
    - TrackingConfig: Main configuration for AnchorTracker

Dependencies:
    - dataclasses (std)
    - annotation_toolkit.common.thresholds: Default values

Used By:
    - tracking.coordinator: AnchorTracker settings
    - tracking.write_queue: Debounce window and worker count
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from annotation_toolkit.common.thresholds import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_PERSIST_WORKERS,
    STALE_THRESHOLD,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackingConfig:
    """
    Configuration for anchor tracking (immutable).

    Attributes:
        enabled: Process text changes at all (default True)
        debounce_ms: Quiet period before pending writes are persisted (default 2000)
        stale_threshold: Similarity below which an anchor is stale (default 0.5)
        max_workers: Concurrent storage writes per flush (default 4)

    Example:
        >>> config = TrackingConfig(debounce_ms=500)
        >>> config.debounce_seconds
        0.5
    """
    enabled: bool = True
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    stale_threshold: float = STALE_THRESHOLD
    max_workers: int = DEFAULT_PERSIST_WORKERS

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.debounce_ms < 0:
            raise ValueError(f"debounce_ms must be non-negative: {self.debounce_ms}")
        if not 0.0 <= self.stale_threshold <= 1.0:
            raise ValueError(f"stale_threshold must be in [0, 1]: {self.stale_threshold}")
        if self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive: {self.max_workers}")

    @property
    def debounce_seconds(self) -> float:
        """Debounce window in seconds (for threading.Timer)."""
        return self.debounce_ms / 1000.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TrackingConfig:
        """
        Build a config from a settings payload.

        Accepts camelCase or snake_case keys. Unknown keys are ignored and
        malformed values fall back to defaults, so a damaged settings file
        never stops the editor from opening.

        Args:
            data: Settings dict, e.g. {"debounceMs": 1000}

        Returns:
            TrackingConfig instance
        """
        fields = {
            "enabled": ("enabled", bool),
            "debounce_ms": ("debounceMs", int),
            "stale_threshold": ("staleThreshold", float),
            "max_workers": ("maxWorkers", int),
        }
        values: Dict[str, Any] = {}
        for name, (camel, cast) in fields.items():
            raw = data.get(name, data.get(camel))
            if raw is None:
                continue
            try:
                values[name] = cast(raw)
            except (TypeError, ValueError):
                logger.warning(f"Ignoring malformed tracking setting {name}={raw!r}")

        try:
            return cls(**values)
        except ValueError as e:
            logger.warning(f"Invalid tracking settings, using defaults: {e}")
            return cls()
