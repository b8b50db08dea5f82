"""Centralized threshold and magic number configuration.

This module contains the numeric constants used by anchor tracking. Having
them in one place makes tuning easier and documents why each value was chosen.
"""

from __future__ import annotations

# Staleness detection
STALE_THRESHOLD = 0.5  # Ordered-match ratio below this is stale; exactly 0.5 is not

# Debounced persistence
DEFAULT_DEBOUNCE_MS = 2000  # Quiet period before pending writes go to storage
DEFAULT_PERSIST_WORKERS = 4  # Concurrent update_anchor calls per flush
