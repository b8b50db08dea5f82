"""
Module: tracking.write_queue

Purpose:
    Debounced, non-blocking persistence of anchor updates. Edits keep
    flowing while writes wait for a quiet period, then go to storage in a
    background thread pool, one call per anchor.

Key Classes:
    - AnchorStore: Protocol for the storage collaborator
    - FlushOutcome: Which anchor writes succeeded or failed
    - DebouncedWriteQueue: Debounce timer + thread pool write queue

Dependencies:
    - concurrent.futures: Thread pool execution
    - threading: Debounce timer and state lock

Used By:
    - tracking.coordinator: Schedules changed anchors after each edit

Design Notes:
    The queue is a two-state machine:
        idle -> schedule() -> pending(timer, payload)
        pending -> schedule() -> pending (payload merged, timer restarted)
        pending -> timer fires / flush() -> idle (payload written)
        pending -> cancel() -> idle (payload dropped)
    The payload is keyed by anchor id and the latest state of each id wins.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from annotation_toolkit.common.thresholds import DEFAULT_DEBOUNCE_MS, DEFAULT_PERSIST_WORKERS
from annotation_toolkit.core.models import Anchor, AnchorPatch

logger = logging.getLogger(__name__)


class AnchorStore(Protocol):
    """Storage collaborator. Calls are idempotent per id and may fail independently."""

    def update_anchor(self, anchor_id: str, patch: AnchorPatch) -> None:
        ...


class Cancellable(Protocol):
    """Minimal timer interface (threading.Timer satisfies it)."""

    def start(self) -> None:
        ...

    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], None]], Cancellable]


def _default_timer(interval: float, callback: Callable[[], None]) -> Cancellable:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


@dataclass
class FlushOutcome:
    """
    Result of one flush.

    Attributes:
        succeeded: Anchor ids written successfully
        failed: (anchor_id, error) for each failed write
    """
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[str, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class DebouncedWriteQueue:
    """
    Debounced thread pool write queue for anchor updates.

    Usage:
        queue = DebouncedWriteQueue(store, debounce_ms=2000)
        try:
            queue.schedule(changed)   # per keystroke
            ...
            queue.flush()             # synchronization point
        finally:
            queue.shutdown()          # flush + stop threads

    Attributes:
        debounce_ms: Quiet period before pending writes are flushed.
    """

    def __init__(
        self,
        store: AnchorStore,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        max_workers: int = DEFAULT_PERSIST_WORKERS,
        timer_factory: Optional[TimerFactory] = None,
    ):
        """
        Initialize write queue.

        Args:
            store: Storage collaborator receiving update_anchor calls.
            debounce_ms: Quiet period in milliseconds.
            max_workers: Maximum concurrent storage writes.
            timer_factory: Builds the debounce timer; threading.Timer
                        by default. Tests inject a manual timer.
        """
        self._store = store
        self.debounce_ms = debounce_ms
        self._timer_factory = timer_factory or _default_timer
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="anchor-persist",
        )
        self._pending: Dict[str, Anchor] = {}
        self._timer: Optional[Cancellable] = None
        self._state_lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._closed = False

    # ─────────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_pending(self) -> bool:
        """True while writes are waiting for the timer."""
        with self._state_lock:
            return bool(self._pending)

    @property
    def pending_ids(self) -> Tuple[str, ...]:
        with self._state_lock:
            return tuple(self._pending)

    # ─────────────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────────────

    def schedule(self, anchors: Iterable[Anchor]) -> None:
        """
        Queue anchors for a debounced write.

        Merges into the pending payload by id and restarts the timer.
        An empty batch is ignored and leaves the timer running as is.
        General anchors are never written.

        Args:
            anchors: Latest state of each changed anchor.
        """
        batch = [anchor for anchor in anchors if anchor.is_anchored_kind]
        if not batch:
            return

        with self._state_lock:
            if self._closed:
                logger.warning(f"Write queue closed; dropping {len(batch)} anchor update(s)")
                return
            for anchor in batch:
                self._pending[anchor.id] = anchor
            self._restart_timer_locked()
            pending = len(self._pending)
        logger.debug(f"Scheduled {len(batch)} anchor update(s); {pending} pending")

    def flush(self) -> FlushOutcome:
        """
        Write all pending anchors now and wait for the writes.

        Flushes are serialized: a flush that starts while a timer-triggered
        flush is writing waits for it to finish first. Per-anchor failures
        are logged and reported; they never stop the other writes.

        Returns:
            FlushOutcome for the writes issued by this call.
        """
        with self._flush_lock:
            with self._state_lock:
                self._cancel_timer_locked()
                payload = list(self._pending.values())
                self._pending.clear()

            if not payload:
                return FlushOutcome()

            futures: List[Tuple[str, Future]] = [
                (anchor.id, self._executor.submit(self._store.update_anchor, anchor.id, anchor.to_patch()))
                for anchor in payload
            ]
            return _collect(futures)

    def cancel(self) -> None:
        """Drop pending writes without persisting them."""
        with self._state_lock:
            self._cancel_timer_locked()
            dropped = len(self._pending)
            self._pending.clear()
        if dropped:
            logger.debug(f"Cancelled {dropped} pending anchor update(s)")

    def discard(self, anchor_id: str) -> None:
        """Remove one anchor from the pending payload."""
        with self._state_lock:
            self._pending.pop(anchor_id, None)
            if not self._pending:
                self._cancel_timer_locked()

    def shutdown(self) -> FlushOutcome:
        """Flush pending writes and stop the thread pool."""
        with self._state_lock:
            self._closed = True
        outcome = self.flush()
        self._executor.shutdown(wait=True)
        return outcome

    def __enter__(self) -> "DebouncedWriteQueue":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    def _restart_timer_locked(self) -> None:
        self._cancel_timer_locked()
        self._timer = self._timer_factory(self.debounce_ms / 1000.0, self._on_timer)
        self._timer.start()

    def _cancel_timer_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        try:
            self.flush()
        except RuntimeError as e:
            # Executor already shut down underneath a late timer
            logger.error(f"Debounced anchor flush failed: {e}")


def _collect(futures: List[Tuple[str, Future]]) -> FlushOutcome:
    """Wait for every write, logging failures per anchor."""
    outcome = FlushOutcome()
    for anchor_id, future in futures:
        try:
            future.result()
            outcome.succeeded.append(anchor_id)
        except Exception as e:
            logger.error(f"Failed to persist anchor {anchor_id}: {e}")
            outcome.failed.append((anchor_id, e))
    if outcome.failed:
        logger.warning(f"Anchor flush: {len(outcome.succeeded)} written, {len(outcome.failed)} failed")
    else:
        logger.debug(f"Anchor flush: {len(outcome.succeeded)} written")
    return outcome
