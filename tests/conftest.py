import os
import pytest
import sys
import threading
from pathlib import Path
from typing import Callable, Dict, List, Set, Tuple

# Run Qt headless unless a platform is chosen explicitly
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Add src to sys.path so we can import annotation_toolkit
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from annotation_toolkit.core.models import Anchor, AnchorPatch


class RecordingStore:
    """In-memory AnchorStore that records every update and can fail chosen ids."""

    def __init__(self, fail_ids: Set[str] = frozenset()):
        self.fail_ids = set(fail_ids)
        self.calls: List[Tuple[str, AnchorPatch]] = []
        self.records: Dict[str, AnchorPatch] = {}
        self._lock = threading.Lock()

    def update_anchor(self, anchor_id: str, patch: AnchorPatch) -> None:
        with self._lock:
            self.calls.append((anchor_id, patch))
        if anchor_id in self.fail_ids:
            raise ConnectionError(f"storage unavailable for {anchor_id}")
        with self._lock:
            self.records[anchor_id] = patch


class ManualTimer:
    """Timer double: records its callback and only fires when told to."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.callback()


class ManualTimerFactory:
    """Creates ManualTimers and remembers them, newest last."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> ManualTimer:
        return self.timers[-1]


# Common test fixtures
@pytest.fixture
def store():
    """Store that accepts every write."""
    return RecordingStore()


@pytest.fixture
def timers():
    """Manual debounce timers."""
    return ManualTimerFactory()


@pytest.fixture
def make_anchor():
    """Build a selected-text anchor with sensible defaults."""
    def _make(anchor_id="c1", start=0, end=5, quoted="hello", **kwargs):
        return Anchor(
            id=anchor_id,
            start_offset=start,
            end_offset=end,
            quoted_text=quoted,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_store():
    """Build a store that fails writes for the given ids."""
    def _make(fail_ids=()):
        return RecordingStore(fail_ids=set(fail_ids))
    return _make
