"""
Module: tracking.staleness

Purpose:
    Decides whether an anchor's quoted text still matches the live text
    closely enough, and applies the stale/fresh transition rules that keep
    quotedText and originalQuotedText consistent.

Key Classes:
    - StalenessResult: Outcome of one evaluation
    - StalenessEvaluator: Evaluates anchors against live plain text

Key Functions:
    - apply_transition(): Fold a StalenessResult into an anchor

Dependencies:
    - annotation_toolkit.core.models: Anchor
    - tracking.markdown: Baseline normalization
    - tracking.similarity: Ordered-match ratio

Used By:
    - tracking.pipeline: Evaluation step of relocate_and_evaluate()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from annotation_toolkit.common.thresholds import STALE_THRESHOLD
from annotation_toolkit.core.models import Anchor

from .markdown import normalize
from .similarity import similarity

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StalenessResult:
    """
    Outcome of evaluating one anchor.

    Attributes:
        is_stale: Live text drifted below the threshold
        current_text: Live plain text inside the (possibly widened) range
        evaluated: False when the anchor could not be judged (general
            anchor, missing offsets or baseline, malformed range)
    """
    is_stale: bool = False
    current_text: str = ""
    evaluated: bool = True


NOT_EVALUATED = StalenessResult(is_stale=False, current_text="", evaluated=False)


class StalenessEvaluator:
    """
    Evaluates anchors against the live plain-text projection.

    Each evaluator keeps its own one-time warning state, so two editors
    open side by side do not suppress each other's legacy-data warning.

    Attributes:
        threshold: Similarity below which an anchor is stale

    Example:
        >>> evaluator = StalenessEvaluator()
        >>> anchor = Anchor("c1", start_offset=0, end_offset=5, quoted_text="hello")
        >>> evaluator.evaluate("hello world", anchor)
        StalenessResult(is_stale=False, current_text='hello', evaluated=True)
    """

    def __init__(self, threshold: float = STALE_THRESHOLD):
        self.threshold = threshold
        self._warned_legacy_fallback = False

    def evaluate(self, plain_text: str, anchor: Anchor) -> StalenessResult:
        """
        Recompute whether an anchor is stale.

        The window starts at start_offset and ends at
        max(end_offset, start_offset + len(baseline)), clamped to the text
        length, so it still covers the baseline when end_offset lagged
        behind (e.g. a stale anchor whose end was collapsed).

        Args:
            plain_text: Live document text, already normalized
            anchor: Anchor to evaluate

        Returns:
            StalenessResult. Never raises: anchors that cannot be judged
            come back not stale with evaluated=False.
        """
        if not anchor.is_anchored_kind or not anchor.has_range:
            return NOT_EVALUATED

        baseline_source = anchor.baseline_text
        if baseline_source is None:
            return NOT_EVALUATED

        if not anchor.has_valid_range:
            logger.warning(
                f"Cannot evaluate anchor {anchor.id} with invalid offsets: "
                f"start={anchor.start_offset}, end={anchor.end_offset}"
            )
            return NOT_EVALUATED

        if not anchor.original_quoted_text:
            self._warn_legacy_fallback(anchor)

        start = anchor.start_offset
        baseline = normalize(baseline_source)
        desired_end = max(anchor.end_offset, start + len(baseline))
        safe_end = min(len(plain_text), desired_end)
        current_text = plain_text[start:safe_end]

        if current_text == baseline:
            return StalenessResult(is_stale=False, current_text=current_text)

        score = similarity(current_text, baseline)
        is_stale = score < self.threshold
        if is_stale:
            logger.debug(f"Anchor {anchor.id} drifted: similarity {score:.2f} < {self.threshold}")
        return StalenessResult(is_stale=is_stale, current_text=current_text)

    def _warn_legacy_fallback(self, anchor: Anchor) -> None:
        if self._warned_legacy_fallback:
            return
        self._warned_legacy_fallback = True
        logger.warning(
            f"Falling back to quotedText for staleness of anchor {anchor.id}. "
            "Consider backfilling originalQuotedText for legacy comments."
        )


def apply_transition(anchor: Anchor, result: StalenessResult) -> Anchor:
    """
    Fold an evaluation into an anchor.

    Transitions:
        - fresh -> stale: mark stale, keep the pre-drift quoted text as
          originalQuotedText (unless one is already recorded), quote the
          live text.
        - stale -> fresh: clear the flag, quote the live text and reset
          end_offset to cover exactly that text.
        - fresh -> fresh: re-quote the live text if it differs.
        - stale -> stale: unchanged.

    Args:
        anchor: Anchor after relocation
        result: Evaluation of that anchor

    Returns:
        The same instance when nothing changes, otherwise a new Anchor
    """
    if not result.evaluated:
        return anchor

    current_text = result.current_text

    if result.is_stale and not anchor.is_stale:
        return replace(
            anchor,
            is_stale=True,
            original_quoted_text=anchor.original_quoted_text or anchor.quoted_text,
            quoted_text=current_text,
        )

    if not result.is_stale and anchor.is_stale:
        return replace(
            anchor,
            is_stale=False,
            quoted_text=current_text,
            end_offset=anchor.start_offset + len(current_text),
        )

    if not result.is_stale and current_text != anchor.quoted_text:
        return replace(anchor, quoted_text=current_text)

    return anchor
