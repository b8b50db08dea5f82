"""
Tests for tracking.staleness

Test Coverage:
- StalenessEvaluator.evaluate(): fail-open cases, window sizing, threshold
- StalenessEvaluator: one-time legacy warning is per instance
- apply_transition(): fresh/stale transitions
"""

import logging

import pytest

from annotation_toolkit.core.models import Anchor, AnchorKind
from annotation_toolkit.tracking.staleness import (
    StalenessEvaluator,
    StalenessResult,
    apply_transition,
)


@pytest.fixture
def evaluator():
    return StalenessEvaluator()


class TestEvaluateFailOpen:
    """Anchors that cannot be judged are never stale."""
    
    def test_evaluate_when_general_then_not_evaluated(self, evaluator):
        result = evaluator.evaluate("anything", Anchor("g1", kind=AnchorKind.GENERAL))
        assert result == StalenessResult(is_stale=False, current_text="", evaluated=False)
    
    def test_evaluate_when_offsets_missing_then_not_stale(self, evaluator):
        result = evaluator.evaluate("hello", Anchor("c1", quoted_text="hello"))
        assert result.is_stale is False
        assert result.current_text == ""
        assert result.evaluated is False
    
    def test_evaluate_when_no_baseline_then_not_stale(self, evaluator):
        anchor = Anchor("c1", start_offset=0, end_offset=5)
        result = evaluator.evaluate("hello", anchor)
        assert result.is_stale is False
        assert result.evaluated is False
    
    def test_evaluate_when_inverted_range_then_not_stale(self, evaluator, make_anchor, caplog):
        with caplog.at_level(logging.WARNING):
            result = evaluator.evaluate("hello world", make_anchor(start=8, end=2))
        assert result.evaluated is False
        assert "invalid offsets" in caplog.text


class TestEvaluate:
    
    def test_evaluate_when_text_unchanged_then_not_stale(self, evaluator, make_anchor):
        result = evaluator.evaluate("hello world", make_anchor(start=0, end=5, quoted="hello"))
        assert result == StalenessResult(is_stale=False, current_text="hello")
    
    def test_evaluate_when_end_lags_then_window_covers_baseline(self, evaluator, make_anchor):
        """A collapsed range still reads len(baseline) characters."""
        anchor = make_anchor(start=6, end=6, quoted="world")
        result = evaluator.evaluate("hello world", anchor)
        assert result.current_text == "world"
        assert result.is_stale is False
    
    def test_evaluate_when_window_past_text_then_clamped(self, evaluator, make_anchor):
        anchor = make_anchor(start=6, end=40, quoted="world")
        result = evaluator.evaluate("hello world", anchor)
        assert result.current_text == "world"
    
    def test_evaluate_when_start_past_text_then_empty_and_stale(self, evaluator, make_anchor):
        anchor = make_anchor(start=50, end=55, quoted="hello")
        result = evaluator.evaluate("short", anchor)
        assert result.current_text == ""
        assert result.is_stale is True
    
    def test_evaluate_when_minor_edit_then_not_stale(self, evaluator, make_anchor):
        anchor = make_anchor(start=0, end=11, quoted="hello world")
        result = evaluator.evaluate("hello wxrld and more", anchor)
        assert result.is_stale is False
        assert result.current_text == "hello wxrld"
    
    def test_evaluate_when_rewritten_then_stale(self, evaluator, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="hello")
        result = evaluator.evaluate("zzzzz zzzzz", anchor)
        assert result.is_stale is True
        assert result.current_text == "zzzzz"
    
    def test_evaluate_when_exactly_half_matches_then_not_stale(self, evaluator, make_anchor):
        """The stale condition is strictly below the threshold."""
        anchor = make_anchor(start=0, end=4, quoted="abcd")
        result = evaluator.evaluate("abxx", anchor)
        assert result.is_stale is False
    
    def test_evaluate_when_just_below_half_then_stale(self, evaluator, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="abcde")
        result = evaluator.evaluate("abxxx", anchor)
        assert result.is_stale is True
    
    def test_evaluate_when_original_recorded_then_compares_to_original(self, evaluator, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="zzzzz", original_quoted_text="hello")
        result = evaluator.evaluate("hello", anchor)
        assert result.is_stale is False
        assert result.current_text == "hello"
    
    def test_evaluate_when_baseline_has_markdown_then_compares_plain(self, evaluator, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="**hello**")
        result = evaluator.evaluate("hello world", anchor)
        assert result == StalenessResult(is_stale=False, current_text="hello")
    
    def test_evaluate_when_custom_threshold_then_used(self, make_anchor):
        strict = StalenessEvaluator(threshold=0.9)
        anchor = make_anchor(start=0, end=4, quoted="abcd")
        assert strict.evaluate("abcx", anchor).is_stale is True


class TestLegacyWarning:
    """The quotedText fallback warning fires once per evaluator."""
    
    def test_warning_when_repeated_then_logged_once(self, make_anchor, caplog):
        evaluator = StalenessEvaluator()
        anchor = make_anchor(start=0, end=5, quoted="hello")
        with caplog.at_level(logging.WARNING):
            evaluator.evaluate("hello", anchor)
            evaluator.evaluate("hello", anchor)
        assert caplog.text.count("Falling back to quotedText") == 1
    
    def test_warning_when_separate_evaluators_then_each_warns(self, make_anchor, caplog):
        anchor = make_anchor(start=0, end=5, quoted="hello")
        with caplog.at_level(logging.WARNING):
            StalenessEvaluator().evaluate("hello", anchor)
            StalenessEvaluator().evaluate("hello", anchor)
        assert caplog.text.count("Falling back to quotedText") == 2
    
    def test_warning_when_original_present_then_silent(self, make_anchor, caplog):
        anchor = make_anchor(start=0, end=5, quoted="hello", original_quoted_text="hello")
        with caplog.at_level(logging.WARNING):
            StalenessEvaluator().evaluate("hello", anchor)
        assert "Falling back" not in caplog.text


class TestApplyTransition:
    
    def test_transition_when_not_evaluated_then_same_instance(self, make_anchor):
        anchor = make_anchor()
        result = StalenessResult(is_stale=False, current_text="", evaluated=False)
        assert apply_transition(anchor, result) is anchor
    
    def test_transition_when_becomes_stale_then_preserves_original(self, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="hello")
        updated = apply_transition(anchor, StalenessResult(is_stale=True, current_text="zzzzz"))
        assert updated.is_stale is True
        assert updated.original_quoted_text == "hello"
        assert updated.quoted_text == "zzzzz"
        assert updated.end_offset == 5
    
    def test_transition_when_becomes_stale_with_original_then_original_kept(self, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="hellp", original_quoted_text="hello")
        updated = apply_transition(anchor, StalenessResult(is_stale=True, current_text="zzzzz"))
        assert updated.original_quoted_text == "hello"
    
    def test_transition_when_recovers_then_end_resized(self, make_anchor):
        anchor = make_anchor(
            start=4, end=4, quoted="zzzzz", original_quoted_text="hello", is_stale=True,
        )
        updated = apply_transition(anchor, StalenessResult(is_stale=False, current_text="hello"))
        assert updated.is_stale is False
        assert updated.quoted_text == "hello"
        assert updated.end_offset == 9
        assert updated.original_quoted_text == "hello"
    
    def test_transition_when_fresh_text_drifts_then_quoted_synced(self, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="hello")
        updated = apply_transition(anchor, StalenessResult(is_stale=False, current_text="hellO"))
        assert updated.quoted_text == "hellO"
        assert updated.original_quoted_text is None
        assert updated.is_stale is False
    
    def test_transition_when_fresh_and_equal_then_same_instance(self, make_anchor):
        anchor = make_anchor(start=0, end=5, quoted="hello")
        assert apply_transition(anchor, StalenessResult(current_text="hello")) is anchor
    
    def test_transition_when_stays_stale_then_same_instance(self, make_anchor):
        anchor = make_anchor(quoted="zzzzz", original_quoted_text="hello", is_stale=True)
        assert apply_transition(anchor, StalenessResult(is_stale=True, current_text="qqqqq")) is anchor
