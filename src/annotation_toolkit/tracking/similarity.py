"""
Module: tracking.similarity

Purpose:
    Cheap ordered character-overlap ratio between two strings. Basis for
    staleness decisions on every keystroke.

Key Functions:
    - similarity(): Ordered-subsequence match ratio in [0, 1]

Dependencies:
    None (pure functions)

Used By:
    - tracking.staleness: Compares live text against the baseline

Design Notes:
    This is a greedy in-order match, O(len(longer)), not edit distance.
    A real rewrite can still score moderately; that false-positive rate
    is accepted for linear cost per keystroke.
"""

from __future__ import annotations


def similarity(first: str, second: str) -> float:
    """
    Ordered character-match ratio between two strings.

    Walks the longer string left-to-right with a cursor into the shorter
    one; each character equal to the cursor's character counts as a match
    and advances the cursor. When lengths are equal the second argument is
    walked.

    Args:
        first: First string
        second: Second string

    Returns:
        matches / len(longer). 1.0 for equal strings, 0.0 when exactly
        one side is empty.

    Example:
        >>> similarity("hello", "hello")
        1.0
        >>> similarity("abcd", "abxx")
        0.5
        >>> similarity("", "x")
        0.0
    """
    if first == second:
        return 1.0
    if not first or not second:
        return 0.0

    if len(first) > len(second):
        longer, shorter = first, second
    else:
        longer, shorter = second, first

    matches = 0
    cursor = 0
    for char in longer:
        if cursor >= len(shorter):
            break
        if char == shorter[cursor]:
            matches += 1
            cursor += 1

    return matches / len(longer)
