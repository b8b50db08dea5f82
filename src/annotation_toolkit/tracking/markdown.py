"""
Module: tracking.markdown

Purpose:
    Strips markdown syntax to plain text. The plain-text projection is the
    coordinate space for every anchor offset, so formatting-only edits
    (e.g. **bold** to *italic*) leave offsets and quoted text untouched.

Key Functions:
    - normalize(): Strip markdown and collapse whitespace
    - plain_text_length(): Length of the plain-text projection
    - is_same_plain_text(): Compare two markdown strings ignoring formatting

Dependencies:
    - re (std)

Used By:
    - tracking.pipeline: Normalizes old/new document text
    - tracking.staleness: Normalizes the baseline quoted text
    - tracking.selection: Maps editor selections to plain-text offsets
"""

from __future__ import annotations

import re
from typing import Optional

# Syntax removal, applied in order. Bold must run before italic so that
# `**x**` is not truncated to `*x*`. Images run before links so the
# leading "!" is dropped with the rest of the syntax.
_FENCED_CODE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE = re.compile(r"(`+)([^`\n](?:.*?[^`\n])?)\1(?!`)")
_BOLD_STARS = re.compile(r"\*\*([^*]+)\*\*")
_BOLD_UNDERSCORES = re.compile(r"__([^_]+)__")
_ITALIC_STAR = re.compile(r"\*([^*]+)\*")
_ITALIC_UNDERSCORE = re.compile(r"_([^_]+)_")
_STRIKETHROUGH = re.compile(r"~~([^~]+)~~")
_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
# Line-start markers match [ \t] only, so a blank line before a list item survives
_HEADING = re.compile(r"^#{1,6}[ \t]+", re.MULTILINE)
_BLOCKQUOTE = re.compile(r"^>[ \t]+", re.MULTILINE)
_BULLET = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
_NUMBERED = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
_HORIZONTAL_RULE = re.compile(r"^[-*_]{3,}$", re.MULTILINE)

# Whitespace cleanup
_MULTI_SPACE = re.compile(r" {2,}")
_MULTI_NEWLINE = re.compile(r"\n{3,}")


def normalize(markdown: Optional[str]) -> str:
    """
    Strip markdown formatting, leaving only plain text content.

    Pure and total: never raises, and None or "" returns "".

    Handles:
        - Fenced code blocks (removed entirely)
        - Inline code: `code`, ``co`de``
        - Bold: **text**, __text__
        - Italic: *text*, _text_
        - Strikethrough: ~~text~~
        - Images and links: ![alt](url), [text](url) -> alt, text
        - Headings, blockquotes, bulleted and numbered list markers
        - Horizontal rules: ---, ***, ___

    After syntax removal, runs of spaces collapse to one, each line is
    trimmed, 3+ newlines collapse to 2, and the result is trimmed.

    Args:
        markdown: Markdown text (or None)

    Returns:
        Plain text

    Example:
        >>> normalize("**bold** and *italic*")
        'bold and italic'
        >>> normalize("# Title\\n\\n- [docs](https://example.com)")
        'Title\\n\\ndocs'
    """
    if not markdown:
        return ""

    text = _FENCED_CODE.sub("", markdown)
    text = _INLINE_CODE.sub(r"\2", text)

    text = _BOLD_STARS.sub(r"\1", text)
    text = _BOLD_UNDERSCORES.sub(r"\1", text)
    text = _ITALIC_STAR.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    text = _STRIKETHROUGH.sub(r"\1", text)

    text = _IMAGE.sub(r"\1", text)
    text = _LINK.sub(r"\1", text)

    text = _HEADING.sub("", text)
    text = _BLOCKQUOTE.sub("", text)
    text = _BULLET.sub("", text)
    text = _NUMBERED.sub("", text)
    text = _HORIZONTAL_RULE.sub("", text)

    text = _MULTI_SPACE.sub(" ", text)
    text = "\n".join(line.strip() for line in text.split("\n"))
    text = _MULTI_NEWLINE.sub("\n\n", text)

    return text.strip()


def plain_text_length(markdown: Optional[str]) -> int:
    """Length of the plain-text projection of markdown."""
    return len(normalize(markdown))


def is_same_plain_text(markdown1: Optional[str], markdown2: Optional[str]) -> bool:
    """Check if two markdown strings differ only in formatting."""
    return normalize(markdown1) == normalize(markdown2)
