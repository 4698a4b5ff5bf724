"""
Row height estimation for wrapped spreadsheet cells.

Spreadsheet libraries do not measure text, so the height of a row holding
wrapped text is approximated: every line is assumed to wrap after
``column_width_chars`` narrow characters, with East Asian wide characters
counting double.
"""

from __future__ import annotations

import math
import unicodedata


MIN_HEIGHT = 30.0
MAX_HEIGHT = 300.0
BASE_PADDING = 20.0
LINE_SPACING = 1.5
DEFAULT_FONT_SIZE = 11.0


def char_weight(char: str) -> int:
    """Return 2 for wide (CJK and full-width) characters, else 1."""
    return 2 if unicodedata.east_asian_width(char) in ("W", "F") else 1


def count_rows(text: str, column_width_chars: float) -> int:
    """Number of rendered rows ``text`` occupies once wrapped.

    An empty line still takes one row; empty text takes none.
    """
    if not text:
        return 0
    width = max(column_width_chars, 1)
    rows = 0
    for line in text.split("\n"):
        weight = sum(char_weight(char) for char in line)
        rows += max(1, math.ceil(weight / width))
    return rows


def estimate_height(
    text: str, column_width_chars: float, font_size: float = DEFAULT_FONT_SIZE
) -> float:
    """Estimate the row height (in points) needed to show ``text``.

    The result is always between 30 and 300.

    >>> estimate_height("", 50)
    30.0
    >>> estimate_height("short", 50, 10)
    35.0
    """
    rows = count_rows(text, column_width_chars)
    return max(MIN_HEIGHT, min(MAX_HEIGHT, BASE_PADDING + rows * font_size * LINE_SPACING))
