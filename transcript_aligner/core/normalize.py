"""Token normalization and fuzzy comparison primitives.

WHY: Two services rarely agree on the surface form of a word. The
corrector adds punctuation and capitalisation, fixes misspellings, and the
recognizer may hear "qick" where the text says "quick". Reconciliation
needs a comparison that ignores punctuation and case, and forgives small
spelling differences in longer words only.

HOW: base_form() strips edge punctuation and lower-cases. edit_distance()
is classic Levenshtein with two rolling rows sized to the shorter string.
is_fuzzy_match() allows max(2, floor(0.3 * longer length)) edits for
words of 4+ characters on both sides.

RULES:
- Base forms are for comparison only, never for display
- Words under FUZZY_MIN_LENGTH never fuzzy-match, whatever the distance
- Empty base forms (pure punctuation) compare equal but never fuzzy-match
"""

from __future__ import annotations

import math
import re

from transcript_aligner.config import (
    FUZZY_MAX_RATIO,
    FUZZY_MIN_DISTANCE,
    FUZZY_MIN_LENGTH,
)

# Edge punctuation for Russian and Latin text, whitespace included.
_EDGE_PUNCT = r".,!?;:—–\-«»\"“”'‘’()…\s"
_EDGE_PUNCT_RE = re.compile(r"^[{0}]+|[{0}]+$".format(_EDGE_PUNCT))


def strip_punctuation(word: str) -> str:
    """Remove leading/trailing punctuation and whitespace from a token."""
    return _EDGE_PUNCT_RE.sub("", word)


def base_form(word: str) -> str:
    """Return the comparison key of a token: punctuation stripped, lower-cased."""
    return strip_punctuation(word).lower()


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance between two strings in O(min(len(a), len(b))) space.

    Uses two rolling rows instead of a full matrix.
    """
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Keep a as the shorter string so the rows stay small
    if len(a) > len(b):
        a, b = b, a

    prev = list(range(len(a) + 1))
    curr = [0] * (len(a) + 1)

    for i in range(1, len(b) + 1):
        curr[0] = i
        bc = b[i - 1]
        for j in range(1, len(a) + 1):
            cost = 0 if a[j - 1] == bc else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
        prev, curr = curr, prev

    return prev[len(a)]


def is_fuzzy_match(
    a: str,
    b: str,
    min_length: int = FUZZY_MIN_LENGTH,
    max_ratio: float = FUZZY_MAX_RATIO,
    min_distance: int = FUZZY_MIN_DISTANCE,
) -> bool:
    """True if two base forms are close enough to be a spelling correction.

    RULES:
    - Both words must be at least min_length characters
    - Allowed distance is max(min_distance, floor(max_ratio * longer length))
    """
    if len(a) < min_length or len(b) < min_length:
        return False
    allowed = max(min_distance, math.floor(max(len(a), len(b)) * max_ratio))
    return edit_distance(a, b) <= allowed


def tokens_match(a: str, b: str) -> bool:
    """Exact or fuzzy equality of two base forms."""
    return a == b or is_fuzzy_match(a, b)
