"""Timestamp interpolation and estimation for text-mode transcripts.

WHY: Text mode has no recognizer timing for the original prose. When a
re-transcription is available, alignment recovers real timing for most
words and leaves runs of unknowns that need a plausible span. When it is
not available, a character-proportional estimate is the only option.

HOW: interpolate_timestamps() fills every maximal run of unknown spans by
dividing the gap between its known neighbours into equal slots, each
"spoken" for the first 80% of its slot. estimate_word_timestamps() lays
words end to end with durations proportional to their character length.

RULES:
- A run with no known predecessor starts at 0
- A run with no known successor ends at total_duration
- Slot k of n: start = gap_start + k * width, end = start + 0.8 * width
- A negative gap (overlapping neighbours) is treated as zero width
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, Tuple

from transcript_aligner.config import (
    DEFAULT_LANGUAGE,
    INTERPOLATED_SPAN_RATIO,
    WORDS_PER_SEGMENT,
)
from transcript_aligner.core.ir import Segment, Transcript, WordTimestamp, join_word_texts

Span = Tuple[float, float]


def interpolate_timestamps(
    spans: Sequence[Optional[Span]],
    total_duration: float,
    span_ratio: float = INTERPOLATED_SPAN_RATIO,
) -> list[Span]:
    """Resolve unknown (None) spans by spreading them over the surrounding gap.

    Args:
        spans: One (start, end) per token, or None where unknown.
        total_duration: Upper bound used when a run has no known successor.
        span_ratio: Fraction of each slot that the token occupies.

    Returns:
        A list of (start, end) with no None entries, same length as spans.
    """
    resolved: list[Span] = []
    i = 0
    n = len(spans)

    while i < n:
        if spans[i] is not None:
            resolved.append(spans[i])
            i += 1
            continue

        run_end = i
        while run_end < n and spans[run_end] is None:
            run_end += 1

        gap_start = resolved[-1][1] if resolved else 0.0
        gap_end = spans[run_end][0] if run_end < n else total_duration
        width = max(0.0, gap_end - gap_start) / (run_end - i)

        for k in range(run_end - i):
            start = gap_start + k * width
            resolved.append((start, gap_start + (k + span_ratio) * width))
        i = run_end

    return resolved


def group_into_segments(
    words: Sequence[WordTimestamp],
    size: int = WORDS_PER_SEGMENT,
) -> list[Segment]:
    """Group words into fixed-size segments (prose has no utterances)."""
    segments = []
    for i in range(0, len(words), size):
        group = list(words[i:i + size])
        segments.append(Segment(
            text=join_word_texts(group),
            start_s=group[0].start_s,
            end_s=group[-1].end_s,
        ))
    return segments


def estimate_word_timestamps(
    text: str,
    duration_s: float,
    language: str = DEFAULT_LANGUAGE,
) -> Transcript:
    """Estimate word timing from character lengths alone.

    The crude fallback when the synthesized audio cannot be re-transcribed:
    each word gets a share of the duration proportional to its length.
    """
    tokens = text.split()
    total_chars = sum(len(t) for t in tokens)

    words = []
    cursor = 0.0
    for token in tokens:
        end = cursor + len(token) / total_chars * duration_s
        words.append(WordTimestamp(text=token, start_s=cursor, end_s=end))
        cursor = end

    return Transcript(
        words=words,
        segments=group_into_segments(words),
        language=language,
        duration_s=duration_s,
    )
