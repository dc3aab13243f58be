"""Shared test fixtures for the transcript_aligner test suite.

WHY: Chunking, extraction, formatting and the CLI all need timestamped
transcripts with predictable geometry: evenly spaced segments, pauses at
known places, words straddling a chunk boundary. Building them in one
place keeps every test module on the same data.

HOW: make_transcript is a factory fixture (segment count, duration, gap
after each segment). The remaining fixtures are small literal transcripts.

RULES:
- Every word lies inside its segment; three words per generated segment
- Generated word texts carry the recognizer's leading space
- Times are in float seconds
"""

from typing import Any, Callable, Dict

import pytest

from transcript_aligner.core.ir import Segment, Transcript, WordTimestamp


def _build_transcript(
    duration_s: float,
    segment_count: int = 10,
    gap_s: float = 0.0,
    language: str = "ru",
) -> Transcript:
    """Evenly spaced segments of three words; each segment ends gap_s early."""
    seg_len = duration_s / segment_count
    segments = []
    words = []
    for i in range(segment_count):
        start = i * seg_len
        # The last segment always runs to the end
        end = start + seg_len - (gap_s if i < segment_count - 1 else 0.0)
        segments.append(Segment(text="Сегмент {}. Это текст.".format(i + 1), start_s=start, end_s=end))
        word_len = (end - start) / 3
        for w in range(3):
            words.append(WordTimestamp(
                text=" слово{}".format(i * 3 + w),
                start_s=start + w * word_len,
                end_s=end if w == 2 else start + (w + 1) * word_len,
            ))
    return Transcript(words=words, segments=segments, language=language, duration_s=duration_s)


@pytest.fixture
def make_transcript() -> Callable[..., Transcript]:
    """Factory: make_transcript(duration_s, segment_count=10, gap_s=0.0)."""
    return _build_transcript


@pytest.fixture
def boundary_transcript() -> Transcript:
    """Two words at the start and two words just after the 3 minute mark."""
    return Transcript(
        words=[
            WordTimestamp(text="первое", start_s=0.0, end_s=1.0),
            WordTimestamp(text="второе", start_s=2.0, end_s=3.0),
            WordTimestamp(text="третье", start_s=180.0, end_s=181.0),
            WordTimestamp(text="четвёртое", start_s=182.0, end_s=183.0),
        ],
        segments=[
            Segment(text="Первое второе.", start_s=0.0, end_s=3.0),
            Segment(text="Третье четвёртое.", start_s=180.0, end_s=183.0),
        ],
        language="ru",
        duration_s=183.0,
    )


@pytest.fixture
def hello_transcript() -> Transcript:
    """An unpunctuated two-word recognizer transcript."""
    return Transcript(
        words=[
            WordTimestamp(text=" hello", start_s=0.0, end_s=0.5),
            WordTimestamp(text=" world", start_s=0.5, end_s=1.0),
        ],
        segments=[Segment(text="hello world", start_s=0.0, end_s=1.0)],
        language="en",
        duration_s=1.0,
    )


@pytest.fixture
def verbose_json() -> Dict[str, Any]:
    """A recognizer verbose JSON reply, as stored on disk."""
    return {
        "language": "ru",
        "duration": 3.0,
        "words": [
            {"word": " привет", "start": 0.0, "end": 0.6},
            {"word": " мир", "start": 0.7, "end": 1.2},
            {"word": " снова", "start": 2.0, "end": 2.8},
        ],
        "segments": [
            {"text": "привет мир", "start": 0.0, "end": 1.2},
            {"text": "снова", "start": 2.0, "end": 2.8},
        ],
    }
