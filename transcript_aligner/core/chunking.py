"""Temporal chunking of transcripts at natural pauses.

WHY: Long videos are consumed in playable windows of about three minutes.
Cutting at a fixed time would split words and sentences; cutting at the
first real pause after the target keeps every chunk listenable. The same
structural guarantees must hold whether or not the transcript was
corrected first, so upstream failures never cost a chunk.

HOW: create_chunks() scans segments in order, accumulating them into the
current chunk. Once the accumulated span reaches the target, the chunk is
closed at the first segment followed by a pause of at least 0.5s (or by
nothing). A trailing chunk shorter than two minutes is merged into its
predecessor. get_chunk_transcript() later slices the global transcript to
one chunk's range and rebases its timestamps.

RULES:
- No segments, or duration below target -> exactly one full-length chunk
- Chunk ids/indices come from final position, assigned after merging
- The first chunk starts at 0; later chunks start at their first segment
- Chunks are non-overlapping and ascending: start[i] >= end[i-1]
- word_count uses strict containment in a segment; extraction uses overlap
- Pure functions, no I/O
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from transcript_aligner.config import (
    DEFAULT_LANGUAGE,
    MIN_FINAL_CHUNK_DURATION_S,
    MIN_GAP_FOR_BREAK_S,
    NO_SEGMENT_PREVIEW_WORDS,
    PREVIEW_CHARS,
    TARGET_CHUNK_DURATION_S,
)
from transcript_aligner.core.ir import Chunk, Segment, Transcript, WordTimestamp


@dataclass
class _Span:
    """A chunk under construction. Becomes a Chunk once ids are assigned."""

    start_s: float
    end_s: float = 0.0
    preview_text: str = ""
    word_count: int = 0
    segments: list[Segment] = field(default_factory=list)


def _segment_preview(segments: list[Segment], limit: int = PREVIEW_CHARS) -> str:
    joined = " ".join(s.text for s in segments[:2])
    return joined[:limit] + ("..." if len(joined) >= limit else "")


def _words_in(segment: Segment, words: list[WordTimestamp]) -> int:
    return sum(1 for w in words if w.start_s >= segment.start_s and w.end_s <= segment.end_s)


def _single_chunk(end_s: float, preview_text: str, word_count: int) -> list[Chunk]:
    return [Chunk(
        id="chunk-0",
        index=0,
        start_s=0.0,
        end_s=end_s,
        duration_s=end_s,
        preview_text=preview_text,
        word_count=word_count,
    )]


def create_chunks(
    transcript: Transcript,
    target_duration_s: float = TARGET_CHUNK_DURATION_S,
    min_gap_s: float = MIN_GAP_FOR_BREAK_S,
    min_final_duration_s: float = MIN_FINAL_CHUNK_DURATION_S,
) -> list[Chunk]:
    """Split a transcript into chunks at natural pauses.

    Args:
        transcript: The full transcript (corrected or not).
        target_duration_s: Minimum span before a chunk may be closed.
        min_gap_s: Silence before the next segment that counts as a pause.
        min_final_duration_s: Trailing chunks shorter than this are merged.

    Returns:
        Ordered list of Chunk objects; never empty.
    """
    words = transcript.words or []
    segments = transcript.segments or []
    duration = transcript.duration_s or 0.0

    if not segments:
        preview = " ".join(w.text.strip() for w in words[:NO_SEGMENT_PREVIEW_WORDS])
        return _single_chunk(duration, preview, len(words))

    if duration < target_duration_s:
        return _single_chunk(duration, segments[0].text[:PREVIEW_CHARS], len(words))

    spans: list[_Span] = []
    current = _Span(start_s=0.0)

    for i, segment in enumerate(segments):
        current.segments.append(segment)
        current.word_count += _words_in(segment, words)

        if segment.end_s - current.start_s < target_duration_s:
            continue

        nxt = segments[i + 1] if i + 1 < len(segments) else None
        if nxt is not None and nxt.start_s - segment.end_s < min_gap_s:
            continue

        current.end_s = segment.end_s
        current.preview_text = _segment_preview(current.segments)
        spans.append(current)
        current = _Span(start_s=nxt.start_s if nxt is not None else segment.end_s)

    if current.segments:
        last_end = current.segments[-1].end_s
        if last_end - current.start_s < min_final_duration_s and spans:
            prev = spans[-1]
            prev.end_s = last_end
            prev.word_count += current.word_count
        else:
            current.end_s = last_end
            current.preview_text = _segment_preview(current.segments)
            spans.append(current)

    return [
        Chunk(
            id="chunk-{}".format(index),
            index=index,
            start_s=span.start_s,
            end_s=span.end_s,
            duration_s=span.end_s - span.start_s,
            preview_text=span.preview_text,
            word_count=span.word_count,
        )
        for index, span in enumerate(spans)
    ]


def _rebase(start_s: float, end_s: float, range_start: float) -> tuple[float, float]:
    return max(0.0, start_s - range_start), max(0.0, end_s - range_start)


def get_chunk_transcript(
    transcript: Transcript,
    range_start: float,
    range_end: float,
) -> Transcript:
    """Slice a transcript to [range_start, range_end) with rebased timestamps.

    WHY: Each chunk is reconciled and played on its own clock. Items that
    straddle a boundary are included on both sides so no word is ever lost
    between adjacent chunks.

    RULES:
    - Include an item when item.end > range_start and item.start < range_end
    - Rebased start and end are both clamped to >= 0
    - duration_s is exactly range_end - range_start
    - lemma and all other word fields are carried over
    """
    words = []
    for w in transcript.words or []:
        if w.end_s > range_start and w.start_s < range_end:
            start, end = _rebase(w.start_s, w.end_s, range_start)
            words.append(replace(w, start_s=start, end_s=end))

    segments = []
    for s in transcript.segments or []:
        if s.end_s > range_start and s.start_s < range_end:
            start, end = _rebase(s.start_s, s.end_s, range_start)
            segments.append(replace(s, start_s=start, end_s=end))

    return Transcript(
        words=words,
        segments=segments,
        language=transcript.language or DEFAULT_LANGUAGE,
        duration_s=range_end - range_start,
    )


def format_time(seconds: float) -> str:
    """Format seconds as M:SS (minutes unbounded, fractions floored)."""
    if seconds < 0:
        raise ValueError("seconds must be non-negative, got {}".format(seconds))
    total = int(seconds)
    return "{}:{:02d}".format(total // 60, total % 60)
