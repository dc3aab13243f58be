"""Intermediate representation dataclasses for transcripts and chunks.

WHY: Speech-to-text, correction, lemmatization and synthesis services all
speak slightly different JSON dialects. The segmenters and the
reconciliation engine need one well-typed shape to work on, and the
session layer downstream needs one stable wire shape to persist.

HOW: Five dataclasses:
  WordTimestamp: one recognized token with timing and optional lemma
  Segment: a coarser utterance grouping with its own timing
  Transcript: words + segments + language + total duration
  Chunk: a time-bounded window over a Transcript
  TextChunk: a size-bounded window over prose
Transcript.from_dict() reads the recognizer's verbose JSON, to_dict()
methods write the shapes the session layer stores.

RULES:
- All times are float seconds, start_s <= end_s
- WordTimestamp.text is kept as delivered (may carry a leading space)
- Missing/null word or segment lists become empty lists, never an error
- Chunks are derived values; the engine never mutates them after creation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from transcript_aligner.config import DEFAULT_LANGUAGE


@dataclass
class WordTimestamp:
    """A single recognized token with its time span.

    RULES:
    - text: surface form as delivered, punctuation included
    - start_s / end_s: float seconds from the start of the audio
    - lemma: dictionary form, set only by lemma annotation
    """

    text: str
    start_s: float
    end_s: float
    lemma: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> WordTimestamp:
        text = data.get("word") or data.get("text") or ""
        start = float(data.get("start", 0.0))
        return cls(
            text=text,
            start_s=start,
            end_s=float(data.get("end", start)),
            lemma=data.get("lemma"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"word": self.text, "start": self.start_s, "end": self.end_s}
        if self.lemma is not None:
            out["lemma"] = self.lemma
        return out


@dataclass
class Segment:
    """An utterance-level grouping of words. May straddle a chunk boundary."""

    text: str
    start_s: float
    end_s: float

    @classmethod
    def from_dict(cls, data: dict) -> Segment:
        start = float(data.get("start", 0.0))
        return cls(
            text=data.get("text") or "",
            start_s=start,
            end_s=float(data.get("end", start)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "start": self.start_s, "end": self.end_s}


@dataclass
class Transcript:
    """A complete timestamped transcript, or a chunk-scoped slice of one.

    WHY: This is the unit every reconciliation step takes and returns.
    Steps replace words and rebuild segments; they never edit in place.

    RULES:
    - words are expected ascending by start (not re-validated here)
    - word/segment times lie within [0, duration_s] up to float tolerance
    - language is an ISO 639-1 code
    """

    words: list[WordTimestamp] = field(default_factory=list)
    segments: list[Segment] = field(default_factory=list)
    language: str = DEFAULT_LANGUAGE
    duration_s: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> Transcript:
        """Parse a Transcript from the recognizer's verbose JSON.

        RULES:
        - "words" and "segments" may be absent or null -> empty lists
        - word text is read from "word", falling back to "text"
        - missing "duration" falls back to the last word/segment end
        - missing "language" falls back to DEFAULT_LANGUAGE
        """
        words = [WordTimestamp.from_dict(w) for w in data.get("words") or []]
        segments = [Segment.from_dict(s) for s in data.get("segments") or []]

        duration = data.get("duration")
        if duration is None:
            ends = [w.end_s for w in words] + [s.end_s for s in segments]
            duration = max(ends) if ends else 0.0

        return cls(
            words=words,
            segments=segments,
            language=data.get("language") or DEFAULT_LANGUAGE,
            duration_s=float(duration),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "words": [w.to_dict() for w in self.words],
            "segments": [s.to_dict() for s in self.segments],
            "language": self.language,
            "duration": self.duration_s,
        }


@dataclass
class Chunk:
    """A time-bounded, playable window of a transcript.

    RULES:
    - id is "chunk-{index}" and index is the final position in the output
    - duration_s == end_s - start_s
    - preview_text from segments is at most 103 characters (100 + "...")
    - word_count counts words wholly inside the chunk's segments
    """

    id: str
    index: int
    start_s: float
    end_s: float
    duration_s: float
    preview_text: str
    word_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "startTime": self.start_s,
            "endTime": self.end_s,
            "duration": self.duration_s,
            "previewText": self.preview_text,
            "wordCount": self.word_count,
        }


@dataclass
class TextChunk:
    """A size-bounded window of prose, sized for one synthesis request.

    RULES:
    - len(text) < MAX_TEXT_CHUNK_CHARS always
    - status starts as "pending"; later stages are owned by the caller
    """

    id: str
    index: int
    text: str
    preview_text: str
    word_count: int
    status: str = "pending"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "text": self.text,
            "previewText": self.preview_text,
            "wordCount": self.word_count,
            "status": self.status,
        }


def join_word_texts(words: list[WordTimestamp]) -> str:
    """Join word texts with single spaces, ignoring recognizer padding."""
    return " ".join(t for t in (w.text.strip() for w in words) if t)
