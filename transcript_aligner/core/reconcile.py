"""Token reconciliation between a timestamped stream and a re-written one.

WHY: External services return "the same words" with re-spellings,
punctuation, splits, merges, insertions and deletions. A positional zip
misattributes every timestamp after the first divergence, so one LLM
"fix" would corrupt the rest of a several-hundred-token batch. The engine
resynchronises with a bounded lookahead, so a local mismatch stays local.

HOW: align_tokens() walks both sequences with two pointers over base
forms and produces one Alignment per original token:
  1. exact or fuzzy match           -> MATCHED, advance both
  2. match within corrected[j+1..j+3] -> skip inserted tokens, MATCHED
  3. match within original[i+1..i+3]  -> emit skipped originals as
     fallback, retry without advancing j
  4. otherwise                      -> fallback, advance i only
The fallback outcome comes from the MatchPolicy: KEEP_ORIGINAL for
punctuation/spelling correction, UNKNOWN for synthesized-speech alignment
(resolved later by interpolation).

reconcile_words() and align_to_original() are thin builders on top of the
same alignment. Lemma annotation is not an alignment at all: it is a
per-token dictionary lookup on base forms (apply_lemmas).

RULES:
- Output length always equals the original length
- A timestamp is never invented here; it comes from one of the inputs or
  is marked unknown for the interpolator
- Work is O(n) amortized: each step looks at most LOOKAHEAD tokens ahead
- Pure functions: no I/O, no logging, no module state
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from transcript_aligner.config import LOOKAHEAD
from transcript_aligner.core.interpolate import interpolate_timestamps
from transcript_aligner.core.ir import Segment, WordTimestamp, join_word_texts
from transcript_aligner.core.normalize import base_form, tokens_match


class MatchPolicy(enum.Enum):
    """What an unmatched original token becomes."""

    KEEP_ORIGINAL = "keep_original"
    MARK_UNKNOWN = "mark_unknown"


class Outcome(enum.Enum):
    MATCHED = "matched"
    KEEP_ORIGINAL = "keep_original"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Alignment:
    """Alignment result for one original token.

    corrected_index is set only when outcome is MATCHED.
    """

    original_index: int
    outcome: Outcome
    corrected_index: int | None = None


def _scan(bases: Sequence[str], start: int, target: str, lookahead: int) -> int | None:
    """Index of the first base in bases[start:start+lookahead] matching target."""
    for k in range(start, min(start + lookahead, len(bases))):
        if tokens_match(bases[k], target):
            return k
    return None


def align_tokens(
    original: Sequence[str],
    corrected: Sequence[str],
    policy: MatchPolicy = MatchPolicy.KEEP_ORIGINAL,
    lookahead: int = LOOKAHEAD,
) -> list[Alignment]:
    """Align two token streams, one Alignment per original token.

    Args:
        original: Surface tokens of the stream whose positions are kept.
        corrected: Surface tokens of the re-written stream.
        policy: Fallback for tokens that cannot be matched.
        lookahead: How many tokens ahead to search when resynchronising.

    Returns:
        List of Alignment, same length and order as original.
    """
    fallback = (
        Outcome.KEEP_ORIGINAL if policy is MatchPolicy.KEEP_ORIGINAL else Outcome.UNKNOWN
    )
    orig = [base_form(t) for t in original]
    corr = [base_form(t) for t in corrected]

    result: list[Alignment] = []
    i = j = 0

    while i < len(orig):
        if j >= len(corr):
            result.append(Alignment(i, fallback))
            i += 1
            continue

        if tokens_match(orig[i], corr[j]):
            result.append(Alignment(i, Outcome.MATCHED, j))
            i += 1
            j += 1
            continue

        # Corrected side inserted extra token(s)
        k = _scan(corr, j + 1, orig[i], lookahead)
        if k is not None:
            result.append(Alignment(i, Outcome.MATCHED, k))
            i += 1
            j = k + 1
            continue

        # Corrected side merged or dropped original token(s)
        k = _scan(orig, i + 1, corr[j], lookahead)
        if k is not None:
            for skipped in range(i, k):
                result.append(Alignment(skipped, fallback))
            i = k
            continue

        # No recovery: j stays so the next original can still use corr[j]
        result.append(Alignment(i, fallback))
        i += 1

    return result


def _leading_space(text: str) -> str:
    return text[: len(text) - len(text.lstrip())]


def reconcile_words(
    words: Sequence[WordTimestamp],
    corrected_tokens: Sequence[str],
    lookahead: int = LOOKAHEAD,
) -> list[WordTimestamp]:
    """Carry corrected surface text onto timestamped words.

    WHY: The correction service returns plain text. Its tokens replace the
    recognized text wherever they can be confidently matched; timing always
    stays with the recognized word.

    RULES:
    - Matched word: corrected text, original leading whitespace, original timing
    - Unmatched word: returned unchanged (KEEP_ORIGINAL)
    - lemma and timing are never touched
    """
    alignments = align_tokens(
        [w.text for w in words], corrected_tokens, MatchPolicy.KEEP_ORIGINAL, lookahead
    )
    out: list[WordTimestamp] = []
    for a in alignments:
        word = words[a.original_index]
        if a.outcome is Outcome.MATCHED:
            word = replace(word, text=_leading_space(word.text) + corrected_tokens[a.corrected_index])
        out.append(word)
    return out


def align_to_original(
    original_tokens: Sequence[str],
    recognized_words: Sequence[WordTimestamp],
    duration_s: float | None = None,
    lookahead: int = LOOKAHEAD,
) -> list[WordTimestamp]:
    """Recover real timestamps for original text from a re-transcription.

    WHY: Text mode synthesizes the original prose to audio and transcribes
    it again. The recognizer's words carry real timing but may be misheard;
    the original words are authoritative but carry no timing.

    HOW: Aligns original tokens against recognized words with MARK_UNKNOWN.
    Matched tokens take the recognized timing, unknown spans are
    interpolated between their known neighbours.

    RULES:
    - Text always comes from original_tokens
    - duration_s defaults to the end of the last recognized word (0 if none)
    - Output length equals len(original_tokens)
    """
    if duration_s is None:
        duration_s = recognized_words[-1].end_s if recognized_words else 0.0

    alignments = align_tokens(
        original_tokens,
        [w.text for w in recognized_words],
        MatchPolicy.MARK_UNKNOWN,
        lookahead,
    )
    spans = []
    for a in alignments:
        if a.outcome is Outcome.MATCHED:
            rec = recognized_words[a.corrected_index]
            spans.append((rec.start_s, rec.end_s))
        else:
            spans.append(None)

    resolved = interpolate_timestamps(spans, duration_s)
    return [
        WordTimestamp(text=token, start_s=start, end_s=end)
        for token, (start, end) in zip(original_tokens, resolved)
    ]


def rebuild_segments(
    segments: Sequence[Segment],
    words: Sequence[WordTimestamp],
) -> list[Segment]:
    """Rebuild segment text from reconciled words.

    RULES:
    - A word belongs to a segment when start >= seg.start and end <= seg.end
    - Segment timing is unchanged
    - A segment with no contained words keeps its original text
    """
    rebuilt = []
    for seg in segments:
        inside = [w for w in words if w.start_s >= seg.start_s and w.end_s <= seg.end_s]
        rebuilt.append(replace(seg, text=join_word_texts(inside) or seg.text))
    return rebuilt


# ---------------------------------------------------------------------------
# Lemma annotation
# ---------------------------------------------------------------------------


def unique_base_forms(words: Sequence[WordTimestamp]) -> list[str]:
    """Distinct non-empty base forms, in first-seen order."""
    seen: dict[str, None] = {}
    for w in words:
        key = base_form(w.text)
        if key:
            seen.setdefault(key, None)
    return list(seen)


def normalize_lemma_map(raw: Mapping) -> dict[str, str]:
    """Clean a word->lemma mapping returned by the lemmatization service.

    RULES:
    - Keys and values are lower-cased
    - Entries whose lemma is not a non-empty string are dropped
    """
    return {
        str(word).lower(): lemma.lower()
        for word, lemma in raw.items()
        if isinstance(lemma, str) and lemma
    }


def apply_lemmas(
    words: Sequence[WordTimestamp],
    lemma_map: Mapping[str, str],
) -> list[WordTimestamp]:
    """Annotate each word with the lemma of its base form, when known."""
    out = []
    for w in words:
        lemma = lemma_map.get(base_form(w.text))
        out.append(replace(w, lemma=lemma) if lemma else w)
    return out
