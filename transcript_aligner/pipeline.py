"""Batch orchestration around the core: correction, lemmas, text-mode timing.

WHY: The external services have request-size limits and fail
independently. Something has to cut transcripts into batches, call the
service, run the reconciliation engine on each reply, and decide what a
failed batch means. Keeping that here leaves the core pure.

HOW: Each step walks its input in fixed-size batches. A successful batch
is reconciled with the core; a failed batch (OpenAIAPIError,
LemmaResponseError, or any httpx.HTTPError) is logged and degrades to
its uncorrected form. Results are concatenated and segments rebuilt.

RULES:
- A failed batch never aborts the run and never drops a word
- The output transcript always has exactly as many words as the input
- on_status (optional) receives human-readable progress strings
- The client is duck-typed: anything with the OpenAIClient coroutine
  methods used here will do (tests pass AsyncMock fakes)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, TypeVar

import httpx

from transcript_aligner.api.client import LemmaResponseError, OpenAIAPIError
from transcript_aligner.config import LEMMA_BATCH_SIZE, PUNCTUATION_BATCH_SIZE
from transcript_aligner.core.chunking import create_chunks, get_chunk_transcript
from transcript_aligner.core.interpolate import group_into_segments
from transcript_aligner.core.ir import Chunk, Transcript
from transcript_aligner.core.reconcile import (
    align_to_original,
    apply_lemmas,
    normalize_lemma_map,
    rebuild_segments,
    reconcile_words,
    unique_base_forms,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SERVICE_ERRORS = (OpenAIAPIError, LemmaResponseError, httpx.HTTPError)


def iter_batches(items: Sequence[T], size: int) -> Iterator[Tuple[int, Sequence[T]]]:
    """Yield (batch_number, batch) pairs, batch_number starting at 1."""
    if size < 1:
        raise ValueError("batch size must be positive, got {}".format(size))
    for number, start in enumerate(range(0, len(items), size), 1):
        yield number, items[start:start + size]


async def add_punctuation(
    transcript: Transcript,
    client: Any,
    batch_size: int = PUNCTUATION_BATCH_SIZE,
    on_status: Optional[Callable[[str], None]] = None,
) -> Transcript:
    """Restore punctuation and spelling, keeping every original timestamp.

    HOW: Each batch is sent as space-joined stripped tokens. The reply is
    split on whitespace and reconciled against the batch; segments are
    rebuilt from the reconciled words afterwards.

    RULES:
    - Empty transcripts are returned unchanged
    - A failed batch keeps its original words
    """
    if not transcript.words:
        return transcript

    batches = list(iter_batches(transcript.words, batch_size))
    total = len(batches)
    words = []

    for number, batch in batches:
        if on_status:
            on_status("Adding punctuation... (batch {}/{})".format(number, total))
        text = " ".join(w.text.strip() for w in batch)
        try:
            corrected = await client.correct_text(text, transcript.language)
        except _SERVICE_ERRORS as exc:
            logger.warning("Punctuation batch %d/%d failed, keeping original: %s", number, total, exc)
            words.extend(batch)
            continue

        tokens = corrected.split()
        reconciled = reconcile_words(batch, tokens)
        changed = sum(1 for old, new in zip(batch, reconciled) if old.text != new.text)
        logger.info(
            "Punctuation batch %d/%d: sent %d words, got %d back, %d changed",
            number, total, len(batch), len(tokens), changed,
        )
        words.extend(reconciled)

    return replace(
        transcript,
        words=words,
        segments=rebuild_segments(transcript.segments, words),
    )


async def lemmatize_transcript(
    transcript: Transcript,
    client: Any,
    batch_size: int = LEMMA_BATCH_SIZE,
    on_status: Optional[Callable[[str], None]] = None,
) -> Transcript:
    """Annotate every word with a lemma, when the service provides one.

    RULES:
    - Only distinct base forms are sent, in first-seen order
    - A failed batch contributes no lemmas; its words stay unannotated
    """
    if not transcript.words:
        return transcript

    unique = unique_base_forms(transcript.words)
    batches = list(iter_batches(unique, batch_size))
    total = len(batches)
    logger.info("Lemmatizing %d unique words from %d total", len(unique), len(transcript.words))

    lemma_map = {}
    for number, batch in batches:
        if on_status:
            on_status("Lemmatizing... (batch {}/{})".format(number, total))
        try:
            raw = await client.lemmatize(list(batch), transcript.language)
        except _SERVICE_ERRORS as exc:
            logger.warning("Lemma batch %d/%d failed, skipping: %s", number, total, exc)
            continue
        lemma_map.update(normalize_lemma_map(raw))
        logger.info("Lemma batch %d/%d: got %d lemmas", number, total, len(raw))

    words = apply_lemmas(transcript.words, lemma_map)
    coverage = sum(1 for w in words if w.lemma)
    logger.info("Lemmatized %d/%d words", coverage, len(words))
    return replace(transcript, words=words)


async def transcribe_and_align_synthesized(
    text: str,
    audio_path: Path,
    client: Any,
    language: Optional[str] = None,
    on_status: Optional[Callable[[str], None]] = None,
) -> Transcript:
    """Recover real word timing for prose from its synthesized audio.

    HOW: Transcribes the synthesized audio, aligns the recognized words to
    the original text tokens (unknowns interpolated), and groups the result
    into fixed-size segments.

    RULES:
    - Word texts come from the original prose, never from the recognizer
    - Transcription failures propagate; the caller falls back to
      estimate_word_timestamps()
    """
    if on_status:
        on_status("Transcribing synthesized audio...")
    kwargs = {"language": language} if language else {}
    recognized = await client.transcribe(audio_path, **kwargs)

    words = align_to_original(text.split(), recognized.words, recognized.duration_s)
    logger.info(
        "Aligned %d original words against %d recognized words",
        len(words), len(recognized.words),
    )
    return Transcript(
        words=words,
        segments=group_into_segments(words),
        language=recognized.language,
        duration_s=recognized.duration_s,
    )


def chunk_with_transcripts(transcript: Transcript) -> List[Tuple[Chunk, Transcript]]:
    """Segment a transcript and extract the rebased slice for every chunk."""
    return [
        (chunk, get_chunk_transcript(transcript, chunk.start_s, chunk.end_s))
        for chunk in create_chunks(transcript)
    ]
