"""Size-bounded chunking of prose for speech synthesis.

WHY: The synthesis service rejects requests of 4096 characters or more,
and listeners want chunks that start and end at paragraph or sentence
boundaries. Plain-text sources often hard-wrap lines at a fixed column,
which must be undone before any boundary can be recognised.

HOW: The pipeline has four stages:
  1. Split on blank lines into sections, dropping whitespace-only ones.
  2. Unwrap each section: single newlines and whitespace runs -> one space.
  3. Sections over the budget are split at sentence ends and re-packed
     greedily (split_block_into_sentences).
  4. Pieces are packed greedily into chunks joined by blank lines; short
     decorative pieces stick to their neighbours and a short final
     fragment is folded into the previous chunk.

RULES:
- Never returns zero chunks; empty input gives one empty chunk
- Every chunk's text is shorter than MAX_TEXT_CHUNK_CHARS
- A sentence is kept whole when it fits under the hard ceiling, even if
  it exceeds the budget; only longer sentences are wrapped at whitespace
- Merges that would cross the hard ceiling are not performed
"""

from __future__ import annotations

import re
from typing import List

from transcript_aligner.config import (
    MAX_TEXT_CHUNK_CHARS,
    MIN_FINAL_TEXT_CHUNK_CHARS,
    PREVIEW_CHARS,
    SHORT_PIECE_CHARS,
    TARGET_TEXT_CHUNK_CHARS,
)
from transcript_aligner.core.ir import TextChunk

SECTION_BREAK_RE = re.compile(r"\n\s*\n")
SENTENCE_END_RE = re.compile(r"[.!?»…]\s+")
SECTION_JOINER = "\n\n"


def _make_text_chunk(index: int, text: str) -> TextChunk:
    preview = text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")
    return TextChunk(
        id="chunk-{}".format(index),
        index=index,
        text=text,
        preview_text=preview,
        word_count=len(text.split()),
    )


def _wrap_long_sentence(sentence: str, budget: int) -> List[str]:
    """Break an over-long sentence at whitespace into budget-sized pieces."""
    pieces = []
    current = ""
    for token in sentence.split():
        while len(token) > budget:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(token[:budget])
            token = token[budget:]
        candidate = current + " " + token if current else token
        if len(candidate) > budget:
            pieces.append(current)
            current = token
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def split_block_into_sentences(
    block: str,
    budget: int = TARGET_TEXT_CHUNK_CHARS,
    hard_limit: int = MAX_TEXT_CHUNK_CHARS,
) -> List[str]:
    """Split a long block at sentence ends into pieces of at most budget chars.

    A single sentence longer than the budget stays whole when it is shorter
    than hard_limit; otherwise it is wrapped at whitespace.
    """
    sentences = []
    last = 0
    for match in SENTENCE_END_RE.finditer(block):
        sentences.append(block[last:match.end()])
        last = match.end()
    if last < len(block):
        sentences.append(block[last:])

    pieces = []
    current = ""
    for sentence in sentences:
        if len(sentence.strip()) >= hard_limit:
            if current.strip():
                pieces.append(current.strip())
            current = ""
            pieces.extend(_wrap_long_sentence(sentence, budget))
            continue
        if current and len(current) + len(sentence) > budget:
            pieces.append(current.strip())
            current = sentence
        else:
            current += sentence

    if current.strip():
        pieces.append(current.strip())
    return pieces


def create_text_chunks(
    text: str,
    budget: int = TARGET_TEXT_CHUNK_CHARS,
    hard_limit: int = MAX_TEXT_CHUNK_CHARS,
    min_final_chars: int = MIN_FINAL_TEXT_CHUNK_CHARS,
    short_piece_chars: int = SHORT_PIECE_CHARS,
) -> List[TextChunk]:
    """Split prose into synthesis-sized chunks at paragraph/sentence boundaries.

    Args:
        text: Raw prose, possibly hard-wrapped at a fixed column.
        budget: Target ceiling for a chunk's length.
        hard_limit: Length every chunk must stay below.
        min_final_chars: A final fragment shorter than this joins the previous chunk.
        short_piece_chars: Pieces shorter than this always join the current buffer.

    Returns:
        Ordered list of TextChunk objects; never empty.
    """
    sections = [s for s in SECTION_BREAK_RE.split(text) if s.strip()]
    if not sections:
        return [_make_text_chunk(0, text.strip())]

    pieces: List[str] = []
    for section in sections:
        unwrapped = " ".join(section.split())
        if len(unwrapped) <= budget:
            pieces.append(unwrapped)
        else:
            pieces.extend(split_block_into_sentences(unwrapped, budget, hard_limit))

    texts: List[str] = []
    buffer = ""
    for piece in pieces:
        combined = buffer + SECTION_JOINER + piece if buffer else piece
        is_short = len(piece) < short_piece_chars
        fits = len(combined) <= budget or (is_short and len(combined) < hard_limit)
        if buffer and not fits:
            texts.append(buffer)
            buffer = piece
        else:
            buffer = combined

    if buffer:
        merged = texts[-1] + SECTION_JOINER + buffer if texts else ""
        if texts and len(buffer) < min_final_chars and len(merged) < hard_limit:
            texts[-1] = merged
        else:
            texts.append(buffer)

    return [_make_text_chunk(index, chunk_text) for index, chunk_text in enumerate(texts)]
