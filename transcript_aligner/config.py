"""Configuration constants, service defaults, and .env loading.

WHY: The segmentation and reconciliation heuristics are driven by a
handful of numbers (chunk durations, pause thresholds, text budgets,
lookahead and fuzzy-match limits). Keeping them in one module makes them
easy to find and tune, and keeps the algorithms free of magic numbers.
Service settings (models, batch sizes, API key) live here as well so the
client and pipeline never read the environment themselves.

HOW: python-dotenv loads the .env file on import. Algorithm constants are
plain module-level values. Service settings are read from the environment
with documented defaults. load_api_key() gives a clear error when the key
is missing.

RULES:
- Algorithm constants are NOT env-overridable; identical input must give
  identical output on every machine
- Core functions receive these as keyword defaults, never read them at call time
- API key is loaded from .env via python-dotenv, never hardcoded
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Temporal chunking
# ---------------------------------------------------------------------------

TARGET_CHUNK_DURATION_S = 180.0
"""A chunk is closed at the first natural pause after reaching this span."""

MIN_GAP_FOR_BREAK_S = 0.5
"""Silence between segments long enough to count as a natural pause."""

MIN_FINAL_CHUNK_DURATION_S = 120.0
"""A trailing chunk shorter than this is merged into its predecessor."""

PREVIEW_CHARS = 100
NO_SEGMENT_PREVIEW_WORDS = 15

# ---------------------------------------------------------------------------
# Text chunking
# ---------------------------------------------------------------------------

TARGET_TEXT_CHUNK_CHARS = 3500
MAX_TEXT_CHUNK_CHARS = 4096
"""Hard ceiling of the speech-synthesis service; chunk text stays below it."""

MIN_FINAL_TEXT_CHUNK_CHARS = 500
SHORT_PIECE_CHARS = 50
"""Pieces shorter than this (e.g. "* * *") always join their neighbours."""

# ---------------------------------------------------------------------------
# Token reconciliation
# ---------------------------------------------------------------------------

LOOKAHEAD = 3
FUZZY_MIN_LENGTH = 4
FUZZY_MAX_RATIO = 0.3
FUZZY_MIN_DISTANCE = 2
INTERPOLATED_SPAN_RATIO = 0.8
WORDS_PER_SEGMENT = 20

# ---------------------------------------------------------------------------
# External service defaults
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
CORRECTION_MODEL = os.getenv("CORRECTION_MODEL", "gpt-4o")
LEMMA_MODEL = os.getenv("LEMMA_MODEL", "gpt-4o")
TTS_MODEL = os.getenv("TTS_MODEL", "tts-1")
TTS_VOICE = os.getenv("TTS_VOICE", "alloy")
DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "ru")
PUNCTUATION_BATCH_SIZE = int(os.getenv("PUNCTUATION_BATCH_SIZE", "500"))
LEMMA_BATCH_SIZE = int(os.getenv("LEMMA_BATCH_SIZE", "300"))


def load_api_key() -> str:
    """Load the OpenAI API key from the environment.

    WHY: Transcription, correction, lemmatization and synthesis all need
    the key. Loading it from the environment (via .env) keeps it out of
    source code.

    HOW: Reads OPENAI_API_KEY from os.environ (populated by python-dotenv).

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "OpenAI API key not configured. "
            "Add OPENAI_API_KEY to the .env file in the project folder."
        )
    return key
