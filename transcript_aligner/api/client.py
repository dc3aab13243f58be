"""Async HTTP client for the OpenAI-compatible speech and language services.

WHY: The pipeline needs four external collaborators: speech-to-text,
text correction, lemmatization and speech synthesis. This module puts
all of them behind one client class so the pipeline, CLI and tests never
deal with HTTP details, and so tests can swap the transport.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. OpenAIClient is an
async context manager. Enter it to get an authenticated client, exit to
close the connection pool. One method per service:
transcribe → correct_text → lemmatize → synthesize.

RULES:
- Always use the async context manager (async with OpenAIClient() as client:)
- Non-2xx responses raise OpenAIAPIError with status code and body
- correct_text and lemmatize run at temperature 0 for repeatable output
- Lemma replies may be wrapped in code fences; they are stripped before parsing
- No retries here; the pipeline decides what a failure means
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import httpx

from transcript_aligner.config import (
    CORRECTION_MODEL,
    DEFAULT_LANGUAGE,
    LEMMA_MODEL,
    OPENAI_BASE_URL,
    TRANSCRIPTION_MODEL,
    TTS_MODEL,
    TTS_VOICE,
    load_api_key,
)
from transcript_aligner.core.ir import Transcript

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\n?|\n?```$")

_CORRECTION_PROMPT = """You are a punctuation and spelling restoration tool for transcribed spoken language (ISO 639-1 code: {language}). The text comes from speech recognition and has no punctuation. It may also contain transcription errors.

This is spoken dialogue, so expect short sentences, questions, exclamations, and commands. Err on the side of MORE punctuation.

Rules:
- Add punctuation marks to words
- Capitalize the first word of each sentence
- Fix obvious transcription/spelling errors
- Do NOT add, remove, or reorder words; only correct misspellings of existing words
- Do NOT change words that are already correctly spelled, even if unusual
- Return ONLY the corrected and punctuated text, nothing else"""

_LEMMA_PROMPT = """You are a morphology tool for the language with ISO 639-1 code "{language}". For each word, return its most commonly used dictionary lemma (nominative singular for nouns, masculine nominative singular for adjectives, infinitive for verbs). Prefer the everyday form over literary forms. Return ONLY a JSON object mapping each input word to its lemma. No explanation."""


class OpenAIAPIError(Exception):
    """Raised when a service returns a non-2xx or unparseable response.

    RULES:
    - Always include status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"OpenAI API error {status_code}: {message}")


class LemmaResponseError(ValueError):
    """Raised when the lemmatization reply is not a JSON object."""


def parse_lemma_reply(content: str) -> dict[str, Any]:
    """Parse the lemmatization reply, tolerating markdown code fences."""
    cleaned = _CODE_FENCE_RE.sub("", content.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise LemmaResponseError(f"Lemma reply is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise LemmaResponseError(
            f"Lemma reply must be a JSON object, got {type(parsed).__name__}"
        )
    return parsed


class OpenAIClient:
    """Async client for transcription, correction, lemmatization and synthesis.

    RULES:
    - Use as: async with OpenAIClient() as client: ...
    - api_key defaults to load_api_key() from .env
    - base_url defaults to OPENAI_BASE_URL from config
    - transport is only for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> OpenAIClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=httpx.Timeout(300.0, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "OpenAIClient must be used as an async context manager: "
                "async with OpenAIClient() as client: ..."
            )
        return self._client

    async def _chat(self, model: str, system: str, user: str) -> str:
        client = self._ensure_client()
        resp = await client.post(
            "/chat/completions",
            json={
                "model": model,
                "temperature": 0,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
            },
        )
        if resp.status_code != 200:
            raise OpenAIAPIError(resp.status_code, resp.text)
        try:
            return resp.json()["choices"][0]["message"]["content"].strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            raise OpenAIAPIError(resp.status_code, resp.text) from None

    # ------------------------------------------------------------------
    # Speech-to-text
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        audio_path: Path,
        language: str = DEFAULT_LANGUAGE,
    ) -> Transcript:
        """Transcribe an audio file with word and segment timestamps.

        HOW: Multipart POST to /audio/transcriptions with verbose JSON and
        both timestamp granularities. The reply is parsed with
        Transcript.from_dict, so missing words/segments become empty lists.

        Args:
            audio_path: Path to the audio file.
            language: ISO 639-1 hint for the recognizer.

        Returns:
            The recognized Transcript.
        """
        client = self._ensure_client()
        audio_path = Path(audio_path)
        with open(audio_path, "rb") as f:
            resp = await client.post(
                "/audio/transcriptions",
                files={"file": (audio_path.name, f)},
                data={
                    "model": TRANSCRIPTION_MODEL,
                    "response_format": "verbose_json",
                    "timestamp_granularities[]": ["word", "segment"],
                    "language": language,
                },
            )
        if resp.status_code != 200:
            raise OpenAIAPIError(resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError:
            raise OpenAIAPIError(resp.status_code, resp.text) from None
        if not isinstance(data, dict):
            raise OpenAIAPIError(resp.status_code, resp.text)
        data.setdefault("language", language)
        transcript = Transcript.from_dict(data)
        logger.info(
            "Transcribed %s: %d words, %.1fs",
            audio_path.name, len(transcript.words), transcript.duration_s,
        )
        return transcript

    # ------------------------------------------------------------------
    # Text correction
    # ------------------------------------------------------------------

    async def correct_text(self, text: str, language: str = DEFAULT_LANGUAGE) -> str:
        """Restore punctuation and fix spelling in space-joined tokens.

        Returns plain text with approximately the same token count; the
        caller splits it on whitespace before reconciliation.
        """
        return await self._chat(
            CORRECTION_MODEL, _CORRECTION_PROMPT.format(language=language), text
        )

    # ------------------------------------------------------------------
    # Lemmatization
    # ------------------------------------------------------------------

    async def lemmatize(
        self,
        words: list[str],
        language: str = DEFAULT_LANGUAGE,
    ) -> dict[str, Any]:
        """Map base-form words to lemmas. Entries may be missing from the reply.

        Raises:
            LemmaResponseError: If the reply is not a JSON object.
        """
        content = await self._chat(
            LEMMA_MODEL,
            _LEMMA_PROMPT.format(language=language),
            json.dumps(words, ensure_ascii=False),
        )
        return parse_lemma_reply(content)

    # ------------------------------------------------------------------
    # Speech synthesis
    # ------------------------------------------------------------------

    async def synthesize(
        self,
        text: str,
        output_path: Path,
        voice: str = TTS_VOICE,
    ) -> Path:
        """Synthesize text to an mp3 file and return its path."""
        client = self._ensure_client()
        resp = await client.post(
            "/audio/speech",
            json={"model": TTS_MODEL, "input": text, "voice": voice, "response_format": "mp3"},
        )
        if resp.status_code != 200:
            raise OpenAIAPIError(resp.status_code, resp.text)

        output_path = Path(output_path)
        output_path.write_bytes(resp.content)
        logger.info("Synthesized %d chars to %s", len(text), output_path)
        return output_path
