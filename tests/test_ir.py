"""Unit tests for the IR dataclasses and their wire shapes.

WHY: Transcripts arrive as recognizer JSON and leave as session JSON. The
parser has to tolerate missing and null fields, and the chunk shapes use
the camelCase keys the player reads.
"""

import pytest

from transcript_aligner.config import DEFAULT_LANGUAGE
from transcript_aligner.core.ir import (
    Chunk,
    Segment,
    TextChunk,
    Transcript,
    WordTimestamp,
    join_word_texts,
)


class TestWordTimestamp:
    def test_from_dict_reads_word_key(self):
        w = WordTimestamp.from_dict({"word": " привет", "start": 0.1, "end": 0.5})
        assert w.text == " привет"
        assert w.start_s == pytest.approx(0.1)
        assert w.end_s == pytest.approx(0.5)
        assert w.lemma is None

    def test_from_dict_falls_back_to_text_key(self):
        assert WordTimestamp.from_dict({"text": "hi", "start": 0, "end": 1}).text == "hi"

    def test_null_word_falls_back_to_text(self):
        assert WordTimestamp.from_dict({"word": None, "text": "hi", "start": 0}).text == "hi"

    def test_missing_end_defaults_to_start(self):
        assert WordTimestamp.from_dict({"word": "x", "start": 2.0}).end_s == 2.0

    def test_lemma_round_trip(self):
        data = {"word": "кошки", "start": 0.0, "end": 1.0, "lemma": "кошка"}
        assert WordTimestamp.from_dict(data).to_dict() == data

    def test_to_dict_omits_missing_lemma(self):
        assert "lemma" not in WordTimestamp("x", 0.0, 1.0).to_dict()


class TestTranscriptFromDict:
    def test_parses_verbose_json(self, verbose_json):
        t = Transcript.from_dict(verbose_json)
        assert len(t.words) == 3
        assert len(t.segments) == 2
        assert t.language == "ru"
        assert t.duration_s == 3.0
        assert t.segments[0] == Segment("привет мир", 0.0, 1.2)

    def test_null_lists_become_empty(self):
        t = Transcript.from_dict({"words": None, "segments": None, "duration": 5})
        assert t.words == []
        assert t.segments == []
        assert t.duration_s == 5.0

    def test_missing_duration_uses_last_end(self):
        t = Transcript.from_dict({
            "words": [{"word": "a", "start": 0, "end": 4.0}],
            "segments": [{"text": "a", "start": 0, "end": 4.5}],
        })
        assert t.duration_s == 4.5

    def test_empty_dict(self):
        t = Transcript.from_dict({})
        assert t.words == []
        assert t.duration_s == 0.0
        assert t.language == DEFAULT_LANGUAGE

    def test_to_dict_shape(self, verbose_json):
        out = Transcript.from_dict(verbose_json).to_dict()
        assert out == verbose_json


class TestChunkShapes:
    def test_chunk_camel_case(self):
        chunk = Chunk("chunk-1", 1, 180.0, 360.0, 180.0, "Превью", 42)
        assert chunk.to_dict() == {
            "id": "chunk-1",
            "index": 1,
            "startTime": 180.0,
            "endTime": 360.0,
            "duration": 180.0,
            "previewText": "Превью",
            "wordCount": 42,
        }

    def test_text_chunk_default_status(self):
        chunk = TextChunk("chunk-0", 0, "Текст.", "Текст.", 1)
        assert chunk.to_dict()["status"] == "pending"
        assert chunk.to_dict()["previewText"] == "Текст."


class TestJoinWordTexts:
    def test_strips_padding_and_skips_empty(self):
        words = [WordTimestamp(" Hello,", 0, 1), WordTimestamp("  ", 1, 2), WordTimestamp(" world", 2, 3)]
        assert join_word_texts(words) == "Hello, world"

    def test_empty(self):
        assert join_word_texts([]) == ""
