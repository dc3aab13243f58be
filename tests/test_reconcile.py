"""Unit tests for the token reconciliation engine.

WHY: Reconciliation decides which timestamp every corrected or original
word ends up with. A single wrong resynchronisation would shift every
later highlight in the batch, so each recovery rule is pinned here.

HOW: align_tokens() is tested directly for each rule (match, fuzzy match,
insertion skip, merge recovery, no recovery, exhausted stream, lookahead
bound). The word-level builders are then tested on small transcripts.

RULES:
- Output length always equals the original length
- Timing of reconciled words never changes
- align_to_original() takes text from the original, timing from the recognizer
"""

import pytest

from transcript_aligner.core.ir import Segment, WordTimestamp
from transcript_aligner.core.reconcile import (
    Alignment,
    MatchPolicy,
    Outcome,
    align_to_original,
    align_tokens,
    apply_lemmas,
    normalize_lemma_map,
    rebuild_segments,
    reconcile_words,
    unique_base_forms,
)

M = Outcome.MATCHED
K = Outcome.KEEP_ORIGINAL
U = Outcome.UNKNOWN


def _outcomes(alignments):
    return [(a.outcome, a.corrected_index) for a in alignments]


def _words(*rows):
    return [WordTimestamp(text=t, start_s=s, end_s=e) for t, s, e in rows]


class TestAlignTokens:
    """Two-pointer alignment with bounded lookahead."""

    def test_identity(self):
        tokens = ["one", "two", "three"]
        result = align_tokens(tokens, tokens)
        assert result == [Alignment(0, M, 0), Alignment(1, M, 1), Alignment(2, M, 2)]

    def test_punctuation_and_case_ignored(self):
        result = align_tokens(["hello", "world"], ["Hello,", "world."])
        assert _outcomes(result) == [(M, 0), (M, 1)]

    def test_fuzzy_spelling_correction(self):
        result = align_tokens(["the", "qick", "brown", "fox"], ["The", "quick", "brown", "fox."])
        assert _outcomes(result) == [(M, 0), (M, 1), (M, 2), (M, 3)]

    def test_inserted_token_is_skipped(self):
        result = align_tokens(["привет", "мир"], ["привет", ",", "мир"])
        assert _outcomes(result) == [(M, 0), (M, 2)]

    def test_dropped_tokens_fall_back_then_resync(self):
        result = align_tokens(["hello", "um", "uh", "world"], ["hello", "world"])
        assert _outcomes(result) == [(M, 0), (K, None), (K, None), (M, 1)]

    def test_unrecoverable_token_keeps_corrected_pointer(self):
        result = align_tokens(["alpha", "beta", "gamma"], ["alpha", "zzzz", "gamma"])
        assert _outcomes(result) == [(M, 0), (K, None), (M, 2)]

    def test_corrected_stream_exhausted(self):
        result = align_tokens(["a", "b", "c"], ["a"])
        assert _outcomes(result) == [(M, 0), (K, None), (K, None)]

    def test_mark_unknown_policy(self):
        result = align_tokens(["a", "b", "c"], ["a"], MatchPolicy.MARK_UNKNOWN)
        assert _outcomes(result) == [(M, 0), (U, None), (U, None)]

    def test_three_insertions_within_lookahead(self):
        result = align_tokens(["start", "target"], ["start", "q1", "q2", "q3", "target"])
        assert _outcomes(result) == [(M, 0), (M, 4)]

    def test_four_insertions_exceed_lookahead(self):
        result = align_tokens(["start", "target"], ["start", "q1", "q2", "q3", "q4", "target"])
        assert _outcomes(result) == [(M, 0), (K, None)]

    def test_empty_original(self):
        assert align_tokens([], ["anything"]) == []

    def test_empty_corrected(self):
        result = align_tokens(["a", "b"], [], MatchPolicy.MARK_UNKNOWN)
        assert _outcomes(result) == [(U, None), (U, None)]

    def test_output_length_matches_original(self):
        original = "the cat sat on the mat today".split()
        corrected = "A dog, sat quietly on mats.".split()
        result = align_tokens(original, corrected)
        assert [a.original_index for a in result] == list(range(len(original)))

    def test_matched_corrected_indices_increase(self):
        original = "раз два три четыре пять шесть".split()
        corrected = "Раз, два... три! Ой, четыре пять шесть.".split()
        matched = [a.corrected_index for a in align_tokens(original, corrected) if a.outcome is M]
        assert matched == sorted(matched)
        assert len(matched) == 6


class TestReconcileWords:
    def test_corrected_text_with_original_timing(self, hello_transcript):
        out = reconcile_words(hello_transcript.words, ["Hello,", "world."])
        assert [w.text for w in out] == [" Hello,", " world."]
        assert [(w.start_s, w.end_s) for w in out] == [(0.0, 0.5), (0.5, 1.0)]

    def test_unmatched_word_unchanged(self):
        words = _words(("alpha", 0.0, 1.0), ("beta", 1.0, 2.0), ("gamma", 2.0, 3.0))
        out = reconcile_words(words, ["Alpha", "zzzz", "Gamma."])
        assert [w.text for w in out] == ["Alpha", "beta", "Gamma."]

    def test_lemma_preserved(self):
        words = [WordTimestamp(text=" кошки", start_s=0.0, end_s=1.0, lemma="кошка")]
        out = reconcile_words(words, ["Кошки!"])
        assert out[0].text == " Кошки!"
        assert out[0].lemma == "кошка"

    def test_no_corrected_tokens(self, hello_transcript):
        out = reconcile_words(hello_transcript.words, [])
        assert out == hello_transcript.words

    def test_input_not_mutated(self, hello_transcript):
        reconcile_words(hello_transcript.words, ["Hello,", "world."])
        assert hello_transcript.words[0].text == " hello"


class TestAlignToOriginal:
    def test_unknown_word_interpolated_between_neighbours(self):
        recognized = _words((" one", 0.0, 0.5), (" three", 1.0, 1.5), (" four", 1.5, 2.0))
        out = align_to_original(["one", "two", "three", "four"], recognized)
        assert [w.text for w in out] == ["one", "two", "three", "four"]
        assert (out[1].start_s, out[1].end_s) == pytest.approx((0.5, 0.9))
        assert (out[2].start_s, out[2].end_s) == (1.0, 1.5)

    def test_text_comes_from_original(self):
        recognized = _words((" превет", 0.0, 0.5))
        out = align_to_original(["Привет!"], recognized)
        assert out[0].text == "Привет!"
        assert (out[0].start_s, out[0].end_s) == (0.0, 0.5)

    def test_trailing_unknowns_use_duration(self):
        recognized = _words((" one", 0.0, 1.0))
        out = align_to_original(["one", "two", "three"], recognized, duration_s=4.0)
        assert (out[1].start_s, out[1].end_s) == pytest.approx((1.0, 2.2))
        assert (out[2].start_s, out[2].end_s) == pytest.approx((2.5, 3.7))

    def test_duration_defaults_to_last_recognized_end(self):
        recognized = _words((" one", 0.0, 1.0), (" zzzz", 1.0, 3.0))
        out = align_to_original(["one", "two"], recognized)
        assert out[1].start_s == pytest.approx(1.0)
        assert out[1].end_s == pytest.approx(1.0 + 0.8 * 2.0)

    def test_no_recognized_words(self):
        out = align_to_original(["a", "b"], [])
        assert [(w.start_s, w.end_s) for w in out] == [(0.0, 0.0), (0.0, 0.0)]

    def test_empty_original(self):
        assert align_to_original([], _words((" x", 0.0, 1.0))) == []


class TestRebuildSegments:
    def test_text_rebuilt_from_contained_words(self):
        segments = [Segment("hello world", 0.0, 1.0), Segment("again", 1.5, 2.0)]
        words = _words((" Hello,", 0.0, 0.5), (" world.", 0.5, 1.0), (" Again!", 1.5, 2.0))
        out = rebuild_segments(segments, words)
        assert [s.text for s in out] == ["Hello, world.", "Again!"]
        assert [(s.start_s, s.end_s) for s in out] == [(0.0, 1.0), (1.5, 2.0)]

    def test_straddling_word_excluded(self):
        segments = [Segment("a b", 0.0, 1.0)]
        words = _words((" A", 0.0, 0.5), (" b", 0.9, 1.2))
        assert rebuild_segments(segments, words)[0].text == "A"

    def test_empty_segment_keeps_original_text(self):
        segments = [Segment("silence", 5.0, 6.0)]
        assert rebuild_segments(segments, _words((" x", 0.0, 1.0)))[0].text == "silence"


class TestLemmaHelpers:
    def test_unique_base_forms_first_seen_order(self):
        words = _words((" Кошки", 0, 1), (" бегут", 1, 2), (" кошки!", 2, 3), (",", 3, 3))
        assert unique_base_forms(words) == ["кошки", "бегут"]

    def test_normalize_lemma_map_drops_invalid(self):
        raw = {"Кошки": "Кошка", "бегут": None, "быстро": "", "да": 3}
        assert normalize_lemma_map(raw) == {"кошки": "кошка"}

    def test_apply_lemmas_by_base_form(self):
        words = _words((" Кошки,", 0, 1), (" бегут", 1, 2))
        out = apply_lemmas(words, {"кошки": "кошка"})
        assert out[0].lemma == "кошка"
        assert out[1].lemma is None
        assert out[0].text == " Кошки,"

    def test_apply_lemmas_leaves_existing_lemma_without_entry(self):
        words = [WordTimestamp(text="мир", start_s=0, end_s=1, lemma="мир")]
        assert apply_lemmas(words, {})[0].lemma == "мир"
