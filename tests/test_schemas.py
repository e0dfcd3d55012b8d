"""Tests for reply normalization of the tone and feedback endpoints."""

import json

from intervue.interview.schemas import (
    FEEDBACK_COMPETENCIES, FeedbackResult, ParsedReply, ReplyKind, ToneResult,
    normalize_feedback, normalize_tone, parse_feedback_reply, parse_tone_reply, strip_code_fence,
)

TONE = {"confidence": 0.8, "tone": "calm", "energy": "medium", "summary": "steady"}


class TestStripCodeFence:
    def test_json_fence(self) -> None:
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self) -> None:
        assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_json_prefix(self) -> None:
        assert strip_code_fence('json {"a": 1}') == '{"a": 1}'

    def test_plain_text_untouched(self) -> None:
        assert strip_code_fence("Calm and confident") == "Calm and confident"


class TestParseToneReply:
    def test_object_passes_through(self) -> None:
        assert parse_tone_reply(TONE) == ParsedReply.structured(TONE)

    def test_fenced_json_round_trip(self) -> None:
        reply = parse_tone_reply("```json\n" + json.dumps(TONE) + "\n```")
        assert reply.kind == ReplyKind.STRUCTURED
        assert reply.value == TONE

    def test_prose_is_raw_text(self) -> None:
        reply = parse_tone_reply("```Calm and confident```")
        assert reply == ParsedReply.raw_text("Calm and confident")

    def test_non_object_json_is_raw_text(self) -> None:
        assert parse_tone_reply("[1, 2]").kind == ReplyKind.RAW_TEXT

    def test_missing_tone_is_sentinel(self) -> None:
        assert parse_tone_reply(None) == ParsedReply.sentinel("No tone detected.")
        assert parse_tone_reply(42).kind == ReplyKind.SENTINEL


class TestToneResult:
    def test_structured_storage(self) -> None:
        result = normalize_tone(TONE)
        assert result.is_structured
        assert result.to_storage() == TONE

    def test_storage_keeps_unknown_fields(self) -> None:
        result = normalize_tone({**TONE, "pace": "fast"})
        assert result.to_storage() == {**TONE, "pace": "fast"}
        assert result.tone == "calm"

    def test_storage_does_not_invent_missing_fields(self) -> None:
        assert normalize_tone({"tone": "calm"}).to_storage() == {"tone": "calm"}

    def test_zero_confidence_is_kept(self) -> None:
        assert normalize_tone({**TONE, "confidence": 0}).to_storage()["confidence"] == 0

    def test_sentinel_storage_is_plain_string(self) -> None:
        result = ToneResult.sentinel("Could not analyze tone.")
        assert result.is_sentinel
        assert result.to_storage() == "Could not analyze tone."

    def test_normalize_is_idempotent(self) -> None:
        for value in (TONE, "```json\n" + json.dumps(TONE) + "\n```", "Calm", None):
            once = normalize_tone(value)
            assert normalize_tone(once) == once
            assert normalize_tone(once.to_storage()).to_storage() == once.to_storage()


class TestFeedback:
    def test_plain_text_is_wrapped_as_raw(self) -> None:
        result = normalize_feedback("Great job!")
        assert result.is_raw
        assert result.to_dict() == {"raw": "Great job!"}

    def test_json_string_is_structured(self) -> None:
        result = normalize_feedback('{"communication": "clear", "final_assessment": "hire"}')
        assert not result.is_raw
        assert result.communication == "clear"
        assert result.to_dict() == {"communication": "clear", "final_assessment": "hire"}

    def test_fenced_json_string_is_structured(self) -> None:
        result = normalize_feedback('```json\n{"leadership": 4}\n```')
        assert result.leadership == 4

    def test_unknown_keys_are_kept(self) -> None:
        result = FeedbackResult.from_dict({"communication": "ok", "overall_score": 7})
        assert result.extras == {"overall_score": 7}
        assert result.to_dict() == {"communication": "ok", "overall_score": 7}

    def test_missing_feedback_is_empty_raw(self) -> None:
        assert parse_feedback_reply(None) == ParsedReply.raw_text("")

    def test_thirteen_competencies(self) -> None:
        assert len(FEEDBACK_COMPETENCIES) == 13
        data = {name: i for i, name in enumerate(FEEDBACK_COMPETENCIES)}
        assert normalize_feedback(data).competencies() == data

    def test_normalize_is_idempotent(self) -> None:
        for value in ("Great job!", {"communication": "clear"}, '{"motivation": "high"}'):
            once = normalize_feedback(value)
            assert normalize_feedback(once) == once
            assert normalize_feedback(once.to_dict()) == once
