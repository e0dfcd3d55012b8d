"""Tests for the tone, feedback and skill extraction clients."""

from unittest.mock import patch

import requests
from google.auth.exceptions import DefaultCredentialsError

from intervue.infrastructure.llm import LLMError
from intervue.interview.schemas import ReplyKind
from intervue.interview.services import FeedbackGeneratorClient, SkillExtractor, ToneClassifierClient
from intervue.interview.testing import MockLLMClient, mock_http_response

TONE_URL = "https://app.test/api/analyze-tone"
FEEDBACK_URL = "https://app.test/api/interview-feedback"


class TestToneClassifierClient:
    @patch("intervue.interview.services.requests.post")
    def test_structured_reply(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(
            json_body={"tone": {"confidence": 0.9, "tone": "calm", "energy": "low", "summary": "ok"}})
        result = ToneClassifierClient(TONE_URL, api_token="tok").classify("I like data.")

        assert result.is_structured
        assert result.tone == "calm"
        args, kwargs = mock_post.call_args
        assert args[0] == TONE_URL
        assert kwargs["json"] == {"text": "I like data."}
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    @patch("intervue.interview.services.requests.post")
    def test_fenced_string_reply(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(
            json_body={"tone": '```json\n{"tone": "nervous", "confidence": 0.4}\n```'})
        result = ToneClassifierClient(TONE_URL).classify("um")
        assert result.tone == "nervous"
        assert result.confidence == 0.4

    @patch("intervue.interview.services.requests.post")
    def test_endpoint_down_returns_sentinel(self, mock_post) -> None:
        mock_post.side_effect = requests.ConnectionError("refused")
        result = ToneClassifierClient(TONE_URL).classify("text")
        assert result.is_sentinel
        assert result.to_storage() == "Could not analyze tone."

    @patch("intervue.interview.services.requests.post")
    def test_error_status_returns_sentinel(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(status_code=500, text="boom")
        assert ToneClassifierClient(TONE_URL).classify("text").to_storage() == "Could not analyze tone."

    @patch("intervue.interview.services.requests.post")
    def test_missing_tone_field(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body={})
        result = ToneClassifierClient(TONE_URL).classify("text")
        assert result.kind == ReplyKind.SENTINEL
        assert result.to_storage() == "No tone detected."

    @patch("intervue.interview.services.requests.post")
    def test_no_auth_header_without_token(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body={"tone": "calm"})
        ToneClassifierClient(TONE_URL).classify("text")
        assert "Authorization" not in mock_post.call_args.kwargs["headers"]


class TestFeedbackGeneratorClient:
    @patch("intervue.interview.services.requests.post")
    def test_plain_text_feedback(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body={"feedback": "Great job!"})
        result = FeedbackGeneratorClient(FEEDBACK_URL).generate("user: hi")
        assert result.to_dict() == {"raw": "Great job!"}

    @patch("intervue.interview.services.requests.post")
    def test_transcript_is_cut_to_budget(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body={"feedback": {"communication": "good"}})
        transcript = "x" * 9000
        result = FeedbackGeneratorClient(FEEDBACK_URL).generate(transcript)

        sent = mock_post.call_args.kwargs["json"]["transcript"]
        assert sent == transcript[:8000]
        assert result.communication == "good"

    @patch("intervue.interview.services.requests.post")
    def test_failure_fallback(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(status_code=502)
        result = FeedbackGeneratorClient(FEEDBACK_URL).generate("user: hi")
        assert result.to_dict() == {"raw": "Could not generate feedback."}

    @patch("intervue.interview.services.requests.post")
    def test_timeout_fallback(self, mock_post) -> None:
        mock_post.side_effect = requests.Timeout()
        result = FeedbackGeneratorClient(FEEDBACK_URL).generate("user: hi")
        assert result.raw == "Could not generate feedback."

    @patch("intervue.interview.services.requests.post")
    def test_non_json_body_fallback(self, mock_post) -> None:
        mock_post.return_value = mock_http_response(json_body=ValueError("not json"))
        assert FeedbackGeneratorClient(FEEDBACK_URL).generate("t").raw == "Could not generate feedback."


class TestSkillExtractor:
    def test_reply_is_trimmed(self) -> None:
        llm = MockLLMClient(["  python, sql, docker \n"])
        assert SkillExtractor(llm).extract("Resume...") == "python, sql, docker"
        assert "Resume..." in llm.request_history[0]["prompt"]
        assert llm.request_history[0]["temperature"] == 0.0

    def test_empty_reply_is_none(self) -> None:
        assert SkillExtractor(MockLLMClient(["   "])).extract("Resume") is None

    def test_llm_error_is_none(self) -> None:
        assert SkillExtractor(MockLLMClient(error=LLMError(500, "fail"))).extract("Resume") is None

    def test_credentials_error_is_none(self) -> None:
        assert SkillExtractor(MockLLMClient(error=DefaultCredentialsError("none"))).extract("Resume") is None
