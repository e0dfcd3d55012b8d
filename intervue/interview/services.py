"""
Service classes for the external analysis endpoints.

Every call here is a single blocking request with no retry. Failures are
logged and replaced with sentinel or fallback values; nothing raises.
"""
import logging
from typing import Dict, Optional

import requests
from google.auth.exceptions import GoogleAuthError

from .schemas import (
    ToneResult, FeedbackResult, parse_tone_reply, parse_feedback_reply,
)
from .prompts import InterviewPrompts
from ..infrastructure.llm import VertexRestClient, LLMError
from ..config import (
    HTTP_TIMEOUT, MAX_FEEDBACK_TRANSCRIPT_CHARS,
    TONE_FAILURE_SENTINEL, FEEDBACK_FAILURE_TEXT,
)

tone_logger = logging.getLogger("tone_client")
feedback_logger = logging.getLogger("feedback_client")
skills_logger = logging.getLogger("skill_extractor")


def _auth_headers(api_token: Optional[str]) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"
    return headers


class ToneClassifierClient:
    """Sends respondent text to the tone classification endpoint."""

    def __init__(self, endpoint: str, api_token: Optional[str] = None, timeout: int = HTTP_TIMEOUT):
        self.endpoint = endpoint
        self.api_token = api_token
        self.timeout = timeout

    def classify(self, text: str) -> ToneResult:
        """
        Classify the tone of the respondent's answers.

        Args:
            text: Newline-joined respondent utterances

        Returns:
            Structured or raw-text ToneResult, or the failure sentinel when the
            endpoint is unreachable or answers with a non-2xx status
        """
        try:
            resp = requests.post(self.endpoint, headers=_auth_headers(self.api_token),
                                 json={"text": text}, timeout=self.timeout)
        except requests.RequestException as e:
            tone_logger.error("Tone endpoint unreachable: %s", e)
            return ToneResult.sentinel(TONE_FAILURE_SENTINEL)

        if not resp.ok:
            tone_logger.warning("Tone endpoint returned %s", resp.status_code)
            return ToneResult.sentinel(TONE_FAILURE_SENTINEL)

        try:
            data = resp.json()
        except ValueError:
            tone_logger.error("Tone endpoint returned a non-JSON body")
            return ToneResult.sentinel(TONE_FAILURE_SENTINEL)

        payload = data.get("tone") if isinstance(data, dict) else None
        result = ToneResult.from_reply(parse_tone_reply(payload))
        tone_logger.info("Tone result (%s): %s", result.kind.value, result.to_storage())
        return result


class FeedbackGeneratorClient:
    """Sends the rendered transcript to the feedback endpoint."""

    def __init__(self,
                 endpoint: str,
                 api_token: Optional[str] = None,
                 max_chars: int = MAX_FEEDBACK_TRANSCRIPT_CHARS,
                 timeout: int = HTTP_TIMEOUT):
        self.endpoint = endpoint
        self.api_token = api_token
        self.max_chars = max_chars
        self.timeout = timeout

    def generate(self, transcript: str) -> FeedbackResult:
        """
        Request rubric feedback for a transcript.

        The transcript is cut to ``max_chars`` as a whole before sending.
        Non-JSON feedback is wrapped as ``{raw: text}``; any HTTP failure
        yields ``{raw: "Could not generate feedback."}``.
        """
        body = {"transcript": transcript[:self.max_chars]}
        try:
            resp = requests.post(self.endpoint, headers=_auth_headers(self.api_token),
                                 json=body, timeout=self.timeout)
        except requests.RequestException as e:
            feedback_logger.error("Feedback endpoint unreachable: %s", e)
            return FeedbackResult.raw_text(FEEDBACK_FAILURE_TEXT)

        if not resp.ok:
            feedback_logger.warning("Feedback endpoint returned %s", resp.status_code)
            return FeedbackResult.raw_text(FEEDBACK_FAILURE_TEXT)

        try:
            data = resp.json()
        except ValueError:
            feedback_logger.error("Feedback endpoint returned a non-JSON body")
            return FeedbackResult.raw_text(FEEDBACK_FAILURE_TEXT)

        payload = data.get("feedback") if isinstance(data, dict) else None
        result = FeedbackResult.from_reply(parse_feedback_reply(payload))
        if result.is_raw:
            feedback_logger.warning("Feedback was not structured; stored as raw text")
        return result


class SkillExtractor:
    """Pulls a comma-separated skill list out of resume text with the LLM."""

    def __init__(self, llm_client: VertexRestClient):
        self.llm_client = llm_client

    def extract(self, resume_text: str) -> Optional[str]:
        """Return the skill list verbatim (trimmed), or None if extraction failed."""
        prompt = InterviewPrompts.skill_extraction(resume_text)
        try:
            skills = self.llm_client.generate_content(prompt, temperature=0.0)
        except (LLMError, requests.RequestException, GoogleAuthError, OSError, ValueError) as e:
            # OSError: unreadable credentials file; ValueError: malformed key or reply body
            skills_logger.error("Skill extraction failed: %s", e)
            return None
        if not isinstance(skills, str):
            skills_logger.error("Skill extraction returned %s, expected text", type(skills).__name__)
            return None

        skills = skills.strip()
        skills_logger.info("Skills extracted: %s", skills)
        return skills or None
