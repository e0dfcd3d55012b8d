"""
Vertex AI REST client for LLM interactions.
"""
import json
import logging
from typing import Optional, Dict, Any

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import VERTEX_LOCATION, SKILLS_MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS

logger = logging.getLogger("llm_client")

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class LLMError(RuntimeError):
    """Raised when the Vertex endpoint rejects a request."""

    def __init__(self, status: int, body: str):
        super().__init__(f"Vertex REST error {status}: {body}")
        self.status = status
        self.body = body


class VertexRestClient:
    """REST-based client for Vertex AI Gemini models."""

    def __init__(self,
                 project: str,
                 location: str = VERTEX_LOCATION,
                 model: str = SKILLS_MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT):
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.timeout = timeout
        self.base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        self.model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        self._credentials = None

    def _token(self) -> str:
        """Return a valid OAuth token, loading or refreshing credentials as needed."""
        if self._credentials is None:
            if self.credentials_json:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_json, scopes=[CLOUD_PLATFORM_SCOPE]
                )
            else:
                self._credentials, _ = google.auth.default(scopes=[CLOUD_PLATFORM_SCOPE])

        if not self._credentials.valid:
            self._credentials.refresh(google.auth.transport.requests.Request())
        return self._credentials.token

    def generate_content(self,
                         prompt_text: str,
                         temperature: float = 0.0,
                         max_output_tokens: int = MAX_OUTPUT_TOKENS) -> str:
        """Generate content using the Vertex AI REST API."""
        url = f"{self.base_url}/{self.model_resource}:generateContent"
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt_text}]}],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }
        headers = {
            "Authorization": f"Bearer {self._token()}",
            "Content-Type": "application/json",
        }

        resp = requests.post(url, headers=headers, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise LLMError(resp.status_code, resp.text)

        text = self._parse_response_text(resp.json())
        logger.debug("Raw LLM output: %r", text)
        return text

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Extract text content from a generateContent response.
        Joins every text part of the first candidate.
        """
        if not isinstance(resp_json, dict):
            raise LLMError(200, f"Unexpected response body: {resp_json!r}")
        cands = resp_json.get("candidates") or []
        if cands:
            parts = (cands[0].get("content") or {}).get("parts") or []
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)

        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        # Last resort: return JSON for inspection
        return json.dumps(resp_json, separators=(",", ":"))
