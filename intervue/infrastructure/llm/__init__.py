"""LLM client for the Vertex AI Gemini REST API."""

from .client import VertexRestClient, LLMError

__all__ = ["VertexRestClient", "LLMError"]
