"""Infrastructure components for the intervue pipeline.

This module contains the low-level clients for the external services the
pipeline talks to over HTTP.
"""

# Record persistence
from .data import SupabaseRecordStore, StoreResponse

# LLM infrastructure
from .llm import VertexRestClient, LLMError

# Voice AI
from .voice import VapiRestClient, VapiError

__all__ = [
    # Persistence
    "SupabaseRecordStore", "StoreResponse",

    # LLM client
    "VertexRestClient", "LLMError",

    # Voice AI
    "VapiRestClient", "VapiError",
]
