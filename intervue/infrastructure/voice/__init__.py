"""Voice AI platform client."""

from .client import VapiRestClient, VapiError

__all__ = ["VapiRestClient", "VapiError"]
