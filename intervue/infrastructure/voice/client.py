"""
Vapi REST client for starting and controlling web calls.
"""
import logging
from typing import Optional, Dict, Any

import requests

from ...config import VAPI_BASE_URL, HTTP_TIMEOUT

logger = logging.getLogger("vapi_client")


class VapiError(RuntimeError):
    """Raised when the Vapi API rejects a request."""

    def __init__(self, status: Optional[int], body: str):
        super().__init__(f"VAPI API error: {status} - {body}")
        self.status = status
        self.body = body


class VapiRestClient:
    """REST client for the Vapi voice AI platform."""

    def __init__(self, token: str, base_url: str = VAPI_BASE_URL, timeout: int = HTTP_TIMEOUT):
        if not token:
            raise ValueError("VAPI_WEB_TOKEN is required")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    def create_web_call(self,
                        assistant: Optional[Dict[str, Any]] = None,
                        variable_values: Optional[Dict[str, Any]] = None,
                        workflow_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Start a web call.

        The assistant configuration is sent flat, not nested, alongside the
        template variable values and an optional workflow id.

        Returns:
            The created call object

        Raises:
            VapiError: If the API returns a non-2xx status
        """
        call_data: Dict[str, Any] = dict(assistant or {})
        call_data["variableValues"] = variable_values or {}
        if workflow_id:
            call_data["workflowId"] = workflow_id

        logger.info("Starting Vapi web call (workflow=%s)", workflow_id or "-")
        resp = requests.post(f"{self.base_url}/call/web", headers=self._headers(),
                             json=call_data, timeout=self.timeout)
        if not resp.ok:
            logger.error("Vapi start failed: %s %s", resp.status_code, resp.text)
            raise VapiError(resp.status_code, resp.text)

        call = resp.json()
        logger.debug("Vapi start response: %s", call)
        return call

    def send_control(self, control_url: str, message: Dict[str, Any]) -> bool:
        """Send a live call control message ("say", "end-call") to a running call."""
        try:
            resp = requests.post(control_url, json=message, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Vapi control %s failed: %s", message.get("type"), e)
            return False
        if not resp.ok:
            logger.error("Vapi control %s returned %s: %s", message.get("type"), resp.status_code, resp.text)
            return False
        return True
