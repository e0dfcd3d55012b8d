"""
Live session transport over the Vapi voice platform.

The SDK owns the wire format. This adapter turns its callbacks into typed
events on a SessionEventBus and exposes the two session commands.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

from .events import SessionEventBus, build_event
from ..infrastructure.voice import VapiRestClient

logger = logging.getLogger("transport")


class VapiTransport:
    """Begin/end commands plus event delivery for one call."""

    def __init__(self,
                 client: Optional[VapiRestClient] = None,
                 bus: Optional[SessionEventBus] = None,
                 clock: Callable[[], float] = time.time):
        self.client = client
        self.bus = bus or SessionEventBus()
        self.clock = clock
        self.call: Dict[str, Any] = {}

    @property
    def call_id(self) -> str:
        return self.call.get("id") or "unknown"

    @property
    def control_url(self) -> Optional[str]:
        return (self.call.get("monitor") or {}).get("controlUrl")

    def start(self,
              assistant: Optional[Dict[str, Any]],
              variable_values: Dict[str, Any],
              workflow_id: Optional[str] = None) -> Dict[str, Any]:
        """Begin a session. Raises VapiError if the platform refuses."""
        if self.client is None:
            raise RuntimeError("No Vapi client configured; cannot start a call")
        self.call = self.client.create_web_call(assistant, variable_values, workflow_id)
        logger.info("Call %s created", self.call_id)
        return self.call

    def stop(self) -> None:
        """End the session. Delivery of the final call-end event is up to the platform."""
        if self.client is not None and self.control_url:
            self.client.send_control(self.control_url, {"type": "end-call"})
        else:
            logger.info("Stop call requested (no control URL)")

    def say(self, message: str, end_call_after: bool = False) -> None:
        if self.client is not None and self.control_url:
            self.client.send_control(self.control_url, {
                "type": "say",
                "content": message,
                "endCallAfterSpoken": end_call_after,
            })
        else:
            logger.warning("Cannot speak on call %s: no control URL", self.call_id)

    def deliver(self, name: str, payload: Optional[Any] = None, timestamp: Optional[float] = None) -> None:
        """Push one raw SDK callback into the event stream."""
        when = timestamp if timestamp is not None else self.clock()
        self.bus.emit(build_event(name, self.call_id, when, payload))
