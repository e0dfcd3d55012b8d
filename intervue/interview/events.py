"""
Event-driven delivery of live session transport events.
"""
import logging
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, List, Callable, Optional

from ..config import AUDIO_NOT_DETECTED_REASON, MEETING_ENDED_MESSAGE

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Lifecycle events delivered by the voice transport."""
    CALL_START = "call-start"
    CALL_END = "call-end"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    MESSAGE = "message"
    ERROR = "error"


class TransportErrorKind(str, Enum):
    """Known shapes of transport errors."""
    ENDED_NORMALLY = "ended_normally"
    AUDIO_NOT_DETECTED = "audio_not_detected"
    UNKNOWN = "unknown"


def classify_transport_error(error: Any) -> TransportErrorKind:
    """Map a raw transport error payload onto a known error kind."""
    if not isinstance(error, dict):
        return TransportErrorKind.UNKNOWN
    if error.get("type") == "ejected" and error.get("msg") == MEETING_ENDED_MESSAGE:
        return TransportErrorKind.ENDED_NORMALLY
    if error.get("endedReason") == AUDIO_NOT_DETECTED_REASON:
        return TransportErrorKind.AUDIO_NOT_DETECTED
    return TransportErrorKind.UNKNOWN


@dataclass
class SessionEvent(ABC):
    """Base class for all transport events."""
    event_type: EventType
    call_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class CallStartedEvent(SessionEvent):
    """Event fired when the call connects."""
    def __init__(self, call_id: str, timestamp: float):
        super().__init__(event_type=EventType.CALL_START, call_id=call_id, timestamp=timestamp, data={})


@dataclass
class CallEndedEvent(SessionEvent):
    """Event fired when the call ends, for any reason."""
    def __init__(self, call_id: str, timestamp: float):
        super().__init__(event_type=EventType.CALL_END, call_id=call_id, timestamp=timestamp, data={})


@dataclass
class SpeechStartedEvent(SessionEvent):
    """Event fired when the assistant starts speaking."""
    def __init__(self, call_id: str, timestamp: float):
        super().__init__(event_type=EventType.SPEECH_START, call_id=call_id, timestamp=timestamp, data={})


@dataclass
class SpeechEndedEvent(SessionEvent):
    """Event fired when the assistant stops speaking."""
    def __init__(self, call_id: str, timestamp: float):
        super().__init__(event_type=EventType.SPEECH_END, call_id=call_id, timestamp=timestamp, data={})


@dataclass
class TranscriptMessageEvent(SessionEvent):
    """Event fired for every transport message (transcripts included)."""
    def __init__(self, call_id: str, timestamp: float, message: Dict[str, Any]):
        super().__init__(
            event_type=EventType.MESSAGE,
            call_id=call_id,
            timestamp=timestamp,
            data={"message": message}
        )

    @property
    def message(self) -> Dict[str, Any]:
        return self.data["message"]


@dataclass
class TransportErrorEvent(SessionEvent):
    """Event fired when the transport reports an error."""
    def __init__(self, call_id: str, timestamp: float, error: Any):
        super().__init__(
            event_type=EventType.ERROR,
            call_id=call_id,
            timestamp=timestamp,
            data={"error": error, "kind": classify_transport_error(error)}
        )

    @property
    def kind(self) -> TransportErrorKind:
        return self.data["kind"]


EventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """Event bus between the transport and its single consumer."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from specific event type."""
        try:
            self._handlers.get(event_type, []).remove(handler)
            logger.debug(f"Unsubscribed handler from {event_type}")
        except ValueError:
            logger.warning(f"Handler not found for {event_type}")

    def unsubscribe_all(self, handler: EventHandler) -> None:
        """Remove a global handler."""
        try:
            self._global_handlers.remove(handler)
        except ValueError:
            logger.warning("Global handler not found")

    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)

    def emit(self, event: SessionEvent) -> None:
        """
        Emit an event to all subscribers.

        Handlers are snapshotted first, so a handler may unsubscribe while
        the event is being delivered.
        """
        logger.debug(f"Emitting event: {event.event_type} for call {event.call_id}")

        for handler in list(self._handlers.get(event.event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: SessionEvent) -> None:
        """Log event details."""
        self.logger.info(f"Event: {event.event_type.value} | Call: {event.call_id} | Data: {event.data}")


class SessionMetrics:
    """Collects counters from transport events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: SessionEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.CALL_START:
            self.calls_started += 1
        elif event.event_type == EventType.CALL_END:
            self.calls_ended += 1
        elif event.event_type == EventType.MESSAGE:
            self.messages_received += 1
            if event.data["message"].get("transcriptType") == "final":
                self.final_transcripts += 1
        elif event.event_type == EventType.ERROR:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "calls_started": self.calls_started,
            "calls_ended": self.calls_ended,
            "messages_received": self.messages_received,
            "final_transcripts": self.final_transcripts,
            "errors_occurred": self.errors_occurred,
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.calls_started = 0
        self.calls_ended = 0
        self.messages_received = 0
        self.final_transcripts = 0
        self.errors_occurred = 0


def build_event(name: str, call_id: str, timestamp: float, payload: Optional[Any] = None) -> SessionEvent:
    """Turn a raw transport callback (name + payload) into a typed event."""
    try:
        event_type = EventType(name)
    except ValueError:
        raise ValueError(f"Unknown transport event: {name!r}") from None

    if event_type == EventType.CALL_START:
        return CallStartedEvent(call_id, timestamp)
    if event_type == EventType.CALL_END:
        return CallEndedEvent(call_id, timestamp)
    if event_type == EventType.SPEECH_START:
        return SpeechStartedEvent(call_id, timestamp)
    if event_type == EventType.SPEECH_END:
        return SpeechEndedEvent(call_id, timestamp)
    if event_type == EventType.MESSAGE:
        return TranscriptMessageEvent(call_id, timestamp, payload or {})
    return TransportErrorEvent(call_id, timestamp, payload)
