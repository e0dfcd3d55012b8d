"""Tests for transport events and error classification."""

import pytest

from intervue.interview.events import (
    EventType, SessionEventBus, SessionMetrics, TransportErrorKind,
    build_event, classify_transport_error,
)


class TestClassifyTransportError:
    def test_meeting_ended(self) -> None:
        error = {"type": "ejected", "msg": "Meeting has ended"}
        assert classify_transport_error(error) == TransportErrorKind.ENDED_NORMALLY

    def test_audio_not_detected(self) -> None:
        error = {"endedReason": "call.in-progress.error-assistant-did-not-receive-customer-audio"}
        assert classify_transport_error(error) == TransportErrorKind.AUDIO_NOT_DETECTED

    def test_anything_else(self) -> None:
        assert classify_transport_error({"type": "ejected", "msg": "Kicked"}) == TransportErrorKind.UNKNOWN
        assert classify_transport_error("boom") == TransportErrorKind.UNKNOWN
        assert classify_transport_error(None) == TransportErrorKind.UNKNOWN


class TestBuildEvent:
    def test_message_event(self) -> None:
        event = build_event("message", "call-1", 10.0, {"type": "transcript"})
        assert event.event_type == EventType.MESSAGE
        assert event.message == {"type": "transcript"}

    def test_error_event_carries_kind(self) -> None:
        event = build_event("error", "call-1", 10.0, {"type": "ejected", "msg": "Meeting has ended"})
        assert event.kind == TransportErrorKind.ENDED_NORMALLY

    def test_unknown_event(self) -> None:
        with pytest.raises(ValueError):
            build_event("volume-level", "call-1", 10.0)


class TestSessionEventBus:
    def test_typed_and_global_handlers(self) -> None:
        bus = SessionEventBus()
        typed, everything = [], []
        bus.subscribe(EventType.CALL_START, typed.append)
        bus.subscribe_all(everything.append)

        bus.emit(build_event("call-start", "c", 1.0))
        bus.emit(build_event("call-end", "c", 2.0))

        assert [e.event_type for e in typed] == [EventType.CALL_START]
        assert [e.event_type for e in everything] == [EventType.CALL_START, EventType.CALL_END]

    def test_failing_handler_does_not_stop_delivery(self) -> None:
        bus = SessionEventBus()
        seen = []

        def broken(event):
            raise RuntimeError("handler bug")

        bus.subscribe(EventType.CALL_END, broken)
        bus.subscribe(EventType.CALL_END, seen.append)
        bus.emit(build_event("call-end", "c", 1.0))
        assert len(seen) == 1

    def test_unsubscribe(self) -> None:
        bus = SessionEventBus()
        seen = []
        bus.subscribe(EventType.MESSAGE, seen.append)
        bus.subscribe_all(seen.append)
        bus.unsubscribe(EventType.MESSAGE, seen.append)
        bus.unsubscribe_all(seen.append)

        bus.emit(build_event("message", "c", 1.0, {}))
        assert seen == []
        assert bus.handler_count() == 0

    def test_clear_handlers(self) -> None:
        bus = SessionEventBus()
        bus.subscribe(EventType.ERROR, lambda e: None)
        bus.subscribe_all(lambda e: None)
        bus.clear_handlers()
        assert bus.handler_count() == 0


class TestSessionMetrics:
    def test_counts(self) -> None:
        metrics = SessionMetrics()
        for name, payload in [
            ("call-start", None),
            ("message", {"type": "transcript", "transcriptType": "partial"}),
            ("message", {"type": "transcript", "transcriptType": "final"}),
            ("error", "boom"),
            ("call-end", None),
        ]:
            metrics.handle_event(build_event(name, "c", 1.0, payload))

        assert metrics.get_metrics() == {
            "calls_started": 1,
            "calls_ended": 1,
            "messages_received": 2,
            "final_transcripts": 1,
            "errors_occurred": 1,
        }
        metrics.reset()
        assert metrics.calls_started == 0
