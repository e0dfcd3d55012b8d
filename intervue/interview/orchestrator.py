"""
Interview orchestrator: drives one live session from call start to the
persisted analysis.
"""
import logging
import math
import threading
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .events import (
    EventType, EventLogger, SessionMetrics, SessionEvent,
    TranscriptMessageEvent, TransportErrorEvent, TransportErrorKind,
)
from .analysis import analyze_session_pauses, summarize_pauses
from .models import CallStatus, InterviewType, PersistResult, SessionContext, SessionOutcome
from .pipeline import AnalysisPipeline
from .prompts import format_questions, time_limit_message
from .schemas import FeedbackResult, ToneResult
from .transcript import UtteranceStore
from .transport import VapiTransport
from ..infrastructure.voice import VapiError
from ..config import (
    SESSION_TIME_LIMIT_SECONDS, UNKNOWN_DURATION, TONE_FAILURE_SENTINEL,
    FEEDBACK_FAILURE_TEXT, GENERATED_INTERVIEW_FEEDBACK_TEXT,
)

logger = logging.getLogger("orchestrator")

MICROPHONE_NOTICE = (
    "The interviewer cannot hear your microphone. Please check that it is not muted, "
    "that microphone permissions are allowed, and try speaking louder."
)


def parse_timestamp(value: Any) -> Optional[float]:
    """Epoch seconds from an ISO string or an epoch number (seconds or milliseconds)."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return value / 1000.0 if value > 1e12 else float(value)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()
    except ValueError:
        logger.warning("Unparseable utterance timestamp: %r", value)
        return None


def format_duration(start: Optional[float], end: float) -> str:
    """Render elapsed time as "{minutes}m {seconds}s"."""
    if start is None:
        return UNKNOWN_DURATION
    elapsed = max(0, math.floor(end - start))
    return f"{elapsed // 60}m {elapsed % 60}s"


class InterviewOrchestrator:
    """
    Single consumer of a session's transport events.

    Accumulates the transcript while the call is live, enforces the
    session time limit, and hands the closed transcript to the analysis
    pipeline exactly once when the call finishes.
    """

    def __init__(self,
                 transport: VapiTransport,
                 pipeline: AnalysisPipeline,
                 context: SessionContext,
                 assistant_config: Optional[Dict[str, Any]] = None,
                 workflow_id: Optional[str] = None,
                 time_limit_seconds: float = SESSION_TIME_LIMIT_SECONDS,
                 timer_factory: Callable[[float, Callable[[], None]], Any] = threading.Timer,
                 clock: Callable[[], float] = time.time):
        self.transport = transport
        self.bus = transport.bus
        self.pipeline = pipeline
        self.context = context
        self.assistant_config = assistant_config or {}
        self.workflow_id = workflow_id
        self.time_limit_seconds = time_limit_seconds
        self.timer_factory = timer_factory
        self.clock = clock

        self.store = UtteranceStore()
        self.status = CallStatus.INACTIVE
        self.is_speaking = False
        self.notice: Optional[str] = None
        self.outcome: Optional[SessionOutcome] = None

        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()

        self._start_time: Optional[float] = None
        self._timer = None
        self._analysis_started = False
        self._torn_down = False
        self._lock = threading.RLock()

        self._subscriptions: List[Tuple[EventType, Callable[[SessionEvent], None]]] = [
            (EventType.CALL_START, self._on_call_start),
            (EventType.CALL_END, self._on_call_end),
            (EventType.MESSAGE, self._on_message),
            (EventType.SPEECH_START, self._on_speech_start),
            (EventType.SPEECH_END, self._on_speech_end),
            (EventType.ERROR, self._on_error),
        ]
        for event_type, handler in self._subscriptions:
            self.bus.subscribe(event_type, handler)
        self.bus.subscribe_all(self.event_logger.handle_event)
        self.bus.subscribe_all(self.metrics.handle_event)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Begin the session with the configured assistant.

        Generate sessions run the configured workflow with the candidate's
        name and id; interview sessions pass the question list.

        Returns:
            True if the platform accepted the call
        """
        self.status = CallStatus.CONNECTING
        self._start_time = self.clock()

        if self.context.interview_type == InterviewType.GENERATE:
            assistant = None
            variable_values = {
                "username": self.context.candidate_name,
                "userid": self.context.user_id,
                **self.assistant_config,
            }
            workflow_id = self.workflow_id
        else:
            assistant = self.assistant_config
            variable_values = {
                "questions": format_questions(self.context.questions),
                **self.assistant_config,
            }
            workflow_id = None

        try:
            self.transport.start(assistant, variable_values, workflow_id)
        except (VapiError, requests.RequestException, RuntimeError) as e:
            logger.error("Error starting call: %s", e)
            self.status = CallStatus.INACTIVE
            return False
        return True

    def stop(self) -> Optional[SessionOutcome]:
        """Hang up from our side and run the analysis."""
        self.transport.stop()
        return self._finish()

    def teardown(self) -> None:
        """Detach from the transport; no handler runs and no timer fires afterwards."""
        with self._lock:
            self._torn_down = True
            for event_type, handler in self._subscriptions:
                self.bus.unsubscribe(event_type, handler)
            self.bus.unsubscribe_all(self.event_logger.handle_event)
            self.bus.unsubscribe_all(self.metrics.handle_event)
            self._cancel_timer()
        logger.info("Session torn down (status=%s)", self.status.value)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_call_start(self, event: SessionEvent) -> None:
        with self._lock:
            if self._torn_down:
                return
            self.status = CallStatus.ACTIVE
            self._start_time = event.timestamp
            self._cancel_timer()
            self._timer = self.timer_factory(self.time_limit_seconds, self._on_time_limit)
            self._timer.start()
        logger.info("Call started; time limit %.0fs", self.time_limit_seconds)

    def _on_call_end(self, event: SessionEvent) -> None:
        logger.info("Call ended (%d utterances)", len(self.store))
        self._finish()

    def _on_message(self, event: TranscriptMessageEvent) -> None:
        if self.store.closed:
            logger.warning("Dropping message delivered after the session ended")
            return
        self.store.append_message(event.message)

    def _on_speech_start(self, event: SessionEvent) -> None:
        self.is_speaking = True

    def _on_speech_end(self, event: SessionEvent) -> None:
        self.is_speaking = False

    def _on_error(self, event: TransportErrorEvent) -> None:
        kind = event.kind
        if kind == TransportErrorKind.ENDED_NORMALLY:
            logger.info("Call ended normally")
            self._finish()
            return

        if kind == TransportErrorKind.AUDIO_NOT_DETECTED:
            logger.error("Microphone audio not detected by the voice platform")
            self.notice = MICROPHONE_NOTICE
        else:
            logger.error("Unhandled transport error: %s", event.data.get("error"))

        with self._lock:
            self._cancel_timer()
            if self.status != CallStatus.FINISHED:
                self.status = CallStatus.INACTIVE

    def _on_time_limit(self) -> None:
        with self._lock:
            if self._torn_down or self.status != CallStatus.ACTIVE:
                return
            self._timer = None
        logger.info("Time limit reached, closing the session")
        self.transport.say(time_limit_message(self.context.language), end_call_after=True)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def duration(self) -> str:
        end = parse_timestamp(self.store.last_recorded_at())
        return format_duration(self._start_time, end if end is not None else self.clock())

    def _finish(self) -> Optional[SessionOutcome]:
        with self._lock:
            self.status = CallStatus.FINISHED
            self._cancel_timer()
            if self._analysis_started or self._torn_down:
                return self.outcome
            self._analysis_started = True
            self.store.close()

        duration = self.duration()
        logger.info("Analyzing session (%d utterances, duration %s)", len(self.store), duration)
        try:
            self.outcome = self.pipeline.run(self.store, self.context, duration)
        except Exception as e:
            logger.exception("Session analysis failed")
            self.outcome = self._degraded_outcome(duration, e)
        return self.outcome

    def _degraded_outcome(self, duration: str, error: Exception) -> SessionOutcome:
        """Outcome for a session whose analysis crashed; nothing was recorded."""
        pauses = analyze_session_pauses(self.store, self.pipeline.pause_threshold)
        if self.context.interview_type == InterviewType.GENERATE:
            feedback = FeedbackResult.raw_text(GENERATED_INTERVIEW_FEEDBACK_TEXT)
            next_view = "dashboard"
        else:
            feedback = FeedbackResult.raw_text(FEEDBACK_FAILURE_TEXT)
            next_view = "analysis"
        return SessionOutcome(
            pauses=pauses,
            pause_summary=summarize_pauses(pauses),
            tone=ToneResult.sentinel(TONE_FAILURE_SENTINEL),
            feedback=feedback,
            duration=duration,
            persist_result=PersistResult(success=False, status=None, body=str(error)),
            next_view=next_view,
        )
