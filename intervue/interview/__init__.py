"""Interview pipeline components.

This module contains the business logic that runs after a voice interview:
transcript accumulation, pause and tone analysis, feedback generation and
find-or-create persistence of the session record.
"""

# Core orchestrator class
from .orchestrator import InterviewOrchestrator, format_duration

# Data models
from .models import (
    Role, CallStatus, InterviewType, Word, Utterance, PauseRecord,
    AnswerPauses, PauseSummary, SessionContext, PersistResult, SessionOutcome
)

# Transcript and analysis
from .transcript import UtteranceStore, utterance_from_message
from .analysis import analyze_pauses, analyze_session_pauses, summarize_pauses

# Structured schemas
from .schemas import (
    ReplyKind, ParsedReply, ToneResult, FeedbackResult,
    parse_tone_reply, parse_feedback_reply, normalize_tone, normalize_feedback,
    strip_code_fence
)

# Service classes
from .services import ToneClassifierClient, FeedbackGeneratorClient, SkillExtractor
from .recorder import SessionRecorder, build_resume_url
from .pipeline import AnalysisPipeline
from .transport import VapiTransport

# Event system
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    EventType, SessionEvent, CallStartedEvent, CallEndedEvent,
    SpeechStartedEvent, SpeechEndedEvent, TranscriptMessageEvent,
    TransportErrorEvent, TransportErrorKind, classify_transport_error, build_event
)

__all__ = [
    # Orchestrator
    "InterviewOrchestrator", "format_duration",

    # Data models
    "Role", "CallStatus", "InterviewType", "Word", "Utterance", "PauseRecord",
    "AnswerPauses", "PauseSummary", "SessionContext", "PersistResult", "SessionOutcome",

    # Transcript and analysis
    "UtteranceStore", "utterance_from_message",
    "analyze_pauses", "analyze_session_pauses", "summarize_pauses",

    # Schemas
    "ReplyKind", "ParsedReply", "ToneResult", "FeedbackResult",
    "parse_tone_reply", "parse_feedback_reply", "normalize_tone", "normalize_feedback",
    "strip_code_fence",

    # Services
    "ToneClassifierClient", "FeedbackGeneratorClient", "SkillExtractor",
    "SessionRecorder", "build_resume_url", "AnalysisPipeline", "VapiTransport",

    # Events
    "SessionEventBus", "EventLogger", "SessionMetrics",
    "EventType", "SessionEvent", "CallStartedEvent", "CallEndedEvent",
    "SpeechStartedEvent", "SpeechEndedEvent", "TranscriptMessageEvent",
    "TransportErrorEvent", "TransportErrorKind", "classify_transport_error", "build_event",
]
