"""
Post-call analysis pipeline.

Runs once per session after the transcript is closed: pauses and tone,
then feedback, then exactly one persistence attempt.
"""
import logging
from typing import List, Tuple

from .analysis import analyze_session_pauses, summarize_pauses
from .models import AnswerPauses, InterviewType, PersistResult, SessionContext, SessionOutcome
from .recorder import SessionRecorder
from .schemas import FeedbackResult, ToneResult
from .services import ToneClassifierClient, FeedbackGeneratorClient
from .transcript import UtteranceStore
from ..config import PAUSE_THRESHOLD_SECONDS, GENERATED_INTERVIEW_FEEDBACK_TEXT

logger = logging.getLogger("pipeline")


class AnalysisPipeline:
    """Sequential analysis of one finished session."""

    def __init__(self,
                 tone_client: ToneClassifierClient,
                 feedback_client: FeedbackGeneratorClient,
                 recorder: SessionRecorder,
                 pause_threshold: float = PAUSE_THRESHOLD_SECONDS):
        self.tone_client = tone_client
        self.feedback_client = feedback_client
        self.recorder = recorder
        self.pause_threshold = pause_threshold

    def analyze_pauses_and_tone(self, store: UtteranceStore) -> Tuple[List[AnswerPauses], ToneResult]:
        pauses = analyze_session_pauses(store, self.pause_threshold)
        tone = self.tone_client.classify(store.respondent_text())
        return pauses, tone

    def generate_and_record(self,
                            store: UtteranceStore,
                            tone: ToneResult,
                            duration: str,
                            context: SessionContext) -> Tuple[FeedbackResult, PersistResult]:
        """Generate feedback, then persist whatever came back (fallbacks included)."""
        feedback = self.feedback_client.generate(store.render_transcript())
        return feedback, self._record(store, feedback, tone, duration, context)

    def _record(self,
                store: UtteranceStore,
                feedback: FeedbackResult,
                tone: ToneResult,
                duration: str,
                context: SessionContext) -> PersistResult:
        result = self.recorder.record(
            transcript=store.render_transcript(),
            feedback=feedback,
            tone=tone,
            duration=duration,
            context=context,
        )
        if result.success:
            logger.info("Session saved (record %s, created=%s)", result.record_id, result.created)
        else:
            logger.error("Failed to save session: %s", result.error)
        return result

    def run(self, store: UtteranceStore, context: SessionContext, duration: str) -> SessionOutcome:
        """
        Analyze and persist a finished session.

        Always returns an outcome; degraded analysis shows up as sentinel or
        fallback values, and a failed write only as ``persist_result``.
        """
        pauses, tone = self.analyze_pauses_and_tone(store)

        if context.interview_type == InterviewType.GENERATE:
            feedback = FeedbackResult.raw_text(GENERATED_INTERVIEW_FEEDBACK_TEXT)
            persist_result = self._record(store, feedback, tone, duration, context)
            next_view = "dashboard"
        else:
            feedback, persist_result = self.generate_and_record(store, tone, duration, context)
            next_view = "analysis"

        return SessionOutcome(
            pauses=pauses,
            pause_summary=summarize_pauses(pauses),
            tone=tone,
            feedback=feedback,
            duration=duration,
            persist_result=persist_result,
            next_view=next_view,
        )
