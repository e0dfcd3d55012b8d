"""
Intervue: post-call analysis pipeline for AI voice interviews.

Accumulates the live transcript, measures answer pauses, classifies tone,
requests rubric feedback and records the session against the candidate's
existing interview record.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.orchestrator import InterviewOrchestrator
from .interview.pipeline import AnalysisPipeline
from .interview.models import SessionContext, SessionOutcome

__all__ = ["InterviewOrchestrator", "AnalysisPipeline", "SessionContext", "SessionOutcome"]
