"""
Data models for the interview pipeline.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, TYPE_CHECKING

if TYPE_CHECKING:
    from .schemas import ToneResult, FeedbackResult


class Role(str, Enum):
    """Speaker of a transcript turn, valued with the transport's wire names."""
    RESPONDENT = "user"
    SYSTEM = "system"
    INTERVIEWER = "assistant"


class CallStatus(str, Enum):
    """Lifecycle of the live session as seen by the orchestrator."""
    INACTIVE = "INACTIVE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


class InterviewType(str, Enum):
    """Generate sessions build an interview; interview sessions are graded."""
    GENERATE = "generate"
    INTERVIEW = "interview"


@dataclass(frozen=True)
class Word:
    """One timed token from the speech-to-text stream."""
    token: str
    start: float
    end: float


@dataclass(frozen=True)
class Utterance:
    """Represents a single transcript turn. Immutable once created."""
    role: Role
    text: str
    words: Optional[List[Word]] = None
    recorded_at: Optional[str] = None

    def __post_init__(self):
        if self.words:
            for prev, cur in zip(self.words, self.words[1:]):
                if cur.start < prev.start:
                    raise ValueError(
                        f"Words out of order: {prev.token!r}@{prev.start} before {cur.token!r}@{cur.start}"
                    )

    @property
    def is_respondent(self) -> bool:
        return self.role == Role.RESPONDENT

    def render(self) -> str:
        return f"{self.role.value}: {self.text}"


@dataclass(frozen=True)
class PauseRecord:
    """A silence between two consecutive words longer than the threshold."""
    from_token: str
    to_token: str
    gap_seconds: float


@dataclass
class AnswerPauses:
    """Pauses detected in one respondent answer (1-based index)."""
    answer: int
    pauses: List[PauseRecord] = field(default_factory=list)


@dataclass
class PauseSummary:
    """Session-level view over all detected pauses."""
    answers_analyzed: int = 0
    pause_count: int = 0
    longest_gap_seconds: float = 0.0
    mean_gap_seconds: float = 0.0


@dataclass
class SessionContext:
    """Identity and attachments of the session being recorded.

    Passed explicitly into the recorder instead of being read from
    browser storage.
    """
    interview_id: Optional[str]
    email: Optional[str]
    candidate_name: str
    user_id: str = "anonymous"
    language: str = "en"
    interview_type: InterviewType = InterviewType.INTERVIEW
    questions: List[str] = field(default_factory=list)
    resume_text: Optional[str] = None
    resume_file_path: Optional[str] = None

    @property
    def identity(self) -> Optional[str]:
        """Key used to serialize completions for the same candidate."""
        return self.email or self.interview_id


@dataclass
class PersistResult:
    """Outcome of one recorder write."""
    success: bool
    status: Optional[int] = None
    body: str = ""
    record_id: Optional[str] = None
    created: bool = False

    @property
    def error(self) -> Optional[str]:
        if self.success:
            return None
        return f"Record store error: {self.status} - {self.body}"


@dataclass
class SessionOutcome:
    """Everything the post-call analysis produced for one session."""
    pauses: List[AnswerPauses]
    pause_summary: PauseSummary
    tone: "ToneResult"
    feedback: "FeedbackResult"
    duration: str
    persist_result: Optional[PersistResult]
    next_view: str  # "analysis" or "dashboard"
