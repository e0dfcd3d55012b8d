"""
Testing infrastructure with in-memory doubles for the external services.
"""
import itertools
import uuid
from unittest.mock import MagicMock
from typing import Dict, Any, List, Optional, Callable

from .models import InterviewType, SessionContext
from .recorder import SessionRecorder
from .schemas import ToneResult, FeedbackResult, normalize_tone, normalize_feedback
from .services import ToneClassifierClient, FeedbackGeneratorClient, SkillExtractor
from .pipeline import AnalysisPipeline
from ..infrastructure.data import StoreResponse
from ..config import COL_ID, COL_EMAIL, COL_CREATED_AT, TONE_FAILURE_SENTINEL


class MockRecordStore:
    """In-memory stand-in for SupabaseRecordStore with the same interface."""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self._clock = itertools.count(1)
        self.rows: List[Dict[str, Any]] = []
        self.calls: List[tuple] = []
        self.fail_writes_with: Optional[StoreResponse] = None
        for row in rows or []:
            self.add_row(row)

    def add_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(row)
        row.setdefault(COL_ID, str(uuid.uuid4()))
        row.setdefault(COL_CREATED_AT, next(self._clock))
        self.rows.append(row)
        return row

    def find_by_id(self, record_id: str, columns: str = "") -> Optional[Dict[str, Any]]:
        self.calls.append(("find_by_id", record_id))
        for row in self.rows:
            if row[COL_ID] == record_id:
                return dict(row)
        return None

    def find_latest_by_email(self, email: str, exclude_id: Optional[str] = None,
                             columns: str = "") -> Optional[Dict[str, Any]]:
        self.calls.append(("find_latest_by_email", email, exclude_id))
        matches = [r for r in self.rows if r.get(COL_EMAIL) == email and r[COL_ID] != exclude_id]
        if not matches:
            return None
        return dict(max(matches, key=lambda r: r[COL_CREATED_AT]))

    def update(self, record_id: str, payload: Dict[str, Any]) -> StoreResponse:
        if COL_ID in payload:
            raise ValueError("Update payload must not include the record id")
        self.calls.append(("update", record_id, dict(payload)))
        if self.fail_writes_with is not None:
            return self.fail_writes_with
        for row in self.rows:
            if row[COL_ID] == record_id:
                row.update(payload)
                return StoreResponse(ok=True, status=204)
        return StoreResponse(ok=True, status=204)  # PostgREST patches zero rows silently

    def insert(self, payload: Dict[str, Any]) -> StoreResponse:
        self.calls.append(("insert", dict(payload)))
        if self.fail_writes_with is not None:
            return self.fail_writes_with
        self.add_row(payload)
        return StoreResponse(ok=True, status=201)

    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("update", "insert")]


class MockLLMClient:
    """Mock LLM client returning canned responses, or raising a given error."""

    def __init__(self, mock_responses: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.mock_responses = mock_responses or []
        self.error = error
        self.current_response_idx = 0
        self.request_history: List[Dict[str, Any]] = []

    def generate_content(self, prompt: str, temperature: float = 0.0, **kwargs) -> str:
        self.request_history.append({"prompt": prompt, "temperature": temperature, "kwargs": kwargs})
        if self.error is not None:
            raise self.error
        if self.current_response_idx < len(self.mock_responses):
            response = self.mock_responses[self.current_response_idx]
            self.current_response_idx += 1
            return response
        return ""


class MockToneClient(ToneClassifierClient):
    """Tone client that returns a fixed result without HTTP."""

    def __init__(self, result: Any = TONE_FAILURE_SENTINEL, sentinel: bool = True):
        # Don't call super().__init__; there is no endpoint
        if isinstance(result, str) and sentinel:
            self.result = ToneResult.sentinel(result)
        else:
            self.result = normalize_tone(result)
        self.requests: List[str] = []

    def classify(self, text: str) -> ToneResult:
        self.requests.append(text)
        return self.result


class MockFeedbackClient(FeedbackGeneratorClient):
    """Feedback client that returns a fixed result without HTTP."""

    def __init__(self, result: Any, max_chars: int = 8000):
        # Don't call super().__init__; there is no endpoint
        self.result = normalize_feedback(result)
        self.max_chars = max_chars
        self.requests: List[str] = []

    def generate(self, transcript: str) -> FeedbackResult:
        self.requests.append(transcript[:self.max_chars])
        return self.result


class ManualTimer:
    """threading.Timer replacement fired explicitly by the test."""

    instances: List['ManualTimer'] = []

    def __init__(self, interval: float, function: Callable[[], None]):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False
        ManualTimer.instances.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.started and not self.cancelled:
            self.function()


class MockVapiClient:
    """Records Vapi calls instead of sending them."""

    def __init__(self, call: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.call = call if call is not None else {
            "id": "call-123",
            "monitor": {"controlUrl": "https://vapi.test/control/call-123"},
        }
        self.error = error
        self.created: List[Dict[str, Any]] = []
        self.controls: List[Dict[str, Any]] = []

    def create_web_call(self, assistant=None, variable_values=None, workflow_id=None) -> Dict[str, Any]:
        self.created.append({"assistant": assistant, "variable_values": variable_values,
                             "workflow_id": workflow_id})
        if self.error is not None:
            raise self.error
        return self.call

    def send_control(self, control_url: str, message: Dict[str, Any]) -> bool:
        self.controls.append(message)
        return True


def create_test_context(interview_id: Optional[str] = "initial_42",
                        email: Optional[str] = "ada@example.com",
                        interview_type: InterviewType = InterviewType.INTERVIEW,
                        **kwargs) -> SessionContext:
    """Session context with sensible defaults for tests."""
    return SessionContext(
        interview_id=interview_id,
        email=email,
        candidate_name=kwargs.pop("candidate_name", "Ada Lovelace"),
        interview_type=interview_type,
        **kwargs
    )


def transcript_message(role: str, text: str,
                       words: Optional[List[tuple]] = None,
                       timestamp: Optional[str] = None,
                       transcript_type: str = "final") -> Dict[str, Any]:
    """Build a raw transport transcript message."""
    message: Dict[str, Any] = {
        "type": "transcript",
        "transcriptType": transcript_type,
        "role": role,
        "transcript": text,
    }
    if words is not None:
        message["words"] = [{"word": w, "start": s, "end": e} for w, s, e in words]
    if timestamp is not None:
        message["timestamp"] = timestamp
    return message


def create_mock_pipeline(store: Optional[MockRecordStore] = None,
                         tone: Any = TONE_FAILURE_SENTINEL,
                         feedback: Any = None,
                         skills: Optional[List[str]] = None) -> AnalysisPipeline:
    """Pipeline wired to in-memory doubles."""
    recorder = SessionRecorder(
        store or MockRecordStore(),
        app_url="https://app.example.com",
        skill_extractor=SkillExtractor(MockLLMClient(skills)),
    )
    return AnalysisPipeline(
        tone_client=MockToneClient(tone),
        feedback_client=MockFeedbackClient(feedback if feedback is not None else {"communication": "clear"}),
        recorder=recorder,
    )


def mock_http_response(status_code: int = 200, json_body: Any = None, text: str = "") -> MagicMock:
    """Fake requests.Response for patched HTTP calls. Pass an exception as json_body to make .json() raise."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = text
    if isinstance(json_body, Exception):
        resp.json.side_effect = json_body
    else:
        resp.json.return_value = json_body
    return resp
