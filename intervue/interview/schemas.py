"""
Structured results parsed from loosely-typed analysis endpoint replies.

Replies may arrive as JSON objects, as JSON wrapped in a code fence or
prefixed with "json", or as plain prose. Every parser here is total: it
returns a ParsedReply instead of raising.
"""
import json
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..config import NO_TONE_SENTINEL


class ReplyKind(str, Enum):
    """Shape of a normalized endpoint reply."""
    STRUCTURED = "structured"
    RAW_TEXT = "raw_text"
    SENTINEL = "sentinel"


@dataclass(frozen=True)
class ParsedReply:
    """Tagged union: Structured(object) | RawText(string) | Sentinel(string)."""
    kind: ReplyKind
    value: Union[Dict[str, Any], str]

    @classmethod
    def structured(cls, data: Dict[str, Any]) -> 'ParsedReply':
        return cls(ReplyKind.STRUCTURED, data)

    @classmethod
    def raw_text(cls, text: str) -> 'ParsedReply':
        return cls(ReplyKind.RAW_TEXT, text)

    @classmethod
    def sentinel(cls, text: str) -> 'ParsedReply':
        return cls(ReplyKind.SENTINEL, text)


_LEADING_FENCE = re.compile(r"^```(?:json)?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"```$")
_JSON_PREFIX = re.compile(r"^json", re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    """Remove a leading ``` / ```json fence, a trailing fence and a bare "json" prefix."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
        cleaned = _TRAILING_FENCE.sub("", cleaned, count=1).strip()
    if cleaned.lower().startswith("json"):
        cleaned = _JSON_PREFIX.sub("", cleaned, count=1).strip()
    return cleaned


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return data if isinstance(data, dict) else None


def parse_tone_reply(payload: Any) -> ParsedReply:
    """
    Normalize the ``tone`` field of a classifier reply.

    Objects pass through; strings are de-fenced and parsed, falling back to
    the cleaned string; anything else is the "no tone" sentinel.
    """
    if isinstance(payload, dict):
        return ParsedReply.structured(payload)
    if isinstance(payload, str):
        cleaned = strip_code_fence(payload)
        data = _load_object(cleaned)
        if data is not None:
            return ParsedReply.structured(data)
        return ParsedReply.raw_text(cleaned)
    return ParsedReply.sentinel(NO_TONE_SENTINEL)


def parse_feedback_reply(payload: Any) -> ParsedReply:
    """Normalize the ``feedback`` field of a feedback reply; unparseable text stays raw."""
    if isinstance(payload, dict):
        return ParsedReply.structured(payload)
    if isinstance(payload, str):
        data = _load_object(strip_code_fence(payload))
        if data is not None:
            return ParsedReply.structured(data)
        return ParsedReply.raw_text(payload)
    return ParsedReply.raw_text("" if payload is None else str(payload))


# =============================================================================
# Tone
# =============================================================================

@dataclass(frozen=True)
class ToneResult:
    """Normalized sentiment/delivery summary."""
    kind: ReplyKind
    confidence: Optional[Any] = None
    tone: Optional[str] = None
    energy: Optional[str] = None
    summary: Optional[str] = None
    text: Optional[str] = None  # raw text or sentinel
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_reply(cls, reply: ParsedReply) -> 'ToneResult':
        if reply.kind == ReplyKind.STRUCTURED:
            data = dict(reply.value)
            return cls(
                kind=reply.kind,
                confidence=data.get("confidence"),
                tone=data.get("tone"),
                energy=data.get("energy"),
                summary=data.get("summary"),
                data=data,
            )
        return cls(kind=reply.kind, text=str(reply.value))

    @classmethod
    def sentinel(cls, text: str) -> 'ToneResult':
        return cls(kind=ReplyKind.SENTINEL, text=text)

    @property
    def is_sentinel(self) -> bool:
        return self.kind == ReplyKind.SENTINEL

    @property
    def is_structured(self) -> bool:
        return self.kind == ReplyKind.STRUCTURED

    def to_storage(self) -> Union[Dict[str, Any], str]:
        """Shape stored in the ``tone`` column: the classifier's object as sent, or the plain string."""
        if self.is_structured:
            return dict(self.data)
        return self.text or ""


def normalize_tone(value: Any) -> ToneResult:
    """Coerce any tone representation into a ToneResult. Idempotent."""
    if isinstance(value, ToneResult):
        return value
    if isinstance(value, ParsedReply):
        return ToneResult.from_reply(value)
    return ToneResult.from_reply(parse_tone_reply(value))


# =============================================================================
# Feedback
# =============================================================================

FEEDBACK_COMPETENCIES = (
    "communication",
    "analytical_thinking",
    "technical_depth",
    "adaptability",
    "motivation",
    "confidence",
    "collaboration",
    "accountability",
    "cultural_fit",
    "leadership",
    "decision_making",
    "time_management",
    "emotional_intelligence",
)


@dataclass(frozen=True)
class FeedbackResult:
    """Normalized feedback rubric. Unknown provider keys are kept in ``extras``."""
    communication: Optional[Any] = None
    analytical_thinking: Optional[Any] = None
    technical_depth: Optional[Any] = None
    adaptability: Optional[Any] = None
    motivation: Optional[Any] = None
    confidence: Optional[Any] = None
    collaboration: Optional[Any] = None
    accountability: Optional[Any] = None
    cultural_fit: Optional[Any] = None
    leadership: Optional[Any] = None
    decision_making: Optional[Any] = None
    time_management: Optional[Any] = None
    emotional_intelligence: Optional[Any] = None
    final_assessment: Optional[Any] = None
    raw: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FeedbackResult':
        known = {f.name for f in fields(cls)} - {"extras"}
        values = {k: v for k, v in data.items() if k in known}
        extras = {k: v for k, v in data.items() if k not in known}
        return cls(**values, extras=extras)

    @classmethod
    def from_reply(cls, reply: ParsedReply) -> 'FeedbackResult':
        if reply.kind == ReplyKind.STRUCTURED:
            return cls.from_dict(reply.value)
        return cls(raw=str(reply.value))

    @classmethod
    def raw_text(cls, text: str) -> 'FeedbackResult':
        return cls(raw=text)

    @property
    def is_raw(self) -> bool:
        return self.raw is not None and not self.competencies()

    def competencies(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in FEEDBACK_COMPETENCIES if getattr(self, name) is not None}

    def to_dict(self) -> Dict[str, Any]:
        """Shape stored in the ``feedback`` column."""
        out: Dict[str, Any] = {}
        for f in fields(self):
            if f.name == "extras":
                continue
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = value
        out.update(self.extras)
        return out


def normalize_feedback(value: Any) -> FeedbackResult:
    """Coerce any feedback representation into a FeedbackResult. Idempotent."""
    if isinstance(value, FeedbackResult):
        return value
    if isinstance(value, ParsedReply):
        return FeedbackResult.from_reply(value)
    return FeedbackResult.from_reply(parse_feedback_reply(value))
