"""
Utterance store: the ordered transcript of one live session.
"""
import logging
from typing import Dict, Any, List, Optional

from .models import Role, Utterance, Word

logger = logging.getLogger("transcript")


def utterance_from_message(message: Dict[str, Any]) -> Optional[Utterance]:
    """
    Build an utterance from a transport transcript message.

    Only final transcripts become utterances; partial ones and other
    message types return None.
    """
    if message.get("type") != "transcript" or message.get("transcriptType") != "final":
        return None

    try:
        role = Role(message.get("role"))
    except ValueError:
        logger.warning("Ignoring transcript with unknown role: %r", message.get("role"))
        return None

    text = message.get("transcript") or ""
    recorded_at = message.get("timestamp")
    try:
        words = _words_from_message(message.get("words") or [])
        return Utterance(role=role, text=text, words=words, recorded_at=recorded_at)
    except (KeyError, TypeError, ValueError) as e:
        # The answer text is kept; only pause analysis loses this turn
        logger.warning("Dropping unusable word timings for %s turn: %s", role.value, e)
        return Utterance(role=role, text=text, words=None, recorded_at=recorded_at)


def _words_from_message(raw_words: List[Dict[str, Any]]) -> Optional[List[Word]]:
    if not raw_words:
        return None
    return [Word(token=w["word"], start=float(w["start"]), end=float(w["end"])) for w in raw_words]


class UtteranceStore:
    """
    Append-only transcript for one session.

    Appends come from a single delivery stream. Once the session reaches
    its terminal state the store is closed and only read.
    """

    def __init__(self):
        self._utterances: List[Utterance] = []
        self._closed = False

    def append(self, utterance: Utterance) -> None:
        if self._closed:
            raise RuntimeError("Utterance store is closed; the session has already ended")
        self._utterances.append(utterance)
        logger.debug("Utterance %d (%s): %s", len(self._utterances), utterance.role.value, utterance.text)

    def append_message(self, message: Dict[str, Any]) -> Optional[Utterance]:
        """Append a transport transcript message if it is a final transcript."""
        utterance = utterance_from_message(message)
        if utterance is not None:
            self.append(utterance)
        return utterance

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def utterances(self) -> List[Utterance]:
        return list(self._utterances)

    def __len__(self) -> int:
        return len(self._utterances)

    def respondent_utterances(self) -> List[Utterance]:
        return [u for u in self._utterances if u.is_respondent]

    def timed_answers(self) -> List[List[Word]]:
        """Word timings of respondent turns that have at least two timed words."""
        return [u.words for u in self.respondent_utterances() if u.words and len(u.words) > 1]

    def respondent_text(self) -> str:
        return "\n".join(u.text for u in self.respondent_utterances())

    def render_transcript(self, max_chars: Optional[int] = None) -> str:
        """Render as "role: text" lines; truncation applies to the joined string."""
        text = "\n".join(u.render() for u in self._utterances)
        if max_chars is not None:
            text = text[:max_chars]
        return text

    def last_recorded_at(self) -> Optional[str]:
        if self._utterances:
            return self._utterances[-1].recorded_at
        return None
