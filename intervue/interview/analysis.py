"""
Pause analysis over word-level timestamps.
Detects silences between consecutive words of each respondent answer.
"""
import logging
from typing import List, Sequence, Tuple, Union

import numpy as np

from .models import AnswerPauses, PauseRecord, PauseSummary, Word
from .transcript import UtteranceStore
from ..config import PAUSE_THRESHOLD_SECONDS

logger = logging.getLogger("pause_analysis")

WordLike = Union[Word, Tuple[str, float, float]]


def _as_word(item: WordLike) -> Word:
    if isinstance(item, Word):
        return item
    token, start, end = item
    return Word(token=token, start=float(start), end=float(end))


def analyze_pauses(words: Sequence[WordLike], threshold: float = PAUSE_THRESHOLD_SECONDS) -> List[PauseRecord]:
    """
    Find gaps between consecutive words that exceed the threshold.

    The gap before word i is ``words[i].start - words[i-1].end``. Fewer than
    two words yields no pauses.

    Args:
        words: Ordered (token, start, end) entries for one answer
        threshold: Minimum silence in seconds; gaps must be strictly greater

    Returns:
        PauseRecords in word order
    """
    if len(words) < 2:
        return []

    timed = [_as_word(w) for w in words]
    starts = np.fromiter((w.start for w in timed[1:]), dtype=float, count=len(timed) - 1)
    ends = np.fromiter((w.end for w in timed[:-1]), dtype=float, count=len(timed) - 1)
    gaps = starts - ends

    return [
        PauseRecord(from_token=timed[i].token, to_token=timed[i + 1].token, gap_seconds=float(gaps[i]))
        for i in np.flatnonzero(gaps > threshold)
    ]


def analyze_session_pauses(store: UtteranceStore,
                           threshold: float = PAUSE_THRESHOLD_SECONDS) -> List[AnswerPauses]:
    """Run pause analysis per respondent answer, numbered from 1 in session order."""
    results = []
    for idx, words in enumerate(store.timed_answers(), start=1):
        pauses = analyze_pauses(words, threshold)
        results.append(AnswerPauses(answer=idx, pauses=pauses))
        if pauses:
            logger.info("Answer %d: %d pause(s) over %.1fs", idx, len(pauses), threshold)
    return results


def summarize_pauses(answers: Sequence[AnswerPauses]) -> PauseSummary:
    """Aggregate pause statistics for the analysis view."""
    gaps = np.array([p.gap_seconds for a in answers for p in a.pauses], dtype=float)
    if gaps.size == 0:
        return PauseSummary(answers_analyzed=len(answers))
    return PauseSummary(
        answers_analyzed=len(answers),
        pause_count=int(gaps.size),
        longest_gap_seconds=float(gaps.max()),
        mean_gap_seconds=float(gaps.mean()),
    )
