"""
Session recorder: persists one completed interview per candidate.

Resolution order for the record to update:
1. the primary interview id
2. the most recent record for the same candidate email (excluding that id)
3. one more id lookup when the id is a well-formed UUID

Completions for the same candidate are serialized so two sessions ending
together cannot both miss the existing record and create duplicates.
"""
import logging
import re
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

from .models import SessionContext, PersistResult
from .schemas import normalize_feedback, normalize_tone
from .services import SkillExtractor
from ..infrastructure.data import SupabaseRecordStore
from ..config import (
    APP_URL, RESUME_PREVIEW_PATH, MAX_TRANSCRIPT_CHARS, DEFAULT_LANGUAGE, CONDUCTED_TRUE,
    COL_ID, COL_USER_ID, COL_CANDIDATE_NAME, COL_DURATION, COL_LANGUAGE, COL_TRANSCRIPT,
    COL_FEEDBACK, COL_TONE, COL_EMAIL, COL_CONDUCTED, COL_RESUME, COL_SKILLS,
)

logger = logging.getLogger("session_recorder")

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)


def build_resume_url(app_url: str, file_path: Optional[str]) -> Optional[str]:
    """Public preview link for a stored resume file."""
    if not file_path:
        return None
    base = app_url.rstrip("/")
    return f"{base}{RESUME_PREVIEW_PATH}?file={quote(file_path, safe='')}"


class SessionRecorder:
    """Find-or-create persistence of SessionRecords keyed by candidate identity."""

    def __init__(self,
                 store: SupabaseRecordStore,
                 app_url: str = APP_URL,
                 skill_extractor: Optional[SkillExtractor] = None,
                 max_transcript_chars: int = MAX_TRANSCRIPT_CHARS):
        self.store = store
        self.app_url = app_url
        self.skill_extractor = skill_extractor
        self.max_transcript_chars = max_transcript_chars
        # identity -> [lock, holders and waiters]
        self._locks: Dict[str, List[Any]] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _identity_lock(self, identity: Optional[str]) -> Iterator[None]:
        """Hold the identity's lock; the entry is dropped once nobody holds or awaits it."""
        key = identity or ""
        with self._locks_guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def resolve_existing(self, context: SessionContext) -> Optional[Dict[str, Any]]:
        """Find the record a completion should update, or None to create one."""
        record = None
        if context.interview_id:
            record = self.store.find_by_id(context.interview_id)
            if record:
                logger.info("Found existing record by id: %s", record.get(COL_ID))

        if record is None and context.email:
            record = self.store.find_latest_by_email(context.email, exclude_id=context.interview_id)
            if record:
                logger.info("Found existing record by email: %s", record.get(COL_ID))
        elif record is None:
            logger.warning("No email provided, cannot look up earlier records")

        if record is None and context.interview_id and UUID_PATTERN.match(context.interview_id):
            logger.warning("Interview id %s is a UUID but no record was found; searching once more",
                           context.interview_id)
            record = self.store.find_by_id(context.interview_id)

        return record

    def record(self,
               transcript: str,
               feedback: Any,
               tone: Any,
               duration: str,
               context: SessionContext) -> PersistResult:
        """
        Persist a completed session.

        Args:
            transcript: Full rendered transcript
            feedback: FeedbackResult or anything normalize_feedback accepts
            tone: ToneResult or anything normalize_tone accepts (sentinels included)
            duration: Human-readable duration, e.g. "12m 5s"
            context: Identity and resume attachments for the session

        Returns:
            PersistResult; store rejections carry the status and body
        """
        if len(transcript) > self.max_transcript_chars:
            return PersistResult(
                success=False, status=400,
                body=f"Transcript too long. Maximum {self.max_transcript_chars:,} characters allowed.",
            )

        payload: Dict[str, Any] = {
            COL_USER_ID: context.user_id,
            COL_CANDIDATE_NAME: context.candidate_name,
            COL_DURATION: duration,
            COL_LANGUAGE: context.language or DEFAULT_LANGUAGE,
            COL_TRANSCRIPT: transcript,
            COL_FEEDBACK: normalize_feedback(feedback).to_dict(),
            COL_TONE: normalize_tone(tone).to_storage(),
            COL_EMAIL: context.email,
            COL_CONDUCTED: CONDUCTED_TRUE,
        }

        with self._identity_lock(context.identity):
            existing = self.resolve_existing(context)
            if existing:
                return self._update(existing, payload, context)
            return self._create(payload, context)

    def _update(self, existing: Dict[str, Any], payload: Dict[str, Any],
                context: SessionContext) -> PersistResult:
        record_id = existing[COL_ID]
        # Attachments belong to the initial record and are never replaced
        payload[COL_RESUME] = existing.get(COL_RESUME)
        payload[COL_SKILLS] = existing.get(COL_SKILLS)
        if not context.email and existing.get(COL_EMAIL):
            payload[COL_EMAIL] = existing[COL_EMAIL]
        if existing.get(COL_CONDUCTED) == CONDUCTED_TRUE:
            logger.warning("Record %s was already conducted; updating it anyway", record_id)

        logger.info("Updating record %s (resume and skills preserved)", record_id)
        resp = self.store.update(record_id, payload)
        return PersistResult(success=resp.ok, status=resp.status, body=resp.body,
                             record_id=record_id, created=False)

    def _create(self, payload: Dict[str, Any], context: SessionContext) -> PersistResult:
        if context.interview_id:
            payload[COL_ID] = context.interview_id
        payload[COL_RESUME] = build_resume_url(self.app_url, context.resume_file_path)

        skills = self._extract_skills(context.resume_text)
        if skills:
            payload[COL_SKILLS] = skills

        logger.info("Creating new record %s", context.interview_id or "(store-assigned id)")
        resp = self.store.insert(payload)
        return PersistResult(success=resp.ok, status=resp.status, body=resp.body,
                             record_id=context.interview_id, created=True)

    def _extract_skills(self, resume_text: Optional[str]) -> Optional[str]:
        if not resume_text:
            logger.info("No resume text for new record; skills left empty")
            return None
        if self.skill_extractor is None:
            logger.info("Skill extraction not configured; skills left empty")
            return None
        try:
            return self.skill_extractor.extract(resume_text)
        except Exception:
            logger.exception("Skill extraction crashed; creating the record without skills")
            return None
