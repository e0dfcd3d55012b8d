"""
Intervue Configuration System
=============================

This file contains ALL configuration for the interview analysis pipeline.
- User settings at the top (things deployments usually change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# USER SETTINGS - Edit these or override them with environment variables
# =============================================================================

# REQUIRED: hosted record store (PostgREST endpoint + service key)
SUPABASE_URL = None
SUPABASE_SERVICE_ROLE_KEY = None

# Public URL of the web app, used to build resume preview links
APP_URL = "http://localhost:3000"

# Analysis endpoints
TONE_ENDPOINT = "http://localhost:3000/api/analyze-tone"
FEEDBACK_ENDPOINT = "http://localhost:3000/api/interview-feedback"

# Voice AI
VAPI_WEB_TOKEN = None
VAPI_WORKFLOW_ID = None

# Skill extraction (Vertex AI)
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Interview settings
DEFAULT_LANGUAGE = "en"
SESSION_TIME_LIMIT_SECONDS = 45 * 60
PAUSE_THRESHOLD_SECONDS = 1.5

# Logging
LOG_FILE = "./_sessions/intervue.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless the store schema changes
# =============================================================================

# Transcript limits
MAX_FEEDBACK_TRANSCRIPT_CHARS = 8000
MAX_TRANSCRIPT_CHARS = 100000

# Sentinel values
TONE_FAILURE_SENTINEL = "Could not analyze tone."
NO_TONE_SENTINEL = "No tone detected."
FEEDBACK_FAILURE_TEXT = "Could not generate feedback."
GENERATED_INTERVIEW_FEEDBACK_TEXT = "Generated interview completed."
UNKNOWN_DURATION = "N/A"

# Record store
RECORD_TABLE = "interviews"
RESUME_PREVIEW_PATH = "/api/cv-preview"

# Column names in the interviews table
COL_ID = "id"
COL_USER_ID = "user_id"
COL_CANDIDATE_NAME = "candidate_name"
COL_DURATION = "duration"
COL_LANGUAGE = "language"
COL_TRANSCRIPT = "transcript"
COL_FEEDBACK = "feedback"
COL_TONE = "tone"
COL_EMAIL = "Email"
COL_CONDUCTED = "is_conducted"
COL_RESUME = "CV/Resume"
COL_SKILLS = "skills"
COL_CREATED_AT = "created_at"

# The store keeps the conducted flag as text
CONDUCTED_TRUE = "true"

# HTTP
HTTP_TIMEOUT = 30

# Vapi
VAPI_BASE_URL = "https://api.vapi.ai"
AUDIO_NOT_DETECTED_REASON = "call.in-progress.error-assistant-did-not-receive-customer-audio"
MEETING_ENDED_MESSAGE = "Meeting has ended"

# LLM
VERTEX_LOCATION = "us-central1"
SKILLS_MODEL_NAME = "gemini-2.0-flash-001"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 512

# Closing lines spoken when the session time limit is reached
TIME_LIMIT_MESSAGES = {
    "en": (
        "It looks like we're out of time for now. Thank you so much for the "
        "conversation. I really appreciated it, and I wish you the best going forward."
    ),
    "ar": (
        "يبدو أننا انتهينا من الوقت الآن. شكرًا جزيلًا على هذه المحادثة، "
        "لقد كانت ممتعة، وأتمنى لك كل التوفيق في المستقبل."
    ),
}


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    supabase_url: str
    supabase_service_role_key: str
    app_url: str = APP_URL
    tone_endpoint: str = TONE_ENDPOINT
    feedback_endpoint: str = FEEDBACK_ENDPOINT
    api_token: Optional[str] = None
    vapi_web_token: Optional[str] = VAPI_WEB_TOKEN
    vapi_workflow_id: Optional[str] = VAPI_WORKFLOW_ID
    google_cloud_project: Optional[str] = GOOGLE_CLOUD_PROJECT
    google_application_credentials: Optional[str] = GOOGLE_APPLICATION_CREDENTIALS
    vertex_location: str = VERTEX_LOCATION
    skills_model_name: str = SKILLS_MODEL_NAME
    default_language: str = DEFAULT_LANGUAGE
    session_time_limit_seconds: float = SESSION_TIME_LIMIT_SECONDS
    pause_threshold_seconds: float = PAUSE_THRESHOLD_SECONDS
    http_timeout: int = HTTP_TIMEOUT
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def skill_extraction_enabled(self) -> bool:
        return bool(self.google_cloud_project)


def get_config() -> Config:
    """Load configuration, letting environment variables override the settings above."""
    supabase_url = os.getenv("SUPABASE_URL") or SUPABASE_URL
    supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or SUPABASE_SERVICE_ROLE_KEY

    if not supabase_url:
        raise ValueError("Please set SUPABASE_URL in config.py or as environment variable")
    if not supabase_key:
        raise ValueError("Please set SUPABASE_SERVICE_ROLE_KEY in config.py or as environment variable")

    return Config(
        supabase_url=supabase_url,
        supabase_service_role_key=supabase_key,
        app_url=os.getenv("APP_URL") or APP_URL,
        tone_endpoint=os.getenv("TONE_ENDPOINT") or TONE_ENDPOINT,
        feedback_endpoint=os.getenv("FEEDBACK_ENDPOINT") or FEEDBACK_ENDPOINT,
        api_token=os.getenv("API_TOKEN"),
        vapi_web_token=os.getenv("VAPI_WEB_TOKEN") or VAPI_WEB_TOKEN,
        vapi_workflow_id=os.getenv("VAPI_WORKFLOW_ID") or VAPI_WORKFLOW_ID,
        google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT,
        google_application_credentials=(
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS
        ),
        log_file=os.getenv("INTERVUE_LOG_FILE") or LOG_FILE,
        log_level=os.getenv("INTERVUE_LOG_LEVEL") or LOG_LEVEL,
    )
