#!/usr/bin/env python3
"""
Main entry point for the intervue pipeline.
Allows running the package with: python -m intervue <session.json>

The session file holds the session context and the raw transport events
of one recorded call:

    {
      "context": {"interview_id": "...", "email": "...", "candidate_name": "..."},
      "events": [
        {"event": "call-start", "at": "2024-05-01T10:00:00Z"},
        {"event": "message", "payload": {"type": "transcript", ...}},
        {"event": "call-end"}
      ]
    }
"""
import json
import sys

from .config import get_config
from .utils import setup_logging
from .infrastructure import SupabaseRecordStore, VertexRestClient
from .interview import (
    InterviewOrchestrator, AnalysisPipeline, SessionRecorder, VapiTransport,
    ToneClassifierClient, FeedbackGeneratorClient, SkillExtractor,
    SessionContext, InterviewType,
)
from .interview.orchestrator import parse_timestamp

USAGE = "Usage: python -m intervue <session.json> [--generate] [--threshold=S] [--log-level=L]"


def load_session(path: str, generate: bool):
    """Read a recorded session file into a context and its event list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    ctx = data.get("context") or {}
    context = SessionContext(
        interview_id=ctx.get("interview_id"),
        email=ctx.get("email"),
        candidate_name=ctx.get("candidate_name", "Candidate"),
        user_id=ctx.get("user_id", "anonymous"),
        language=ctx.get("language", "en"),
        interview_type=InterviewType.GENERATE if generate else InterviewType(ctx.get("type", "interview")),
        questions=ctx.get("questions") or [],
        resume_text=ctx.get("resume_text"),
        resume_file_path=ctx.get("resume_file_path"),
    )

    events = data.get("events")
    if events is None:
        # Plain message list: wrap it in a call
        events = [{"event": "call-start"}]
        events += [{"event": "message", "payload": m} for m in data.get("messages") or []]
        events.append({"event": "call-end"})
    return context, events


def main():
    """Command-line interface that replays a recorded session through the pipeline."""

    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    if not args:
        print(USAGE)
        sys.exit(2)

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    generate = "--generate" in sys.argv
    pause_threshold = config.pause_threshold_seconds
    log_level = config.log_level
    for arg in sys.argv:
        if arg.startswith("--threshold="):
            try:
                pause_threshold = float(arg.split("=")[1])
            except (ValueError, IndexError):
                print("❌ Invalid threshold value. Use --threshold=1.5 (seconds)")
                sys.exit(1)
            if pause_threshold < 0:
                print("❌ Threshold must not be negative")
                sys.exit(1)
        elif arg.startswith("--log-level="):
            log_level = arg.split("=", 1)[1].upper()

    log_path = setup_logging(config.log_file, console_level=log_level)

    try:
        context, events = load_session(args[0], generate)
    except (OSError, ValueError) as e:
        print(f"❌ Could not read session file: {e}")
        sys.exit(1)

    # Wire the pipeline from configuration
    store = SupabaseRecordStore(config.supabase_url, config.supabase_service_role_key,
                                timeout=config.http_timeout)
    skill_extractor = None
    if config.skill_extraction_enabled:
        skill_extractor = SkillExtractor(VertexRestClient(
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.skills_model_name,
            credentials_json=config.google_application_credentials,
        ))
    else:
        print("ℹ️  GOOGLE_CLOUD_PROJECT not set; skills will not be extracted for new records")

    pipeline = AnalysisPipeline(
        tone_client=ToneClassifierClient(config.tone_endpoint, config.api_token, config.http_timeout),
        feedback_client=FeedbackGeneratorClient(config.feedback_endpoint, config.api_token,
                                                timeout=config.http_timeout),
        recorder=SessionRecorder(store, app_url=config.app_url, skill_extractor=skill_extractor),
        pause_threshold=pause_threshold,
    )

    transport = VapiTransport()
    orchestrator = InterviewOrchestrator(transport, pipeline, context,
                                         time_limit_seconds=config.session_time_limit_seconds)

    print(f"🎙️  Replaying {len(events)} events for {context.candidate_name} ({context.interview_type.value})")
    try:
        for entry in events:
            transport.deliver(entry["event"], entry.get("payload"), parse_timestamp(entry.get("at")))
        outcome = orchestrator.outcome or orchestrator.stop()
    finally:
        orchestrator.teardown()

    if outcome is None:
        print("❌ Session ended without an analysis; see the log for details")
        sys.exit(1)

    # Summary
    print(f"⏱️  Duration: {outcome.duration}")
    summary = outcome.pause_summary
    print(f"⏸️  Pauses: {summary.pause_count} across {summary.answers_analyzed} answers"
          f" (longest {summary.longest_gap_seconds:.1f}s)")
    for answer in outcome.pauses:
        for p in answer.pauses:
            print(f"   Answer {answer.answer}: {p.from_token} → {p.to_token} ({p.gap_seconds:.1f}s)")
    print(f"🎭 Tone: {outcome.tone.to_storage()}")
    print(f"📝 Feedback: {json.dumps(outcome.feedback.to_dict(), ensure_ascii=False)[:500]}")

    result = outcome.persist_result
    if result is not None and result.success:
        action = "Created" if result.created else "Updated"
        print(f"✅ {action} record {result.record_id or '(store-assigned id)'}")
    elif result is not None:
        print(f"❌ {result.error}")
    print(f"➡️  Next view: {outcome.next_view}")
    print(f"📄 Log: {log_path}")

    if result is None or not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
