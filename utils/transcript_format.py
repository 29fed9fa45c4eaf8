"""Formatting helpers for session transcripts, dates and the readable log."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List

from models.session_models import Message, SessionRecord

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: str | None) -> datetime:
    """Parse an ISO-8601 timestamp; unparseable values sort as the oldest."""
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_session_date(value: str | None) -> str:
    """Return the short display date used by the sessions page, e.g. 'Oct 16, 2026'."""
    parsed = parse_timestamp(value)
    if parsed == _EPOCH:
        return ""
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_transcript(messages: Iterable[Message]) -> str:
    """Render messages as 'ROLE: content' pairs separated by blank lines."""
    return "\n\n".join(f"{msg.role.upper()}: {msg.content}" for msg in messages)


def sort_newest_first(sessions: Iterable[SessionRecord]) -> List[SessionRecord]:
    return sorted(sessions, key=lambda s: parse_timestamp(s.timestamp), reverse=True)


def render_sessions_text(sessions: Iterable[SessionRecord]) -> str:
    """Build the human-readable sessions.txt log, newest session first."""
    parts = ["=== SESSIONS LOG ===\n\n"]
    for session in sort_newest_first(sessions):
        parsed = parse_timestamp(session.timestamp)
        date = f"{parsed:%Y-%m-%d %H:%M:%S} UTC" if parsed != _EPOCH else "Unknown"

        parts.append(f"===== SESSION ID: {session.id} =====\n")
        parts.append(f"CASE: {session.case_name}\n")
        parts.append(f"DATE: {date}\n")
        parts.append(f"USER: {session.user_name or 'Anonymous'}\n")
        parts.append(f"CASE PROMPT: {session.case_prompt or 'Not available'}\n\n")

        if session.diagnosis.strip():
            parts.append(f"DIFFERENTIAL DIAGNOSIS:\n{session.diagnosis}\n\n")
        else:
            parts.append("DIFFERENTIAL DIAGNOSIS: Not provided\n\n")

        parts.append("CONVERSATION:\n")
        if session.messages:
            parts.extend(f"{msg.role.upper()}: {msg.content}\n\n" for msg in session.messages)
        else:
            parts.append("No messages available\n\n")

        if session.review:
            parts.append(f"AI REVIEW:\n{session.review}\n\n")

        parts.append("=================================\n\n")
    return "".join(parts)
