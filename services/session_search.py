"""Client-style filtering of saved sessions."""

from __future__ import annotations

from typing import Iterable, List

from models.session_models import SessionRecord
from utils.transcript_format import format_session_date


def session_matches(session: SessionRecord, term: str) -> bool:
    """Return True if `term` (already lower-cased) appears in the session."""
    if term in session.case_name.lower():
        return True
    if term in (session.user_name or "").lower():
        return True
    if any(term in msg.content.lower() for msg in session.messages):
        return True
    return term in format_session_date(session.timestamp).lower()


def search_sessions(sessions: Iterable[SessionRecord], query: str | None) -> List[SessionRecord]:
    """Filter sessions by a case-insensitive substring.

    Matches case name, user name, any message content, or the display date
    ('Oct 16, 2026'). A blank query returns everything. The input is not
    modified.
    """
    items = list(sessions)
    term = (query or "").strip().lower()
    if not term:
        return items
    return [s for s in items if session_matches(s, term)]
