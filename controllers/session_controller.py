"""Saved-session helpers: listing, saving, deleting and reviewing."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request

from dal.session_dal import SessionDAL
from models.errors import TrainerError
from models.session_models import SessionDraft
from services.interview.review_generator import ReviewGenerator
from services.session_search import search_sessions
from utils.http_errors import to_http_exception


async def list_sessions(request: Request, query: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return saved sessions newest first, optionally filtered by `query`."""
    dal: SessionDAL = request.app.state.session_dal
    try:
        sessions = await dal.list_sessions()
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return [session.to_dict() for session in search_sessions(sessions, query)]


async def save_session(request: Request, draft: SessionDraft) -> Dict[str, Any]:
    """Upsert a session and report whether it was created or updated.

    Returns:
        A dict with `created`, `success` and the stored `session`.
    """
    dal: SessionDAL = request.app.state.session_dal
    try:
        existed = bool(draft.id) and await dal.get_session(draft.id) is not None
        record = await dal.upsert(draft)
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return {"success": True, "created": not existed, "session": record.to_dict()}


async def delete_session(request: Request, session_id: str) -> Dict[str, Any]:
    """Delete one session by id.

    Raises:
        HTTPException(404) if the id is not stored.
    """
    dal: SessionDAL = request.app.state.session_dal
    try:
        deleted = await dal.delete_by_id(session_id)
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"success": True, "message": "Session deleted successfully"}


async def delete_all_sessions(request: Request) -> Dict[str, Any]:
    """Delete every saved session."""
    dal: SessionDAL = request.app.state.session_dal
    try:
        count = await dal.delete_all()
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return {
        "success": True,
        "count": count,
        "message": f"All sessions deleted successfully ({count} sessions)",
    }


async def review_session(request: Request, session_id: str) -> Dict[str, Any]:
    """Return the stored review for a session, generating it on first request."""
    dal: SessionDAL = request.app.state.session_dal
    generator: ReviewGenerator = request.app.state.review_generator
    try:
        session = await dal.get_session(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found")
        review = await generator.generate(session)
    except TrainerError as exc:
        raise to_http_exception(exc) from exc
    return {"session_id": session_id, "review": review, "session": session.to_dict()}
