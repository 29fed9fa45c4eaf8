"""FastAPI routes for saved interview sessions and their reviews."""

from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from controllers.session_controller import (
	delete_all_sessions,
	delete_session,
	list_sessions,
	review_session,
	save_session,
)
from models.session_models import Message, SessionDraft

router = APIRouter()


class MessagePayload(BaseModel):
	role: Literal["system", "user", "assistant"]
	content: str


class SaveSessionPayload(BaseModel):
	id: Optional[str] = None
	caseId: Optional[str] = None
	caseName: Optional[str] = None
	messages: Optional[List[MessagePayload]] = None
	userName: Optional[str] = None
	casePrompt: Optional[str] = None
	diagnosis: Optional[str] = None
	review: Optional[str] = None
	lastUpdated: Optional[str] = None

	def to_draft(self) -> SessionDraft:
		messages = None
		if self.messages is not None:
			messages = [Message(role=m.role, content=m.content) for m in self.messages]
		return SessionDraft(
			id=self.id,
			case_id=self.caseId,
			case_name=self.caseName,
			messages=messages,
			user_name=self.userName,
			case_prompt=self.casePrompt,
			diagnosis=self.diagnosis,
			review=self.review,
			last_updated=self.lastUpdated,
		)


@router.get("/get-sessions")
async def get_sessions_route(request: Request, q: Optional[str] = None):
	try:
		return await list_sessions(request, q)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=f"Failed to retrieve sessions: {exc}")


@router.post("/save-session")
async def save_session_route(request: Request, response: Response, payload: SaveSessionPayload):
	try:
		result = await save_session(request, payload.to_draft())
		if result["created"]:
			response.status_code = 201
		return result
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=f"Failed to save session: {exc}")


@router.delete("/sessions/{session_id}")
async def delete_session_route(request: Request, session_id: str):
	try:
		return await delete_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=f"Failed to delete session: {exc}")


@router.delete("/sessions")
async def delete_all_sessions_route(request: Request):
	try:
		return await delete_all_sessions(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=f"Failed to delete all sessions: {exc}")


@router.post("/sessions/{session_id}/review")
async def review_session_route(request: Request, session_id: str):
	"""Return the cached review or generate it with one model call."""
	try:
		return await review_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=f"Failed to generate review: {exc}")
