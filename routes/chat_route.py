"""FastAPI routes for live interview chats and the current learner."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.chat_controller import (
	append_message,
	close_chat,
	finish_chat,
	get_chat,
	retry_save,
	start_chat,
	submit_diagnosis,
)

router = APIRouter()


class StartPayload(BaseModel):
	caseName: str
	sessionId: Optional[str] = None
	model: Optional[str] = None
	temperature: Optional[float] = None


class MessagePayload(BaseModel):
	text: str


class DiagnosisPayload(BaseModel):
	diagnosis: str = ""


class LearnerPayload(BaseModel):
	userName: Optional[str] = None


@router.post("/chats")
async def start_chat_route(request: Request, payload: StartPayload):
	try:
		return await start_chat(request, payload.caseName, payload.sessionId, payload.model, payload.temperature)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/chats/{chat_id}")
async def get_chat_route(request: Request, chat_id: str):
	try:
		return await get_chat(request, chat_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/chats/{chat_id}/messages")
async def post_message_route(request: Request, chat_id: str, payload: MessagePayload):
	try:
		return await append_message(request, chat_id, payload.text)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/chats/{chat_id}/finish")
async def finish_chat_route(request: Request, chat_id: str):
	try:
		return await finish_chat(request, chat_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/chats/{chat_id}/diagnosis")
async def diagnosis_route(request: Request, chat_id: str, payload: DiagnosisPayload):
	try:
		return await submit_diagnosis(request, chat_id, payload.diagnosis)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/chats/{chat_id}/retry-save")
async def retry_save_route(request: Request, chat_id: str):
	try:
		return await retry_save(request, chat_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/chats/{chat_id}")
async def close_chat_route(request: Request, chat_id: str):
	try:
		return await close_chat(request, chat_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/learner")
async def get_learner_route(request: Request):
	return {"userName": request.app.state.learner_identity.display_name}


@router.put("/learner")
async def put_learner_route(request: Request, payload: LearnerPayload):
	return {"userName": request.app.state.learner_identity.set_name(payload.userName)}
