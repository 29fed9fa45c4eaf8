"""Chat lifecycle helpers for interview sessions."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request

from dal.case_dal import CaseDAL
from models.errors import TrainerError
from services.interview.chat_registry import ChatRegistry
from services.interview.session_lifecycle import ChatState, CommitResult, SessionLifecycleController
from utils.http_errors import to_http_exception


def _registry(request: Request) -> ChatRegistry:
	return request.app.state.chat_registry


def _get_chat(request: Request, chat_id: str) -> SessionLifecycleController:
	try:
		return _registry(request).get(chat_id)
	except TrainerError as exc:
		raise to_http_exception(exc) from exc


def _chat_view(chat: SessionLifecycleController) -> Dict[str, Any]:
	return {
		"chat_id": chat.chat_id,
		"case_name": chat.case_name,
		"state": chat.state.value,
		"busy": chat.busy,
		"session_id": chat.session_id,
		"messages": [msg.to_dict() for msg in chat.visible_messages()],
	}


def _commit_view(chat: SessionLifecycleController, result: CommitResult) -> Dict[str, Any]:
	return {
		**_chat_view(chat),
		"saved": result.saved,
		"session": result.session.to_dict() if result.session else None,
		"error": result.error,
	}


async def start_chat(
	request: Request,
	case_name: str,
	session_id: Optional[str] = None,
	model: Optional[str] = None,
	temperature: Optional[float] = None,
) -> Dict[str, Any]:
	"""Open a case into a new chat and return the patient's first reply."""
	case_dal: CaseDAL = request.app.state.case_dal
	try:
		case = await case_dal.get_case(case_name)
	except TrainerError as exc:
		raise to_http_exception(exc) from exc
	if case is None:
		raise HTTPException(status_code=404, detail="Case not found")

	chat = SessionLifecycleController(
		request.app.state.conversation_engine,
		request.app.state.session_dal,
		request.app.state.learner_identity,
		session_id=session_id,
	)
	_registry(request).add(chat)

	settings = request.app.state.gateway_settings.with_overrides(model, temperature)
	reply = await chat.open_case(case, settings)
	return {**_chat_view(chat), "reply": reply}


async def get_chat(request: Request, chat_id: str) -> Dict[str, Any]:
	"""Return the chat state and its visible transcript."""
	return _chat_view(_get_chat(request, chat_id))


async def append_message(request: Request, chat_id: str, text: str) -> Dict[str, Any]:
	"""Send a learner message; a pending reply makes this a no-op."""
	chat = _get_chat(request, chat_id)
	try:
		reply = await chat.send_message(text)
	except TrainerError as exc:
		raise to_http_exception(exc) from exc
	return {"chat_id": chat_id, "reply": reply, "busy": reply is None}


async def finish_chat(request: Request, chat_id: str) -> Dict[str, Any]:
	"""Finish the chat; reports whether a diagnosis is expected next."""
	chat = _get_chat(request, chat_id)
	try:
		state = chat.finish()
	except TrainerError as exc:
		raise to_http_exception(exc) from exc
	if state is ChatState.CLOSED:
		_registry(request).remove(chat_id)
	return {**_chat_view(chat), "needs_diagnosis": state is ChatState.AWAITING_DIAGNOSIS}


async def submit_diagnosis(request: Request, chat_id: str, diagnosis: Optional[str]) -> Dict[str, Any]:
	"""Save the chat with the learner's differential diagnosis and close it."""
	chat = _get_chat(request, chat_id)
	try:
		result = await chat.submit_diagnosis(diagnosis)
	except TrainerError as exc:
		raise to_http_exception(exc) from exc
	if result.saved:
		_registry(request).remove(chat_id)
	return _commit_view(chat, result)


async def retry_save(request: Request, chat_id: str) -> Dict[str, Any]:
	"""Retry saving a closed chat whose first save failed."""
	chat = _get_chat(request, chat_id)
	try:
		result = await chat.retry_commit()
	except TrainerError as exc:
		raise to_http_exception(exc) from exc
	if result.saved:
		_registry(request).remove(chat_id)
	return _commit_view(chat, result)


async def close_chat(request: Request, chat_id: str) -> Dict[str, Any]:
	"""Abandon the chat without saving."""
	chat = _get_chat(request, chat_id)
	chat.close()
	_registry(request).remove(chat_id)
	return {"chat_id": chat_id, "state": chat.state.value, "closed": True}
