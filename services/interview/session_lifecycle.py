"""State machine for one opened case: chat, diagnosis, commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from dal.session_dal import SessionDAL
from models.case_record import CaseRecord
from models.errors import InvalidStateError, TrainerError, ValidationError
from models.session_models import Conversation, GatewaySettings, Message, SessionDraft, SessionRecord
from services.interview.conversation_engine import ConversationEngine
from services.interview.learner_identity import LearnerIdentity


class ChatState(str, Enum):
	IDLE = "idle"
	OPEN = "open"
	AWAITING_DIAGNOSIS = "awaiting_diagnosis"
	CLOSED = "closed"


@dataclass
class CommitResult:
	"""Outcome of saving a finished chat."""

	saved: bool
	session: Optional[SessionRecord] = None
	error: Optional[str] = None


class SessionLifecycleController:
	"""Drive one case instance through IDLE -> OPEN -> AWAITING_DIAGNOSIS -> CLOSED.

	Only an explicit finish followed by a diagnosis commits data. Closing
	abruptly, or finishing before the patient ever replied, discards the
	conversation without touching the store.
	"""

	def __init__(
		self,
		engine: ConversationEngine,
		store: SessionDAL,
		identity: LearnerIdentity,
		*,
		session_id: Optional[str] = None,
		chat_id: Optional[str] = None,
	) -> None:
		self.engine = engine
		self.store = store
		self.identity = identity
		self.chat_id = chat_id or uuid4().hex
		self.session_id = session_id
		self.state = ChatState.IDLE
		self.conversation: Optional[Conversation] = None
		self.case_name: Optional[str] = None
		self.pending_draft: Optional[SessionDraft] = None

	@property
	def busy(self) -> bool:
		return self.conversation is not None and self.conversation.busy

	def visible_messages(self) -> List[Message]:
		if self.conversation is None:
			return []
		return self.conversation.visible_messages()

	async def open_case(self, case: CaseRecord, settings: Optional[GatewaySettings] = None) -> Optional[str]:
		"""Open `case` into a live conversation and return the patient's first line."""
		self._require(ChatState.IDLE)
		self.case_name = case.name
		conversation = self.engine.start(case.name, case.prompt, settings)
		self.conversation = conversation
		self.state = ChatState.OPEN
		logging.info(f"Chat {self.chat_id} opened for case: \"{case.name}\"")
		return await self.engine.kickoff(conversation)

	async def send_message(self, text: str) -> Optional[str]:
		"""Send a learner message; None when the previous reply is still pending."""
		self._require(ChatState.OPEN)
		text = (text or "").strip()
		if not text:
			raise ValidationError("Message text is required.")
		return await self.engine.send_turn(self.conversation, text)

	def finish(self) -> ChatState:
		"""Ask for a diagnosis if there is something to save, else close."""
		self._require(ChatState.OPEN)
		if self.conversation.has_reply:
			self.state = ChatState.AWAITING_DIAGNOSIS
		else:
			logging.info(f"Chat {self.chat_id} finished with no exchange; nothing to save")
			self._teardown()
		return self.state

	async def submit_diagnosis(self, diagnosis: Optional[str]) -> CommitResult:
		"""Close the chat and save it with the learner's differential diagnosis.

		The chat is closed even when saving fails; the unsaved draft is kept
		for `retry_commit`.
		"""
		self._require(ChatState.AWAITING_DIAGNOSIS)
		conversation = self.conversation
		draft = SessionDraft(
			id=self.session_id,
			case_id=conversation.case_name,
			case_name=conversation.case_name,
			case_prompt=conversation.case_prompt,
			messages=self._answered_messages(conversation),
			user_name=self.identity.current_user_name or None,
			diagnosis=diagnosis or "",
		)
		self._teardown()
		return await self._commit(draft)

	async def retry_commit(self) -> CommitResult:
		"""Try again to save a draft whose first commit failed."""
		if self.state is not ChatState.CLOSED or self.pending_draft is None:
			raise InvalidStateError("There is no unsaved session to retry.")
		return await self._commit(self.pending_draft)

	def close(self) -> None:
		"""Abandon the chat from any state without saving."""
		if self.state is ChatState.CLOSED:
			return
		logging.info(f"Chat {self.chat_id} closed without saving")
		self._teardown()

	async def _commit(self, draft: SessionDraft) -> CommitResult:
		try:
			record = await self.store.upsert(draft)
		except TrainerError as exc:
			logging.error(f"Error saving session for chat {self.chat_id}: {exc}")
			self.pending_draft = draft
			return CommitResult(saved=False, error=str(exc))
		self.pending_draft = None
		self.session_id = record.id
		return CommitResult(saved=True, session=record)

	def _teardown(self) -> None:
		self.conversation = None
		self.state = ChatState.CLOSED

	def _require(self, state: ChatState) -> None:
		if self.state is not state:
			raise InvalidStateError(f"Chat is {self.state.value}; expected {state.value}.")

	@staticmethod
	def _answered_messages(conversation: Conversation) -> List[Message]:
		messages = conversation.visible_messages()
		# A learner turn still waiting on its reply is left out of the record.
		if messages and messages[-1].role == "user":
			messages = messages[:-1]
		return messages
