"""Simple in-memory registry of live interview chats."""

from __future__ import annotations

import logging
from typing import Dict, List

from models.errors import NotFoundError
from services.interview.session_lifecycle import ChatState, SessionLifecycleController

MAX_UNSAVED_CHATS = 5


class ChatRegistry:
	"""Track lifecycle controllers by chat id; one live chat at a time."""

	def __init__(self) -> None:
		self._chats: Dict[str, SessionLifecycleController] = {}

	def add(self, controller: SessionLifecycleController) -> SessionLifecycleController:
		"""Register a new chat, abandoning any other chat that is still live.

		Closed chats are dropped unless they hold an unsaved draft; only the
		newest MAX_UNSAVED_CHATS of those are kept for a retry.
		"""
		for chat_id, other in list(self._chats.items()):
			other.close()
			if other.pending_draft is None:
				del self._chats[chat_id]

		unsaved = list(self._chats)
		for chat_id in unsaved[: max(0, len(unsaved) - MAX_UNSAVED_CHATS)]:
			logging.warning(f"Dropping unsaved chat {chat_id}; too many failed saves pending")
			del self._chats[chat_id]

		self._chats[controller.chat_id] = controller
		return controller

	def get(self, chat_id: str) -> SessionLifecycleController:
		"""Return a chat or raise NotFoundError if missing."""
		controller = self._chats.get(chat_id)
		if controller is None:
			raise NotFoundError(f"Chat {chat_id} not found")
		return controller

	def remove(self, chat_id: str) -> None:
		self._chats.pop(chat_id, None)

	def live(self) -> List[SessionLifecycleController]:
		return [c for c in self._chats.values() if c.state is not ChatState.CLOSED]
