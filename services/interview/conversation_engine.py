"""Turn-by-turn exchange between the learner and the simulated patient."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

from models.session_models import Conversation, GatewaySettings, Message
from services.openai.patient_prompts import GATEWAY_APOLOGY, build_patient_system_prompt

SpeakFn = Callable[[str], Any]


class ConversationEngine:
	"""Build patient conversations and exchange turns with the language model.

	The whole history is replayed to the gateway on every turn. A failed call
	never leaves a user turn unanswered: a fixed apology is appended instead
	and returned to the caller.
	"""

	def __init__(self, gateway, speak: Optional[SpeakFn] = None, settings: Optional[GatewaySettings] = None) -> None:
		if gateway is None:
			raise ValueError("A language model gateway is required.")
		self.gateway = gateway
		self.speak = speak
		self.settings = settings or getattr(gateway, "settings", None) or GatewaySettings()
		self._speech_tasks: Set[asyncio.Future] = set()

	def start(self, case_name: str, case_prompt: str, settings: Optional[GatewaySettings] = None) -> Conversation:
		"""Create a conversation holding only the patient system instruction."""
		conversation = Conversation(
			case_name=case_name,
			case_prompt=case_prompt,
			settings=settings or self.settings,
		)
		conversation.history.append(Message(role="system", content=build_patient_system_prompt(case_prompt)))
		return conversation

	async def kickoff(self, conversation: Conversation) -> Optional[str]:
		"""Send the case prompt as the hidden first user turn to get the opening line."""
		return await self.send_turn(conversation, conversation.case_prompt)

	async def open(self, case_name: str, case_prompt: str, settings: Optional[GatewaySettings] = None) -> Conversation:
		"""Start a conversation and wait for the patient's first reply."""
		conversation = self.start(case_name, case_prompt, settings)
		await self.kickoff(conversation)
		return conversation

	async def send_turn(self, conversation: Conversation, user_text: str) -> Optional[str]:
		"""Append a user turn, ask the model, append and return its reply.

		Returns None without touching the history when a reply is still pending
		for this conversation.
		"""
		if conversation.busy:
			logging.info(f"Reply pending for case '{conversation.case_name}'; ignoring new turn")
			return None

		conversation.busy = True
		conversation.history.append(Message(role="user", content=user_text))
		try:
			reply = await self.gateway.complete(list(conversation.history), conversation.settings)
			text = reply.content
		except asyncio.CancelledError:
			conversation.history.pop()
			raise
		except Exception as exc:
			logging.warning(f"Substituting apology for case '{conversation.case_name}': {exc}")
			text = GATEWAY_APOLOGY
		finally:
			conversation.busy = False

		conversation.history.append(Message(role="assistant", content=text))
		self._notify_speech(text)
		return text

	def _notify_speech(self, text: str) -> None:
		"""Offer the reply to the speech collaborator without waiting on it."""
		if self.speak is None:
			return
		try:
			result = self.speak(text)
		except Exception as exc:
			logging.warning(f"Speech output failed: {exc}")
			return
		if inspect.isawaitable(result):
			task = asyncio.ensure_future(result)
			self._speech_tasks.add(task)
			task.add_done_callback(self._speech_done)

	def _speech_done(self, task: asyncio.Future) -> None:
		self._speech_tasks.discard(task)
		if not task.cancelled() and task.exception() is not None:
			logging.warning(f"Speech output failed: {task.exception()}")
