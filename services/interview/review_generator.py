"""One-shot AI critique of a saved interview session."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from dal.session_dal import SessionDAL
from models.errors import NotFoundError
from models.session_models import GatewaySettings, Message, SessionDraft, SessionRecord
from services.openai.patient_prompts import (
	DEFAULT_REVIEW_GUIDELINES,
	REVIEW_SYSTEM_PROMPT,
	build_review_prompt,
)


class ReviewGenerator:
	"""Produce a review for a session once and store it on the same record."""

	def __init__(
		self,
		gateway,
		store: SessionDAL,
		guidelines_path: Optional[Path | str] = None,
		settings: Optional[GatewaySettings] = None,
	) -> None:
		if gateway is None:
			raise ValueError("A language model gateway is required.")
		self.gateway = gateway
		self.store = store
		self.guidelines_path = Path(guidelines_path) if guidelines_path else None
		self.settings = settings
		self._locks: Dict[str, asyncio.Lock] = {}

	async def generate(self, session: SessionRecord) -> str:
		"""Return the session's review, calling the model only if none is stored.

		Overlapping calls for the same session share one model call: the
		second waits for the first and then reads the stored review.

		Raises:
			NotFoundError: if the session is not (or no longer) in the store.
			GatewayError: if the model call fails; nothing is stored then.
		"""
		if session.review:
			return session.review

		lock = self._locks.setdefault(session.id, asyncio.Lock())
		async with lock:
			review = await self._generate_once(session.id)
		# Later callers find the stored review, so the lock is no longer needed.
		self._locks.pop(session.id, None)

		session.review = review
		return review

	async def _generate_once(self, session_id: str) -> str:
		stored = await self.store.get_session(session_id)
		if stored is None:
			raise NotFoundError(f"Session {session_id} not found")
		if stored.review:
			return stored.review

		guidelines = await self.load_guidelines()
		prompt = build_review_prompt(guidelines, stored.case_prompt, stored.diagnosis, stored.messages)

		start = time.time()
		reply = await self.gateway.complete(
			[
				Message(role="system", content=REVIEW_SYSTEM_PROMPT),
				Message(role="user", content=prompt),
			],
			self.settings,
		)
		logging.info(f"Review generation latency for session {stored.id}: {time.time() - start:.3f}s")

		updated = await self.store.update(stored.id, SessionDraft(review=reply.content))
		if updated is None:
			raise NotFoundError(f"Session {stored.id} was deleted before its review was saved")
		return updated.review

	async def load_guidelines(self) -> str:
		"""Read the review preamble, falling back to a generic instruction."""
		if self.guidelines_path is None:
			return DEFAULT_REVIEW_GUIDELINES
		try:
			async with aiofiles.open(self.guidelines_path, "r", encoding="utf-8") as f:
				text = (await f.read()).strip()
		except OSError as exc:
			logging.warning(f"Could not load review guidelines from {self.guidelines_path}: {exc}")
			return DEFAULT_REVIEW_GUIDELINES
		return text or DEFAULT_REVIEW_GUIDELINES
