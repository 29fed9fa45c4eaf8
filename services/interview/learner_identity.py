"""Current learner name, read when a session is committed."""

from __future__ import annotations

from typing import Optional

from models.session_models import DEFAULT_USER_NAME


class LearnerIdentity:
	"""Hold the single mutable learner name for this server."""

	def __init__(self, user_name: Optional[str] = None) -> None:
		self.current_user_name = (user_name or "").strip()

	def set_name(self, user_name: Optional[str]) -> str:
		self.current_user_name = (user_name or "").strip()
		return self.display_name

	@property
	def display_name(self) -> str:
		return self.current_user_name or DEFAULT_USER_NAME
