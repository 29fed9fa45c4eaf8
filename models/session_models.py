"""Session domain models for interview chats and saved sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

ROLES = ("system", "user", "assistant")
DEFAULT_USER_NAME = "Anonymous"


def utc_now_iso() -> str:
	"""Return the current UTC time as an ISO-8601 string with millisecond precision."""
	return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Message:
	"""A single role-tagged chat message."""

	role: str
	content: str

	def __post_init__(self) -> None:
		if self.role not in ROLES:
			raise ValueError(f"Unsupported message role: {self.role!r}")

	def to_dict(self) -> Dict[str, str]:
		return {"role": self.role, "content": self.content}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Message":
		return cls(role=str(data.get("role", "")), content=str(data.get("content") or ""))


@dataclass
class SessionRecord:
	"""A saved interview session as stored in sessions.json."""

	id: str
	case_id: str
	case_name: str
	messages: List[Message]
	timestamp: str
	case_prompt: str = ""
	user_name: str = DEFAULT_USER_NAME
	diagnosis: str = ""
	review: Optional[str] = None
	last_updated: Optional[str] = None

	def to_dict(self) -> Dict[str, Any]:
		"""Serialize using the camelCase keys the browser and the JSON file expect."""
		data: Dict[str, Any] = {
			"id": self.id,
			"caseId": self.case_id,
			"caseName": self.case_name,
			"userName": self.user_name,
			"casePrompt": self.case_prompt,
			"diagnosis": self.diagnosis,
			"timestamp": self.timestamp,
			"messages": [msg.to_dict() for msg in self.messages],
		}
		if self.review:
			data["review"] = self.review
		if self.last_updated:
			data["lastUpdated"] = self.last_updated
		return data

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
		return cls(
			id=str(data["id"]),
			case_id=str(data.get("caseId") or ""),
			case_name=str(data.get("caseName") or ""),
			messages=[Message.from_dict(item) for item in data.get("messages") or []],
			timestamp=str(data.get("timestamp") or ""),
			case_prompt=data.get("casePrompt") or "",
			user_name=data.get("userName") or DEFAULT_USER_NAME,
			diagnosis=data.get("diagnosis") or "",
			review=data.get("review") or None,
			last_updated=data.get("lastUpdated") or None,
		)


@dataclass
class SessionDraft:
	"""Partial session used for upserts; None means "not supplied"."""

	id: Optional[str] = None
	case_id: Optional[str] = None
	case_name: Optional[str] = None
	messages: Optional[List[Message]] = None
	case_prompt: Optional[str] = None
	user_name: Optional[str] = None
	diagnosis: Optional[str] = None
	review: Optional[str] = None
	last_updated: Optional[str] = None


@dataclass(frozen=True)
class GatewaySettings:
	"""Model parameters passed explicitly into every gateway call."""

	model: str = "gpt-3.5-turbo"
	temperature: float = 0.7

	def with_overrides(self, model: Optional[str] = None, temperature: Optional[float] = None) -> "GatewaySettings":
		return GatewaySettings(
			model=model or self.model,
			temperature=self.temperature if temperature is None else temperature,
		)


@dataclass
class Conversation:
	"""Live, in-memory exchange for one opened case."""

	case_name: str
	case_prompt: str
	settings: GatewaySettings
	history: List[Message] = field(default_factory=list)
	busy: bool = False

	@property
	def has_reply(self) -> bool:
		"""True once the model has answered at least once."""
		return any(msg.role == "assistant" for msg in self.history)

	def visible_messages(self) -> List[Message]:
		"""Return the learner-facing transcript.

		The system instruction and the kickoff user turn (the raw case prompt)
		are hidden; everything after them is shown and persisted.
		"""
		return list(self.history[2:])
