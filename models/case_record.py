from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CaseRecord:
    """In-memory representation of an entry in cases.json.

    Attributes:
        name: Unique case name, also used as the case key.
        prompt: Patient details the model role-plays from.
        timestamp: ISO-8601 creation time (None until stored).
    """

    name: str
    prompt: str
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "prompt": self.prompt, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaseRecord":
        return cls(
            name=str(data.get("name") or ""),
            prompt=str(data.get("prompt") or ""),
            timestamp=data.get("timestamp") or None,
        )
