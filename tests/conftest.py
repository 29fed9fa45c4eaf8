import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from models.errors import GatewayError
from models.session_models import GatewaySettings, Message


class FakeGateway:
    """Scripted stand-in for ChatGateway.

    Replies are popped from `replies`; when empty a numbered reply is used.
    `failures` makes the next N calls raise GatewayError.
    """

    def __init__(self, replies: Optional[List[str]] = None, failures: int = 0) -> None:
        self.replies = list(replies or [])
        self.failures = failures
        self.calls: List[List[Message]] = []
        self.call_settings: List[Optional[GatewaySettings]] = []
        self.forwarded: List[dict] = []
        self.settings = GatewaySettings()

    async def complete(self, messages, settings=None) -> Message:
        self.calls.append([Message(role=m.role, content=m.content) for m in messages])
        self.call_settings.append(settings)
        if self.failures:
            self.failures -= 1
            raise GatewayError("upstream unavailable")
        content = self.replies.pop(0) if self.replies else f"reply {len(self.calls)}"
        return Message(role="assistant", content=content)

    async def forward(self, *, model, messages, temperature=None):
        self.forwarded.append({"model": model, "messages": messages, "temperature": temperature})
        return {
            "model": model,
            "choices": [{"index": 0, "message": {"role": "assistant", "content": "proxied"}}],
        }


class BlockingGateway(FakeGateway):
    """FakeGateway whose calls wait until `release()` is called."""

    def __init__(self, replies: Optional[List[str]] = None) -> None:
        super().__init__(replies)
        self._gate: Optional[asyncio.Event] = None

    @property
    def gate(self) -> asyncio.Event:
        if self._gate is None:
            self._gate = asyncio.Event()
        return self._gate

    def release(self) -> None:
        self.gate.set()

    async def complete(self, messages, settings=None) -> Message:
        await self.gate.wait()
        return await super().complete(messages, settings)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OPENAI_MODEL", "OPENAI_TEMPERATURE", "OPENAI_TIMEOUT", "REVIEW_GUIDELINES_PATH", "DATA_DIR"):
        monkeypatch.delenv(name, raising=False)
