"""Language model gateway built on OpenAI chat completions."""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from models.errors import GatewayError
from models.session_models import GatewaySettings, Message
from services.openai.response_utils import extract_message_content, extract_usage, serialize_response


class ChatGateway:
    """Send an ordered list of role-tagged messages and return one assistant message."""

    def __init__(self, client: AsyncOpenAI, settings: Optional[GatewaySettings] = None) -> None:
        """Initialize the gateway with a shared OpenAI client and default model settings."""
        if client is None:
            raise ValueError("OpenAI AsyncOpenAI client is required.")
        self.client = client
        self.settings = settings or GatewaySettings()

    async def complete(
        self,
        messages: Sequence[Message],
        settings: Optional[GatewaySettings] = None,
    ) -> Message:
        """Return the model's reply to `messages`.

        Args:
            messages: Full ordered history, system instruction first.
            settings: Model and temperature for this call (defaults to the gateway's).

        Raises:
            GatewayError: on any API, network or timeout failure, or an empty reply.
        """
        settings = settings or self.settings
        start = time.time()

        try:
            response = await self.client.chat.completions.create(
                model=settings.model,
                messages=[msg.to_dict() for msg in messages],
                temperature=settings.temperature,
            )
        except Exception as exc:
            logging.error(f"OpenAI chat completion error: {exc}")
            raise GatewayError(str(exc) or exc.__class__.__name__) from exc

        content = extract_message_content(response)
        if not content:
            raise GatewayError("Chat completion response did not include message content.")

        usage = extract_usage(response)
        latency = time.time() - start
        logging.info(
            f"Chat completion latency: {latency:.3f}s "
            f"(model={settings.model}, input_tokens={usage['input_tokens']}, output_tokens={usage['output_tokens']})"
        )
        return Message(role="assistant", content=content)

    async def forward(
        self,
        *,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: Optional[float] = None,
    ) -> Any:
        """Pass a raw chat completion request through and return the serialized response.

        OpenAI exceptions are logged and re-raised so the proxy route can relay
        the upstream status code.
        """
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=self.settings.temperature if temperature is None else temperature,
            )
        except Exception as exc:
            logging.error(f"Error calling OpenAI API: {exc}")
            raise
        return serialize_response(response)
