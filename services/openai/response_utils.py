"""Utilities for parsing and serializing OpenAI chat completion responses."""

from typing import Any, Dict, Optional


def extract_message_content(response: Any) -> Optional[str]:
    """Return the text of the first choice in a chat completion, if present.

    Args:
        response: Object returned by `AsyncOpenAI.chat.completions.create`.

    Returns:
        The assistant message content, or None when unavailable.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        return None

    message = getattr(choices[0], "message", None)
    if message is None:
        return None

    return getattr(message, "content", None)


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "prompt_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "completion_tokens", None) if usage else None,
    }


def serialize_response(response: Any) -> Any:
    """Convert a response object into a serializable structure."""
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if hasattr(response, "to_dict"):
        return response.to_dict()
    return str(response)
