"""Server-side proxy for OpenAI chat completions; the browser never sees the key."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from openai import APIStatusError
from pydantic import BaseModel, Field

router = APIRouter(prefix="/api", tags=["openai"])

INVALID_REQUEST = "Invalid request. Required fields: model, messages (array)"


class ChatProxyRequest(BaseModel):
    model: str = Field(min_length=1)
    messages: List[Dict[str, Any]]
    temperature: Optional[float] = None


@router.post("/openai")
async def openai_proxy(request: Request):
    """Forward `{model, messages, temperature}` to OpenAI and return its raw response.

    A body without a model or a messages array gets 400. Upstream error
    bodies and status codes are passed through unchanged.
    """
    gateway = getattr(request.app.state, "chat_gateway", None)
    if gateway is None:
        return JSONResponse(status_code=500, content={"error": "API key not configured on server"})

    try:
        payload = ChatProxyRequest.model_validate(await request.json())
    except ValueError:
        # Covers malformed JSON and pydantic validation errors alike.
        return JSONResponse(status_code=400, content={"error": INVALID_REQUEST})

    try:
        return await gateway.forward(
            model=payload.model,
            messages=payload.messages,
            temperature=payload.temperature,
        )
    except APIStatusError as exc:
        body = exc.body if isinstance(exc.body, dict) else {"error": {"message": exc.message}}
        return JSONResponse(status_code=exc.status_code, content=body)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logging.error(f"OpenAI proxy failure: {exc}")
        return JSONResponse(status_code=500, content={"error": f"Failed to call OpenAI API: {exc}"})
