"""Chat endpoints: synchronous completion and SSE token streaming."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from llm_gateway.core.config import settings
from llm_gateway.core.dependencies import get_gateway
from llm_gateway.core.rate_limit import limiter
from llm_gateway.gateway.gateway import LlmGateway
from llm_gateway.schemas.chat import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
@limiter.limit(settings.chat_rate_limit)
async def chat(
    request: Request,
    payload: ChatRequest,
    gateway: LlmGateway = Depends(get_gateway),
):
    """Send a chat request. Provider failures come back as ``success=false``, never as 5xx."""
    result = await gateway.chat(payload.to_messages(), payload.to_options())
    return ChatResponse(**result.to_dict())


def _sse(event: dict) -> str:
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


@router.post("/stream")
@limiter.limit(settings.chat_rate_limit)
async def chat_stream(
    request: Request,
    payload: ChatRequest,
    gateway: LlmGateway = Depends(get_gateway),
):
    """Stream a chat response as Server-Sent Events.

    Emits ``{"type": "token", "token": ...}`` per delta, then one
    ``{"type": "done", "response": ..., "metadata": ...}``.
    """
    queue: asyncio.Queue[dict | None] = asyncio.Queue()

    def on_token(token: str) -> None:
        queue.put_nowait({"type": "token", "token": token})

    def on_done(text: str, metadata: dict) -> None:
        queue.put_nowait({"type": "done", "response": text, "metadata": metadata})

    async def produce() -> None:
        try:
            await gateway.chat_stream(payload.to_messages(), on_token, on_done, payload.to_options())
        except Exception as e:
            logger.exception("Chat stream failed")
            queue.put_nowait({"type": "error", "error": f"{type(e).__name__}: {e}"})
        finally:
            queue.put_nowait(None)

    async def events() -> AsyncIterator[str]:
        task = asyncio.create_task(produce())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield _sse(event)
        finally:
            # Client went away: stop reading from the provider
            if not task.done():
                task.cancel()

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
