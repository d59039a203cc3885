"""Shared fakes and canned provider responses for the gateway tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable

import httpx


GROQ_HOST = "api.groq.com"
CEREBRAS_HOST = "api.cerebras.ai"
GEMINI_HOST = "generativelanguage.googleapis.com"
HF_HOST = "api-inference.huggingface.co"
OLLAMA_HOST = "localhost"
OPENAI_HOST = "api.openai.com"
ANTHROPIC_HOST = "api.anthropic.com"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Monotonic clock the tests can move forward by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingBackend:
    """httpx.MockTransport handler that routes by host and records every request."""

    def __init__(self):
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def route(self, host: str, handler: Handler) -> None:
        # Handlers build a fresh Response per request; streamed bodies are single-use
        self.routes[host] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404, text=f"no route for {request.url.host}")
        return handler(request)

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]

    def bodies(self, host: str | None = None) -> list[dict]:
        return [json.loads(r.content) for r in self.requests if host is None or r.url.host == host]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------


def openai_reply(text: str = "Hello world", usage: dict | None = None) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [{"message": {"role": "assistant", "content": text}, "finish_reason": "stop"}],
            "usage": usage if usage is not None else {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30},
        },
    )


def gemini_reply(text: str = "Hello world") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "candidates": [{"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 20, "totalTokenCount": 30},
        },
    )


def ollama_reply(text: str = "Hello world") -> httpx.Response:
    return httpx.Response(200, json={"model": "llama3.1", "message": {"role": "assistant", "content": text}, "done": True})


def anthropic_reply(text: str = "Hello world") -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "type": "message",
            "content": [{"type": "text", "text": text}],
            "usage": {"input_tokens": 12, "output_tokens": 8},
        },
    )


def error_reply(status: int, text: str = "upstream error") -> httpx.Response:
    return httpx.Response(status, text=text)


async def _byte_chunks(chunks: list[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


def stream_reply(*chunks: str, content_type: str = "text/event-stream") -> httpx.Response:
    """Streamed body delivered in exactly the given chunks (frames may straddle them)."""
    return httpx.Response(
        200,
        headers={"content-type": content_type},
        content=_byte_chunks([c.encode("utf-8") for c in chunks]),
    )


def openai_sse(*tokens: str, done: bool = True) -> list[str]:
    frames = [f"data: {json.dumps({'choices': [{'delta': {'content': t}}]})}\n\n" for t in tokens]
    if done:
        frames.append("data: [DONE]\n\n")
    return frames


def ollama_ndjson(*tokens: str) -> list[str]:
    frames = [json.dumps({"message": {"role": "assistant", "content": t}, "done": False}) + "\n" for t in tokens]
    frames.append(json.dumps({"message": {"role": "assistant", "content": ""}, "done": True}) + "\n")
    return frames



def write_custom_config(path, user_id: str, **overrides) -> None:
    """Write one custom-provider entry straight to the store file, skipping setup checks."""
    entry = {
        "provider_id": "custom",
        "provider_name": "Custom (OpenAI-compatible)",
        "api_key": "local-key",
        "masked_key": "local-ke...-key",
        "model": "local-model",
        "base_url": "http://lmstudio:1234/v1",
        "format": "openai",
    }
    entry.update(overrides)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({user_id: entry}), encoding="utf-8")
