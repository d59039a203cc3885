"""Format Adapters: protocol-level handling for each LLM wire format.

Each adapter translates canonical chat messages into one backend protocol,
sends it through the shared ``Transport`` and turns the reply (or a stream of
frames) back into canonical text.

Format-specific behaviors:
  - openai: Chat Completions, bearer auth, SSE ``choices[0].delta.content``
  - gemini: contents/parts with ``systemInstruction``, key in the query string
  - huggingface: single chat-template prompt, no streaming
  - ollama: local ``/api/chat``, NDJSON stream, fallback model on any non-OK
  - anthropic: Messages API with top-level ``system``, never downgrades
"""

from __future__ import annotations

import dataclasses
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

from llm_gateway.gateway.errors import (
    ConfigurationError,
    EmptyResponseError,
    RateLimitError,
    TransportError,
    UnknownFormatError,
)
from llm_gateway.gateway.normalizer import normalize_text
from llm_gateway.gateway.streaming import NDJSON, SSE, Framing, consume_lines
from llm_gateway.gateway.transport import Transport
from llm_gateway.gateway.types import (
    ChatMessage,
    ChatResult,
    GenerationParams,
    MessageRole,
    ProviderDescriptor,
    ProviderFormat,
    TokenCallback,
    split_system,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
TOP_P = 0.9
ANTHROPIC_VERSION = "2023-06-01"
ERROR_BODY_PREVIEW = 200


@dataclass
class PreparedRequest:
    """One outgoing HTTP call, fully built but not yet sent."""

    url: str
    json: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] | None = None


def _dig(data: Any, *path: Any) -> Any:
    """Nested lookup that yields None instead of raising on a missing step."""
    for step in path:
        try:
            data = data[step]
        except (KeyError, IndexError, TypeError):
            return None
    return data


class BaseFormatAdapter(ABC):
    """Base class for all format adapters."""

    format: ProviderFormat
    # None means the format has no streaming mode
    framing: Framing | None = SSE

    def __init__(
        self,
        transport: Transport,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ):
        self.transport = transport
        self.timeout_seconds = timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds

    # -- protocol hooks ------------------------------------------------------

    @abstractmethod
    def build_request(
        self,
        provider: ProviderDescriptor,
        api_key: str | None,
        messages: list[ChatMessage],
        params: GenerationParams,
        *,
        stream: bool = False,
    ) -> PreparedRequest:
        ...

    @abstractmethod
    def extract_text(self, data: Any) -> Any:
        """Pull the completion text out of a decoded (non-stream) reply."""
        ...

    def extract_usage(self, data: Any) -> dict[str, Any]:
        return {}

    def extract_delta(self, payload: Any) -> str | None:
        return None

    def should_downgrade(self, status_code: int) -> bool:
        """Whether a non-OK status earns one retry with the fallback model."""
        return status_code == 429

    # -- I/O -----------------------------------------------------------------

    def timeout_for(self, provider: ProviderDescriptor) -> httpx.Timeout:
        return httpx.Timeout(
            provider.timeout_seconds or self.timeout_seconds,
            connect=self.connect_timeout_seconds,
        )

    def _check_credential(self, provider: ProviderDescriptor, api_key: str | None) -> None:
        if provider.requires_credential and not api_key:
            raise ConfigurationError(f"{provider.name}: API key not configured", provider=provider.id)

    async def send(
        self,
        provider: ProviderDescriptor,
        api_key: str | None,
        messages: list[ChatMessage],
        params: GenerationParams,
    ) -> httpx.Response:
        """Send one non-streaming request and return the raw response."""
        request = self.build_request(provider, api_key, messages, params)
        try:
            async with self.transport.client() as client:
                return await client.post(
                    request.url,
                    json=request.json,
                    headers=request.headers,
                    params=request.params,
                    timeout=self.timeout_for(provider),
                )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"{provider.name}: timeout after {self.timeout_for(provider).read}s", provider=provider.id
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"{provider.name}: {exc}", provider=provider.id) from exc

    async def complete(
        self,
        provider: ProviderDescriptor,
        api_key: str | None,
        messages: list[ChatMessage],
        params: GenerationParams,
    ) -> ChatResult:
        """One completion. Returns a successful ChatResult or raises ProviderError."""
        self._check_credential(provider, api_key)
        resp = await self.send(provider, api_key, messages, params)

        if not resp.is_success:
            status = resp.status_code
            if (
                self.should_downgrade(status)
                and provider.fallback_model
                and params.model != provider.fallback_model
            ):
                logger.warning(
                    "%s returned %d for %s, retrying with %s",
                    provider.name, status, params.model, provider.fallback_model,
                )
                return await self.complete(
                    provider, api_key, messages, dataclasses.replace(params, model=provider.fallback_model)
                )
            message = f"{provider.name} {status}: {resp.text[:ERROR_BODY_PREVIEW]}"
            if status == 429:
                raise RateLimitError(message, provider=provider.id, status_code=status)
            raise TransportError(message, provider=provider.id, status_code=status)

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError(
                f"{provider.name}: invalid JSON response", provider=provider.id, status_code=resp.status_code
            ) from exc

        text = normalize_text(self.extract_text(data))
        if not text:
            raise EmptyResponseError(f"{provider.name}: empty response", provider=provider.id)

        return ChatResult(
            success=True,
            text=text,
            provider=provider.name,
            model=params.model,
            tokens=self.extract_usage(data),
        )

    async def stream(
        self,
        provider: ProviderDescriptor,
        api_key: str | None,
        messages: list[ChatMessage],
        params: GenerationParams,
        on_token: TokenCallback,
    ) -> str:
        """Stream one completion, calling ``on_token`` per delta. Returns the full text."""
        if self.framing is None:
            raise TransportError(f"{provider.name}: streaming not supported", provider=provider.id)
        self._check_credential(provider, api_key)
        request = self.build_request(provider, api_key, messages, params, stream=True)

        try:
            async with self.transport.client() as client:
                async with client.stream(
                    "POST",
                    request.url,
                    json=request.json,
                    headers=request.headers,
                    params=request.params,
                    timeout=self.timeout_for(provider),
                ) as resp:
                    if not resp.is_success:
                        body = (await resp.aread()).decode("utf-8", errors="replace")
                        message = f"{provider.name} stream {resp.status_code}: {body[:ERROR_BODY_PREVIEW]}"
                        error_cls = RateLimitError if resp.status_code == 429 else TransportError
                        raise error_cls(message, provider=provider.id, status_code=resp.status_code)
                    return await consume_lines(resp.aiter_lines(), self.framing, self.extract_delta, on_token)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"{provider.name} stream: {exc}", provider=provider.id) from exc


# ---------------------------------------------------------------------------
# OpenAI-compatible Adapter (Groq, Cerebras, OpenAI, Mistral, OpenRouter...)
# ---------------------------------------------------------------------------


class OpenAIAdapter(BaseFormatAdapter):
    format = ProviderFormat.OPENAI

    def build_request(self, provider, api_key, messages, params, *, stream=False):
        payload: dict[str, Any] = {
            "model": params.model,
            "messages": [m.to_dict() for m in messages],
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
        }
        if stream:
            payload["stream"] = True
        else:
            payload["top_p"] = TOP_P
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            **provider.extra_headers,
        }
        return PreparedRequest(url=f"{provider.base_url}/chat/completions", json=payload, headers=headers)

    def extract_text(self, data):
        return _dig(data, "choices", 0, "message", "content")

    def extract_usage(self, data):
        return _dig(data, "usage") or {}

    def extract_delta(self, payload):
        return _dig(payload, "choices", 0, "delta", "content")


# ---------------------------------------------------------------------------
# Gemini Adapter (Google AI)
# ---------------------------------------------------------------------------


class GeminiAdapter(BaseFormatAdapter):
    format = ProviderFormat.GEMINI

    def build_request(self, provider, api_key, messages, params, *, stream=False):
        system, turns = split_system(messages)
        generation_config: dict[str, Any] = {
            "maxOutputTokens": params.max_tokens,
            "temperature": params.temperature,
        }
        if not stream:
            generation_config["topP"] = TOP_P
        payload: dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == MessageRole.ASSISTANT else "user",
                    "parts": [{"text": m.content}],
                }
                for m in turns
            ],
            "generationConfig": generation_config,
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        if stream:
            url = f"{provider.base_url}/models/{params.model}:streamGenerateContent"
            query = {"alt": "sse", "key": api_key or ""}
        else:
            url = f"{provider.base_url}/models/{params.model}:generateContent"
            query = {"key": api_key or ""}
        return PreparedRequest(
            url=url, json=payload, headers={"Content-Type": "application/json"}, params=query
        )

    def extract_text(self, data):
        return _dig(data, "candidates", 0, "content", "parts", 0, "text")

    def extract_usage(self, data):
        return _dig(data, "usageMetadata") or {}

    def extract_delta(self, payload):
        return _dig(payload, "candidates", 0, "content", "parts", 0, "text")


# ---------------------------------------------------------------------------
# HuggingFace Inference Adapter
# ---------------------------------------------------------------------------


_HF_ROLE_MARKERS = {
    MessageRole.SYSTEM: "<|system|>",
    MessageRole.USER: "<|user|>",
    MessageRole.ASSISTANT: "<|assistant|>",
}


def build_chat_prompt(messages: list[ChatMessage]) -> str:
    """Render messages with chat-template markers, ending on an open assistant turn."""
    rendered = "\n".join(f"{_HF_ROLE_MARKERS[m.role]}\n{m.content}</s>" for m in messages)
    return rendered + "\n<|assistant|>\n"


class HuggingFaceAdapter(BaseFormatAdapter):
    format = ProviderFormat.HUGGINGFACE
    framing = None

    def build_request(self, provider, api_key, messages, params, *, stream=False):
        payload = {
            "inputs": build_chat_prompt(messages),
            "parameters": {
                "max_new_tokens": params.max_tokens,
                "temperature": params.temperature,
                "return_full_text": False,
            },
        }
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        return PreparedRequest(url=f"{provider.base_url}/{params.model}", json=payload, headers=headers)

    def extract_text(self, data):
        # The inference API answers with either a list of generations or one object
        text = _dig(data, 0, "generated_text") if isinstance(data, list) else _dig(data, "generated_text")
        return text.strip() if isinstance(text, str) else text


# ---------------------------------------------------------------------------
# Ollama Adapter (local)
# ---------------------------------------------------------------------------


class OllamaAdapter(BaseFormatAdapter):
    format = ProviderFormat.OLLAMA
    framing = NDJSON

    def build_request(self, provider, api_key, messages, params, *, stream=False):
        payload = {
            "model": params.model,
            "messages": [m.to_dict() for m in messages],
            "stream": stream,
            "options": {"num_predict": params.max_tokens, "temperature": params.temperature},
        }
        return PreparedRequest(
            url=f"{provider.base_url}/api/chat", json=payload, headers={"Content-Type": "application/json"}
        )

    def should_downgrade(self, status_code):
        # A missing local model answers 404, not 429
        return True

    def extract_text(self, data):
        return _dig(data, "message", "content")

    def extract_delta(self, payload):
        return _dig(payload, "message", "content")


# ---------------------------------------------------------------------------
# Anthropic Adapter (Messages API)
# ---------------------------------------------------------------------------


class AnthropicAdapter(BaseFormatAdapter):
    format = ProviderFormat.ANTHROPIC

    def build_request(self, provider, api_key, messages, params, *, stream=False):
        system, turns = split_system(messages)
        payload: dict[str, Any] = {
            "model": params.model,
            "max_tokens": params.max_tokens,
            "temperature": params.temperature,
            "messages": [m.to_dict() for m in turns],
        }
        if system:
            payload["system"] = system
        if stream:
            payload["stream"] = True
        headers = {
            "x-api-key": api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
            **provider.extra_headers,
        }
        return PreparedRequest(url=f"{provider.base_url}/messages", json=payload, headers=headers)

    def should_downgrade(self, status_code):
        return False

    def extract_text(self, data):
        return _dig(data, "content", 0, "text")

    def extract_usage(self, data):
        return _dig(data, "usage") or {}

    def extract_delta(self, payload):
        if _dig(payload, "type") != "content_block_delta":
            return None
        return _dig(payload, "delta", "text")


# ---------------------------------------------------------------------------
# Adapter Registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[ProviderFormat, type[BaseFormatAdapter]] = {
    ProviderFormat.OPENAI: OpenAIAdapter,
    ProviderFormat.GEMINI: GeminiAdapter,
    ProviderFormat.HUGGINGFACE: HuggingFaceAdapter,
    ProviderFormat.OLLAMA: OllamaAdapter,
    ProviderFormat.ANTHROPIC: AnthropicAdapter,
}


def get_adapter(fmt: ProviderFormat | str, transport: Transport, **kwargs) -> BaseFormatAdapter:
    """Factory: get an adapter instance for the given wire format."""
    try:
        fmt = ProviderFormat(fmt)
    except ValueError:
        raise UnknownFormatError(f"Unknown provider format: {fmt}") from None
    adapter_cls = ADAPTER_REGISTRY.get(fmt)
    if adapter_cls is None:
        raise UnknownFormatError(f"No adapter registered for format: {fmt.value}")
    return adapter_cls(transport, **kwargs)


def build_adapters(transport: Transport, **kwargs) -> dict[ProviderFormat, BaseFormatAdapter]:
    """One adapter per registered format, all sharing a transport."""
    return {fmt: get_adapter(fmt, transport, **kwargs) for fmt in ADAPTER_REGISTRY}
