"""Core types and DTOs for the multi-provider LLM gateway."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProviderFormat(str, Enum):
    """Wire formats understood by the format adapters."""

    OPENAI = "openai"
    GEMINI = "gemini"
    HUGGINGFACE = "huggingface"
    OLLAMA = "ollama"
    ANTHROPIC = "anthropic"


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChatMessage:
    """One chronological turn of a conversation."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatMessage:
        return cls(role=MessageRole(data["role"]), content=str(data.get("content") or ""))


def coerce_messages(messages: Iterable[ChatMessage | Mapping[str, Any]]) -> list[ChatMessage]:
    """Accept ChatMessage objects or plain ``{"role", "content"}`` dicts."""
    return [m if isinstance(m, ChatMessage) else ChatMessage.from_dict(m) for m in messages]


def split_system(messages: list[ChatMessage]) -> tuple[str | None, list[ChatMessage]]:
    """Lift the system message out of the turn list (first one wins)."""
    system = next((m.content for m in messages if m.role == MessageRole.SYSTEM), None)
    turns = [m for m in messages if m.role != MessageRole.SYSTEM]
    return system, turns


# ---------------------------------------------------------------------------
# Provider descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProviderDescriptor:
    """Immutable description of one LLM backend.

    ``credential_env`` is None for local backends that need no key.
    ``base_url_env`` / ``model_env`` name environment variables that override
    the static base URL / model when set (used by the local Ollama backend).
    """

    id: str
    name: str
    base_url: str
    credential_env: str | None
    model: str
    fallback_model: str | None
    format: ProviderFormat
    max_tokens: int = 4096
    supports_streaming: bool = True
    supports_vision: bool = False
    base_url_env: str | None = None
    model_env: str | None = None
    timeout_seconds: float | None = None
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def requires_credential(self) -> bool:
        return self.credential_env is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "base_url": self.base_url,
            "model": self.model,
            "fallback_model": self.fallback_model,
            "format": self.format.value,
            "max_tokens": self.max_tokens,
            "streaming": self.supports_streaming,
            "vision": self.supports_vision,
        }


# ---------------------------------------------------------------------------
# Request / result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationParams:
    """Resolved per-call generation parameters handed to an adapter."""

    model: str
    max_tokens: int
    temperature: float


@dataclass
class ChatOptions:
    """Caller options for ``chat`` / ``chat_stream``."""

    max_tokens: int | None = None
    temperature: float | None = None
    model: str | None = None
    provider: str | None = None
    user_id: str | None = None


@dataclass
class ChatResult:
    """Canonical chat result, same shape regardless of backend.

    ``tokens`` is the backend's own usage object, kept for display only.
    """

    success: bool
    text: str
    provider: str | None
    model: str | None = None
    tokens: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    custom: bool = False

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "text": self.text,
            "provider": self.provider,
            "model": self.model,
            "tokens": self.tokens,
        }
        if self.error is not None:
            data["error"] = self.error
        if self.custom:
            data["custom"] = True
        return data


@dataclass
class ProviderStatus:
    id: str
    name: str
    configured: bool
    available: bool
    in_cooldown: bool
    model: str
    streaming: bool
    vision: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "configured": self.configured,
            "available": self.available,
            "in_cooldown": self.in_cooldown,
            "model": self.model,
            "streaming": self.streaming,
            "vision": self.vision,
        }


TokenCallback = Callable[[str], None]
DoneCallback = Callable[[str, dict], None]
