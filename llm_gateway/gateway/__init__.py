"""Multi-provider LLM gateway layer.

Provides async infrastructure for sending chat requests to interchangeable
LLM backends with:
  - Provider Registry & Availability Resolver (credential-driven)
  - Circuit Breaker (fixed-window cooldown per provider)
  - Format Adapters (openai, gemini, huggingface, ollama, anthropic)
  - Streaming Engine (SSE / NDJSON decoding)
  - Custom Provider Override (per-user premium backends)
"""

from llm_gateway.gateway.gateway import LlmGateway
from llm_gateway.gateway.types import ChatMessage, ChatOptions, ChatResult, ProviderDescriptor, ProviderFormat

__all__ = [
    "ChatMessage",
    "ChatOptions",
    "ChatResult",
    "LlmGateway",
    "ProviderDescriptor",
    "ProviderFormat",
]
