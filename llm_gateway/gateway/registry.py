"""Provider Registry and Availability Resolver.

The registry is a static catalog of backend descriptors. Credentials,
``LLM_PROVIDER_ORDER`` and the Ollama overrides are read from the environment
mapping on every lookup, never cached, so a key exported after startup is
picked up by the next call.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Iterable, Mapping

from llm_gateway.gateway.errors import UnknownProviderError
from llm_gateway.gateway.types import ProviderDescriptor, ProviderFormat

logger = logging.getLogger(__name__)

ORDER_ENV = "LLM_PROVIDER_ORDER"
DEFAULT_PROVIDER_ORDER: tuple[str, ...] = ("groq", "cerebras", "gemini", "huggingface", "ollama")

BUILTIN_PROVIDERS: dict[str, ProviderDescriptor] = {
    "groq": ProviderDescriptor(
        id="groq",
        name="Groq",
        base_url="https://api.groq.com/openai/v1",
        credential_env="GROQ_API_KEY",
        model="llama-3.3-70b-versatile",
        fallback_model="mixtral-8x7b-32768",
        format=ProviderFormat.OPENAI,
    ),
    "cerebras": ProviderDescriptor(
        id="cerebras",
        name="Cerebras",
        base_url="https://api.cerebras.ai/v1",
        credential_env="CEREBRAS_API_KEY",
        model="llama-3.3-70b",
        fallback_model="llama-3.1-8b",
        format=ProviderFormat.OPENAI,
    ),
    "gemini": ProviderDescriptor(
        id="gemini",
        name="Gemini",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        credential_env="GEMINI_API_KEY",
        model="gemini-2.0-flash",
        fallback_model="gemini-1.5-flash",
        format=ProviderFormat.GEMINI,
        supports_vision=True,
    ),
    "huggingface": ProviderDescriptor(
        id="huggingface",
        name="HuggingFace",
        base_url="https://api-inference.huggingface.co/models",
        credential_env="HF_API_KEY",
        model="mistralai/Mistral-7B-Instruct-v0.3",
        fallback_model="HuggingFaceH4/zephyr-7b-beta",
        format=ProviderFormat.HUGGINGFACE,
        max_tokens=2048,
        supports_streaming=False,
    ),
    "ollama": ProviderDescriptor(
        id="ollama",
        name="Ollama",
        base_url="http://localhost:11434",
        credential_env=None,
        model="llama3.1",
        fallback_model="mistral",
        format=ProviderFormat.OLLAMA,
        base_url_env="OLLAMA_URL",
        model_env="OLLAMA_MODEL",
    ),
}


class ProviderRegistry:
    """Catalog of built-in providers plus the availability resolver."""

    def __init__(
        self,
        providers: Mapping[str, ProviderDescriptor] | None = None,
        environ: Mapping[str, str] | None = None,
        default_order: Iterable[str] = DEFAULT_PROVIDER_ORDER,
        local_timeout_seconds: float | None = None,
    ):
        """
        Args:
            providers: Descriptor catalog, keyed by id (defaults to the built-ins)
            environ: Environment mapping read at call time (defaults to os.environ)
            default_order: Priority used when LLM_PROVIDER_ORDER is unset
            local_timeout_seconds: Deadline applied to credential-less backends
        """
        self._providers = dict(providers if providers is not None else BUILTIN_PROVIDERS)
        self._environ = environ if environ is not None else os.environ
        self._default_order = tuple(default_order)
        self._local_timeout = local_timeout_seconds

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._providers

    def ids(self) -> list[str]:
        return list(self._providers)

    def get(self, provider_id: str) -> ProviderDescriptor:
        """Return the descriptor with environment overrides applied."""
        try:
            descriptor = self._providers[provider_id]
        except KeyError:
            raise UnknownProviderError(provider_id) from None

        overrides: dict = {}
        if descriptor.base_url_env and self._environ.get(descriptor.base_url_env):
            overrides["base_url"] = self._environ[descriptor.base_url_env].rstrip("/")
        if descriptor.model_env and self._environ.get(descriptor.model_env):
            overrides["model"] = self._environ[descriptor.model_env]
        if not descriptor.requires_credential and descriptor.timeout_seconds is None and self._local_timeout:
            overrides["timeout_seconds"] = self._local_timeout
        return dataclasses.replace(descriptor, **overrides) if overrides else descriptor

    def all(self) -> list[ProviderDescriptor]:
        return [self.get(provider_id) for provider_id in self._providers]

    def credential_for(self, descriptor: ProviderDescriptor) -> str | None:
        if descriptor.credential_env is None:
            return None
        return self._environ.get(descriptor.credential_env) or None

    def is_configured(self, descriptor: ProviderDescriptor) -> bool:
        return not descriptor.requires_credential or bool(self.credential_for(descriptor))

    def order_hint(self) -> list[str]:
        raw = self._environ.get(ORDER_ENV, "")
        order = [part.strip() for part in raw.split(",") if part.strip()]
        return order or list(self._default_order)

    def resolve(self, order_hint: Iterable[str] | None = None) -> list[ProviderDescriptor]:
        """Ordered, credential-satisfied providers.

        Unknown ids in the hint are ignored. The circuit breaker is not
        consulted here; cooldowns are filtered at call time.
        """
        resolved: list[ProviderDescriptor] = []
        seen: set[str] = set()
        for provider_id in order_hint if order_hint is not None else self.order_hint():
            if provider_id in seen:
                continue
            seen.add(provider_id)
            if provider_id not in self._providers:
                logger.debug("Ignoring unknown provider %r in order hint", provider_id)
                continue
            descriptor = self.get(provider_id)
            if self.is_configured(descriptor):
                resolved.append(descriptor)
        return resolved
