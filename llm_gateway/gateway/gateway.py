"""LLM Gateway: dispatch engine integrating all gateway components.

Main entry point for sending chat requests to LLM providers:
  1. Tries the user's enabled custom provider (premium override)
  2. Resolves the configured built-in providers in priority order
  3. Tries an explicitly requested provider first, if any
  4. Walks the chain, skipping providers in cooldown
  5. Cools down every provider that raises and moves on
  6. Returns a non-throwing failure result when everything is exhausted

Usage:
    gateway = LlmGateway.from_settings(settings)

    result = await gateway.chat([{"role": "user", "content": "Olá"}])

    await gateway.chat_stream(messages, on_token=print, on_done=lambda text, meta: ...)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

import httpx

from llm_gateway.core.metrics import PROVIDER_COOLDOWNS, record_provider_call
from llm_gateway.gateway.circuit_breaker import CircuitBreaker
from llm_gateway.gateway.custom_provider import CustomProviderClient, CustomProviderStore
from llm_gateway.gateway.errors import EmptyResponseError, ProviderError, UnknownFormatError
from llm_gateway.gateway.format_adapters import (
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    BaseFormatAdapter,
    build_adapters,
)
from llm_gateway.gateway.registry import ProviderRegistry
from llm_gateway.gateway.transport import PlainTransport, Transport, build_transport
from llm_gateway.gateway.types import (
    ChatMessage,
    ChatOptions,
    ChatResult,
    DoneCallback,
    GenerationParams,
    ProviderDescriptor,
    ProviderStatus,
    TokenCallback,
    coerce_messages,
)

logger = logging.getLogger(__name__)

NO_PROVIDER_MESSAGE = "⚠️ Nenhum provider de IA configurado. Adiciona pelo menos GROQ_API_KEY ao .env"
ALL_FAILED_MESSAGE = "⚠️ Todos os providers de IA falharam. Tenta novamente em 1 minuto."


class _TokenTap:
    """Forwards tokens to the caller while remembering what was emitted."""

    def __init__(self, on_token: TokenCallback):
        self._on_token = on_token
        self._parts: list[str] = []

    def __call__(self, token: str) -> None:
        self._parts.append(token)
        self._on_token(token)

    @property
    def emitted(self) -> bool:
        return bool(self._parts)

    @property
    def text(self) -> str:
        return "".join(self._parts)


class LlmGateway:
    """Multi-provider chat gateway.

    Integrates:
      - ProviderRegistry: catalog + credential-based availability
      - CircuitBreaker: per-provider cooldown after failures
      - Format adapters: protocol-specific HTTP calls and stream parsing
      - CustomProviderStore/Client: per-user premium override

    All state is owned by the instance; nothing is process-global.
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        breaker: CircuitBreaker | None = None,
        custom_store: CustomProviderStore | None = None,
        transport: Transport | None = None,
        default_temperature: float = 0.7,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ):
        self.registry = registry or ProviderRegistry()
        self.breaker = breaker or CircuitBreaker()
        self.custom_store = custom_store or CustomProviderStore()
        self.transport = transport or PlainTransport()
        self.default_temperature = default_temperature

        self.adapters = build_adapters(
            self.transport,
            timeout_seconds=timeout_seconds,
            connect_timeout_seconds=connect_timeout_seconds,
        )
        self.custom_client = CustomProviderClient(self.custom_store, self.adapters, default_temperature)

    @classmethod
    def from_settings(
        cls,
        settings: Any,
        environ: Mapping[str, str] | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> LlmGateway:
        """Build a gateway from application settings, loading persisted custom providers."""
        store = CustomProviderStore(settings.custom_providers_file)
        store.load()
        return cls(
            registry=ProviderRegistry(environ=environ, local_timeout_seconds=settings.ollama_timeout_seconds),
            breaker=CircuitBreaker(settings.provider_cooldown_seconds),
            custom_store=store,
            transport=build_transport(
                settings.use_keepalive_transport,
                max_connections=settings.keepalive_max_connections,
                keepalive_expiry=settings.keepalive_expiry_seconds,
                transport=http_transport,
            ),
            default_temperature=settings.default_temperature,
            timeout_seconds=settings.request_timeout_seconds,
            connect_timeout_seconds=settings.connect_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self.transport.aclose()

    # -- helpers -------------------------------------------------------------

    def _adapter(self, provider: ProviderDescriptor) -> BaseFormatAdapter:
        adapter = self.adapters.get(provider.format)
        if adapter is None:
            raise UnknownFormatError(f"No adapter for format {provider.format!r} ({provider.id})")
        return adapter

    def _params(self, provider: ProviderDescriptor, options: ChatOptions) -> GenerationParams:
        return GenerationParams(
            model=options.model or provider.model,
            max_tokens=options.max_tokens or provider.max_tokens,
            temperature=options.temperature if options.temperature is not None else self.default_temperature,
        )

    def _fail(self, provider: ProviderDescriptor, exc: ProviderError) -> None:
        logger.error("%s failed: %s", provider.name, exc, extra={"provider": provider.id})
        self.breaker.set_cooldown(provider.id)
        PROVIDER_COOLDOWNS.labels(provider=provider.id).inc()

    async def _call(
        self, provider: ProviderDescriptor, messages: list[ChatMessage], options: ChatOptions
    ) -> ChatResult:
        adapter = self._adapter(provider)
        start = time.perf_counter()
        try:
            result = await adapter.complete(
                provider, self.registry.credential_for(provider), messages, self._params(provider, options)
            )
        except ProviderError:
            record_provider_call(provider.id, "error", time.perf_counter() - start)
            raise
        record_provider_call(provider.id, "success", time.perf_counter() - start)
        return result

    async def _stream(
        self,
        provider: ProviderDescriptor,
        messages: list[ChatMessage],
        on_token: TokenCallback,
        options: ChatOptions,
    ) -> tuple[str, dict]:
        adapter = self._adapter(provider)
        params = self._params(provider, options)
        start = time.perf_counter()
        try:
            text = await adapter.stream(provider, self.registry.credential_for(provider), messages, params, on_token)
            if not text:
                raise EmptyResponseError(f"{provider.name}: empty stream", provider=provider.id)
        except ProviderError:
            record_provider_call(provider.id, "error", time.perf_counter() - start)
            raise
        record_provider_call(provider.id, "success", time.perf_counter() - start)
        return text, {"provider": provider.name, "model": params.model}

    def _forced_provider(self, options: ChatOptions) -> ProviderDescriptor | None:
        """The explicitly requested provider, if it is known and has a credential."""
        if not options.provider or options.provider not in self.registry:
            return None
        forced = self.registry.get(options.provider)
        if not self.registry.is_configured(forced):
            logger.info("Requested provider %s is not configured, ignoring", forced.name)
            return None
        return forced

    # -- public API ----------------------------------------------------------

    async def call_provider(
        self,
        provider_id: str,
        messages: Iterable[ChatMessage | Mapping[str, Any]],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """Call one provider directly, without failover or cooldown bookkeeping.

        Raises UnknownProviderError for an id not in the registry and
        ProviderError when the call fails.
        """
        provider = self.registry.get(provider_id)
        return await self._call(provider, coerce_messages(messages), options or ChatOptions())

    async def chat(
        self,
        messages: Iterable[ChatMessage | Mapping[str, Any]],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """Send a chat request with automatic failover. Never raises for provider failures."""
        options = options or ChatOptions()
        messages = coerce_messages(messages)

        # Priority 0: the user's own premium provider
        if self.custom_store.has_custom_provider(options.user_id):
            result = await self.custom_client.call_custom_provider(options.user_id, messages, options)
            if result.success:
                logger.info("Answered via custom provider %s (%s)", result.provider, result.model)
                return result
            logger.warning("Custom provider failed for user %s, falling back to built-in providers", options.user_id)

        providers = self.registry.resolve()
        if not providers:
            logger.error("No LLM provider configured")
            return ChatResult(success=False, text=NO_PROVIDER_MESSAGE, provider=None, error="no_provider_configured")

        attempted: set[str] = set()

        # Explicitly requested provider goes first, regardless of order or cooldown
        forced = self._forced_provider(options)
        if forced is not None:
            attempted.add(forced.id)
            try:
                return await self._call(forced, messages, options)
            except ProviderError as exc:
                self._fail(forced, exc)

        for provider in providers:
            if provider.id in attempted:
                continue
            if self.breaker.is_in_cooldown(provider.id):
                logger.info("%s in cooldown, skipping", provider.name)
                continue
            attempted.add(provider.id)
            try:
                return await self._call(provider, messages, options)
            except ProviderError as exc:
                self._fail(provider, exc)

        logger.error("All LLM providers failed (%s)", ", ".join(sorted(attempted)) or "none attempted")
        return ChatResult(success=False, text=ALL_FAILED_MESSAGE, provider=None, error="all_providers_failed")

    async def chat_stream(
        self,
        messages: Iterable[ChatMessage | Mapping[str, Any]],
        on_token: TokenCallback,
        on_done: DoneCallback,
        options: ChatOptions | None = None,
    ) -> None:
        """Stream a chat response token by token.

        ``on_token`` fires for each text delta; ``on_done(full_text, metadata)``
        fires exactly once. A candidate that fails before emitting anything is
        cooled down and the next one is tried. Once tokens have reached the
        caller there is no failover: ``on_done`` receives the partial text with
        ``partial=True``. When no streaming provider succeeds, the ``chat``
        result is delivered as a single token.
        """
        options = options or ChatOptions()
        messages = coerce_messages(messages)
        tap = _TokenTap(on_token)

        custom = self.custom_store.get_user_provider(options.user_id)
        if custom is not None and custom.supports_streaming:
            try:
                text, metadata = await self.custom_client.stream_custom_provider(
                    options.user_id, messages, tap, options
                )
            except ProviderError as exc:
                if tap.emitted:
                    logger.error("Custom stream (%s) broke mid-response: %s", custom.provider_name, exc)
                    on_done(tap.text, {"provider": custom.provider_name, "custom": True, "error": str(exc), "partial": True})
                    return
                logger.warning("Custom stream (%s) failed: %s, falling back", custom.provider_name, exc)
            else:
                on_done(text, metadata)
                return

        candidates: list[ProviderDescriptor] = []
        forced = self._forced_provider(options)
        if forced is not None and forced.supports_streaming:
            candidates.append(forced)
        forced_ids = {c.id for c in candidates}
        candidates.extend(p for p in self.registry.resolve() if p.supports_streaming and p.id not in forced_ids)

        for provider in candidates:
            if provider.id not in forced_ids and self.breaker.is_in_cooldown(provider.id):
                logger.info("%s in cooldown, skipping", provider.name)
                continue
            try:
                text, metadata = await self._stream(provider, messages, tap, options)
            except ProviderError as exc:
                self._fail(provider, exc)
                if tap.emitted:
                    on_done(tap.text, {"provider": provider.name, "error": str(exc), "partial": True})
                    return
                continue
            on_done(text, metadata)
            return

        # No streaming provider worked: deliver the sync result as one token
        result = await self.chat(messages, options)
        on_token(result.text)
        on_done(result.text, result.to_dict())

    # -- status --------------------------------------------------------------

    def get_available_providers(self) -> list[ProviderDescriptor]:
        return self.registry.resolve()

    def is_available(self) -> bool:
        """At least one provider is configured."""
        return bool(self.registry.resolve())

    def get_active_provider(self) -> ProviderDescriptor | None:
        """The provider the next call would most likely use."""
        available = self.registry.resolve()
        for provider in available:
            if not self.breaker.is_in_cooldown(provider.id):
                return provider
        return available[0] if available else None

    def get_providers_status(self) -> list[ProviderStatus]:
        statuses = []
        for provider in self.registry.all():
            configured = self.registry.is_configured(provider)
            in_cooldown = self.breaker.is_in_cooldown(provider.id)
            statuses.append(
                ProviderStatus(
                    id=provider.id,
                    name=provider.name,
                    configured=configured,
                    available=configured and not in_cooldown,
                    in_cooldown=in_cooldown,
                    model=provider.model,
                    streaming=provider.supports_streaming,
                    vision=provider.supports_vision,
                )
            )
        return statuses
