"""Custom Provider Override: per-user premium LLM configuration.

A user may plug in their own paid backend (OpenAI, Anthropic, Mistral,
DeepSeek, xAI, Cohere, OpenRouter or any OpenAI-compatible endpoint) with a
personal API key. When enabled, it takes priority over the built-in chain;
when it fails, dispatch falls back to the built-in providers.

Configurations are persisted as one JSON document ``{user_id: config}``,
rewritten in full on every mutation. The in-memory map is authoritative while
the process runs and is reloaded from disk on startup.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

from llm_gateway.gateway.errors import (
    CustomProviderError,
    CustomProviderNotFoundError,
    EmptyResponseError,
    ProviderError,
    TransportError,
)
from llm_gateway.gateway.format_adapters import BaseFormatAdapter
from llm_gateway.gateway.normalizer import count_tokens
from llm_gateway.gateway.types import (
    ChatMessage,
    ChatOptions,
    ChatResult,
    GenerationParams,
    MessageRole,
    ProviderDescriptor,
    ProviderFormat,
    TokenCallback,
)

logger = logging.getLogger(__name__)

CUSTOM_PROVIDER_ID = "custom"
OPENROUTER_HEADERS = {"HTTP-Referer": "https://myassistbot.app", "X-Title": "MyAssistBOT"}
VALIDATION_PROMPT = "Say OK"
VALIDATION_MAX_TOKENS = 10


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogModel:
    id: str
    name: str
    description: str = ""
    recommended: bool = False


@dataclass(frozen=True)
class CatalogEntry:
    """A provider users may configure with their own key."""

    id: str
    name: str
    description: str
    base_url: str
    format: ProviderFormat
    models: tuple[CatalogModel, ...]
    default_model: str
    max_tokens: int = 4096
    supports_streaming: bool = True
    supports_vision: bool = False
    website: str = ""
    pricing: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "base_url": self.base_url,
            "format": self.format.value,
            "models": [asdict(m) for m in self.models],
            "default_model": self.default_model,
            "max_tokens": self.max_tokens,
            "pricing": self.pricing,
            "website": self.website,
            "streaming": self.supports_streaming,
            "vision": self.supports_vision,
        }


PROVIDER_CATALOG: dict[str, CatalogEntry] = {
    "openai": CatalogEntry(
        id="openai",
        name="OpenAI",
        description="GPT-4o, GPT-4 Turbo, o1, o3 — o melhor em raciocínio e código",
        base_url="https://api.openai.com/v1",
        format=ProviderFormat.OPENAI,
        models=(
            CatalogModel("gpt-4o", "GPT-4o", "Mais rápido e económico, multimodal", recommended=True),
            CatalogModel("gpt-4o-mini", "GPT-4o Mini", "Leve e barato, bom para chat"),
            CatalogModel("gpt-4-turbo", "GPT-4 Turbo", "Mais potente, 128k contexto"),
            CatalogModel("o1", "o1", "Raciocínio avançado, melhor para problemas complexos"),
            CatalogModel("o3-mini", "o3-mini", "Raciocínio eficiente e rápido"),
        ),
        default_model="gpt-4o",
        supports_vision=True,
        website="https://platform.openai.com/api-keys",
        pricing="~$2.50/1M tokens (GPT-4o)",
    ),
    "anthropic": CatalogEntry(
        id="anthropic",
        name="Anthropic Claude",
        description="Claude 3.5 Sonnet, Claude 4 — excelente em texto longo e código",
        base_url="https://api.anthropic.com/v1",
        format=ProviderFormat.ANTHROPIC,
        models=(
            CatalogModel("claude-sonnet-4-20250514", "Claude Sonnet 4", "Melhor equilíbrio qualidade/custo", recommended=True),
            CatalogModel("claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", "Rápido e muito capaz"),
            CatalogModel("claude-3-5-haiku-20241022", "Claude 3.5 Haiku", "Ultra-rápido, económico"),
            CatalogModel("claude-3-opus-20240229", "Claude 3 Opus", "Máxima qualidade, mais lento"),
        ),
        default_model="claude-sonnet-4-20250514",
        supports_vision=True,
        website="https://console.anthropic.com/settings/keys",
        pricing="~$3/1M tokens (Sonnet)",
    ),
    "mistral": CatalogEntry(
        id="mistral",
        name="Mistral AI",
        description="Mistral Large, Codestral — europeu, rápido e eficiente",
        base_url="https://api.mistral.ai/v1",
        format=ProviderFormat.OPENAI,
        models=(
            CatalogModel("mistral-large-latest", "Mistral Large", "Mais potente, multilingue", recommended=True),
            CatalogModel("mistral-medium-latest", "Mistral Medium", "Bom equilíbrio"),
            CatalogModel("mistral-small-latest", "Mistral Small", "Rápido e económico"),
            CatalogModel("codestral-latest", "Codestral", "Especializado em código"),
        ),
        default_model="mistral-large-latest",
        website="https://console.mistral.ai/api-keys/",
        pricing="~$2/1M tokens (Large)",
    ),
    "deepseek": CatalogEntry(
        id="deepseek",
        name="DeepSeek",
        description="DeepSeek V3, R1 — barato e muito competente em código",
        base_url="https://api.deepseek.com/v1",
        format=ProviderFormat.OPENAI,
        models=(
            CatalogModel("deepseek-chat", "DeepSeek V3", "Chat geral, muito económico", recommended=True),
            CatalogModel("deepseek-reasoner", "DeepSeek R1", "Raciocínio avançado (chain-of-thought)"),
        ),
        default_model="deepseek-chat",
        website="https://platform.deepseek.com/api_keys",
        pricing="~$0.27/1M tokens (V3)",
    ),
    "xai": CatalogEntry(
        id="xai",
        name="xAI Grok",
        description="Grok-2, Grok-3 — dados em tempo real",
        base_url="https://api.x.ai/v1",
        format=ProviderFormat.OPENAI,
        models=(
            CatalogModel("grok-3", "Grok-3", "Último modelo, raciocínio avançado", recommended=True),
            CatalogModel("grok-3-mini", "Grok-3 Mini", "Mais rápido e económico"),
            CatalogModel("grok-2", "Grok-2", "Estável e confiável"),
        ),
        default_model="grok-3",
        supports_vision=True,
        website="https://console.x.ai/",
        pricing="~$3/1M tokens (Grok-3)",
    ),
    "cohere": CatalogEntry(
        id="cohere",
        name="Cohere",
        description="Command R+ — otimizado para RAG e aplicações empresariais",
        base_url="https://api.cohere.ai/v2",
        format=ProviderFormat.OPENAI,
        models=(
            CatalogModel("command-r-plus", "Command R+", "Máximo poder, multilíngue", recommended=True),
            CatalogModel("command-r", "Command R", "RAG otimizado"),
            CatalogModel("command-light", "Command Light", "Rápido e leve"),
        ),
        default_model="command-r-plus",
        website="https://dashboard.cohere.com/api-keys",
        pricing="~$2.50/1M tokens (R+)",
    ),
    "openrouter": CatalogEntry(
        id="openrouter",
        name="OpenRouter",
        description="Acesso a 100+ modelos (GPT-4, Claude, Llama, etc.) com uma só key",
        base_url="https://openrouter.ai/api/v1",
        format=ProviderFormat.OPENAI,
        models=(
            CatalogModel("anthropic/claude-sonnet-4", "Claude Sonnet 4 (via OpenRouter)", recommended=True),
            CatalogModel("openai/gpt-4o", "GPT-4o (via OpenRouter)"),
            CatalogModel("google/gemini-2.0-flash-exp", "Gemini 2.0 Flash (via OpenRouter)"),
            CatalogModel("deepseek/deepseek-r1", "DeepSeek R1 (via OpenRouter)"),
            CatalogModel("meta-llama/llama-3.3-70b-instruct", "LLaMA 3.3 70B (via OpenRouter)"),
        ),
        default_model="anthropic/claude-sonnet-4",
        supports_vision=True,
        website="https://openrouter.ai/keys",
        pricing="Variável por modelo (pay-per-use)",
    ),
    CUSTOM_PROVIDER_ID: CatalogEntry(
        id=CUSTOM_PROVIDER_ID,
        name="Custom (OpenAI-Compatible)",
        description="Qualquer API compatível com o formato OpenAI (LM Studio, vLLM, etc.)",
        base_url="",  # user supplied
        format=ProviderFormat.OPENAI,
        models=(),
        default_model="",
        pricing="Definido pelo utilizador",
    ),
}


def get_provider_catalog(provider_id: str) -> CatalogEntry | None:
    return PROVIDER_CATALOG.get(provider_id)


def list_available_providers() -> list[dict]:
    """Catalog entries a user can pick from (the generic ``custom`` entry excluded)."""
    return [entry.to_dict() for pid, entry in PROVIDER_CATALOG.items() if pid != CUSTOM_PROVIDER_ID]


def mask_api_key(api_key: str) -> str:
    return f"{api_key[:8]}...{api_key[-4:]}"


def extra_headers_for(provider_id: str) -> dict[str, str]:
    return dict(OPENROUTER_HEADERS) if provider_id == "openrouter" else {}


def is_valid_base_url(base_url: str) -> bool:
    """Absolute http(s) URL with a host that httpx can parse."""
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL:
        return False
    return url.scheme in ("http", "https") and bool(url.host)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Per-user configuration
# ---------------------------------------------------------------------------


@dataclass
class CustomProviderConfig:
    provider_id: str
    provider_name: str
    api_key: str
    masked_key: str
    model: str
    base_url: str
    format: ProviderFormat
    max_tokens: int = 4096
    supports_streaming: bool = True
    supports_vision: bool = False
    configured_at: str = field(default_factory=_utcnow_iso)
    total_calls: int = 0
    total_tokens: int = 0
    last_used: str | None = None
    enabled: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["format"] = self.format.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CustomProviderConfig:
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values["format"] = ProviderFormat(values.get("format", ProviderFormat.OPENAI.value))
        return cls(**values)

    def to_descriptor(self) -> ProviderDescriptor:
        """View this config as a descriptor the format adapters understand."""
        return ProviderDescriptor(
            id=self.provider_id,
            name=self.provider_name,
            base_url=self.base_url.rstrip("/"),
            credential_env=None,
            model=self.model,
            fallback_model=None,
            format=self.format,
            max_tokens=self.max_tokens,
            supports_streaming=self.supports_streaming,
            supports_vision=self.supports_vision,
            extra_headers=extra_headers_for(self.provider_id),
        )

    def info(self) -> dict:
        """Display view; never includes the raw key."""
        return {
            "provider_id": self.provider_id,
            "provider_name": self.provider_name,
            "model": self.model,
            "masked_key": self.masked_key,
            "enabled": self.enabled,
            "configured_at": self.configured_at,
            "last_used": self.last_used,
            "total_calls": self.total_calls,
            "total_tokens": self.total_tokens,
            "streaming": self.supports_streaming,
            "vision": self.supports_vision,
        }


class CustomProviderStore:
    """In-memory map of user configs, mirrored to one JSON file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self._configs: dict[str, CustomProviderConfig] = {}

    def __len__(self) -> int:
        return len(self._configs)

    def load(self) -> int:
        """(Re)load configs from disk. A missing or unreadable file yields an empty map."""
        self._configs = {}
        if self.path is None or not self.path.exists():
            return 0
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8")) or {}
            self._configs = {user_id: CustomProviderConfig.from_dict(cfg) for user_id, cfg in raw.items()}
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.error("Failed to load custom providers from %s: %s", self.path, e)
            self._configs = {}
        if self._configs:
            logger.info("Loaded %d custom provider(s)", len(self._configs))
        return len(self._configs)

    def save(self) -> None:
        if self.path is None:
            return
        payload = {user_id: cfg.to_dict() for user_id, cfg in self._configs.items()}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to save custom providers to %s: %s", self.path, e)

    # -- lifecycle -----------------------------------------------------------

    def setup_provider(
        self,
        user_id: str,
        provider_id: str,
        api_key: str,
        model: str | None = None,
        base_url: str | None = None,
    ) -> dict:
        if not provider_id or not api_key:
            raise CustomProviderError("Faltam dados: provider_id e api_key são obrigatórios.")
        entry = PROVIDER_CATALOG.get(provider_id)
        if entry is None:
            raise CustomProviderError(
                f'Provider "{provider_id}" não reconhecido. Usa "listar providers" para ver os disponíveis.'
            )
        if provider_id == CUSTOM_PROVIDER_ID and not base_url:
            raise CustomProviderError("Para provider custom, o base_url é obrigatório.")
        if base_url and not is_valid_base_url(base_url):
            raise CustomProviderError(f'base_url inválido: "{base_url}".')

        config = CustomProviderConfig(
            provider_id=provider_id,
            provider_name=entry.name,
            api_key=api_key,
            masked_key=mask_api_key(api_key),
            model=model or entry.default_model,
            base_url=base_url or entry.base_url,
            format=entry.format,
            max_tokens=entry.max_tokens,
            supports_streaming=entry.supports_streaming,
            supports_vision=entry.supports_vision,
        )
        self._configs[user_id] = config
        self.save()
        logger.info("Custom provider %s configured for user %s", entry.name, user_id)
        return {
            "name": entry.name,
            "model": config.model,
            "masked_key": config.masked_key,
            "streaming": entry.supports_streaming,
            "vision": entry.supports_vision,
        }

    def _require(self, user_id: str) -> CustomProviderConfig:
        config = self._configs.get(user_id)
        if config is None:
            raise CustomProviderNotFoundError("Nenhum provider personalizado configurado.")
        return config

    def remove_provider(self, user_id: str) -> str:
        """Delete the user's config. Returns the removed provider's name."""
        config = self._require(user_id)
        del self._configs[user_id]
        self.save()
        return config.provider_name

    def toggle_provider(self, user_id: str) -> bool:
        """Flip enabled/disabled without deleting. Returns the new state."""
        config = self._require(user_id)
        config.enabled = not config.enabled
        self.save()
        logger.info("Custom provider for user %s %s", user_id, "enabled" if config.enabled else "disabled")
        return config.enabled

    def set_model(self, user_id: str, model: str) -> CustomProviderConfig:
        config = self._require(user_id)
        config.model = model
        self.save()
        return config

    def track_usage(self, user_id: str, tokens: int = 0) -> None:
        # Advisory counters; concurrent calls for one user may interleave
        config = self._configs.get(user_id)
        if config is None:
            return
        config.total_calls += 1
        config.total_tokens += tokens
        config.last_used = _utcnow_iso()
        self.save()

    # -- queries -------------------------------------------------------------

    def get_user_provider(self, user_id: str | None) -> CustomProviderConfig | None:
        """The user's config, only when it exists and is enabled."""
        if not user_id:
            return None
        config = self._configs.get(user_id)
        if config is None or not config.enabled:
            return None
        return config

    def has_custom_provider(self, user_id: str | None) -> bool:
        return self.get_user_provider(user_id) is not None

    def get_provider_info(self, user_id: str) -> dict | None:
        config = self._configs.get(user_id)
        return config.info() if config else None


# ---------------------------------------------------------------------------
# Calls through the user's provider
# ---------------------------------------------------------------------------


@dataclass
class KeyValidation:
    valid: bool
    model: str | None = None
    warning: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


class CustomProviderClient:
    """Dispatches a user's requests through the openai / anthropic adapters."""

    def __init__(
        self,
        store: CustomProviderStore,
        adapters: dict[ProviderFormat, BaseFormatAdapter],
        default_temperature: float = 0.7,
    ):
        self.store = store
        self.adapters = adapters
        self.default_temperature = default_temperature

    def _adapter_for(self, fmt: ProviderFormat) -> BaseFormatAdapter:
        # Only two families exist for user providers; anything else speaks OpenAI
        if fmt == ProviderFormat.ANTHROPIC:
            return self.adapters[ProviderFormat.ANTHROPIC]
        return self.adapters[ProviderFormat.OPENAI]

    def _params(self, config: CustomProviderConfig, options: ChatOptions) -> GenerationParams:
        return GenerationParams(
            model=options.model or config.model,
            max_tokens=options.max_tokens or config.max_tokens or 4096,
            temperature=options.temperature if options.temperature is not None else self.default_temperature,
        )

    async def call_custom_provider(
        self,
        user_id: str,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """Never raises for provider failures: returns ``success=False`` instead."""
        options = options or ChatOptions()
        config = self.store.get_user_provider(user_id)
        if config is None:
            return ChatResult(success=False, text="", provider=None, error="Sem provider personalizado.", custom=True)

        params = self._params(config, options)
        try:
            result = await self._adapter_for(config.format).complete(
                config.to_descriptor(), config.api_key, messages, params
            )
        except ProviderError as e:
            logger.error("Custom provider %s failed for user %s: %s", config.provider_name, user_id, e)
            return ChatResult(
                success=False, text="", provider=config.provider_name, model=params.model, error=str(e), custom=True
            )

        result.custom = True
        self.store.track_usage(user_id, count_tokens(result.tokens))
        return result

    async def stream_custom_provider(
        self,
        user_id: str,
        messages: list[ChatMessage],
        on_token: TokenCallback,
        options: ChatOptions | None = None,
    ) -> tuple[str, dict]:
        """Stream through the user's provider. Returns ``(full_text, metadata)``.

        Raises CustomProviderNotFoundError when the user has no enabled
        config and ProviderError when the backend fails or streams no text.
        """
        options = options or ChatOptions()
        config = self.store.get_user_provider(user_id)
        if config is None:
            raise CustomProviderNotFoundError("Sem provider personalizado configurado.")

        params = self._params(config, options)
        text = await self._adapter_for(config.format).stream(
            config.to_descriptor(), config.api_key, messages, params, on_token
        )
        if not text:
            raise EmptyResponseError(f"{config.provider_name}: empty stream", provider=config.provider_id)
        self.store.track_usage(user_id, 0)
        return text, {"provider": config.provider_name, "model": params.model, "custom": True}

    async def validate_api_key(self, provider_id: str, api_key: str, base_url: str | None = None) -> KeyValidation:
        """Classify a key with a minimal completion call."""
        entry = PROVIDER_CATALOG.get(provider_id)
        if entry is None:
            return KeyValidation(valid=False, error="Provider desconhecido.")
        url = base_url or entry.base_url
        if not url:
            return KeyValidation(valid=False, error="Para provider custom, o base_url é obrigatório.")

        descriptor = ProviderDescriptor(
            id=entry.id,
            name=entry.name,
            base_url=url.rstrip("/"),
            credential_env=None,
            model=entry.default_model,
            fallback_model=None,
            format=entry.format,
            extra_headers=extra_headers_for(provider_id),
        )
        params = GenerationParams(
            model=entry.default_model, max_tokens=VALIDATION_MAX_TOKENS, temperature=self.default_temperature
        )
        messages = [ChatMessage(MessageRole.USER, VALIDATION_PROMPT)]
        try:
            resp = await self._adapter_for(entry.format).send(descriptor, api_key, messages, params)
        except TransportError as e:
            return KeyValidation(valid=False, error=f"Ligação falhou: {e}")

        if resp.is_success:
            return KeyValidation(valid=True, model=entry.default_model)
        if resp.status_code in (401, 403):
            return KeyValidation(valid=False, error="API key inválida ou sem permissões.")
        if resp.status_code == 429:
            return KeyValidation(valid=True, model=entry.default_model, warning="Key válida mas rate limit atingido.")
        return KeyValidation(valid=False, error=f"Erro {resp.status_code}: {resp.text[:150]}")


# ---------------------------------------------------------------------------
# Conversational setup helpers
# ---------------------------------------------------------------------------

# First keyword found in the text wins
_PROVIDER_KEYWORDS: dict[str, str] = {
    "openai": "openai",
    "gpt": "openai",
    "chatgpt": "openai",
    "anthropic": "anthropic",
    "claude": "anthropic",
    "mistral": "mistral",
    "codestral": "mistral",
    "deepseek": "deepseek",
    "xai": "xai",
    "grok": "xai",
    "cohere": "cohere",
    "command": "cohere",
    "openrouter": "openrouter",
    "custom": CUSTOM_PROVIDER_ID,
}

_KEY_PATTERNS = (
    re.compile(r"\b(sk-[a-zA-Z0-9_-]{20,})\b"),  # OpenAI, DeepSeek, Anthropic, OpenRouter
    re.compile(r"\b(gsk_[a-zA-Z0-9_-]{20,})\b"),  # Groq
    re.compile(r"\b(xai-[a-zA-Z0-9_-]{20,})\b"),
    re.compile(r"\b([a-zA-Z0-9]{32,})\b"),
    re.compile(r"(?:key|chave|api.?key)\s*[:\s=]+\s*[\"']?([^\s\"']+)", re.IGNORECASE),
)

_KEY_PREFIXES = (
    ("sk-ant-", "anthropic"),
    ("sk-or-", "openrouter"),
    ("xai-", "xai"),
    ("sk-", "openai"),
)

_MODEL_PATTERN = re.compile(r"modelo?\s+([^\s,]+)", re.IGNORECASE)
_URL_PATTERN = re.compile(r"(https?://\S+)", re.IGNORECASE)


@dataclass
class ParsedSetup:
    provider_id: str | None = None
    api_key: str | None = None
    model: str | None = None
    base_url: str | None = None


def parse_setup_from_text(text: str) -> ParsedSetup:
    """Extract provider, key, model and base URL from a free-form request.

    e.g. "configurar openai com sk-abc123..." or "usar claude key sk-ant-...".
    """
    lowered = text.lower()
    parsed = ParsedSetup()

    for keyword, provider_id in _PROVIDER_KEYWORDS.items():
        if keyword in lowered:
            parsed.provider_id = provider_id
            break

    for pattern in _KEY_PATTERNS:
        match = pattern.search(text)
        if match:
            parsed.api_key = match.group(1)
            break

    if parsed.api_key and not parsed.provider_id:
        for prefix, provider_id in _KEY_PREFIXES:
            if parsed.api_key.startswith(prefix):
                parsed.provider_id = provider_id
                break

    model_match = _MODEL_PATTERN.search(text)
    if model_match:
        parsed.model = model_match.group(1)

    url_match = _URL_PATTERN.search(text)
    if url_match and parsed.provider_id == CUSTOM_PROVIDER_ID:
        parsed.base_url = url_match.group(1)

    return parsed


def get_onboarding_message() -> str:
    supported = "\n".join(
        f"• **{entry.name}** — {', '.join(m.name for m in entry.models[:3])}"
        for pid, entry in PROVIDER_CATALOG.items()
        if pid != CUSTOM_PROVIDER_ID
    )
    return (
        "🔑 **Integra a tua IA Premium!**\n\n"
        "Tens uma subscrição de uma IA paga? Integra-a aqui para a usares diretamente.\n\n"
        f"📋 **Providers suportados:**\n{supported}\n\n"
        "💡 **Como configurar:**\n"
        '   "configurar openai com sk-abc123..."\n'
        '   "usar claude com a minha key sk-ant-..."\n'
        '   "integrar deepseek key: sk-..."\n\n'
        "🔄 O teu provider pago terá **prioridade** sobre os providers gratuitos.\n"
        "   Se falhar, a cadeia gratuita entra como backup automático!\n\n"
        '📊 Para ver os providers: "listar providers"'
    )
