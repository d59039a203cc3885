"""Tests for the per-user custom provider override."""

import json

import httpx
import pytest

from helpers import ANTHROPIC_HOST, OPENAI_HOST, anthropic_reply, error_reply, openai_reply
from llm_gateway.gateway.custom_provider import (
    CUSTOM_PROVIDER_ID,
    PROVIDER_CATALOG,
    CustomProviderConfig,
    CustomProviderStore,
    get_onboarding_message,
    get_provider_catalog,
    list_available_providers,
    mask_api_key,
    parse_setup_from_text,
)
from llm_gateway.gateway.errors import CustomProviderError, CustomProviderNotFoundError
from llm_gateway.gateway.types import ChatMessage, MessageRole, ProviderFormat

OPENAI_KEY = "sk-proj-abcdefghijklmnop1234"
MESSAGES = [ChatMessage(MessageRole.USER, "Olá")]


@pytest.fixture
def store(store_path):
    return CustomProviderStore(store_path)


# ==========================================================================
# Test: Catalog
# ==========================================================================


class TestCatalog:
    def test_list_excludes_generic_entry(self):
        ids = [p["id"] for p in list_available_providers()]
        assert ids == ["openai", "anthropic", "mistral", "deepseek", "xai", "cohere", "openrouter"]
        assert CUSTOM_PROVIDER_ID in PROVIDER_CATALOG

    def test_entry_shape(self):
        entry = get_provider_catalog("anthropic")
        assert entry.format == ProviderFormat.ANTHROPIC
        assert entry.default_model in [m.id for m in entry.models]
        data = entry.to_dict()
        assert data["format"] == "anthropic"
        assert data["vision"] is True
        assert any(m["recommended"] for m in data["models"])

    def test_every_default_model_is_listed(self):
        for pid, entry in PROVIDER_CATALOG.items():
            if pid == CUSTOM_PROVIDER_ID:
                continue
            assert entry.default_model in [m.id for m in entry.models], pid

    def test_unknown_entry(self):
        assert get_provider_catalog("nope") is None

    def test_mask_api_key(self):
        assert mask_api_key("sk-proj-abcdefghijklmnop1234") == "sk-proj-...1234"

    def test_onboarding_lists_providers(self):
        message = get_onboarding_message()
        assert "OpenAI" in message
        assert "DeepSeek" in message
        assert "Custom (OpenAI-Compatible)" not in message


# ==========================================================================
# Test: Store lifecycle
# ==========================================================================


class TestCustomProviderStore:
    def test_setup_uses_catalog_defaults(self, store):
        info = store.setup_provider("u1", "openai", OPENAI_KEY)

        assert info == {
            "name": "OpenAI",
            "model": "gpt-4o",
            "masked_key": "sk-proj-...1234",
            "streaming": True,
            "vision": True,
        }
        config = store.get_user_provider("u1")
        assert config.base_url == "https://api.openai.com/v1"
        assert config.format == ProviderFormat.OPENAI
        assert config.enabled is True
        assert config.total_calls == 0

    def test_setup_model_override(self, store):
        store.setup_provider("u1", "deepseek", "sk-deep-1234567890abcdef", model="deepseek-reasoner")
        assert store.get_user_provider("u1").model == "deepseek-reasoner"

    def test_setup_replaces_previous(self, store):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        store.setup_provider("u1", "mistral", "mistral-key-1234567890")
        assert store.get_user_provider("u1").provider_id == "mistral"
        assert len(store) == 1

    @pytest.mark.parametrize(
        "provider_id,api_key,match",
        [
            ("", "key", "obrigatórios"),
            ("openai", "", "obrigatórios"),
            ("nope", "key", "não reconhecido"),
            (CUSTOM_PROVIDER_ID, "key", "base_url"),
        ],
    )
    def test_setup_rejects_bad_input(self, store, provider_id, api_key, match):
        with pytest.raises(CustomProviderError, match=match):
            store.setup_provider("u1", provider_id, api_key)
        assert len(store) == 0

    @pytest.mark.parametrize("base_url", ["http://localhost:abc/v1", "lmstudio:1234/v1", "ftp://host/v1"])
    def test_setup_rejects_unusable_base_url(self, store, base_url):
        with pytest.raises(CustomProviderError, match="base_url inválido"):
            store.setup_provider("u1", CUSTOM_PROVIDER_ID, "local-key", base_url=base_url)
        assert len(store) == 0

    def test_custom_endpoint(self, store):
        store.setup_provider("u1", CUSTOM_PROVIDER_ID, "local-key", model="qwen", base_url="http://lmstudio:1234/v1/")
        descriptor = store.get_user_provider("u1").to_descriptor()
        assert descriptor.base_url == "http://lmstudio:1234/v1"
        assert descriptor.model == "qwen"
        assert descriptor.fallback_model is None
        assert descriptor.requires_credential is False

    def test_persistence_round_trip(self, store, store_path):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        store.setup_provider("u2", "anthropic", "sk-ant-api03-abcdefghijkl")
        store.toggle_provider("u2")

        assert store_path.exists()
        reloaded = CustomProviderStore(store_path)
        assert reloaded.load() == 2
        assert reloaded.get_user_provider("u1").api_key == OPENAI_KEY
        assert reloaded.get_user_provider("u2") is None
        assert reloaded.get_provider_info("u2")["enabled"] is False
        assert reloaded.get_provider_info("u2")["provider_name"] == "Anthropic Claude"

    def test_file_is_keyed_by_user(self, store, store_path):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        data = json.loads(store_path.read_text(encoding="utf-8"))
        assert list(data) == ["u1"]
        assert data["u1"]["format"] == "openai"
        assert data["u1"]["masked_key"] == "sk-proj-...1234"

    def test_load_missing_file(self, store):
        assert store.load() == 0
        assert len(store) == 0

    def test_load_corrupt_file(self, store_path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{not json", encoding="utf-8")
        store = CustomProviderStore(store_path)
        assert store.load() == 0

    def test_from_dict_ignores_unknown_fields(self):
        config = CustomProviderConfig.from_dict(
            {
                "provider_id": "openai",
                "provider_name": "OpenAI",
                "api_key": "k",
                "masked_key": "m",
                "model": "gpt-4o",
                "base_url": "https://api.openai.com/v1",
                "format": "openai",
                "legacy_field": 1,
            }
        )
        assert config.format == ProviderFormat.OPENAI

    def test_in_memory_store_without_path(self):
        store = CustomProviderStore()
        store.setup_provider("u1", "openai", OPENAI_KEY)
        assert store.has_custom_provider("u1")

    def test_remove(self, store):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        assert store.remove_provider("u1") == "OpenAI"
        assert store.get_provider_info("u1") is None
        with pytest.raises(CustomProviderNotFoundError):
            store.remove_provider("u1")

    def test_toggle(self, store):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        assert store.toggle_provider("u1") is False
        assert store.has_custom_provider("u1") is False
        assert store.get_provider_info("u1") is not None
        assert store.toggle_provider("u1") is True
        assert store.has_custom_provider("u1") is True

    def test_toggle_unknown_user(self, store):
        with pytest.raises(CustomProviderNotFoundError):
            store.toggle_provider("ghost")

    def test_set_model(self, store):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        assert store.set_model("u1", "gpt-4o-mini").model == "gpt-4o-mini"
        with pytest.raises(CustomProviderNotFoundError):
            store.set_model("ghost", "x")

    def test_track_usage(self, store):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        store.track_usage("u1", 120)
        store.track_usage("u1", 30)
        store.track_usage("ghost", 99)

        info = store.get_provider_info("u1")
        assert info["total_calls"] == 2
        assert info["total_tokens"] == 150
        assert info["last_used"] is not None
        assert "api_key" not in info

    def test_none_user(self, store):
        assert store.has_custom_provider(None) is False


# ==========================================================================
# Test: Calls through the user's provider
# ==========================================================================


class TestCustomProviderClient:
    @pytest.mark.asyncio
    async def test_call_without_config(self, make_gateway):
        gateway = make_gateway({})
        result = await gateway.custom_client.call_custom_provider("ghost", MESSAGES)
        assert result.success is False
        assert result.error == "Sem provider personalizado."

    @pytest.mark.asyncio
    async def test_call_anthropic_counts_tokens(self, make_gateway, backend, store):
        store.setup_provider("u1", "anthropic", "sk-ant-api03-abcdefghijkl")
        gateway = make_gateway({}, store=store)
        backend.route(ANTHROPIC_HOST, lambda r: anthropic_reply("olá"))

        result = await gateway.custom_client.call_custom_provider("u1", MESSAGES)

        assert result.success is True
        assert result.custom is True
        assert result.provider == "Anthropic Claude"
        assert store.get_provider_info("u1")["total_tokens"] == 20

    @pytest.mark.asyncio
    async def test_call_failure_does_not_raise(self, make_gateway, backend, store):
        store.setup_provider("u1", "openai", OPENAI_KEY)
        gateway = make_gateway({}, store=store)
        backend.route(OPENAI_HOST, lambda r: error_reply(500))

        result = await gateway.custom_client.call_custom_provider("u1", MESSAGES)

        assert result.success is False
        assert result.provider == "OpenAI"
        assert "500" in result.error

    @pytest.mark.asyncio
    async def test_stream_without_config_raises(self, make_gateway):
        gateway = make_gateway({})
        with pytest.raises(CustomProviderNotFoundError):
            await gateway.custom_client.stream_custom_provider("ghost", MESSAGES, lambda t: None)


class TestValidateApiKey:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,valid,field",
        [
            (200, True, None),
            (401, False, "error"),
            (403, False, "error"),
            (429, True, "warning"),
            (500, False, "error"),
        ],
    )
    async def test_status_classification(self, make_gateway, backend, status, valid, field):
        gateway = make_gateway({})
        backend.route(
            OPENAI_HOST, lambda r: openai_reply("OK") if status == 200 else error_reply(status, "nope")
        )

        result = await gateway.custom_client.validate_api_key("openai", OPENAI_KEY)

        assert result.valid is valid
        if field:
            assert getattr(result, field)
        if valid:
            assert result.model == "gpt-4o"
        body = backend.bodies()[0]
        assert body["max_tokens"] == 10
        assert body["messages"] == [{"role": "user", "content": "Say OK"}]

    @pytest.mark.asyncio
    async def test_other_error_includes_status(self, make_gateway, backend):
        gateway = make_gateway({})
        backend.route(OPENAI_HOST, lambda r: error_reply(502, "bad gateway"))

        result = await gateway.custom_client.validate_api_key("openai", OPENAI_KEY)

        assert result.error == "Erro 502: bad gateway"
        assert result.to_dict() == {"valid": False, "error": "Erro 502: bad gateway"}

    @pytest.mark.asyncio
    async def test_connection_failure(self, make_gateway, backend):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        gateway = make_gateway({})
        backend.route(OPENAI_HOST, refuse)

        result = await gateway.custom_client.validate_api_key("openai", OPENAI_KEY)

        assert result.valid is False
        assert result.error.startswith("Ligação falhou")

    @pytest.mark.asyncio
    async def test_unknown_provider(self, make_gateway, backend):
        result = await make_gateway({}).custom_client.validate_api_key("nope", "key")
        assert result.valid is False
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_custom_requires_base_url(self, make_gateway, backend):
        result = await make_gateway({}).custom_client.validate_api_key(CUSTOM_PROVIDER_ID, "key")
        assert result.valid is False
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_anthropic_uses_messages_api(self, make_gateway, backend):
        gateway = make_gateway({})
        backend.route(ANTHROPIC_HOST, lambda r: anthropic_reply("OK"))

        result = await gateway.custom_client.validate_api_key("anthropic", "sk-ant-api03-abcdefghijkl")

        assert result.valid is True
        assert backend.requests[0].url.path == "/v1/messages"


# ==========================================================================
# Test: Conversational setup
# ==========================================================================


class TestParseSetup:
    def test_provider_and_key(self):
        parsed = parse_setup_from_text("configurar openai com sk-abc1234567890abcdefghij")
        assert parsed.provider_id == "openai"
        assert parsed.api_key == "sk-abc1234567890abcdefghij"

    def test_keyword_alias(self):
        parsed = parse_setup_from_text("usar claude key sk-ant-REDACTED")
        assert parsed.provider_id == "anthropic"
        assert parsed.api_key == "sk-ant-REDACTED"

    def test_provider_from_key_prefix(self):
        parsed = parse_setup_from_text("aqui vai sk-or-v1-0123456789abcdefghij")
        assert parsed.provider_id == "openrouter"

    def test_model(self):
        parsed = parse_setup_from_text("integrar deepseek modelo deepseek-reasoner sk-0123456789abcdefghijkl")
        assert parsed.provider_id == "deepseek"
        assert parsed.model == "deepseek-reasoner"

    def test_custom_base_url(self):
        parsed = parse_setup_from_text("configurar custom http://localhost:1234/v1 key: abc123")
        assert parsed.provider_id == CUSTOM_PROVIDER_ID
        assert parsed.base_url == "http://localhost:1234/v1"
        assert parsed.api_key == "abc123"

    def test_nothing_found(self):
        parsed = parse_setup_from_text("olá, tudo bem?")
        assert parsed.provider_id is None
        assert parsed.api_key is None
        assert parsed.model is None
