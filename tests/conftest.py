from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from helpers import FakeClock, RecordingBackend
from llm_gateway.core.dependencies import get_gateway
from llm_gateway.core.rate_limit import limiter
from llm_gateway.gateway.circuit_breaker import CircuitBreaker
from llm_gateway.gateway.custom_provider import CustomProviderStore
from llm_gateway.gateway.gateway import LlmGateway
from llm_gateway.gateway.registry import ProviderRegistry
from llm_gateway.gateway.transport import PlainTransport
from llm_gateway.main import app


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "user_data" / "custom_providers.json"


@pytest.fixture
def make_gateway(backend, clock, store_path):
    """Build an LlmGateway wired to the recording backend and fake clock."""

    def _make(environ: dict | None = None, store: CustomProviderStore | None = None) -> LlmGateway:
        return LlmGateway(
            registry=ProviderRegistry(environ=environ if environ is not None else {}),
            breaker=CircuitBreaker(clock=clock),
            custom_store=store if store is not None else CustomProviderStore(store_path),
            transport=PlainTransport(backend.transport()),
        )

    return _make


@pytest.fixture
def api_gateway(make_gateway) -> LlmGateway:
    return make_gateway({"GROQ_API_KEY": "gsk-test", "LLM_PROVIDER_ORDER": "groq"})


@pytest.fixture
async def client(api_gateway) -> AsyncGenerator[AsyncClient, None]:
    # The lifespan does not run under ASGITransport; hand the app our gateway instead
    app.dependency_overrides[get_gateway] = lambda: api_gateway
    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()
