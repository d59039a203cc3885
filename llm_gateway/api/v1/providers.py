"""Provider status and per-user custom provider management."""

from fastapi import APIRouter, Depends, HTTPException

from llm_gateway.core.dependencies import get_custom_client, get_custom_store, get_gateway
from llm_gateway.gateway.custom_provider import (
    CustomProviderClient,
    CustomProviderStore,
    get_onboarding_message,
    get_provider_catalog,
    list_available_providers,
    parse_setup_from_text,
)
from llm_gateway.gateway.errors import CustomProviderError, CustomProviderNotFoundError
from llm_gateway.gateway.gateway import LlmGateway
from llm_gateway.schemas.chat import ProvidersResponse
from llm_gateway.schemas.custom_provider import (
    CustomProviderInfo,
    CustomProviderModelUpdate,
    CustomProviderSetup,
    CustomProviderSetupResponse,
    CustomProviderToggleResponse,
    KeyValidationRequest,
    KeyValidationResponse,
    MessageResponse,
    SetupParseRequest,
    SetupParseResponse,
)

router = APIRouter(tags=["providers"])


def _http_error(exc: CustomProviderError) -> HTTPException:
    status = 404 if isinstance(exc, CustomProviderNotFoundError) else 400
    return HTTPException(status_code=status, detail=str(exc))


@router.get("/providers", response_model=ProvidersResponse)
async def providers_status(gateway: LlmGateway = Depends(get_gateway)):
    active = gateway.get_active_provider()
    return ProvidersResponse(
        providers=[s.to_dict() for s in gateway.get_providers_status()],
        active=active.name if active else None,
    )


# ── Catalog ──────────────────────────────────────────────────────


@router.get("/custom-providers/catalog")
async def custom_provider_catalog():
    return list_available_providers()


@router.get("/custom-providers/catalog/{provider_id}")
async def custom_provider_catalog_entry(provider_id: str):
    entry = get_provider_catalog(provider_id)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown provider: {provider_id}")
    return entry.to_dict()


@router.get("/custom-providers/onboarding", response_model=MessageResponse)
async def custom_provider_onboarding():
    return MessageResponse(message=get_onboarding_message())


@router.post("/custom-providers/parse", response_model=SetupParseResponse)
async def parse_custom_provider_setup(payload: SetupParseRequest):
    """Extract provider/key/model from a free-form setup sentence."""
    parsed = parse_setup_from_text(payload.text)
    return SetupParseResponse(
        provider_id=parsed.provider_id,
        api_key=parsed.api_key,
        model=parsed.model,
        base_url=parsed.base_url,
    )


@router.post("/custom-providers/validate", response_model=KeyValidationResponse)
async def validate_custom_provider_key(
    payload: KeyValidationRequest,
    client: CustomProviderClient = Depends(get_custom_client),
):
    result = await client.validate_api_key(payload.provider_id, payload.api_key, payload.base_url)
    return KeyValidationResponse(**result.to_dict())


# ── Per-user configuration ───────────────────────────────────────


@router.get("/users/{user_id}/provider", response_model=CustomProviderInfo)
async def get_user_provider(user_id: str, store: CustomProviderStore = Depends(get_custom_store)):
    info = store.get_provider_info(user_id)
    if info is None:
        raise HTTPException(status_code=404, detail="No custom provider configured")
    return info


@router.put("/users/{user_id}/provider", response_model=CustomProviderSetupResponse)
async def setup_user_provider(
    user_id: str,
    payload: CustomProviderSetup,
    store: CustomProviderStore = Depends(get_custom_store),
):
    try:
        return store.setup_provider(
            user_id, payload.provider_id, payload.api_key, model=payload.model, base_url=payload.base_url
        )
    except CustomProviderError as e:
        raise _http_error(e) from e


@router.delete("/users/{user_id}/provider", response_model=MessageResponse)
async def remove_user_provider(user_id: str, store: CustomProviderStore = Depends(get_custom_store)):
    try:
        name = store.remove_provider(user_id)
    except CustomProviderError as e:
        raise _http_error(e) from e
    return MessageResponse(message=f"{name} removed")


@router.post("/users/{user_id}/provider/toggle", response_model=CustomProviderToggleResponse)
async def toggle_user_provider(user_id: str, store: CustomProviderStore = Depends(get_custom_store)):
    try:
        enabled = store.toggle_provider(user_id)
    except CustomProviderError as e:
        raise _http_error(e) from e
    return CustomProviderToggleResponse(enabled=enabled, name=store.get_provider_info(user_id)["provider_name"])


@router.put("/users/{user_id}/provider/model", response_model=CustomProviderInfo)
async def set_user_provider_model(
    user_id: str,
    payload: CustomProviderModelUpdate,
    store: CustomProviderStore = Depends(get_custom_store),
):
    try:
        config = store.set_model(user_id, payload.model)
    except CustomProviderError as e:
        raise _http_error(e) from e
    return config.info()
