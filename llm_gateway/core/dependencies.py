from fastapi import Depends, Request

from llm_gateway.gateway.custom_provider import CustomProviderClient, CustomProviderStore
from llm_gateway.gateway.gateway import LlmGateway


def get_gateway(request: Request) -> LlmGateway:
    """The process gateway, created in the app lifespan."""
    return request.app.state.gateway


def get_custom_store(gateway: LlmGateway = Depends(get_gateway)) -> CustomProviderStore:
    return gateway.custom_store


def get_custom_client(gateway: LlmGateway = Depends(get_gateway)) -> CustomProviderClient:
    return gateway.custom_client
