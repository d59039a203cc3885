from fastapi import APIRouter

from llm_gateway.api.v1.chat import router as chat_router
from llm_gateway.api.v1.providers import router as providers_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(chat_router)
api_v1_router.include_router(providers_router)
