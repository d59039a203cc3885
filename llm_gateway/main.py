import logging
import traceback
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from llm_gateway.api.v1.router import api_v1_router
from llm_gateway.core.config import settings, validate_settings_for_production
from llm_gateway.core.dependencies import get_gateway
from llm_gateway.core.logging import setup_logging
from llm_gateway.core.metrics import PrometheusMiddleware, metrics_response
from llm_gateway.core.rate_limit import limiter
from llm_gateway.core.sentry import init_sentry
from llm_gateway.gateway.gateway import LlmGateway
from llm_gateway.schemas.chat import HealthResponse

# Provider keys are read from the process environment at call time
load_dotenv()

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings_for_production()
    init_sentry()
    logger.info("Starting LLM gateway...")

    gateway = LlmGateway.from_settings(settings)
    app.state.gateway = gateway
    available = gateway.get_available_providers()
    if available:
        logger.info("Providers available: %s", ", ".join(p.name for p in available))
    else:
        logger.warning("No LLM provider configured, set at least GROQ_API_KEY")

    yield

    # Shutdown
    await gateway.aclose()
    logger.info("LLM gateway shut down")


app = FastAPI(
    title="LLM Gateway",
    description="Multi-provider LLM chat gateway with failover and streaming",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.app_debug else None,
    redoc_url="/api/redoc" if settings.app_debug else None,
)


# Log unhandled exceptions with their traceback; clients only get a short message
@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": f"{type(exc).__name__}: {exc}"})


# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Prometheus request metrics
app.add_middleware(PrometheusMiddleware)

# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_v1_router)


@app.get("/api/v1/health", response_model=HealthResponse)
async def health(gateway: LlmGateway = Depends(get_gateway)):
    active = gateway.get_active_provider()
    return HealthResponse(
        status="ok" if active else "degraded",
        providers=len(gateway.get_available_providers()),
        active=active.name if active else None,
    )


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


def run() -> None:
    uvicorn.run("llm_gateway.main:app", host=settings.app_host, port=settings.app_port)
