"""Ovulink Analytics API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.analytics.config_loader import get_analytics_config
from src.analytics.usage_tracker import CostLimitExceededError, UsageTracker
from src.config import get_settings
from src.routers import calendar, content, health, predictions, sperm_health
from src.services.database import close_pool, init_pool

# ---------- Logging ----------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("ovulink")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logging.getLogger("ovulink").setLevel(settings.log_level.upper())
    logger.info(
        "Starting Ovulink Analytics API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    # Fail fast on a broken analytics_config.yaml
    get_analytics_config()
    await init_pool(settings)
    yield
    await close_pool()
    logger.info("Ovulink Analytics API shut down")


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Ovulink Analytics API",
        description=(
            "Fertility and health analytics: cycle predictions, sperm health "
            "scores and trends, content recommendations, and the upcoming-events "
            "timeline."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One tracker per process; handlers that call the prediction service
    # reach it through request.app.state.usage_tracker
    app.state.usage_tracker = UsageTracker()

    @app.exception_handler(CostLimitExceededError)
    async def cost_limit_handler(request: Request, exc: CostLimitExceededError) -> JSONResponse:
        logger.warning("Refused %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=429, content={"detail": str(exc)})

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(predictions.router, prefix=v1_prefix)
    app.include_router(sperm_health.router, prefix=v1_prefix)
    app.include_router(content.router, prefix=v1_prefix)
    app.include_router(calendar.router, prefix=v1_prefix)

    return app


app = create_app()
