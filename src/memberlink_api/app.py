from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from memberlink_api.core.settings import settings
from memberlink_api.services.bridge import build_strategies
from memberlink_api.services.bridge.strategies import total_timeout
from .api.routes import api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    strategies = build_strategies(settings)
    if not strategies:
        logger.warning(
            "No upstream strategies configured; every authentication will use fallback data",
            configured=settings.upstream_strategy_names,
            fallback_enabled=settings.fallback_enabled,
        )
    else:
        logger.info(
            "Member bridge configured",
            upstream_url=settings.upstream_url,
            strategies=[strategy.name for strategy in strategies],
            worst_case_seconds=settings.bridge_overall_deadline_seconds or total_timeout(strategies),
            grace_window_seconds=settings.bridge_grace_window_seconds,
            fallback_enabled=settings.fallback_enabled,
        )
    yield


def create_app() -> FastAPI:
    """Application factory for the memberlink FastAPI service."""
    configure_logging(
        service_name="memberlink-api",
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
    )

    app = FastAPI(
        title="memberlink API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    configure_tracing(app, settings=settings, service_name="memberlink-api", service_version=APP_VERSION)

    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
