"""Conflict Engine — FastAPI service entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from starlette.responses import Response

from conflict_engine.api.errors import register_exception_handlers
from conflict_engine.api.middleware import MetricsMiddleware
from conflict_engine.api.routes import router
from conflict_engine.config import settings
from conflict_engine.service import ConflictEngine
from conflict_engine.store.redis_store import RedisRecordStore
from conflict_engine.telemetry.logging import setup_logging
from conflict_engine.telemetry.metrics import get_metrics
from conflict_engine.telemetry.tracing import SERVICE_VERSION, setup_tracing

logger = setup_logging(
    otlp_endpoint=settings.otlp_endpoint,
    level=settings.log_level,
    environment=settings.environment,
)

_start_time = datetime.now(timezone.utc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing Conflict Engine...")

    # Tests install their own engine before startup
    store = None
    if getattr(app.state, "engine", None) is None:
        store = RedisRecordStore.from_url(settings.redis_url, settings.redis_prefix)
        if await store.ping():
            logger.info("Redis connected: %s", settings.redis_url)
        else:
            logger.warning("Redis not reachable at %s; requests will fail until it is", settings.redis_url)
        app.state.store = store
        app.state.engine = ConflictEngine(store)

    logger.info("Conflict Engine ready — listening on %s:%d", settings.host, settings.port)

    yield

    if store is not None:
        await store.close()
    logger.info("Conflict Engine shut down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Conflict Engine",
        description="Conflict signal analysis, pattern mining, prediction, and alerting",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(MetricsMiddleware)
    register_exception_handlers(app)
    app.include_router(router)

    @app.get("/health")
    async def health(request: Request):
        store = getattr(request.app.state, "store", None)
        uptime = (datetime.now(timezone.utc) - _start_time).total_seconds()
        return {
            "status": "healthy",
            "uptime_seconds": round(uptime, 2),
            "redis_connected": await store.ping() if store is not None else None,
            "version": SERVICE_VERSION,
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        body, content_type = get_metrics()
        return Response(content=body, media_type=content_type)

    if settings.otlp_endpoint:
        setup_tracing(otlp_endpoint=settings.otlp_endpoint, environment=settings.environment)
        FastAPIInstrumentor.instrument_app(app)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("conflict_engine.main:app", host=settings.host, port=settings.port)
