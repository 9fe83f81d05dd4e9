from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coach_messaging.api.middleware.correlation_id import CorrelationIdMiddleware
from coach_messaging.api.middleware.metrics import RequestTimingMiddleware
from coach_messaging.api.v1.routers import broadcasts, health, threads
from coach_messaging.application.exceptions import AppError
from coach_messaging.config import settings
from coach_messaging.workers.broadcast_scheduler import build_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    app.state.scheduler = None
    if settings.BROADCAST_SCHEDULER_ENABLED:
        scheduler = build_scheduler()
        await scheduler.start()
        app.state.scheduler = scheduler

    yield

    if app.state.scheduler is not None:
        await app.state.scheduler.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Coach Messaging Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(threads.router)
    app.include_router(broadcasts.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(req: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 409:
            logger.info("%s %s -> %d: %s", req.method, req.url.path, exc.status_code, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
