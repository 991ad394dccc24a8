from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import health, suggestions
from .cache.ttl import build_cache
from .core.config import Settings, get_settings
from .core.errors import ApiError
from .core.logging import setup_logging
from .engine.profiles import get_profile
from .engine.recommender import RecommendationEngine
from .services.song_pool import SongPoolBuilder
from .services.suggestions import SuggestionService
from .upstream.client import FlatRetryPolicy, UpstreamClient

logger = logging.getLogger("songradio")


def _lifespan(settings: Settings, transport: Optional[httpx.AsyncBaseTransport]):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = UpstreamClient(
            base_urls=settings.legacy_api_bases,
            timeout=settings.http_timeout_seconds,
            user_agent=settings.user_agent,
            retry_policy=FlatRetryPolicy(attempts=settings.upstream_attempts, delay=settings.upstream_retry_delay),
            transport=transport,
        )
        song_cache = build_cache(settings, "songs")
        response_cache = build_cache(settings, "suggestions")
        engine = RecommendationEngine(get_profile(settings.engine_profile))
        pool_builder = SongPoolBuilder(
            client,
            pool_size=settings.candidate_pool_size,
            delay_scale=settings.pool_delay_scale,
        )
        app.state.settings = settings
        app.state.suggestions = SuggestionService(
            client,
            engine,
            settings,
            song_cache=song_cache,
            response_cache=response_cache,
            pool_builder=pool_builder,
        )
        logger.info("Song radio started with %s profile and %s cache", engine.algorithm, settings.cache_backend)
        try:
            yield
        finally:
            await client.close()
            await song_cache.close()
            await response_cache.close()

    return lifespan


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": str(exc) or type(exc).__name__},
    )


def create_app(settings: Optional[Settings] = None, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, environment=settings.environment)
    app = FastAPI(
        title="Song Radio Suggestions",
        version="0.1.0",
        lifespan=_lifespan(settings, transport),
    )
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.include_router(health.router)
    app.include_router(suggestions.router)
    return app


app = create_app()
