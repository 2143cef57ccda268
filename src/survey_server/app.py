"""FastAPI application for the survey runtime.

One survey config is loaded per process.  The lifespan handler turns it
into a ``RuntimeEngine`` backed by Postgres and parks the engine, its
session cache and the config on ``app.state``; routes reach them through
``survey_server.dependencies``.

Run with ``survey-server`` or ``uvicorn survey_server.app:app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from survey_db.engine import dispose_engine, get_engine, get_session_factory
from survey_db.persistence import SqlAlchemyPersistence
from survey_runtime.cache import SessionCache
from survey_runtime.engine import RuntimeEngine
from survey_runtime.errors import SurveyRuntimeError
from survey_runtime.loader import load_survey_config

from survey_server.config import ServerSettings, load_settings
from survey_server.errors import (
    generic_error_handler,
    key_error_handler,
    survey_error_handler,
    value_error_handler,
)
from survey_server.routes import register_routes

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _build_runtime(settings: ServerSettings) -> tuple[SessionCache, RuntimeEngine]:
    cache = SessionCache(
        ttl_seconds=settings.session_cache_ttl_seconds,
        max_size=settings.session_cache_max_size,
    )
    persistence = SqlAlchemyPersistence(get_session_factory())
    return cache, RuntimeEngine(persistence, cache=cache, strict_replay=settings.strict_replay)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the survey and wire the engine; close the DB pool on exit.

    A broken survey file raises here, so the server refuses to start
    rather than failing on the first request.
    """
    settings: ServerSettings = app.state.settings
    survey_config = load_survey_config(settings.survey_config_path)
    cache, engine = _build_runtime(settings)

    app.state.survey_config = survey_config
    app.state.session_cache = cache
    app.state.engine = engine
    survey_id = survey_config.survey.id if survey_config.survey else None
    logger.info("Serving survey %s (strict_replay=%s)", survey_id, settings.strict_replay)

    try:
        yield
    finally:
        await dispose_engine()


def _install_error_handlers(app: FastAPI) -> None:
    # Starlette matches the most specific class first.
    for exc_class, handler in (
        (SurveyRuntimeError, survey_error_handler),
        (ValueError, value_error_handler),
        (KeyError, key_error_handler),
        (Exception, generic_error_handler),
    ):
        app.add_exception_handler(exc_class, handler)


async def health(request: Request) -> dict:
    """Readiness probe: database reachability plus a little runtime state."""
    state = request.app.state
    survey_config = getattr(state, "survey_config", None)
    cache = getattr(state, "session_cache", None)
    report = {
        "survey": survey_config.survey.id if survey_config and survey_config.survey else None,
        "cachedSessions": len(cache) if cache is not None else 0,
    }
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("Database unreachable during health check: %s", exc)
        return {"status": "error", "detail": str(exc), **report}
    return {"status": "ok", **report}


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Assemble the application; settings default to the environment."""
    settings = settings or load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=_LOG_FORMAT)

    app = FastAPI(
        title="Survey Runtime API",
        description="Start, answer and resume conversational surveys",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _install_error_handlers(app)

    app.add_api_route("/health", health, methods=["GET"])
    register_routes(app)
    return app


app = create_app()


def cli() -> None:
    """``survey-server`` console script."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "survey_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
