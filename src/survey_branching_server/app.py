"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the survey definitions once
  - CORS middleware
  - Global exception handlers (NotFound → 404, ConfigurationError → 400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``survey-branching-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from survey_branching.errors import ConfigurationError, NotFoundError
from survey_branching.integrity import FlowIntegrityValidator
from survey_branching.ruleset import SurveyStore
from survey_branching_db.engine import dispose_engine, get_engine

from survey_branching_server.config import ServerSettings, load_settings
from survey_branching_server.errors import (
    configuration_error_handler,
    generic_error_handler,
    key_error_handler,
    not_found_handler,
    value_error_handler,
)
from survey_branching_server.routes import register_routes

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan — runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load survey definitions at startup, dispose the DB pool on shutdown.

    Every survey is validated once at load.  Integrity problems are logged
    by the validator; with ``strict_surveys`` enabled, a blocking problem
    aborts startup instead.
    """
    settings: ServerSettings = app.state.settings

    store = SurveyStore(survey_dir=settings.survey_dir)
    store.load()

    validator = FlowIntegrityValidator()
    broken = [
        survey.id
        for survey in store.surveys.values()
        if not validator.validate(survey.rules, survey.sections, survey_id=survey.id).is_valid
    ]
    if broken and settings.strict_surveys:
        raise RuntimeError(f"Surveys with blocking integrity issues: {broken}")

    app.state.store = store

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Survey Branching API",
        description="Conditional-logic evaluation, flow state and flow maps for surveys",
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

    # --- Exception handlers (resolved by the exception's MRO) ---
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    @app.get("/health")
    async def health() -> dict:
        """Readiness probe: survey snapshot loaded and database reachable."""
        store: SurveyStore | None = getattr(app.state, "store", None)
        surveys = len(store.surveys) if store is not None else 0
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "surveys": surveys, "detail": str(exc)}
        return {"status": "ok", "surveys": surveys}

    register_routes(app)
    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn survey_branching_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``survey-branching-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "survey_branching_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
