"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from survey_branching_server.routes.branching import router as branching_router
from survey_branching_server.routes.participations import router as participations_router
from survey_branching_server.routes.surveys import router as surveys_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(branching_router, prefix=API_PREFIX)
    app.include_router(participations_router, prefix=API_PREFIX)
    app.include_router(surveys_router, prefix=API_PREFIX)
