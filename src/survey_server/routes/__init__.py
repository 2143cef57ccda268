"""Route registration: mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from survey_server.routes.admin import router as admin_router
from survey_server.routes.runtime import router as runtime_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(runtime_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
