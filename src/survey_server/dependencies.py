"""Route dependencies.

Runtime routes only need the objects the lifespan handler put on
``app.state``; the engine opens its own transactions through
``SqlAlchemyPersistence``.  Admin routes query the database directly and
get one ``AsyncSession`` per request from ``get_db``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.engine import get_session_factory
from survey_runtime.cache import SessionCache
from survey_runtime.engine import RuntimeEngine
from survey_runtime.models.survey import SurveyConfig


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Per-request session; repositories only flush, so commit happens here."""
    async with get_session_factory()() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
        await db.commit()


def get_runtime_engine(request: Request) -> RuntimeEngine:
    return request.app.state.engine


def get_session_cache(request: Request) -> SessionCache:
    return request.app.state.session_cache


def get_survey_config(request: Request) -> SurveyConfig:
    return request.app.state.survey_config


async def require_admin_key(
    request: Request,
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> str:
    """Guard for the admin router.

    With no ``ADMIN_API_KEY`` configured every admin call is refused (403).
    Otherwise a missing header is 401 and a wrong key is 403.
    """
    configured_key: str | None = request.app.state.settings.admin_api_key
    if not configured_key:
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints are disabled (ADMIN_API_KEY not configured)",
        )
    if not x_admin_key:
        raise HTTPException(status_code=401, detail="X-Admin-Key header is required")
    if not hmac.compare_digest(x_admin_key.encode(), configured_key.encode()):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key
