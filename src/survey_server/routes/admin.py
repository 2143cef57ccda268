"""Admin endpoints: list and clear stored responses.

Protected by the ``ADMIN_API_KEY`` setting.  Every request must include an
``X-Admin-Key`` header whose value matches the configured key.  Returns 401
if missing, 403 if wrong or if admin endpoints are disabled.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.repository import ResponseRepository
from survey_runtime.cache import SessionCache
from survey_runtime.models.session import ApiModel

from survey_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from survey_server.dependencies import get_db, get_session_cache, require_admin_key

logger = logging.getLogger(__name__)

# Key check runs before the endpoints' own dependencies
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class ResponseSummary(ApiModel):
    """One row of GET /admin/responses."""
    id: str
    session_id: str
    deployment_id: str | None = None
    respondent_name: str | None = None
    last_block_id: str | None = None
    answer_count: int
    created_at: datetime
    completed_at: datetime | None = None


class ResponseList(ApiModel):
    total: int
    responses: list[ResponseSummary]


class ClearResult(ApiModel):
    """Response body for POST /admin/clear-responses."""
    success: bool
    deleted_count: int
    message: str


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

_repo = ResponseRepository()


@router.get("/responses")
async def list_responses(
    deployment_id: str | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ResponseList:
    """List stored responses, most recent first."""
    rows = await _repo.list_responses(db, deployment_id=deployment_id, limit=limit, offset=offset)
    total = await _repo.count_responses(db, deployment_id=deployment_id)
    return ResponseList(
        total=total,
        responses=[
            ResponseSummary(
                id=str(r.id),
                session_id=r.session_id,
                deployment_id=r.deployment_id,
                respondent_name=r.respondent_name,
                last_block_id=r.last_block_id,
                answer_count=r.answer_count,
                created_at=r.created_at,
                completed_at=r.completed_at,
            )
            for r in rows
        ],
    )


@router.post("/clear-responses")
async def clear_responses(
    db: AsyncSession = Depends(get_db),
    cache: SessionCache = Depends(get_session_cache),
) -> ClearResult:
    """Delete every stored response (answers cascade) and drop cached sessions."""
    deleted = await _repo.delete_all_responses(db)
    cache.clear()
    logger.info("Cleared %d responses", deleted)
    return ClearResult(
        success=True,
        deleted_count=deleted,
        message=f"Successfully deleted {deleted} response{'' if deleted == 1 else 's'}",
    )
