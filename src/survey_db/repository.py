"""Async CRUD repository for survey responses and their answer logs.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries; methods flush but never commit.

The repository avoids business logic: routing and state live in the
runtime engine, which only needs the ordered answer log back.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from survey_db.models.answer import SurveyAnswer
from survey_db.models.response import SurveyResponse


class ResponseRepository:
    """Async read/write operations on ``survey_responses`` / ``survey_answers``."""

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_response(
        self,
        db: AsyncSession,
        *,
        session_id: str,
        deployment_id: str | None = None,
        draft_id: str | None = None,
        respondent_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> SurveyResponse:
        """Insert a new response row and return it.

        The caller must ``await db.commit()`` to persist.
        """
        response = SurveyResponse(
            session_id=session_id,
            deployment_id=deployment_id,
            draft_id=draft_id,
            respondent_name=respondent_name,
            metadata_=metadata,
        )
        db.add(response)
        await db.flush()  # Populate defaults (id, timestamps)
        return response

    async def add_answer(
        self,
        db: AsyncSession,
        response: SurveyResponse,
        *,
        block_id: str,
        answer: Any,
    ) -> SurveyAnswer:
        """Append one answer and update the response's snapshot columns."""
        row = SurveyAnswer(response_id=response.id, block_id=block_id, answer=answer)
        db.add(row)
        response.last_block_id = block_id
        response.answer_count = (response.answer_count or 0) + 1
        response.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return row

    # ------------------------------------------------------------------
    # Read: single row
    # ------------------------------------------------------------------

    async def get_by_id(
        self, db: AsyncSession, response_id: uuid.UUID
    ) -> SurveyResponse | None:
        """Fetch a response by its primary-key UUID."""
        return await db.get(SurveyResponse, response_id)

    async def get_by_session_id(
        self, db: AsyncSession, session_id: str
    ) -> SurveyResponse | None:
        """Fetch a response by its unique session id."""
        stmt = select(SurveyResponse).where(SurveyResponse.session_id == session_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Read: multiple rows
    # ------------------------------------------------------------------

    async def list_answers(
        self, db: AsyncSession, response_id: uuid.UUID
    ) -> list[SurveyAnswer]:
        """All answers of a response in log order (``created_at``, then ``id``)."""
        stmt = (
            select(SurveyAnswer)
            .where(SurveyAnswer.response_id == response_id)
            .order_by(SurveyAnswer.created_at, SurveyAnswer.id)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_responses(
        self,
        db: AsyncSession,
        *,
        deployment_id: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[SurveyResponse]:
        """List responses, most recent first."""
        stmt = select(SurveyResponse)
        if deployment_id is not None:
            stmt = stmt.where(SurveyResponse.deployment_id == deployment_id)
        stmt = stmt.order_by(SurveyResponse.created_at.desc()).limit(limit).offset(offset)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count_responses(
        self, db: AsyncSession, *, deployment_id: str | None = None
    ) -> int:
        stmt = select(func.count()).select_from(SurveyResponse)
        if deployment_id is not None:
            stmt = stmt.where(SurveyResponse.deployment_id == deployment_id)
        result = await db.execute(stmt)
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Update: terminal state
    # ------------------------------------------------------------------

    async def mark_complete(
        self, db: AsyncSession, response: SurveyResponse
    ) -> SurveyResponse:
        """Set ``completed_at``; a response that is already complete keeps its timestamp."""
        if response.completed_at is None:
            now = datetime.now(timezone.utc)
            response.completed_at = now
            response.updated_at = now
            await db.flush()
        return response

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete_all_responses(self, db: AsyncSession) -> int:
        """Delete every response (answers cascade).  Returns the number deleted."""
        result = await db.execute(delete(SurveyResponse))
        await db.flush()
        return result.rowcount or 0
