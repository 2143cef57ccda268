"""SqlAlchemyPersistence: the runtime engine's durable store on PostgreSQL.

Implements ``survey_runtime.interfaces.RuntimePersistence`` on top of
``ResponseRepository``.  The engine is not request-scoped, so unlike the
HTTP dependencies this adapter owns its transactions: every operation opens
a session from the factory and commits before returning.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from survey_db.repository import ResponseRepository
from survey_runtime.interfaces import RuntimePersistence
from survey_runtime.models.persistence import PersistedAnswer, PersistedResponse

logger = logging.getLogger(__name__)


def _parse_response_id(response_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(response_id))
    except ValueError as exc:
        raise ValueError(f"Response not found: response_id={response_id}") from exc


class SqlAlchemyPersistence(RuntimePersistence):
    """Runs each persistence call in its own committed transaction.

    Args:
        session_factory: typically ``survey_db.engine.get_session_factory()``
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = session_factory
        self._repo = ResponseRepository()

    async def create_response(
        self,
        *,
        session_id: str,
        deployment_id: Optional[str],
        draft_id: Optional[str],
        respondent_name: Optional[str],
        metadata: Optional[dict[str, Any]],
    ) -> str:
        async with self._factory() as db, db.begin():
            row = await self._repo.create_response(
                db,
                session_id=session_id,
                deployment_id=deployment_id,
                draft_id=draft_id,
                respondent_name=respondent_name,
                metadata=metadata,
            )
            response_id = str(row.id)
        logger.info("Response created: response_id=%s, session_id=%s", response_id, session_id)
        return response_id

    async def save_answer(self, *, response_id: str, question_id: str, answer: Any) -> None:
        pk = _parse_response_id(response_id)
        async with self._factory() as db, db.begin():
            response = await self._repo.get_by_id(db, pk)
            if response is None:
                raise ValueError(f"Response not found: response_id={response_id}")
            await self._repo.add_answer(db, response, block_id=question_id, answer=answer)

    async def complete_response(self, response_id: str) -> None:
        pk = _parse_response_id(response_id)
        async with self._factory() as db, db.begin():
            response = await self._repo.get_by_id(db, pk)
            if response is None:
                raise ValueError(f"Response not found: response_id={response_id}")
            await self._repo.mark_complete(db, response)
        logger.info("Response completed: response_id=%s", response_id)

    async def get_response_by_session_id(self, session_id: str) -> Optional[PersistedResponse]:
        async with self._factory() as db:
            response = await self._repo.get_by_session_id(db, session_id)
            if response is None:
                return None
            answers = await self._repo.list_answers(db, response.id)
            return PersistedResponse(
                id=str(response.id),
                session_id=response.session_id,
                deployment_id=response.deployment_id,
                draft_id=response.draft_id,
                respondent_name=response.respondent_name,
                metadata=response.metadata_,
                completed_at=response.completed_at,
                answers=[
                    PersistedAnswer(block_id=a.block_id, answer=a.answer, created_at=a.created_at)
                    for a in answers
                ],
            )
