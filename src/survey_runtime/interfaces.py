"""Abstract persistence interface used by the runtime engine.

The engine never imports a database driver.  Durable storage is reached
through ``RuntimePersistence``; the ``survey_db`` package ships the
SQLAlchemy implementation, and tests use an in-memory one.

Typical integration flow::

    persistence = SqlAlchemyPersistence(get_session_factory())
    engine = RuntimeEngine(persistence)

    started = await engine.start_session(config, respondent_name="Ada")
    # ... present started.first_question, collect the answer ...
    result = await engine.submit_answer(started.session_id, "b0", "yes")

Answers are an append-only log: ``save_answer`` never updates an existing
row, and ``get_response_by_session_id`` must return answers in the order
they were saved so that replay reproduces the live session exactly.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from survey_runtime.models.persistence import PersistedResponse


class RuntimePersistence(ABC):
    """Contract for durable storage of responses and their answer logs."""

    @abstractmethod
    async def create_response(
        self,
        *,
        session_id: str,
        deployment_id: Optional[str],
        draft_id: Optional[str],
        respondent_name: Optional[str],
        metadata: Optional[dict[str, Any]],
    ) -> str:
        """Create a response record for a new session.

        Returns
        -------
        str
            The new response id.
        """
        ...

    @abstractmethod
    async def save_answer(self, *, response_id: str, question_id: str, answer: Any) -> None:
        """Append one answer to the response's log.

        Raising aborts the submission; the engine leaves the cached state
        untouched in that case.
        """
        ...

    @abstractmethod
    async def complete_response(self, response_id: str) -> None:
        """Mark the response completed (sets its completion timestamp)."""
        ...

    @abstractmethod
    async def get_response_by_session_id(self, session_id: str) -> Optional[PersistedResponse]:
        """Fetch a response and its ordered answers, or None if unknown."""
        ...
