"""SqlAlchemyPersistence and ResponseRepository tests without a database.

The adapter is exercised with a fake session factory and an in-memory
repository (assigned to ``_repo`` the way the engine tests swap theirs).
Repository snapshot bookkeeping is checked against transient ORM objects
with a MagicMock session whose ``flush`` is an AsyncMock.
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from survey_db.models.response import SurveyResponse
from survey_db.persistence import SqlAlchemyPersistence
from survey_db.repository import ResponseRepository


# =====================================================================
# Mock infrastructure
# =====================================================================


class _Transaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Supports ``async with factory() as db, db.begin():``."""

    def __init__(self):
        self.began = 0

    def begin(self):
        self.began += 1
        return _Transaction()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class MockResponseRepository:
    """In-memory stand-in for ResponseRepository (rows are namespaces)."""

    def __init__(self):
        self.rows: dict[uuid.UUID, SimpleNamespace] = {}
        self.answers: dict[uuid.UUID, list[SimpleNamespace]] = {}

    async def create_response(self, db, *, session_id, deployment_id=None, draft_id=None,
                              respondent_name=None, metadata=None):
        row = SimpleNamespace(
            id=uuid.uuid4(),
            session_id=session_id,
            deployment_id=deployment_id,
            draft_id=draft_id,
            respondent_name=respondent_name,
            metadata_=metadata,
            completed_at=None,
        )
        self.rows[row.id] = row
        self.answers[row.id] = []
        return row

    async def add_answer(self, db, response, *, block_id, answer):
        self.answers[response.id].append(SimpleNamespace(
            block_id=block_id,
            answer=answer,
            created_at=datetime.now(timezone.utc),
        ))

    async def get_by_id(self, db, response_id):
        return self.rows.get(response_id)

    async def get_by_session_id(self, db, session_id):
        for row in self.rows.values():
            if row.session_id == session_id:
                return row
        return None

    async def list_answers(self, db, response_id):
        return list(self.answers[response_id])

    async def mark_complete(self, db, response):
        if response.completed_at is None:
            response.completed_at = datetime.now(timezone.utc)
        return response


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def repo():
    return MockResponseRepository()


@pytest.fixture
def persistence(session, repo):
    p = SqlAlchemyPersistence(lambda: session)
    p._repo = repo
    return p


# =====================================================================
# SqlAlchemyPersistence
# =====================================================================


class TestSqlAlchemyPersistence:
    @pytest.mark.asyncio
    async def test_round_trip(self, persistence, session):
        response_id = await persistence.create_response(
            session_id="sess-1",
            deployment_id="dep",
            draft_id=None,
            respondent_name="Ana",
            metadata={"tracking": {"utm_source": "poster"}},
        )
        uuid.UUID(response_id)

        await persistence.save_answer(response_id=response_id, question_id="b0", answer="acknowledged")
        await persistence.save_answer(response_id=response_id, question_id="b4", answer=["email"])

        loaded = await persistence.get_response_by_session_id("sess-1")
        assert loaded.id == response_id
        assert loaded.respondent_name == "Ana"
        assert loaded.metadata == {"tracking": {"utm_source": "poster"}}
        assert [(a.block_id, a.answer) for a in loaded.answers] == [
            ("b0", "acknowledged"),
            ("b4", ["email"]),
        ], "Answers should come back in log order"
        assert session.began == 3, "Each write should run in its own transaction"

    @pytest.mark.asyncio
    async def test_unknown_session(self, persistence):
        assert await persistence.get_response_by_session_id("nope") is None

    @pytest.mark.asyncio
    async def test_complete(self, persistence):
        response_id = await persistence.create_response(
            session_id="sess-1", deployment_id=None, draft_id=None,
            respondent_name=None, metadata=None,
        )
        await persistence.complete_response(response_id)
        first = (await persistence.get_response_by_session_id("sess-1")).completed_at
        await persistence.complete_response(response_id)
        second = (await persistence.get_response_by_session_id("sess-1")).completed_at
        assert first is not None
        assert first == second, "Completing twice keeps the first timestamp"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response_id", ["not-a-uuid", str(uuid.uuid4())])
    async def test_missing_response(self, persistence, response_id):
        with pytest.raises(ValueError, match="Response not found"):
            await persistence.save_answer(response_id=response_id, question_id="b0", answer="x")
        with pytest.raises(ValueError, match="Response not found"):
            await persistence.complete_response(response_id)


# =====================================================================
# ResponseRepository snapshot bookkeeping
# =====================================================================


@pytest.fixture
def mock_db():
    """MagicMock standing in for AsyncSession; flush is an awaitable no-op."""
    db = MagicMock()
    db.flush = AsyncMock()
    return db


class TestResponseRepository:
    @pytest.mark.asyncio
    async def test_create_response(self, mock_db):
        row = await ResponseRepository().create_response(
            mock_db, session_id="sess-1", respondent_name="Ana", metadata={"a": 1},
        )
        assert isinstance(row, SurveyResponse)
        assert row.metadata_ == {"a": 1}
        mock_db.add.assert_called_once_with(row)
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_answer_updates_snapshot(self, mock_db):
        repo = ResponseRepository()
        response = SurveyResponse(id=uuid.uuid4(), session_id="sess-1")

        await repo.add_answer(mock_db, response, block_id="b0", answer="acknowledged")
        answer = await repo.add_answer(mock_db, response, block_id="b1", answer=None)

        assert response.last_block_id == "b1"
        assert response.answer_count == 2
        assert response.updated_at is not None
        assert answer.response_id == response.id
        assert answer.answer is None

    @pytest.mark.asyncio
    async def test_mark_complete_is_idempotent(self, mock_db):
        repo = ResponseRepository()
        done_at = datetime.now(timezone.utc) - timedelta(days=1)
        response = SurveyResponse(id=uuid.uuid4(), session_id="sess-1", completed_at=done_at)

        await repo.mark_complete(mock_db, response)
        assert response.completed_at == done_at
        mock_db.flush.assert_not_awaited()

        fresh = SurveyResponse(id=uuid.uuid4(), session_id="sess-2")
        await repo.mark_complete(mock_db, fresh)
        assert fresh.completed_at is not None
        assert fresh.updated_at == fresh.completed_at
