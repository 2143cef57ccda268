"""survey_db: PostgreSQL persistence layer for survey responses.

This package provides the ORM models, async engine factory, repository and
the ``RuntimePersistence`` adapter used by the runtime engine.  It is
consumed by the FastAPI server and the cleanup CLI.
"""

from survey_db.engine import dispose_engine, get_engine, get_session_factory
from survey_db.models.answer import SurveyAnswer
from survey_db.models.response import SurveyResponse
from survey_db.persistence import SqlAlchemyPersistence
from survey_db.repository import ResponseRepository

__all__ = [
    "SurveyAnswer",
    "SurveyResponse",
    "get_engine",
    "get_session_factory",
    "dispose_engine",
    "ResponseRepository",
    "SqlAlchemyPersistence",
]
