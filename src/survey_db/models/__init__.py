"""ORM models for survey_db."""

from survey_db.models.answer import SurveyAnswer
from survey_db.models.base import Base
from survey_db.models.response import SurveyResponse

__all__ = ["Base", "SurveyAnswer", "SurveyResponse"]
