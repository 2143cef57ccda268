"""SQLAlchemy declarative base shared by the survey tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models in survey_db."""

    pass
