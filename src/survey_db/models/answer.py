"""SurveyAnswer ORM model: one row per submitted answer.

Rows are append-only.  Replay order is ``(created_at, id)``: the identity
``id`` breaks ties between answers stored within the same timestamp tick.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import BigInteger, ForeignKey, Identity, Index, Text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from survey_db.models.base import Base


class SurveyAnswer(Base):
    __tablename__ = "survey_answers"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    response_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("survey_responses.id", ondelete="CASCADE"),
        nullable=False,
    )
    block_id: Mapped[str] = mapped_column(Text, nullable=False)
    # Raw answer exactly as submitted (string, list, object, null, ...)
    answer: Mapped[Any] = mapped_column(JSONB(none_as_null=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        # Replay scan: all answers of one response in log order
        Index("ix_survey_answers_replay", "response_id", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return f"<SurveyAnswer(id={self.id}, response={self.response_id!s}, block={self.block_id!r})>"
