"""SurveyResponse ORM model: one row per respondent session.

The row is the header of an append-only answer log (``survey_answers``).
``last_block_id`` and ``answer_count`` are a denormalised snapshot updated
with every answer so that admin listings need no join; the engine never
reads them and always replays the log itself.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, Integer, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from survey_db.models.base import Base


class SurveyResponse(Base):
    """One row per survey session; ``session_id`` is the public handle."""

    __tablename__ = "survey_responses"

    # --- Primary key ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    deployment_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    draft_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    respondent_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" is reserved on declarative classes, hence the attribute name
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)

    # --- Snapshot (denormalised from survey_answers) ---
    last_block_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    answer_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0"),
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    __table_args__ = (
        # Admin listings: newest first
        Index("ix_survey_responses_created_at", "created_at"),
        Index("ix_survey_responses_deployment_id", "deployment_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SurveyResponse(id={self.id!s}, session={self.session_id!r}, "
            f"answers={self.answer_count}, completed={self.completed_at is not None})>"
        )
