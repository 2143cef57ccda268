"""Create survey_responses and survey_answers tables.

Initial migration.  ``survey_answers`` is the append-only answer log that
the runtime engine replays to rebuild sessions; it cascades on response
deletion so clearing responses removes their logs too.

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261019_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- survey_responses ---
    op.create_table(
        "survey_responses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        # Identity
        sa.Column("session_id", sa.Text, nullable=False),
        sa.Column("deployment_id", sa.Text, nullable=True),
        sa.Column("draft_id", sa.Text, nullable=True),
        sa.Column("respondent_name", sa.Text, nullable=True),
        sa.Column("metadata", JSONB, nullable=True),
        # Snapshot
        sa.Column("last_block_id", sa.Text, nullable=True),
        sa.Column("answer_count", sa.Integer, nullable=False, server_default=sa.text("0")),
        # Timestamps
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("completed_at", TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint("session_id", name="uq_survey_responses_session_id"),
    )
    op.create_index("ix_survey_responses_created_at", "survey_responses", ["created_at"])
    op.create_index("ix_survey_responses_deployment_id", "survey_responses", ["deployment_id"])

    # --- survey_answers ---
    op.create_table(
        "survey_answers",
        sa.Column("id", sa.BigInteger, sa.Identity(), primary_key=True),
        sa.Column(
            "response_id",
            UUID(as_uuid=True),
            sa.ForeignKey("survey_responses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("block_id", sa.Text, nullable=False),
        sa.Column("answer", JSONB, nullable=True),
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_survey_answers_replay",
        "survey_answers",
        ["response_id", "created_at", "id"],
    )


def downgrade() -> None:
    op.drop_index("ix_survey_answers_replay", table_name="survey_answers")
    op.drop_table("survey_answers")
    op.drop_index("ix_survey_responses_deployment_id", table_name="survey_responses")
    op.drop_index("ix_survey_responses_created_at", table_name="survey_responses")
    op.drop_table("survey_responses")
