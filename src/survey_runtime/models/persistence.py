"""Records returned by a persistence backend.

These mirror the durable store (one response row plus its ordered answer
rows) without exposing ORM types to the engine.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class PersistedAnswer(BaseModel):
    block_id: str
    answer: Any = None
    created_at: datetime


class PersistedResponse(BaseModel):
    """A stored response with its answers in creation order (id as tiebreak)."""

    id: str
    session_id: str
    deployment_id: Optional[str] = None
    draft_id: Optional[str] = None
    respondent_name: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    answers: list[PersistedAnswer] = Field(default_factory=list)
