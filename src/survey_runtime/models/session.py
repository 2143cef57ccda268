"""Session and response models: the contract between the engine and callers.

``SessionState`` is the mutable per-respondent record.  It is a derived,
rebuildable cache over the durable answer log: the engine can recreate it
at any time by replaying persisted answers.

The response models (``StartResponse``, ``AnswerResponse``,
``SessionStateResponse``) serialise with camelCase aliases so HTTP callers
see ``sessionId``, ``nextQuestion``, ``isComplete`` and so on.
"""

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from survey_runtime.models.survey import SurveyConfig


class SessionKind(str, enum.Enum):
    """Whether a session writes to durable storage.

    ``preview`` sessions live only in the cache and cannot be rebuilt;
    ``runtime`` sessions persist every answer.
    """

    PREVIEW = "preview"
    RUNTIME = "runtime"


class SessionState(BaseModel):
    """Per-respondent state.

    Invariants:
      - every id in ``completed_blocks`` has an entry in ``answers``
      - ``completed_blocks`` holds each id at most once, in first-answer order
      - ``variables`` only grows within a session
    """

    survey_id: str
    response_id: str
    current_block_id: str
    variables: dict[str, Any] = Field(default_factory=dict)
    completed_blocks: list[str] = Field(default_factory=list)
    answers: dict[str, Any] = Field(default_factory=dict)
    metadata: Optional[dict[str, Any]] = None
    # Set once an answer resolves no next block
    is_complete: bool = False


class RuntimeSession(BaseModel):
    """A cached session: identity, config snapshot and state."""

    session_id: str
    kind: SessionKind
    config: SurveyConfig
    state: SessionState
    deployment_id: Optional[str] = None
    draft_id: Optional[str] = None
    # Block ids of persisted answers skipped during reconstruction
    replay_warnings: list[str] = Field(default_factory=list)


# --- API response models ---

class ApiModel(BaseModel):
    """Response base: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartResponse(ApiModel):
    session_id: str
    response_id: str
    first_question: Optional[dict[str, Any]] = None


class AnswerResponse(ApiModel):
    # None signals that no further block is resolvable
    next_question: Optional[dict[str, Any]] = None
    progress: int


class ConversationHistoryItem(ApiModel):
    """One exchange in the transcript shown to a returning respondent."""

    block_id: str
    question_content: str
    answer_content: Optional[str] = None
    question_type: str
    is_bot_only: bool


class SessionStateResponse(ApiModel):
    current_question: Optional[dict[str, Any]] = None
    progress: int
    is_complete: bool
    response_id: str
    conversation_history: list[ConversationHistoryItem] = Field(default_factory=list)
