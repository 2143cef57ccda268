"""Public model re-exports for survey_runtime.

Consumers should import from ``survey_runtime.models`` rather than
reaching into sub-modules directly.
"""

# --- Survey configuration ---
from survey_runtime.models.survey import (
    Block,
    Condition,
    ConditionalContentItem,
    ContentCondition,
    DerivedVariableRule,
    OnEmpty,
    Option,
    ProgressConfig,
    ProgressSegment,
    SurveyConfig,
    SurveyInfo,
)

# --- Session / responses ---
from survey_runtime.models.session import (
    AnswerResponse,
    ConversationHistoryItem,
    RuntimeSession,
    SessionKind,
    SessionState,
    SessionStateResponse,
    StartResponse,
)

# --- Persistence records ---
from survey_runtime.models.persistence import PersistedAnswer, PersistedResponse

__all__ = [
    # Survey configuration
    "Block",
    "Condition",
    "ConditionalContentItem",
    "ContentCondition",
    "DerivedVariableRule",
    "OnEmpty",
    "Option",
    "ProgressConfig",
    "ProgressSegment",
    "SurveyConfig",
    "SurveyInfo",
    # Session
    "AnswerResponse",
    "ConversationHistoryItem",
    "RuntimeSession",
    "SessionKind",
    "SessionState",
    "SessionStateResponse",
    "StartResponse",
    # Persistence
    "PersistedAnswer",
    "PersistedResponse",
]
