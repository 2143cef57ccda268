"""survey_runtime: conversational survey runtime SDK.

Public API:
    RuntimeEngine      - starts sessions, records answers, resolves next blocks
    SessionCache       - bounded in-memory session cache with per-session locks
    RuntimePersistence - ABC for the durable response/answer store
    SurveyConfig       - validated survey configuration (blocks keyed by id)
    load_survey_config - load a YAML/JSON survey config file

Building blocks:
    ConditionEvaluator / evaluate_condition - condition trees → bool
    resolve_next       - conditional routing structures → block id
    render_template    - ``{{VAR}}`` / ``{{#if}}`` substitution
    format_question    - rendered client-facing block descriptor
    decode_answer      - raw answer → typed ``Answer`` variant
    DerivedVariableStrategy - hook for computing extra variables per answer
    calculate_progress - percentage of the expected path answered

Errors (all subclasses of ``ValueError``):
    SurveyConfigError, SessionNotFoundError, InvalidAnswerError,
    StaleAnswerError, RoutingCycleError
"""

from survey_runtime.answers import Answer, decode_answer, match_option
from survey_runtime.cache import SessionCache
from survey_runtime.derived import DeclarativeDerivedVariables, DerivedVariableStrategy
from survey_runtime.engine import RuntimeEngine
from survey_runtime.errors import (
    InvalidAnswerError,
    RoutingCycleError,
    SessionNotFoundError,
    StaleAnswerError,
    SurveyConfigError,
    SurveyRuntimeError,
)
from survey_runtime.evaluator import ConditionEvaluator, evaluate_condition
from survey_runtime.history import build_conversation_history, format_answer_for_display
from survey_runtime.interfaces import RuntimePersistence
from survey_runtime.loader import load_survey_config, parse_survey_config
from survey_runtime.models import (
    AnswerResponse,
    Block,
    ConversationHistoryItem,
    PersistedAnswer,
    PersistedResponse,
    RuntimeSession,
    SessionKind,
    SessionState,
    SessionStateResponse,
    StartResponse,
    SurveyConfig,
)
from survey_runtime.progress import calculate_progress, expected_blocks
from survey_runtime.routing import resolve_next
from survey_runtime.templating import format_question, render_template

__all__ = [
    # Engine & storage
    "RuntimeEngine",
    "SessionCache",
    "RuntimePersistence",
    "load_survey_config",
    "parse_survey_config",
    # Config / session models
    "Block",
    "SurveyConfig",
    "RuntimeSession",
    "SessionKind",
    "SessionState",
    "StartResponse",
    "AnswerResponse",
    "SessionStateResponse",
    "ConversationHistoryItem",
    "PersistedAnswer",
    "PersistedResponse",
    # Building blocks
    "ConditionEvaluator",
    "evaluate_condition",
    "resolve_next",
    "render_template",
    "format_question",
    "Answer",
    "decode_answer",
    "match_option",
    "DerivedVariableStrategy",
    "DeclarativeDerivedVariables",
    "calculate_progress",
    "expected_blocks",
    "build_conversation_history",
    "format_answer_for_display",
    # Errors
    "SurveyRuntimeError",
    "SurveyConfigError",
    "SessionNotFoundError",
    "InvalidAnswerError",
    "StaleAnswerError",
    "RoutingCycleError",
]
