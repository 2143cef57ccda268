"""Runtime endpoints: start a session, answer, resume, end.

Every session-scoped endpoint passes the loaded survey config to the
engine so a session missing from this process's cache is rebuilt from its
stored answers.
"""

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from survey_runtime.constants import TERMINAL_TYPES
from survey_runtime.engine import RuntimeEngine
from survey_runtime.models.session import AnswerResponse, SessionStateResponse, StartResponse
from survey_runtime.models.survey import SurveyConfig

from survey_server.dependencies import get_runtime_engine, get_survey_config

router = APIRouter(prefix="/runtime", tags=["runtime"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class _RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartRequest(_RequestModel):
    """Body for POST /runtime/start (all fields optional)."""
    name: str | None = None
    tracking: dict[str, Any] | None = None
    preview: bool = False
    draft_id: str | None = None


class AnswerRequest(_RequestModel):
    """Body for POST /runtime/sessions/{session_id}/answer."""
    question_id: str
    answer: Any = None


class EndResponse(BaseModel):
    success: bool


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/start")
async def start_session(
    request: Request,
    body: StartRequest | None = None,
    engine: RuntimeEngine = Depends(get_runtime_engine),
    config: SurveyConfig = Depends(get_survey_config),
) -> StartResponse:
    """Start a session at the survey's entry block."""
    body = body or StartRequest()
    return await engine.start_session(
        config,
        respondent_name=body.name,
        tracking=body.tracking,
        deployment_id=request.app.state.settings.deployment_id,
        draft_id=body.draft_id,
        preview=body.preview,
    )


@router.get("/sessions/{session_id}")
async def get_session_state(
    session_id: str,
    engine: RuntimeEngine = Depends(get_runtime_engine),
    config: SurveyConfig = Depends(get_survey_config),
) -> SessionStateResponse:
    """Current question, progress and conversation history.

    Raises 404 if the session is unknown or already completed.
    """
    return await engine.get_session_state(session_id, config)


@router.post("/sessions/{session_id}/answer")
async def submit_answer(
    session_id: str,
    body: AnswerRequest,
    engine: RuntimeEngine = Depends(get_runtime_engine),
    config: SurveyConfig = Depends(get_survey_config),
) -> AnswerResponse:
    """Record an answer and return the next question.

    Reaching a final-message or end block completes the session.
    """
    result = await engine.submit_answer(session_id, body.question_id, body.answer, config)
    if result.next_question is not None and result.next_question.get("type") in TERMINAL_TYPES:
        await engine.complete_session(session_id)
    return result


@router.post("/sessions/{session_id}/end")
async def end_session(
    session_id: str,
    engine: RuntimeEngine = Depends(get_runtime_engine),
) -> EndResponse:
    """Mark the session complete.  Idempotent."""
    await engine.complete_session(session_id)
    return EndResponse(success=True)
