"""Exception handlers installed on the app by ``create_app``.

Routes let engine and persistence errors propagate; the handlers here
choose the status code and a fixed client message.  The exception text,
which can carry session or block ids, only goes to the log.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from survey_runtime.errors import (
    InvalidAnswerError,
    RoutingCycleError,
    SessionNotFoundError,
    StaleAnswerError,
    SurveyConfigError,
    SurveyRuntimeError,
)

logger = logging.getLogger(__name__)

_MISCONFIGURED = (500, "Survey is not configured correctly")

# Matched against the exception's MRO, so subclasses inherit a mapping.
_RUNTIME_ERRORS: dict[type, tuple[int, str]] = {
    SessionNotFoundError: (404, "Session not found"),
    InvalidAnswerError: (400, "Invalid answer"),
    StaleAnswerError: (409, "Session no longer matches the survey"),
    SurveyConfigError: _MISCONFIGURED,
    RoutingCycleError: _MISCONFIGURED,
}

# Plain ValueErrors: first keyword found in the message decides.
_VALUE_ERROR_KEYWORDS = (
    ("not found", (404, "Resource not found")),
    ("already", (409, "Resource already exists")),
)
_BAD_REQUEST = (400, "Invalid request")


def _respond(request: Request, exc: Exception, status: int, detail: str) -> JSONResponse:
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(level, "%s [%d] at %s: %s", type(exc).__name__, status, request.url, exc)
    return JSONResponse(status_code=status, content={"detail": detail})


async def survey_error_handler(request: Request, exc: SurveyRuntimeError) -> JSONResponse:
    mapped = next(
        (_RUNTIME_ERRORS[cls] for cls in type(exc).__mro__ if cls in _RUNTIME_ERRORS),
        _BAD_REQUEST,
    )
    return _respond(request, exc, *mapped)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    message = str(exc).lower()
    mapped = next(
        (result for keyword, result in _VALUE_ERROR_KEYWORDS if keyword in message),
        _BAD_REQUEST,
    )
    return _respond(request, exc, *mapped)


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    return _respond(request, exc, 404, "Resource not found")


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: full traceback to the log, a bare 500 to the client."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
