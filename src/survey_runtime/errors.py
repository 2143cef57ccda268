"""Exception hierarchy for the survey runtime.

Every error derives from ``ValueError`` so HTTP layers that already map
``ValueError`` messages to status codes keep working; the subclasses let
callers distinguish the cases without parsing messages.
"""


class SurveyRuntimeError(ValueError):
    """Base class for all engine errors."""


class SurveyConfigError(SurveyRuntimeError):
    """The survey configuration is missing, unparsable, or has no blocks."""


class SessionNotFoundError(SurveyRuntimeError):
    """Neither the cache nor the durable answer log yields the session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: session_id={session_id}")
        self.session_id = session_id


class InvalidAnswerError(SurveyRuntimeError):
    """A submitted answer does not fit its question."""


class StaleAnswerError(SurveyRuntimeError):
    """A persisted answer references a block missing from the current config."""

    def __init__(self, session_id: str, block_id: str) -> None:
        super().__init__(
            f"Stale answer during replay: session_id={session_id}, "
            f"block_id={block_id} is not in the survey config"
        )
        self.session_id = session_id
        self.block_id = block_id


class RoutingCycleError(SurveyRuntimeError):
    """Next-question resolution exceeded the hop limit."""

    def __init__(self, block_id: str, max_hops: int) -> None:
        super().__init__(
            f"Routing from block {block_id} exceeded {max_hops} hops; "
            "the survey config likely contains a routing cycle"
        )
        self.block_id = block_id
        self.max_hops = max_hops
