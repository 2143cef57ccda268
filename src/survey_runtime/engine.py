"""RuntimeEngine: drives respondents through a survey, one answer at a time.

Cached-session pattern: live sessions are held in a ``SessionCache``; the
durable answer log behind ``RuntimePersistence`` is the source of truth.
Whenever a session is missing from the cache (expired, evicted, another
process, a restart) it is rebuilt by replaying its persisted answers
through the same state-update and routing code used for live submissions,
so replay reproduces the live session exactly.

Next-block resolution, in precedence order:
    1  onEmpty     - the answer is "" and the block has ``onEmpty``
    2  literal     - ``next`` is a block id
    3  option      - the matched option has ``next``
    4  conditional - ``next`` as a routing structure, else ``conditionalNext``

The resolved block is then checked: a false ``showIf`` skips it (resolving
from it with no answer), and routing blocks or empty dynamic messages with
``conditionalNext`` are walked through with ``"acknowledged"``.  Walking is
a bounded loop; exceeding ``max_hops`` raises ``RoutingCycleError``.

Submission is transactional: the engine works on a deep copy of the state
and only swaps it in after the answer has been saved.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import Any

from survey_runtime.answers import decode_answer, match_option
from survey_runtime.cache import SessionCache
from survey_runtime.constants import (
    ACKNOWLEDGED,
    EMPTY_MESSAGE_SUFFIX,
    ENTRY_BLOCK_ID,
    MAX_ROUTING_HOPS,
    RESPONDENT_NAME_VARIABLE,
    ROUTING_TYPES,
)
from survey_runtime.derived import DeclarativeDerivedVariables, DerivedVariableStrategy
from survey_runtime.errors import (
    InvalidAnswerError,
    RoutingCycleError,
    SessionNotFoundError,
    StaleAnswerError,
    SurveyConfigError,
)
from survey_runtime.evaluator import ConditionEvaluator
from survey_runtime.history import build_conversation_history
from survey_runtime.interfaces import RuntimePersistence
from survey_runtime.loader import parse_survey_config
from survey_runtime.models.session import (
    AnswerResponse,
    RuntimeSession,
    SessionKind,
    SessionState,
    SessionStateResponse,
    StartResponse,
)
from survey_runtime.models.survey import Block, SurveyConfig
from survey_runtime.progress import calculate_progress
from survey_runtime.routing import resolve_next
from survey_runtime.templating import format_question

logger = logging.getLogger(__name__)


class RuntimeEngine:
    """Runs survey sessions against a config and an optional persistence backend.

    Args:
        persistence: durable store; required for runtime (non-preview) sessions
        cache: session cache; a default ``SessionCache`` when omitted
        derived: derived-variable strategy; declarative rules by default
        evaluator: condition evaluator shared by routing, showIf and rendering
        strict_replay: raise ``StaleAnswerError`` on persisted answers whose
            block is gone from the config, instead of skipping them
        max_hops: routing hop limit per resolution
    """

    def __init__(
        self,
        persistence: RuntimePersistence | None = None,
        *,
        cache: SessionCache | None = None,
        derived: DerivedVariableStrategy | None = None,
        evaluator: ConditionEvaluator | None = None,
        strict_replay: bool = False,
        max_hops: int = MAX_ROUTING_HOPS,
    ) -> None:
        self._persistence = persistence
        self._cache = cache if cache is not None else SessionCache()
        self._derived = derived or DeclarativeDerivedVariables()
        self._evaluator = evaluator or ConditionEvaluator()
        self._strict_replay = strict_replay
        self._max_hops = max_hops

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def start_session(
        self,
        config: SurveyConfig | Mapping[str, Any],
        *,
        respondent_name: str | None = None,
        tracking: dict[str, Any] | None = None,
        deployment_id: str | None = None,
        draft_id: str | None = None,
        preview: bool = False,
    ) -> StartResponse:
        """Start a session at the survey's entry block.

        Preview sessions live only in the cache.  Runtime sessions create a
        durable response record first.

        Raises:
            SurveyConfigError: if the config is invalid or has no blocks, or
                a runtime session is requested without persistence
        """
        config = parse_survey_config(config)
        entry_id = self._entry_block_id(config)
        metadata = {"tracking": tracking} if tracking else None
        session_id = str(uuid.uuid4())

        if preview:
            kind = SessionKind.PREVIEW
            response_id = str(uuid.uuid4())
            survey_id = (config.survey and config.survey.id) or "preview"
        else:
            if self._persistence is None:
                raise SurveyConfigError("Runtime sessions require a persistence backend")
            kind = SessionKind.RUNTIME
            response_id = await self._persistence.create_response(
                session_id=session_id,
                deployment_id=deployment_id,
                draft_id=draft_id,
                respondent_name=respondent_name or None,
                metadata=metadata,
            )
            survey_id = (
                (config.survey and config.survey.id) or draft_id or deployment_id or "runtime"
            )

        state = SessionState(
            survey_id=survey_id,
            response_id=response_id,
            current_block_id=entry_id,
            variables={RESPONDENT_NAME_VARIABLE: respondent_name or ""},
            metadata=metadata,
        )
        session = RuntimeSession(
            session_id=session_id,
            kind=kind,
            config=config,
            state=state,
            deployment_id=deployment_id,
            draft_id=draft_id,
        )
        self._cache.put(session)
        logger.info(
            "Session started: session_id=%s, kind=%s, response_id=%s, entry=%s",
            session_id, kind.value, response_id, entry_id,
        )

        return StartResponse(
            session_id=session_id,
            response_id=response_id,
            first_question=format_question(config.blocks[entry_id], state.variables, self._evaluator),
        )

    async def complete_session(self, session_id: str) -> None:
        """Mark the session's response completed and drop it from the cache.

        Idempotent.  A session that is not cached is completed directly in
        the durable store, if it exists there and is not complete yet.
        """
        async with self._cache.lock(session_id):
            session = self._cache.get(session_id)

            if session is None:
                if self._persistence is None:
                    return
                persisted = await self._persistence.get_response_by_session_id(session_id)
                if persisted is not None and persisted.completed_at is None:
                    await self._persistence.complete_response(persisted.id)
                    logger.info("Response completed from store: session_id=%s", session_id)
                return

            if session.kind is SessionKind.RUNTIME and self._persistence is not None:
                await self._persistence.complete_response(session.state.response_id)
            self._cache.evict(session_id)
            logger.info("Session completed: session_id=%s", session_id)

    def clear_session(self, session_id: str) -> None:
        """Drop a session from the cache without touching the durable store."""
        self._cache.evict(session_id)

    async def reconstruct_session(
        self,
        session_id: str,
        config: SurveyConfig | Mapping[str, Any],
    ) -> RuntimeSession | None:
        """Rebuild a runtime session from its persisted answers and cache it.

        Returns None when there is no persistence backend, the session is
        unknown, or its response is already completed.
        """
        config = parse_survey_config(config)
        async with self._cache.lock(session_id):
            session = await self._reconstruct(session_id, config)
            if session is not None:
                self._cache.put(session)
            return session

    # ==================================================================
    # Answer API
    # ==================================================================

    async def submit_answer(
        self,
        session_id: str,
        question_id: str,
        answer: Any,
        config: SurveyConfig | Mapping[str, Any] | None = None,
    ) -> AnswerResponse:
        """Record ``answer`` for ``question_id`` and move to the next block.

        ``config`` is used to reconstruct the session when it is not cached.

        Raises:
            SessionNotFoundError: if the session is neither cached nor
                reconstructable
            InvalidAnswerError: if the question is unknown or the answer
                does not fit it
            RoutingCycleError: if resolution exceeds the hop limit
        """
        async with self._cache.lock(session_id):
            session = await self._load_session(session_id, config)

            block = self._lookup_block(session.config, question_id)
            if block is None:
                raise InvalidAnswerError(
                    f"Unknown question: session_id={session_id}, question_id={question_id}"
                )
            if not (answer == "" and block.on_empty is not None):
                decode_answer(block, answer, strict=True)

            working = session.state.model_copy(deep=True)
            self._update_state(working, question_id, block, answer)
            next_block = self._advance(session.config, working, block, answer)
            progress = calculate_progress(session.config, working, self._evaluator)

            if session.kind is SessionKind.RUNTIME:
                await self._persistence.save_answer(
                    response_id=working.response_id,
                    question_id=question_id,
                    answer=answer,
                )

            session.state = working
            self._cache.put(session)

        logger.debug(
            "Answer recorded: session_id=%s, question_id=%s, next=%s, progress=%d",
            session_id, question_id, next_block.id if next_block else None, progress,
        )
        return AnswerResponse(
            next_question=(
                format_question(next_block, working.variables, self._evaluator)
                if next_block is not None else None
            ),
            progress=progress,
        )

    async def get_session_state(
        self,
        session_id: str,
        config: SurveyConfig | Mapping[str, Any] | None = None,
    ) -> SessionStateResponse:
        """Current question, progress and transcript for a (returning) respondent.

        Raises:
            SessionNotFoundError: if the session is neither cached nor
                reconstructable
        """
        async with self._cache.lock(session_id):
            session = await self._load_session(session_id, config)

        state = session.state
        current = session.config.blocks.get(state.current_block_id)
        is_complete = state.is_complete or current is None

        return SessionStateResponse(
            current_question=(
                None if is_complete
                else format_question(current, state.variables, self._evaluator)
            ),
            progress=calculate_progress(session.config, state, self._evaluator),
            is_complete=is_complete,
            response_id=state.response_id,
            conversation_history=build_conversation_history(session.config, state, self._evaluator),
        )

    # ==================================================================
    # Internal: session loading and replay
    # ==================================================================

    async def _load_session(
        self,
        session_id: str,
        config: SurveyConfig | Mapping[str, Any] | None,
    ) -> RuntimeSession:
        """Return the cached session, reconstructing it when ``config`` is given."""
        session = self._cache.get(session_id)
        if session is not None:
            return session

        if config is not None:
            session = await self._reconstruct(session_id, parse_survey_config(config))
            if session is not None:
                self._cache.put(session)
                return session

        raise SessionNotFoundError(session_id)

    async def _reconstruct(self, session_id: str, config: SurveyConfig) -> RuntimeSession | None:
        """Replay the persisted answer log into a fresh session (not cached)."""
        if self._persistence is None:
            return None

        persisted = await self._persistence.get_response_by_session_id(session_id)
        if persisted is None or persisted.completed_at is not None:
            return None

        state = SessionState(
            survey_id=(
                (config.survey and config.survey.id)
                or persisted.draft_id or persisted.deployment_id or "runtime"
            ),
            response_id=persisted.id,
            current_block_id=self._entry_block_id(config),
            variables={RESPONDENT_NAME_VARIABLE: persisted.respondent_name or ""},
            metadata=persisted.metadata,
        )
        session = RuntimeSession(
            session_id=session_id,
            kind=SessionKind.RUNTIME,
            config=config,
            state=state,
            deployment_id=persisted.deployment_id,
            draft_id=persisted.draft_id,
        )

        for item in persisted.answers:
            block = self._lookup_block(config, item.block_id)
            if block is None:
                if self._strict_replay:
                    raise StaleAnswerError(session_id, item.block_id)
                logger.warning(
                    "Skipping stale answer during replay: session_id=%s, block_id=%s",
                    session_id, item.block_id,
                )
                session.replay_warnings.append(item.block_id)
                continue
            self._update_state(state, item.block_id, block, item.answer)
            self._advance(config, state, block, item.answer)

        logger.info(
            "Session reconstructed: session_id=%s, answers=%d, current=%s",
            session_id, len(persisted.answers), state.current_block_id,
        )
        return session

    # ==================================================================
    # Internal: state transitions
    # ==================================================================

    def _update_state(
        self,
        state: SessionState,
        question_id: str,
        block: Block,
        answer: Any,
    ) -> None:
        """Record the answer and apply variable bindings, option setVariables
        and derived variables.  Mutates ``state``."""
        state.answers[question_id] = answer
        if question_id not in state.completed_blocks:
            state.completed_blocks.append(question_id)

        if block.variable:
            state.variables[block.variable] = answer

        option = match_option(block.options, answer)
        if option is not None and option.set_variables:
            state.variables.update(option.set_variables)

        self._derived.apply(block, decode_answer(block, answer), state.variables)

    def _advance(
        self,
        config: SurveyConfig,
        state: SessionState,
        block: Block,
        answer: Any,
    ) -> Block | None:
        """Resolve the block shown after ``block`` and move the pointer to it.

        Returns the next block to show, or None when routing ends.  Mutates
        ``state.current_block_id`` and ``state.is_complete``.
        """
        origin = block.id
        hops = 0

        while True:
            hops += 1
            if hops > self._max_hops:
                raise RoutingCycleError(origin, self._max_hops)

            next_id: str | None = None

            if answer == "" and block.on_empty is not None:
                if block.on_empty.message:
                    message_block = self._empty_message_block(block)
                    # The pointer moves on; the message itself is ephemeral
                    self._advance(config, state, message_block, ACKNOWLEDGED)
                    return message_block
                next_id = block.on_empty.next or (block.next if isinstance(block.next, str) else None)
            elif isinstance(block.next, str):
                next_id = block.next

            if not next_id:
                option = match_option(block.options, answer)
                if option is not None and option.next:
                    next_id = option.next

            if not next_id:
                if isinstance(block.next, (dict, list)) and block.next:
                    next_id = resolve_next(block.next, state.variables, block.variable, self._evaluator)
                elif block.conditional_next:
                    next_id = resolve_next(
                        block.conditional_next, state.variables, block.variable, self._evaluator,
                    )

            if not next_id:
                state.is_complete = True
                return None

            next_block = config.blocks.get(next_id)
            if next_block is None:
                logger.warning(
                    "Routing target not found: from=%s, target=%s", block.id, next_id,
                )
                state.is_complete = True
                return None

            state.current_block_id = next_id
            state.is_complete = False

            if next_block.show_if and not self._evaluator.evaluate(next_block.show_if, state.variables):
                block, answer = next_block, None
                continue

            if next_block.type in ROUTING_TYPES or (
                next_block.type == "dynamic-message"
                and not next_block.content
                and next_block.conditional_next
            ):
                block, answer = next_block, ACKNOWLEDGED
                continue

            return next_block

    # ==================================================================
    # Internal: block lookup
    # ==================================================================

    def _entry_block_id(self, config: SurveyConfig) -> str:
        if not config.blocks:
            raise SurveyConfigError("Survey config must have at least one block")
        if config.entry:
            if config.entry not in config.blocks:
                raise SurveyConfigError(f"Entry block not found: {config.entry}")
            return config.entry
        if ENTRY_BLOCK_ID in config.blocks:
            return ENTRY_BLOCK_ID
        return next(iter(config.blocks))

    def _lookup_block(self, config: SurveyConfig, question_id: str) -> Block | None:
        """Configured block, or the synthesised empty-message block for ``<id>-empty-message``."""
        block = config.blocks.get(question_id)
        if block is not None:
            return block
        if question_id.endswith(EMPTY_MESSAGE_SUFFIX):
            base = config.blocks.get(question_id[: -len(EMPTY_MESSAGE_SUFFIX)])
            if base is not None and base.on_empty is not None and base.on_empty.message:
                return self._empty_message_block(base)
        return None

    @staticmethod
    def _empty_message_block(block: Block) -> Block:
        return Block(
            id=f"{block.id}{EMPTY_MESSAGE_SUFFIX}",
            type="dynamic-message",
            content=block.on_empty.message,
            next=block.on_empty.next or block.next,
        )
