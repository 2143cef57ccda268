"""Conversation history: the transcript shown to a returning respondent.

Built from ``completed_blocks`` in order.  Routing blocks are invisible and
skipped; dynamic messages appear as bot-only entries without an answer.
Question text is re-rendered against the current variables.
"""

from __future__ import annotations

import json
from typing import Any

from survey_runtime.evaluator import ConditionEvaluator
from survey_runtime.models.session import ConversationHistoryItem, SessionState
from survey_runtime.models.survey import SurveyConfig
from survey_runtime.templating import format_question


def _find_option(question: dict[str, Any], value: Any) -> dict[str, Any] | None:
    for option in question.get("options") or []:
        if option.get("id") == value or option.get("value") == value:
            return option
    return None


def _option_label(question: dict[str, Any], value: Any) -> str:
    option = _find_option(question, value)
    if option is None:
        return str(value)
    return option.get("label") or str(option.get("value") or value)


def format_answer_for_display(answer: Any, question: dict[str, Any]) -> str:
    """Render a raw answer as readable text for ``question`` (a formatted descriptor)."""
    if answer is None:
        return ""

    qtype = question.get("type")

    if qtype == "single-choice":
        return _option_label(question, answer)

    if qtype == "multi-choice" and isinstance(answer, list):
        return ", ".join(_option_label(question, v) for v in answer)

    if qtype == "scale":
        option = _find_option(question, answer)
        if option is None:
            return str(answer)
        emoji = option.get("emoji") or ""
        label = option.get("label") or ""
        if emoji and label:
            return f"{emoji} {label}"
        return emoji or label or str(answer)

    if qtype == "ranking" and isinstance(answer, list):
        return ", ".join(
            f"{rank}. {_option_label(question, v)}" for rank, v in enumerate(answer, start=1)
        )

    if isinstance(answer, (dict, list)):
        return json.dumps(answer, ensure_ascii=False)
    return str(answer)


def build_conversation_history(
    config: SurveyConfig,
    state: SessionState,
    evaluator: ConditionEvaluator | None = None,
) -> list[ConversationHistoryItem]:
    history: list[ConversationHistoryItem] = []

    for block_id in state.completed_blocks:
        block = config.blocks.get(block_id)
        if block is None or block.type == "routing":
            continue

        question = format_question(block, state.variables, evaluator)
        content = question.get("content")
        content = content if isinstance(content, str) else ""

        if block.type == "dynamic-message":
            history.append(ConversationHistoryItem(
                block_id=block_id,
                question_content=content,
                answer_content=None,
                question_type=block.type,
                is_bot_only=True,
            ))
            continue

        history.append(ConversationHistoryItem(
            block_id=block_id,
            question_content=content,
            answer_content=format_answer_for_display(state.answers.get(block_id), question),
            question_type=block.type,
            is_bot_only=False,
        ))

    return history
