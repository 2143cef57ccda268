"""Conditional-next resolution.

Two routing shapes are accepted:

  List form - ordered rules, first match wins::

      {"rules": [{"when": <condition>, "goto": "b7"}, ...], "else": "b9"}
      [{"when": <condition>, "goto": "b7"}, ...]          # no fallback

  Nested form - an if/then/else tree whose ``else`` may nest further::

      {"if": <condition>, "then": "b4",
       "else": {"if": <condition>, "then": "b5", "else": "b6"}}

Conditions are evaluated with the block's own ``variable`` as fallback, so
``{"equals": "yes"}`` tests the answer just bound to that variable.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from survey_runtime.evaluator import ConditionEvaluator, evaluate_condition

logger = logging.getLogger(__name__)


def resolve_next(
    routing: Any,
    variables: Mapping[str, Any],
    block_variable: str | None = None,
    evaluator: ConditionEvaluator | None = None,
) -> str | None:
    """Return the target block id selected by ``routing``, or None.

    Args:
        routing: a list-form or nested-form routing structure
        variables: the session's variable bag
        block_variable: fallback variable for conditions that name none
        evaluator: optional evaluator override

    Returns:
        The chosen block id, or None when nothing matches or ``routing``
        is absent/malformed.
    """
    if not routing:
        return None

    evaluate = evaluator.evaluate if evaluator is not None else evaluate_condition

    # --- List form ---
    if isinstance(routing, list):
        return _first_matching_rule(routing, variables, block_variable, evaluate)

    if not isinstance(routing, Mapping):
        logger.warning("Unsupported routing structure: %r", type(routing).__name__)
        return None

    if "rules" in routing:
        target = _first_matching_rule(routing["rules"], variables, block_variable, evaluate)
        if target is not None:
            return target
        return _as_block_id(routing.get("else"))

    # --- Nested form: walk the else-chain ---
    node: Any = routing
    while isinstance(node, Mapping) and "if" in node:
        if evaluate(node["if"], variables, block_variable):
            return _as_block_id(node.get("then"))
        node = node.get("else")

    return _as_block_id(node)


def _first_matching_rule(rules, variables, block_variable, evaluate) -> str | None:
    """Return the ``goto`` of the first rule whose ``when`` holds."""
    if not isinstance(rules, list):
        return None
    for rule in rules:
        if not isinstance(rule, Mapping):
            continue
        if evaluate(rule.get("when"), variables, block_variable):
            return _as_block_id(rule.get("goto"))
    return None


def _as_block_id(value: Any) -> str | None:
    """Literal block ids only; anything else (including a malformed node) is None."""
    if isinstance(value, str) and value:
        return value
    return None
