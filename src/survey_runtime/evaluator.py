"""ConditionEvaluator: evaluates boolean condition trees against a variable bag.

Conditions are plain mappings.  Composite nodes nest other conditions:

  - ``{"not": <condition>}``
  - ``{"or": [<condition>, ...]}``   true iff any child is true
  - ``{"and": [<condition>, ...]}``  true iff every child is true

Leaf nodes test one variable, named by ``variable`` or, when absent, by the
caller-supplied fallback variable (typically the block's own ``variable``):

  - ``equals``              equality; two lists compare as sets of equal length
  - ``in``                  scalar in allowed list, or any list element in it
  - ``contains``            substring of a string, or element of a list
  - ``lessThan`` / ``lt``   numeric comparison (both sides coerced)
  - ``greaterThan`` / ``gt``
  - ``truthy``              truthiness of the stored value equals the flag

Evaluation never raises: missing variables, non-numeric operands and
unknown or malformed shapes all evaluate to ``False``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

# Leaf operators in the order they are checked; the first present one wins.
_LEAF_OPERATORS: tuple[str, ...] = (
    "equals",
    "in",
    "contains",
    "lessThan",
    "lt",
    "greaterThan",
    "gt",
    "truthy",
)

# Keys that are not operators
_RESERVED_KEYS = {"variable"}


class ConditionEvaluator:
    """Stateless evaluator for condition trees."""

    def evaluate(
        self,
        condition: Any,
        variables: Mapping[str, Any],
        fallback_variable: str | None = None,
    ) -> bool:
        """Evaluate ``condition`` against ``variables``.

        Args:
            condition: a condition mapping (anything else evaluates False)
            variables: the session's variable bag
            fallback_variable: variable tested by leaf nodes that do not
                name one themselves

        Returns:
            The boolean result.
        """
        if not isinstance(condition, Mapping):
            return False

        # --- Composite nodes ---
        if "not" in condition:
            return not self.evaluate(condition["not"], variables, fallback_variable)

        if "or" in condition:
            children = condition["or"]
            if not isinstance(children, list):
                return False
            return any(self.evaluate(c, variables, fallback_variable) for c in children)

        if "and" in condition:
            children = condition["and"]
            if not isinstance(children, list):
                return False
            return all(self.evaluate(c, variables, fallback_variable) for c in children)

        # --- Leaf nodes ---
        name = condition.get("variable") or fallback_variable
        if not name or name not in variables:
            return False
        stored = variables[name]

        for op in _LEAF_OPERATORS:
            if op in condition:
                return self._compare(op, stored, condition[op])

        unknown = [k for k in condition if k not in _RESERVED_KEYS]
        logger.warning("Condition on %r has no known operator: %s", name, unknown)
        return False

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _compare(self, op: str, stored: Any, target: Any) -> bool:
        """Apply a leaf operator to the stored value and the condition's target."""
        if op == "equals":
            if isinstance(stored, list) and isinstance(target, list):
                # Set-style: same length, every target element present
                return len(stored) == len(target) and all(t in stored for t in target)
            return _strict_equal(stored, target)

        if op == "in":
            if not isinstance(target, list):
                return False
            if isinstance(stored, list):
                return any(item in target for item in stored)
            return stored in target

        if op == "contains":
            if isinstance(stored, str):
                return isinstance(target, str) and target in stored
            if isinstance(stored, list):
                return target in stored
            return False

        if op in ("lessThan", "lt", "greaterThan", "gt"):
            left, right = _to_number(stored), _to_number(target)
            if left is None or right is None:
                return False
            if op in ("lessThan", "lt"):
                return left < right
            return left > right

        if op == "truthy":
            return bool(stored) == bool(target)

        logger.warning("Unknown condition operator: %s", op)
        return False


def _strict_equal(left: Any, right: Any) -> bool:
    """Equality that keeps booleans distinct from 0/1."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


def _to_number(value: Any) -> float | None:
    """Coerce to float; None for booleans, blanks and anything non-numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


_default_evaluator = ConditionEvaluator()


def evaluate_condition(
    condition: Any,
    variables: Mapping[str, Any],
    fallback_variable: str | None = None,
) -> bool:
    """Module-level shortcut for :meth:`ConditionEvaluator.evaluate`."""
    return _default_evaluator.evaluate(condition, variables, fallback_variable)
