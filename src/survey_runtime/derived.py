"""Derived variables: extra variables computed from a block's answer.

A block may declare ``derivedVariables``, a list of rules evaluated after
its answer is bound::

    derivedVariables:
      - {variable: wants_email, source: includes, values: [email, newsletter]}
      - {variable: channel_count, source: count}
      - {variable: email, source: field, field: email, default: ""}
      - {source: merge}

The engine delegates to a ``DerivedVariableStrategy`` so deployments with
rules that do not fit the declarative shape can plug in their own.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from survey_runtime.answers import BaseAnswer
from survey_runtime.models.survey import Block, DerivedVariableRule

logger = logging.getLogger(__name__)


class DerivedVariableStrategy(ABC):
    """Interface for computing derived variables after an answer.

    Implementations mutate ``variables`` in place.  They are called during
    live submission and during replay with the same inputs, so they must be
    deterministic.
    """

    @abstractmethod
    def apply(self, block: Block, answer: BaseAnswer, variables: dict[str, Any]) -> None:
        """Update ``variables`` for the answer just given to ``block``.

        Parameters
        ----------
        block:
            The answered block (its ``derived_variables`` carry the rules
            for the default implementation).
        answer:
            The leniently decoded answer.
        variables:
            The working copy of the session's variable bag.
        """
        ...


class DeclarativeDerivedVariables(DerivedVariableStrategy):
    """Applies the block's ``derivedVariables`` rules in order."""

    def apply(self, block: Block, answer: BaseAnswer, variables: dict[str, Any]) -> None:
        for rule in block.derived_variables or []:
            self._apply_rule(rule, answer, variables)

    def _apply_rule(
        self,
        rule: DerivedVariableRule,
        answer: BaseAnswer,
        variables: dict[str, Any],
    ) -> None:
        source = rule.source

        if source == "answer":
            variables[rule.variable] = answer.raw
        elif source == "count":
            variables[rule.variable] = len(answer.as_list())
        elif source == "includes":
            selected = answer.as_list()
            variables[rule.variable] = any(v in selected for v in rule.values)
        elif source == "field":
            variables[rule.variable] = answer.as_mapping().get(rule.field) or rule.default
        elif source == "merge":
            fields = answer.as_mapping()
            if fields:
                variables.update(fields)
        else:
            # Unreachable while the rule model restricts ``source``
            logger.warning("Unknown derived variable source: %s", source)
