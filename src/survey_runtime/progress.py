"""Progress tracking: percentage of the expected path answered so far.

The expected path is recomputed on every call from the current variables,
so branches the respondent has not taken do not count against them.

With a ``progress`` section in the config::

    progress:
      mainPath: [b1, b2, b4, b8]
      optional:
        - when: {variable: has_pet, equals: true}
          blocks: [b5, b6]

the path is ``mainPath`` plus every optional segment whose ``when`` holds.
Without it, the path is every block that is shown to the respondent
(not routing, dynamic-message, final-message or end); blocks guarded by
``showIf`` only count while the guard is currently true.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from survey_runtime.constants import NON_PROGRESS_TYPES
from survey_runtime.evaluator import ConditionEvaluator
from survey_runtime.models.session import SessionState
from survey_runtime.models.survey import SurveyConfig


def expected_blocks(
    config: SurveyConfig,
    variables: Mapping[str, Any],
    evaluator: ConditionEvaluator | None = None,
) -> list[str]:
    """Return the ordered, de-duplicated block ids the respondent is expected to answer."""
    evaluator = evaluator or ConditionEvaluator()

    if config.progress is not None:
        path = list(config.progress.main_path)
        for segment in config.progress.optional:
            if evaluator.evaluate(segment.when, variables):
                path.extend(segment.blocks)
        return list(dict.fromkeys(path))

    path = []
    for block_id, block in config.blocks.items():
        if block.type in NON_PROGRESS_TYPES:
            continue
        if block.show_if and not evaluator.evaluate(block.show_if, variables):
            continue
        path.append(block_id)
    return path


def calculate_progress(
    config: SurveyConfig,
    state: SessionState,
    evaluator: ConditionEvaluator | None = None,
) -> int:
    """Percentage in [0, 100] of expected blocks already answered.

    Rounds half-up.  An empty expected path reports 0.
    """
    expected = expected_blocks(config, state.variables, evaluator)
    if not expected:
        return 0
    answered = set(state.completed_blocks)
    done = sum(1 for block_id in expected if block_id in answered)
    return min(100, math.floor(done / len(expected) * 100 + 0.5))
