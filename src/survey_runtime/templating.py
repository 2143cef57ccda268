"""Template substitution and question formatting.

``render_template`` resolves placeholders in one pass with a fixed order:

  1. ``{{#if VAR}}A{{else}}B{{/if}}``  → A if VAR is truthy, else B
  2. ``{{#if VAR}}A{{/if}}``            → A if VAR is truthy, else ""
  3. ``{{VAR}}``                        → the value as text, "" if unset

Because the conditional passes run first, ``{{VAR}}`` references inside a
chosen branch are still resolved.  Nested conditionals are not supported.

``format_question`` turns a configured ``Block`` into the descriptor handed
to callers: a rendered deep copy, so the configured block is never touched
and can be re-rendered for other respondents.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

from survey_runtime.constants import CONTENT_PLACEHOLDER, DEFAULT_DYNAMIC_MESSAGE
from survey_runtime.evaluator import ConditionEvaluator
from survey_runtime.models.survey import Block

_IF_ELSE_RE = re.compile(r"\{\{#if (\w+)\}\}([\s\S]*?)\{\{else\}\}([\s\S]*?)\{\{/if\}\}")
_IF_RE = re.compile(r"\{\{#if (\w+)\}\}([\s\S]*?)\{\{/if\}\}")
_VAR_RE = re.compile(r"\{\{(\w+)\}\}")


def render_template(text: str, variables: Mapping[str, Any]) -> str:
    """Resolve ``{{...}}`` placeholders in ``text`` against ``variables``."""
    value = _IF_ELSE_RE.sub(
        lambda m: m.group(2) if variables.get(m.group(1)) else m.group(3),
        text,
    )
    value = _IF_RE.sub(
        lambda m: m.group(2) if variables.get(m.group(1)) else "",
        value,
    )
    return _VAR_RE.sub(lambda m: to_text(variables.get(m.group(1))), value)


def to_text(value: Any) -> str:
    """Render a variable value the way it reads in JSON-ish text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list):
        return ",".join(to_text(v) for v in value)
    return str(value)


def format_question(
    block: Block,
    variables: Mapping[str, Any],
    evaluator: ConditionEvaluator | None = None,
) -> dict[str, Any]:
    """Build the client-facing descriptor for ``block``.

    Content selection, in order:
      - string content is rendered directly
      - mapping content with ``contentCondition`` picks the ``then``/``else`` key
      - dynamic-message mapping content picks the key equal to the current
        value of ``contentVariable``, falling back to ``default``
      - ``conditionalContent`` replaces placeholder or empty content with the
        first matching entry (``"default"`` matches unconditionally)

    Option labels and the ``placeholder`` field are rendered too.
    """
    evaluator = evaluator or ConditionEvaluator()
    formatted = copy.deepcopy(block.model_dump(by_alias=True, exclude_none=True))
    content = formatted.get("content")
    condition = formatted.get("contentCondition")

    if isinstance(content, str):
        formatted["content"] = render_template(content, variables)
    elif isinstance(content, dict) and condition:
        key = condition.get("then") if evaluator.evaluate(condition.get("if"), variables) else condition.get("else")
        formatted["content"] = render_template(content.get(key) or "", variables)
    elif isinstance(content, dict) and block.type == "dynamic-message":
        selected = content.get("default", DEFAULT_DYNAMIC_MESSAGE)
        key_variable = formatted.get("contentVariable")
        key = variables.get(key_variable) if key_variable else None
        if isinstance(key, str) and key in content:
            selected = content[key]
        formatted["content"] = render_template(selected, variables)

    entries = formatted.get("conditionalContent")
    if isinstance(entries, list):
        matched: str | None = None
        for entry in entries:
            cond = entry.get("condition")
            if cond == "default" or evaluator.evaluate(cond, variables):
                matched = entry.get("content")
                break
        if matched and formatted.get("content", "") in (CONTENT_PLACEHOLDER, ""):
            formatted["content"] = render_template(matched, variables)

    if isinstance(formatted.get("options"), list):
        for option in formatted["options"]:
            if option.get("label"):
                option["label"] = render_template(option["label"], variables)

    if formatted.get("placeholder"):
        formatted["placeholder"] = render_template(formatted["placeholder"], variables)

    return formatted
