"""Survey configuration models: the read-only input the engine walks.

A survey is a map of block id → ``Block``.  Blocks carry display content,
optional options, a variable binding, and routing (``next`` /
``conditionalNext``).  Conditions and routing structures are kept as plain
mappings: their shapes are interpreted by the evaluator and resolver, which
treat anything malformed as "no match" instead of failing validation.

Config files use camelCase keys (``showIf``, ``onEmpty``, ...).  Every model
accepts both the camelCase alias and the snake_case field name, and keeps
unknown keys so front-end rendering hints (emoji, min/max, etc.) survive
into the question descriptor.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# A condition node, e.g. {"variable": "age", "greaterThan": 18}
Condition = dict[str, Any]


class ConfigModel(BaseModel):
    """Base for config models: camelCase aliases, extra keys preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# --- Block parts ---

class Option(ConfigModel):
    """A selectable option of a choice, scale or ranking block."""

    id: Optional[str] = None
    value: Any = None
    label: Optional[str] = None
    # Option-level routing target, used when the block has no literal next
    next: Optional[str] = None
    # Variables merged into the bag when this option is selected
    set_variables: Optional[dict[str, Any]] = None


class OnEmpty(ConfigModel):
    """Override applied when the answer is the empty string."""

    message: Optional[str] = None
    next: Optional[str] = None


class ContentCondition(ConfigModel):
    """Selects a key of a mapping ``content`` by evaluating a condition."""

    if_: Any = Field(default=None, alias="if")
    then: Optional[str] = None
    else_: Optional[str] = Field(default=None, alias="else")


class ConditionalContentItem(ConfigModel):
    """One entry of ``conditionalContent``; ``"default"`` always matches."""

    condition: Any = None
    content: Optional[str] = None


class DerivedVariableRule(ConfigModel):
    """Declarative rule deriving an extra variable from a block's answer.

    ``source`` picks the derivation:
      - answer:   copy the raw answer
      - count:    length of a list answer (0 otherwise)
      - includes: True if a list answer contains any of ``values``
      - field:    ``field`` of an object answer, ``default`` when falsy
      - merge:    merge an object answer into the bag (no ``variable``)
    """

    variable: Optional[str] = None
    source: Literal["answer", "count", "includes", "field", "merge"] = "answer"
    values: Optional[list[Any]] = None
    field: Optional[str] = None
    default: Any = None

    @model_validator(mode="after")
    def _chk(self):
        if self.source != "merge" and not self.variable:
            raise ValueError(f"derived variable rule with source={self.source!r} needs a variable")
        if self.source == "includes" and not self.values:
            raise ValueError("derived variable rule with source='includes' needs values")
        if self.source == "field" and not self.field:
            raise ValueError("derived variable rule with source='field' needs a field")
        return self


# --- Block ---

class Block(ConfigModel):
    """One question or message of the survey."""

    id: str = ""
    type: str
    # A string, or a mapping selected by contentCondition / contentVariable
    content: Optional[str | dict[str, str]] = None
    content_condition: Optional[ContentCondition] = None
    # Variable whose value keys a dynamic-message content mapping
    content_variable: Optional[str] = None
    conditional_content: Optional[list[ConditionalContentItem]] = None
    placeholder: Optional[str] = None

    options: Optional[list[Option]] = None
    max_selections: Optional[int] = None
    # Variable the raw answer is bound to
    variable: Optional[str] = None
    derived_variables: Optional[list[DerivedVariableRule]] = None

    # Literal block id, or a conditional-routing structure
    next: Optional[str | dict[str, Any] | list[Any]] = None
    conditional_next: Optional[dict[str, Any] | list[Any]] = None
    show_if: Optional[Condition] = None
    on_empty: Optional[OnEmpty] = None


# --- Progress ---

class ProgressSegment(ConfigModel):
    """Blocks that join the expected path while ``when`` holds."""

    when: Condition
    blocks: list[str]


class ProgressConfig(ConfigModel):
    """Expected-path definition used for progress percentages."""

    main_path: list[str] = Field(default_factory=list)
    optional: list[ProgressSegment] = Field(default_factory=list)


# --- Survey ---

class SurveyInfo(ConfigModel):
    """Descriptive survey metadata."""

    id: Optional[str] = None
    name: Optional[str] = None


class SurveyConfig(ConfigModel):
    """A complete survey configuration.

    An empty ``blocks`` map is accepted here; the engine rejects it at
    session start with ``SurveyConfigError``.
    """

    survey: Optional[SurveyInfo] = None
    # Explicit entry block id; falls back to ENTRY_BLOCK_ID, then the first key
    entry: Optional[str] = None
    blocks: dict[str, Block] = Field(default_factory=dict)
    progress: Optional[ProgressConfig] = None

    @model_validator(mode="after")
    def _fill_block_ids(self):
        # The map key is the canonical id
        for key, block in self.blocks.items():
            block.id = key
        return self
