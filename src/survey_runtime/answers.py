"""Typed answers: decoding raw submissions into a tagged union.

Raw answers arrive untyped: strings, booleans, numbers, lists or objects
depending on the question.  ``decode_answer`` maps a raw answer to one
variant of ``Answer`` based on the block's type, so variable derivation and
history formatting dispatch on ``kind`` instead of probing shapes.

Decoding has two modes:

  - strict (``submit_answer``): an answer that does not fit its block's type
    raises ``InvalidAnswerError`` before any state changes
  - lenient (state updates, replay): a misfit decodes to ``RawAnswer``, so
    replaying an answer that was accepted live can never fail

The raw value is always kept alongside the typed view; it is what gets
stored in ``SessionState.answers`` and persisted.
"""

from __future__ import annotations

from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field

from survey_runtime.errors import InvalidAnswerError
from survey_runtime.models.survey import Block, Option


# --- Answer variants ---

class BaseAnswer(BaseModel):
    """Fields and accessors shared by every variant."""

    raw: Any = None

    def as_list(self) -> list[Any]:
        """List view used by count/includes derivations."""
        return []

    def as_mapping(self) -> dict[str, Any]:
        """Object view used by field/merge derivations."""
        return {}


class ChoiceAnswer(BaseAnswer):
    """single-choice, scale, yes-no: one option value or id."""

    kind: Literal["choice"] = "choice"


class MultiChoiceAnswer(BaseAnswer):
    kind: Literal["multi_choice"] = "multi_choice"
    values: list[Any]

    def as_list(self) -> list[Any]:
        return self.values


class RankingAnswer(BaseAnswer):
    """Option ids/values in ranked order, best first."""

    kind: Literal["ranking"] = "ranking"
    order: list[Any]

    def as_list(self) -> list[Any]:
        return self.order


class TextAnswer(BaseAnswer):
    kind: Literal["text"] = "text"
    text: str


class StructuredAnswer(BaseAnswer):
    """Object answers, e.g. media recordings or contact forms."""

    kind: Literal["structured"] = "structured"
    fields: dict[str, Any]

    def as_mapping(self) -> dict[str, Any]:
        return self.fields


class AcknowledgementAnswer(BaseAnswer):
    """dynamic-message, routing and final-message blocks."""

    kind: Literal["acknowledgement"] = "acknowledgement"


class RawAnswer(BaseAnswer):
    """Anything the type table does not cover, or a lenient misfit."""

    kind: Literal["raw"] = "raw"

    def as_list(self) -> list[Any]:
        return self.raw if isinstance(self.raw, list) else []

    def as_mapping(self) -> dict[str, Any]:
        return self.raw if isinstance(self.raw, dict) else {}


Answer = Annotated[
    Union[
        ChoiceAnswer,
        MultiChoiceAnswer,
        RankingAnswer,
        TextAnswer,
        StructuredAnswer,
        AcknowledgementAnswer,
        RawAnswer,
    ],
    Field(discriminator="kind"),
]


# ------------------------------------------------------------------
# Per-type decoders
# ------------------------------------------------------------------

def _decode_choice(block: Block, raw: Any) -> BaseAnswer:
    if isinstance(raw, (list, dict)):
        raise InvalidAnswerError(f"Invalid answer for {block.id}: expected a single value")
    return ChoiceAnswer(raw=raw)


def _decode_multi_choice(block: Block, raw: Any) -> BaseAnswer:
    if not isinstance(raw, list):
        raise InvalidAnswerError(f"Invalid answer for {block.id}: expected a list of options")
    return MultiChoiceAnswer(raw=raw, values=raw)


def _decode_ranking(block: Block, raw: Any) -> BaseAnswer:
    if not isinstance(raw, list):
        raise InvalidAnswerError(f"Invalid answer for {block.id}: expected a ranked list")
    if block.max_selections is not None and len(raw) > block.max_selections:
        raise InvalidAnswerError(
            f"Invalid answer for {block.id}: {len(raw)} items ranked, "
            f"at most {block.max_selections} allowed"
        )
    return RankingAnswer(raw=raw, order=raw)


def _decode_text(block: Block, raw: Any) -> BaseAnswer:
    if not isinstance(raw, str):
        raise InvalidAnswerError(f"Invalid answer for {block.id}: expected text")
    return TextAnswer(raw=raw, text=raw)


def _decode_structured(block: Block, raw: Any) -> BaseAnswer:
    if not isinstance(raw, dict):
        raise InvalidAnswerError(f"Invalid answer for {block.id}: expected an object")
    return StructuredAnswer(raw=raw, fields=raw)


def _decode_acknowledgement(block: Block, raw: Any) -> BaseAnswer:
    return AcknowledgementAnswer(raw=raw)


# Block type → decoder.  Types not listed decode to RawAnswer.
_DECODERS: dict[str, Callable[[Block, Any], BaseAnswer]] = {
    "single-choice": _decode_choice,
    "scale": _decode_choice,
    "yes-no": _decode_choice,
    "multi-choice": _decode_multi_choice,
    "ranking": _decode_ranking,
    "text-input": _decode_text,
    "long-text": _decode_text,
    "contact-form": _decode_structured,
    "demographics": _decode_structured,
    "dynamic-message": _decode_acknowledgement,
    "routing": _decode_acknowledgement,
    "final-message": _decode_acknowledgement,
}


def decode_answer(block: Block, raw: Any, *, strict: bool = False) -> BaseAnswer:
    """Decode ``raw`` into the variant for ``block.type``.

    ``None`` is accepted for every type (a skipped question) and decodes to
    ``RawAnswer``.  Media and other object-valued blocks not in the type
    table still get the object view through ``RawAnswer.as_mapping``.

    Raises:
        InvalidAnswerError: in strict mode, when ``raw`` does not fit
    """
    decoder = _DECODERS.get(block.type)
    if decoder is None or raw is None:
        return RawAnswer(raw=raw)
    try:
        return decoder(block, raw)
    except InvalidAnswerError:
        if strict:
            raise
        return RawAnswer(raw=raw)


# ------------------------------------------------------------------
# Option matching
# ------------------------------------------------------------------

def match_option(options: list[Option] | None, raw: Any) -> Optional[Option]:
    """Find the option selected by ``raw``.

    Matches on strict equality with ``value`` or ``id``.  Boolean option
    values also match the strings ``"true"``/``"false"``, and the string
    values ``"true"``/``"false"`` match booleans.  ``None`` matches nothing.
    """
    if not options or raw is None:
        return None
    for opt in options:
        if _same(opt.value, raw) or (opt.id is not None and opt.id == raw):
            return opt
        if isinstance(opt.value, bool) and raw in ("true", "false"):
            if opt.value == (raw == "true"):
                return opt
        if isinstance(raw, bool) and opt.value in ("true", "false"):
            if (opt.value == "true") == raw:
                return opt
    return None


def _same(left: Any, right: Any) -> bool:
    if left is None:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right
