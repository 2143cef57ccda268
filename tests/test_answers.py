"""Answer decoding and option matching tests."""

import pytest

from survey_runtime.answers import (
    AcknowledgementAnswer,
    ChoiceAnswer,
    MultiChoiceAnswer,
    RankingAnswer,
    RawAnswer,
    StructuredAnswer,
    TextAnswer,
    decode_answer,
    match_option,
)
from survey_runtime.errors import InvalidAnswerError
from survey_runtime.models.survey import Block, Option


def _block(block_type: str, **kwargs) -> Block:
    return Block(id="q", type=block_type, **kwargs)


# =====================================================================
# decode_answer
# =====================================================================


class TestDecodeAnswer:
    @pytest.mark.parametrize(
        "block_type, raw, variant",
        [
            ("single-choice", "a", ChoiceAnswer),
            ("scale", 4, ChoiceAnswer),
            ("yes-no", True, ChoiceAnswer),
            ("multi-choice", ["a", "b"], MultiChoiceAnswer),
            ("ranking", ["b", "a"], RankingAnswer),
            ("text-input", "hello", TextAnswer),
            ("long-text", "", TextAnswer),
            ("contact-form", {"email": "a@b.c"}, StructuredAnswer),
            ("demographics", {"age": 30}, StructuredAnswer),
            ("dynamic-message", "acknowledged", AcknowledgementAnswer),
            ("routing", "acknowledged", AcknowledgementAnswer),
            ("final-message", "acknowledged", AcknowledgementAnswer),
        ],
    )
    def test_type_table(self, block_type, raw, variant):
        decoded = decode_answer(_block(block_type), raw, strict=True)
        assert isinstance(decoded, variant), f"{block_type} decoded to {type(decoded).__name__}"
        assert decoded.raw == raw, "Raw value must be kept alongside the typed view"

    def test_none_is_accepted_for_every_type(self):
        decoded = decode_answer(_block("multi-choice"), None, strict=True)
        assert isinstance(decoded, RawAnswer)
        assert decoded.raw is None

    def test_unlisted_type_decodes_raw(self):
        decoded = decode_answer(_block("audio-recording"), {"url": "s3://x"}, strict=True)
        assert isinstance(decoded, RawAnswer)
        assert decoded.as_mapping() == {"url": "s3://x"}, "Object view should still work"

    @pytest.mark.parametrize(
        "block_type, raw",
        [
            ("single-choice", ["a"]),
            ("scale", {"v": 1}),
            ("multi-choice", "a"),
            ("ranking", "a"),
            ("text-input", 42),
            ("contact-form", "a@b.c"),
        ],
    )
    def test_strict_misfit_raises(self, block_type, raw):
        with pytest.raises(InvalidAnswerError):
            decode_answer(_block(block_type), raw, strict=True)

    def test_lenient_misfit_is_raw(self):
        decoded = decode_answer(_block("multi-choice"), "a")
        assert isinstance(decoded, RawAnswer)
        assert decoded.as_list() == [], "A string must not pose as a list"

    def test_ranking_respects_max_selections(self):
        block = _block("ranking", max_selections=2)
        assert isinstance(decode_answer(block, ["a", "b"], strict=True), RankingAnswer)
        with pytest.raises(InvalidAnswerError, match="at most 2"):
            decode_answer(block, ["a", "b", "c"], strict=True)

    def test_views(self):
        assert decode_answer(_block("multi-choice"), ["a"]).as_list() == ["a"]
        assert decode_answer(_block("ranking"), ["b", "a"]).as_list() == ["b", "a"]
        assert decode_answer(_block("contact-form"), {"x": 1}).as_mapping() == {"x": 1}
        assert decode_answer(_block("text-input"), "t").as_list() == []
        assert decode_answer(_block("single-choice"), "a").as_mapping() == {}


# =====================================================================
# match_option
# =====================================================================


class TestMatchOption:
    OPTIONS = [
        Option(id="opt-a", value="a", label="A"),
        Option(id="opt-one", value=1, label="One"),
        Option(id="yes", value=True, label="Yes"),
        Option(id="no", value=False, label="No"),
    ]

    def test_match_by_value_and_id(self):
        assert match_option(self.OPTIONS, "a").label == "A"
        assert match_option(self.OPTIONS, "opt-one").label == "One"

    def test_bool_and_int_stay_distinct(self):
        assert match_option(self.OPTIONS, 1).label == "One"
        assert match_option(self.OPTIONS, True).label == "Yes", "True must not match value 1"

    def test_string_booleans_match_bool_values(self):
        assert match_option(self.OPTIONS, "true").label == "Yes"
        assert match_option(self.OPTIONS, "false").label == "No"

    def test_bool_matches_string_values(self):
        options = [Option(id="y", value="true", label="Yes"), Option(id="n", value="false", label="No")]
        assert match_option(options, False).label == "No"

    def test_no_match(self):
        assert match_option(self.OPTIONS, "zzz") is None
        assert match_option(self.OPTIONS, None) is None
        assert match_option(None, "a") is None
        assert match_option([], "a") is None

    def test_option_without_value_matches_by_id_only(self):
        options = [Option(id="1", label="One")]
        assert match_option(options, "1").label == "One"
        assert match_option(options, None) is None
