"""Survey config loading tests: YAML, JSON and failure modes."""

import json

import pytest

from survey_runtime.errors import SurveyConfigError
from survey_runtime.loader import load_survey_config, parse_survey_config
from survey_runtime.models.survey import SurveyConfig


class TestExampleSurvey:
    def test_loads_with_ids_from_keys(self, example_config):
        assert example_config.survey.id == "community-pulse"
        assert "b0" in example_config.blocks
        for key, block in example_config.blocks.items():
            assert block.id == key, f"Block {key} should carry its map key as id"

    def test_camel_case_keys_are_mapped(self, example_config):
        b1 = example_config.blocks["b1"]
        assert b1.on_empty.message == "No problem, we'll keep it anonymous."
        assert example_config.blocks["b6"].show_if == {"variable": "wants_email", "equals": True}
        assert example_config.blocks["b8"].max_selections == 3
        assert example_config.progress.main_path == ["b1", "b2", "b4", "b8", "b10"]

    def test_extra_option_keys_are_kept(self, example_config):
        option = example_config.blocks["b3"].options[3]
        assert option.model_extra.get("emoji") == "🙂"

    def test_default_path(self):
        config = load_survey_config()
        assert config.survey.id == "community-pulse"


class TestFileFormats:
    def test_json_file(self, tmp_path, linear_config):
        path = tmp_path / "survey.json"
        path.write_text(json.dumps(linear_config), encoding="utf-8")
        config = load_survey_config(path)
        assert list(config.blocks) == ["b0", "b1", "b2"]

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "survey.yml"
        path.write_text("blocks:\n  q1:\n    type: text-input\n    content: Hi\n", encoding="utf-8")
        config = load_survey_config(path)
        assert config.blocks["q1"].content == "Hi"


class TestFailures:
    def test_missing_file(self, tmp_path):
        with pytest.raises(SurveyConfigError, match="not found"):
            load_survey_config(tmp_path / "nope.yaml")

    def test_unparsable_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SurveyConfigError, match="Unable to parse"):
            load_survey_config(path)

    def test_unparsable_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("blocks: [unclosed\n", encoding="utf-8")
        with pytest.raises(SurveyConfigError, match="Unable to parse"):
            load_survey_config(path)

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SurveyConfigError, match="must be a mapping"):
            load_survey_config(path)

    def test_block_without_type(self):
        with pytest.raises(SurveyConfigError, match="Invalid survey config"):
            parse_survey_config({"blocks": {"b0": {"content": "Hi"}}})

    def test_errors_are_value_errors(self):
        """HTTP layers map ValueError, so config errors must be one."""
        with pytest.raises(ValueError):
            parse_survey_config("not a config")


class TestParse:
    def test_passes_config_through(self, example_config):
        assert parse_survey_config(example_config) is example_config

    def test_empty_blocks_accepted_at_parse_time(self):
        config = parse_survey_config({})
        assert isinstance(config, SurveyConfig)
        assert config.blocks == {}
