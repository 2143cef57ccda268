import copy
from pathlib import Path

import pytest

from survey_runtime.loader import load_survey_config, load_yaml

EXAMPLE_SURVEY = Path(__file__).resolve().parents[1] / "surveys" / "example.yaml"

# Smallest useful survey: one question per answer type the engine routes on.
LINEAR_CONFIG = {
    "survey": {"id": "linear"},
    "blocks": {
        "b0": {
            "type": "text-input",
            "content": "Hello {{user_name}}, what brings you here?",
            "variable": "reason",
            "next": "b1",
        },
        "b1": {
            "type": "single-choice",
            "content": "Pick one",
            "variable": "pick",
            "options": [
                {"id": "x", "value": "x", "label": "Option X"},
                {"id": "y", "value": "y", "label": "Option Y"},
            ],
            "next": "b2",
        },
        "b2": {"type": "final-message", "content": "Bye{{#if user_name}} {{user_name}}{{/if}}"},
    },
}

# Options route on their own: A → b2, B → b3
BRANCH_CONFIG = {
    "blocks": {
        "b1": {
            "type": "single-choice",
            "content": "A or B?",
            "options": [
                {"id": "A", "value": "A", "label": "A", "next": "b2"},
                {"id": "B", "value": "B", "label": "B", "next": "b3"},
            ],
        },
        "b2": {"type": "final-message", "content": "You picked A"},
        "b3": {"type": "final-message", "content": "You picked B"},
    },
}


@pytest.fixture
def example_config():
    """The bundled example survey, validated."""
    return load_survey_config(EXAMPLE_SURVEY)


@pytest.fixture
def example_config_raw():
    """The bundled example survey as a plain mapping (safe to mutate)."""
    return load_yaml(EXAMPLE_SURVEY)


@pytest.fixture
def linear_config():
    return copy.deepcopy(LINEAR_CONFIG)


@pytest.fixture
def branch_config():
    return copy.deepcopy(BRANCH_CONFIG)
