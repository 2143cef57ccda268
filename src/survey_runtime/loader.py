"""Survey config loading: YAML/JSON files into a validated ``SurveyConfig``.

Usage::

    config = load_survey_config()                       # surveys/example.yaml
    config = load_survey_config("surveys/onboarding.json")
    config = parse_survey_config({"blocks": {...}})     # already-parsed mapping
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from survey_runtime.errors import SurveyConfigError
from survey_runtime.models.survey import SurveyConfig

logger = logging.getLogger(__name__)

DEFAULT_SURVEY_PATH = Path("surveys") / "example.yaml"


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


# ---------------------------------------------------------------------------
# Survey config
# ---------------------------------------------------------------------------

def parse_survey_config(raw: Any) -> SurveyConfig:
    """Validate an already-parsed mapping into a ``SurveyConfig``.

    Raises:
        SurveyConfigError: if ``raw`` is not a mapping or fails validation
    """
    if isinstance(raw, SurveyConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise SurveyConfigError(
            f"Survey config must be a mapping, got {type(raw).__name__}"
        )
    try:
        return SurveyConfig.model_validate(raw)
    except ValidationError as exc:
        raise SurveyConfigError(f"Invalid survey config: {exc}") from exc


def load_survey_config(path: str | Path | None = None) -> SurveyConfig:
    """Load and validate a survey config file (``.yaml``/``.yml`` or ``.json``).

    Relative paths resolve against the repo root; the default is
    ``surveys/example.yaml``.

    Raises:
        SurveyConfigError: if the file is missing, unparsable or invalid
    """
    path = Path(path) if path is not None else DEFAULT_SURVEY_PATH
    if not path.is_absolute():
        path = find_repo_root() / path

    try:
        if path.suffix.lower() == ".json":
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        else:
            raw = load_yaml(path)
    except FileNotFoundError as exc:
        raise SurveyConfigError(f"Survey config not found: {path}") from exc
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SurveyConfigError(f"Unable to parse survey config {path}: {exc}") from exc

    config = parse_survey_config(raw)
    logger.info("Survey config loaded from %s: %d blocks", path, len(config.blocks))
    return config
