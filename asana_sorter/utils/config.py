"""
Configuration utilities for the Asana tasks sorter.
"""

import json
import math
import os
import re
from pathlib import Path
from typing import Optional, Tuple, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError
from rich.markup import escape

from .logger import get_logger

log = get_logger(__name__)

ENV_FILE_NAME = ".asana-sorter.env"
TOKEN_ENV_VAR = "ASANA_ACCESS_TOKEN"
BASE_URL_ENV_VAR = "ASANA_BASE_URL"

DEFAULT_CONFIG_SENTINEL = "default"


class MissingCredentialError(RuntimeError):
    """Raised when no Asana personal access token is available."""


class SectionConfig(BaseModel):
    """Section names for each due-date category, plus sections to leave alone."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    overdue: str = "Overdue"
    due_today: str = "Due today"
    due_this_week: str = "Due within the next 7 days"
    due_later: str = "Due later"
    no_date: str = "Recently assigned"
    ignored_sections: Tuple[str, ...] = ()

    def required_sections(self) -> Tuple[str, ...]:
        return (self.overdue, self.due_today, self.due_this_week, self.due_later, self.no_date)


def load_env_vars() -> None:
    """
    Load environment variables from .env files in the following order:
    1. .asana-sorter.env in the current directory
    2. .asana-sorter.env in the user's home directory
    Variables already set in the environment are never overridden.
    """
    if os.path.exists(ENV_FILE_NAME):
        load_dotenv(ENV_FILE_NAME)

    home_env = Path.home() / ENV_FILE_NAME
    if home_env.exists():
        load_dotenv(home_env)


def get_access_token() -> str:
    token = os.getenv(TOKEN_ENV_VAR, "").strip()
    if not token:
        raise MissingCredentialError(f"{TOKEN_ENV_VAR} environment variable is not set")
    return token


def get_base_url(default: str) -> str:
    return os.getenv(BASE_URL_ENV_VAR) or default


def _read_section_config(config_path: Union[str, Path]) -> SectionConfig:
    path = Path(config_path)
    if not path.is_absolute():
        path = path.resolve()
    with open(path, "r", encoding="utf-8") as cf:
        raw = json.load(cf)
    if not isinstance(raw, dict):
        raise ValueError("configuration must be a JSON object")
    return SectionConfig.model_validate(raw)


def load_configuration(config_file: Optional[Union[str, Path]]) -> SectionConfig:
    """Load the section configuration, falling back to defaults on any problem.

    ``None``, ``""`` and ``"default"`` select the built-in defaults.
    """
    if not config_file or str(config_file) == DEFAULT_CONFIG_SENTINEL:
        return SectionConfig()

    try:
        return _read_section_config(config_file)
    except (OSError, ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        log.warning("Error loading section config %s: %s", escape(str(config_file)), escape(str(e)))
        log.warning("Using default configuration")
        return SectionConfig()


_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: str) -> float:
    """Parse ``"30s"``, ``"1m30s"``, ``"500ms"``, ``"2h"`` or ``"45"`` into seconds."""
    text = (value or "").strip().lower()
    if not text:
        raise ValueError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
            pos = match.end()
        if pos != len(text) or pos == 0:
            raise ValueError(f"invalid duration: {value!r}")
    if not math.isfinite(seconds):
        raise ValueError(f"invalid duration: {value!r}")
    if seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds
