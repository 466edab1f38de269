"""Time tracking configuration loader.

Configuration is read once per plugin activation from the project directory.
Candidate files, first existing wins:

1. .opencode/opencode-project.json  - the "time_tracking" section
2. .opencode/time-tracking.json     - whole document
3. .opencode/time-tracking.yaml     - whole document (also .yml)

user_email is not part of the file. It is resolved, in order, from the
OPENCODE_USER_EMAIL environment variable, the same key in the project's
.env file, and finally the OS account name.

Any problem with the configuration means the plugin stays inactive:
load() returns None and the reason is logged.
"""

from __future__ import annotations

import getpass
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

ENV_USER_EMAIL = "OPENCODE_USER_EMAIL"
PROJECT_CONFIG = Path(".opencode") / "opencode-project.json"
SECTION = "time_tracking"


class ConfigError(ValueError):
    """Configuration is absent or invalid."""


class GlobalDefault(BaseModel):
    issue_key: str
    account_key: str = Field(..., min_length=1)


class AgentDefault(BaseModel):
    issue_key: str
    account_key: str | None = None


class TimeTrackingConfig(BaseModel):
    """Validated plugin configuration. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    csv_file: str = Field(..., min_length=1)
    user_email: str
    global_default: GlobalDefault
    agent_defaults: dict[str, AgentDefault] = Field(default_factory=dict)
    ignored_agents: frozenset[str] = frozenset()
    valid_projects: frozenset[str] | None = None

    # Finalize sessions on session.deleted as well as session.idle
    finalize_on_delete: bool = False
    # Use the git branch name as a last-resort ticket source
    ticket_from_branch: bool = False

    @field_validator("valid_projects")
    @classmethod
    def _non_empty_prefixes(cls, v: frozenset[str] | None) -> frozenset[str] | None:
        if v is None:
            return None
        cleaned = frozenset(p.strip() for p in v if p and p.strip())
        return cleaned or None


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _read_yaml(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _project_section(path: Path) -> Any:
    data = _read_json(path)
    if not isinstance(data, dict) or SECTION not in data:
        raise ConfigError(f"No '{SECTION}' section in {path}")
    return data[SECTION]


# (relative path, reader) in priority order
CONFIG_CANDIDATES: list[tuple[Path, Callable[[Path], Any]]] = [
    (PROJECT_CONFIG, _project_section),
    (Path(".opencode") / "time-tracking.json", _read_json),
    (Path(".opencode") / "time-tracking.yaml", _read_yaml),
    (Path(".opencode") / "time-tracking.yml", _read_yaml),
]


def _env_file_value(directory: Path, key: str) -> str | None:
    env_path = directory / ".env"
    if not env_path.is_file():
        return None
    try:
        value = dotenv_values(env_path).get(key)
    except OSError as e:
        logger.warning(f"Could not read {env_path}: {e}")
        return None
    return value.strip() if value and value.strip() else None


def _os_username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def resolve_user_email(directory: Path) -> str:
    """First present value of: environment, project .env, OS user name."""
    sources: list[Callable[[], str | None]] = [
        lambda: os.environ.get(ENV_USER_EMAIL) or None,
        lambda: _env_file_value(directory, ENV_USER_EMAIL),
        _os_username,
    ]
    for source in sources:
        value = source()
        if value:
            return value
    return "unknown"


def find_config_file(directory: Path) -> tuple[Path, Callable[[Path], Any]] | None:
    for relative, reader in CONFIG_CANDIDATES:
        path = directory / relative
        if path.is_file():
            return path, reader
    return None


def load_or_raise(directory: str | Path) -> TimeTrackingConfig:
    """Load and validate the configuration, raising ConfigError on any problem."""
    directory = Path(directory)
    found = find_config_file(directory)
    if found is None:
        raise ConfigError(f"No time tracking configuration found under {directory}")

    path, reader = found
    try:
        raw = reader(path)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration in {path} must be an object")

    data = {**raw, "user_email": resolve_user_email(directory)}
    try:
        return TimeTrackingConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def load(directory: str | Path) -> TimeTrackingConfig | None:
    """Load the configuration, or None if the plugin should stay inactive."""
    try:
        config = load_or_raise(directory)
    except ConfigError as e:
        logger.info(f"Time tracking inactive: {e}")
        return None
    logger.debug(f"Loaded time tracking config (csv_file={config.csv_file})")
    return config
