"""Configuration for the pr-check driver.

The configuration lives in an optional YAML file (``pr-check.yaml`` by
default).  Every section has defaults matching the repository layout the
driver was written for, so a missing file is not an error; an unreadable or
malformed one is.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, List

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_CONFIG_NAME = "pr-check.yaml"

DEFAULT_UNIT_TEST_PATHS: tuple[str, ...] = (
    "test/unit/*.js",
    "test/functional/**/*.js",
    "ads/**/test/test-*.js",
    "extensions/**/test/*.js",
)
DEFAULT_INTEGRATION_TEST_PATHS: tuple[str, ...] = (
    "test/integration/**/*.js",
    "extensions/**/test/integration/**/*.js",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded."""


class ConfigModel(BaseModel):
    """Base model rejecting unknown keys."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class SuiteGlobs(ConfigModel):
    """Glob patterns identifying unit and integration test files."""

    unit_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_UNIT_TEST_PATHS))
    integration_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_INTEGRATION_TEST_PATHS))


class GitSettings(ConfigModel):
    base_branch: str = "master"


class CISettings(ConfigModel):
    main_branch: str = "master"


class ProxySettings(ConfigModel):
    """Browser-testing proxy used by the cross-browser test actions."""

    username: str = "amphtml"
    token_url: str = "https://amphtml-sauce-token-dealer.appspot.com/getJwtToken"
    start_command: str = "build-system/sauce_connect/start_sauce_connect.sh"
    stop_command: str = "build-system/sauce_connect/stop_sauce_connect.sh"


class PrCheckConfig(ConfigModel):
    tests: SuiteGlobs = Field(default_factory=SuiteGlobs)
    git: GitSettings = Field(default_factory=GitSettings)
    ci: CISettings = Field(default_factory=CISettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config {path}: {error}") from error
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a mapping at the top level: {path}")
    return data


def load_config(path: Path | str | None = None, *, required: bool = False) -> PrCheckConfig:
    """Load the driver configuration, falling back to defaults when absent.

    Parameters
    ----------
    path:
        Location of the YAML file.  Defaults to ``pr-check.yaml`` in the
        current working directory.
    required:
        Raise :class:`ConfigError` instead of returning defaults when the file
        does not exist.
    """

    config_path = Path(path) if path is not None else Path.cwd() / DEFAULT_CONFIG_NAME
    if not config_path.exists():
        if required:
            raise ConfigError(f"Config file not found: {config_path}")
        return PrCheckConfig()

    data = _read_yaml(config_path)
    try:
        return PrCheckConfig.model_validate(data)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration in {config_path}: {error}") from error


__all__ = [
    "CISettings",
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "GitSettings",
    "PrCheckConfig",
    "ProxySettings",
    "SuiteGlobs",
    "load_config",
]
