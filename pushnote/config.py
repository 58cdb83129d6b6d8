"""Configuration management with Pydantic Settings, git config and optional YAML."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Section of ``git config`` the hook reads, e.g. ``hooks.slack.webhook-url``
GIT_CONFIG_SECTION = "hooks.slack"

_GIT_KEY_ALIASES = {
    "compareurl_pattern": "compare_url_pattern",
}

_OVERRIDE_FIELDS = ("channel", "username", "icon_url", "icon_emoji")


def get_config_dir() -> Path:
    env = os.environ.get("PUSHNOTE_CONFIG_DIR")
    if env:
        return Path(env)
    xdg = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(xdg) / "pushnote"


class ConfigurationError(Exception):
    """Raised when the hook cannot run with the configuration it was given."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PUSHNOTE_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    webhook_url: str = ""

    # Destination overrides, only sent when non-empty
    channel: str = ""
    username: str = ""
    icon_url: str = ""
    icon_emoji: str = ""

    repo_nice_name: str = ""
    repos_root: str = ""
    changeset_url_pattern: str = ""
    compare_url_pattern: str = ""
    branch_regexp: re.Pattern[str] | None = None

    show_only_last_commit: bool = False
    show_full_commit: bool = False

    http_timeout: float = Field(default=10.0, gt=0)
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("webhook_url", mode="before")
    @classmethod
    def _clean_webhook_url(cls, value: Any) -> Any:
        # YAML block scalars and hand-edited git config leave trailing newlines
        if not isinstance(value, str):
            return value
        value = value.strip()
        if not value:
            return value
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid webhook URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("webhook URL must be an absolute http(s) URL")
        return value

    @field_validator("branch_regexp", mode="before")
    @classmethod
    def _empty_regexp_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("show_only_last_commit", "show_full_commit", "log_json", mode="before")
    @classmethod
    def _empty_flag_is_false(cls, value: Any) -> Any:
        # ``git config hooks.slack.show-full-commit ""`` reads back as an empty string
        if isinstance(value, str) and not value.strip():
            return False
        return value

    def overrides(self) -> dict[str, str]:
        """Destination overrides in wire order, omitting unset ones."""
        return {
            name: getattr(self, name)
            for name in _OVERRIDE_FIELDS
            if getattr(self, name)
        }

    def require_webhook(self) -> None:
        if not self.webhook_url:
            raise ConfigurationError(
                f"No webhook URL configured; set {GIT_CONFIG_SECTION}.webhook-url"
            )


def settings_from_git(values: Mapping[str, str]) -> dict[str, str]:
    """Map raw ``hooks.slack.*`` entries onto Settings field names.

    Git lower-cases section and key names; unknown keys are dropped.
    """
    prefix = GIT_CONFIG_SECTION + "."
    mapped: dict[str, str] = {}
    for key, value in values.items():
        name = key.lower()
        if not name.startswith(prefix):
            continue
        name = name[len(prefix):].replace("-", "_")
        name = _GIT_KEY_ALIASES.get(name, name)
        if name in Settings.model_fields:
            mapped[name] = value
    return mapped


def load_settings(
    config_path: str | Path | None = None,
    git_values: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from env vars, a YAML file and the repository's git config.

    Git config wins over YAML, which wins over ``PUSHNOTE_*`` environment
    variables.
    """
    yaml_data: dict[str, Any] = {}

    # Determine config file path
    if config_path is None:
        config_path = os.environ.get("PUSHNOTE_CONFIG")
    if config_path is None:
        default = get_config_dir() / "config.yaml"
        if default.exists():
            config_path = default

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}
        if not isinstance(yaml_data, dict):
            raise ConfigurationError(f"{path} must contain a mapping of settings")
        yaml_data = {str(key).replace("-", "_"): value for key, value in yaml_data.items()}

    merged = {**yaml_data, **settings_from_git(git_values or {})}

    try:
        return Settings(**merged)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
