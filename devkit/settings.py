"""
settings.py

Responsibility: machine-local settings (tool locations, GitHub repository, build defaults).

Settings live in a small YAML file outside the repository so that every developer
machine can point at its own 7-Zip / Visual Studio installs. The CLI treats the loaded
`Settings` as defaults; command-line flags always win.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    """Machine-local configuration used as defaults by every command."""

    github_owner: str | None = None
    github_repo: str | None = None
    github_token: str | None = None
    seven_zip_path: str | None = None
    robocopy_path: str | None = None
    devenv_path: str | None = None
    solution: str | None = None
    build_configuration: str = "Release"
    build_platform: str = "Any CPU"
    changelog_path: str = "changelog.html"


FIELD_NAMES = tuple(f.name for f in fields(Settings))

PROMPTS: dict[str, str] = {
    "github_owner": "GitHub owner (user or org)",
    "github_repo": "GitHub repository name",
    "github_token": "GitHub token (blank for anonymous access)",
    "seven_zip_path": "Path to 7z.exe",
    "robocopy_path": "Path to robocopy.exe",
    "devenv_path": "Path to devenv.com",
    "solution": "Default solution (.sln)",
    "build_configuration": "Build configuration",
    "build_platform": "Build platform",
    "changelog_path": "Changelog output file",
}

SECRET_FIELDS = frozenset({"github_token"})

CLEAR_VALUE = "-"


def default_settings_path() -> Path:
    override = os.environ.get("DEVKIT_SETTINGS")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".devkit" / "settings.yml"


def _coerce(name: str, value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise SettingsError(f"Setting `{name}` must be a string, got {type(value).__name__}.")
    text = str(value).strip()
    return text or None


def settings_from_mapping(data: Mapping[str, Any]) -> Settings:
    """Build Settings from a mapping; unknown keys are ignored, empty values keep defaults."""
    values: dict[str, Any] = {}
    for name in FIELD_NAMES:
        if name in data:
            value = _coerce(name, data[name])
            if value is not None:
                values[name] = value
    return Settings(**values)


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load settings from a YAML file. A missing file yields the defaults.
    """
    settings_path = Path(path) if path else default_settings_path()
    if not settings_path.exists():
        return Settings()
    try:
        data = yaml.safe_load(settings_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise SettingsError(f"Could not parse settings file {settings_path}: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file must contain a mapping at the top level: {settings_path}")
    return settings_from_mapping(data)


def settings_to_mapping(settings: Settings) -> dict[str, str]:
    out: dict[str, str] = {}
    for name in FIELD_NAMES:
        value = getattr(settings, name)
        if value:
            out[name] = value
    return out


def save_settings(settings: Settings, path: str | Path | None = None) -> Path:
    settings_path = Path(path) if path else default_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)
    text = yaml.safe_dump(settings_to_mapping(settings), sort_keys=True, default_flow_style=False)
    settings_path.write_text(text, encoding="utf-8", newline="\n")
    return settings_path


def apply_env_overrides(settings: Settings, environ: Mapping[str, str] | None = None) -> Settings:
    """
    Apply environment overrides: `DEVKIT_<FIELD>` for any field, plus `GITHUB_TOKEN`.
    """
    env = os.environ if environ is None else environ
    changes: dict[str, str] = {}
    token = env.get("GITHUB_TOKEN", "").strip()
    if token:
        changes["github_token"] = token
    for name in FIELD_NAMES:
        value = env.get(f"DEVKIT_{name.upper()}", "").strip()
        if value:
            changes[name] = value
    return replace(settings, **changes) if changes else settings


def _display(name: str, value: str | None) -> str:
    if not value:
        return ""
    if name in SECRET_FIELDS:
        return "*" * min(len(value), 8)
    return value


def prompt_settings(
    current: Settings,
    *,
    input_func: Callable[[str], str] = input,
    names: Iterable[str] | None = None,
) -> Settings:
    """
    Interactively ask for each setting, offering the current value as default.

    An empty answer keeps the current value and a single `-` clears it.
    """
    changes: dict[str, Any] = {}
    defaults = Settings()
    for name in names or FIELD_NAMES:
        if name not in PROMPTS:
            raise SettingsError(f"Unknown setting: {name}")
        value = getattr(current, name)
        shown = _display(name, value)
        label = f"{PROMPTS[name]} [{shown}]: " if shown else f"{PROMPTS[name]}: "
        answer = input_func(label).strip()
        if not answer:
            continue
        if answer == CLEAR_VALUE:
            changes[name] = getattr(defaults, name)
        else:
            changes[name] = answer
    return replace(current, **changes) if changes else current
