from __future__ import annotations

import pytest

from devkit.settings import (
    Settings,
    SettingsError,
    apply_env_overrides,
    default_settings_path,
    load_settings,
    prompt_settings,
    save_settings,
)


def test_missing_file_gives_defaults(tmp_path) -> None:
    settings = load_settings(tmp_path / "missing.yml")

    assert settings == Settings()
    assert settings.build_configuration == "Release"


def test_saved_settings_load_back(tmp_path) -> None:
    path = tmp_path / "nested" / "settings.yml"
    original = Settings(github_owner="acme", seven_zip_path=r"C:\Tools\7z.exe", build_platform="x64")

    save_settings(original, path)

    assert load_settings(path) == original


def test_empty_values_are_not_written(tmp_path) -> None:
    path = save_settings(Settings(github_owner="acme"), tmp_path / "settings.yml")
    text = path.read_text(encoding="utf-8")

    assert "github_owner: acme" in text
    assert "github_token" not in text


def test_unknown_keys_are_ignored(tmp_path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("github_repo: tools\nsomething_else: 1\n", encoding="utf-8")

    assert load_settings(path).github_repo == "tools"


def test_top_level_must_be_mapping(tmp_path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(SettingsError):
        load_settings(path)


def test_nested_values_are_rejected(tmp_path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("github_owner:\n  name: acme\n", encoding="utf-8")

    with pytest.raises(SettingsError) as exc_info:
        load_settings(path)

    assert "github_owner" in str(exc_info.value)


def test_default_path_honours_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("DEVKIT_SETTINGS", str(tmp_path / "custom.yml"))

    assert default_settings_path() == tmp_path / "custom.yml"


def test_github_token_env_override() -> None:
    settings = apply_env_overrides(Settings(github_token="old"), {"GITHUB_TOKEN": "new"})

    assert settings.github_token == "new"


def test_prefixed_env_override() -> None:
    settings = apply_env_overrides(Settings(), {"DEVKIT_DEVENV_PATH": r"D:\VS\devenv.com"})

    assert settings.devenv_path == r"D:\VS\devenv.com"


def test_blank_env_values_do_not_override() -> None:
    settings = apply_env_overrides(Settings(github_owner="acme"), {"DEVKIT_GITHUB_OWNER": "  "})

    assert settings.github_owner == "acme"


def test_prompt_keeps_clears_and_sets() -> None:
    answers = iter(["", "-", "tools"])
    current = Settings(github_owner="acme", build_configuration="Debug")

    updated = prompt_settings(
        current,
        input_func=lambda _prompt: next(answers),
        names=["github_owner", "build_configuration", "github_repo"],
    )

    assert updated.github_owner == "acme"
    assert updated.build_configuration == "Release"
    assert updated.github_repo == "tools"


def test_prompt_masks_token() -> None:
    prompts: list[str] = []

    def fake_input(prompt: str) -> str:
        prompts.append(prompt)
        return ""

    prompt_settings(Settings(github_token="ghp_secretvalue"), input_func=fake_input, names=["github_token"])

    assert "ghp_secretvalue" not in prompts[0]
    assert "********" in prompts[0]


def test_prompt_unknown_setting() -> None:
    with pytest.raises(SettingsError):
        prompt_settings(Settings(), input_func=lambda _p: "", names=["nope"])
