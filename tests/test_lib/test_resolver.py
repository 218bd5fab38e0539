"""Tests for configuration resolution and provenance."""

import json
import pytest
from pathlib import Path
from fortunebot.config.settings import DEFAULT_MODEL, DEFAULT_PROMPT
from fortunebot.lib.resolver import config_resolve, configFile_load, key_mask
from fortunebot.models.dataModel import ConfigFile


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config file with every field populated."""
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {"api_key": "file-key", "default_prompt": "file prompt", "model": "file-model"}
        ),
        encoding="utf-8",
    )
    return path


def test_config_file_missing(tmp_path: Path) -> None:
    assert configFile_load(tmp_path / "absent.json") == ConfigFile()


def test_config_file_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert configFile_load(path) == ConfigFile()


def test_config_file_partial(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"model": "m", "unknown": 1}', encoding="utf-8")
    assert configFile_load(path) == ConfigFile(model="m")


def test_defaults_when_nothing_set(tmp_path: Path) -> None:
    resolved = config_resolve(tmp_path / "absent.json")
    assert resolved.prompt.value == DEFAULT_PROMPT
    assert resolved.prompt.source == "built-in default"
    assert resolved.model.value == DEFAULT_MODEL
    assert resolved.model.source == "built-in default"
    assert resolved.api_key.value == ""
    assert resolved.api_key.source == "none found"


def test_flags_win_over_everything(
    config_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    for name in (
        "FORTUNEBOT_PROMPT",
        "FORTUNEBOT_API_KEY",
        "OPENAI_API_KEY",
        "FORTUNEBOT_MODEL",
        "OPENAI_MODEL",
    ):
        monkeypatch.setenv(name, f"env-{name}")
    resolved = config_resolve(config_file, "flag prompt", "flag-key", "flag-model")
    assert (resolved.prompt.value, resolved.prompt.source) == ("flag prompt", "--prompt flag")
    assert (resolved.api_key.value, resolved.api_key.source) == ("flag-key", "--api-key flag")
    assert (resolved.model.value, resolved.model.source) == ("flag-model", "--model flag")


def test_blank_flag_is_ignored(config_file: Path) -> None:
    resolved = config_resolve(config_file, "   ", "", "\t")
    assert resolved.prompt.value == "file prompt"
    assert resolved.api_key.value == "file-key"
    assert resolved.model.value == "file-model"


def test_primary_env_beats_alternate(
    config_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FORTUNEBOT_API_KEY", "primary-key")
    monkeypatch.setenv("OPENAI_API_KEY", "alternate-key")
    monkeypatch.setenv("FORTUNEBOT_MODEL", "primary-model")
    monkeypatch.setenv("OPENAI_MODEL", "alternate-model")
    monkeypatch.setenv("FORTUNEBOT_PROMPT", "env prompt")
    resolved = config_resolve(config_file)
    assert (resolved.api_key.value, resolved.api_key.source) == (
        "primary-key",
        "env FORTUNEBOT_API_KEY",
    )
    assert (resolved.model.value, resolved.model.source) == (
        "primary-model",
        "env FORTUNEBOT_MODEL",
    )
    assert (resolved.prompt.value, resolved.prompt.source) == (
        "env prompt",
        "env FORTUNEBOT_PROMPT",
    )


def test_alternate_env_beats_config_file(
    config_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "alternate-key")
    monkeypatch.setenv("OPENAI_MODEL", "alternate-model")
    resolved = config_resolve(config_file)
    assert resolved.api_key.source == "env OPENAI_API_KEY"
    assert resolved.model.source == "env OPENAI_MODEL"
    assert resolved.prompt.source == str(config_file)


def test_prompt_has_no_alternate_env(
    config_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("OPENAI_PROMPT", "should be ignored")
    assert config_resolve(config_file).prompt.value == "file prompt"


def test_config_file_beats_defaults(config_file: Path) -> None:
    resolved = config_resolve(config_file)
    assert (resolved.api_key.value, resolved.api_key.source) == ("file-key", str(config_file))
    assert (resolved.model.value, resolved.model.source) == ("file-model", str(config_file))


def test_blank_config_values_fall_through(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text('{"api_key": " ", "default_prompt": "", "model": ""}', encoding="utf-8")
    resolved = config_resolve(path)
    assert resolved.api_key.source == "none found"
    assert resolved.prompt.value == DEFAULT_PROMPT
    assert resolved.model.value == DEFAULT_MODEL


@pytest.mark.parametrize(
    "key,masked",
    [
        ("", ""),
        ("short", "short"),
        ("12345678", "12345678"),
        ("123456789", "1234***6789"),
        ("sk-abcdefghijklmnop", "sk-a***mnop"),
    ],
)
def test_key_mask(key: str, masked: str) -> None:
    assert key_mask(key) == masked
