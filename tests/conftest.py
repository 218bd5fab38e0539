"""Shared fixtures for fortunebot tests."""

import os
import pytest
from pathlib import Path
from fortunebot.models.dataModel import AppPaths


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove fortunebot and OpenAI variables from the environment."""
    for k in list(os.environ):
        if k.upper().startswith(("FORTUNEBOT_", "OPENAI_")):
            monkeypatch.delenv(k, raising=False)


@pytest.fixture
def paths(tmp_path: Path) -> AppPaths:
    """Path context rooted in a temporary directory."""
    return AppPaths(
        config_file=tmp_path / "config" / "config.json",
        cache_file=tmp_path / "data" / "cache.json",
        log_file=tmp_path / "bin" / "fortunebot.log",
    )
