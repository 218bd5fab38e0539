"""Tests for the fortune cache store."""

import json
import pytest
from pathlib import Path
from unittest.mock import patch
from fortunebot.lib.cache import CacheStore, text_isErrorTagged
from fortunebot.models.dataModel import CachedFortune, ClearResult

NOW: float = 1_700_000_000.0


@pytest.fixture
def store(tmp_path: Path) -> CacheStore:
    """Cache store with a fixed clock."""
    return CacheStore(tmp_path / "data" / "cache.json", clock=lambda: NOW)


def test_error_tag_detection() -> None:
    assert text_isErrorTagged("[fortunebot] Error: no API key provided")
    assert text_isErrorTagged("   [fortunebot] padded")
    assert not text_isErrorTagged("🤖 A bug in the hand is worth two in prod.")
    assert not text_isErrorTagged("")


def test_save_then_load(store: CacheStore) -> None:
    store.save("🤖 Good luck.")
    entry = store.load()
    assert entry is not None
    assert entry.fortune == "🤖 Good luck."
    assert entry.timestamp == NOW
    assert store.isFresh(entry, 60)


def test_save_writes_expected_record(store: CacheStore) -> None:
    store.save("🤖 Tabs, not spaces.")
    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data == {"fortune": "🤖 Tabs, not spaces.", "timestamp": int(NOW)}
    assert [p.name for p in store.path.parent.iterdir()] == ["cache.json"]


def test_save_overwrites_previous(store: CacheStore) -> None:
    store.save("first")
    store.save("second")
    assert store.load().fortune == "second"


def test_save_ignores_error_tagged_text(store: CacheStore) -> None:
    store.save("[fortunebot] Error: API error (500): boom")
    assert not store.path.exists()


def test_save_error_tagged_leaves_existing_file(store: CacheStore) -> None:
    store.save("keep me")
    before = store.path.read_bytes()
    store.save("[fortunebot] failure")
    assert store.path.read_bytes() == before


def test_load_missing_file(store: CacheStore) -> None:
    assert store.load() is None


@pytest.mark.parametrize(
    "contents",
    [
        "not json",
        "[]",
        '{"fortune": "no timestamp"}',
        '{"timestamp": 5}',
        '{"fortune": "", "timestamp": 5}',
    ],
)
def test_load_invalid_contents_is_miss(store: CacheStore, contents: str) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(contents, encoding="utf-8")
    assert store.load() is None


def test_load_error_tagged_entry_is_miss(store: CacheStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps({"fortune": "[fortunebot] Error: timeout", "timestamp": NOW}),
        encoding="utf-8",
    )
    assert store.load() is None


@pytest.mark.parametrize(
    "age,ttl,fresh",
    [
        (0, 60, True),
        (59, 60, True),
        (59.5, 60, True),
        (60, 60, False),
        (61, 60, False),
        (3600, 60, False),
        (0, 1, True),
        (1, 1, False),
    ],
)
def test_is_fresh_boundary(store: CacheStore, age: float, ttl: int, fresh: bool) -> None:
    entry = CachedFortune(fortune="x", timestamp=NOW - age)
    assert store.isFresh(entry, ttl) is fresh


def test_age_in_whole_seconds(store: CacheStore) -> None:
    assert store.age(CachedFortune(fortune="x", timestamp=NOW - 42.7)) == 42


def test_clear_existing(store: CacheStore) -> None:
    store.save("bye")
    assert store.clear() == ClearResult.CLEARED
    assert not store.path.exists()


def test_clear_absent(store: CacheStore) -> None:
    assert store.clear() == ClearResult.ABSENT


def test_clear_failure_reported(store: CacheStore, capsys: pytest.CaptureFixture) -> None:
    with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
        assert store.clear() == ClearResult.FAILED
    assert "[fortunebot] Failed to clear cache: denied" in capsys.readouterr().err


def test_save_failure_is_swallowed(store: CacheStore, capsys: pytest.CaptureFixture) -> None:
    with patch("fortunebot.lib.cache.os.replace", side_effect=OSError("disk full")):
        store.save("lost")
    assert "[fortunebot] Failed to write cache: disk full" in capsys.readouterr().err
    assert not store.path.exists()
    assert list(store.path.parent.iterdir()) == []


def test_save_unwritable_directory(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = CacheStore(blocker / "cache.json")
    store.save("nowhere to go")
    assert "[fortunebot] Failed to create data dir" in capsys.readouterr().err
