"""
Cache store for the most recent fortune.

A single JSON record {"fortune": ..., "timestamp": ...} is kept at a fixed
path. Reads are forgiving: a missing, unreadable or invalid file, or one that
holds a tagged diagnostic instead of a fortune, is simply a cache miss.
Writes are best effort: failures are reported on stderr and never abort the
run.

Usage:
    store = CacheStore(paths.cache_file)
    entry = store.load()
    if entry and store.isFresh(entry, ttl):
        ...
"""

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional
from pydantic import ValidationError
from fortunebot.config.settings import DIAGNOSTIC_TAG
from fortunebot.lib.display import diagnostic_print
from fortunebot.lib.log import LOG
from fortunebot.models.dataModel import CachedFortune, ClearResult


def text_isErrorTagged(text: str) -> bool:
    """
    Detect text that is a fortunebot diagnostic rather than a fortune.

    Such text is never written to the cache or the log.

    Args:
        text: Candidate fortune text

    Returns:
        bool: True if the text starts with the diagnostic tag
    """
    return text.strip().startswith(DIAGNOSTIC_TAG)


class CacheStore:
    """Reads and writes the cached fortune record.

    Attributes:
        path: Location of the cache file
        clock: Source of the current epoch time in seconds
    """

    def __init__(self, path: Path, clock: Callable[[], float] = time.time) -> None:
        self.path: Path = path
        self.clock: Callable[[], float] = clock

    def load(self) -> Optional[CachedFortune]:
        """
        Read the cached fortune.

        Returns:
            Optional[CachedFortune]: The cached record, or None on any
            read or parse failure, or if the stored text is error-tagged
        """
        try:
            entry: CachedFortune = CachedFortune.model_validate_json(
                self.path.read_bytes()
            )
        except (OSError, ValidationError) as e:
            LOG(f"Cache miss at {self.path}: {e}")
            return None
        if text_isErrorTagged(entry.fortune):
            LOG(f"Ignoring error-tagged cache entry at {self.path}")
            return None
        return entry

    def save(self, fortune: str) -> None:
        """
        Overwrite the cache with a fortune stamped with the current time.

        Error-tagged text is ignored. The record is written to a temporary
        file beside the cache and moved into place, so readers never see a
        partial file.

        Args:
            fortune: The fortune text to cache
        """
        if text_isErrorTagged(fortune):
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            diagnostic_print(f"Failed to create data dir: {e}")
            return

        payload: str = json.dumps(
            {"fortune": fortune, "timestamp": int(self.clock())}, ensure_ascii=False
        )
        try:
            fd, tmpname = tempfile.mkstemp(
                dir=self.path.parent, prefix=".cache-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmpname, self.path)
            except OSError:
                Path(tmpname).unlink(missing_ok=True)
                raise
        except OSError as e:
            diagnostic_print(f"Failed to write cache: {e}")
            return
        LOG(f"Cache written to {self.path}")

    def age(self, entry: CachedFortune) -> int:
        """Age of a cache entry in whole seconds."""
        return int(self.clock() - entry.timestamp)

    def isFresh(self, entry: CachedFortune, ttl: int) -> bool:
        """
        Check whether a cache entry is younger than the TTL.

        Args:
            entry: The cached record
            ttl: Time-to-live in seconds

        Returns:
            bool: True iff the entry's age is strictly less than ttl
        """
        return self.clock() - entry.timestamp < ttl

    def clear(self) -> ClearResult:
        """
        Delete the cache file.

        Returns:
            ClearResult: CLEARED if removed, ABSENT if there was no file,
            FAILED if removal failed (reported on stderr)
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return ClearResult.ABSENT
        except OSError as e:
            diagnostic_print(f"Failed to clear cache: {e}")
            return ClearResult.FAILED
        return ClearResult.CLEARED
