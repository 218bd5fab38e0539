"""
Append-only fortune log.

Every successfully fetched fortune is appended as one tab-separated line,
"<epoch seconds>\\t<fortune>". The log can be dumped verbatim or sampled at
random for offline fortunes. Concurrent appends are not coordinated.
"""

import random
import time
from pathlib import Path
from typing import Callable, Optional
from fortunebot.lib.cache import text_isErrorTagged
from fortunebot.lib.display import diagnostic_print
from fortunebot.lib.log import LOG
from fortunebot.models.dataModel import LogEntry


class LogStore:
    """Appends to, dumps and samples the fortune log.

    Attributes:
        path: Location of the log file
        clock: Source of the current epoch time in seconds
        rng: Random source used for sampling
    """

    def __init__(
        self,
        path: Path,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.path: Path = path
        self.clock: Callable[[], float] = clock
        self.rng: random.Random = rng or random.Random()

    def append(self, fortune: str) -> None:
        """
        Append a fortune to the log, creating the file if needed.

        Error-tagged text is ignored; write failures are reported on stderr.

        Args:
            fortune: The fortune text to record
        """
        if text_isErrorTagged(fortune):
            return
        line: str = f"{int(self.clock())}\t{fortune}\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            diagnostic_print(f"Failed to write log: {e}")
            return
        LOG(f"Fortune logged to {self.path}")

    def dumpAll(self) -> Optional[str]:
        """
        Return the whole log.

        Returns:
            Optional[str]: The file contents verbatim, or None if the log
            cannot be read. Undecodable bytes, e.g. from interleaved
            writes, become U+FFFD.
        """
        try:
            return self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            LOG(f"No log at {self.path}: {e}")
            return None

    def entries(self) -> list[LogEntry]:
        """
        Parse the log into entries.

        Lines without a tab or with a non-integer timestamp are skipped.

        Returns:
            list[LogEntry]: Parsed entries in file order (empty if the log
            is missing)
        """
        contents: Optional[str] = self.dumpAll()
        if contents is None:
            return []
        parsed: list[LogEntry] = []
        for line in contents.splitlines():
            stamp, sep, text = line.partition("\t")
            if not sep:
                continue
            try:
                timestamp: int = int(stamp.strip())
            except ValueError:
                continue
            parsed.append(LogEntry(timestamp=timestamp, fortune=text.strip()))
        return parsed

    def sampleRandom(self) -> Optional[LogEntry]:
        """
        Pick one logged fortune uniformly at random.

        Returns:
            Optional[LogEntry]: A random entry, or None if the log is absent
            or holds no parseable entries
        """
        parsed: list[LogEntry] = self.entries()
        if not parsed:
            return None
        return self.rng.choice(parsed)
