"""
Environment file loading.

A plain-text fortunebot.env file of KEY=VALUE lines can supply API keys and
other settings. Several locations are tried in order and only the first file
found is applied; its values override the existing environment.

Search order:
1. $FORTUNEBOT_ENV (explicit path)
2. fortunebot.env beside the program
3. fortunebot.env in the current directory
4. fortunebot.env in the per-user config directory
5. fortunebot.env relative to the working directory
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from fortunebot.config.settings import CONFIG_DIR, ENV_FILENAME, program_dir
from fortunebot.lib.log import LOG


def envFile_candidates(config_dir: Path = CONFIG_DIR) -> list[Path]:
    """
    List the env file locations to try, in priority order.

    Blank and duplicate entries are dropped.

    Args:
        config_dir: Per-user config directory

    Returns:
        list[Path]: Candidate env file paths
    """
    raw: list[str] = [
        os.environ.get("FORTUNEBOT_ENV", ""),
        str(program_dir() / ENV_FILENAME),
        str(Path.cwd() / ENV_FILENAME),
        str(config_dir / ENV_FILENAME),
        ENV_FILENAME,
    ]
    candidates: list[Path] = []
    seen: set[str] = set()
    for entry in raw:
        if not entry.strip() or entry in seen:
            continue
        seen.add(entry)
        candidates.append(Path(entry))
    return candidates


def envFile_load(candidates: Optional[list[Path]] = None) -> Optional[Path]:
    """
    Apply the first env file found among the candidates.

    Args:
        candidates: Paths to try (defaults to envFile_candidates())

    Returns:
        Optional[Path]: The file that was applied, or None if none exist
    """
    for path in candidates if candidates is not None else envFile_candidates():
        if not path.is_file():
            continue
        try:
            load_dotenv(path, override=True, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            LOG(f"Could not read env file {path}: {e}")
            continue
        LOG(f"Loaded environment from {path}")
        return path
    return None
