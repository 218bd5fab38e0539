"""
Prefetch orchestration for fortunebot.

Decides, per invocation, whether to serve the cached fortune or block on a
fetch, and keeps the cache warm by handing refreshes to a detached worker
process. The worker is the same program started with --prefetch-worker; the
parent never waits for it and gets no signal when it finishes.

Modes, checked in this order:
1. PREFETCH_WORKER: fetch once, update log and cache, exit
2. SHOW_LOG: dump the fortune log
3. LOG_RANDOM: print a random logged fortune
4. NORMAL: serve from cache or fetch, then maybe spawn a worker

Normal mode:
- A cache hit, fresh or stale, is printed immediately and a worker is
  spawned to refresh it (unless --no-prefetch). Freshness only changes the
  verbose message.
- A cache miss, or caching disabled, fetches synchronously. On success the
  fortune is logged, printed, cached and a worker is spawned (unless
  --no-prefetch). On failure nothing is persisted and the run exits 1.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Final, Optional
from fortunebot.config.settings import App, program_dir
from fortunebot.lib.cache import CacheStore
from fortunebot.lib.client import fortune_generate
from fortunebot.lib.display import diagnostic_print, notice_print, out_print
from fortunebot.lib.log import LOG
from fortunebot.lib.logstore import LogStore
from fortunebot.lib.resolver import config_resolve, key_mask
from fortunebot.models.dataModel import (
    AppPaths,
    CachedFortune,
    ClearResult,
    CLIOptions,
    FetchResult,
    LogEntry,
    ResolvedConfig,
    RunMode,
)

WORKER_MODULE: Final[str] = "fortunebot.fortunebot"

# Directory holding the fortunebot package, exported to the worker on
# PYTHONPATH so source checkouts work without installation
PACKAGE_ROOT: Final[Path] = Path(__file__).resolve().parents[2]

# Worker entry point. The cwd entry is dropped from sys.path because the
# worker runs in the program directory, which may be the package directory
# itself, where fortunebot.py would shadow the fortunebot package.
WORKER_BOOTSTRAP: Final[str] = (
    "import sys; "
    "sys.path[:] = [p for p in sys.path if p not in ('', '.')]; "
    f"from {WORKER_MODULE} import main; "
    "main()"
)


def mode_select(options: CLIOptions) -> RunMode:
    """
    Select the run mode from the parsed options.

    Worker mode is checked first so that a spawned worker never spawns
    another one.

    Args:
        options: Parsed command-line options

    Returns:
        RunMode: The single mode for this invocation
    """
    if options.prefetch_worker:
        return RunMode.PREFETCH_WORKER
    if options.show_log:
        return RunMode.SHOW_LOG
    if options.log_random:
        return RunMode.LOG_RANDOM
    return RunMode.NORMAL


def worker_command(config: ResolvedConfig) -> list[str]:
    """
    Build the command line for a prefetch worker.

    Args:
        config: Resolved configuration to hand to the worker

    Returns:
        list[str]: Interpreter, bootstrap and worker arguments
    """
    args: list[str] = [
        sys.executable,
        "-c",
        WORKER_BOOTSTRAP,
        "--prefetch-worker",
        "--prompt",
        config.prompt.value,
        "--model",
        config.model.value,
    ]
    if config.api_key.value:
        args += ["--api-key", config.api_key.value]
    return args


def worker_env(verbose: bool, paths: AppPaths) -> dict[str, str]:
    """
    Build the environment for a prefetch worker.

    The worker inherits the current environment, the verbosity flag and the
    file locations in use, so it writes to the same cache and log. The
    package root is prepended to PYTHONPATH so the worker can import
    fortunebot from any working directory.

    Args:
        verbose: Whether the parent runs verbosely
        paths: Path context of the parent

    Returns:
        dict[str, str]: Environment for the child process
    """
    env: dict[str, str] = dict(os.environ)
    env["FORTUNEBOT_VERBOSE"] = "true" if verbose else "false"
    env["FORTUNEBOT_CONFIG_FILE"] = str(paths.config_file)
    env["FORTUNEBOT_CACHE_FILE"] = str(paths.cache_file)
    env["FORTUNEBOT_LOG_FILE"] = str(paths.log_file)
    pythonpath: Optional[str] = env.get("PYTHONPATH")
    env["PYTHONPATH"] = (
        os.pathsep.join([str(PACKAGE_ROOT), pythonpath])
        if pythonpath
        else str(PACKAGE_ROOT)
    )
    if paths.env_file is not None:
        env["FORTUNEBOT_ENV"] = str(paths.env_file.resolve())
    return env


def prefetch_start(
    config: ResolvedConfig, verbose: bool, paths: AppPaths
) -> Optional[subprocess.Popen]:
    """
    Spawn a detached worker process to refresh the cache and log.

    The child runs in its own session with stdin closed and the parent's
    stdout/stderr inherited. It is never waited on. Spawn failures are
    reported only when verbose.

    Args:
        config: Resolved prompt, model and key for the worker
        verbose: Report the spawn and any failure
        paths: Path context to forward to the worker

    Returns:
        Optional[subprocess.Popen]: The child process, or None on failure
    """
    popen_kwargs: dict[str, Any] = {
        "cwd": str(program_dir()),
        "env": worker_env(verbose, paths),
        "stdin": subprocess.DEVNULL,
        "close_fds": True,
    }
    if os.name == "nt":
        popen_kwargs["creationflags"] = (
            subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP
        )
    else:
        popen_kwargs["start_new_session"] = True

    try:
        proc: subprocess.Popen = subprocess.Popen(
            worker_command(config), **popen_kwargs
        )
    except (OSError, ValueError) as e:
        LOG(f"Prefetch spawn failed: {e}")
        if verbose:
            diagnostic_print(f"Failed to start prefetch: {e}")
        return None
    LOG(f"Prefetch worker started, pid {proc.pid}")
    if verbose:
        notice_print(f"Background prefetch started (pid {proc.pid}).")
    return proc


def config_report(config: ResolvedConfig) -> None:
    """Print where each resolved value came from (verbose mode)."""
    notice_print(f"Using prompt (source: {config.prompt.source})")
    notice_print(f"Using model: {config.model.value} (source: {config.model.source})")
    if config.api_key.value:
        notice_print(
            f"Using API key from: {config.api_key.source} "
            f"({key_mask(config.api_key.value)})"
        )
    else:
        notice_print(f"No API key found (sources checked: {config.api_key.source})")


def cache_clear(cache: CacheStore) -> ClearResult:
    """Delete the cache and report the outcome."""
    result: ClearResult = cache.clear()
    if result == ClearResult.CLEARED:
        notice_print("Cache cleared.")
    elif result == ClearResult.ABSENT:
        notice_print("No cache to clear.")
    return result


async def normal_run(options: CLIOptions, paths: AppPaths, settings: App) -> int:
    """
    Serve a fortune from the cache or fetch one.

    Args:
        options: Parsed command-line options
        paths: Path context for this run
        settings: Application settings

    Returns:
        int: Process exit status
    """
    verbose: bool = options.is_verbose
    cache: CacheStore = CacheStore(paths.cache_file)
    log: LogStore = LogStore(paths.log_file)

    if options.clear_cache:
        cache_clear(cache)

    config: ResolvedConfig = config_resolve(
        paths.config_file, options.prompt, options.api_key, options.model
    )
    if verbose:
        config_report(config)

    ttl: int = options.cache_ttl
    caching: bool = not options.no_cache and ttl > 0

    if caching:
        entry: Optional[CachedFortune] = cache.load()
        if entry is not None:
            if verbose:
                if cache.isFresh(entry, ttl):
                    notice_print(
                        f"Using fresh cache (age {cache.age(entry)}s < TTL {ttl}s)."
                    )
                else:
                    notice_print(
                        f"Cache stale (age {cache.age(entry)}s >= TTL {ttl}s). "
                        "Serving stale and refreshing in background..."
                    )
            out_print(entry.fortune)
            if not options.no_prefetch:
                prefetch_start(config, verbose, paths)
            return 0
        if verbose:
            notice_print("No cache found. Fetching fresh fortune...")
    elif verbose:
        notice_print("Caching disabled. Fetching fresh fortune...")

    result: FetchResult = await fortune_generate(
        config.prompt.value, config.api_key.value, config.model.value, settings
    )
    if not result.status:
        diagnostic_print(f"Error: {result.error.message}")
        return 1

    log.append(result.fortune)
    out_print(result.fortune)
    cache.save(result.fortune)
    # Spawned even with caching disabled; the worker warms the cache for
    # later runs that do cache.
    if not options.no_prefetch:
        prefetch_start(config, verbose, paths)
    return 0


async def worker_run(options: CLIOptions, paths: AppPaths, settings: App) -> int:
    """
    Background worker: fetch once, then update the log and the cache.

    The worker re-resolves its configuration from its own arguments and
    environment, and never spawns another worker.

    Args:
        options: Parsed command-line options of the worker process
        paths: Path context (forwarded by the parent through the environment)
        settings: Application settings; settings.verbose carries the
            parent's verbosity

    Returns:
        int: 0 on success, 1 if the fetch failed
    """
    config: ResolvedConfig = config_resolve(
        paths.config_file, options.prompt, options.api_key, options.model
    )
    result: FetchResult = await fortune_generate(
        config.prompt.value, config.api_key.value, config.model.value, settings
    )
    if not result.status:
        diagnostic_print(f"Background prefetch failed: {result.error.message}")
        return 1
    LogStore(paths.log_file).append(result.fortune)
    CacheStore(paths.cache_file).save(result.fortune)
    if settings.verbose:
        notice_print("Background prefetch complete; cache updated.")
    return 0


def showLog_run(paths: AppPaths) -> int:
    """Dump the fortune log verbatim; always succeeds."""
    contents: Optional[str] = LogStore(paths.log_file).dumpAll()
    if contents is None:
        notice_print("No log file found.")
    else:
        out_print(contents, end="")
    return 0


def logRandom_run(paths: AppPaths, verbose: bool) -> int:
    """
    Print a random fortune from the log without calling the API.

    Args:
        paths: Path context for this run
        verbose: Print a note before the fortune

    Returns:
        int: 0 on success, 1 if the log is missing or has no entries
    """
    log: LogStore = LogStore(paths.log_file)
    if not log.path.is_file():
        diagnostic_print(f"failed to read log: {log.path}")
        return 1
    entry: Optional[LogEntry] = log.sampleRandom()
    if entry is None:
        diagnostic_print("no fortunes found in log")
        return 1
    if verbose:
        notice_print("Showing random fortune from log (no API call).")
    out_print(entry.fortune)
    return 0


async def mode_dispatch(options: CLIOptions, paths: AppPaths, settings: App) -> int:
    """
    Run the selected mode.

    Args:
        options: Parsed command-line options
        paths: Path context for this run
        settings: Application settings

    Returns:
        int: Process exit status
    """
    mode: RunMode = mode_select(options)
    LOG(f"Run mode: {mode.value}")
    if mode == RunMode.PREFETCH_WORKER:
        return await worker_run(options, paths, settings)
    if mode == RunMode.SHOW_LOG:
        return showLog_run(paths)
    if mode == RunMode.LOG_RANDOM:
        return logRandom_run(paths, options.is_verbose)
    return await normal_run(options, paths, settings)
