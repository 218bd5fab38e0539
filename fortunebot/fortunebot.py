"""
fortunebot main module.

This module is the command-line entry point for fortunebot, a small client
that prints a short AI-generated fortune. Fortunes are cached with a TTL and
refreshed by a detached background worker, so repeated runs return at once.

Features:
- Applies the first fortunebot.env file found before anything else
- Resolves prompt, API key and model from flags, environment, config file
  and built-in defaults
- Serves cached fortunes and refreshes them in the background
- Keeps an append-only log of every fortune, with dump and random modes

Usage:
    Run the installed console script, or the module directly.

Examples:
    Print a fortune (cached when possible):
        $ fortunebot

    Always fetch, never touch the cache:
        $ fortunebot --no-cache --no-prefetch

    Explain where settings came from:
        $ fortunebot --verbose

    Offline fortune from the log:
        $ fortunebot -r

Note:
    Mode priority order:
    1. --prefetch-worker (internal, used by the background refresh)
    2. --show-log
    3. --log-random / -r
    4. normal fortune
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, Final, Optional
import click
from fortunebot.commands.base import RichCommand, rich_help
from fortunebot.config.settings import App, CACHE_TTL_DEFAULT, paths_resolve, settings_load
from fortunebot.lib.display import diagnostic_print
from fortunebot.lib.envfile import envFile_load
from fortunebot.lib.log import LOG
from fortunebot.lib.prefetch import mode_dispatch
from fortunebot.models.dataModel import AppPaths, CLIOptions

__version__: Final[str] = "0.1.0"


async def async_main(options: CLIOptions) -> int:
    """Asynchronous main function handling all run modes.

    Args:
        options: Parsed command-line options

    Returns:
        int: Process exit status

    Note:
        The env file is applied and settings re-read before any
        configuration is resolved
    """
    try:
        env_file: Optional[Path] = envFile_load()
        settings: App = settings_load()
        paths: AppPaths = paths_resolve(settings).model_copy(
            update={"env_file": env_file}
        )
        LOG(f"Paths: {paths}")
        return await mode_dispatch(options, paths, settings)
    except Exception as e:
        LOG(f"Unhandled exception in async_main: {e}")
        diagnostic_print(f"An unexpected error occurred: {e}")
        return 1


@click.command(
    cls=RichCommand,
    help=rich_help(
        command="fortunebot",
        description="Print a short AI-generated fortune",
        usage="fortunebot [OPTIONS]",
        args={
            "fortunebot": "cached fortune, refreshed in the background",
            "fortunebot --no-cache": "always fetch a fresh fortune",
            "fortunebot -r": "random fortune from the log, no API call",
        },
    ),
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--prompt", default="", help="Override prompt for the fortune.")
@click.option("--api-key", default="", help="OpenAI API key.")
@click.option("--model", default="", help="Model to use.")
@click.option(
    "--cache-ttl",
    type=int,
    default=CACHE_TTL_DEFAULT,
    show_default=True,
    help="Cache TTL in seconds (0 disables cache).",
)
@click.option("--no-cache", is_flag=True, help="Disable cache.")
@click.option("--clear-cache", is_flag=True, help="Delete cache before running.")
@click.option("--no-prefetch", is_flag=True, help="Disable background prefetch.")
@click.option("--verbose", is_flag=True, help="Verbose output.")
@click.option("--quiet", is_flag=True, help="Quiet output (default).")
@click.option("--show-log", is_flag=True, help="Print fortune log and exit.")
@click.option(
    "--prefetch-worker",
    is_flag=True,
    hidden=True,
    help="Internal: run as prefetch worker.",
)
@click.option(
    "--log-random",
    "-r",
    is_flag=True,
    help="Print a random fortune from the log instead of calling the API.",
)
@click.version_option(__version__, "-V", "--version", prog_name="fortunebot")
def main(**kwargs: Any) -> None:
    """Main entry point for fortunebot.

    Args:
        **kwargs: Parsed command-line options

    Note:
        Exits with the status returned by the selected mode, or 130 when
        interrupted
    """
    options: CLIOptions = CLIOptions(**kwargs)
    try:
        status: int = asyncio.run(async_main(options))
    except KeyboardInterrupt:
        diagnostic_print("Interrupted.")
        status = 130
    sys.exit(status)


if __name__ == "__main__":
    main()
