"""
Console output for fortunebot.

Fortunes and log dumps go to standard output through click.echo, byte for
byte: no markup, wrapping, highlighting or tab expansion. Tagged notices and
diagnostics go through the Rich consoles, to stdout and stderr respectively.
"""

import click
from fortunebot.config.settings import console, errconsole, DIAGNOSTIC_TAG


def out_print(text: str, end: str = "\n") -> None:
    """Write text to standard output exactly as given."""
    click.echo(text + end, nl=False, color=True)


def notice_print(message: str) -> None:
    """Write a tagged informational line to standard output."""
    console.out(f"{DIAGNOSTIC_TAG} {message}", highlight=False)


def diagnostic_print(message: str) -> None:
    """Write a tagged diagnostic line to standard error."""
    errconsole.out(f"{DIAGNOSTIC_TAG} {message}", highlight=False)
