#!/usr/bin/env python3
"""Main CLI entry point for favsync."""
from __future__ import annotations

import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .. import __version__
from .commands import fetch, login, sync

console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO, including URLs with user ids
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="favsync")
def cli(verbose: bool):
    """
    favsync - keep a catalog of marketplace favorites in sync.

    Logs in with a real browser, pulls the favorites list through the site's
    JSON API and posts it to your backend.
    """
    load_dotenv()
    configure_logging(verbose)


cli.add_command(sync.sync_command)
cli.add_command(login.login_command)
cli.add_command(fetch.fetch_command)


def main():
    """Entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
