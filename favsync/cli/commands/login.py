"""Log in once and keep the session artifacts for later fetches."""
from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from ...auth.session import acquire_session
from ...settings import Settings
from ...utils.cookies import save_artifacts

console = Console()


@click.command(name="login")
@click.option("--identifier", envvar="FAVSYNC_IDENTIFIER", required=True, help="Account e-mail or username")
@click.option("--secret", envvar="FAVSYNC_SECRET", prompt="Password", hide_input=True, help="Account password")
@click.option(
    "--save-cookies",
    "save_path",
    required=True,
    type=click.Path(dir_okay=False, writable=True),
    help="Where to write the session artifacts (JSON)",
)
@click.option("--headless/--headed", default=None, help="Run the login browser headless")
@click.option("--diagnostics-dir", type=click.Path(file_okay=False), help="Save screenshots of failed logins here")
def login_command(identifier: str, secret: str, save_path: str, headless: Optional[bool], diagnostics_dir: Optional[str]):
    """
    Log in and save the session cookies and tokens.

    The file holds live session cookies; treat it like a password.
    """
    settings = Settings.from_env(browser_headless=headless, diagnostics_dir=diagnostics_dir)
    outcome = asyncio.run(acquire_session(identifier, secret, settings=settings))

    if not outcome.ok:
        console.print(Panel(
            f"[bold red]Login failed[/bold red] ({outcome.kind})\n\n{outcome.message}",
            border_style="red",
        ))
        sys.exit(2)

    path = save_artifacts(outcome.artifacts, save_path)
    console.print(Panel(
        f"[bold green]Logged in[/bold green]\n\n"
        f"Cookies: [yellow]{len(outcome.artifacts.cookies)}[/yellow]\n"
        f"CSRF token: [yellow]{'yes' if outcome.artifacts.csrf_token else 'no'}[/yellow]\n"
        f"Saved to: [yellow]{path}[/yellow]",
        border_style="green",
    ))
