"""Full sync: log in, pull favorites and post them to the backend."""
from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ...settings import Settings
from ...sync.pipeline import run_sync

console = Console()

KIND_HINTS = {
    "invalid-credentials": "Check the identifier and password.",
    "challenge-required": "The site wants a human check. Wait before retrying, or log in once with --headed.",
    "auth-expired": "The session was rejected. Log in again.",
    "upstream-error": "The marketplace API misbehaved. Retry later.",
    "backend-error": "The backend refused the batch. Check its logs.",
    "unknown": "Re-run with --verbose and --diagnostics-dir to capture the page.",
}


def display_result(result: Dict[str, Any], as_json: bool = False) -> None:
    """Print a pipeline result dict."""
    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    table = Table(show_header=False, border_style="blue")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="yellow")
    for key, value in result.items():
        table.add_row(key, str(value))

    if result.get("success"):
        title = "[bold green]Sync complete[/bold green]"
        border = "green"
    else:
        title = "[bold red]Sync failed[/bold red]"
        border = "red"
        hint = KIND_HINTS.get(result.get("kind", "unknown"))
        if hint:
            table.add_row("hint", hint)
    console.print(Panel(table, title=title, border_style=border))
    if result.get("capped"):
        console.print("[yellow]Warning:[/yellow] the page ceiling was reached; some favorites may be missing.")


@click.command(name="sync")
@click.option("--backend-url", envvar="FAVSYNC_BACKEND_URL", required=True, help="Backend base URL (POSTs to <url>/sync)")
@click.option("--identifier", envvar="FAVSYNC_IDENTIFIER", required=True, help="Account e-mail or username")
@click.option("--secret", envvar="FAVSYNC_SECRET", prompt="Password", hide_input=True, help="Account password")
@click.option("--headless/--headed", default=None, help="Run the login browser headless")
@click.option("--max-pages", type=click.IntRange(min=1), help="Safety ceiling on favorites pages")
@click.option("--enrich/--no-enrich", default=None, help="Load item details (category, gender, listing date)")
@click.option("--diagnostics-dir", type=click.Path(file_okay=False), help="Save screenshots of failed logins here")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")
def sync_command(
    backend_url: str,
    identifier: str,
    secret: str,
    headless: Optional[bool],
    max_pages: Optional[int],
    enrich: Optional[bool],
    diagnostics_dir: Optional[str],
    as_json: bool,
):
    """
    Log in, retrieve every favorite and send them to the backend.

    Examples:

      favsync sync --backend-url http://localhost:8080/api/extension

      FAVSYNC_SECRET=... favsync sync --headed --max-pages 5
    """
    settings = Settings.from_env(
        browser_headless=headless,
        max_pages=max_pages,
        enrich_items=enrich,
        diagnostics_dir=diagnostics_dir,
    )
    result = asyncio.run(run_sync(identifier, secret, backend_url, settings=settings))
    display_result(result, as_json)
    if not result["success"]:
        sys.exit(2)
