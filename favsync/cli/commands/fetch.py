"""Retrieve favorites with saved session artifacts."""
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ...auth.tokens import access_token_expired, has_session_cookie
from ...errors import SyncError
from ...models import RetrievalResult, SessionArtifacts
from ...retrieval.enrichment import ItemEnricher
from ...retrieval.favorites import FavoritesRetriever
from ...settings import Settings
from ...sync.pipeline import failure, sync_with_artifacts
from ...utils.cookies import load_artifacts
from .sync import display_result

console = Console()


async def _retrieve(artifacts: SessionArtifacts, settings: Settings) -> RetrievalResult:
    async with FavoritesRetriever(artifacts, settings) as retriever:
        user_id = await retriever.resolve_user_id()
        result = await retriever.fetch_all(user_id)
        if settings.enrich_items and result.items:
            result.items = await ItemEnricher(retriever.client, retriever.headers, settings).enrich(result.items)
        return result


def _show_items(result: RetrievalResult, limit: int) -> None:
    table = Table(
        title=f"Favorites ({result.count}{', capped' if result.capped else ''})",
        show_header=True,
        header_style="bold cyan",
        border_style="cyan",
    )
    table.add_column("ID", style="yellow")
    table.add_column("Title", style="white")
    table.add_column("Brand")
    table.add_column("Size")
    table.add_column("Price", justify="right")
    table.add_column("Sold")
    for item in result.items[:limit]:
        table.add_row(
            item.external_id,
            item.title[:40],
            item.brand or "-",
            item.size_label or "-",
            f"{item.price:.2f}",
            "yes" if item.sold else "",
        )
    console.print(table)
    if result.count > limit:
        console.print(f"[dim]... {result.count - limit} more[/dim]")


@click.command(name="fetch")
@click.option("--cookies", "cookies_path", required=True, type=click.Path(exists=True, dir_okay=False), help="Artifacts saved by 'favsync login' or a cookie export")
@click.option("--backend-url", envvar="FAVSYNC_BACKEND_URL", help="Also dispatch the favorites to this backend")
@click.option("--output", "output_path", type=click.Path(dir_okay=False, writable=True), help="Write normalized favorites to a JSON file")
@click.option("--max-pages", type=click.IntRange(min=1), help="Safety ceiling on favorites pages")
@click.option("--enrich/--no-enrich", default=None, help="Load item details (category, gender, listing date)")
@click.option("--limit", type=int, default=20, help="Rows to show in the table")
@click.option("--json", "as_json", is_flag=True, help="Print the dispatch result as JSON")
def fetch_command(
    cookies_path: str,
    backend_url: Optional[str],
    output_path: Optional[str],
    max_pages: Optional[int],
    enrich: Optional[bool],
    limit: int,
    as_json: bool,
):
    """
    Retrieve favorites using saved cookies instead of a fresh login.

    Examples:

      favsync fetch --cookies session.json --output favorites.json

      favsync fetch --cookies session.json --backend-url http://localhost:8080/api/extension
    """
    settings = Settings.from_env(max_pages=max_pages, enrich_items=enrich)
    artifacts = load_artifacts(cookies_path)

    if not has_session_cookie(artifacts):
        console.print("[yellow]Warning:[/yellow] no known session cookie in the file; the API will likely reject it.")
    if access_token_expired(artifacts):
        display_result(failure("auth-expired", "saved access token has expired; log in again"), as_json)
        sys.exit(2)

    if backend_url:
        result = asyncio.run(sync_with_artifacts(artifacts, backend_url, settings=settings))
        display_result(result, as_json)
        if not result["success"]:
            sys.exit(2)
        return

    try:
        retrieved = asyncio.run(_retrieve(artifacts, settings))
    except SyncError as exc:
        display_result(failure(exc.kind, str(exc)), as_json)
        sys.exit(2)

    _show_items(retrieved, limit)
    if output_path:
        payload = [item.to_dict() for item in retrieved.items]
        Path(output_path).write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {retrieved.count} favorites to {output_path}")
