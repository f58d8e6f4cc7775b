"""Tests for per-item detail enrichment."""
from __future__ import annotations

import httpx
import pytest

from favsync.errors import AuthExpired
from favsync.models import FavoriteItem
from favsync.retrieval.enrichment import ItemEnricher, RateLimited
from favsync.settings import Settings
from favsync.tests.fakes import RecordingSleep

DETAIL = {"item": {"catalog_tree": [{"title": "Hommes"}, {"title": "Sweats"}], "created_at_ts": 1_700_000_000}}


def _enricher(responses: list, sleep: RecordingSleep, **overrides) -> ItemEnricher:
    """``responses`` holds (status, json) pairs served in order."""
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        status, body = queue.pop(0)
        return httpx.Response(status, json=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    settings = Settings(enrich_retry_base_seconds=1.0, **overrides)
    return ItemEnricher(client, {"Cookie": "a=b"}, settings, sleep=sleep)


@pytest.mark.asyncio
async def test_rate_limited_detail_is_retried_with_backoff() -> None:
    sleep = RecordingSleep()
    enricher = _enricher([(429, None), (200, DETAIL)], sleep)

    [item] = await enricher.enrich([FavoriteItem(external_id="1", title="Sweat")])

    assert item.category == "Sweats"
    assert item.gender == "men"
    assert len(sleep.calls) == 1


@pytest.mark.asyncio
async def test_repeated_rate_limits_keep_item_unchanged() -> None:
    sleep = RecordingSleep()
    original = FavoriteItem(external_id="1", title="Sweat", category="9")
    enricher = _enricher([(429, None)] * 3, sleep, enrich_max_retries=2)

    [item] = await enricher.enrich([original])

    assert item == original
    assert len(sleep.calls) == 2


@pytest.mark.asyncio
async def test_fetch_detail_reraises_rate_limit_after_last_attempt() -> None:
    enricher = _enricher([(429, None)] * 2, RecordingSleep(), enrich_max_retries=1)

    with pytest.raises(RateLimited):
        await enricher.fetch_detail("1")


@pytest.mark.asyncio
async def test_missing_item_keeps_original() -> None:
    original = FavoriteItem(external_id="1", title="Sweat")
    enricher = _enricher([(404, None)], RecordingSleep())

    assert await enricher.enrich([original]) == [original]


@pytest.mark.asyncio
async def test_rejected_session_propagates() -> None:
    enricher = _enricher([(401, None)], RecordingSleep())

    with pytest.raises(AuthExpired):
        await enricher.enrich([FavoriteItem(external_id="1", title="Sweat")])


@pytest.mark.asyncio
async def test_batches_are_spaced() -> None:
    sleep = RecordingSleep()
    items = [FavoriteItem(external_id=str(n), title="x") for n in range(3)]
    enricher = _enricher([(200, DETAIL)] * 3, sleep, enrich_batch_size=2)

    enriched = await enricher.enrich(items)

    assert [item.external_id for item in enriched] == ["0", "1", "2"]
    assert sleep.calls == [2.0]
