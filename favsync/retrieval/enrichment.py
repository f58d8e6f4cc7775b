"""Optional per-item detail lookups (category, gender, listing date)."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import AuthExpired, UpstreamError
from ..models import FavoriteItem
from ..settings import Settings
from .normalize import apply_item_details

logger = logging.getLogger(__name__)


class RateLimited(UpstreamError):
    """HTTP 429 from the item detail endpoint."""

    def __init__(self, item_id: str):
        super().__init__(429, f"rate limited while loading item {item_id}")


class ItemEnricher:
    """Completes items from ``/items/{id}`` in sequential, spaced batches."""

    def __init__(self, client: httpx.AsyncClient, headers: dict, settings: Optional[Settings] = None, *, sleep=asyncio.sleep):
        self.client = client
        self.headers = headers
        self.settings = settings or Settings()
        self._sleep = sleep

    async def enrich(self, items: Sequence[FavoriteItem]) -> List[FavoriteItem]:
        batch_size = max(1, self.settings.enrich_batch_size)
        enriched: List[FavoriteItem] = []
        for start in range(0, len(items), batch_size):
            if start:
                await self._sleep(self.settings.enrich_batch_delay_seconds)
            for item in items[start:start + batch_size]:
                enriched.append(await self._enrich_one(item))
            logger.info(f"Enriched {len(enriched)}/{len(items)} items")
        return enriched

    async def _enrich_one(self, item: FavoriteItem) -> FavoriteItem:
        try:
            detail = await self.fetch_detail(item.external_id)
        except RateLimited:
            logger.warning(f"Giving up on details for item {item.external_id} after repeated 429s")
            return item
        except UpstreamError as exc:
            logger.warning(f"Keeping item {item.external_id} without details: {exc}")
            return item
        if detail is None:
            return item
        return apply_item_details(item, detail)

    async def fetch_detail(self, item_id: str) -> Optional[Any]:
        """Detail payload for one item, or None when it no longer exists."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimited),
            stop=stop_after_attempt(self.settings.enrich_max_retries + 1),
            wait=wait_exponential(multiplier=self.settings.enrich_retry_base_seconds),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._request_detail(item_id)
        return None

    async def _request_detail(self, item_id: str) -> Optional[Any]:
        path = self.settings.item_endpoint.format(item_id=item_id)
        try:
            response = await self.client.get(self.settings.api_url(path), headers=self.headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(None, f"item {item_id} request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimited(item_id)
        if response.status_code == 404:
            logger.info(f"Item {item_id} no longer exists; skipping details")
            return None
        if response.status_code in (401, 403):
            raise AuthExpired(f"item detail request rejected (HTTP {response.status_code})")
        if not response.is_success:
            raise UpstreamError(response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(response.status_code, f"non-JSON body for item {item_id}") from exc


__all__ = ["ItemEnricher", "RateLimited"]
