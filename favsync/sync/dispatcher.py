"""Deliver normalized favorites and session cookies to the backend."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..errors import BackendError
from ..models import DispatchResult, FavoriteItem, SessionArtifacts
from ..settings import Settings

logger = logging.getLogger(__name__)


def normalize_backend_url(url: str) -> str:
    cleaned = (url or "").strip().rstrip("/")
    if not cleaned:
        raise ValueError("backend URL cannot be empty")
    return cleaned


def build_payload(items: Sequence[FavoriteItem], artifacts: SessionArtifacts) -> Dict[str, Any]:
    """Request body; ``favoriteOrder`` keeps the order the site listed them in."""
    favorites = []
    for order, item in enumerate(items):
        entry = item.to_dict()
        entry["favoriteOrder"] = order
        favorites.append(entry)
    return {
        "favorites": favorites,
        "cookies": [record.to_dict() for record in artifacts.cookies],
    }


class SyncDispatcher:
    """Single POST to the backend's sync endpoint; retrying is the caller's call."""

    def __init__(self, backend_url: str, settings: Optional[Settings] = None, *, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or Settings()
        self.backend_url = normalize_backend_url(backend_url)
        self._client = client

    @property
    def sync_url(self) -> str:
        return f"{self.backend_url}/{self.settings.backend_sync_path.lstrip('/')}"

    async def dispatch(self, items: Sequence[FavoriteItem], artifacts: SessionArtifacts) -> DispatchResult:
        payload = build_payload(items, artifacts)
        logger.info(f"Dispatching {len(items)} favorites to {self.sync_url}")

        if self._client is not None:
            response = await self._post(self._client, payload)
        else:
            async with httpx.AsyncClient(timeout=self.settings.backend_timeout_seconds) as client:
                response = await self._post(client, payload)

        if not response.is_success:
            raise BackendError(response.status_code, response.text)
        try:
            body = response.json()
        except ValueError:
            body = None
        result = DispatchResult.from_response(response.status_code, len(items), body)
        if not result.success:
            raise BackendError(response.status_code, result.message or response.text)
        logger.info(
            f"Backend accepted {result.count} favorites (new={result.new_items}, total={result.total_items})"
        )
        return result

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        try:
            return await client.post(self.sync_url, json=payload)
        except httpx.HTTPError as exc:
            raise BackendError(None, str(exc)) from exc


async def dispatch(
    backend_url: str,
    items: Sequence[FavoriteItem],
    artifacts: SessionArtifacts,
    *,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> DispatchResult:
    return await SyncDispatcher(backend_url, settings, client=client).dispatch(items, artifacts)


__all__ = ["SyncDispatcher", "build_payload", "dispatch", "normalize_backend_url"]
