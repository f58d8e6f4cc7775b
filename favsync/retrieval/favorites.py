"""Walk the paginated favorites endpoint with an authenticated session."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..browser.config import USER_AGENT_POOL
from ..errors import AuthExpired, DuplicateItemError, UpstreamError
from ..models import CookieRecord, FavoriteItem, RetrievalPage, RetrievalResult, SessionArtifacts
from ..settings import Settings
from .normalize import extract_item_list, normalize_items

logger = logging.getLogger(__name__)

USER_ID_COOKIE = "v_uid"


def build_headers(artifacts: SessionArtifacts, settings: Settings, user_agent: Optional[str] = None) -> Dict[str, str]:
    """Browser-like headers carrying the session cookies and tokens."""
    headers = {
        "Cookie": artifacts.cookie_header(),
        "User-Agent": user_agent or USER_AGENT_POOL[0],
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": f"{settings.browser_locale},{settings.browser_locale.split('-')[0]};q=0.9",
        "Referer": f"{settings.site_base_url}/",
        "Origin": settings.site_base_url,
    }
    if artifacts.csrf_token:
        headers["X-Csrf-Token"] = artifacts.csrf_token
    if artifacts.anonymous_id:
        headers["X-Anon-Id"] = artifacts.anonymous_id
    return headers


class FavoritesRetriever:
    """Sequential, rate-limited reader of the favorites endpoint.

    Pages are requested strictly in order with a fixed delay between them. Any
    failure discards everything fetched so far; callers only ever see a
    complete :class:`RetrievalResult` or an exception.
    """

    def __init__(
        self,
        artifacts: SessionArtifacts,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: Optional[str] = None,
        sleep=asyncio.sleep,
    ):
        self.artifacts = artifacts
        self.settings = settings or Settings()
        self._user_agent = user_agent
        self.headers = build_headers(artifacts, self.settings, user_agent)
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    async def __aenter__(self) -> "FavoritesRetriever":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout_seconds, follow_redirects=False)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("FavoritesRetriever not started. Use async context manager.")
        return self._client

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET an API path; 401 raises AuthExpired, other failures UpstreamError."""
        if not self.artifacts.has_cookies:
            raise AuthExpired("no session cookies available")

        url = self.settings.api_url(path)
        try:
            response = await self.client.get(url, params=params, headers=self.headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(None, f"request to {path} failed: {exc}") from exc

        if response.status_code == 401:
            raise AuthExpired("session artifacts rejected (HTTP 401)", data={"path": path})
        if not response.is_success:
            raise UpstreamError(response.status_code, data={"path": path})
        self._absorb_cookies(response)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(response.status_code, f"non-JSON body from {path}") from exc

    def _absorb_cookies(self, response: httpx.Response) -> None:
        """Apply Set-Cookie headers so later requests carry rotated tokens."""
        updates = [
            CookieRecord(
                name=cookie.name,
                value=cookie.value or "",
                domain=cookie.domain or self.settings.site_host,
                path=cookie.path or "/",
                expires_at=float(cookie.expires) if cookie.expires is not None else None,
                secure=bool(cookie.secure),
            )
            for cookie in response.cookies.jar
        ]
        if not updates:
            return
        logger.debug(f"Session cookies updated by upstream: {sorted(c.name for c in updates)}")
        self.artifacts = self.artifacts.with_cookies(updates)
        # Replace in place so holders of the dict see the new Cookie header
        self.headers.clear()
        self.headers.update(build_headers(self.artifacts, self.settings, self._user_agent))

    async def resolve_user_id(self) -> str:
        """Current account id from the API, falling back to session cookies."""
        try:
            payload = await self.get_json(self.settings.current_user_endpoint)
        except UpstreamError as exc:
            logger.warning(f"Current user lookup failed, trying cookies: {exc}")
            payload = None

        if isinstance(payload, dict):
            user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
            if user.get("id") is not None:
                return str(user["id"])

        from_cookie = self.artifacts.cookie(USER_ID_COOKIE)
        if not from_cookie:
            from_cookie = next(
                (record.value for record in self.artifacts.cookies if "user_id" in record.name and record.value),
                None,
            )
        if from_cookie:
            return from_cookie
        raise UpstreamError(None, "could not determine the current user id")

    async def fetch_page(self, user_id: str, page_number: int) -> RetrievalPage:
        path = self.settings.favorites_endpoint.format(user_id=user_id)
        payload = await self.get_json(path, params={"page": page_number, "per_page": self.settings.page_size})
        return RetrievalPage(page_number=page_number, items=extract_item_list(payload))

    async def fetch_all(self, user_id: str) -> RetrievalResult:
        """Fetch and normalize every favorites page for ``user_id``."""
        result = RetrievalResult()
        seen: set = set()
        items: List[FavoriteItem] = []

        for page_number in range(1, self.settings.max_pages + 1):
            if page_number > 1:
                await self._sleep(self.settings.page_delay_seconds)
            page = await self.fetch_page(user_id, page_number)
            if not page.items:
                logger.info(f"Favorites exhausted at page {page_number}")
                break
            result.pages_fetched = page_number

            for item in normalize_items(page.items, site_base_url=self.settings.site_base_url):
                if item.external_id in seen:
                    if self.settings.duplicate_policy == "reject":
                        raise DuplicateItemError(item.external_id, page_number)
                    result.duplicates += 1
                    continue
                seen.add(item.external_id)
                items.append(item)
            logger.info(f"Fetched favorites page {page_number} ({len(page.items)} records, {len(items)} total)")
        else:
            result.capped = True
            logger.warning(
                f"Favorites retrieval capped at {self.settings.max_pages} pages; "
                f"{len(items)} items kept, later pages were not requested"
            )

        if result.duplicates:
            logger.warning(f"Dropped {result.duplicates} duplicate favorites")
        result.items = items
        return result


async def fetch_all(
    artifacts: SessionArtifacts,
    user_id: str,
    settings: Optional[Settings] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> RetrievalResult:
    async with FavoritesRetriever(artifacts, settings, client=client) as retriever:
        return await retriever.fetch_all(user_id)


__all__ = ["FavoritesRetriever", "build_headers", "fetch_all"]
