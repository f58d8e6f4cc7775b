"""Collect cookies and page tokens from an authenticated browser page."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from ..models import CookieRecord, SessionArtifacts, dedupe_cookies
from ..settings import Settings

logger = logging.getLogger(__name__)

ANONYMOUS_ID_COOKIES = ("anon_id", "_vinted_fr_anon_id")

PAGE_TOKENS_SCRIPT = """
() => {
    const meta = document.querySelector('meta[name="csrf-token"]');
    let anonId = null;
    try {
        const state = window.__INITIAL_STATE__;
        anonId = state && state.user ? state.user.anon_id || null : null;
    } catch (e) {
        anonId = null;
    }
    return { csrfToken: meta ? meta.getAttribute('content') : null, anonId: anonId };
}
"""


class ArtifactExtractor:
    """Reads session artifacts from a page; never fails.

    Missing tokens are omitted. Deciding that an empty cookie set is fatal is
    left to the caller.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()

    async def extract(self, page: Any) -> SessionArtifacts:
        cookies = await self._site_cookies(page)
        tokens = await self._page_tokens(page)

        anonymous_id = None
        for name in ANONYMOUS_ID_COOKIES:
            anonymous_id = next((c.value for c in cookies if c.name == name and c.value), None)
            if anonymous_id:
                break
        if not anonymous_id:
            anonymous_id = tokens.get("anonId") or None

        artifacts = SessionArtifacts(
            cookies=cookies,
            csrf_token=tokens.get("csrfToken") or None,
            anonymous_id=anonymous_id,
        )
        logger.info(
            f"Extracted {len(cookies)} cookies (csrf={'yes' if artifacts.csrf_token else 'no'}, "
            f"anon_id={'yes' if artifacts.anonymous_id else 'no'})"
        )
        return artifacts

    async def _site_cookies(self, page: Any):
        try:
            raw: List[Dict[str, Any]] = await page.context.cookies()
        except PlaywrightError as exc:
            logger.warning(f"Could not read cookie jar: {exc}")
            return ()

        marker = self.settings.cookie_domain_filter
        records = []
        for entry in raw:
            if marker not in (entry.get("domain") or ""):
                continue
            try:
                records.append(CookieRecord.from_dict(entry))
            except (KeyError, ValueError) as exc:
                logger.debug(f"Skipping malformed cookie {entry.get('name')!r}: {exc}")
        return dedupe_cookies(records)

    async def _page_tokens(self, page: Any) -> Dict[str, Any]:
        try:
            tokens = await page.evaluate(PAGE_TOKENS_SCRIPT)
        except PlaywrightError as exc:
            logger.debug(f"Could not read page tokens: {exc}")
            return {}
        return tokens if isinstance(tokens, dict) else {}


__all__ = ["ANONYMOUS_ID_COOKIES", "ArtifactExtractor"]
