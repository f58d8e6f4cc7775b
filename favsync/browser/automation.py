"""Playwright browser lifecycle for login sessions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from ..settings import Settings
from .config import STEALTH_INIT_SCRIPT, USER_AGENT_POOL, get_chrome_args, get_context_options

logger = logging.getLogger(__name__)


@dataclass
class BrowserConfig:
    """Configuration for a login browser."""

    headless: bool = True
    viewport: Optional[Dict[str, int]] = None
    user_agent: Optional[str] = None
    locale: str = "fr-FR"
    timezone: str = "Europe/Paris"
    slow_mo: int = 0
    timeout: int = 30000  # Default timeout in milliseconds
    stealth_mode: bool = True
    inject_cookies: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        if self.user_agent is None:
            self.user_agent = USER_AGENT_POOL[0]


def browser_config_from_settings(settings: Settings, **overrides: Any) -> BrowserConfig:
    options = {
        "headless": settings.browser_headless,
        "locale": settings.browser_locale,
        "timezone": settings.browser_timezone,
        "timeout": settings.browser_timeout_ms,
        "stealth_mode": settings.browser_stealth_mode,
    }
    options.update(overrides)
    return BrowserConfig(**options)


@dataclass
class BrowserSession:
    """Represents an active browser session."""

    browser: Browser
    context: BrowserContext
    page: Page
    config: BrowserConfig

    async def close(self):
        """Close the browser session."""
        try:
            await self.context.close()
            await self.browser.close()
        except Exception as e:
            logger.error(f"Error closing browser session: {e}")


class BrowserAutomation:
    """Owns the Playwright driver and every session it creates.

    Leaving the async context closes all sessions, so a run never leaks a
    logged-in browser into the next one.
    """

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or BrowserConfig()
        self._playwright = None
        self._sessions: List[BrowserSession] = []

    async def __aenter__(self):
        self._playwright = await async_playwright().start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_all_sessions()
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def create_session(self, config: Optional[BrowserConfig] = None) -> BrowserSession:
        """Launch Chromium and open a fresh context and page."""
        if not self._playwright:
            raise RuntimeError("BrowserAutomation not started. Use async context manager.")

        session_config = config or self.config
        browser = await self._playwright.chromium.launch(
            headless=session_config.headless,
            slow_mo=session_config.slow_mo,
            args=get_chrome_args(stealth_mode=session_config.stealth_mode),
        )

        context_options = get_context_options(
            viewport=session_config.viewport,
            user_agent=session_config.user_agent,
            locale=session_config.locale,
            timezone_id=session_config.timezone,
            stealth_mode=session_config.stealth_mode,
        )
        context = await browser.new_context(**context_options)
        context.set_default_timeout(session_config.timeout)

        if session_config.stealth_mode:
            await context.add_init_script(STEALTH_INIT_SCRIPT)
        if session_config.inject_cookies:
            await context.add_cookies(session_config.inject_cookies)

        page = await context.new_page()
        session = BrowserSession(browser=browser, context=context, page=page, config=session_config)
        self._sessions.append(session)
        logger.info(
            f"Created browser session (headless={session_config.headless}, stealth={session_config.stealth_mode}, "
            f"seeded_cookies={len(session_config.inject_cookies)})"
        )
        return session

    async def close_session(self, session: BrowserSession):
        await session.close()
        if session in self._sessions:
            self._sessions.remove(session)

    async def close_all_sessions(self):
        for session in self._sessions.copy():
            await self.close_session(session)


__all__ = [
    "BrowserAutomation",
    "BrowserConfig",
    "BrowserSession",
    "browser_config_from_settings",
]
