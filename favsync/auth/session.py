"""Acquire an authenticated session: navigate, submit, extract."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from ..browser.automation import BrowserAutomation, browser_config_from_settings
from ..errors import NavigatorFailure
from ..models import CookieRecord
from ..settings import Settings
from ..utils.diagnostics import DiagnosticsStore
from .artifacts import ArtifactExtractor
from .markers import LoginProfile, default_profile
from .navigator import LoginFlowNavigator
from .outcomes import LoginOutcome, Success, UnknownFailure
from .submitter import CredentialSubmitter

logger = logging.getLogger(__name__)


async def login(
    page: Any,
    identifier: str,
    secret: str,
    *,
    settings: Optional[Settings] = None,
    profile: Optional[LoginProfile] = None,
    sleep: Optional[Callable] = None,
) -> LoginOutcome:
    """Run the login flow on an open page and return exactly one outcome."""
    settings = settings or Settings()
    profile = profile or default_profile()
    extractor = ArtifactExtractor(settings)

    navigator = LoginFlowNavigator(page, settings, profile)
    try:
        report = await navigator.run()
    except NavigatorFailure as exc:
        logger.warning(f"Login navigation failed: {exc.diagnostic} ({exc.data})")
        return UnknownFailure(exc.diagnostic)

    if report.already_authenticated:
        if settings.probe_favorites_page:
            try:
                await page.goto(settings.favorites_page_url, wait_until="domcontentloaded")
            except PlaywrightError as exc:
                logger.warning(f"Could not load favorites page: {exc}")
        return Success(await extractor.extract(page), already_authenticated=True)

    submitter = CredentialSubmitter(page, settings, profile, extractor=extractor, sleep=sleep or asyncio.sleep)
    return await submitter.submit(identifier, secret)


async def acquire_session(
    identifier: str,
    secret: str,
    *,
    settings: Optional[Settings] = None,
    profile: Optional[LoginProfile] = None,
    seed_cookies: Sequence[CookieRecord] = (),
    automation_factory: Callable[..., Any] = BrowserAutomation,
) -> LoginOutcome:
    """Launch a private browser, log in and always tear the browser down.

    Browser launch failures propagate; every other problem becomes a
    :data:`LoginOutcome`.
    """
    settings = settings or Settings()
    config = browser_config_from_settings(
        settings,
        inject_cookies=[cookie.to_playwright_dict() for cookie in seed_cookies],
    )
    diagnostics = DiagnosticsStore(settings.diagnostics_dir) if settings.diagnostics_dir else None

    async with automation_factory(config) as automation:
        session = await automation.create_session()
        outcome = await login(session.page, identifier, secret, settings=settings, profile=profile)

        if isinstance(outcome, Success) and not outcome.artifacts.has_cookies:
            outcome = UnknownFailure("login succeeded but no session cookies were set")

        if not outcome.ok and diagnostics is not None:
            await diagnostics.capture(session.page, f"login-{outcome.kind}", {"message": outcome.message})

    logger.info(f"Login finished: {outcome.kind}")
    return outcome


__all__ = ["acquire_session", "login"]
