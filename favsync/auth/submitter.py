"""Fill the credential form, submit it and classify what the site did."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..browser.locator import locate
from ..settings import Settings
from .artifacts import ArtifactExtractor
from .markers import LoginProfile, default_profile, visible_text
from .outcomes import ChallengeRequired, InvalidCredentials, LoginOutcome, Success, UnknownFailure

logger = logging.getLogger(__name__)

ACTIVE_INPUT_SCRIPT = """
() => {
    const el = document.activeElement;
    if (!el) return false;
    const tag = el.tagName;
    return (tag === 'INPUT' || tag === 'TEXTAREA') && !el.disabled && !el.readOnly;
}
"""

# Tabs tried per field when no selector strategy found it.
MAX_FOCUS_TABS = 3


class CredentialSubmitter:
    """Submits credentials on a page that already shows the login form.

    Classification priority is challenge, two-factor, invalid credentials,
    success, then unknown. Challenge and two-factor pages often carry text that
    looks like a generic error, and a half-loaded page can look like success.
    """

    def __init__(
        self,
        page: Any,
        settings: Optional[Settings] = None,
        profile: Optional[LoginProfile] = None,
        *,
        extractor: Optional[ArtifactExtractor] = None,
        sleep=asyncio.sleep,
    ):
        self.page = page
        self.settings = settings or Settings()
        self.profile = profile or default_profile()
        self.extractor = extractor or ArtifactExtractor(self.settings)
        self._sleep = sleep

    async def submit(self, identifier: str, secret: str) -> LoginOutcome:
        attempts = self.settings.submit_attempts
        for attempt in range(1, attempts + 1):
            try:
                filled = await self._fill_credentials(identifier, secret)
            except PlaywrightError as exc:
                logger.info(f"Credential input detached while filling: {exc}")
                filled = False
            if filled:
                await self._activate_submit()
                return await self._classify_until_settled()
            logger.info(f"Credential inputs not rendered yet (attempt {attempt}/{attempts})")
            if attempt < attempts:
                await self._sleep(self.settings.submit_retry_delay_seconds)
        return UnknownFailure("input fields not found")

    async def _fill_credentials(self, identifier: str, secret: str) -> bool:
        identifier_field = await locate(self.profile.identifier_fields, self.page)
        if identifier_field is not None:
            await identifier_field.fill(identifier)
        elif not await self._type_into_next_input(identifier):
            return False

        # Some forms only reveal the secret field once the identifier is set.
        secret_field = await locate(self.profile.secret_fields, self.page)
        if secret_field is not None:
            await secret_field.fill(secret)
        elif not await self._type_into_next_input(secret):
            return False

        logger.debug("Credentials filled")
        return True

    async def _type_into_next_input(self, value: str) -> bool:
        """Sequential-focus fallback for forms without stable attributes."""
        keyboard = self.page.keyboard
        for _ in range(MAX_FOCUS_TABS):
            await keyboard.press("Tab")
            if await self._focused_on_input():
                await keyboard.type(value, delay=self.settings.keyboard_delay_ms)
                logger.info("Filled a credential field through keyboard focus")
                return True
        return False

    async def _focused_on_input(self) -> bool:
        try:
            return bool(await self.page.evaluate(ACTIVE_INPUT_SCRIPT))
        except PlaywrightError:
            return False

    async def _activate_submit(self) -> None:
        button = await locate(self.profile.submit_buttons, self.page)
        if button is not None:
            try:
                await button.click(timeout=self.settings.step_timeout_ms)
                logger.info("Submitted credential form")
                return
            except PlaywrightError as exc:
                logger.warning(f"Submit button click failed, falling back to Enter: {exc}")
        await self.page.keyboard.press("Enter")
        logger.info("Submitted credential form with Enter")

    async def _settle(self) -> None:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=self.settings.post_submit_wait_ms)
        except PlaywrightTimeoutError:
            logger.debug("Page did not reach network idle after submit")
        await self.page.wait_for_timeout(self.settings.poll_interval_ms)

    async def _classify_until_settled(self) -> LoginOutcome:
        await self._settle()
        attempts = self.settings.submit_attempts
        outcome: LoginOutcome = UnknownFailure("unclassified post-submit state")
        for attempt in range(1, attempts + 1):
            outcome = await self.classify(probe=attempt == attempts)
            if not (isinstance(outcome, UnknownFailure) and outcome.retryable):
                break
            logger.info(f"Post-submit page not classifiable yet (attempt {attempt}/{attempts})")
            if attempt < attempts:
                await self._sleep(self.settings.submit_retry_delay_seconds)
        if isinstance(outcome, UnknownFailure):
            return UnknownFailure(outcome.diagnostic)
        return outcome

    async def classify(self, *, probe: bool = False) -> LoginOutcome:
        """Classify the current page after a submit.

        With ``probe`` set, an otherwise unclassifiable page is settled by
        loading the favorites page, which only an authenticated session can see.
        """
        body = await visible_text(self.page)

        marker = await self.profile.challenge.first_match(self.page, body)
        if marker is not None:
            logger.warning(f"Anti-bot challenge detected ({marker.name})")
            return ChallengeRequired("captcha", marker.name)

        marker = await self.profile.two_factor.first_match(self.page, body)
        if marker is not None:
            logger.warning(f"Two-factor verification requested ({marker.name})")
            return ChallengeRequired("twoFactor", marker.name)

        on_login = self.profile.is_login_url(self.page.url)
        if on_login:
            marker = await self.profile.invalid_credentials.first_match(self.page, body)
            if marker is not None:
                logger.warning(f"Login rejected ({marker.name})")
                return InvalidCredentials()

        marker = await self.profile.authenticated.first_match(self.page, body)
        if marker is not None or not on_login:
            opened = await self._open_authenticated_page()
            if not opened and marker is None:
                logger.warning("Left the login page but the favorites page was not reachable")
                return UnknownFailure("favorites page not reachable after submit")
            if not opened:
                logger.warning(f"Favorites page not reachable after login ({marker.name}); extracting from current page")
            logger.info(f"Login succeeded ({marker.name if marker else 'left login page'})")
            return Success(await self.extractor.extract(self.page))

        if probe and self.settings.probe_favorites_page and await self._open_authenticated_page():
            logger.info("Login confirmed by loading the favorites page")
            return Success(await self.extractor.extract(self.page))

        return UnknownFailure("unclassified post-submit state", retryable=True)

    async def _open_authenticated_page(self) -> bool:
        """Load the favorites page; True when the site did not bounce us to login."""
        try:
            await self.page.goto(self.settings.favorites_page_url, wait_until="domcontentloaded")
        except PlaywrightError as exc:
            logger.warning(f"Could not load favorites page: {exc}")
            return False
        return not self.profile.is_login_url(self.page.url)


__all__ = ["CredentialSubmitter"]
