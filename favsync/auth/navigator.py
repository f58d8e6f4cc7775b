"""State machine that walks from the login entry point to the credential form."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..browser.locator import any_visible, locate
from ..errors import NavigatorFailure
from ..settings import Settings
from .markers import IntermediateScreen, LoginProfile, default_profile, visible_text

logger = logging.getLogger(__name__)


class NavigatorState(enum.Enum):
    START = "start"
    CONSENT_CHECK = "consent_check"
    INTERMEDIATE_SCREEN = "intermediate_screen"
    CREDENTIAL_FORM = "credential_form"
    DONE = "done"


@dataclass(slots=True)
class NavigationReport:
    state: NavigatorState = NavigatorState.START
    consent_dismissed: bool = False
    already_authenticated: bool = False
    screens: List[str] = field(default_factory=list)
    steps: int = 0


_FORM = object()


class LoginFlowNavigator:
    """Drives consent and intermediate screens until the credential form shows.

    Which intermediate screens appear is re-detected after every step, so the
    same navigator handles zero, one or two of them in any order.
    """

    def __init__(self, page: Any, settings: Optional[Settings] = None, profile: Optional[LoginProfile] = None):
        self.page = page
        self.settings = settings or Settings()
        self.profile = profile or default_profile()
        self.report = NavigationReport()

    async def run(self) -> NavigationReport:
        """Reach ``DONE`` or raise :class:`NavigatorFailure`."""
        await self._start()
        await self._consent_check()
        if await self._already_authenticated():
            self.report.already_authenticated = True
            self._transition(NavigatorState.DONE)
            return self.report
        await self._walk_screens()
        self._transition(NavigatorState.DONE)
        return self.report

    def _transition(self, state: NavigatorState) -> None:
        logger.debug(f"Login navigator: {self.report.state.value} -> {state.value}")
        self.report.state = state

    async def _start(self) -> None:
        url = self.settings.login_url
        logger.info(f"Opening login entry point {url}")
        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightTimeoutError:
            logger.warning(f"Timed out loading {url}; continuing with the partial page")
        self._transition(NavigatorState.CONSENT_CHECK)

    async def _consent_check(self) -> None:
        button = await locate(self.profile.consent_buttons, self.page)
        if button is None:
            logger.debug("No cookie consent prompt detected")
            return
        try:
            await button.click(timeout=self.settings.step_timeout_ms)
            self.report.consent_dismissed = True
            logger.info("Dismissed cookie consent prompt")
            await self.page.wait_for_timeout(self.settings.poll_interval_ms)
        except PlaywrightError as exc:
            logger.warning(f"Could not dismiss cookie consent prompt: {exc}")

    async def _already_authenticated(self) -> bool:
        body = await visible_text(self.page)
        marker = await self.profile.already_authenticated.first_match(self.page, body)
        if marker is not None:
            logger.info(f"Session already authenticated ({marker.name}); skipping credential form")
            return True
        return False

    async def credential_form_visible(self) -> bool:
        if not await any_visible(self.profile.identifier_fields, self.page):
            return False
        return await any_visible(self.profile.secret_fields, self.page)

    async def _walk_screens(self) -> None:
        for step in range(1, self.settings.navigator_max_steps + 1):
            self.report.steps = step
            observed = await self._await_observation()
            if observed is _FORM:
                self._transition(NavigatorState.CREDENTIAL_FORM)
                logger.info(f"Credential form reached after {len(self.report.screens)} intermediate screen(s)")
                return
            if observed is None:
                break
            screen, affordance = observed
            self._transition(NavigatorState.INTERMEDIATE_SCREEN)
            await self._activate(screen, affordance)

        raise NavigatorFailure(
            "credential form not reached",
            data={"steps": self.report.steps, "screens": list(self.report.screens), "url": self.page.url},
        )

    async def _observe(self):
        if await self.credential_form_visible():
            return _FORM
        body = await visible_text(self.page)
        for screen in self.profile.intermediate_screens:
            if not await screen.marker.matches(self.page, body):
                continue
            affordance = await locate(screen.continue_with, self.page)
            if affordance is not None:
                return screen, affordance
        return None

    async def _await_observation(self):
        """Poll for the form or a known screen within one step's wait budget."""
        polls = max(1, self.settings.step_timeout_ms // max(1, self.settings.poll_interval_ms))
        for _ in range(polls):
            observed = await self._observe()
            if observed is not None:
                return observed
            await self.page.wait_for_timeout(self.settings.poll_interval_ms)
        return await self._observe()

    async def _activate(self, screen: IntermediateScreen, affordance: Any) -> None:
        logger.info(f"Passing intermediate screen '{screen.name}'")
        try:
            await affordance.click(timeout=self.settings.step_timeout_ms)
        except PlaywrightError as exc:
            logger.warning(f"Could not activate '{screen.name}' affordance: {exc}")
            return
        self.report.screens.append(screen.name)
        try:
            await self.page.wait_for_load_state("domcontentloaded", timeout=self.settings.step_timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug(f"Load state wait timed out after '{screen.name}'")


__all__ = ["LoginFlowNavigator", "NavigationReport", "NavigatorState"]
