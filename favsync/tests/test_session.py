"""Tests for browser-backed session acquisition."""
from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from favsync.auth.outcomes import Success, UnknownFailure
from favsync.auth.session import acquire_session
from favsync.models import CookieRecord
from favsync.settings import Settings
from favsync.tests.fakes import FakePage, FakeScreen

LOGIN_URL = Settings().login_url
MEMBER_URL = "https://www.vinted.fr/member/general/favourites"
COOKIES = [{"name": "_vinted_fr_session", "value": "sess", "domain": ".vinted.fr", "path": "/", "expires": -1}]


class FakeAutomation:
    """Stands in for BrowserAutomation and records its lifecycle."""

    instances: list = []

    def __init__(self, page, config):
        self.page = page
        self.config = config
        self.closed = False
        FakeAutomation.instances.append(self)

    @classmethod
    def factory(cls, page):
        cls.instances = []
        return lambda config: cls(page, config)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.closed = True

    async def create_session(self):
        return SimpleNamespace(page=self.page)


def _already_signed_in(cookies=COOKIES) -> FakePage:
    return FakePage(
        {"login": FakeScreen(LOGIN_URL), "member": FakeScreen(MEMBER_URL)},
        "login",
        routes={LOGIN_URL: "member"},
        cookies=cookies,
    )


class ExplodingPage(FakePage):
    async def goto(self, url: str, **kwargs) -> None:
        raise RuntimeError("renderer crashed")


@pytest.mark.asyncio
async def test_existing_session_is_reused_and_browser_closed() -> None:
    page = _already_signed_in()
    seed = [CookieRecord("_vinted_fr_session", "old", ".vinted.fr")]

    outcome = await acquire_session("me", "pw", seed_cookies=seed, automation_factory=FakeAutomation.factory(page))

    assert isinstance(outcome, Success)
    assert outcome.already_authenticated is True
    [automation] = FakeAutomation.instances
    assert automation.closed
    assert automation.config.inject_cookies[0]["value"] == "old"
    assert page.visited[-1] == Settings().favorites_page_url


@pytest.mark.asyncio
async def test_success_without_cookies_is_unknown_failure() -> None:
    outcome = await acquire_session("me", "pw", automation_factory=FakeAutomation.factory(_already_signed_in(cookies=[])))

    assert isinstance(outcome, UnknownFailure)
    assert "no session cookies" in outcome.message


@pytest.mark.asyncio
async def test_failed_login_writes_diagnostics(tmp_path) -> None:
    settings = Settings(step_timeout_ms=500, poll_interval_ms=250, diagnostics_dir=str(tmp_path))
    page = FakePage({"blank": FakeScreen(LOGIN_URL, text="Maintenance")}, "blank")

    outcome = await acquire_session("me", "pw", settings=settings, automation_factory=FakeAutomation.factory(page))

    assert outcome.kind == "unknown"
    [metadata_path] = list(tmp_path.glob("*/login-unknown.json"))
    metadata = json.loads(metadata_path.read_text())
    assert metadata["url"] == LOGIN_URL
    assert metadata["details"]["message"] == "credential form not reached"
    assert FakeAutomation.instances[0].closed


@pytest.mark.asyncio
async def test_unexpected_errors_propagate_after_closing_browser() -> None:
    page = ExplodingPage({"login": FakeScreen(LOGIN_URL)}, "login")

    with pytest.raises(RuntimeError, match="renderer crashed"):
        await acquire_session("me", "pw", automation_factory=FakeAutomation.factory(page))

    assert FakeAutomation.instances[0].closed
