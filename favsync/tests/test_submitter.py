"""Tests for credential submission and post-submit classification."""
from __future__ import annotations

import pytest

from favsync.auth.outcomes import ChallengeRequired, InvalidCredentials, Success, UnknownFailure
from favsync.auth.submitter import CredentialSubmitter
from favsync.settings import Settings
from favsync.tests.fakes import FakeElement, FakePage, FakeScreen, RecordingSleep

SETTINGS = Settings(submit_attempts=3, submit_retry_delay_seconds=0.5)
LOGIN_URL = SETTINGS.login_url
FAVORITES_URL = SETTINGS.favorites_page_url

SITE_COOKIES = [
    {"name": "_vinted_fr_session", "value": "sess", "domain": ".vinted.fr", "path": "/", "expires": -1},
    {"name": "anon_id", "value": "anon-123", "domain": ".vinted.fr", "path": "/", "expires": 1893456000},
    {"name": "_ga", "value": "tracker", "domain": ".google.com", "path": "/", "expires": 1893456000},
]


def _login_form(after_submit: str) -> FakeScreen:
    return FakeScreen(
        LOGIN_URL,
        elements={
            'input[type="email"]': FakeElement(),
            'input[type="password"]': FakeElement(),
            'button[type="submit"]': FakeElement(on_click=after_submit),
        },
    )


def _favorites_screen() -> FakeScreen:
    return FakeScreen(FAVORITES_URL, page_state={"csrfToken": "csrf-abc", "anonId": None})


def _page(after_submit: FakeScreen, *, favorites: str = "favorites") -> FakePage:
    return FakePage(
        {"login": _login_form("after"), "after": after_submit, "favorites": _favorites_screen(), "relogin": FakeScreen(LOGIN_URL)},
        "login",
        routes={FAVORITES_URL: favorites},
        cookies=SITE_COOKIES,
    )


@pytest.mark.asyncio
async def test_valid_credentials_produce_success_with_cookies() -> None:
    home = FakeScreen("https://www.vinted.fr/", text="Bienvenue", elements={'[data-testid="header-avatar"]': FakeElement()})
    page = _page(home)

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "hunter2")

    assert isinstance(outcome, Success)
    assert outcome.ok
    names = [cookie.name for cookie in outcome.artifacts.cookies]
    assert names == ["_vinted_fr_session", "anon_id"]
    assert outcome.artifacts.csrf_token == "csrf-abc"
    assert outcome.artifacts.anonymous_id == "anon-123"
    assert page.visited == [FAVORITES_URL]


@pytest.mark.asyncio
async def test_identifier_is_filled_before_secret() -> None:
    home = FakeScreen("https://www.vinted.fr/")
    page = _page(home)

    await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "hunter2")

    fills = [key for action, key in page.actions if action == "fill"]
    assert fills == ['input[type="email"]', 'input[type="password"]']


@pytest.mark.asyncio
async def test_wrong_secret_is_invalid_credentials() -> None:
    rejected = FakeScreen(LOGIN_URL, text="Identifiant ou mot de passe incorrect.")
    page = _page(rejected)

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "wrong")

    assert isinstance(outcome, InvalidCredentials)
    assert outcome.kind == "invalid-credentials"


@pytest.mark.asyncio
async def test_challenge_wins_over_error_text() -> None:
    challenge = FakeScreen(
        LOGIN_URL,
        text="Mot de passe incorrect ? Vérifiez que vous êtes humain",
        elements={'iframe[src*="captcha-delivery"]': FakeElement()},
    )
    page = _page(challenge)

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "hunter2")

    assert isinstance(outcome, ChallengeRequired)
    assert outcome.challenge == "captcha"


@pytest.mark.asyncio
async def test_two_factor_prompt_is_reported_distinctly() -> None:
    verify = FakeScreen("https://www.vinted.fr/auth/verify", text="Saisis le code de vérification envoyé par e-mail")
    page = _page(verify)

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "hunter2")

    assert isinstance(outcome, ChallengeRequired)
    assert outcome.challenge == "twoFactor"
    assert outcome.kind == "challenge-required"


@pytest.mark.asyncio
async def test_keyboard_fallback_types_credentials_and_presses_enter() -> None:
    bare_form = FakeScreen(LOGIN_URL, focus_input=True, on_enter="home")
    home = FakeScreen("https://www.vinted.fr/")
    page = FakePage(
        {"login": bare_form, "home": home, "favorites": _favorites_screen()},
        "login",
        routes={FAVORITES_URL: "favorites"},
        cookies=SITE_COOKIES,
    )

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "hunter2")

    assert isinstance(outcome, Success)
    assert page.keyboard.typed == ["me@example.com", "hunter2"]
    assert ("press", "Enter") in page.actions


@pytest.mark.asyncio
async def test_missing_inputs_are_retried_then_reported() -> None:
    sleep = RecordingSleep()
    page = FakePage({"login": FakeScreen(LOGIN_URL, focus_input=False)}, "login")

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=sleep).submit("me@example.com", "hunter2")

    assert isinstance(outcome, UnknownFailure)
    assert outcome.diagnostic == "input fields not found"
    assert sleep.calls == [0.5, 0.5]


@pytest.mark.asyncio
async def test_favorites_probe_confirms_login_on_silent_page() -> None:
    silent = FakeScreen(LOGIN_URL)
    page = _page(silent)

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=RecordingSleep()).submit("me@example.com", "hunter2")

    assert isinstance(outcome, Success)


@pytest.mark.asyncio
async def test_unclassifiable_page_is_unknown_failure() -> None:
    sleep = RecordingSleep()
    silent = FakeScreen(LOGIN_URL)
    page = _page(silent, favorites="relogin")

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=sleep).submit("me@example.com", "hunter2")

    assert isinstance(outcome, UnknownFailure)
    assert outcome.diagnostic == "unclassified post-submit state"
    assert outcome.retryable is False
    assert len(sleep.calls) == SETTINGS.submit_attempts - 1


@pytest.mark.asyncio
async def test_leaving_login_page_is_not_success_when_favorites_bounce_back() -> None:
    sleep = RecordingSleep()
    home = FakeScreen("https://www.vinted.fr/")
    page = _page(home, favorites="relogin")

    outcome = await CredentialSubmitter(page, SETTINGS, sleep=sleep).submit("me@example.com", "hunter2")

    assert isinstance(outcome, UnknownFailure)
    assert outcome.diagnostic == "favorites page not reachable after submit"
    assert page.visited == [FAVORITES_URL]
    assert sleep.calls == []
