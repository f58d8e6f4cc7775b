"""Page-state markers for the login flow.

A :class:`PageMarker` recognises one observable page state from visible text,
visible elements or the current URL. Markers are grouped into ordered
:class:`MarkerSet` values inside a :class:`LoginProfile`, so the markup
heuristics for a site can change without touching the navigator or the
outcome classifier.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple
from urllib.parse import urlparse

from playwright.async_api import Error as PlaywrightError

from ..browser.locator import LocatorSpec, any_visible

logger = logging.getLogger(__name__)


async def visible_text(page: Any, timeout_ms: int = 2000) -> str:
    """Return the page's visible body text, casefolded; empty on failure."""
    try:
        text = await page.inner_text("body", timeout=timeout_ms)
    except PlaywrightError as exc:
        logger.debug(f"Could not read body text: {exc}")
        return ""
    return (text or "").casefold()


def url_path(url: str) -> str:
    return urlparse(url or "").path or "/"


@dataclass(frozen=True, slots=True)
class PageMarker:
    """Predicate over the observable page state.

    A marker matches when any of its text fragments appears in the visible
    text, any of its selectors is visible, or any URL fragment appears in the
    current path.
    """

    name: str
    texts: Tuple[str, ...] = ()
    selectors: Tuple[LocatorSpec, ...] = ()
    url_fragments: Tuple[str, ...] = ()

    def matches_text(self, body_text: str) -> bool:
        return any(fragment.casefold() in body_text for fragment in self.texts)

    def matches_url(self, url: str) -> bool:
        path = url_path(url)
        return any(fragment in path for fragment in self.url_fragments)

    async def matches(self, page: Any, body_text: str) -> bool:
        if self.matches_url(page.url) or self.matches_text(body_text):
            return True
        if self.selectors:
            return await any_visible(self.selectors, page)
        return False


@dataclass(frozen=True, slots=True)
class MarkerSet:
    """Ordered markers; the first match wins."""

    markers: Tuple[PageMarker, ...] = ()

    async def first_match(self, page: Any, body_text: str) -> Optional[PageMarker]:
        for marker in self.markers:
            if await marker.matches(page, body_text):
                logger.debug(f"Page marker matched: {marker.name}")
                return marker
        return None


@dataclass(frozen=True, slots=True)
class IntermediateScreen:
    """A screen between the entry page and the credential form."""

    marker: PageMarker
    continue_with: Tuple[LocatorSpec, ...]

    @property
    def name(self) -> str:
        return self.marker.name


@dataclass(frozen=True)
class LoginProfile:
    """Everything the login flow knows about a site's markup."""

    consent_buttons: Tuple[LocatorSpec, ...] = ()
    intermediate_screens: Tuple[IntermediateScreen, ...] = ()
    identifier_fields: Tuple[LocatorSpec, ...] = ()
    secret_fields: Tuple[LocatorSpec, ...] = ()
    submit_buttons: Tuple[LocatorSpec, ...] = ()
    already_authenticated: MarkerSet = field(default_factory=MarkerSet)
    challenge: MarkerSet = field(default_factory=MarkerSet)
    two_factor: MarkerSet = field(default_factory=MarkerSet)
    invalid_credentials: MarkerSet = field(default_factory=MarkerSet)
    authenticated: MarkerSet = field(default_factory=MarkerSet)
    login_path_fragments: Tuple[str, ...] = ("/login", "/auth")

    def is_login_url(self, url: str) -> bool:
        path = url_path(url)
        return any(fragment in path for fragment in self.login_path_fragments)


css = LocatorSpec.css
role = LocatorSpec.role
text = LocatorSpec.text

CONSENT_BUTTONS = (
    css('[data-testid="cookie-consent-accept-all"]'),
    css("#onetrust-accept-btn-handler"),
    role("button", "Tout accepter"),
    role("button", "Accepter"),
    role("button", "Accept all"),
)

ACCOUNT_MARKERS = (
    css('[data-testid="header-avatar"]'),
    css('[data-testid*="avatar"]'),
    css('[data-testid="user-menu"]'),
    css('[class*="user-menu"]'),
)

INTERMEDIATE_SCREENS = (
    IntermediateScreen(
        marker=PageMarker(
            name="account-chooser",
            texts=("continuer avec google", "continuer avec apple", "continue with google", "continue with apple"),
        ),
        continue_with=(
            css('[data-testid="auth-select-type--login-email"]'),
            css('[data-testid*="login-email"]'),
            role("button", "e-mail"),
            role("link", "e-mail"),
            role("button", "email"),
            text("Continuer avec ton e-mail"),
        ),
    ),
    IntermediateScreen(
        marker=PageMarker(
            name="signup-offer",
            texts=("inscris-toi", "s'inscrire", "sign up", "tu as déjà un compte", "already have an account"),
        ),
        continue_with=(
            css('[data-testid="auth-select-type--register-switch"]'),
            css('[data-testid*="login-switch"]'),
            role("link", "Se connecter"),
            role("button", "Se connecter"),
            role("link", "Log in"),
        ),
    ),
)

IDENTIFIER_FIELDS = (
    css('input[name="email"]'),
    css('input[type="email"]'),
    css('input[name="username"]'),
    css('input[name="login"]'),
    css('input[id*="email" i]'),
    css('input[data-testid*="email" i]'),
    css('input[autocomplete="email"]'),
    css('input[autocomplete="username"]'),
    css('input[placeholder*="mail" i]'),
    css('input[placeholder*="adresse" i]'),
    css('input[aria-label*="mail" i]'),
    css('form input[type="text"]'),
)

SECRET_FIELDS = (
    css('input[type="password"]'),
    css('input[name="password"]'),
    css('input[id*="password" i]'),
    css('input[data-testid*="password" i]'),
    css('input[autocomplete="current-password"]'),
    css('input[placeholder*="mot de passe" i]'),
    css('input[placeholder*="password" i]'),
)

SUBMIT_BUTTONS = (
    css('button[type="submit"]'),
    css('form button:not([type="button"])'),
    role("button", "Se connecter"),
    role("button", "Connexion"),
    role("button", "Continuer"),
    css('[data-testid*="submit"]'),
    css('[data-testid*="login"]'),
)

CHALLENGE_MARKERS = (
    PageMarker(
        name="captcha-widget",
        selectors=(
            css('iframe[src*="recaptcha"]'),
            css('iframe[src*="hcaptcha"]'),
            css('iframe[src*="captcha-delivery"]'),
            css('iframe[src*="datadome"]'),
            css('iframe[src*="challenges.cloudflare.com"]'),
            css(".g-recaptcha"),
            css(".h-captcha"),
            css("#challenge-stage"),
            css('[class*="captcha" i]'),
            css('[id*="captcha" i]'),
        ),
    ),
    PageMarker(
        name="bot-check-text",
        texts=(
            "verify you are human",
            "vérifiez que vous êtes humain",
            "confirme que tu es humain",
            "checking your browser",
            "unusual activity",
            "activité inhabituelle",
        ),
    ),
)

TWO_FACTOR_MARKERS = (
    PageMarker(
        name="verification-code",
        texts=(
            "code de vérification",
            "code de confirmation",
            "saisis le code",
            "entrez le code",
            "verification code",
            "two-factor",
            "2fa",
            "enter the code",
        ),
        selectors=(
            css('input[autocomplete="one-time-code"]'),
            css('input[name*="verification_code" i]'),
        ),
    ),
)

INVALID_CREDENTIAL_MARKERS = (
    PageMarker(
        name="invalid-credentials-text",
        texts=(
            "identifiant ou mot de passe incorrect",
            "mot de passe incorrect",
            "e-mail ou mot de passe incorrect",
            "informations de connexion incorrectes",
            "invalid email or password",
            "incorrect password",
            "wrong password",
            "invalid credentials",
        ),
    ),
    PageMarker(
        name="error-region",
        selectors=(css('[role="alert"]'), css('form [class*="error" i]'), css('form [class*="alert" i]')),
    ),
)

ALREADY_AUTHENTICATED_MARKERS = (
    PageMarker(name="member-area", url_fragments=("/member",), selectors=ACCOUNT_MARKERS),
)

AUTHENTICATED_MARKERS = (
    PageMarker(
        name="account-ui",
        url_fragments=("/member",),
        selectors=ACCOUNT_MARKERS + (css('[data-testid*="logout"]'), css('a[href*="logout"]')),
    ),
)


def default_profile() -> LoginProfile:
    """Markers for the French marketplace login flow."""

    return LoginProfile(
        consent_buttons=CONSENT_BUTTONS,
        intermediate_screens=INTERMEDIATE_SCREENS,
        identifier_fields=IDENTIFIER_FIELDS,
        secret_fields=SECRET_FIELDS,
        submit_buttons=SUBMIT_BUTTONS,
        already_authenticated=MarkerSet(ALREADY_AUTHENTICATED_MARKERS),
        challenge=MarkerSet(CHALLENGE_MARKERS),
        two_factor=MarkerSet(TWO_FACTOR_MARKERS),
        invalid_credentials=MarkerSet(INVALID_CREDENTIAL_MARKERS),
        authenticated=MarkerSet(AUTHENTICATED_MARKERS),
    )


__all__ = [
    "IntermediateScreen",
    "LoginProfile",
    "MarkerSet",
    "PageMarker",
    "default_profile",
    "url_path",
    "visible_text",
]
