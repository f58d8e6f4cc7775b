"""Chromium launch arguments and context defaults for login sessions."""
from __future__ import annotations

import platform as _platform
from dataclasses import dataclass
from typing import Dict, List, Optional

# Platform-matched user agents; a UA that disagrees with navigator.platform
# is an easy automation signal.
LINUX_USER_AGENTS = [
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
]

WINDOWS_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
]

MACOS_USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
]

_system = _platform.system()
if _system == "Windows":
    USER_AGENT_POOL = WINDOWS_USER_AGENTS
elif _system == "Darwin":
    USER_AGENT_POOL = MACOS_USER_AGENTS
else:
    USER_AGENT_POOL = LINUX_USER_AGENTS

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}


@dataclass(frozen=True)
class ChromeArgs:
    """Immutable container for Chromium launch arguments."""

    BASE_ARGS: tuple[str, ...] = (
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--window-size=1920,1080",
    )

    STEALTH_ARGS: tuple[str, ...] = (
        "--disable-blink-features=AutomationControlled",
        "--disable-infobars",
        "--no-first-run",
        "--no-default-browser-check",
        "--password-store=basic",
        "--use-mock-keychain",
    )

    def build_args(self, *, stealth_mode: bool = True, extra_args: Optional[List[str]] = None) -> List[str]:
        args = list(self.BASE_ARGS)
        if stealth_mode:
            args.extend(self.STEALTH_ARGS)
        if extra_args:
            args.extend(extra_args)
        return args


_chrome_args = ChromeArgs()


def get_chrome_args(*, stealth_mode: bool = True, extra_args: Optional[List[str]] = None) -> List[str]:
    """Get Chromium launch arguments."""
    return _chrome_args.build_args(stealth_mode=stealth_mode, extra_args=extra_args)


# Hides the most common automation fingerprints before any page script runs.
STEALTH_INIT_SCRIPT = """
    Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
    window.chrome = window.chrome || { runtime: {}, app: {} };
    Object.defineProperty(navigator, 'languages', { get: () => ['fr-FR', 'fr', 'en-US', 'en'] });
"""


def get_context_options(
    *,
    viewport: Optional[Dict[str, int]] = None,
    user_agent: Optional[str] = None,
    locale: str = "fr-FR",
    timezone_id: str = "Europe/Paris",
    stealth_mode: bool = True,
) -> Dict:
    """Get browser context options for a login session.

    Args:
        viewport: Viewport size (default: 1920x1080)
        user_agent: User agent string (default: platform-appropriate Chrome)
        locale: Browser locale, also used for the Accept-Language header
        timezone_id: Timezone reported to pages
        stealth_mode: Apply a consistent desktop fingerprint

    Returns:
        Dictionary of keyword arguments for ``browser.new_context()``
    """
    options = {
        "viewport": viewport or dict(DEFAULT_VIEWPORT),
        "user_agent": user_agent or USER_AGENT_POOL[0],
        "locale": locale,
        "timezone_id": timezone_id,
    }
    if stealth_mode:
        language = locale.split("-")[0]
        options.update({
            "color_scheme": "light",
            "device_scale_factor": 1,
            "has_touch": False,
            "is_mobile": False,
            "extra_http_headers": {"Accept-Language": f"{locale},{language};q=0.9,en;q=0.8"},
        })
    return options


__all__ = [
    "DEFAULT_VIEWPORT",
    "STEALTH_INIT_SCRIPT",
    "USER_AGENT_POOL",
    "ChromeArgs",
    "get_chrome_args",
    "get_context_options",
]
