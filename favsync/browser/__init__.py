"""Playwright browser runtime for login sessions."""

from .automation import (
    BrowserAutomation,
    BrowserConfig,
    BrowserSession,
    browser_config_from_settings,
)
from .locator import LocatorSpec, locate

__all__ = [
    "BrowserAutomation",
    "BrowserConfig",
    "BrowserSession",
    "LocatorSpec",
    "browser_config_from_settings",
    "locate",
]
