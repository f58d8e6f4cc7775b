"""Configuration for favorites sync runs."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

DUPLICATE_POLICIES = {"first", "reject"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Container for sync settings.

    Every component receives one of these at construction, so independent runs
    (and tests) never share configuration.
    """

    site_base_url: str = "https://www.vinted.fr"
    login_path: str = "/auth/login"
    favorites_page_path: str = "/member/items/favourites"
    cookie_domain_filter: str = "vinted"

    # Upstream JSON API
    current_user_endpoint: str = "/api/v2/users/current"
    favorites_endpoint: str = "/api/v2/users/{user_id}/items/favourites"
    item_endpoint: str = "/api/v2/items/{item_id}"
    page_size: int = 96
    max_pages: int = 50
    page_delay_seconds: float = 0.5
    request_timeout_seconds: float = 30.0
    duplicate_policy: str = "first"

    # Login flow
    navigator_max_steps: int = 4
    step_timeout_ms: int = 5000
    poll_interval_ms: int = 250
    post_submit_wait_ms: int = 5000
    submit_attempts: int = 3
    submit_retry_delay_seconds: float = 1.0
    keyboard_delay_ms: int = 50
    probe_favorites_page: bool = True

    # Item detail enrichment
    enrich_items: bool = False
    enrich_batch_size: int = 20
    enrich_batch_delay_seconds: float = 2.0
    enrich_max_retries: int = 2
    enrich_retry_base_seconds: float = 5.0

    # Backend
    backend_sync_path: str = "/sync"
    backend_timeout_seconds: float = 30.0

    # Browser
    browser_headless: bool = True
    browser_stealth_mode: bool = True
    browser_locale: str = "fr-FR"
    browser_timezone: str = "Europe/Paris"
    browser_timeout_ms: int = 30000

    diagnostics_dir: Optional[str] = None

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        if self.max_pages < 1:
            raise ValueError("max_pages must be at least 1")
        if self.navigator_max_steps < 1:
            raise ValueError("navigator_max_steps must be at least 1")
        if self.submit_attempts < 1:
            raise ValueError("submit_attempts must be at least 1")
        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise ValueError(
                f"duplicate_policy must be one of {sorted(DUPLICATE_POLICIES)}; got {self.duplicate_policy!r}"
            )
        self.site_base_url = self.site_base_url.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Build settings from ``FAVSYNC_*`` environment variables."""

        values = {
            "site_base_url": os.getenv("FAVSYNC_SITE_BASE_URL", cls.site_base_url),
            "cookie_domain_filter": os.getenv("FAVSYNC_COOKIE_DOMAIN", cls.cookie_domain_filter),
            "page_size": int(os.getenv("FAVSYNC_PAGE_SIZE", str(cls.page_size))),
            "max_pages": int(os.getenv("FAVSYNC_MAX_PAGES", str(cls.max_pages))),
            "page_delay_seconds": float(os.getenv("FAVSYNC_PAGE_DELAY", str(cls.page_delay_seconds))),
            "duplicate_policy": os.getenv("FAVSYNC_DUPLICATE_POLICY", cls.duplicate_policy),
            "navigator_max_steps": int(os.getenv("FAVSYNC_NAVIGATOR_MAX_STEPS", str(cls.navigator_max_steps))),
            "step_timeout_ms": int(os.getenv("FAVSYNC_STEP_TIMEOUT_MS", str(cls.step_timeout_ms))),
            "submit_attempts": int(os.getenv("FAVSYNC_SUBMIT_ATTEMPTS", str(cls.submit_attempts))),
            "enrich_items": _env_flag("FAVSYNC_ENRICH_ITEMS", default=cls.enrich_items),
            "backend_sync_path": os.getenv("FAVSYNC_BACKEND_SYNC_PATH", cls.backend_sync_path),
            "browser_headless": _env_flag("FAVSYNC_HEADLESS", default=cls.browser_headless),
            "browser_stealth_mode": _env_flag("FAVSYNC_STEALTH_MODE", default=cls.browser_stealth_mode),
            "browser_locale": os.getenv("FAVSYNC_LOCALE", cls.browser_locale),
            "diagnostics_dir": os.getenv("FAVSYNC_DIAGNOSTICS_DIR") or None,
        }
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown settings: {sorted(unknown)}")
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def site_host(self) -> str:
        return urlparse(self.site_base_url).netloc

    @property
    def login_url(self) -> str:
        return f"{self.site_base_url}{self.login_path}"

    @property
    def favorites_page_url(self) -> str:
        return f"{self.site_base_url}{self.favorites_page_path}"

    def api_url(self, path: str) -> str:
        return f"{self.site_base_url}{path}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings.from_env()
