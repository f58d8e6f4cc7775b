"""Failure screenshots and page metadata for debugging login runs."""
from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from playwright.async_api import Error as PlaywrightError

logger = logging.getLogger(__name__)


class DiagnosticsStore:
    """Per-run directory of screenshots and JSON metadata.

    Captures are a side channel: any failure is logged and swallowed so it
    never changes the outcome of a run.
    """

    _UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")

    def __init__(self, base_dir: Union[str, Path], run_id: Optional[str] = None):
        self.run_id = run_id or datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S") + "-" + uuid.uuid4().hex[:6]
        self.run_dir = Path(base_dir) / self._sanitize(self.run_id)

    @classmethod
    def _sanitize(cls, value: str) -> str:
        return cls._UNSAFE_RE.sub("_", value).strip("._") or "run"

    async def capture(self, page: Any, label: str, details: Optional[Dict[str, Any]] = None) -> Optional[Path]:
        """Save a full-page screenshot plus metadata; return the screenshot path."""
        name = self._sanitize(label)
        screenshot_path = self.run_dir / f"{name}.png"
        try:
            self.run_dir.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(screenshot_path), full_page=True)
        except (PlaywrightError, OSError) as exc:
            logger.warning(f"Could not capture diagnostic screenshot '{label}': {exc}")
            return None

        metadata = {
            "label": label,
            "url": getattr(page, "url", None),
            "captured_at": datetime.now(timezone.utc).isoformat(),
            "details": details or {},
        }
        try:
            (self.run_dir / f"{name}.json").write_text(json.dumps(metadata, indent=2, default=str), encoding="utf-8")
        except OSError as exc:
            logger.warning(f"Could not write diagnostic metadata '{label}': {exc}")
        logger.info(f"Saved diagnostic screenshot to {screenshot_path}")
        return screenshot_path


__all__ = ["DiagnosticsStore"]
