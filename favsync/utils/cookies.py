"""Read and write session artifacts as JSON files.

Used by the CLI to split login and retrieval into separate invocations. The
loader also accepts a bare list of cookies or a Playwright ``storageState``
document, so cookies exported from a real browser can be reused.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Union

from ..models import CookieRecord, SessionArtifacts, dedupe_cookies


def cookies_from_payload(entries: Iterable[Any]) -> List[CookieRecord]:
    records = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Cookie entries must be objects; got {type(entry).__name__}")
        records.append(CookieRecord.from_dict(entry))
    return records


def load_artifacts(path: Union[str, Path]) -> SessionArtifacts:
    resolved = Path(path)
    with resolved.open("r", encoding="utf-8") as fh:
        data = json.load(fh)

    if isinstance(data, list):
        return SessionArtifacts(cookies=dedupe_cookies(cookies_from_payload(data)))
    if not isinstance(data, dict):
        raise ValueError("Artifact file must hold a cookie list or an object with a 'cookies' key")

    return SessionArtifacts(
        cookies=dedupe_cookies(cookies_from_payload(data.get("cookies", []))),
        csrf_token=data.get("csrfToken") or None,
        anonymous_id=data.get("anonymousId") or None,
    )


def save_artifacts(artifacts: SessionArtifacts, path: Union[str, Path]) -> Path:
    """Persist artifacts; the file holds live session cookies."""

    resolved = Path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    with resolved.open("w", encoding="utf-8") as fh:
        json.dump(artifacts.to_dict(), fh, indent=2, sort_keys=True)
    resolved.chmod(0o600)
    return resolved


__all__ = ["cookies_from_payload", "load_artifacts", "save_artifacts"]
