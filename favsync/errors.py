"""Typed failures raised by the retrieval and dispatch stages."""
from __future__ import annotations

from typing import Any, Dict, Optional


class SyncError(RuntimeError):
    """Base class for failures that end a sync run.

    ``kind`` is the stable identifier reported to callers of the pipeline.
    """

    kind = "unknown"

    def __init__(self, message: str, *, recoverable: bool = False, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.recoverable = recoverable
        self.data = data or {}


class NavigatorFailure(SyncError):
    """Raised when the credential form never became visible."""

    def __init__(self, diagnostic: str = "credential form not reached", **kwargs: Any) -> None:
        super().__init__(diagnostic, **kwargs)
        self.diagnostic = diagnostic


class AuthExpired(SyncError):
    """The upstream API rejected the session artifacts (HTTP 401)."""

    kind = "auth-expired"


class UpstreamError(SyncError):
    kind = "upstream-error"

    def __init__(self, status: Optional[int], message: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message or f"upstream returned HTTP {status}", **kwargs)
        self.status = status


class DuplicateItemError(SyncError):
    """Raised under the ``reject`` duplicate policy."""

    kind = "upstream-error"

    def __init__(self, external_id: str, page_number: int) -> None:
        super().__init__(f"item {external_id} returned twice (again on page {page_number})")
        self.external_id = external_id
        self.page_number = page_number


class BackendError(SyncError):
    kind = "backend-error"

    def __init__(self, status: Optional[int], body: str = "", **kwargs: Any) -> None:
        detail = body.strip()[:200] if body else ""
        message = f"backend returned HTTP {status}" if status is not None else "backend unreachable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, **kwargs)
        self.status = status
        self.body = body


__all__ = [
    "AuthExpired",
    "BackendError",
    "DuplicateItemError",
    "NavigatorFailure",
    "SyncError",
    "UpstreamError",
]
