"""End-to-end sync run: login, retrieve, dispatch.

Each stage can end the run with a typed failure. The caller always gets a
plain dict: ``{"success": True, "count": n, "capped": bool}`` or
``{"success": False, "error": message, "kind": kind}``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from ..auth.markers import LoginProfile
from ..auth.outcomes import ChallengeRequired, LoginOutcome
from ..auth.session import acquire_session
from ..errors import SyncError
from ..models import SessionArtifacts
from ..retrieval.enrichment import ItemEnricher
from ..retrieval.favorites import FavoritesRetriever
from ..settings import Settings
from .dispatcher import SyncDispatcher, normalize_backend_url

logger = logging.getLogger(__name__)

FAILURE_KINDS = {
    "invalid-credentials",
    "challenge-required",
    "auth-expired",
    "upstream-error",
    "backend-error",
    "unknown",
}


def failure(kind: str, error: str, **extra: Any) -> Dict[str, Any]:
    if kind not in FAILURE_KINDS:
        kind = "unknown"
    payload = {"success": False, "error": error, "kind": kind}
    payload.update(extra)
    return payload


def outcome_failure(outcome: LoginOutcome) -> Dict[str, Any]:
    if isinstance(outcome, ChallengeRequired):
        return failure(outcome.kind, outcome.message, challenge=outcome.challenge)
    return failure(outcome.kind, outcome.message)


async def sync_with_artifacts(
    artifacts: SessionArtifacts,
    backend_url: str,
    *,
    settings: Optional[Settings] = None,
    retriever_factory: Callable[..., FavoritesRetriever] = FavoritesRetriever,
    dispatcher_factory: Callable[..., SyncDispatcher] = SyncDispatcher,
) -> Dict[str, Any]:
    """Retrieve favorites with existing artifacts and dispatch them."""
    settings = settings or Settings()
    if not artifacts.has_cookies:
        return failure("auth-expired", "no session cookies available")

    try:
        async with retriever_factory(artifacts, settings) as retriever:
            user_id = await retriever.resolve_user_id()
            logger.info(f"Retrieving favorites for user {user_id}")
            result = await retriever.fetch_all(user_id)
            items = result.items
            # Upstream may have rotated tokens during retrieval
            artifacts = retriever.artifacts
            if settings.enrich_items and items:
                items = await ItemEnricher(retriever.client, retriever.headers, settings).enrich(items)

        dispatched = await dispatcher_factory(backend_url, settings).dispatch(items, artifacts)
    except SyncError as exc:
        logger.warning(f"Sync failed ({exc.kind}): {exc}")
        return failure(exc.kind, str(exc))

    return {"success": True, "count": dispatched.count, "capped": result.capped}


async def run_sync(
    identifier: str,
    secret: str,
    backend_url: str,
    *,
    settings: Optional[Settings] = None,
    profile: Optional[LoginProfile] = None,
    login: Callable[..., Any] = acquire_session,
    **factories: Any,
) -> Dict[str, Any]:
    """Log in with ``identifier``/``secret`` and sync favorites to ``backend_url``.

    Browser launch failures propagate; every other failure is reported in the
    returned dict without retrying. Challenge outcomes need a human and should
    not be retried immediately.
    """
    settings = settings or Settings()
    backend_url = normalize_backend_url(backend_url)
    outcome = await login(identifier, secret, settings=settings, profile=profile)
    if not outcome.ok:
        logger.warning(f"Login failed ({outcome.kind}): {outcome.message}")
        return outcome_failure(outcome)
    return await sync_with_artifacts(outcome.artifacts, backend_url, settings=settings, **factories)


__all__ = ["FAILURE_KINDS", "failure", "outcome_failure", "run_sync", "sync_with_artifacts"]
