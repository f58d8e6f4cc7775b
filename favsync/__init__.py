"""Keep a personal catalog of marketplace favorites in sync."""

from .auth import (
    ChallengeRequired,
    InvalidCredentials,
    LoginOutcome,
    Success,
    UnknownFailure,
    acquire_session,
)
from .errors import AuthExpired, BackendError, NavigatorFailure, SyncError, UpstreamError
from .models import CookieRecord, DispatchResult, FavoriteItem, RetrievalResult, SessionArtifacts
from .settings import Settings, get_settings
from .sync import run_sync, sync_with_artifacts

__version__ = "0.1.0"

__all__ = [
    "AuthExpired",
    "BackendError",
    "ChallengeRequired",
    "CookieRecord",
    "DispatchResult",
    "FavoriteItem",
    "InvalidCredentials",
    "LoginOutcome",
    "NavigatorFailure",
    "RetrievalResult",
    "SessionArtifacts",
    "Settings",
    "Success",
    "SyncError",
    "UnknownFailure",
    "UpstreamError",
    "acquire_session",
    "get_settings",
    "run_sync",
    "sync_with_artifacts",
]
