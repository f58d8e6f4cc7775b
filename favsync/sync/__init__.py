"""Backend dispatch and the end-to-end sync pipeline."""

from .dispatcher import SyncDispatcher, dispatch
from .pipeline import run_sync, sync_with_artifacts

__all__ = ["SyncDispatcher", "dispatch", "run_sync", "sync_with_artifacts"]
