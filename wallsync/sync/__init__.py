"""Catalog synchronization across content providers."""

from wallsync.sync.orchestrator import (
    SyncOrchestrator,
    close_sync_orchestrator,
    get_sync_orchestrator,
    perform_sync,
)
from wallsync.sync.results import ProviderOutcome, SyncError, SyncResult, SyncSuccess

__all__ = [
    "SyncOrchestrator",
    "get_sync_orchestrator",
    "perform_sync",
    "close_sync_orchestrator",
    "SyncSuccess",
    "SyncError",
    "SyncResult",
    "ProviderOutcome",
]
