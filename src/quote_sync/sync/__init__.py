"""Incremental quote synchronization engine."""

from .base import BaseOrchestrator, PassState
from .details import DetailSyncOrchestrator
from .market_hours import MarketHoursGate
from .orchestrator import QuoteIndex, SyncOrchestrator
from .reconciler import ReconcileResult, reconcile
from .results import SyncReport, UnitFailure, UnitResult
from .session import SyncSession, open_sync_session
from .tiers import TIERS_ASCENDING, default_start, select_window

__all__ = [
    "BaseOrchestrator",
    "DetailSyncOrchestrator",
    "MarketHoursGate",
    "PassState",
    "QuoteIndex",
    "ReconcileResult",
    "SyncOrchestrator",
    "SyncReport",
    "SyncSession",
    "TIERS_ASCENDING",
    "UnitFailure",
    "UnitResult",
    "default_start",
    "open_sync_session",
    "reconcile",
    "select_window",
]
