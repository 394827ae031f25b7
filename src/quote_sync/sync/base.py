"""
Base Orchestrator
=================

Fan-out / any-of drain skeleton shared by the quote and detail orchestrators.

Lifecycle of one pass:
1. Collecting: subclass starts one asyncio task per unit of work
2. Draining: wait for whichever unit finishes next, apply it to the store
3. Done: report (and optionally raise) the collected failures

Units never raise; they return a UnitResult. Applying a result to the store
happens here, after the unit's await has completed, so no store write is
ever held across a downloader call.
"""

from __future__ import annotations

import asyncio
import enum
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Iterable
from typing import Any

import structlog

from quote_sync.sync.results import SyncReport, UnitFailure, UnitResult


class PassState(str, enum.Enum):
    """Orchestrator state for the current pass."""

    IDLE = "idle"
    COLLECTING = "collecting"
    DRAINING = "draining"
    DONE = "done"


class BaseOrchestrator(ABC):
    """
    Base class for sync orchestrators.

    Subclasses build units in ``run_pass`` and implement ``_apply`` to
    persist one successful unit.
    """

    def __init__(self, max_concurrency: int, log: structlog.stdlib.BoundLogger):
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._log = log
        self.state = PassState.IDLE

    async def _drain(
        self,
        units: Iterable[tuple[str, str, Awaitable[UnitResult[Any]]]],
        report: SyncReport,
    ) -> None:
        """
        Run units concurrently and handle each as soon as it completes.

        On cancellation the remaining units are cancelled and awaited;
        results already applied stay applied.
        """
        labels: dict[asyncio.Task[UnitResult[Any]], tuple[str, str]] = {}
        for symbol, unit, work in units:
            labels[asyncio.ensure_future(work)] = (symbol, unit)
        pending = set(labels)
        report.units_started = len(pending)
        self.state = PassState.DRAINING

        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    self._handle(task, labels[task], report)
        except asyncio.CancelledError:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            self._log.warning("sync_pass_cancelled", outstanding=len(pending))
            raise

    def _handle(
        self,
        task: asyncio.Task[UnitResult[Any]],
        label: tuple[str, str],
        report: SyncReport,
    ) -> None:
        if task.cancelled():
            symbol, unit = label
            report.failures.append(
                UnitFailure(symbol=symbol, unit=unit, error=asyncio.CancelledError())
            )
            return

        result = task.result()
        if not result.ok:
            report.failures.append(result.to_failure())
            self._log.warning(
                "unit_failed",
                symbol=result.symbol,
                unit=result.unit,
                error=f"{type(result.error).__name__}: {result.error}",
            )
            return

        try:
            self._apply(result, report)
        except Exception as e:
            # A rejected write only fails this unit
            report.failures.append(
                UnitFailure(symbol=result.symbol, unit=result.unit, error=e)
            )
            self._log.error(
                "unit_apply_failed", symbol=result.symbol, unit=result.unit, error=str(e)
            )
            return

        report.units_succeeded += 1

    @abstractmethod
    def _apply(self, result: UnitResult[Any], report: SyncReport) -> None:
        """Persist one successful unit and update the report counters."""
