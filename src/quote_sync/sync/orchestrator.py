"""
Quote Sync Orchestrator
=======================

Keeps every opted-in company's quotes current. One pass:

    snapshot companies -> index stored quotes -> gate -> one unit per
    (company, action) -> drain as units finish -> aggregate failures

A day unit asks the tier selector how much history to request; a minute
unit fetches today's intraday series. Both reconcile against the quotes
indexed at the start of the pass.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from quote_sync.config.state import SyncConfig
from quote_sync.infrastructure.observability import get_sync_logger
from quote_sync.infrastructure.ports.system import IClock
from quote_sync.ingestion.ports.downloader import MarketDownloader
from quote_sync.shared.exceptions import EntityNotFoundError, InvalidArgumentError
from quote_sync.shared.models.entities import Company, CompanyDetails, QuotePoint
from quote_sync.shared.models.enums import Granularity, SyncAction, Tier
from quote_sync.storage.ports import QuoteStore
from quote_sync.sync.base import BaseOrchestrator, PassState
from quote_sync.sync.market_hours import MarketHoursGate
from quote_sync.sync.reconciler import ReconcileResult, reconcile
from quote_sync.sync.results import SyncReport, UnitResult
from quote_sync.sync.tiers import select_window

UNIT_NAMES = {SyncAction.FETCH_DAY: "day", SyncAction.FETCH_MINUTE: "minute"}


@dataclass
class QuoteIndex:
    """Newest stored dates and stored points of one company, built once per pass."""

    last_day: date | None = None
    last_minute: datetime | None = None
    points: dict[Granularity, list[QuotePoint]] = field(
        default_factory=lambda: {g: [] for g in Granularity}
    )

    @classmethod
    def from_quotes(cls, quotes: Sequence[QuotePoint]) -> QuoteIndex:
        index = cls()
        for quote in quotes:
            index.points[quote.granularity].append(quote)
            if quote.granularity is Granularity.DAY:
                day = quote.date.date()
                if index.last_day is None or day > index.last_day:
                    index.last_day = day
            elif index.last_minute is None or quote.date > index.last_minute:
                index.last_minute = quote.date
        return index


class SyncOrchestrator(BaseOrchestrator):
    """
    Coordinates incremental quote updates for all tracked companies.

    Responsibilities:
    - Decide per company what to fetch (gate + tier selection)
    - Run downloads concurrently, bounded by max_concurrency
    - Reconcile and persist each unit as soon as it completes
    - NOT responsible for: HTTP, retries, persistence details (injected)
    """

    def __init__(
        self,
        store: QuoteStore,
        downloader: MarketDownloader,
        clock: IClock,
        gate: MarketHoursGate | None = None,
        settings: SyncConfig | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            store: Company/quote store
            downloader: Market-data downloader
            clock: Source of the current exchange-local time
            gate: Market-hours gate; built from settings if omitted
            settings: Sync settings (market hours, lookback, concurrency)
        """
        self.settings = settings or SyncConfig()
        super().__init__(self.settings.max_concurrency, get_sync_logger("orchestrator"))
        self.store = store
        self.downloader = downloader
        self.clock = clock
        self.gate = gate or MarketHoursGate(
            self.settings.market_open, self.settings.market_close
        )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def sync_all_companies(self) -> SyncReport:
        """
        Update every company flagged for quote retrieval.

        Raises:
            SyncAggregateError: If any unit failed (after all units finished)
        """
        companies = self.store.list_companies(lambda c: c.retrieve_quotes_flag)
        report = await self.run_pass(companies)
        report.raise_for_failures()
        return report

    async def sync_company(
        self, key: int | str, since: date | datetime | None = None
    ) -> SyncReport:
        """
        Update one company regardless of its retrieval flag.

        Args:
            key: Company id or symbol
            since: Treat day history as known up to this date (tier override)

        Raises:
            InvalidArgumentError: Empty key or ``since`` in the future
            EntityNotFoundError: Unknown company
            SyncAggregateError: If a unit failed
        """
        if key is None or (isinstance(key, str) and not key.strip()):
            raise InvalidArgumentError("company key must not be empty")

        if since is not None:
            since_day = since.date() if isinstance(since, datetime) else since
            if since_day > self.clock.now().date():
                raise InvalidArgumentError(f"start date {since_day} is in the future")
        else:
            since_day = None

        company = self.store.find_company(key)
        if company is None:
            raise EntityNotFoundError(key)

        report = await self.run_pass([company], since=since_day)
        report.raise_for_failures()
        return report

    async def download_company(self, symbol: str) -> CompanyDetails:
        """
        Fetch provider details for ``symbol`` without touching the store.

        Raises:
            InvalidArgumentError: Empty symbol
            ProviderError: Downloader failure
        """
        if not symbol or not symbol.strip():
            raise InvalidArgumentError("symbol must not be empty")

        async with self._semaphore:
            return await self.downloader.fetch_details(symbol.strip().upper())

    async def run_pass(
        self, companies: Sequence[Company], since: date | None = None
    ) -> SyncReport:
        """
        Run one pass over ``companies`` and return its report without raising.

        Args:
            companies: Company snapshots (with quotes) to update
            since: Optional day-history override applied to every company
        """
        now = self.clock.now()
        report = SyncReport(started_at=now)
        self.state = PassState.COLLECTING

        units = []
        for company in companies:
            index = QuoteIndex.from_quotes(company.quotes)
            actions = self.gate.determine_actions(now, index.last_minute, index.last_day)
            if since is not None:
                actions = actions | {SyncAction.FETCH_DAY}
            for action in sorted(actions, key=lambda a: a.value):
                unit = UNIT_NAMES[action]
                work = self._run_unit(company, index, action, now, since)
                units.append((company.symbol, unit, work))

        self._log.info(
            "sync_pass_started", companies=len(companies), units=len(units), now=now.isoformat()
        )
        await self._drain(units, report)

        report.finished_at = self.clock.now()
        self.state = PassState.DONE
        self._log.info("sync_pass_completed", **report.to_dict())
        return report

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------

    async def _run_unit(
        self,
        company: Company,
        index: QuoteIndex,
        action: SyncAction,
        now: datetime,
        since: date | None,
    ) -> UnitResult[ReconcileResult]:
        unit = UNIT_NAMES[action]
        result: UnitResult[ReconcileResult] = UnitResult(
            symbol=company.symbol, company_id=company.id, unit=unit
        )
        try:
            async with self._semaphore:
                downloaded = await self._download(company.symbol, index, action, now, since)
            result.payload = reconcile(
                company.id, index.points[action.granularity], downloaded
            )
        except Exception as e:
            result.error = e
        return result

    async def _download(
        self,
        symbol: str,
        index: QuoteIndex,
        action: SyncAction,
        now: datetime,
        since: date | None,
    ) -> Sequence[QuotePoint]:
        if action is SyncAction.FETCH_MINUTE:
            return await self.downloader.fetch_intraday_minutes(symbol)

        last_known = since if since is not None else index.last_day
        tier = select_window(last_known, now, self.settings.default_lookback_months)
        if tier is Tier.PREVIOUS_DAY and self.gate.has_closed(now):
            # "previous" only serves yesterday's bar; today's comes from the chart
            tier = Tier.FIVE_DAYS
        self._log.debug("tier_selected", symbol=symbol, tier=tier.value, last_known=str(last_known))
        if tier is Tier.PREVIOUS_DAY:
            return [await self.downloader.fetch_previous_day(symbol)]
        return await self.downloader.fetch_window(symbol, tier)

    def _apply(self, result: UnitResult[ReconcileResult], report: SyncReport) -> None:
        changes = result.payload
        if changes is None or changes.is_empty:
            return

        added = self.store.add_quotes(changes.to_add)
        report.quotes_added += added
        updated = self.store.update_quotes(changes.to_update)
        report.quotes_updated += updated
        self._log.info(
            "quotes_applied",
            symbol=result.symbol,
            unit=result.unit,
            added=added,
            promoted=updated,
        )
