"""
Company detail refresh.

Companies flagged with ``download_details_flag`` get their descriptive
fields (name, exchange, industry, ...) overwritten from the provider, after
which the flag is cleared so the next pass skips them.
"""

from __future__ import annotations

from collections.abc import Sequence

from quote_sync.config.state import SyncConfig
from quote_sync.infrastructure.impls.system import SystemClock
from quote_sync.infrastructure.observability import get_sync_logger
from quote_sync.infrastructure.ports.system import IClock
from quote_sync.ingestion.ports.downloader import MarketDownloader
from quote_sync.shared.models.entities import Company
from quote_sync.storage.ports import QuoteStore
from quote_sync.sync.base import BaseOrchestrator, PassState
from quote_sync.sync.results import SyncReport, UnitResult


class DetailSyncOrchestrator(BaseOrchestrator):
    """Refreshes descriptive fields of every company flagged for it."""

    def __init__(
        self,
        store: QuoteStore,
        downloader: MarketDownloader,
        settings: SyncConfig | None = None,
        clock: IClock | None = None,
    ):
        self.settings = settings or SyncConfig()
        super().__init__(self.settings.max_concurrency, get_sync_logger("details"))
        self.store = store
        self.downloader = downloader
        self.clock = clock or SystemClock(self.settings.timezone)

    async def sync_all_details(self) -> SyncReport:
        """
        Refresh every company with ``download_details_flag`` set.

        Raises:
            SyncAggregateError: If any company failed to refresh
        """
        companies = self.store.list_companies(lambda c: c.download_details_flag)
        report = await self.run_pass(companies)
        report.raise_for_failures()
        return report

    async def run_pass(self, companies: Sequence[Company]) -> SyncReport:
        """Refresh ``companies`` and return the report without raising."""
        report = SyncReport(started_at=self.clock.now())
        self.state = PassState.COLLECTING

        units = [(c.symbol, "details", self._run_unit(c)) for c in companies]
        self._log.info("details_pass_started", companies=len(units))
        await self._drain(units, report)

        report.finished_at = self.clock.now()
        self.state = PassState.DONE
        self._log.info("details_pass_completed", **report.to_dict())
        return report

    async def _run_unit(self, company: Company) -> UnitResult[Company]:
        result: UnitResult[Company] = UnitResult(
            symbol=company.symbol, company_id=company.id, unit="details"
        )
        try:
            async with self._semaphore:
                details = await self.downloader.fetch_details(company.symbol)
            updated = company.model_copy(deep=True)
            updated.apply_details(details)
            updated.download_details_flag = False
            result.payload = updated
        except Exception as e:
            result.error = e
        return result

    def _apply(self, result: UnitResult[Company], report: SyncReport) -> None:
        self.store.update_company(result.payload)
        report.companies_updated += 1
        self._log.info("company_details_updated", symbol=result.symbol)
