"""
Tests for SyncOrchestrator.

Covers the full pass (gate -> tier -> download -> reconcile -> store),
per-unit failure isolation, the single-company entry points, the
concurrency bound and cancellation.
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from quote_sync.config.state import SyncConfig
from quote_sync.shared.exceptions import (
    EntityNotFoundError,
    InvalidArgumentError,
    ServerError,
    StoreIntegrityError,
    SymbolNotFoundError,
    SyncAggregateError,
)
from quote_sync.shared.models.entities import Company, CompanyDetails, QuotePoint
from quote_sync.shared.models.enums import Granularity, Tier
from quote_sync.storage.memory import InMemoryQuoteStore
from quote_sync.sync.base import PassState
from quote_sync.sync.orchestrator import QuoteIndex, SyncOrchestrator

# ============================================================================
# HELPERS
# ============================================================================


def day_quote(d: date, close="100.0", valid=True) -> QuotePoint:
    return QuotePoint(
        date=datetime(d.year, d.month, d.day),
        granularity=Granularity.DAY,
        open=Decimal("99.0") if valid else None,
        high=Decimal("101.0") if valid else None,
        low=Decimal("98.0") if valid else None,
        close=Decimal(close),
        volume=5000 if valid else None,
        is_valid=valid,
    )


def minute_quote(stamp: datetime, close="100.0") -> QuotePoint:
    return QuotePoint(
        date=stamp,
        granularity=Granularity.MINUTE,
        open=Decimal(close),
        high=Decimal(close),
        low=Decimal(close),
        close=Decimal(close),
        volume=10,
    )


def days_between(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def add_company(store, symbol, quotes=(), retrieve=True) -> Company:
    return store.add_company(
        Company(symbol=symbol, retrieve_quotes_flag=retrieve, quotes=list(quotes))
    )


def day_quotes(store, company) -> list[QuotePoint]:
    return [q for q in store.quotes_for(company.id) if q.granularity is Granularity.DAY]


@pytest.fixture
def orchestrator(store, downloader, clock):
    return SyncOrchestrator(store, downloader, clock)


# ============================================================================
# QUOTE INDEX
# ============================================================================


def test_quote_index_tracks_newest_dates_per_granularity():
    quotes = [
        day_quote(date(2024, 3, 11)),
        day_quote(date(2024, 3, 12)),
        minute_quote(datetime(2024, 3, 13, 11, 58)),
        minute_quote(datetime(2024, 3, 13, 11, 59)),
    ]

    index = QuoteIndex.from_quotes(quotes)

    assert index.last_day == date(2024, 3, 12)
    assert index.last_minute == datetime(2024, 3, 13, 11, 59)
    assert len(index.points[Granularity.DAY]) == 2
    assert len(index.points[Granularity.MINUTE]) == 2


def test_quote_index_empty():
    index = QuoteIndex.from_quotes([])
    assert index.last_day is None
    assert index.last_minute is None


# ============================================================================
# FULL PASS
# ============================================================================


class TestSyncAllCompanies:
    @pytest.mark.asyncio
    async def test_empty_history_downloads_one_month(self, orchestrator, store, downloader):
        company = add_company(store, "AAPL")
        month = days_between(date(2024, 2, 13), date(2024, 3, 12))
        downloader.windows["AAPL"] = [day_quote(d) for d in month]

        report = await orchestrator.sync_all_companies()

        assert ("fetch_window", "AAPL", Tier.ONE_MONTH) in downloader.calls
        stored = day_quotes(store, company)
        assert [q.date.date() for q in stored] == month
        assert len({q.date for q in stored}) == len(stored)
        assert report.quotes_added == len(month)
        assert not report.has_failures
        assert orchestrator.state is PassState.DONE

    @pytest.mark.asyncio
    async def test_second_pass_adds_no_duplicates(self, orchestrator, store, downloader):
        company = add_company(store, "AAPL")
        month = days_between(date(2024, 2, 13), date(2024, 3, 12))
        downloader.windows["AAPL"] = [day_quote(d) for d in month]

        await orchestrator.sync_all_companies()
        report = await orchestrator.sync_all_companies()

        assert len(day_quotes(store, company)) == len(month)
        assert report.quotes_added == 0

    @pytest.mark.asyncio
    async def test_partial_failure_isolated_to_one_company(self, orchestrator, store, downloader):
        a = add_company(store, "A")
        b = add_company(store, "B")
        c = add_company(store, "C")
        for symbol in ("A", "C"):
            downloader.windows[symbol] = [day_quote(date(2024, 3, 12))]
            downloader.minutes[symbol] = [minute_quote(datetime(2024, 3, 13, 11, 59))]
        downloader.errors[("B", "fetch_window")] = ServerError("upstream down")
        downloader.errors[("B", "fetch_intraday_minutes")] = ServerError("upstream down")

        with pytest.raises(SyncAggregateError) as exc_info:
            await orchestrator.sync_all_companies()

        error = exc_info.value
        assert error.symbols == ["B"]
        assert {f.unit for f in error.failures} == {"day", "minute"}
        assert "B/day" in str(error)
        assert "A/" not in str(error) and "C/" not in str(error)

        assert len(store.quotes_for(a.id)) == 2
        assert len(store.quotes_for(c.id)) == 2
        assert store.quotes_for(b.id) == []

    @pytest.mark.asyncio
    async def test_run_pass_reports_without_raising(self, orchestrator, store, downloader):
        add_company(store, "A")
        downloader.errors[("A", "fetch_window")] = SymbolNotFoundError("unknown")

        report = await orchestrator.run_pass(store.list_companies())

        assert report.units_started == 2
        assert report.units_succeeded == 1
        assert report.units_failed == 1
        assert isinstance(report.failures[0].error, SymbolNotFoundError)
        assert report.to_dict()["failed_symbols"] == ["A"]

    @pytest.mark.asyncio
    async def test_skips_companies_not_flagged(self, orchestrator, store, downloader):
        add_company(store, "AAPL")
        add_company(store, "MSFT", retrieve=False)

        await orchestrator.sync_all_companies()

        assert downloader.methods_called("MSFT") == []
        assert downloader.methods_called("AAPL")

    @pytest.mark.asyncio
    async def test_noon_fetches_only_minutes_when_day_series_current(
        self, orchestrator, store, downloader
    ):
        company = add_company(
            store,
            "AAPL",
            quotes=[
                day_quote(date(2024, 3, 12)),
                minute_quote(datetime(2024, 3, 13, 11, 59)),
            ],
        )
        downloader.minutes["AAPL"] = [
            minute_quote(datetime(2024, 3, 13, 11, 59)),
            minute_quote(datetime(2024, 3, 13, 12, 0)),
        ]

        report = await orchestrator.sync_all_companies()

        assert downloader.methods_called("AAPL") == ["fetch_intraday_minutes"]
        assert report.quotes_added == 1
        assert len(store.quotes_for(company.id)) == 3

    @pytest.mark.asyncio
    async def test_evening_stores_todays_day_bar(self, orchestrator, store, downloader, clock):
        clock.set(datetime(2024, 3, 13, 18, 0))
        company = add_company(
            store,
            "AAPL",
            quotes=[
                day_quote(date(2024, 3, 12)),
                minute_quote(datetime(2024, 3, 13, 15, 59)),
            ],
        )
        downloader.previous["AAPL"] = day_quote(date(2024, 3, 12))
        downloader.windows["AAPL"] = [day_quote(date(2024, 3, 12)), day_quote(date(2024, 3, 13))]

        report = await orchestrator.sync_all_companies()

        assert downloader.calls == [("fetch_window", "AAPL", Tier.FIVE_DAYS)]
        assert report.quotes_added == 1
        assert [q.date.date() for q in day_quotes(store, company)] == [
            date(2024, 3, 12),
            date(2024, 3, 13),
        ]

        downloader.calls.clear()
        await orchestrator.sync_all_companies()
        assert downloader.calls == []

    @pytest.mark.asyncio
    async def test_previous_day_endpoint_before_open(self, orchestrator, store, downloader, clock):
        clock.set(datetime(2024, 3, 13, 8, 0))
        company = add_company(store, "AAPL")
        downloader.previous["AAPL"] = day_quote(date(2024, 3, 12))

        await orchestrator.sync_company("AAPL", since=date(2024, 3, 12))

        assert downloader.calls == [("fetch_previous_day", "AAPL", None)]
        assert [q.date.date() for q in day_quotes(store, company)] == [date(2024, 3, 12)]

    @pytest.mark.asyncio
    async def test_adds_counted_when_promotion_write_fails(self, clock, downloader):
        class FailingUpdateStore(InMemoryQuoteStore):
            def update_quotes(self, quotes):
                raise StoreIntegrityError("update rejected")

        store = FailingUpdateStore(clock=clock.now)
        clock.set(datetime(2024, 3, 13, 8, 0))
        company = add_company(store, "AAPL", quotes=[day_quote(date(2024, 3, 11), valid=False)])
        downloader.windows["AAPL"] = [day_quote(date(2024, 3, 11)), day_quote(date(2024, 3, 12))]

        report = await SyncOrchestrator(store, downloader, clock).run_pass(
            store.list_companies()
        )

        assert report.quotes_added == 1
        assert report.quotes_updated == 0
        assert [f.symbol for f in report.failures] == ["AAPL"]
        assert isinstance(report.failures[0].error, StoreIntegrityError)
        assert len(day_quotes(store, company)) == 2


    @pytest.mark.asyncio
    async def test_invalid_stored_point_is_promoted(self, orchestrator, store, downloader, clock):
        clock.set(datetime(2024, 3, 13, 8, 0))
        company = add_company(store, "AAPL", quotes=[day_quote(date(2024, 3, 11), valid=False)])
        downloader.windows["AAPL"] = [
            day_quote(date(2024, 3, 11), close="101.5"),
            day_quote(date(2024, 3, 12)),
        ]

        report = await orchestrator.sync_all_companies()

        assert downloader.calls == [("fetch_window", "AAPL", Tier.FIVE_DAYS)]
        assert report.quotes_updated == 1
        assert report.quotes_added == 1
        stored = day_quotes(store, company)
        assert all(q.is_valid for q in stored)
        assert stored[0].close == Decimal("101.5")

    @pytest.mark.asyncio
    async def test_rejected_write_fails_only_that_unit(self, clock, downloader):
        class RejectingStore(InMemoryQuoteStore):
            def add_quotes(self, quotes):
                if any(q.company_id == rejected.id for q in quotes):
                    raise StoreIntegrityError("constraint violated")
                return super().add_quotes(quotes)

        store = RejectingStore(clock=clock.now)
        clock.set(datetime(2024, 3, 13, 8, 0))
        kept = add_company(store, "KEEP")
        rejected = add_company(store, "DROP")
        for symbol in ("KEEP", "DROP"):
            downloader.windows[symbol] = [day_quote(date(2024, 3, 12))]

        report = await SyncOrchestrator(store, downloader, clock).run_pass(
            store.list_companies()
        )

        assert [f.symbol for f in report.failures] == ["DROP"]
        assert isinstance(report.failures[0].error, StoreIntegrityError)
        assert len(store.quotes_for(kept.id)) == 1

    @pytest.mark.asyncio
    async def test_concurrent_downloads_are_bounded(self, store, downloader, clock):
        clock.set(datetime(2024, 3, 13, 8, 0))
        for i in range(6):
            add_company(store, f"SYM{i}")

        inflight = 0
        peak = 0
        fetch_window = downloader.fetch_window

        async def counting_fetch_window(symbol, tier):
            nonlocal inflight, peak
            inflight += 1
            peak = max(peak, inflight)
            await asyncio.sleep(0.01)
            inflight -= 1
            return await fetch_window(symbol, tier)

        downloader.fetch_window = counting_fetch_window
        orchestrator = SyncOrchestrator(
            store, downloader, clock, settings=SyncConfig(max_concurrency=2)
        )

        report = await orchestrator.sync_all_companies()

        assert report.units_succeeded == 6
        assert peak == 2

    @pytest.mark.asyncio
    async def test_cancellation_keeps_applied_writes(self, orchestrator, store, downloader, clock):
        clock.set(datetime(2024, 3, 13, 8, 0))
        fast = add_company(store, "FAST")
        slow = add_company(store, "SLOW")
        downloader.windows["FAST"] = [day_quote(date(2024, 3, 12))]
        downloader.windows["SLOW"] = [day_quote(date(2024, 3, 12))]
        downloader.blockers["SLOW"] = asyncio.Event()

        task = asyncio.create_task(orchestrator.sync_all_companies())
        for _ in range(100):
            await asyncio.sleep(0)
            if store.quotes_for(fast.id):
                break
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(store.quotes_for(fast.id)) == 1
        assert store.quotes_for(slow.id) == []


# ============================================================================
# SINGLE COMPANY
# ============================================================================


class TestSyncCompany:
    @pytest.mark.asyncio
    async def test_by_symbol_ignores_retrieve_flag(self, orchestrator, store, downloader):
        company = add_company(store, "MSFT", retrieve=False)
        downloader.windows["MSFT"] = [day_quote(date(2024, 3, 12))]

        report = await orchestrator.sync_company("msft")

        assert report.quotes_added == 1
        assert len(day_quotes(store, company)) == 1

    @pytest.mark.asyncio
    async def test_by_id(self, orchestrator, store, downloader):
        company = add_company(store, "MSFT")
        await orchestrator.sync_company(company.id)
        assert downloader.methods_called("MSFT")

    @pytest.mark.asyncio
    async def test_since_overrides_stored_history(self, orchestrator, store, downloader, clock):
        clock.set(datetime(2024, 3, 13, 8, 0))
        add_company(store, "MSFT", quotes=[day_quote(date(2024, 3, 12))])

        await orchestrator.sync_company("MSFT", since=date(2023, 1, 1))

        assert downloader.calls == [("fetch_window", "MSFT", Tier.TWO_YEARS)]

    @pytest.mark.asyncio
    async def test_unknown_company(self, orchestrator):
        with pytest.raises(EntityNotFoundError) as exc_info:
            await orchestrator.sync_company("NOPE")
        assert "NOPE" in str(exc_info.value)

        with pytest.raises(EntityNotFoundError):
            await orchestrator.sync_company(999)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "   ", None])
    async def test_empty_key(self, orchestrator, key):
        with pytest.raises(InvalidArgumentError):
            await orchestrator.sync_company(key)

    @pytest.mark.asyncio
    async def test_future_since(self, orchestrator, store, downloader):
        add_company(store, "MSFT")

        with pytest.raises(InvalidArgumentError):
            await orchestrator.sync_company("MSFT", since=date(2024, 3, 14))
        assert downloader.calls == []

    @pytest.mark.asyncio
    async def test_failure_is_raised_as_aggregate(self, orchestrator, store, downloader):
        add_company(store, "MSFT")
        downloader.errors[("MSFT", "fetch_window")] = ServerError("boom")

        with pytest.raises(SyncAggregateError) as exc_info:
            await orchestrator.sync_company("MSFT")
        assert exc_info.value.symbols == ["MSFT"]


class TestDownloadCompany:
    @pytest.mark.asyncio
    async def test_returns_details_without_storing(self, orchestrator, store, downloader):
        downloader.details["TSLA"] = CompanyDetails(symbol="TSLA", name="Tesla Inc")

        details = await orchestrator.download_company(" tsla ")

        assert details.name == "Tesla Inc"
        assert store.list_companies() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("symbol", ["", "  ", None])
    async def test_empty_symbol(self, orchestrator, downloader, symbol):
        with pytest.raises(InvalidArgumentError):
            await orchestrator.download_company(symbol)
        assert downloader.calls == []
