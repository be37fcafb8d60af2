from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

import httpx

from remates.config import settings
from remates.ingestion.sources import AuctionSource, CurrencySource, DolarApiSource, default_sources
from remates.market import apply_currency_snapshot
from remates.merge import MergeResult, merge_auctions
from remates.models import AuctionRecord, CurrencySnapshot, RunSummary
from remates.storage import AuctionStore, JsonAuctionStore, JsonMarketStore, MarketStore

logger = logging.getLogger(__name__)


@dataclass
class ScrapeResult:
    """Everything gathered from the network in one run."""

    records_by_source: Dict[str, List[AuctionRecord]] = field(default_factory=dict)
    owned_slugs: Set[str] = field(default_factory=set)
    failed_sources: List[str] = field(default_factory=list)
    currency: Optional[CurrencySnapshot] = None

    @property
    def records(self) -> List[AuctionRecord]:
        return [record for records in self.records_by_source.values() for record in records]


class ScrapePipeline:
    """Scrapes every source concurrently, merges the feed and refreshes USD rates."""

    def __init__(
        self,
        auction_store: AuctionStore,
        market_store: MarketStore,
        sources: Iterable[AuctionSource],
        currency_source: CurrencySource,
        request_timeout_seconds: float,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.auction_store = auction_store
        self.market_store = market_store
        self.sources = list(sources)
        self.currency_source = currency_source
        self.request_timeout_seconds = request_timeout_seconds
        self.user_agent = user_agent
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.request_timeout_seconds),
            follow_redirects=True,
            headers=headers,
            transport=self.transport,
        )

    async def _fetch_single(
        self, client: httpx.AsyncClient, source: AuctionSource, today: str
    ) -> Tuple[str, List[AuctionRecord], Optional[str]]:
        try:
            records = await asyncio.wait_for(source.fetch(client, today), timeout=self.request_timeout_seconds)
            return (source.name, records, None)
        except asyncio.TimeoutError:
            logger.warning("%s timed out after %ss", source.name, self.request_timeout_seconds)
            return (source.name, [], "timeout")
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error fetching from %s", source.name)
            return (source.name, [], str(exc))

    async def _fetch_currency(self, client: httpx.AsyncClient) -> Optional[CurrencySnapshot]:
        try:
            return await self.currency_source.fetch(client)
        except Exception:  # noqa: BLE001
            logger.exception("Error fetching from %s", self.currency_source.name)
        return None

    async def collect(self, today: str) -> ScrapeResult:
        """Run all sources at once; a failing source contributes nothing.

        ``today`` is the run date the sources use to skip past auctions.
        """
        async with self._client() as client:
            results, currency = await asyncio.gather(
                asyncio.gather(*(self._fetch_single(client, src, today) for src in self.sources)),
                self._fetch_currency(client),
            )

        scrape = ScrapeResult(currency=currency)
        for source, (source_name, records, error) in zip(self.sources, results):
            scrape.records_by_source[source_name] = records
            scrape.owned_slugs |= source.owned_slugs(records)
            if error:
                scrape.failed_sources.append(f"{source_name}: {error}")
        return scrape

    def merge_and_save(
        self, scraped: List[AuctionRecord], owned_slugs: Set[str], today: str, dry_run: bool
    ) -> Tuple[int, MergeResult]:
        existing = self.auction_store.load()
        logger.info("Existing: %s auctions", len(existing))
        result = merge_auctions(scraped, existing, owned_slugs, today)
        if not dry_run:
            self.auction_store.save(result.records)
        return len(existing), result

    def update_market(self, currency: Optional[CurrencySnapshot], today: str, dry_run: bool) -> List[str]:
        if currency is None:
            logger.warning("No USD rates fetched, market snapshot left untouched")
            return []
        snapshot, changed = apply_currency_snapshot(self.market_store.load(), currency, today)
        if changed and not dry_run:
            self.market_store.save(snapshot)
        logger.info(
            "Updated USD: blue=$%s, oficial=$%s",
            currency.blue.venta if currency.blue else "?",
            currency.oficial.venta if currency.oficial else "?",
        )
        return changed

    async def run_once(self, today: Optional[date] = None, dry_run: bool = False) -> RunSummary:
        """Scrape, merge and persist both artefacts, then return a summary.

        The market snapshot is still refreshed when the auction step fails;
        the auction error is re-raised afterwards.
        """
        run_date = (today or settings.today()).isoformat()
        logger.info("=== Auction scraper run %s ===", run_date)

        scrape = await self.collect(run_date)
        scraped = scrape.records
        logger.info("Total scraped: %s auctions", len(scraped))

        auction_error: Optional[Exception] = None
        existing_count, result = 0, MergeResult([], 0, 0, 0, 0)
        try:
            existing_count, result = self.merge_and_save(scraped, scrape.owned_slugs, run_date, dry_run)
        except Exception as exc:  # noqa: BLE001
            logger.error("Auction feed update failed: %s", exc)
            auction_error = exc

        usd_updated = self.update_market(scrape.currency, run_date, dry_run)
        if auction_error is not None:
            raise auction_error

        summary = build_summary(run_date, scrape, existing_count, result, usd_updated)
        logger.info(
            "Summary: %s auctions, %s provinces (%s), %s consignatarias, %s to %s",
            summary.written_records,
            len(summary.provinces),
            ", ".join(summary.provinces),
            summary.consignatarias,
            summary.first_date,
            summary.last_date,
        )
        return summary


def build_summary(
    run_date: str, scrape: ScrapeResult, existing_count: int, result: MergeResult, usd_updated: List[str]
) -> RunSummary:
    records = result.records
    return RunSummary(
        run_date=run_date,
        scraped_records=len(scrape.records),
        existing_records=existing_count,
        curated_records=result.curated,
        dropped_records=result.dropped,
        written_records=len(records),
        records_by_source={name: len(items) for name, items in scrape.records_by_source.items()},
        failed_sources=scrape.failed_sources,
        provinces=sorted({record.province for record in records}),
        consignatarias=len({record.consignataria_name for record in records}),
        first_date=records[0].date if records else None,
        last_date=records[-1].date if records else None,
        usd_updated=usd_updated,
    )


def build_pipeline() -> ScrapePipeline:
    """Create a pipeline with default settings and stores."""
    return ScrapePipeline(
        auction_store=JsonAuctionStore(settings.auctions_path),
        market_store=JsonMarketStore(settings.market_path),
        sources=default_sources(),
        currency_source=DolarApiSource(timeout_seconds=settings.request_timeout_seconds),
        request_timeout_seconds=settings.request_timeout_seconds,
        user_agent=settings.user_agent,
    )
