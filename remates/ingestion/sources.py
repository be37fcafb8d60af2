from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Iterable, List, Optional, Protocol, Set

import httpx
from pydantic import ValidationError

from remates.ingestion.fetch import fetch_json
from remates.ingestion.markup import COLOMBO, LEHMANN, MADELAN, OFARRELL, DatedPageSource, PositionalCalendarSource
from remates.models import AuctionRecord, CurrencyQuote, CurrencySnapshot
from remates.normalize import PROVINCE_BY_ID, classify_auction_type, classify_main_category, slugify

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"\s*(\d+)")


class AuctionSource(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient, today: str) -> List[AuctionRecord]: ...

    def owned_slugs(self, records: Iterable[AuctionRecord]) -> Set[str]: ...


class CurrencySource(Protocol):
    name: str

    async def fetch(self, client: httpx.AsyncClient) -> Optional[CurrencySnapshot]: ...


def _parse_heads(raw: Any) -> Optional[int]:
    match = _LEADING_INT_RE.match(str(raw)) if raw is not None else None
    if not match:
        return None
    return int(match.group(1)) or None


class CacgSource:
    """Auction dataset published by the Cámara Argentina de Consignatarios de Ganado."""

    name = "CACG"
    url = "https://cacg.org.ar/iapi/auctions"
    fallback_source_url = "https://cacg.org.ar/remates"

    async def fetch(self, client: httpx.AsyncClient, today: str) -> List[AuctionRecord]:
        payload = await fetch_json(client, self.url)
        if not isinstance(payload, dict):
            return []
        rows = (payload.get("dataset") or {}).get("rows") or []

        records: List[AuctionRecord] = []
        for index, row in enumerate(rows):
            try:
                if str(row.get("auction_is_disabled", "")) == "1":
                    continue
                records.append(self.to_record(row))
            except (ValidationError, TypeError, AttributeError) as exc:
                logger.warning("%s: skipping row %s (%s)", self.name, index, exc)
        logger.info("Fetched %s records from %s", len(records), self.name)
        return records

    def to_record(self, row: dict) -> AuctionRecord:
        province = (
            PROVINCE_BY_ID.get(str(row.get("state_id") or ""))
            or str(row.get("state_name") or "").upper()
            or "BUENOS AIRES"
        )
        city = str(row.get("city_name") or row.get("building_name") or "")
        title = str(row.get("auction_title") or "Remate")
        company = str(row.get("company_name") or "")

        # "00:00" marks an all-day auction.
        raw_time = str(row.get("auction_time") or "")[:5]
        notes = (row.get("auction_notes"), row.get("auction_breed"), row.get("auction_destination"))
        description = ". ".join(str(part) for part in notes if part)

        return AuctionRecord(
            title=title,
            consignataria_name=company or "Sin consignataria",
            consignataria_slug=slugify(company or "sin-consignataria"),
            date=str(row.get("auction_date") or ""),
            time=raw_time if raw_time and raw_time != "00:00" else None,
            location=f"{city}, {province}" if city else province,
            province=province,
            type=classify_auction_type(str(row.get("auction_title") or row.get("auction_mode") or "")),
            main_category=classify_main_category(str(row.get("auction_title") or "")),
            estimated_heads=_parse_heads(row.get("auction_heads")),
            description=description or title,
            source="web",
            source_url=row.get("www") or self.fallback_source_url,
            live_link=row.get("live_link") or None,
        )

    def owned_slugs(self, records: Iterable[AuctionRecord]) -> Set[str]:
        return {record.consignataria_slug for record in records}


class DolarApiSource:
    """Blue and official USD/ARS rates from dolarapi.com."""

    name = "dolarapi"
    base_url = "https://dolarapi.com/v1/dolares"

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self.timeout_seconds = timeout_seconds

    async def fetch_quote(self, client: httpx.AsyncClient, kind: str) -> Optional[CurrencyQuote]:
        url = f"{self.base_url}/{kind}"
        try:
            payload = await asyncio.wait_for(fetch_json(client, url), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("%s: timed out after %ss", url, self.timeout_seconds)
            return None
        if payload is None:
            return None
        try:
            return CurrencyQuote.model_validate(payload)
        except ValidationError as exc:
            logger.warning("%s: unusable rate payload (%s errors)", url, exc.error_count())
            return None

    async def fetch(self, client: httpx.AsyncClient) -> Optional[CurrencySnapshot]:
        blue, oficial = await asyncio.gather(self.fetch_quote(client, "blue"), self.fetch_quote(client, "oficial"))
        if blue is None and oficial is None:
            return None
        logger.info(
            "Fetched USD rates: blue=%s, oficial=%s",
            blue.venta if blue else "?",
            oficial.venta if oficial else "?",
        )
        return CurrencySnapshot(blue=blue, oficial=oficial)


def default_sources() -> List[AuctionSource]:
    """Factory for the default auction source list."""
    return [
        CacgSource(),
        PositionalCalendarSource(COLOMBO),
        DatedPageSource(OFARRELL),
        DatedPageSource(LEHMANN),
        DatedPageSource(MADELAN),
    ]
