from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

import httpx

from remates.ingestion.fetch import fetch_text
from remates.models import AuctionRecord, AuctionType, MainCategory
from remates.normalize import context_text, parse_day_month_year

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})")
HEADS_RE = re.compile(r"(\d[\d.]+)\s*(?:cab|cabezas)", re.IGNORECASE)

DAY_RE = re.compile(r'class="day">(\d+)')
MONTH_RE = re.compile(r"month_(\d{2})_ar")
YEAR_RE = re.compile(r'class="year">(\d{4})')
EVENT_TITLE_RE = re.compile(r'class="event-title[^"]*"[^>]*>([^<]+)', re.IGNORECASE)
EVENT_LOCATION_RE = re.compile(r'class="event-location[^"]*"[^>]*>([^<]+)', re.IGNORECASE)


@dataclass(frozen=True)
class PageDetails:
    """Fields guessed from the text surrounding a date."""

    title: str
    location: str
    province: str
    description: str
    time: Optional[str] = None
    estimated_heads: Optional[int] = None


@dataclass(frozen=True)
class MarkupSourceConfig:
    name: str
    consignataria_name: str
    consignataria_slug: str
    url: str
    default_type: AuctionType = "general"
    default_category: MainCategory = "mixto"
    context_window: int = 300
    interpret: Optional[Callable[[str], PageDetails]] = None


def _first_place(lower_context: str, places: Sequence[Tuple[Tuple[str, ...], str]], default: str) -> str:
    for keywords, place in places:
        if any(keyword in lower_context for keyword in keywords):
            return place
    return default


class PositionalCalendarSource:
    """Event calendar whose date parts sit in separate, index-aligned elements."""

    def __init__(self, config: MarkupSourceConfig) -> None:
        self.config = config
        self.name = config.name

    async def fetch(self, client: httpx.AsyncClient, today: str) -> List[AuctionRecord]:
        html = await fetch_text(client, self.config.url)
        if not html:
            return []
        records = self.parse(html)
        logger.info("Fetched %s records from %s", len(records), self.name)
        return records

    def parse(self, html: str) -> List[AuctionRecord]:
        days = DAY_RE.findall(html)
        months = MONTH_RE.findall(html)
        years = YEAR_RE.findall(html)
        titles = EVENT_TITLE_RE.findall(html)
        locations = EVENT_LOCATION_RE.findall(html)

        # The page is trusted to emit the three date parts in the same order.
        count = min(len(days), len(months), len(years))
        records: List[AuctionRecord] = []
        for i in range(count):
            title = (titles[i].strip() if i < len(titles) else "") or "Remate CyC"
            location = (locations[i].strip() if i < len(locations) else "") or "Buenos Aires"
            records.append(
                AuctionRecord(
                    title=title,
                    consignataria_name=self.config.consignataria_name,
                    consignataria_slug=self.config.consignataria_slug,
                    date=parse_day_month_year(days[i], months[i], years[i]),
                    location=location,
                    province=colombo_province(location),
                    type="general" if "rosgan" in title.lower() else self.config.default_type,
                    main_category=self.config.default_category,
                    description=title,
                    source="web",
                    source_url=self.config.url,
                )
            )
        return records

    def owned_slugs(self, records: Iterable[AuctionRecord]) -> Set[str]:
        return {self.config.consignataria_slug}


class DatedPageSource:
    """Page listing auctions as free text with ``D/M/YYYY`` dates."""

    def __init__(self, config: MarkupSourceConfig) -> None:
        if config.interpret is None:
            raise ValueError(f"{config.name} needs an interpret function")
        self.config = config
        self.name = config.name

    async def fetch(self, client: httpx.AsyncClient, today: str) -> List[AuctionRecord]:
        html = await fetch_text(client, self.config.url)
        if not html:
            return []
        records = self.parse(html, today)
        logger.info("Fetched %s records from %s", len(records), self.name)
        return records

    def parse(self, html: str, today: str) -> List[AuctionRecord]:
        """One record per distinct upcoming date; later mentions of a date are ignored."""
        window = self.config.context_window
        seen: Set[str] = set()
        records: List[AuctionRecord] = []

        for match in DATE_RE.finditer(html):
            date = parse_day_month_year(*match.groups())
            if date in seen or date < today:
                continue
            seen.add(date)

            start = match.start()
            context = context_text(html[max(0, start - window) : start + window])
            details = self.config.interpret(context)
            records.append(
                AuctionRecord(
                    title=details.title,
                    consignataria_name=self.config.consignataria_name,
                    consignataria_slug=self.config.consignataria_slug,
                    date=date,
                    time=details.time,
                    location=details.location,
                    province=details.province,
                    type=self.config.default_type,
                    main_category=self.config.default_category,
                    estimated_heads=details.estimated_heads,
                    description=details.description,
                    source="web",
                    source_url=self.config.url,
                )
            )
        return records

    def owned_slugs(self, records: Iterable[AuctionRecord]) -> Set[str]:
        return {self.config.consignataria_slug}


def colombo_province(location: str) -> str:
    lower = location.lower()
    if "santa fe" in lower or "rosario" in lower:
        return "SANTA FE"
    if "corrientes" in lower:
        return "CORRIENTES"
    return "BUENOS AIRES"


OFARRELL_PLACES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("machagai",), "Machagai, Chaco"),
    (("san martin", "zapallar"), "Gral. San Martín, Chaco"),
    (("santa sylvina",), "Santa Sylvina, Chaco"),
    (("campo gallo",), "Campo Gallo, Santiago del Estero"),
)


def ofarrell_details(context: str) -> PageDetails:
    lower = context.lower()
    televised = "televisado" in lower
    location = _first_place(lower, OFARRELL_PLACES, "Chaco")
    return PageDetails(
        title="Remate Televisado O'Farrell" if televised else "Remate General O'Farrell",
        location=location,
        province="SANTIAGO DEL ESTERO" if "Santiago" in location else "CHACO",
        description="Remate Televisado por Canal Rural" if televised else "Remate general presencial y streaming",
        time="14:00",
        estimated_heads=5500 if televised else None,
    )


LEHMANN_CITIES: Tuple[str, ...] = (
    "Rafaela",
    "Esperanza",
    "Emilia",
    "Felicia",
    "Helvecia",
    "Progreso",
    "Pilar",
    "Suardi",
    "Romang",
    "San Agustin",
    "Sarmiento",
    "Centeno",
    "Santo Domingo",
)


def lehmann_details(context: str) -> PageDetails:
    city = next((candidate for candidate in LEHMANN_CITIES if candidate in context), "Santa Fe")
    return PageDetails(
        title="Remate Feria Lehmann",
        location=f"{city}, Santa Fe",
        province="SANTA FE",
        description="Remate feria de abasto e invernada",
    )


def madelan_details(context: str) -> PageDetails:
    heads = HEADS_RE.search(context)
    return PageDetails(
        title="Remate Madelan",
        location="NEA",
        province="CHACO",
        description="Remate por internet y streaming",
        estimated_heads=int(heads.group(1).replace(".", "")) if heads else None,
    )


COLOMBO = MarkupSourceConfig(
    name="Colombo y Colombo",
    consignataria_name="Colombo y Colombo SA",
    consignataria_slug="colombo-y-colombo",
    url="https://www.colomboycolombo.com.ar/remates",
    default_type="especial",
)
OFARRELL = MarkupSourceConfig(
    name="O'Farrell",
    consignataria_name="Ivan L. O'Farrell Consignataria",
    consignataria_slug="ofarrell",
    url="https://www.ivanofarrell.com.ar/remates",
    context_window=200,
    interpret=ofarrell_details,
)
LEHMANN = MarkupSourceConfig(
    name="Cooperativa Lehmann",
    consignataria_name="Cooperativa Guillermo Lehmann",
    consignataria_slug="coop-lehmann",
    url="https://www.cooperativalehmann.coop/hacienda/remates",
    interpret=lehmann_details,
)
MADELAN = MarkupSourceConfig(
    name="Madelan",
    consignataria_name="Madelan SA",
    consignataria_slug="madelan",
    url="https://www.madelan.com.ar/proximos",
    interpret=madelan_details,
)
