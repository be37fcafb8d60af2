from __future__ import annotations

import re
import unicodedata
from typing import Dict, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from remates.models import AuctionStatus, AuctionType, MainCategory

# CACG numbers provinces 1..24.
PROVINCE_BY_ID: Dict[str, str] = {
    "1": "BUENOS AIRES",
    "2": "CATAMARCA",
    "3": "CHACO",
    "4": "CHUBUT",
    "5": "CORDOBA",
    "6": "CORRIENTES",
    "7": "ENTRE RIOS",
    "8": "FORMOSA",
    "9": "JUJUY",
    "10": "LA PAMPA",
    "11": "LA RIOJA",
    "12": "MENDOZA",
    "13": "MISIONES",
    "14": "NEUQUEN",
    "15": "RIO NEGRO",
    "16": "SALTA",
    "17": "SAN JUAN",
    "18": "SAN LUIS",
    "19": "SANTA CRUZ",
    "20": "SANTA FE",
    "21": "SANTIAGO DEL ESTERO",
    "22": "TUCUMAN",
    "23": "TIERRA DEL FUEGO",
    "24": "CAPITAL FEDERAL",
}
PROVINCES: Tuple[str, ...] = tuple(PROVINCE_BY_ID.values())

MIN_YEAR = 2024
MAX_YEAR = 2030

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")

# Evaluated top to bottom, first match wins.
AUCTION_TYPE_RULES: Sequence[Tuple[Tuple[str, ...], AuctionType]] = (
    (("invernada",), "invernada"),
    (("cria", "cría"), "cria"),
    (("reproductor", "toro", "cabaña", "genética"), "reproductores"),
    (("especial", "expo", "fiesta"), "especial"),
)
MAIN_CATEGORY_RULES: Sequence[Tuple[Tuple[str, ...], MainCategory]] = (
    (("ternero",), "terneros"),
    (("novill",), "novillos"),
    (("vaca gorda", "gordo"), "vaca_gorda"),
    (("vaquillona",), "vaquillonas"),
    (("toro", "reproductor"), "toros"),
)


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(text: Optional[str]) -> str:
    """Lowercase ASCII slug with single hyphens and no leading/trailing hyphen."""
    ascii_text = strip_accents((text or "").lower())
    return _NON_SLUG_RE.sub("-", ascii_text).strip("-")


def normalize_province(name: Optional[str]) -> str:
    """Upper-case and strip accents. Membership in PROVINCES is not enforced."""
    return strip_accents((name or "").upper())


def is_valid_date(value: object) -> bool:
    """Cheap guard against garbage dates: YYYY-MM-DD, year 2024-2030, month 1-12, day 1-31."""
    if not isinstance(value, str) or not _ISO_DATE_RE.fullmatch(value):
        return False
    year, month, day = (int(part) for part in value.split("-"))
    if year < MIN_YEAR or year > MAX_YEAR:
        return False
    if month < 1 or month > 12:
        return False
    return 1 <= day <= 31


def _classify(text: Optional[str], rules, default):
    lower = (text or "").lower()
    for keywords, result in rules:
        if any(keyword in lower for keyword in keywords):
            return result
    return default


def classify_auction_type(title: Optional[str]) -> AuctionType:
    return _classify(title, AUCTION_TYPE_RULES, "general")


def classify_main_category(title: Optional[str]) -> MainCategory:
    return _classify(title, MAIN_CATEGORY_RULES, "mixto")


def status_for(date: str, today: str) -> AuctionStatus:
    """completed before today, live on the day, scheduled afterwards."""
    if date < today:
        return "completed"
    if date == today:
        return "live"
    return "scheduled"


def parse_day_month_year(day: str, month: str, year: str) -> str:
    """D/M/YYYY parts to YYYY-MM-DD. Values are padded, not validated."""
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def context_text(fragment: str) -> str:
    """Visible text of an HTML fragment with whitespace collapsed."""
    text = BeautifulSoup(fragment, "html.parser").get_text(" ")
    return " ".join(text.split())
