from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from remates.models import AuctionRecord
from remates.normalize import is_valid_date, normalize_province, status_for

logger = logging.getLogger(__name__)

DedupKey = Tuple[str, str, str]

# Filled on the surviving record only while still empty.
FILLABLE_FIELDS: Tuple[str, ...] = ("estimated_heads", "time", "catalog_url", "youtube_url", "live_link")


@dataclass
class MergeResult:
    """Final feed plus the counts reported in the run log."""

    records: List[AuctionRecord]
    curated: int
    dropped_curated: int
    dropped_scraped: int
    duplicates: int

    @property
    def dropped(self) -> int:
        return self.dropped_curated + self.dropped_scraped


def dedup_key(record: AuctionRecord) -> DedupKey:
    """Same day, same consignataria, same town: treated as one real auction."""
    town = (record.location or "").split(",")[0].strip().lower()
    return (record.date, record.consignataria_slug, town)


def deduplicate(
    records: Iterable[AuctionRecord], index: Optional[Dict[DedupKey, AuctionRecord]] = None
) -> Dict[DedupKey, AuctionRecord]:
    """Fold ``records`` into ``index`` keyed by :func:`dedup_key`.

    The first record seen for a key survives. Later duplicates only fill the
    survivor's empty ``FILLABLE_FIELDS``; populated values are never replaced.
    Survivors are updated in place.
    """
    index = {} if index is None else index
    for record in records:
        key = dedup_key(record)
        survivor = index.get(key)
        if survivor is None:
            index[key] = record
            continue
        for field in FILLABLE_FIELDS:
            value = getattr(record, field)
            if value and not getattr(survivor, field):
                setattr(survivor, field, value)
    return index


def split_curated(persisted: Iterable[AuctionRecord], owned_slugs: Set[str]) -> List[AuctionRecord]:
    """Records maintained by hand, i.e. whose consignataria no scraper owns."""
    return [record for record in persisted if record.consignataria_slug not in owned_slugs]


def sort_key(record: AuctionRecord) -> Tuple[str, str]:
    return (record.date, record.time or "")


def merge_auctions(
    scraped: Sequence[AuctionRecord],
    persisted: Sequence[AuctionRecord],
    owned_slugs: Set[str],
    today: str,
) -> MergeResult:
    """Combine fresh scraper output with the curated part of the stored feed.

    Records owned by a scraper are dropped from ``persisted`` and replaced by
    this run's ``scraped`` records. Dates are validated, provinces normalized,
    duplicates folded, and the result sorted with ids and status assigned
    against ``today`` (YYYY-MM-DD). Inputs are not modified.
    """
    curated = split_curated(persisted, owned_slugs)
    logger.info("Curated (kept as-is): %s", len(curated))

    valid_curated = [record for record in curated if is_valid_date(record.date)]
    valid_scraped = [record for record in scraped if is_valid_date(record.date)]
    dropped_curated = len(curated) - len(valid_curated)
    dropped_scraped = len(scraped) - len(valid_scraped)
    logger.info("Valid scraped: %s (filtered %s invalid)", len(valid_scraped), dropped_scraped)
    if dropped_curated:
        logger.warning("Dropped %s curated records with invalid dates", dropped_curated)

    pool = [
        record.model_copy(update={"province": normalize_province(record.province)})
        for record in [*valid_curated, *valid_scraped]
    ]
    merged = sorted(deduplicate(pool).values(), key=sort_key)

    for position, record in enumerate(merged, start=1):
        record.id = position
        record.live_link = None
        record.status = status_for(record.date, today)

    return MergeResult(
        records=merged,
        curated=len(curated),
        dropped_curated=dropped_curated,
        dropped_scraped=dropped_scraped,
        duplicates=len(pool) - len(merged),
    )
