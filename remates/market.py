from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from remates.models import CurrencySnapshot, MarketSeries, MarketSnapshot

logger = logging.getLogger(__name__)

# (snapshot attribute, CurrencySnapshot attribute, provenance)
USD_SERIES: Tuple[Tuple[str, str, str], ...] = (
    ("usd_blue", "blue", "dolarapi.com/v1/dolares/blue"),
    ("usd_oficial", "oficial", "dolarapi.com/v1/dolares/oficial"),
)


def percent_change(new: float, old: Optional[float]) -> float:
    """Percent change rounded to one decimal; 0 without a previous value."""
    if not old:
        return 0
    return round((new - old) / old * 100, 1)


def shift_series(series: Optional[MarketSeries], value: float, source: str) -> MarketSeries:
    """Move ``current`` to ``prev`` and record ``value`` as the new reading."""
    updated = series.model_copy() if series is not None else MarketSeries()
    previous = updated.current
    updated.prev = previous
    updated.current = value
    updated.change = percent_change(value, previous)
    updated.source = source
    return updated


def apply_currency_snapshot(
    snapshot: MarketSnapshot, currency: CurrencySnapshot, today: str
) -> Tuple[MarketSnapshot, List[str]]:
    """Return the snapshot with fetched USD series shifted, plus the names updated.

    Series whose rate could not be fetched are left untouched; every other
    key of the snapshot is carried over unchanged.
    """
    updated = snapshot.model_copy()
    changed: List[str] = []
    for attr, kind, source in USD_SERIES:
        quote = getattr(currency, kind)
        if quote is None:
            logger.warning("USD %s rate unavailable, keeping previous value", kind)
            continue
        setattr(updated, attr, shift_series(getattr(snapshot, attr), quote.venta, source))
        changed.append(kind)

    if changed:
        updated.last_update = today
    return updated, changed
