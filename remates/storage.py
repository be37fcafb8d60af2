from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Protocol, Sequence

import pandas as pd
from pydantic import ValidationError

from remates.models import AuctionRecord, MarketSnapshot

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """A persisted file exists but cannot be read or does not have the expected shape."""


class AuctionStore(Protocol):
    """Storage contract for the merged auction feed."""

    def load(self) -> List[AuctionRecord]: ...

    def save(self, records: Sequence[AuctionRecord]) -> int: ...


class MarketStore(Protocol):
    """Storage contract for the market reference snapshot."""

    def load(self) -> MarketSnapshot: ...

    def save(self, snapshot: MarketSnapshot) -> None: ...


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StorageError(f"Cannot read {path}: {exc}") from exc


def _write_json(path: Path, payload: Any) -> None:
    """Replace ``path`` wholesale; readers never observe a half-written file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class JsonAuctionStore:
    """JSON array of auctions, as read by the dashboard."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[AuctionRecord]:
        if not self.path.exists():
            logger.warning("No auction file at %s, starting from an empty feed", self.path)
            return []

        payload = _read_json(self.path)
        if not isinstance(payload, list):
            raise StorageError(f"{self.path} must hold a JSON array, got {type(payload).__name__}")
        records: List[AuctionRecord] = []
        for index, item in enumerate(payload):
            try:
                records.append(AuctionRecord.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping auction %s in %s (%s errors)", index, self.path, exc.error_count())
        skipped = len(payload) - len(records)
        if skipped:
            logger.warning("Skipped %s unreadable auctions in %s", skipped, self.path)
        return records

    def save(self, records: Sequence[AuctionRecord]) -> int:
        payload = [record.model_dump(mode="json", by_alias=True, exclude={"live_link"}) for record in records]
        _write_json(self.path, payload)
        logger.info("Written: %s auctions to %s", len(payload), self.path)
        return len(payload)

    def export_csv(self, destination: Path) -> int:
        destination.parent.mkdir(parents=True, exist_ok=True)
        records = self.load()
        if not records:
            logger.warning("No auctions found at %s. Nothing to export.", self.path)
            return 0

        df = pd.DataFrame([record.model_dump(mode="json", by_alias=True, exclude={"live_link"}) for record in records])
        df.to_csv(destination, index=False)
        logger.info("Exported %s rows to %s", len(df), destination)
        return len(df)


class JsonMarketStore:
    """JSON object with market reference series."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> MarketSnapshot:
        if not self.path.exists():
            logger.warning("No market file at %s, starting from an empty snapshot", self.path)
            return MarketSnapshot()

        payload = _read_json(self.path)
        try:
            return MarketSnapshot.model_validate(payload)
        except ValidationError as exc:
            raise StorageError(f"Invalid market snapshot in {self.path}: {exc}") from exc

    def save(self, snapshot: MarketSnapshot) -> None:
        missing = {name for name in MarketSnapshot.model_fields if getattr(snapshot, name) is None}
        _write_json(self.path, snapshot.model_dump(mode="json", by_alias=True, exclude=missing))
        logger.info("Written market snapshot to %s", self.path)
