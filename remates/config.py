from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Final
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(slots=True)
class Settings:
    """Central configuration driven by environment variables."""

    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "15"))
    user_agent: str = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
    run_timezone: str = os.getenv("RUN_TIMEZONE", "UTC")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    data_dir: Path = field(default_factory=lambda: Path(os.getenv("DATA_DIR", "./data")))
    auctions_filename: str = os.getenv("AUCTIONS_FILENAME", "remates.json")
    market_filename: str = os.getenv("MARKET_FILENAME", "market-prices.json")

    def ensure_paths(self) -> None:
        """Create expected directories if they do not exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        (self.data_dir / "export").mkdir(parents=True, exist_ok=True)

    @property
    def auctions_path(self) -> Path:
        return self.data_dir / self.auctions_filename

    @property
    def market_path(self) -> Path:
        return self.data_dir / self.market_filename

    def today(self) -> date:
        """Calendar date of the run in the configured zone."""
        return datetime.now(ZoneInfo(self.run_timezone)).date()


# Singleton-style settings import
settings: Final[Settings] = Settings()
settings.ensure_paths()
