from __future__ import annotations

import argparse
import logging
from pathlib import Path

from remates.config import settings
from remates.storage import JsonAuctionStore

logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export the merged auction feed to CSV.")
    parser.add_argument(
        "--output",
        type=Path,
        default=settings.data_dir / "export" / "remates.csv",
        help="Destination CSV path (directories will be created).",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    store = JsonAuctionStore(settings.auctions_path)
    rows = store.export_csv(args.output)
    logger.info("Export complete: %s rows -> %s", rows, args.output)


if __name__ == "__main__":
    main()
