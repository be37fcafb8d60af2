from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from remates.config import settings
from remates.ingestion.pipeline import build_pipeline

logging.basicConfig(level=settings.log_level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrape auction sources, merge the feed and refresh USD rates.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Scrape and merge without writing remates.json or market-prices.json.",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    pipeline = build_pipeline()
    summary = await pipeline.run_once(dry_run=args.dry_run)
    print(json.dumps(summary.model_dump(), indent=2, default=str))


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except Exception:  # noqa: BLE001
        logger.exception("Scraper failed")
        sys.exit(1)
