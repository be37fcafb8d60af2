from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


async def fetch_json(client: httpx.AsyncClient, url: str) -> Optional[Any]:
    """GET a JSON document; None on timeout, HTTP error or undecodable body."""
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("%s: %s", url, _describe(exc))
        return None


async def fetch_text(client: httpx.AsyncClient, url: str) -> Optional[str]:
    """GET a page as text; None on timeout or HTTP error."""
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.text
    except httpx.HTTPError as exc:
        logger.warning("%s: %s", url, _describe(exc))
        return None
