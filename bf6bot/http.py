from __future__ import annotations

import asyncio
from typing import Any, Dict

import aiohttp

from .config import HTTP_TIMEOUT_SECS, logger
from .errors import NotFound, Unreachable


def build_headers() -> Dict[str, str]:
    return {
        "accept": "application/json",
        "user-agent": "bf6-stats-bot/1.0",
    }


def make_session() -> aiohttp.ClientSession:
    timeout = aiohttp.ClientTimeout(total=HTTP_TIMEOUT_SECS)
    return aiohttp.ClientSession(
        timeout=timeout,
        headers=build_headers(),
        trust_env=True,
    )


async def fetch_json(session: aiohttp.ClientSession, url: str, params: Dict[str, str] | None = None) -> Dict[str, Any]:
    """GET url and return its JSON object body.

    Raises NotFound for non-2xx statuses or a body that is not a JSON object,
    and Unreachable for transport errors and timeouts.
    """
    logger.debug(f"API request: {url} {params}")
    try:
        async with session.get(url, params=params) as r:
            if not 200 <= r.status < 300:
                txt = await r.text()
                logger.debug(f"API error body for {url}: {txt[:300]}")
                raise NotFound(f"HTTP {r.status} for {url}", status=r.status)
            try:
                data = await r.json(content_type=None)
            except ValueError as e:
                raise NotFound(f"Invalid JSON from {url}: {e}", status=r.status) from e
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise Unreachable(f"Request to {url} failed: {e or type(e).__name__}") from e

    if not isinstance(data, dict):
        raise NotFound(f"Unexpected payload from {url}: {type(data).__name__}", status=200)
    logger.debug(f"API success: {url}")
    return data
