from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from .config import BASE, SEARCH_PAUSE_SECS, logger
from .errors import FetchFailed
from .formatting import Number, Rank, StatsSnapshot
from .http import fetch_json, make_session
from .state import PLATFORMS, Platform, TrackedPlayer

_NUMERIC_ID = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class SearchResult:
    name: str
    platform: Platform
    persona_id: Optional[str] = None
    rank: Optional[Rank] = None
    kills: Optional[Number] = None


def is_player_object(data: Any) -> bool:
    return isinstance(data, dict) and bool(data.get("userName") or data.get("name") or data.get("personaId"))


class StatsClient:
    """Thin wrapper over the GameTools BF6 stats endpoint."""

    def __init__(
        self,
        base_url: str = BASE,
        session_factory: Callable[[], aiohttp.ClientSession] = make_session,
        pause_secs: float = SEARCH_PAUSE_SECS,
    ):
        self.base_url = base_url
        self.session_factory = session_factory
        self.pause_secs = pause_secs

    async def _get(self, params: Dict[str, str]) -> Dict[str, Any]:
        async with self.session_factory() as session:
            return await fetch_json(session, self.base_url, params=params)

    async def fetch_stats(
        self,
        platform: Platform,
        name: Optional[str] = None,
        persona_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Fetch raw stats by persona id (preferred) or name. Raises FetchFailed."""
        if persona_id:
            params = {"personaId": persona_id, "platform": platform.value}
        elif name:
            params = {"name": name, "platform": platform.value}
        else:
            raise ValueError("fetch_stats needs a name or a persona id")
        return await self._get(params)

    async def fetch_by_name_or_id(self, identifier: str, platform: Platform) -> Dict[str, Any]:
        if _NUMERIC_ID.fullmatch(identifier):
            return await self.fetch_stats(platform, persona_id=identifier)
        return await self.fetch_stats(platform, name=identifier)

    async def fetch_player(self, player: TrackedPlayer) -> Optional[StatsSnapshot]:
        """Stats for a tracked player, or None when the API gave nothing usable."""
        try:
            data = await self.fetch_stats(player.platform, name=player.name, persona_id=player.persona_id)
        except FetchFailed as e:
            logger.error(f"Failed to fetch stats for {player.name} ({player.platform.label}): {e}")
            return None
        return StatsSnapshot.from_json(data)

    async def _pause(self, index: int) -> None:
        if index < len(PLATFORMS) - 1 and self.pause_secs > 0:
            await asyncio.sleep(self.pause_secs)

    async def search_by_name(self, name: str) -> List[SearchResult]:
        """Look a name up on every platform, in platform order."""
        results: List[SearchResult] = []
        for index, platform in enumerate(PLATFORMS):
            try:
                data = await self.fetch_stats(platform, name=name)
            except FetchFailed as e:
                logger.debug(f"Search for {name!r} on {platform.value} found nothing: {e}")
                data = None
            if is_player_object(data):
                snapshot = StatsSnapshot.from_json(data)
                results.append(SearchResult(
                    name=snapshot.user_name or name,
                    platform=platform,
                    persona_id=snapshot.persona_id,
                    rank=snapshot.rank,
                    kills=snapshot.kills,
                ))
            await self._pause(index)
        logger.info(f"Search for {name!r} matched {len(results)} platform(s)")
        return results

    async def find_by_id(self, persona_id: str) -> Optional[TrackedPlayer]:
        """Try each platform by persona id and return the first player found."""
        for index, platform in enumerate(PLATFORMS):
            try:
                data = await self.fetch_stats(platform, persona_id=persona_id)
            except FetchFailed as e:
                logger.debug(f"Persona {persona_id} not found on {platform.value}: {e}")
                data = None
            if is_player_object(data):
                snapshot = StatsSnapshot.from_json(data)
                return TrackedPlayer(
                    name=snapshot.user_name or "Unknown",
                    platform=platform,
                    persona_id=snapshot.persona_id or persona_id,
                )
            await self._pause(index)
        return None
