from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from .api import StatsClient
from .config import PLAYER_DELAY_SECS, UPDATE_INTERVAL_SECS, logger
from .formatting import StatsSnapshot, render_stats
from .state import LastStatsCache, TrackedPlayer
from .storage import PlayerStore

# Fields whose movement means the player has played since the last post
CHANGE_FIELDS = ("kills", "deaths", "score", "wins", "losses", "rank")

Publisher = Callable[[Any], Awaitable[None]]


def stats_changed(previous: Optional[StatsSnapshot], current: StatsSnapshot) -> bool:
    """Check if key stats moved since the last posted snapshot."""
    if previous is None:
        return True
    for name in CHANGE_FIELDS:
        old = getattr(previous, name)
        new = getattr(current, name)
        if old is not None and new is not None and old != new:
            return True
    return False


class StatsWatcher:
    """Polls every tracked player and posts stats that changed."""

    def __init__(
        self,
        store: PlayerStore,
        cache: LastStatsCache,
        client: StatsClient,
        publish: Publisher,
        interval_secs: float = UPDATE_INTERVAL_SECS,
        player_delay_secs: float = PLAYER_DELAY_SECS,
    ):
        self.store = store
        self.cache = cache
        self.client = client
        self.publish = publish
        self.interval_secs = interval_secs
        self.player_delay_secs = player_delay_secs
        self._pass_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def busy(self) -> bool:
        return self._pass_lock.locked()

    async def post_player_stats(self, player: TrackedPlayer) -> bool:
        """Fetch, diff and post one player. Returns True when a message went out."""
        snapshot = await self.client.fetch_player(player)
        if snapshot is None:
            return False

        key = player.key
        if not stats_changed(self.cache.get(key), snapshot):
            logger.info(f"No changes detected for {player.name}, skipping post")
            return False

        card = render_stats(snapshot, player.name, player.platform)
        try:
            await self.publish(card)
        except Exception as e:
            logger.error(f"Error posting stats for {player.name}: {e}")
            return False
        self.cache.set(key, snapshot)
        logger.info(f"Posted stats for {player.name} ({player.platform.label})")
        return True

    async def _run_pass_locked(self) -> int:
        players = self.store.list()
        if not players:
            logger.warning("No players configured to track!")
            return 0

        logger.info(f"Posting stats for {len(players)} player(s)...")
        posted = 0
        for index, player in enumerate(players):
            try:
                if await self.post_player_stats(player):
                    posted += 1
            except Exception as e:
                logger.error(f"Unexpected error while updating {player.name}: {e}", exc_info=True)
            if index < len(players) - 1 and self.player_delay_secs > 0:
                await asyncio.sleep(self.player_delay_secs)
        logger.info(f"Pass finished: {posted}/{len(players)} player(s) posted")
        return posted

    async def run_pass(self) -> int:
        """One full pass over the store, serialized with any other pass."""
        async with self._pass_lock:
            return await self._run_pass_locked()

    async def update_now(self) -> int:
        if self.busy:
            logger.info("Manual update waiting for the running pass to finish")
        return await self.run_pass()

    def tick(self) -> Optional[asyncio.Task]:
        """Start a pass in the background unless one is still running."""
        if self.busy:
            logger.warning("Previous pass still running, skipping this tick")
            return None
        task = asyncio.create_task(self.run_pass())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Poll pass failed: {exc}", exc_info=exc)

    def forget(self, key: str) -> None:
        self.cache.evict(key)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Pass on start, then one tick every interval until stop_event is set."""
        logger.info(f"⏰ Update interval: {self.interval_secs / 60:g} minutes")
        self.tick()
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_secs)
            except asyncio.TimeoutError:
                self.tick()
        for task in list(self._tasks):
            task.cancel()
        logger.info("Stats watcher stopped")
