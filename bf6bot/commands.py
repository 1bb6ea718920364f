from __future__ import annotations

import re
from typing import Awaitable, Callable, Dict, Optional
from urllib.parse import urlparse

from telegram import Update
from telegram.ext import ContextTypes

from .api import StatsClient
from .config import logger
from .delivery import Content, ReplySender
from .errors import AlreadyTracked, NotTracked
from .formatting import (
    escape_html,
    fmt_help,
    fmt_player_added,
    fmt_search_results,
    fmt_tracked_players,
)
from .state import TrackedPlayer
from .storage import PlayerStore
from .watchers import StatsWatcher

Reply = Callable[[Content], Awaitable[None]]

EXAMPLE_URL = "https://tracker.gg/bf6/profile/2481313248/overview"
_PROFILE_ID = re.compile(r"[0-9]+")


def parse_tracker_url(url: str) -> Optional[str]:
    """Extract the numeric player id from a /bf6/profile/{id}/overview URL."""
    try:
        path = urlparse(url.strip()).path
    except ValueError:
        return None
    parts = [p for p in path.split("/") if p]
    if len(parts) >= 3 and parts[0] == "bf6" and parts[1] == "profile":
        if _PROFILE_ID.fullmatch(parts[2]):
            return parts[2]
    # platform/name profile URLs carry no id
    return None


class CommandDispatcher:
    """Parses !commands and replies through the given reply callable."""

    def __init__(self, store: PlayerStore, client: StatsClient, watcher: StatsWatcher):
        self.store = store
        self.client = client
        self.watcher = watcher
        # command word -> (handler, takes_argument)
        self._commands: Dict[str, tuple] = {
            "!search": (self.search_cmd, True),
            "!add": (self.add_cmd, True),
            "!track": (self.track_cmd, True),
            "!untrack": (self.untrack_cmd, True),
            "!list": (self.list_cmd, False),
            "!update": (self.update_cmd, False),
            "!bf6update": (self.update_cmd, False),
            "!help": (self.help_cmd, False),
            "!bf6help": (self.help_cmd, False),
        }

    async def dispatch(self, text: str, reply: Reply) -> bool:
        """Run the command in text. Returns False when text is not a command."""
        content = (text or "").strip()
        if not content.startswith("!"):
            return False
        word, *rest = content.split(maxsplit=1)
        entry = self._commands.get(word)
        if entry is None:
            return False
        handler, takes_argument = entry
        arg = rest[0].strip() if rest else ""
        if takes_argument:
            await handler(arg, reply)
        elif arg:
            # "!list foo" is not a command
            return False
        else:
            await handler(reply)
        return True

    async def search_cmd(self, name: str, reply: Reply) -> None:
        if not name:
            await reply("❌ Please provide a player name to search for.\nUsage: <code>!search PlayerName</code>")
            return
        safe = escape_html(name)
        await reply(f'🔍 Searching for players matching "{safe}"...')

        results = await self.client.search_by_name(name)
        if not results:
            await reply(f'❌ No players found matching "{safe}"')
            return
        await reply(fmt_search_results(name, results))

    async def add_cmd(self, url: str, reply: Reply) -> None:
        if not url:
            await reply(f"❌ Please provide a tracker.gg URL.\nUsage: <code>!add {EXAMPLE_URL}</code>")
            return
        player_id = parse_tracker_url(url)
        if not player_id:
            await reply(
                "❌ Invalid tracker.gg URL format.\n"
                "Expected format: <code>https://tracker.gg/bf6/profile/{playerID}/overview</code>\n"
                f"Example: <code>!add {EXAMPLE_URL}</code>"
            )
            return
        await reply(f"🔍 Looking up player with ID {player_id}...")
        player = await self.client.find_by_id(player_id)
        if player is None:
            await reply(
                f'❌ Could not find player with ID "{player_id}" on any platform.\n'
                "Make sure the tracker.gg URL is correct and the player exists."
            )
            return
        await self._track(player, reply)

    async def track_cmd(self, player_id: str, reply: Reply) -> None:
        if not player_id:
            await reply(
                "❌ Please provide a player ID.\nUsage: <code>!track &lt;playerID&gt;</code>\n"
                "Use <code>!search playername</code> to find player IDs."
            )
            return
        player = await self.client.find_by_id(player_id)
        if player is None:
            await reply(
                f'❌ Could not find player with ID "{escape_html(player_id)}".\n'
                "Try using <code>!search playername</code> to find the correct player ID."
            )
            return
        await self._track(player, reply)

    async def _track(self, player: TrackedPlayer, reply: Reply) -> None:
        try:
            self.store.add(player)
        except AlreadyTracked:
            await reply(
                f"❌ <b>{escape_html(player.name)}</b> ({player.platform.label}) is already being tracked!"
            )
            return
        await reply(fmt_player_added(player, len(self.store)))

    async def list_cmd(self, reply: Reply) -> None:
        players = self.store.list()
        if not players:
            await reply(
                "❌ No players are currently being tracked.\n"
                "Use <code>!search playername</code> to find players, then <code>!track &lt;ID&gt;</code> to add them."
            )
            return
        await reply(fmt_tracked_players(players))

    async def untrack_cmd(self, query: str, reply: Reply) -> None:
        if not query:
            await reply(
                "❌ Please provide a player ID.\nUsage: <code>!untrack &lt;playerID&gt;</code>\n"
                "Use <code>!list</code> to see tracked players."
            )
            return
        try:
            removed = self.store.remove(query)
        except NotTracked:
            await reply(
                f'❌ Player with ID "{escape_html(query)}" is not being tracked.\n'
                "Use <code>!list</code> to see tracked players."
            )
            return
        self.watcher.forget(removed.key)
        await reply(f"✅ Removed <b>{escape_html(removed.name)}</b> ({removed.platform.label}) from tracking.")

    async def update_cmd(self, reply: Reply) -> None:
        await reply("🔄 Updating stats...")
        await self.watcher.update_now()
        await reply("✅ Stats updated!")

    async def help_cmd(self, reply: Reply) -> None:
        await reply(fmt_help())


async def message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    message = update.effective_message
    if message is None or not message.text:
        return
    if update.effective_user and update.effective_user.is_bot:
        return

    dispatcher: CommandDispatcher = context.bot_data["dispatcher"]
    handled = await dispatcher.dispatch(message.text, ReplySender(message))
    if handled:
        logger.debug(f"Handled command {message.text.split()[0]!r} in chat {message.chat_id}")
