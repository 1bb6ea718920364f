"""BF6 stats bot package.

- config: environment, constants and logging
- errors: error taxonomy
- state: tracked player model and last-posted stats cache
- storage: persistence of the tracked player list
- http: session and request helpers
- api: stats API surface
- formatting: snapshot record and message cards
- delivery: sending cards to Telegram
- watchers: change detection and the poll loop
- commands: chat command dispatcher
- app: application bootstrap and wiring
"""

from .config import Config, BASE, BOT_TOKEN, PLAYERS_FILE, UPDATE_INTERVAL_SECS
from .errors import (
    BotError,
    FetchFailed,
    NotFound,
    Unreachable,
    AlreadyTracked,
    NotTracked,
    PersistenceFailed,
)
from .state import Platform, PLATFORMS, TrackedPlayer, LastStatsCache
from .storage import PlayerStore
from .http import make_session, fetch_json, build_headers
from .api import StatsClient, SearchResult, is_player_object
from .formatting import (
    MAX_FIELDS,
    StatsSnapshot,
    StatsCard,
    CardField,
    render_stats,
    fmt_search_results,
    fmt_player_added,
    fmt_tracked_players,
    fmt_help,
    card_to_html,
)
from .delivery import Sender, ChannelSender, ReplySender
from .watchers import CHANGE_FIELDS, stats_changed, StatsWatcher
from .commands import CommandDispatcher, parse_tracker_url, message_handler
from .app import main, startup_health_check

__all__ = [
    # Config / errors
    "Config", "BASE", "BOT_TOKEN", "PLAYERS_FILE", "UPDATE_INTERVAL_SECS",
    "BotError", "FetchFailed", "NotFound", "Unreachable", "AlreadyTracked", "NotTracked", "PersistenceFailed",
    # State / storage
    "Platform", "PLATFORMS", "TrackedPlayer", "LastStatsCache", "PlayerStore",
    # HTTP / API
    "make_session", "fetch_json", "build_headers", "StatsClient", "SearchResult", "is_player_object",
    # Formatting / delivery
    "MAX_FIELDS", "StatsSnapshot", "StatsCard", "CardField", "render_stats", "fmt_search_results",
    "fmt_player_added", "fmt_tracked_players", "fmt_help", "card_to_html",
    "Sender", "ChannelSender", "ReplySender",
    # Watchers / commands / app
    "CHANGE_FIELDS", "stats_changed", "StatsWatcher",
    "CommandDispatcher", "parse_tracker_url", "message_handler",
    "main", "startup_health_check",
]
