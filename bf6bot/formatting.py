from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .state import Platform, TrackedPlayer

# Telegram has no embed limit of its own; cards keep the 25-field ceiling
MAX_FIELDS = 25

Number = Union[int, float]
Rank = Union[int, float, str]


def escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _as_number(value: Any) -> Optional[Number]:
    """Numbers and numeric strings; NaN and infinities count as absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value.replace(",", ""))
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def _as_rank(value: Any) -> Optional[Rank]:
    """Rank may be a level number or a title such as "Sergeant"."""
    number = _as_number(value)
    if number is not None:
        return number
    if isinstance(value, str) and value.strip():
        try:
            float(value.replace(",", ""))
        except ValueError:
            return value.strip()
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class StatsSnapshot:
    """One fetched set of stats. Every field is optional."""
    user_name: Optional[str] = None
    persona_id: Optional[str] = None
    avatar: Optional[str] = None
    kills: Optional[Number] = None
    deaths: Optional[Number] = None
    kd_ratio: Optional[Number] = None
    score: Optional[Number] = None
    wins: Optional[Number] = None
    losses: Optional[Number] = None
    win_percent: Optional[Number] = None
    kills_per_minute: Optional[Number] = None
    time_played: Optional[Number] = None
    rank: Optional[Rank] = None
    score_per_minute: Optional[Number] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "StatsSnapshot":
        return cls(
            user_name=_as_text(data.get("userName") or data.get("name")),
            persona_id=_as_text(data.get("personaId") or data.get("id")),
            avatar=_as_text(data.get("avatar")),
            kills=_as_number(data.get("kills")),
            deaths=_as_number(data.get("deaths")),
            kd_ratio=_as_number(data.get("kdRatio")),
            score=_as_number(data.get("score")),
            wins=_as_number(data.get("wins")),
            losses=_as_number(data.get("losses")),
            win_percent=_as_number(data.get("winPercent")),
            kills_per_minute=_as_number(data.get("killsPerMinute")),
            time_played=_as_number(data.get("timePlayed")),
            rank=_as_rank(data.get("rank")),
            score_per_minute=_as_number(data.get("scorePerMinute")),
            raw=dict(data),
        )


@dataclass(frozen=True)
class CardField:
    label: str
    value: str
    icon: str = ""


@dataclass
class StatsCard:
    """Renderer output, turned into Telegram HTML at delivery time."""
    title: str
    description: str = ""
    fields: List[CardField] = field(default_factory=list)
    thumbnail: Optional[str] = None
    footer: str = ""
    timestamp: Optional[datetime] = None

    def add_fields(self, fields: Sequence[CardField]) -> None:
        room = MAX_FIELDS - len(self.fields)
        if room > 0:
            self.fields.extend(fields[:room])


def fmt_count(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def fmt_time_played(seconds: Number) -> str:
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def _fmt_rank(value: Rank) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


# (attribute, icon, label, formatter) in display order
STAT_FIELDS: Tuple[Tuple[str, str, str, Callable[[Number], str]], ...] = (
    ("kills", "💀", "Kills", fmt_count),
    ("deaths", "☠️", "Deaths", fmt_count),
    ("kd_ratio", "📊", "K/D Ratio", lambda v: f"{v:.2f}"),
    ("score", "⭐", "Score", fmt_count),
    ("wins", "🏆", "Wins", fmt_count),
    ("losses", "❌", "Losses", fmt_count),
    ("win_percent", "📈", "Win %", lambda v: f"{v:.1f}%"),
    ("kills_per_minute", "⚡", "Kills/Min", lambda v: f"{v:.2f}"),
    ("time_played", "⏱️", "Time Played", fmt_time_played),
    ("rank", "🎖️", "Rank", _fmt_rank),
    ("score_per_minute", "📊", "SPM", lambda v: f"{v:.0f}"),
)


def render_stats(snapshot: StatsSnapshot, name: str, platform: Platform) -> StatsCard:
    card = StatsCard(
        title=f"🎮 {name}'s Battlefield 6 Stats",
        footer=f"Platform: {platform.label}",
        timestamp=datetime.now(),
        thumbnail=snapshot.avatar,
    )
    if snapshot.user_name:
        card.description = f"Player: {snapshot.user_name}"

    fields: List[CardField] = []
    for attr, icon, label, formatter in STAT_FIELDS:
        value = getattr(snapshot, attr)
        if value is not None:
            fields.append(CardField(label, formatter(value), icon))
    card.add_fields(fields)
    return card


def fmt_search_results(query: str, results: Sequence[Any]) -> StatsCard:
    card = StatsCard(
        title=f'🔍 Search Results for "{query}"',
        description=f"Found {len(results)} player(s):",
        footer="Use !track <ID> to add a player to tracking",
        timestamp=datetime.now(),
    )
    fields: List[CardField] = []
    for index, result in enumerate(results, start=1):
        info = [f"Platform: {result.platform.label}"]
        if result.persona_id:
            info.append(f"ID: {result.persona_id}")
        if result.rank is not None:
            info.append(f"Rank: {_fmt_rank(result.rank)}")
        if result.kills is not None:
            info.append(f"Kills: {fmt_count(result.kills)}")
        fields.append(CardField(f"{index}. {result.name}", "\n".join(info)))
    card.add_fields(fields)
    return card


def fmt_player_added(player: TrackedPlayer, total: int) -> StatsCard:
    card = StatsCard(
        title="✅ Player Added to Tracking",
        description=f"{player.name} ({player.platform.label})",
        timestamp=datetime.now(),
    )
    card.add_fields([
        CardField("Player ID", player.persona_id or "N/A"),
        CardField("Platform", player.platform.label),
        CardField("Total Tracked", str(total)),
    ])
    return card


def fmt_tracked_players(players: Sequence[TrackedPlayer]) -> StatsCard:
    card = StatsCard(
        title="📊 Tracked Players",
        description=f"Currently tracking {len(players)} player(s):",
        timestamp=datetime.now(),
    )
    card.add_fields([
        CardField(f"{i}. {p.name}", f"Platform: {p.platform.label}\nID: {p.persona_id or 'N/A'}")
        for i, p in enumerate(players, start=1)
    ])
    return card


HELP_COMMANDS: Tuple[Tuple[str, str], ...] = (
    ("!add <tracker.gg URL>", "Add a player by their tracker.gg profile URL\n"
                              "Example: !add https://tracker.gg/bf6/profile/2481313248/overview"),
    ("!search <playername>", "Search for players by name and get their IDs"),
    ("!track <ID>", "Add a player to tracking using their player ID"),
    ("!list", "List all currently tracked players"),
    ("!untrack <ID>", "Remove a player from tracking"),
    ("!update", "Manually trigger stats update"),
    ("!help", "Show this help message"),
)


def fmt_help() -> StatsCard:
    card = StatsCard(
        title="🎮 BF6 Tracker Bot Commands",
        description="Commands for the Battlefield 6 tracker bot",
        footer="Stats are automatically posted at regular intervals",
    )
    card.add_fields([CardField(name, text) for name, text in HELP_COMMANDS])
    return card


def card_to_html(card: StatsCard) -> str:
    """Render a card as Telegram HTML."""
    parts: List[str] = [f"<b>{escape_html(card.title)}</b>"]
    if card.description:
        parts.append(escape_html(card.description))

    lines: List[str] = []
    for f in card.fields:
        label = escape_html(f.label)
        value = escape_html(f.value)
        prefix = f"{f.icon} " if f.icon else ""
        if "\n" in f.value:
            lines.append(f"{prefix}<b>{label}</b>\n{value}")
        else:
            lines.append(f"{prefix}<b>{label}:</b> {value}")
    if lines:
        separator = "\n\n" if any("\n" in f.value for f in card.fields) else "\n"
        parts.append(separator.join(lines))

    footer = escape_html(card.footer)
    if card.timestamp is not None:
        stamp = card.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        footer = f"{footer} · 🕒 {stamp}" if footer else f"🕒 {stamp}"
    if footer:
        parts.append(f"<i>{footer}</i>")
    return "\n\n".join(parts)
