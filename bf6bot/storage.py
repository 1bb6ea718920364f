from __future__ import annotations

import json
import os
import tempfile
from typing import Iterator, List, Optional, Tuple

from .config import PLAYERS_FILE, logger
from .errors import AlreadyTracked, NotTracked, PersistenceFailed
from .state import TrackedPlayer


class PlayerStore:
    """Tracked players in memory, mirrored to a JSON file on every change."""

    def __init__(self, path: str = PLAYERS_FILE):
        self.path = path
        self._players: List[TrackedPlayer] = []

    def load(self) -> None:
        """Load tracked players from the JSON file, creating it when missing."""
        if not os.path.exists(self.path):
            logger.info(f"No tracked players file at {self.path}, creating an empty one")
            self._players = []
            self.save()
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not load tracked players: {PersistenceFailed(str(e))}")
            self._players = []
            return

        if not isinstance(raw, list):
            logger.error(f"Tracked players file {self.path} does not hold a JSON array, ignoring it")
            self._players = []
            return

        players: List[TrackedPlayer] = []
        for item in raw:
            try:
                player = TrackedPlayer.from_dict(item)
            except (AttributeError, ValueError) as e:
                logger.warning(f"Skipping malformed tracked player entry: {e}")
                continue
            if self._conflict(player, players) is not None:
                logger.warning(f"Skipping duplicate tracked player {player.name} ({player.platform.label})")
                continue
            players.append(player)
        self._players = players
        logger.info(f"Loaded {len(self._players)} tracked player(s) from file")

    def save(self) -> bool:
        """Rewrite the whole file. Returns False when the write failed."""
        data = [p.to_dict() for p in self._players]
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".players-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            logger.error(f"Could not save tracked players: {PersistenceFailed(str(e))}")
            return False
        logger.debug("Tracked players saved to file")
        return True

    @staticmethod
    def _conflict(player: TrackedPlayer, players: List[TrackedPlayer]) -> Optional[TrackedPlayer]:
        for existing in players:
            if player.persona_id and existing.persona_id == player.persona_id:
                return existing
            if existing.name == player.name and existing.platform == player.platform:
                return existing
        return None

    def add(self, player: TrackedPlayer) -> None:
        if self._conflict(player, self._players) is not None:
            raise AlreadyTracked(player)
        self._players.append(player)
        self.save()
        logger.info(f"Now tracking {player.name} ({player.platform.label})")

    def remove(self, query: str) -> TrackedPlayer:
        """Remove the player whose persona id equals query or whose name matches it, ignoring case."""
        lowered = query.lower()
        for index, player in enumerate(self._players):
            if (player.persona_id and player.persona_id == query) or player.name.lower() == lowered:
                del self._players[index]
                self.save()
                logger.info(f"Stopped tracking {player.name} ({player.platform.label})")
                return player
        raise NotTracked(query)

    def find(self, key: str) -> Optional[TrackedPlayer]:
        for player in self._players:
            if player.key == key:
                return player
        return None

    def list(self) -> Tuple[TrackedPlayer, ...]:
        return tuple(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[TrackedPlayer]:
        return iter(self.list())
