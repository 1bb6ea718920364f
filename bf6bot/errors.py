from __future__ import annotations

from typing import Any


class BotError(Exception):
    """Base class for errors the bot knows how to report."""


class FetchFailed(BotError):
    """A stats request produced no usable data."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class NotFound(FetchFailed):
    """Non-2xx response or a body that is not a JSON object."""


class Unreachable(FetchFailed):
    """Network error or timeout talking to the stats API."""


class AlreadyTracked(BotError):
    def __init__(self, player: Any):
        super().__init__(f"{player.name} ({player.platform.label}) is already being tracked")
        self.player = player


class NotTracked(BotError):
    def __init__(self, query: str):
        super().__init__(f"{query} is not being tracked")
        self.query = query


class PersistenceFailed(BotError):
    """Reading or writing the tracked players file failed."""
