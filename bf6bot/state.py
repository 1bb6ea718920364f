from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

if TYPE_CHECKING:
    from .formatting import StatsSnapshot


class Platform(Enum):
    """Platforms the stats API knows about, in lookup order."""
    PC = "pc"
    XBOX = "xbox"
    PSN = "psn"

    @property
    def label(self) -> str:
        return self.value.upper()


PLATFORMS = (Platform.PC, Platform.XBOX, Platform.PSN)


@dataclass(frozen=True)
class TrackedPlayer:
    name: str
    platform: Platform
    persona_id: Optional[str] = None

    @property
    def key(self) -> str:
        """Identity key: persona id when known, else name + platform."""
        if self.persona_id:
            return self.persona_id
        return f"{self.name}_{self.platform.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "platform": self.platform.value, "personaId": self.persona_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackedPlayer":
        name = data.get("name")
        if not name:
            raise ValueError(f"Tracked player entry has no name: {data!r}")
        persona_id = data.get("personaId")
        return cls(
            name=str(name),
            platform=Platform(str(data.get("platform", "")).lower()),
            persona_id=str(persona_id) if persona_id else None,
        )


class LastStatsCache:
    """Last posted snapshot per identity key, kept for the process lifetime."""

    def __init__(self) -> None:
        self._entries: Dict[str, "StatsSnapshot"] = {}

    def get(self, key: str) -> Optional["StatsSnapshot"]:
        return self._entries.get(key)

    def set(self, key: str, snapshot: "StatsSnapshot") -> None:
        self._entries[key] = snapshot

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
