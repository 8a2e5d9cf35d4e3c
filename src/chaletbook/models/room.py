from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any

# Rooms with at least this many beds are priced at the large tier
LARGE_ROOM_MIN_BEDS = 4


class SizeTier(str, Enum):
    SMALL = "small"
    LARGE = "large"

    @classmethod
    def for_beds(cls, beds: int) -> "SizeTier":
        return cls.LARGE if beds >= LARGE_ROOM_MIN_BEDS else cls.SMALL


@dataclass(frozen=True)
class Room:
    """Individually bookable room of the chalet."""

    id: str
    beds: int
    name: Optional[str] = field(default=None)
    size: Optional[SizeTier] = field(default=None)

    @property
    def tier(self) -> SizeTier:
        if self.size is not None:
            return self.size
        return SizeTier.for_beds(self.beds)

    @property
    def display_name(self) -> str:
        return self.name or f"Room {self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "beds": self.beds, "type": self.tier.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Room:
        size = data.get("type") or data.get("size")
        beds = data.get("beds", data.get("capacity", 0))
        return cls(
            id=str(data["id"]),
            beds=int(beds or 0),
            name=data.get("name"),
            size=SizeTier(size) if size else None,
        )
