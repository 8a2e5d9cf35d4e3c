"""Closed set of day statuses shown on the booking calendar."""
from __future__ import annotations

from enum import Enum


class DayStatus(str, Enum):
    AVAILABLE = "available"
    EDGE = "edge"
    OCCUPIED = "occupied"
    PROPOSED = "proposed"
    BLOCKED = "blocked"

    @classmethod
    def parse(cls, value: str) -> "DayStatus":
        """Accepts the stored status names, including the legacy 'booked' alias."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "booked":
            return cls.OCCUPIED
        return cls(normalized)

    @property
    def is_selectable(self) -> bool:
        return _SELECTABLE[self]

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]


# Every member must appear in both tables; tests check the keys against the enum.
_SELECTABLE = {
    DayStatus.AVAILABLE: True,
    DayStatus.EDGE: True,
    DayStatus.OCCUPIED: False,
    DayStatus.PROPOSED: False,
    DayStatus.BLOCKED: False,
}

_PRECEDENCE = {
    DayStatus.AVAILABLE: 0,
    DayStatus.EDGE: 1,
    DayStatus.PROPOSED: 2,
    DayStatus.OCCUPIED: 3,
    DayStatus.BLOCKED: 4,
}


class NightState(str, Enum):
    """Who holds a single night for a room."""

    FREE = "free"
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"

    @property
    def is_occupied(self) -> bool:
        return self is not NightState.FREE
