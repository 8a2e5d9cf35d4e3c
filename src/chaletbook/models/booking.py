from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Dict, Any, Tuple, Iterable

from chaletbook.dates import DateRange, DateLike, to_date, format_date
from chaletbook.models.guests import GuestComposition


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    PROPOSED = "proposed"


@dataclass(frozen=True)
class RoomAllocation:
    """Per-room override of a booking's dates and/or guests."""

    room_id: str
    date_range: Optional[DateRange] = field(default=None)
    guests: Optional[GuestComposition] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"room_id": self.room_id}
        if self.date_range is not None:
            data.update(self.date_range.to_dict())
        if self.guests is not None:
            data["guests"] = self.guests.to_dict()
        return data

    @classmethod
    def from_dict(cls, room_id: str, data: Dict[str, Any]) -> RoomAllocation:
        date_range = None
        start = data.get("start_date", data.get("startDate"))
        end = data.get("end_date", data.get("endDate"))
        if start and end:
            date_range = DateRange.of(start, end)
        guests = data.get("guests")
        return cls(
            room_id=str(room_id),
            date_range=date_range,
            guests=GuestComposition.from_dict(guests) if guests else None,
        )


@dataclass(frozen=True)
class Booking:
    """Existing reservation (confirmed) or short-lived hold (proposed)."""

    id: str
    rooms: Tuple[str, ...]
    date_range: DateRange
    status: BookingStatus = field(default=BookingStatus.CONFIRMED)
    guests: GuestComposition = field(default_factory=GuestComposition)
    per_room: Dict[str, RoomAllocation] = field(default_factory=dict)
    session_id: Optional[str] = field(default=None)
    email: Optional[str] = field(default=None)
    total_price: Optional[int] = field(default=None)
    is_bulk: bool = field(default=False)
    created_at: Optional[datetime] = field(default=None)

    # ------------------------------------
    # Methods
    # ------------------------------------

    @property
    def is_proposed(self) -> bool:
        return self.status is BookingStatus.PROPOSED

    def includes_room(self, room_id: str) -> bool:
        return room_id in self.rooms

    def shares_rooms(self, room_ids: Iterable[str]) -> bool:
        return any(r in self.rooms for r in room_ids)

    def range_for_room(self, room_id: str) -> DateRange:
        """Dates this booking holds the room for, honouring a per-room override."""
        allocation = self.per_room.get(room_id)
        if allocation is not None and allocation.date_range is not None:
            return allocation.date_range
        return self.date_range

    def guests_for_room(self, room_id: str) -> Optional[GuestComposition]:
        allocation = self.per_room.get(room_id)
        if allocation is not None:
            return allocation.guests
        return None

    def occupies(self, room_id: str, night: DateLike) -> bool:
        return self.includes_room(room_id) and self.range_for_room(room_id).occupies(night)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "rooms": list(self.rooms),
            "status": self.status.value,
            "session_id": self.session_id,
            "email": self.email,
            "total_price": self.total_price,
            "is_bulk": self.is_bulk,
            "per_room": {rid: a.to_dict() for rid, a in self.per_room.items()},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        data.update(self.date_range.to_dict())
        data.update(self.guests.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Booking:
        data = data.copy()
        created_at = data.get("created_at")
        if created_at and isinstance(created_at, str):
            try:
                created_at = datetime.fromisoformat(created_at)
            except ValueError:
                created_at = None

        per_room_raw = data.get("per_room") or {}
        per_room = {str(rid): RoomAllocation.from_dict(rid, raw) for rid, raw in per_room_raw.items()}

        total_price = data.get("total_price")
        return cls(
            id=str(data["id"]),
            rooms=tuple(str(r) for r in data.get("rooms") or ()),
            date_range=DateRange.of(data.get("start_date", data.get("startDate")),
                                    data.get("end_date", data.get("endDate"))),
            status=BookingStatus(data.get("status") or BookingStatus.CONFIRMED.value),
            guests=GuestComposition.from_dict(data),
            per_room=per_room,
            session_id=data.get("session_id"),
            email=data.get("email"),
            total_price=int(total_price) if total_price is not None else None,
            is_bulk=bool(data.get("is_bulk", False)),
            created_at=created_at,
        )


@dataclass(frozen=True)
class Blockage:
    """
    Administrative closure. Unlike stays, its range covers whole days with the
    end day included; no rooms listed means the whole chalet is closed.
    """

    id: str
    start: date
    end: date
    rooms: Tuple[str, ...] = field(default=())
    reason: Optional[str] = field(default=None)

    def blocks(self, day: DateLike, room_id: str) -> bool:
        check = to_date(day)
        if not (self.start <= check <= self.end):
            return False
        return not self.rooms or room_id in self.rooms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_date": format_date(self.start),
            "end_date": format_date(self.end),
            "rooms": list(self.rooms),
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Blockage:
        span = DateRange.of(data["start_date"], data.get("end_date") or data["start_date"])
        return cls(
            id=str(data["id"]),
            start=span.start,
            end=span.end,
            rooms=tuple(str(r) for r in data.get("rooms") or ()),
            reason=data.get("reason"),
        )
