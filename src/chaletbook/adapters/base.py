from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable, Optional, List, Iterable

from chaletbook.models import Blockage, Booking, DayStatus, PropertySettings, Room


@runtime_checkable
class BookingRepository(Protocol):
    """Read side of the booking store, as consumed by the engine."""

    # reference data
    async def list_rooms(self) -> List[Room]: ...
    async def get_settings(self) -> PropertySettings: ...

    # reservations (confirmed bookings and proposed holds)
    async def list_bookings(self, room_ids: Optional[Iterable[str]] = None) -> List[Booking]: ...
    async def list_blockages(self) -> List[Blockage]: ...

    # availability
    async def get_room_availability(
        self,
        day: date,
        room_id: str,
        exclude_session: Optional[str] = None,
    ) -> DayStatus: ...
