from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional

from chaletbook.models import Blockage, Booking, DayStatus, PropertySettings, Room
from chaletbook.services.availability_service import resolve_room_status

logger = logging.getLogger(__name__)


class InMemoryBookingRepository:
    """Repository over plain Python objects, for embedding and tests."""

    def __init__(
        self,
        settings: PropertySettings,
        bookings: Iterable[Booking] = (),
        blockages: Iterable[Blockage] = (),
    ):
        self.settings = settings
        self.bookings: List[Booking] = list(bookings)
        self.blockages: List[Blockage] = list(blockages)

    # ------------------------------------
    # Writes
    # ------------------------------------
    def add_booking(self, booking: Booking) -> Booking:
        logger.info(f"Storing booking {booking.id} ({booking.status.value}) for rooms {list(booking.rooms)}")
        self.bookings.append(booking)
        return booking

    def remove_booking(self, booking_id: str) -> bool:
        before = len(self.bookings)
        self.bookings = [b for b in self.bookings if b.id != booking_id]
        return len(self.bookings) < before

    def add_blockage(self, blockage: Blockage) -> Blockage:
        self.blockages.append(blockage)
        return blockage

    def clear_session_proposals(self, session_id: str) -> int:
        kept = [b for b in self.bookings if not (b.is_proposed and b.session_id == session_id)]
        removed = len(self.bookings) - len(kept)
        self.bookings = kept
        return removed

    # ------------------------------------
    # BookingRepository
    # ------------------------------------
    async def list_rooms(self) -> List[Room]:
        return list(self.settings.rooms)

    async def get_settings(self) -> PropertySettings:
        return self.settings

    async def list_bookings(self, room_ids: Optional[Iterable[str]] = None) -> List[Booking]:
        if room_ids is None:
            return list(self.bookings)
        wanted = list(room_ids)
        return [b for b in self.bookings if b.shares_rooms(wanted)]

    async def list_blockages(self) -> List[Blockage]:
        return list(self.blockages)

    async def get_room_availability(
        self,
        day: date,
        room_id: str,
        exclude_session: Optional[str] = None,
    ) -> DayStatus:
        bookings = await self.list_bookings([room_id])
        return resolve_room_status(day, room_id, bookings, self.blockages, exclude_session).status
