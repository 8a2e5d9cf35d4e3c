from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from chaletbook.dates import DateRange
from chaletbook.exceptions import ConflictDetected
from chaletbook.models import Booking

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictResult:
    has_conflict: bool
    room_id: Optional[str] = field(default=None)
    booking: Optional[Booking] = field(default=None)

    def __bool__(self) -> bool:
        return self.has_conflict


NO_CONFLICT = ConflictResult(False)


def ranges_overlap(first: DateRange, second: DateRange) -> bool:
    """Two stays clash only if they share a night; check-out day == check-in day is fine."""
    return first.start < second.end and second.start < first.end


def detect_conflict(
    candidate: DateRange,
    room_ids: Iterable[str],
    bookings: Sequence[Booking],
    exclude_booking_id: Optional[str] = None,
    per_room_ranges: Optional[Mapping[str, DateRange]] = None,
    exclude_session: Optional[str] = None,
) -> ConflictResult:
    """
    Finds the first existing booking that shares a night with the candidate in
    one of the target rooms.

    Both sides are compared per room: the candidate may carry its own dates for
    a room (``per_room_ranges``) and so may every existing booking.
    """
    per_room_ranges = per_room_ranges or {}
    for room_id in room_ids:
        wanted = per_room_ranges.get(room_id, candidate)
        for booking in bookings:
            if exclude_booking_id is not None and booking.id == exclude_booking_id:
                continue
            if booking.is_proposed and exclude_session is not None and booking.session_id == exclude_session:
                continue
            if not booking.includes_room(room_id):
                continue
            if ranges_overlap(wanted, booking.range_for_room(room_id)):
                logger.debug(f"Room {room_id}: {wanted} clashes with booking {booking.id}")
                return ConflictResult(True, room_id, booking)
    return NO_CONFLICT


def ensure_no_conflict(
    candidate: DateRange,
    room_ids: Iterable[str],
    bookings: Sequence[Booking],
    exclude_booking_id: Optional[str] = None,
    per_room_ranges: Optional[Mapping[str, DateRange]] = None,
    exclude_session: Optional[str] = None,
) -> None:
    result = detect_conflict(candidate, room_ids, bookings, exclude_booking_id,
                             per_room_ranges, exclude_session)
    if result.has_conflict:
        raise ConflictDetected(result.room_id, result.booking)
