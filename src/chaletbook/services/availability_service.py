from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Sequence, Tuple

from chaletbook.dates import DateLike, DateRange, format_date, get_previous_day, to_date
from chaletbook.exceptions import ValidationRejected
from chaletbook.models import Blockage, Booking, DayStatus, NightState
from chaletbook.services.conflict_service import detect_conflict

if TYPE_CHECKING:
    from chaletbook.adapters.base import BookingRepository

logger = logging.getLogger(__name__)


# ------------------------------------
# Pure resolution
# ------------------------------------
@dataclass(frozen=True)
class RoomDayStatus:
    """Status of one room on one day, with the two nights it was derived from."""

    day: date
    room_id: str
    status: DayStatus
    night_before: NightState = field(default=NightState.FREE)
    night_after: NightState = field(default=NightState.FREE)
    email: Optional[str] = field(default=None)

    @property
    def is_mixed(self) -> bool:
        """Both nights held, one by a confirmed booking and one by a proposal."""
        return (self.night_before.is_occupied and self.night_after.is_occupied
                and self.night_before is not self.night_after)


def _night_state(
    night: date,
    room_id: str,
    bookings: Sequence[Booking],
    exclude_session: Optional[str],
    exclude_booking_id: Optional[str],
) -> Tuple[NightState, Optional[str]]:
    state = NightState.FREE
    email = None
    for booking in bookings:
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if booking.is_proposed and exclude_session is not None and booking.session_id == exclude_session:
            continue
        if not booking.occupies(room_id, night):
            continue
        if not booking.is_proposed:
            # A confirmed booking outranks any proposal on the same night
            return NightState.CONFIRMED, booking.email
        state = NightState.PROPOSED
        email = email or booking.email
    return state, email


def resolve_room_status(
    day: DateLike,
    room_id: str,
    bookings: Iterable[Booking],
    blockages: Iterable[Blockage] = (),
    exclude_session: Optional[str] = None,
    exclude_booking_id: Optional[str] = None,
) -> RoomDayStatus:
    """
    Resolves a room's status on a day.

    Precedence: blocked > occupied (confirmed) > proposed > available/edge. A
    day with exactly one of its two adjacent nights held is an edge day and can
    still start or end a new stay.
    """
    check = to_date(day)
    if any(b.blocks(check, room_id) for b in blockages):
        return RoomDayStatus(check, room_id, DayStatus.BLOCKED)

    relevant = [b for b in bookings if b.includes_room(room_id)]
    before, before_email = _night_state(get_previous_day(check), room_id, relevant,
                                        exclude_session, exclude_booking_id)
    after, after_email = _night_state(check, room_id, relevant, exclude_session, exclude_booking_id)
    email = after_email or before_email

    occupied = int(before.is_occupied) + int(after.is_occupied)
    if occupied == 0:
        status = DayStatus.AVAILABLE
    elif occupied == 1:
        status = DayStatus.EDGE
    elif NightState.CONFIRMED in (before, after):
        status = DayStatus.OCCUPIED
    else:
        status = DayStatus.PROPOSED

    return RoomDayStatus(check, room_id, status, before, after, email)


def aggregate_status(statuses: Iterable[DayStatus]) -> DayStatus:
    """Folds per-room statuses into one whole-chalet status (worst room wins)."""
    statuses = list(statuses)
    if not statuses:
        return DayStatus.AVAILABLE
    return max(statuses, key=lambda s: s.precedence)


def is_fully_available(statuses: Iterable[DayStatus]) -> bool:
    return all(s.is_selectable for s in statuses)


@dataclass(frozen=True)
class IntervalValidation:
    """Outcome of checking every day of a selection against every target room."""

    selection: DateRange
    ok: bool
    day: Optional[date] = field(default=None)
    room_id: Optional[str] = field(default=None)
    status: Optional[DayStatus] = field(default=None)

    @property
    def reason(self) -> Optional[str]:
        if self.ok:
            return None
        return (f"{format_date(self.day)} is not available for room {self.room_id} "
                f"({self.status.value}).")


def check_interval(
    selection: DateRange,
    statuses: Dict[date, Dict[str, DayStatus]],
) -> IntervalValidation:
    """
    Every day of the selection must be available or edge. Only the first and
    last day may be edge days: an edge day inside the selection means one of
    the selected nights is already held.
    """
    for day in selection.days():
        for room_id, status in statuses.get(day, {}).items():
            inner = selection.start < day < selection.end
            if not status.is_selectable or (inner and status is DayStatus.EDGE):
                return IntervalValidation(selection, False, day, room_id, status)
    return IntervalValidation(selection, True)


# ------------------------------------
# Repository-backed service
# ------------------------------------
class AvailabilityService:
    """
    Asks the repository for room statuses. Lookups for several rooms on the
    same day run concurrently.
    """

    def __init__(self, repository: BookingRepository):
        self.repository = repository

    async def room_status(self, day: DateLike, room_id: str, exclude_session: Optional[str] = None) -> DayStatus:
        status = await self.repository.get_room_availability(to_date(day), room_id, exclude_session)
        return DayStatus.parse(status)

    async def _target_rooms(self, room_ids: Optional[Iterable[str]]) -> List[str]:
        if room_ids is not None:
            return list(room_ids)
        return [room.id for room in await self.repository.list_rooms()]

    async def statuses_for_day(
        self,
        day: DateLike,
        room_ids: Optional[Iterable[str]] = None,
        exclude_session: Optional[str] = None,
    ) -> Dict[str, DayStatus]:
        rooms = await self._target_rooms(room_ids)
        results = await asyncio.gather(*(self.room_status(day, r, exclude_session) for r in rooms))
        return dict(zip(rooms, results))

    async def is_date_fully_available(
        self,
        day: DateLike,
        exclude_session: Optional[str] = None,
        room_ids: Optional[Iterable[str]] = None,
    ) -> bool:
        statuses = await self.statuses_for_day(day, room_ids, exclude_session)
        return is_fully_available(statuses.values())

    async def property_status(self, day: DateLike, exclude_session: Optional[str] = None) -> DayStatus:
        statuses = await self.statuses_for_day(day, None, exclude_session)
        return aggregate_status(statuses.values())

    async def validate_interval(
        self,
        selection: DateRange,
        room_ids: Optional[Iterable[str]] = None,
        exclude_session: Optional[str] = None,
    ) -> IntervalValidation:
        """Checks a selection day by day; all rooms when ``room_ids`` is None (bulk)."""
        rooms = await self._target_rooms(room_ids)
        for day in selection.days():
            statuses = await self.statuses_for_day(day, rooms, exclude_session)
            result = check_interval(selection, {day: statuses})
            if not result.ok:
                logger.info(f"Selection {selection} rejected: {result.reason}")
                return result

        # Two edge days at the ends can still enclose a held night
        if selection.nights:
            clash = detect_conflict(selection, rooms, await self.repository.list_bookings(rooms),
                                    exclude_session=exclude_session)
            if clash:
                held = clash.booking.range_for_room(clash.room_id)
                status = DayStatus.PROPOSED if clash.booking.is_proposed else DayStatus.OCCUPIED
                result = IntervalValidation(selection, False, max(selection.start, held.start), clash.room_id, status)
                logger.info(f"Selection {selection} rejected: {result.reason}")
                return result
        return IntervalValidation(selection, True)

    async def ensure_interval_available(
        self,
        selection: DateRange,
        room_ids: Optional[Iterable[str]] = None,
        exclude_session: Optional[str] = None,
    ) -> DateRange:
        result = await self.validate_interval(selection, room_ids, exclude_session)
        if not result.ok:
            raise ValidationRejected(result.reason, day=result.day, room_id=result.room_id)
        return selection
