"""
Entry points for applications embedding the booking engine.

The functions here wire the services to the process-wide repository, which is
created from the configuration on first use unless one was set explicitly.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, Iterable, Mapping, Optional, Sequence

from chaletbook.adapters.base import BookingRepository
from chaletbook.config import get_config
from chaletbook.dates import DateLike, DateRange, get_day_status, validate_date_range
from chaletbook.models import Booking, DayStatus, PropertySettings
from chaletbook.services import (
    AvailabilityService,
    CalendarContext,
    CalendarRenderer,
    ConflictResult,
    IntervalSelection,
    PriceCalculator,
    PriceMode,
    PriceRequest,
)
from chaletbook.services import conflict_service
from chaletbook.services.calendar import CalendarView
from chaletbook.services.selection import FailureListener, SelectionListener

logger = logging.getLogger(__name__)

# Global repository instance
_repository: Optional[BookingRepository] = None


def get_repository() -> BookingRepository:
    """Returns the process-wide repository, creating it from the configuration if needed."""
    global _repository
    if _repository is None:
        _repository = get_config().create_adapter()
    return _repository


def set_repository(repository: Optional[BookingRepository]) -> None:
    global _repository
    _repository = repository


# ------------------------------------
# Pure operations
# ------------------------------------
def resolve_day_status(day: DateLike, ranges: Iterable[DateRange]) -> DayStatus:
    return get_day_status(day, ranges)


def detect_conflict(
    candidate: DateRange,
    room_ids: Iterable[str],
    bookings: Sequence[Booking],
    exclude_booking_id: Optional[str] = None,
    per_room_ranges: Optional[Mapping[str, DateRange]] = None,
) -> ConflictResult:
    return conflict_service.detect_conflict(candidate, room_ids, bookings, exclude_booking_id, per_room_ranges)


def compute_price(mode: PriceMode, request: PriceRequest, settings: Optional[PropertySettings] = None) -> int:
    """
    Total price in whole currency units. Without ``settings`` the price lists
    are read from the repository, which needs no running event loop; use
    ``quote_price`` from async code.
    """
    if settings is None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            settings = asyncio.run(get_repository().get_settings())
        else:
            raise RuntimeError("compute_price cannot load settings inside a running event loop; use quote_price.")
    return PriceCalculator(settings).compute_price(mode, request)


async def quote_price(mode: PriceMode, request: PriceRequest, settings: Optional[PropertySettings] = None) -> int:
    if settings is None:
        settings = await get_repository().get_settings()
    return PriceCalculator(settings).compute_price(mode, request)


# ------------------------------------
# Repository-backed operations
# ------------------------------------
async def check_room_availability(
    day: DateLike,
    room_id: str,
    exclude_session: Optional[str] = None,
) -> DayStatus:
    return await AvailabilityService(get_repository()).room_status(day, room_id, exclude_session)


async def validate_booking_request(
    start: DateLike,
    end: DateLike,
    room_ids: Optional[Iterable[str]] = None,
    is_admin: bool = False,
    exclude_booking_id: Optional[str] = None,
    exclude_session: Optional[str] = None,
    per_room_ranges: Optional[Mapping[str, DateRange]] = None,
    today: Optional[date] = None,
) -> DateRange:
    """
    Final check before a booking is stored: the dates must be bookable and no
    room may be taken for any of the nights. Bookings are re-read from the
    repository so that holds placed since the selection was made count.

    ``room_ids`` of None means the whole chalet.
    """
    stay = validate_date_range(
        start,
        end,
        is_admin=is_admin,
        today=today,
        horizon_years=get_config().get_booking_horizon_years(),
    )
    repository = get_repository()
    if room_ids is None:
        rooms = [room.id for room in await repository.list_rooms()]
    else:
        rooms = list(room_ids)

    bookings = await repository.list_bookings(rooms)
    conflict_service.ensure_no_conflict(
        stay,
        rooms,
        bookings,
        exclude_booking_id=exclude_booking_id,
        per_room_ranges=per_room_ranges,
        exclude_session=exclude_session,
    )
    logger.info(f"Booking request {stay} for rooms {rooms} passed validation")
    return stay


def create_selection(
    context: CalendarContext,
    on_selection_changed: Optional[SelectionListener] = None,
    on_validation_failed: Optional[FailureListener] = None,
) -> IntervalSelection:
    availability = AvailabilityService(get_repository())
    return IntervalSelection.for_availability(context, availability, on_selection_changed, on_validation_failed)


def create_renderer(
    context: CalendarContext,
    on_render: Callable[[CalendarView], None],
    today: Optional[date] = None,
) -> CalendarRenderer:
    return CalendarRenderer(AvailabilityService(get_repository()), context, on_render, today)


__all__ = [
    "check_room_availability",
    "compute_price",
    "create_renderer",
    "create_selection",
    "detect_conflict",
    "get_repository",
    "quote_price",
    "resolve_day_status",
    "set_repository",
    "validate_booking_request",
]
