"""
Price calculation for room and whole-chalet bookings.

Three modes are supported:

* ``AGGREGATE``: guest counts with one affiliation, priced per room by its size.
* ``ROSTER``: named guests, each with their own affiliation. A room is priced
  at the internal empty-room rate as soon as one internal guest sleeps in it,
  while every guest still pays the surcharge of their own affiliation.
* ``BULK``: the whole chalet at one flat nightly base plus per-guest surcharges.

Amounts are kept exact while the lines are built; only the final total is
rounded, half-up, to whole currency units. A breakdown shown for an existing
booking is reconciled to the total stored with the booking, which stays
authoritative even when the price lists changed since.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from chaletbook.dates import DateRange
from chaletbook.models import (
    Affiliation,
    Booking,
    Guest,
    GuestComposition,
    PersonType,
    PropertySettings,
    SizeTier,
)

logger = logging.getLogger(__name__)


class PriceMode(str, Enum):
    AGGREGATE = "aggregate"
    ROSTER = "roster"
    BULK = "bulk"


def round_price(amount: Decimal) -> int:
    """Rounds to whole currency units, halves going up."""
    return int(Decimal(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class PriceRequest:
    """Everything a price depends on apart from the price lists."""

    nights: int
    affiliation: Affiliation = field(default=Affiliation.EXTERNAL)
    adults: int = 0
    children: int = 0
    toddlers: int = 0
    rooms: Tuple[str, ...] = field(default=())
    rooms_count: Optional[int] = field(default=None)
    roster: Tuple[Guest, ...] = field(default=())
    room_rosters: Mapping[str, Tuple[Guest, ...]] = field(default_factory=dict)
    room_nights: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.nights < 0 or any(n < 0 for n in self.room_nights.values()):
            raise ValueError("Number of nights cannot be negative.")
        if min(self.adults, self.children, self.toddlers) < 0:
            raise ValueError("Guest counts cannot be negative.")
        if self.rooms_count is not None and self.rooms_count < 0:
            raise ValueError("Number of rooms cannot be negative.")

    @classmethod
    def for_stay(
        cls,
        stay: DateRange,
        guests: GuestComposition,
        rooms: Sequence[str] = (),
    ) -> PriceRequest:
        return cls(
            nights=stay.nights,
            affiliation=guests.affiliation,
            adults=guests.adults,
            children=guests.children,
            toddlers=guests.toddlers,
            rooms=tuple(rooms),
            roster=guests.roster,
        )

    def nights_for(self, room_id: str) -> int:
        return self.room_nights.get(room_id, self.nights)


@dataclass(frozen=True)
class PriceLine:
    label: str
    quantity: int
    unit_price: Decimal
    nights: int

    @property
    def amount(self) -> Decimal:
        return self.unit_price * self.quantity * self.nights


@dataclass(frozen=True)
class PriceBreakdown:
    mode: PriceMode
    lines: Tuple[PriceLine, ...]
    stored_total: Optional[int] = field(default=None)

    @property
    def exact_total(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal(0))

    @property
    def computed_total(self) -> int:
        return round_price(self.exact_total)

    @property
    def total(self) -> int:
        """Stored total when reconciled, otherwise the freshly computed one."""
        if self.stored_total is not None:
            return self.stored_total
        return self.computed_total

    @property
    def adjustment(self) -> int:
        """Difference between the stored total and today's recomputation."""
        return self.total - self.computed_total

    def reconcile(self, stored_total: Optional[int]) -> PriceBreakdown:
        if stored_total is None:
            return self
        breakdown = replace(self, stored_total=int(stored_total))
        if breakdown.adjustment:
            logger.info(
                f"Stored total {stored_total} differs from recomputed {self.computed_total}; "
                "keeping the stored total."
            )
        return breakdown


def distribute_roster(roster: Sequence[Guest], rooms: int) -> List[Tuple[Guest, ...]]:
    """Splits guests into contiguous, evenly sized groups; earlier rooms take the remainder."""
    if rooms <= 0:
        return []
    size, extra = divmod(len(roster), rooms)
    groups = []
    start = 0
    for index in range(rooms):
        end = start + size + (1 if index < extra else 0)
        groups.append(tuple(roster[start:end]))
        start = end
    return groups


def room_bracket(guests: Sequence[Guest]) -> Affiliation:
    """A room is priced at the internal empty-room rate if anyone in it is internal."""
    if any(g.affiliation is Affiliation.INTERNAL for g in guests):
        return Affiliation.INTERNAL
    return Affiliation.EXTERNAL


class PriceCalculator:
    """Computes prices from the chalet's configured price lists."""

    def __init__(self, settings: PropertySettings):
        self.settings = settings
        self._handlers = {
            PriceMode.AGGREGATE: self._aggregate_lines,
            PriceMode.ROSTER: self._roster_lines,
            PriceMode.BULK: self._bulk_lines,
        }

    def compute_price(self, mode: PriceMode, request: PriceRequest) -> int:
        return self.price_breakdown(mode, request).computed_total

    def price_breakdown(self, mode: PriceMode, request: PriceRequest) -> PriceBreakdown:
        handler = self._handlers[PriceMode(mode)]
        return PriceBreakdown(mode=PriceMode(mode), lines=tuple(handler(request)))

    def booking_breakdown(self, booking: Booking) -> PriceBreakdown:
        """Breakdown of an existing booking, reconciled to its stored total."""
        mode, request = request_for_booking(booking)
        return self.price_breakdown(mode, request).reconcile(booking.total_price)

    # ------------------------------------
    # Modes
    # ------------------------------------
    def _room_tiers(self, request: PriceRequest) -> List[SizeTier]:
        if request.rooms:
            return [self.settings.room(room_id).tier for room_id in request.rooms]
        # Without room ids the sizes are unknown; price them as small rooms
        count = 1 if request.rooms_count is None else request.rooms_count
        return [SizeTier.SMALL] * count

    def _aggregate_lines(self, request: PriceRequest) -> List[PriceLine]:
        prices = self.settings.require_prices()
        tiers = self._room_tiers(request)
        if not tiers and (request.adults or request.children or request.toddlers):
            raise ValueError("Guests cannot be priced without a room.")
        tier_prices = [prices.prices(request.affiliation, tier) for tier in tiers]
        nights = request.nights

        lines = []
        for tier, count in sorted(Counter(tiers).items(), key=lambda item: item[0].value):
            empty = prices.prices(request.affiliation, tier).empty_price
            lines.append(PriceLine(f"Room ({tier.value}, {request.affiliation.value})", count, empty, nights))

        if not tier_prices:
            return lines

        # Mixed room sizes share one averaged surcharge per guest
        adult_rate = sum((p.adult for p in tier_prices), Decimal(0)) / len(tier_prices)
        child_rate = sum((p.child for p in tier_prices), Decimal(0)) / len(tier_prices)
        if request.adults:
            lines.append(PriceLine("Adults", request.adults, adult_rate, nights))
        if request.children:
            lines.append(PriceLine("Children", request.children, child_rate, nights))
        if request.toddlers:
            lines.append(PriceLine("Toddlers", request.toddlers, Decimal(0), nights))
        return lines

    def _roster_lines(self, request: PriceRequest) -> List[PriceLine]:
        prices = self.settings.require_prices()
        if not request.rooms:
            raise ValueError("Roster pricing needs the list of rooms.")

        shared_rooms = [r for r in request.rooms if r not in request.room_rosters]
        shared = dict(zip(shared_rooms, distribute_roster(request.roster, len(shared_rooms))))

        lines = []
        for room_id in request.rooms:
            room = self.settings.room(room_id)
            guests = request.room_rosters.get(room_id, shared.get(room_id, ()))
            nights = request.nights_for(room_id)
            bracket = room_bracket(guests)

            empty = prices.prices(bracket, room.tier).empty_price
            lines.append(PriceLine(f"Room {room_id} ({room.tier.value}, {bracket.value})", 1, empty, nights))

            counts = Counter((g.affiliation, g.person_type) for g in guests if g.is_paying)
            for (affiliation, person_type), count in sorted(counts.items(), key=_guest_key):
                rate = prices.prices(affiliation, room.tier).surcharge(person_type)
                label = f"Room {room_id}: {affiliation.value} {person_type.value}"
                lines.append(PriceLine(label, count, rate, nights))
        return lines

    def _bulk_lines(self, request: PriceRequest) -> List[PriceLine]:
        bulk = self.settings.require_bulk_prices()
        nights = request.nights

        if request.roster:
            counts = Counter((g.affiliation, g.person_type) for g in request.roster if g.is_paying)
        else:
            counts = Counter({
                (request.affiliation, PersonType.ADULT): request.adults,
                (request.affiliation, PersonType.CHILD): request.children,
            })

        lines = [PriceLine("Whole chalet", 1, bulk.base_price, nights)]
        for (affiliation, person_type), count in sorted(counts.items(), key=_guest_key):
            if count:
                rate = bulk.surcharge(affiliation, person_type)
                lines.append(PriceLine(f"{affiliation.value} {person_type.value}", count, rate, nights))
        return lines


def _guest_key(item) -> Tuple[str, str]:
    (affiliation, person_type), _ = item
    return affiliation.value, person_type.value


def request_for_booking(booking: Booking) -> Tuple[PriceMode, PriceRequest]:
    """Chooses the pricing mode that matches how a booking was made."""
    nights = booking.date_range.nights
    if booking.is_bulk:
        return PriceMode.BULK, PriceRequest.for_stay(booking.date_range, booking.guests)

    room_rosters: Dict[str, Tuple[Guest, ...]] = {}
    room_nights: Dict[str, int] = {}
    for room_id in booking.rooms:
        guests = booking.guests_for_room(room_id)
        if guests is not None:
            room_rosters[room_id] = guests.as_roster()
        room_nights[room_id] = booking.range_for_room(room_id).nights

    per_room_dates = any(n != nights for n in room_nights.values())
    if booking.guests.has_roster or room_rosters or per_room_dates:
        request = PriceRequest(
            nights=nights,
            affiliation=booking.guests.affiliation,
            rooms=booking.rooms,
            roster=booking.guests.as_roster(),
            room_rosters=room_rosters,
            room_nights=room_nights,
        )
        return PriceMode.ROSTER, request

    return PriceMode.AGGREGATE, PriceRequest.for_stay(booking.date_range, booking.guests, booking.rooms)
