from chaletbook.dates import DateRange
from chaletbook.status import DayStatus, NightState
from .room import Room, SizeTier
from .guests import Affiliation, PersonType, Guest, GuestComposition
from .booking import Booking, BookingStatus, RoomAllocation, Blockage
from .pricing import TierPrices, PriceTierConfig, BulkPriceConfig, PropertySettings

__all__ = [
    "DateRange",
    "DayStatus",
    "NightState",
    "Room",
    "SizeTier",
    "Affiliation",
    "PersonType",
    "Guest",
    "GuestComposition",
    "Booking",
    "BookingStatus",
    "RoomAllocation",
    "Blockage",
    "TierPrices",
    "PriceTierConfig",
    "BulkPriceConfig",
    "PropertySettings",
]
