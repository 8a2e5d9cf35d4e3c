from .base import BookingRepository
from .memory_adapter import InMemoryBookingRepository
from .sqlite_adapter import SQLiteBookingAdapter

__all__ = [
    "BookingRepository",
    "InMemoryBookingRepository",
    "SQLiteBookingAdapter",
]
