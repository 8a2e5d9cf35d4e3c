"""Custom exceptions for chaletbook."""
from __future__ import annotations

from typing import Any, Optional


class ChaletBookError(Exception):
    """Base exception for all chaletbook errors."""
    pass


class ConfigurationError(ChaletBookError):
    """Raised when configuration (including price lists) is invalid or missing."""
    pass


class InvalidDateFormat(ChaletBookError, ValueError):
    """Raised when a date string is not in YYYY-MM-DD form or names no real day."""

    def __init__(self, value: Any):
        super().__init__(f"Invalid date '{value}'. Expected YYYY-MM-DD.")
        self.value = value


class InvalidDateRange(ChaletBookError, ValueError):
    """Raised when a date range is reversed or not acceptable for a booking."""
    pass


class ValidationRejected(ChaletBookError):
    """Raised when a selected interval contains a day that cannot be booked."""

    def __init__(self, reason: str, day: Any = None, room_id: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.day = day
        self.room_id = room_id


class ConflictDetected(ChaletBookError):
    """Raised when a requested stay shares a night with an existing booking."""

    def __init__(self, room_id: str, booking: Any):
        booking_id = getattr(booking, "id", None)
        super().__init__(f"Room {room_id} is already booked by {booking_id} for part of the requested stay.")
        self.room_id = room_id
        self.booking = booking


class RepositoryError(ChaletBookError):
    """Raised when the booking repository cannot answer."""
    pass


class DatabaseError(RepositoryError):
    """Raised when database operations fail."""
    pass


class AdapterError(RepositoryError):
    """Raised when adapter operations fail."""
    pass
