"""
Base configuration abstractions for chaletbook.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from chaletbook.adapters.base import BookingRepository
from chaletbook.dates import DEFAULT_HORIZON_YEARS


class ChaletBookConfig(ABC):
    """Abstract configuration contract for embedding applications."""

    @abstractmethod
    def get_database_url(self) -> str: pass

    @abstractmethod
    def create_adapter(self) -> BookingRepository: pass

    def get_log_level(self) -> str: return "INFO"
    def get_booking_horizon_years(self) -> int: return DEFAULT_HORIZON_YEARS
    def get_seed_defaults(self) -> bool: return False

    def seed_database(self, adapter: BookingRepository) -> None:
        """Fills a fresh store with reference data. Empty by default."""
        return None
