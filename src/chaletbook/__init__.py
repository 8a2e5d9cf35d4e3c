"""chaletbook - availability, conflict and pricing engine for a shared mountain chalet"""

__version__ = "0.1.0"

# Core abstractions
from .base_config import ChaletBookConfig

# Exceptions
from .exceptions import (
    ChaletBookError,
    ConfigurationError,
    InvalidDateFormat,
    InvalidDateRange,
    ValidationRejected,
    ConflictDetected,
    RepositoryError,
    DatabaseError,
    AdapterError,
)

# Config management
from .config import get_config, set_config, setup_logging

# Adapters
from .adapters.base import BookingRepository
from .adapters.memory_adapter import InMemoryBookingRepository
from .adapters.sqlite_adapter import SQLiteBookingAdapter

# Engine
from .api import (
    check_room_availability,
    compute_price,
    create_renderer,
    create_selection,
    detect_conflict,
    get_repository,
    quote_price,
    resolve_day_status,
    set_repository,
    validate_booking_request,
)

__all__ = [
    # Version
    "__version__",

    # Core
    "ChaletBookConfig",

    # Exceptions
    "ChaletBookError",
    "ConfigurationError",
    "InvalidDateFormat",
    "InvalidDateRange",
    "ValidationRejected",
    "ConflictDetected",
    "RepositoryError",
    "DatabaseError",
    "AdapterError",

    # Config
    "get_config",
    "set_config",
    "setup_logging",

    # Adapters
    "BookingRepository",
    "InMemoryBookingRepository",
    "SQLiteBookingAdapter",

    # Engine
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
