from .availability_service import (
    AvailabilityService,
    IntervalValidation,
    RoomDayStatus,
    aggregate_status,
    resolve_room_status,
)
from .conflict_service import ConflictResult, detect_conflict, ensure_no_conflict
from .price_service import PriceBreakdown, PriceCalculator, PriceMode, PriceRequest
from .cancellation import GenerationCounter, GenerationToken
from .selection import (
    Anchored,
    CalendarContext,
    Committed,
    Idle,
    IntervalSelection,
    SelectionState,
)
from .calendar import CalendarRenderer, CalendarView, DayCell

__all__ = [
    "AvailabilityService",
    "IntervalValidation",
    "RoomDayStatus",
    "aggregate_status",
    "resolve_room_status",
    "ConflictResult",
    "detect_conflict",
    "ensure_no_conflict",
    "PriceBreakdown",
    "PriceCalculator",
    "PriceMode",
    "PriceRequest",
    "GenerationCounter",
    "GenerationToken",
    "Anchored",
    "CalendarContext",
    "Committed",
    "Idle",
    "IntervalSelection",
    "SelectionState",
    "CalendarRenderer",
    "CalendarView",
    "DayCell",
]
