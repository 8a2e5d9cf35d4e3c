"""
Two-click date range selection on the booking calendar.

The selection is a value: ``Idle``, ``Anchored(anchor)`` after the first click,
or ``Committed(selection)`` once the second click has been validated. Pure
functions move between the values; ``IntervalSelection`` drives them from UI
events and runs the asynchronous availability check in between.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable, Optional, Tuple, Union

from chaletbook.dates import DateLike, DateRange, first_of_month, shift_month, to_date
from chaletbook.exceptions import RepositoryError, ValidationRejected
from chaletbook.services.availability_service import AvailabilityService, IntervalValidation
from chaletbook.services.cancellation import GenerationCounter

logger = logging.getLogger(__name__)


# ------------------------------------
# States
# ------------------------------------
@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Anchored:
    anchor: date


@dataclass(frozen=True)
class Committed:
    selection: DateRange


SelectionState = Union[Idle, Anchored, Committed]

IDLE = Idle()


# ------------------------------------
# Transitions
# ------------------------------------
def anchor(day: DateLike) -> Anchored:
    return Anchored(to_date(day))


def candidate_range(state: Anchored, day: DateLike) -> DateRange:
    return DateRange.spanning(state.anchor, day)


def preview_range(state: SelectionState, day: DateLike) -> Optional[DateRange]:
    """Tentative range painted while hovering; only an anchored selection has one."""
    if isinstance(state, Anchored):
        return candidate_range(state, day)
    return None


def commit(state: Anchored, day: DateLike) -> Committed:
    return Committed(candidate_range(state, day))


def reset() -> Idle:
    return IDLE


def selected_range(state: SelectionState) -> Optional[DateRange]:
    if isinstance(state, Committed):
        return state.selection
    if isinstance(state, Anchored):
        return DateRange(state.anchor, state.anchor)
    return None


# ------------------------------------
# Page context
# ------------------------------------
@dataclass
class CalendarContext:
    """
    State shared by the selection and the calendar renderer of one page,
    owned by the page controller.
    """

    room_ids: Tuple[str, ...] = field(default=())
    bulk: bool = field(default=False)
    month: date = field(default_factory=lambda: first_of_month(date.today()))
    exclude_session: Optional[str] = field(default=None)
    selection: SelectionState = field(default=IDLE)
    preview: Optional[DateRange] = field(default=None)

    @property
    def target_rooms(self) -> Optional[Tuple[str, ...]]:
        """Rooms a selection must be free in; None stands for every room."""
        if self.bulk:
            return None
        return self.room_ids

    def navigate(self, delta: int) -> date:
        self.month = shift_month(self.month, delta)
        return self.month


Validator = Callable[[DateRange], Awaitable[IntervalValidation]]
SelectionListener = Callable[[Optional[DateRange]], None]
FailureListener = Callable[[str], None]


class IntervalSelection:
    """
    Drives the selection state machine.

    Only the most recently started validation may change the state; results
    of validations superseded by a later click or a reset are dropped.
    """

    def __init__(
        self,
        context: CalendarContext,
        validator: Validator,
        on_selection_changed: Optional[SelectionListener] = None,
        on_validation_failed: Optional[FailureListener] = None,
    ):
        self.context = context
        self.validator = validator
        self.on_selection_changed = on_selection_changed
        self.on_validation_failed = on_validation_failed
        self._validations = GenerationCounter()
        self._pending: Optional[DateRange] = None

    @classmethod
    def for_availability(
        cls,
        context: CalendarContext,
        availability: AvailabilityService,
        on_selection_changed: Optional[SelectionListener] = None,
        on_validation_failed: Optional[FailureListener] = None,
    ) -> IntervalSelection:
        async def validate(candidate: DateRange) -> IntervalValidation:
            return await availability.validate_interval(candidate, context.target_rooms, context.exclude_session)

        return cls(context, validate, on_selection_changed, on_validation_failed)

    @property
    def state(self) -> SelectionState:
        return self.context.selection

    @property
    def pending(self) -> Optional[DateRange]:
        """Range whose validation is still running, if any."""
        return self._pending

    def _set_state(self, state: SelectionState) -> None:
        self.context.selection = state
        self.context.preview = None
        if self.on_selection_changed:
            self.on_selection_changed(selected_range(state))

    def _fail(self, reason: str) -> None:
        self._set_state(reset())
        if self.on_validation_failed:
            self.on_validation_failed(reason)

    async def click(self, day: DateLike) -> SelectionState:
        state = self.state
        if not isinstance(state, Anchored):
            # Idle, or a finished selection being replaced by a new one
            self._validations.invalidate()
            self._pending = None
            self._set_state(anchor(day))
            return self.state

        candidate = candidate_range(state, day)
        token = self._validations.start()
        self._pending = candidate

        try:
            result = await self.validator(candidate)
        except ValidationRejected as e:
            result = IntervalValidation(candidate, False, e.day, e.room_id)
            reason = e.reason
        except (RepositoryError, OSError, asyncio.TimeoutError) as e:
            if token.is_superseded:
                return self.state
            logger.error(f"Availability check for {candidate} failed: {e}")
            self._pending = None
            self._fail(f"Availability could not be checked: {e}")
            return self.state
        else:
            reason = result.reason

        if token.is_superseded:
            logger.debug(f"Dropping stale validation result for {candidate}")
            return self.state

        self._pending = None
        if result.ok:
            logger.info(f"Selection committed: {candidate}")
            self._set_state(commit(state, day))
        else:
            self._fail(reason or f"{candidate} is not available.")
        return self.state

    def hover(self, day: DateLike) -> Optional[DateRange]:
        self.context.preview = preview_range(self.state, day)
        return self.context.preview

    def reset(self) -> None:
        self._validations.invalidate()
        self._pending = None
        self._set_state(reset())
