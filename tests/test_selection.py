"""
Tests for the two-click interval selection state machine.
"""
import asyncio
from datetime import date

from chaletbook.adapters import InMemoryBookingRepository
from chaletbook.defaults import default_settings
from chaletbook.exceptions import DatabaseError, ValidationRejected
from chaletbook.models import Booking, BookingStatus, DateRange, DayStatus
from chaletbook.services import (
    Anchored,
    AvailabilityService,
    CalendarContext,
    Committed,
    Idle,
    IntervalSelection,
)
from chaletbook.services.availability_service import IntervalValidation
from chaletbook.services.cancellation import GenerationCounter
from chaletbook.services.selection import anchor, commit, preview_range, selected_range


# ============================================================================
# Helpers
# ============================================================================

class Recorder:
    def __init__(self):
        self.changes = []
        self.failures = []


def make_selection(bookings=(), room_ids=("12",), bulk=False, exclude_session=None):
    repo = InMemoryBookingRepository(default_settings(), bookings)
    context = CalendarContext(room_ids=tuple(room_ids), bulk=bulk, exclude_session=exclude_session)
    recorder = Recorder()
    selection = IntervalSelection.for_availability(
        context,
        AvailabilityService(repo),
        on_selection_changed=recorder.changes.append,
        on_validation_failed=recorder.failures.append,
    )
    return selection, recorder


def stay(booking_id, rooms, start, end, **kwargs):
    return Booking(id=booking_id, rooms=tuple(rooms), date_range=DateRange.of(start, end), **kwargs)


# ============================================================================
# Pure transitions
# ============================================================================

class TestTransitions:

    def test_anchor_and_commit_in_either_order(self):
        state = anchor("2025-07-05")
        assert commit(state, "2025-07-01").selection == DateRange.of("2025-07-01", "2025-07-05")

    def test_preview_only_while_anchored(self):
        assert preview_range(anchor("2025-07-01"), "2025-07-03") == DateRange.of("2025-07-01", "2025-07-03")
        assert preview_range(Idle(), "2025-07-03") is None

    def test_selected_range(self):
        assert selected_range(Idle()) is None
        assert selected_range(anchor("2025-07-01")) == DateRange.of("2025-07-01", "2025-07-01")

    def test_generation_counter(self):
        counter = GenerationCounter()
        first = counter.start()
        second = counter.start()
        assert first.is_superseded
        assert second.is_current
        counter.invalidate()
        assert second.is_superseded


# ============================================================================
# IntervalSelection against a repository
# ============================================================================

class TestIntervalSelection:

    def test_two_clicks_commit_the_range(self):
        selection, recorder = make_selection()

        async def scenario():
            await selection.click("2025-07-01")
            assert isinstance(selection.state, Anchored)
            await selection.click("2025-07-05")

        asyncio.run(scenario())
        assert selection.state == Committed(DateRange.of("2025-07-01", "2025-07-05"))
        assert recorder.changes[-1] == DateRange(date(2025, 7, 1), date(2025, 7, 5))
        assert recorder.failures == []

    def test_occupied_day_resets_to_idle(self):
        selection, recorder = make_selection([stay("b1", ["12"], "2025-07-02", "2025-07-04")])

        async def scenario():
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")

        asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert selected_range(selection.state) is None
        assert recorder.changes[-1] is None
        assert len(recorder.failures) == 1

    def test_click_after_commit_starts_new_selection(self):
        selection, recorder = make_selection()

        async def scenario():
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")
            await selection.click("2025-07-20")

        asyncio.run(scenario())
        assert selection.state == Anchored(date(2025, 7, 20))

    def test_hover_paints_preview(self):
        selection, _ = make_selection()
        asyncio.run(selection.click("2025-07-10"))
        assert selection.hover("2025-07-07") == DateRange.of("2025-07-07", "2025-07-10")
        assert selection.context.preview == DateRange.of("2025-07-07", "2025-07-10")

    def test_own_hold_does_not_block(self):
        hold = stay("p1", ["12"], "2025-07-02", "2025-07-04", status=BookingStatus.PROPOSED, session_id="me")
        selection, recorder = make_selection([hold], exclude_session="me")

        async def scenario():
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")

        asyncio.run(scenario())
        assert isinstance(selection.state, Committed)
        assert recorder.failures == []

    def test_bulk_checks_every_room(self):
        selection, recorder = make_selection([stay("b1", ["44"], "2025-07-02", "2025-07-04")], bulk=True)

        async def scenario():
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")

        asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert "44" in recorder.failures[0]

    def test_reset(self):
        selection, recorder = make_selection()
        asyncio.run(selection.click("2025-07-01"))
        selection.reset()
        assert isinstance(selection.state, Idle)
        assert recorder.changes[-1] is None


# ============================================================================
# Stale and failing validations
# ============================================================================

class TestValidationOrdering:

    def test_superseded_validation_is_dropped(self):
        context = CalendarContext(room_ids=("12",))
        failures = []

        async def scenario():
            release = asyncio.Event()
            calls = []

            async def validator(candidate):
                calls.append(candidate)
                if len(calls) == 1:
                    await release.wait()
                    return IntervalValidation(candidate, False, candidate.start, "12", DayStatus.OCCUPIED)
                return IntervalValidation(candidate, True)

            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            first = asyncio.create_task(selection.click("2025-07-05"))
            await asyncio.sleep(0)
            assert selection.pending == DateRange.of("2025-07-01", "2025-07-05")

            await selection.click("2025-07-03")
            release.set()
            await first
            return selection

        selection = asyncio.run(scenario())
        assert selection.state == Committed(DateRange.of("2025-07-01", "2025-07-03"))
        assert failures == []

    def test_reset_discards_pending_validation(self):
        context = CalendarContext(room_ids=("12",))
        failures = []

        async def scenario():
            release = asyncio.Event()

            async def validator(candidate):
                await release.wait()
                return IntervalValidation(candidate, True)

            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            pending = asyncio.create_task(selection.click("2025-07-05"))
            await asyncio.sleep(0)
            selection.reset()
            release.set()
            await pending
            return selection

        selection = asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert selection.pending is None
        assert failures == []

    def test_repository_error_is_a_failed_validation(self):
        context = CalendarContext(room_ids=("12",))
        failures = []

        async def validator(candidate):
            raise DatabaseError("database is locked")

        async def scenario():
            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")
            return selection

        selection = asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert failures == ["Availability could not be checked: database is locked"]

    def test_unreachable_repository_is_a_failed_validation(self):
        context = CalendarContext(room_ids=("12",))
        failures = []

        async def validator(candidate):
            raise ConnectionError("repository unreachable")

        async def scenario():
            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")
            return selection

        selection = asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert selection.pending is None
        assert failures == ["Availability could not be checked: repository unreachable"]

    def test_timed_out_lookup_is_a_failed_validation(self):
        context = CalendarContext(room_ids=("12",))
        failures = []

        async def validator(candidate):
            raise asyncio.TimeoutError()

        async def scenario():
            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")
            return selection

        selection = asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert selection.pending is None
        assert len(failures) == 1

    def test_superseded_lookup_failure_is_dropped(self):
        context = CalendarContext(room_ids=("12",))
        failures = []
        release = None

        async def validator(candidate):
            await release.wait()
            raise ConnectionError("repository unreachable")

        async def scenario():
            nonlocal release
            release = asyncio.Event()
            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            pending = asyncio.ensure_future(selection.click("2025-07-05"))
            await asyncio.sleep(0)
            selection.reset()
            await selection.click("2025-08-01")
            release.set()
            await pending
            return selection

        selection = asyncio.run(scenario())
        assert selection.state == Anchored(date(2025, 8, 1))
        assert failures == []

    def test_validator_may_raise_rejection(self):
        context = CalendarContext(room_ids=("12",))
        failures = []

        async def validator(candidate):
            raise ValidationRejected("Closed for maintenance.", day=candidate.start, room_id="12")

        async def scenario():
            selection = IntervalSelection(context, validator, on_validation_failed=failures.append)
            await selection.click("2025-07-01")
            await selection.click("2025-07-05")
            return selection

        selection = asyncio.run(scenario())
        assert isinstance(selection.state, Idle)
        assert failures == ["Closed for maintenance."]
