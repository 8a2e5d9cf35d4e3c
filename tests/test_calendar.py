"""
Tests for the month view renderer.
"""
import asyncio
from datetime import date

from chaletbook.adapters import InMemoryBookingRepository
from chaletbook.defaults import default_settings
from chaletbook.models import Blockage, Booking, DateRange, DayStatus
from chaletbook.services import AvailabilityService, CalendarContext, CalendarRenderer, Committed


def make_renderer(bookings=(), blockages=(), **context_args):
    repo = InMemoryBookingRepository(default_settings(), bookings, blockages)
    context = CalendarContext(month=date(2025, 7, 1), **context_args)
    views = []
    renderer = CalendarRenderer(AvailabilityService(repo), context, views.append, today=date(2025, 7, 2))
    return renderer, views


class TestCalendarRenderer:

    def test_single_room_month(self):
        stays = [Booking(id="b1", rooms=("12",), date_range=DateRange.of("2025-07-10", "2025-07-13"))]
        renderer, views = make_renderer(stays, room_ids=("12",))

        view = asyncio.run(renderer.render())
        assert views == [view]
        assert view.month == date(2025, 7, 1)
        assert view.cell(date(2025, 7, 10)).status is DayStatus.EDGE
        assert view.cell(date(2025, 7, 11)).status is DayStatus.OCCUPIED
        assert view.cell(date(2025, 7, 13)).status is DayStatus.EDGE
        assert view.cell(date(2025, 6, 30)).is_other_month

    def test_past_and_occupied_days_are_not_clickable(self):
        stays = [Booking(id="b1", rooms=("12",), date_range=DateRange.of("2025-07-10", "2025-07-13"))]
        renderer, _ = make_renderer(stays, room_ids=("12",))

        view = asyncio.run(renderer.render())
        assert view.cell(date(2025, 7, 1)).is_past
        assert not view.cell(date(2025, 7, 1)).is_clickable
        assert view.cell(date(2025, 7, 2)).is_clickable
        assert view.cell(date(2025, 7, 10)).is_clickable
        assert not view.cell(date(2025, 7, 11)).is_clickable

    def test_bulk_view_uses_worst_room(self):
        closures = [Blockage("x1", date(2025, 7, 20), date(2025, 7, 21), rooms=("44",))]
        renderer, _ = make_renderer(blockages=closures, bulk=True)

        view = asyncio.run(renderer.render())
        assert view.cell(date(2025, 7, 20)).status is DayStatus.BLOCKED
        assert view.cell(date(2025, 7, 22)).status is DayStatus.AVAILABLE

    def test_several_rooms_aggregate(self):
        stays = [Booking(id="b1", rooms=("13",), date_range=DateRange.of("2025-07-10", "2025-07-13"))]
        renderer, _ = make_renderer(stays, room_ids=("12", "13"))

        view = asyncio.run(renderer.render())
        assert view.cell(date(2025, 7, 11)).status is DayStatus.OCCUPIED

    def test_selection_flags(self):
        renderer, _ = make_renderer(room_ids=("12",))
        renderer.context.selection = Committed(DateRange.of("2025-07-05", "2025-07-07"))
        renderer.context.preview = DateRange.of("2025-07-20", "2025-07-21")

        view = asyncio.run(renderer.render())
        assert view.cell(date(2025, 7, 6)).is_selected
        assert not view.cell(date(2025, 7, 8)).is_selected
        assert view.cell(date(2025, 7, 21)).is_preview

    def test_navigation_discards_older_render(self):
        renderer, views = make_renderer(room_ids=("12",))

        async def scenario():
            older = asyncio.create_task(renderer.render())
            await asyncio.sleep(0)
            newer = await renderer.navigate(1)
            return await older, newer

        older, newer = asyncio.run(scenario())
        assert older is None
        assert newer.month == date(2025, 8, 1)
        assert views == [newer]
