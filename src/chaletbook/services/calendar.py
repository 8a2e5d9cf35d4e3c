from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Tuple

from chaletbook.dates import get_calendar_days
from chaletbook.models import DayStatus
from chaletbook.services.availability_service import AvailabilityService, aggregate_status
from chaletbook.services.cancellation import GenerationCounter
from chaletbook.services.selection import CalendarContext, selected_range

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayCell:
    day: date
    status: DayStatus
    is_other_month: bool
    is_past: bool
    is_selected: bool
    is_preview: bool

    @property
    def is_clickable(self) -> bool:
        return self.status.is_selectable and not self.is_past


@dataclass(frozen=True)
class CalendarView:
    month: date
    cells: Tuple[DayCell, ...]

    def cell(self, day: date) -> DayCell:
        for cell in self.cells:
            if cell.day == day:
                return cell
        raise KeyError(day)


class CalendarRenderer:
    """
    Builds the month view for a page context. A render that finishes after a
    newer one has started is discarded, so the page never shows an older month.
    """

    def __init__(
        self,
        availability: AvailabilityService,
        context: CalendarContext,
        on_render: Callable[[CalendarView], None],
        today: Optional[date] = None,
    ):
        self.availability = availability
        self.context = context
        self.on_render = on_render
        self.today = today
        self._renders = GenerationCounter()

    async def _status(self, day: date) -> DayStatus:
        ctx = self.context
        if ctx.bulk:
            return await self.availability.property_status(day, ctx.exclude_session)
        if len(ctx.room_ids) == 1:
            return await self.availability.room_status(day, ctx.room_ids[0], ctx.exclude_session)
        statuses = await self.availability.statuses_for_day(day, ctx.room_ids, ctx.exclude_session)
        return aggregate_status(statuses.values())

    async def render(self) -> Optional[CalendarView]:
        token = self._renders.start()
        month = self.context.month
        days = get_calendar_days(month.year, month.month)
        statuses = await asyncio.gather(*(self._status(d.day) for d in days))

        if token.is_superseded:
            logger.debug(f"Discarding superseded render of {month:%Y-%m}")
            return None

        today = self.today or date.today()
        selection = selected_range(self.context.selection)
        preview = self.context.preview
        cells = tuple(
            DayCell(
                day=d.day,
                status=status,
                is_other_month=d.is_other_month,
                is_past=d.day < today,
                is_selected=selection is not None and selection.contains_day(d.day),
                is_preview=preview is not None and preview.contains_day(d.day),
            )
            for d, status in zip(days, statuses)
        )
        view = CalendarView(month=month, cells=cells)
        self.on_render(view)
        return view

    async def navigate(self, delta: int) -> Optional[CalendarView]:
        self.context.navigate(delta)
        return await self.render()
