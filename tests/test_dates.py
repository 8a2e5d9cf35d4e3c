"""
Tests for date parsing, night arithmetic and booking date validation.
"""
from datetime import date, datetime

import pytest

from chaletbook.dates import (
    DateRange,
    add_days,
    format_date,
    get_calendar_days,
    get_day_status,
    get_days_between,
    get_days_inclusive,
    is_night_occupied,
    iter_days,
    parse_date,
    shift_month,
    to_date,
    validate_date_range,
)
from chaletbook.exceptions import InvalidDateFormat, InvalidDateRange
from chaletbook.status import DayStatus


# ============================================================================
# Parsing & formatting
# ============================================================================

class TestParseDate:

    def test_parses_iso_day_without_shift(self):
        assert parse_date("2025-07-01") == date(2025, 7, 1)
        assert parse_date("2024-12-31") == date(2024, 12, 31)

    def test_format_round_trip(self):
        assert format_date(parse_date("2025-01-09")) == "2025-01-09"

    @pytest.mark.parametrize("value", ["2025-7-1", "01.07.2025", "2025-02-30", "", "2025-07-01T00:00:00Z", None])
    def test_rejects_malformed_values(self, value):
        with pytest.raises(InvalidDateFormat):
            parse_date(value)

    def test_invalid_date_format_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_date("tomorrow")

    def test_to_date_accepts_datetime(self):
        assert to_date(datetime(2025, 7, 1, 23, 59)) == date(2025, 7, 1)


# ============================================================================
# Night counting
# ============================================================================

class TestNights:

    def test_same_day_has_no_nights(self):
        for day in ("2025-01-01", "2024-02-29", "2025-12-31"):
            assert get_days_between(day, day) == 0

    def test_end_is_exclusive(self):
        assert get_days_between("2025-07-01", "2025-07-05") == 4
        assert get_days_inclusive("2025-07-01", "2025-07-05") == 5

    def test_never_negative(self):
        assert get_days_between("2025-07-05", "2025-07-01") == 4

    def test_night_occupancy_is_half_open(self):
        assert is_night_occupied("2025-07-01", "2025-07-01", "2025-07-03")
        assert is_night_occupied("2025-07-02", "2025-07-01", "2025-07-03")
        assert not is_night_occupied("2025-07-03", "2025-07-01", "2025-07-03")
        assert not is_night_occupied("2025-06-30", "2025-07-01", "2025-07-03")

    def test_iter_days_is_inclusive(self):
        days = list(iter_days("2025-06-29", "2025-07-02"))
        assert days == [date(2025, 6, 29), date(2025, 6, 30), date(2025, 7, 1), date(2025, 7, 2)]

    def test_add_days_crosses_months(self):
        assert add_days("2025-01-31", 1) == date(2025, 2, 1)


class TestDateRange:

    def test_reversed_range_is_rejected(self):
        with pytest.raises(InvalidDateRange):
            DateRange.of("2025-07-05", "2025-07-01")

    def test_spanning_orders_its_ends(self):
        assert DateRange.spanning("2025-07-05", "2025-07-01") == DateRange.of("2025-07-01", "2025-07-05")

    def test_back_to_back_ranges_do_not_overlap(self):
        first = DateRange.of("2025-07-01", "2025-07-03")
        second = DateRange.of("2025-07-03", "2025-07-06")
        assert not first.overlaps(second)
        assert not second.overlaps(first)

    def test_shared_night_overlaps(self):
        first = DateRange.of("2025-07-01", "2025-07-04")
        second = DateRange.of("2025-07-03", "2025-07-06")
        assert first.overlaps(second)

    def test_to_dict(self):
        assert DateRange.of("2025-07-01", "2025-07-03").to_dict() == {
            "start_date": "2025-07-01",
            "end_date": "2025-07-03",
        }


# ============================================================================
# Day status from ranges
# ============================================================================

class TestGetDayStatus:

    def test_day_status_around_a_stay(self):
        stay = [DateRange.of("2025-07-02", "2025-07-05")]
        assert get_day_status("2025-07-01", stay) is DayStatus.AVAILABLE
        assert get_day_status("2025-07-02", stay) is DayStatus.EDGE
        assert get_day_status("2025-07-03", stay) is DayStatus.OCCUPIED
        assert get_day_status("2025-07-04", stay) is DayStatus.OCCUPIED
        assert get_day_status("2025-07-05", stay) is DayStatus.EDGE
        assert get_day_status("2025-07-06", stay) is DayStatus.AVAILABLE

    def test_changeover_day_between_two_stays_is_occupied(self):
        stays = [DateRange.of("2025-07-01", "2025-07-03"), DateRange.of("2025-07-03", "2025-07-05")]
        assert get_day_status("2025-07-03", stays) is DayStatus.OCCUPIED

    def test_non_overlapping_bookings_never_report_occupied_for_edge_days(self):
        stays = [
            DateRange.of("2025-07-01", "2025-07-02"),
            DateRange.of("2025-07-04", "2025-07-05"),
            DateRange.of("2025-07-07", "2025-07-10"),
        ]
        for day in iter_days("2025-06-28", "2025-07-12"):
            before = any(s.occupies(add_days(day, -1)) for s in stays)
            after = any(s.occupies(day) for s in stays)
            status = get_day_status(day, stays)
            if before and after:
                assert status is DayStatus.OCCUPIED
            elif before or after:
                assert status is DayStatus.EDGE
            else:
                assert status is DayStatus.AVAILABLE


# ============================================================================
# Booking date validation
# ============================================================================

class TestValidateDateRange:
    TODAY = date(2025, 6, 1)

    def test_accepts_future_stay(self):
        stay = validate_date_range("2025-07-01", "2025-07-03", today=self.TODAY)
        assert stay == DateRange.of("2025-07-01", "2025-07-03")

    def test_rejects_past_arrival(self):
        with pytest.raises(InvalidDateRange, match="past"):
            validate_date_range("2025-05-30", "2025-06-02", today=self.TODAY)

    def test_admin_may_book_in_the_past(self):
        stay = validate_date_range("2025-05-30", "2025-06-02", is_admin=True, today=self.TODAY)
        assert stay.nights == 3

    def test_requires_one_night(self):
        with pytest.raises(InvalidDateRange, match="at least 1 night"):
            validate_date_range("2025-07-01", "2025-07-01", today=self.TODAY)

    def test_single_day_allowed_for_blockages(self):
        stay = validate_date_range("2025-07-01", "2025-07-01", allow_single_day=True, today=self.TODAY)
        assert stay.nights == 0

    def test_booking_horizon(self):
        validate_date_range("2027-05-31", "2027-06-02", today=self.TODAY)
        with pytest.raises(InvalidDateRange, match="2 years"):
            validate_date_range("2027-06-02", "2027-06-04", today=self.TODAY)

    def test_custom_horizon(self):
        with pytest.raises(InvalidDateRange):
            validate_date_range("2026-07-01", "2026-07-03", today=self.TODAY, horizon_years=1)


# ============================================================================
# Month grid
# ============================================================================

class TestCalendarGrid:

    def test_grid_starts_on_monday_and_fills_weeks(self):
        days = get_calendar_days(2025, 7)
        assert days[0].day == date(2025, 6, 30)
        assert days[0].day.weekday() == 0
        assert len(days) % 7 == 0
        assert days[-1].day.weekday() == 6

    def test_other_month_flags(self):
        days = get_calendar_days(2025, 7)
        in_month = [d.day for d in days if not d.is_other_month]
        assert in_month[0] == date(2025, 7, 1)
        assert in_month[-1] == date(2025, 7, 31)
        assert len(in_month) == 31

    def test_month_starting_on_monday_has_no_lead(self):
        days = get_calendar_days(2025, 9)
        assert days[0].day == date(2025, 9, 1)
        assert not days[0].is_other_month

    def test_shift_month_across_years(self):
        assert shift_month("2025-12-15", 1) == date(2026, 1, 1)
        assert shift_month("2025-01-15", -1) == date(2024, 12, 1)
