"""
Calendar arithmetic tests.

Verify:
1. ISO week numbering follows the Thursday rule, including year boundaries
2. Week boundaries are Sunday..Saturday
3. Day deltas and day-of-week helpers
4. The two week conventions are kept apart
"""

from datetime import date, datetime, timedelta

import pytest

from gracestreak.features.grace_days.calendar import (
    as_day,
    day_of_week,
    days_ago,
    days_between,
    is_next_day,
    is_same_week,
    is_weekend,
    is_weekend_paused,
    iso_week_info,
    system_clock,
    today,
    week_boundaries,
    week_info,
    weekend_day_name,
    yesterday,
)


class TestIsoWeekInfo:
    def test_first_day_of_2024_is_week_one(self):
        assert iso_week_info("2024-01-01") == (1, 2024)

    def test_new_year_friday_belongs_to_previous_year(self):
        """2021-01-01 is a Friday: its Thursday is 2020-12-31."""
        assert iso_week_info("2021-01-01") == (53, 2020)

    def test_late_december_monday_belongs_to_next_year(self):
        assert iso_week_info(date(2024, 12, 30)) == (1, 2025)

    def test_new_year_sunday_closes_previous_iso_week(self):
        assert iso_week_info("2023-01-01") == (52, 2022)

    def test_matches_isocalendar_over_several_years(self):
        day = date(2019, 12, 1)
        while day < date(2027, 1, 31):
            iso = day.isocalendar()
            assert iso_week_info(day) == (iso[1], iso[0]), day
            day += timedelta(days=1)


class TestWeekBoundaries:
    def test_midweek_day(self):
        assert week_boundaries("2024-01-17") == (date(2024, 1, 14), date(2024, 1, 20))

    def test_sunday_starts_its_own_week(self):
        assert week_boundaries("2024-01-14") == (date(2024, 1, 14), date(2024, 1, 20))

    def test_saturday_ends_week(self):
        assert week_boundaries("2024-01-13") == (date(2024, 1, 7), date(2024, 1, 13))

    def test_boundaries_span_seven_days(self):
        start, end = week_boundaries("2024-02-29")
        assert days_between(start, end) == 6
        assert day_of_week(start) == 0
        assert day_of_week(end) == 6


class TestWeekConventionsDiffer:
    """ISO numbering and Sunday boundaries are separate conventions."""

    def test_year_end_sunday(self):
        info = week_info("2023-12-31")
        assert (info.week_number, info.year) == (52, 2023)
        assert info.start_date == date(2023, 12, 31)
        assert info.end_date == date(2024, 1, 6)

    def test_sunday_and_monday_share_sunday_week_but_not_iso_week(self):
        assert week_boundaries("2024-01-14") == week_boundaries("2024-01-15")
        assert not is_same_week("2024-01-14", "2024-01-15")

    def test_same_iso_week(self):
        assert is_same_week("2024-01-15", "2024-01-19")
        assert is_same_week("2024-01-15", "2024-01-15")
        assert not is_same_week("2024-01-01", "2024-01-15")

    def test_week_info_to_dict(self):
        assert week_info("2024-01-17").to_dict() == {
            "weekNumber": 3,
            "year": 2024,
            "startDate": "2024-01-14",
            "endDate": "2024-01-20",
        }


class TestDayArithmetic:
    def test_days_between_is_symmetric(self):
        assert days_between("2024-01-15", "2024-01-20") == 5
        assert days_between("2024-01-20", "2024-01-15") == 5
        assert days_between("2024-01-15", "2024-01-15") == 0

    def test_days_between_crosses_month(self):
        assert days_between("2024-01-30", "2024-02-05") == 6

    @pytest.mark.parametrize(
        "later,earlier,expected",
        [
            ("2024-01-16", "2024-01-15", True),
            ("2024-02-01", "2024-01-31", True),
            ("2024-03-01", "2024-02-29", True),
            ("2024-01-15", "2024-01-15", False),
            ("2024-01-18", "2024-01-15", False),
            ("2024-01-15", "2024-01-16", False),
        ],
    )
    def test_is_next_day(self, later, earlier, expected):
        assert is_next_day(later, earlier) is expected

    def test_day_of_week_sunday_is_zero(self):
        assert day_of_week("2024-01-14") == 0
        assert day_of_week("2024-01-13") == 6
        assert [day_of_week(date(2024, 1, d)) for d in range(14, 21)] == [0, 1, 2, 3, 4, 5, 6]

    def test_weekend_helpers(self):
        assert is_weekend("2024-01-13")
        assert is_weekend("2024-01-14")
        assert not is_weekend("2024-01-15")
        assert weekend_day_name("2024-01-13") == "Saturday"
        assert weekend_day_name("2024-01-14") == "Sunday"
        assert weekend_day_name("2024-01-15") is None

    def test_weekend_paused_needs_flag(self):
        assert is_weekend_paused("2024-01-13", True)
        assert not is_weekend_paused("2024-01-13", False)
        assert not is_weekend_paused("2024-01-15", True)


class TestClock:
    def test_injected_clock(self, fixed_clock):
        assert today(fixed_clock) == date(2024, 6, 12)
        assert yesterday(fixed_clock) == date(2024, 6, 11)
        assert days_ago(7, fixed_clock) == date(2024, 6, 5)

    def test_month_rollover(self, fixed_clock):
        fixed_clock.day = date(2024, 3, 1)
        assert yesterday(fixed_clock) == date(2024, 2, 29)

    def test_system_clock_returns_date(self):
        assert type(system_clock()) is date

    def test_as_day_coercions(self):
        assert as_day("2024-06-09") == date(2024, 6, 9)
        assert as_day(date(2024, 6, 9)) == date(2024, 6, 9)
        assert as_day(datetime(2024, 6, 9, 23, 59)) == date(2024, 6, 9)

    def test_invalid_string_is_a_caller_bug(self):
        with pytest.raises(ValueError):
            as_day("2024-13-45")
