"""
Tests for app/services/hr/attendance_calculator.py - worked hours and overtime.
"""
from datetime import datetime, timedelta, timezone

import pytest


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 3, 15, hour, minute)


class TestCalculateWorkedHours:
    """Test the regular/overtime split."""

    def test_missing_check_out_gives_zero(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(9), None)

        assert hours.total_hours == 0
        assert hours.overtime_hours == 0

    def test_missing_check_in_gives_zero(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(None, at(17))

        assert (hours.total_hours, hours.overtime_hours) == (0, 0)

    def test_standard_day_has_no_overtime(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(9), at(17), standard_hours=8)

        assert hours.total_hours == 8
        assert hours.overtime_hours == 0

    def test_break_is_subtracted(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(9), at(17), at(12), at(12, 30), standard_hours=8)

        assert hours.total_hours == 7.5
        assert hours.overtime_hours == 0

    def test_hours_are_stored_unrounded(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(9), at(16, 20), standard_hours=8)

        assert hours.total_hours == (at(16, 20) - at(9)).total_seconds() / 3600
        assert hours.total_hours == 7.333333333333333
        assert hours.overtime_hours == 0

    def test_partial_break_is_ignored(self):
        """A break with only a start time does not reduce worked hours."""
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(9), at(17), at(12), None, standard_hours=8)

        assert hours.total_hours == 8

    def test_excess_becomes_overtime(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(8), at(19), at(12), at(13), standard_hours=8)

        assert hours.total_hours == 8
        assert hours.overtime_hours == 2

    def test_regular_hours_never_exceed_cap(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(0), at(23, 59), standard_hours=8)

        assert hours.total_hours == 8
        assert hours.overtime_hours == pytest.approx(15 + 59 / 60, abs=1e-3)

    def test_overnight_shift_clamps_to_zero(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(22), at(6), standard_hours=8)

        assert hours.total_hours == 0
        assert hours.overtime_hours == 0

    def test_break_longer_than_shift_clamps_to_zero(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        hours = calculate_worked_hours(at(9), at(10), at(9), at(12), standard_hours=8)

        assert hours.total_hours == 0

    def test_default_cap_comes_from_settings(self, monkeypatch):
        from app.core.config import settings
        from app.services.hr.attendance_calculator import calculate_worked_hours

        monkeypatch.setattr(settings, "STANDARD_WORKDAY_HOURS", 6.0)

        hours = calculate_worked_hours(at(9), at(17))

        assert hours.total_hours == 6
        assert hours.overtime_hours == 2

    def test_timezone_aware_inputs_are_normalised(self):
        from app.services.hr.attendance_calculator import calculate_worked_hours

        plus_five = timezone(timedelta(hours=5))
        check_in = datetime(2024, 3, 15, 14, 0, tzinfo=plus_five)  # 09:00 UTC
        check_out = datetime(2024, 3, 15, 17, 0)  # naive UTC

        hours = calculate_worked_hours(check_in, check_out, standard_hours=8)

        assert hours.total_hours == 8


class TestAttendanceState:
    """Test the check-in/check-out cycle."""

    def test_states(self):
        from app.services.hr.attendance_calculator import AttendanceState, attendance_state

        assert attendance_state(None, None) == AttendanceState.NOT_STARTED
        assert attendance_state(at(9), None) == AttendanceState.CHECKED_IN
        assert attendance_state(at(9), at(17)) == AttendanceState.CHECKED_OUT
