"""
Tests for app/services/hr/attendance_service.py - clock-in, clock-out and lookups.
"""
from datetime import date, datetime

import pytest

from conftest import make_result


def attendance_row(**fields):
    from app.models.attendance import Attendance

    values = dict(
        id=5,
        company_id=1,
        employee_id=10,
        date=date(2024, 3, 15),
        check_in=datetime(2024, 3, 15, 9, 0),
        check_out=None,
        break_start=None,
        break_end=None,
        total_hours=0,
        overtime_hours=0,
        status="present",
        notes=None,
    )
    values.update(fields)
    return Attendance(**values)


class TestEmployeeLookup:
    """Test employee code vs numeric id lookups."""

    def test_is_employee_code(self):
        from app.services.hr.attendance_service import is_employee_code

        assert is_employee_code("EMP001") is True
        assert is_employee_code("42") is False
        assert is_employee_code(42) is False

    @pytest.mark.asyncio
    async def test_find_employee_with_garbage_identifier(self, mock_db_session):
        from app.services.hr.attendance_service import find_employee

        result = await find_employee(mock_db_session, 1, "not-a-number")

        assert result is None
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_employee_or_404_raises(self, mock_db_session):
        from app.core.errors import AppError, ErrorType
        from app.services.hr.attendance_service import get_employee_or_404

        mock_db_session.execute.return_value = make_result(scalar=None)

        with pytest.raises(AppError) as exc_info:
            await get_employee_or_404(mock_db_session, 1, "EMP404")

        assert exc_info.value.error_type == ErrorType.NOT_FOUND
        assert exc_info.value.status_code == 404


class TestListAttendance:
    """Test the list filters."""

    @pytest.mark.asyncio
    async def test_today_uses_the_utc_calendar_day(self, mock_db_session, monkeypatch):
        from app.services.hr import attendance_service

        class LateEveningUtc(datetime):
            @classmethod
            def utcnow(cls):
                return datetime(2024, 3, 15, 23, 30)

        monkeypatch.setattr(attendance_service, "datetime", LateEveningUtc)
        mock_db_session.execute.return_value = make_result(scalars=[attendance_row()])

        records = await attendance_service.list_attendance(mock_db_session, 1, employee_id=10, today=True)

        assert len(records) == 1
        statement = mock_db_session.execute.call_args.args[0]
        assert date(2024, 3, 15) in statement.compile().params.values()


class TestRecordAttendance:
    """Test recording attendance."""

    @pytest.mark.asyncio
    async def test_creates_new_record(self, mock_db_session, employee):
        from app.schemas.hr import AttendanceRecord
        from app.services.hr.attendance_service import record_attendance

        mock_db_session.execute.return_value = make_result(scalar=None)
        payload = AttendanceRecord(
            employee_id="EMP001",
            date=date(2024, 3, 15),
            check_in=datetime(2024, 3, 15, 8, 0),
            check_out=datetime(2024, 3, 15, 18, 0),
        )

        record, created = await record_attendance(mock_db_session, 1, employee, payload)

        assert created is True
        assert record.employee_id == employee.id
        assert record.status == "present"
        assert record.total_hours == 8
        assert record.overtime_hours == 2
        mock_db_session.add.assert_called_once_with(record)
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_double_check_in_is_rejected(self, mock_db_session, employee):
        from app.core.errors import AppError
        from app.schemas.hr import AttendanceRecord
        from app.services.hr.attendance_service import ALREADY_CLOCKED_IN, record_attendance

        mock_db_session.execute.return_value = make_result(scalar=attendance_row())
        payload = AttendanceRecord(
            employee_id="EMP001",
            date=date(2024, 3, 15),
            check_in=datetime(2024, 3, 15, 10, 0),
        )

        with pytest.raises(AppError) as exc_info:
            await record_attendance(mock_db_session, 1, employee, payload)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == ALREADY_CLOCKED_IN
        assert exc_info.value.code == "ALREADY_CLOCKED_IN"
        mock_db_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_check_in_after_check_out_reopens_record(self, mock_db_session, employee):
        from app.schemas.hr import AttendanceRecord
        from app.services.hr.attendance_service import record_attendance

        existing = attendance_row(check_out=datetime(2024, 3, 15, 12, 0), total_hours=3)
        mock_db_session.execute.return_value = make_result(scalar=existing)
        payload = AttendanceRecord(
            employee_id=employee.id,
            date=date(2024, 3, 15),
            check_in=datetime(2024, 3, 15, 13, 0),
        )

        record, created = await record_attendance(mock_db_session, 1, employee, payload)

        assert created is False
        assert record is existing
        assert record.check_in == datetime(2024, 3, 15, 13, 0)
        assert record.check_out is None
        assert record.total_hours == 0
        mock_db_session.add.assert_not_called()


class TestUpdateAttendance:
    """Test clock-out and break updates."""

    @pytest.mark.asyncio
    async def test_clock_out_recomputes_hours(self, mock_db_session):
        from app.schemas.hr import AttendanceUpdate
        from app.services.hr.attendance_service import update_attendance

        existing = attendance_row()
        mock_db_session.execute.return_value = make_result(scalar=existing)
        payload = AttendanceUpdate(
            employee_id=10,
            date=date(2024, 3, 15),
            check_out=datetime(2024, 3, 15, 17, 30),
            break_start=datetime(2024, 3, 15, 12, 0),
            break_end=datetime(2024, 3, 15, 12, 30),
        )

        record = await update_attendance(mock_db_session, 1, 10, payload)

        assert record.total_hours == 8
        assert record.overtime_hours == 0

    @pytest.mark.asyncio
    async def test_missing_record_is_not_found(self, mock_db_session):
        from app.core.errors import AppError
        from app.schemas.hr import AttendanceUpdate
        from app.services.hr.attendance_service import update_attendance

        mock_db_session.execute.return_value = make_result(scalar=None)
        payload = AttendanceUpdate(employee_id=10, date=date(2024, 3, 15))

        with pytest.raises(AppError) as exc_info:
            await update_attendance(mock_db_session, 1, 10, payload)

        assert exc_info.value.status_code == 404


class TestAttendanceSummary:
    """Test the per-employee summary."""

    @pytest.mark.asyncio
    async def test_rejects_inverted_range(self, mock_db_session):
        from app.core.errors import AppError
        from app.services.hr.attendance_service import attendance_summary

        with pytest.raises(AppError):
            await attendance_summary(mock_db_session, 1, date(2024, 3, 31), date(2024, 3, 1))
