"""
Tests for app/services/hr/report_service.py - HR dashboard reports.
"""
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.core.errors import AppError
from conftest import make_result


def _one(**fields):
    result = make_result()
    result.one.return_value = SimpleNamespace(**fields)
    return result


class TestHelpers:

    def test_percentage(self):
        from app.services.hr.report_service import percentage

        assert percentage(1, 3) == 33.33
        assert percentage(5, 0) == 0.0

    def test_score_distribution(self):
        from app.services.hr.report_service import score_distribution

        distribution = score_distribution([1.0, 1.5, 3.2, 4.99, 5.0, 0.5])

        counts = {bucket["range"]: bucket["count"] for bucket in distribution}
        assert counts == {"1-2": 2, "2-3": 0, "3-4": 1, "4-5": 1, "5-6": 1, "Other": 1}

    def test_score_distribution_without_outliers(self):
        from app.services.hr.report_service import score_distribution

        distribution = score_distribution([])

        assert len(distribution) == 5
        assert all(bucket["count"] == 0 for bucket in distribution)

    def test_top_improvement_areas(self):
        from app.services.hr.report_service import top_improvement_areas

        areas = top_improvement_areas(
            [["Communication", "Punctuality"], None, ["Communication"], [], ["Teamwork", ""]],
            limit=2,
        )

        assert areas[0] == {"area": "Communication", "frequency": 2}
        assert len(areas) == 2


class TestHRReportService:

    @pytest.mark.asyncio
    async def test_invalid_report_type(self, mock_db_session):
        from app.services.hr.report_service import HRReportService

        with pytest.raises(AppError) as exc_info:
            await HRReportService(mock_db_session, 1).build("salaries")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid report type"
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_leaves_report(self, mock_db_session):
        from app.services.hr.report_service import HRReportService

        mock_db_session.execute = AsyncMock(side_effect=[
            _one(total=4, approved=3, pending=1, rejected=0),
            make_result(rows=[SimpleNamespace(leave_type="annual", count=4, total_days=9)]),
            make_result(rows=[SimpleNamespace(department="Operations", count=4, total_days=9)]),
        ])
        service = HRReportService(
            mock_db_session, 1, start_date=date(2024, 1, 1), end_date=date(2024, 12, 31)
        )

        report = await service.build("leaves")

        assert report["summary"]["approval_rate"] == 75.0
        assert report["summary"]["pending_leaves"] == 1
        assert report["leave_types"] == [{"type": "annual", "count": 4, "total_days": 9}]
        assert report["department_leaves"][0]["department"] == "Operations"

    @pytest.mark.asyncio
    async def test_attendance_report_empty(self, mock_db_session):
        from app.services.hr.report_service import HRReportService

        mock_db_session.execute = AsyncMock(side_effect=[
            _one(total=0, present=None, absent=None, late=None, average_hours=None),
            make_result(),
        ])

        report = await HRReportService(mock_db_session, 1, department="Sales").build("attendance")

        assert report["summary"]["attendance_rate"] == 0.0
        assert report["summary"]["average_hours"] == 0
        assert report["top_performers"] == []

    @pytest.mark.asyncio
    async def test_performance_report(self, mock_db_session):
        from app.models.performance_review import PerformanceReview
        from app.services.hr.report_service import HRReportService

        reviews = [
            PerformanceReview(employee_id=10, overall_score=4.5, areas_for_improvement=["Delegation"]),
            PerformanceReview(employee_id=11, overall_score=3.0, areas_for_improvement=["Delegation"]),
        ]
        mock_db_session.execute.return_value = make_result(scalars=reviews)

        report = await HRReportService(mock_db_session, 1).build("performance")

        assert report["summary"]["total_reviews"] == 2
        assert report["summary"]["average_score"] == 3.75
        assert report["top_performers"][0]["employee"]["first_name"] is None
        assert report["improvement_areas"] == [{"area": "Delegation", "frequency": 2}]
