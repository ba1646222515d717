"""
Tests for generated reports: snapshots, insights, access and download
"""
import json
from datetime import date

import pytest

from app.application.errors import NotFoundError
from app.application.occurrences import TogglePaidUseCase
from app.application.reports import (
    GenerateMonthlySummaryReportUseCase, GenerateBudgetAnalysisReportUseCase,
    GenerateSpendingTrendsReportUseCase, DeleteReportUseCase, ReportValidationError,
    build_report_download, get_report, list_reports, trend_insights, budget_recommendations,
)
from app.application.salary import SetSalaryUseCase
from app.infrastructure.db.models import ReportModel


@pytest.fixture
def march(db_session, sample_user_id, make_expense):
    """Март 2024: зарплата 10000, аренда 3500 оплачена, свет 300 не оплачен"""
    SetSalaryUseCase(db_session).execute(sample_user_id, 2024, 3, 10000)
    rent = make_expense("Alquiler", "3500")
    make_expense("Luz", "300")
    TogglePaidUseCase(db_session).execute(sample_user_id, rent.id, 2024, 3)
    TogglePaidUseCase(db_session).execute(sample_user_id, rent.id, 2024, 2)
    return rent


class TestMonthlySummary:
    def test_snapshot(self, db_session, sample_user_id, march):
        report = GenerateMonthlySummaryReportUseCase(db_session).execute(sample_user_id, 2024, 3)

        assert report.status == "COMPLETED"
        assert report.generated_at is not None
        assert report.title == "Monthly Summary - March 2024"
        assert report.start_date == date(2024, 3, 1)
        assert report.end_date == date(2024, 3, 31)
        assert report.categories == ["Vivienda"]

        summary = report.data["summary"]
        assert summary["total_actual"] == 3500
        assert summary["monthly_income"] == 10000
        assert summary["savings_amount"] == 6500
        assert summary["savings_rate"] == 65
        # только occurrence марта для аренды
        assert [e["name"] for e in report.data["expenses"]] == ["Alquiler"]

    def test_insights(self, db_session, sample_user_id, march):
        report = GenerateMonthlySummaryReportUseCase(db_session).execute(sample_user_id, 2024, 3)
        titles = [i["title"] for i in report.data["insights"]]
        # 35% расходов -> хорошая экономия; 3500 > 3000 -> перерасход
        assert "Great Savings Rate" in titles
        assert "Budget Exceeded" in titles


class TestBudgetAnalysisReport:
    def test_performance_and_recommendations(self, db_session, sample_user_id, march):
        report = GenerateBudgetAnalysisReportUseCase(db_session).execute(sample_user_id, 2024, 3)

        assert report.title == "Budget Analysis - March 2024"
        perf = report.data["performance"]
        assert perf["categories_over_budget"] == 1
        assert perf["categories_on_track"] == 0
        types = [r["type"] for r in report.data["recommendations"]]
        assert "allocation" in types
        assert "reduction" in types

    def test_no_income(self, db_session, sample_user_id, category):
        report = GenerateBudgetAnalysisReportUseCase(db_session).execute(sample_user_id, 2024, 3)
        assert report.data["categories"] == []
        assert report.data["performance"]["average_usage"] == 0


class TestSpendingTrends:
    def test_trends(self, db_session, sample_user_id, march):
        report = GenerateSpendingTrendsReportUseCase(db_session).execute(sample_user_id, 2024, 1, 2024, 3)

        assert report.title == "Spending Trends - 3 months"
        assert report.description == "Spending analysis from January 2024 to March 2024"
        assert [p["month"] for p in report.data["total_spending"]] == [1, 2, 3]
        series = report.data["category_trends"]["Vivienda"]
        assert [p["month"] for p in series] == [2, 3]

    def test_reversed_range(self, db_session, sample_user_id):
        with pytest.raises(ReportValidationError):
            GenerateSpendingTrendsReportUseCase(db_session).execute(sample_user_id, 2024, 3, 2024, 1)


def test_trend_insights_threshold():
    base = {"total_actual": 1000}
    assert trend_insights([base, {"total_actual": 1050}]) == []
    up = trend_insights([base, {"total_actual": 1200}])
    assert up[0]["title"] == "Spending Increased"
    down = trend_insights([base, {"total_actual": 500}])
    assert down[0]["type"] == "positive"
    assert trend_insights([{"total_actual": 0}, {"total_actual": 500}]) == []


def test_budget_recommendations_underused():
    budget = {
        "has_unassigned_income": False,
        "unassigned_amount": 0,
        "categories": [{
            "name": "Ocio", "is_over_budget": False, "remaining": 900,
            "usage_percentage": 10, "budget_percentage": 10,
        }],
    }
    recs = budget_recommendations(budget)
    assert [r["type"] for r in recs] == ["reallocation"]


class TestAccess:
    def test_get_counts_download(self, db_session, sample_user_id, march):
        report = GenerateMonthlySummaryReportUseCase(db_session).execute(sample_user_id, 2024, 3)
        get_report(db_session, sample_user_id, report.id)
        fetched = get_report(db_session, sample_user_id, report.id)
        assert fetched.download_count == 2
        assert fetched.last_download_at is not None

    def test_not_owned(self, db_session, sample_user_id, other_user_id, march):
        report = GenerateMonthlySummaryReportUseCase(db_session).execute(sample_user_id, 2024, 3)
        with pytest.raises(NotFoundError):
            get_report(db_session, other_user_id, report.id)
        with pytest.raises(NotFoundError):
            DeleteReportUseCase(db_session).execute(other_user_id, report.id)

    def test_list_and_delete(self, db_session, sample_user_id, march):
        uc = GenerateBudgetAnalysisReportUseCase(db_session)
        first = uc.execute(sample_user_id, 2024, 3)
        uc.execute(sample_user_id, 2024, 2)
        assert len(list_reports(db_session, sample_user_id)) == 2

        DeleteReportUseCase(db_session).execute(sample_user_id, first.id)
        assert db_session.query(ReportModel).count() == 1


class TestDownload:
    def test_filename_and_content(self, db_session, sample_user_id, march):
        report = GenerateSpendingTrendsReportUseCase(db_session).execute(sample_user_id, 2024, 1, 2024, 3)
        filename, text = build_report_download(report)

        assert filename == "spending-trends-2024-01-to-2024-03.json"
        content = json.loads(text)
        assert content["type"] == "SPENDING_TRENDS"
        assert content["period"] == {"start_date": "2024-01-01", "end_date": "2024-03-31"}
        assert "downloaded_at" in content

    def test_monthly_filename(self, db_session, sample_user_id, march):
        report = GenerateMonthlySummaryReportUseCase(db_session).execute(sample_user_id, 2024, 3)
        assert build_report_download(report)[0] == "monthly-summary-2024-03.json"

    def test_without_data(self, db_session, sample_user_id, march):
        report = GenerateMonthlySummaryReportUseCase(db_session).execute(sample_user_id, 2024, 3)
        report.data = None
        with pytest.raises(ReportValidationError):
            build_report_download(report)
