"""
Tests for monthly aggregation: dashboard, details, pending, export
"""
from datetime import date

import pytest

from app.application.expenses import DeleteExpenseUseCase
from app.application.monthly import (
    get_monthly_dashboard, get_monthly_details, get_pending_expenses, get_export_data,
)
from app.application.occurrences import OccurrenceGenerator, TogglePaidUseCase, ToggleSkipUseCase
from app.application.salary import SetSalaryUseCase
from app.config import get_settings
from app.domain.period import current_year_month


class TestEmptyMonth:
    def test_dashboard_empty(self, db_session, sample_user_id, make_expense):
        """Месяц без occurrences: пустой список и нулевые итоги"""
        make_expense()
        data = get_monthly_dashboard(db_session, sample_user_id, 2020, 1)
        assert data["items"] == []
        assert data["total_estimated"] == 0
        assert data["total_paid"] == 0
        assert data["total_pending"] == 0

    def test_details_empty(self, db_session, sample_user_id):
        data = get_monthly_details(db_session, sample_user_id, 2020, 1)
        assert data["items"] == []
        assert data["total_actual"] == 0
        assert data["category_data"] == []
        assert data["month_name"] == "January 2020"


class TestDashboard:
    def test_totals(self, db_session, sample_user_id, make_expense):
        rent = make_expense("Alquiler", "1000")
        power = make_expense("Luz", "300")
        gym = make_expense("Gimnasio", "200")
        OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 3)

        TogglePaidUseCase(db_session).execute(sample_user_id, rent.id, 2024, 3)
        ToggleSkipUseCase(db_session).execute(sample_user_id, gym.id, 2024, 3)

        data = get_monthly_dashboard(db_session, sample_user_id, 2024, 3)
        assert len(data["items"]) == 3
        # skipped не входит в итоги
        assert data["total_estimated"] == pytest.approx(1300)
        assert data["total_paid"] == pytest.approx(1000)
        assert data["total_pending"] == pytest.approx(300)
        assert {i["name"] for i in data["items"] if i["is_skipped"]} == {"Gimnasio"}
        assert power.id in {i["expense_id"] for i in data["items"]}

    def test_deleted_expense_hidden(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 3)
        DeleteExpenseUseCase(db_session).execute(sample_user_id, expense.id)
        assert get_monthly_dashboard(db_session, sample_user_id, 2024, 3)["items"] == []


class TestDetails:
    def test_final_amount_chain(self, db_session, sample_user_id, make_expense):
        """1000 оплачено как 950: total_actual=950, total_paid=950 (через новый estimate)"""
        expense = make_expense("Luz", "1000")
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3, final_amount=950)

        data = get_monthly_details(db_session, sample_user_id, 2024, 3)
        item = data["items"][0]
        assert item["actual_amount"] == 950
        assert item["estimated_amount"] == 950
        assert data["total_actual"] == 950
        assert data["total_paid"] == 950
        assert data["paid_count"] == 1
        assert data["pending_count"] == 0

    def test_actual_falls_back_to_estimate(self, db_session, sample_user_id, make_expense):
        expense = make_expense("Agua", "400")
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3)
        data = get_monthly_details(db_session, sample_user_id, 2024, 3)
        assert data["total_actual"] == 400

    def test_category_data(self, db_session, sample_user_id, make_expense):
        a = make_expense("Alquiler", "1000")
        make_expense("Expensas", "200")
        OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 3)
        TogglePaidUseCase(db_session).execute(sample_user_id, a.id, 2024, 3, final_amount=1100)

        data = get_monthly_details(db_session, sample_user_id, 2024, 3)
        assert data["category_data"] == [
            {"category": "Vivienda", "estimated": 1300.0, "actual": 1100.0, "count": 2},
        ]


def test_pending_expenses(db_session, sample_user_id, make_expense):
    year, month = current_year_month(get_settings().TIMEZONE)
    paid = make_expense("Alquiler")
    make_expense("Luz", "300")
    TogglePaidUseCase(db_session).execute(sample_user_id, paid.id, year, month)

    pending = get_pending_expenses(db_session, sample_user_id, today=date(year, month, 6))
    assert [p["name"] for p in pending] == ["Luz"]
    assert pending[0]["days_overdue"] == 5
    assert pending[0]["category_name"] == "Vivienda"


def test_export_includes_salary(db_session, sample_user_id, make_expense):
    make_expense()
    SetSalaryUseCase(db_session).execute(sample_user_id, 2024, 3, "10000")
    data = get_export_data(db_session, sample_user_id, 2024, 3)
    assert data["salary"] == 10000
    assert "export_date" in data
