"""
Tests for salary upsert and month-range comparison
"""
import pytest

from app.application.comparison import get_comparison, ComparisonValidationError
from app.application.occurrences import TogglePaidUseCase
from app.application.salary import SetSalaryUseCase, SalaryValidationError, get_salary
from app.infrastructure.db.models import SalaryModel


class TestSalary:
    def test_upsert(self, db_session, sample_user_id):
        """Повторная установка обновляет ту же запись"""
        uc = SetSalaryUseCase(db_session)
        uc.execute(sample_user_id, 2024, 3, "10000")
        uc.execute(sample_user_id, 2024, 3, "12000,50")

        assert db_session.query(SalaryModel).count() == 1
        assert get_salary(db_session, sample_user_id, 2024, 3) == 12000.5

    def test_missing_is_none(self, db_session, sample_user_id):
        assert get_salary(db_session, sample_user_id, 2024, 3) is None

    @pytest.mark.parametrize("year,month,amount", [
        (2024, 3, "0"),
        (2024, 13, "100"),
        (2019, 1, "100"),
        (2031, 1, "100"),
    ])
    def test_validation(self, db_session, sample_user_id, year, month, amount):
        with pytest.raises(SalaryValidationError):
            SetSalaryUseCase(db_session).execute(sample_user_id, year, month, amount)


class TestComparison:
    def test_three_months_in_order(self, db_session, sample_user_id, make_expense):
        """(2024,1)..(2024,3): три периода, savings_rate по каждому отдельно"""
        expense = make_expense("Alquiler", "1000")
        salary = SetSalaryUseCase(db_session)
        salary.execute(sample_user_id, 2024, 1, 10000)
        salary.execute(sample_user_id, 2024, 2, 5000)
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 1)
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 2)

        result = get_comparison(db_session, sample_user_id, 2024, 1, 2024, 3)

        assert [(r["year"], r["month"]) for r in result] == [(2024, 1), (2024, 2), (2024, 3)]
        assert result[0]["savings_rate"] == 90
        assert result[1]["savings_rate"] == 80
        # без зарплаты - 0
        assert result[2]["salary"] == 0
        assert result[2]["savings_rate"] == 0

    def test_year_rollover(self, db_session, sample_user_id):
        result = get_comparison(db_session, sample_user_id, 2023, 12, 2024, 1)
        assert [r["month_name"] for r in result] == ["December 2023", "January 2024"]

    def test_invalid_month(self, db_session, sample_user_id):
        with pytest.raises(ComparisonValidationError):
            get_comparison(db_session, sample_user_id, 2024, 0, 2024, 3)

    def test_reversed_range_rejected(self, db_session, sample_user_id):
        with pytest.raises(ComparisonValidationError, match="позже"):
            get_comparison(db_session, sample_user_id, 2024, 3, 2024, 1)
