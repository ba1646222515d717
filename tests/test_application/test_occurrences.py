"""
Tests for occurrence generation and paid / skip toggles
"""
from decimal import Decimal

import pytest

from app.application.errors import NotFoundError
from app.application.expenses import DeleteExpenseUseCase, UpdateExpenseUseCase
from app.application.occurrences import (
    OccurrenceGenerator, TogglePaidUseCase, ToggleSkipUseCase,
    OccurrenceValidationError, ensure_occurrence, generate_for_all_users,
)
from app.infrastructure.db.models import ExpenseModel, ExpenseOccurrence


def _month_rows(db_session, year, month):
    return db_session.query(ExpenseOccurrence).filter(
        ExpenseOccurrence.year == year,
        ExpenseOccurrence.month == month,
    ).all()


class TestGenerator:
    def test_generates_recurring_only(self, db_session, sample_user_id, make_expense):
        monthly = make_expense("Alquiler", frequency="MONTHLY")
        make_expense("Regalo", frequency="ONE_TIME")
        weekly = make_expense("Feria", frequency="WEEKLY")

        created = OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 3)

        assert sorted(o.expense_id for o in created) == sorted([monthly.id, weekly.id])
        assert len(_month_rows(db_session, 2024, 3)) == 2

    def test_idempotent(self, db_session, sample_user_id, make_expense):
        """Повторный запуск не создаёт дубликатов и ничего не меняет"""
        make_expense("Alquiler")
        gen = OccurrenceGenerator(db_session)
        first = gen.generate_month(sample_user_id, 2024, 3)
        second = gen.generate_month(sample_user_id, 2024, 3)

        assert len(first) == 1
        assert second == []
        assert len(_month_rows(db_session, 2024, 3)) == 1

    def test_existing_state_untouched(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3)
        OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 3)

        rows = _month_rows(db_session, 2024, 3)
        assert len(rows) == 1
        assert rows[0].is_paid is True

    def test_skips_inactive_and_deleted(self, db_session, sample_user_id, make_expense):
        inactive = make_expense("Gimnasio")
        deleted = make_expense("Netflix")
        UpdateExpenseUseCase(db_session).execute(sample_user_id, inactive.id, active=False)
        DeleteExpenseUseCase(db_session).execute(sample_user_id, deleted.id)

        assert OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 3) == []

    def test_invalid_month(self, db_session, sample_user_id):
        with pytest.raises(OccurrenceValidationError):
            OccurrenceGenerator(db_session).generate_month(sample_user_id, 2024, 13)

    def test_all_users(self, db_session, sample_user_id, other_user_id, make_expense):
        make_expense("Alquiler")
        assert generate_for_all_users(db_session, 2024, 4) == 1


def test_ensure_occurrence_returns_existing(db_session, make_expense):
    expense = make_expense()
    occ, created = ensure_occurrence(db_session, expense.id, 2024, 5)
    db_session.commit()
    again, created_again = ensure_occurrence(db_session, expense.id, 2024, 5)
    assert created is True
    assert created_again is False
    assert again.id == occ.id


class TestTogglePaid:
    def test_final_amount_chain(self, db_session, sample_user_id, make_expense):
        """1000 -> оплата с final_amount=950: amount=950, estimate=950"""
        expense = make_expense("Luz", "1000")
        occ = TogglePaidUseCase(db_session).execute(
            sample_user_id, expense.id, 2024, 3, final_amount="950",
        )

        assert occ.is_paid is True
        assert occ.paid_at is not None
        assert occ.amount == Decimal("950")
        assert db_session.get(ExpenseModel, expense.id).estimated_amount == Decimal("950")

    def test_unpay_clears(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        uc = TogglePaidUseCase(db_session)
        uc.execute(sample_user_id, expense.id, 2024, 3, final_amount=900)
        occ = uc.execute(sample_user_id, expense.id, 2024, 3)

        assert occ.is_paid is False
        assert occ.paid_at is None
        assert occ.amount is None
        # estimate keeps the last final amount
        assert db_session.get(ExpenseModel, expense.id).estimated_amount == Decimal("900")

    def test_non_positive_final_amount(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        with pytest.raises(OccurrenceValidationError, match="больше 0"):
            TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3, final_amount=0)

    def test_not_owned(self, db_session, other_user_id, make_expense):
        expense = make_expense()
        with pytest.raises(NotFoundError):
            TogglePaidUseCase(db_session).execute(other_user_id, expense.id, 2024, 3)

    def test_creates_occurrence_lazily(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2023, 12)
        assert len(_month_rows(db_session, 2023, 12)) == 1


class TestToggleSkip:
    def test_skip_paid(self, db_session, sample_user_id, make_expense):
        """Пропуск оплаченного снимает оплату"""
        expense = make_expense()
        TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3)
        occ = ToggleSkipUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3)

        assert occ.is_skipped is True
        assert occ.skipped_at is not None
        assert occ.is_paid is False
        assert occ.paid_at is None

    def test_unskip(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        uc = ToggleSkipUseCase(db_session)
        uc.execute(sample_user_id, expense.id, 2024, 3)
        occ = uc.execute(sample_user_id, expense.id, 2024, 3)
        assert occ.is_skipped is False
        assert occ.skipped_at is None
        assert occ.is_paid is False

    def test_pay_skipped_clears_skip(self, db_session, sample_user_id, make_expense):
        expense = make_expense()
        ToggleSkipUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3)
        occ = TogglePaidUseCase(db_session).execute(sample_user_id, expense.id, 2024, 3)
        assert occ.is_paid is True
        assert occ.is_skipped is False
