"""
Expense occurrences - monthly generation and paid/skip toggles.

Occurrences are created lazily: on expense creation (current month), on the
first toggle for a month, or by OccurrenceGenerator for recurring expenses.
Insert is create-if-absent (idempotent). Toggles lock the occurrence row
(SELECT ... FOR UPDATE) so concurrent toggles of the same month serialize.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.errors import NotFoundError
from app.config import get_settings
from app.domain.expense import FREQUENCY_ONE_TIME, OccurrenceState, toggle_paid, toggle_skip
from app.domain.period import current_year_month
from app.infrastructure.db.models import ExpenseModel, ExpenseOccurrence, User
from app.utils.validation import parse_amount

logger = logging.getLogger(__name__)


class OccurrenceValidationError(ValueError):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_period(year: int | None, month: int | None) -> tuple[int, int]:
    """Fill missing year/month with the current month in the configured timezone."""
    base_year, base_month = current_year_month(get_settings().TIMEZONE)
    y = year if year is not None else base_year
    m = month if month is not None else base_month
    if not 1 <= m <= 12:
        raise OccurrenceValidationError("Месяц должен быть от 1 до 12")
    return y, m


def ensure_occurrence(db: Session, expense_id: int, year: int, month: int) -> tuple[ExpenseOccurrence, bool]:
    """
    Create-if-absent for (expense_id, year, month). Does not commit.

    Returns:
        (occurrence, created)
    """
    existing = db.query(ExpenseOccurrence).filter(
        ExpenseOccurrence.expense_id == expense_id,
        ExpenseOccurrence.year == year,
        ExpenseOccurrence.month == month,
    ).first()
    if existing:
        return existing, False

    occ = ExpenseOccurrence(expense_id=expense_id, year=year, month=month)
    try:
        with db.begin_nested():
            db.add(occ)
    except IntegrityError:
        # Concurrent insert won the unique constraint - use its row
        winner = db.query(ExpenseOccurrence).filter(
            ExpenseOccurrence.expense_id == expense_id,
            ExpenseOccurrence.year == year,
            ExpenseOccurrence.month == month,
        ).one()
        return winner, False
    return occ, True


def _get_owned_expense(db: Session, user_id: int, expense_id: int) -> ExpenseModel:
    expense = db.query(ExpenseModel).filter(
        ExpenseModel.id == expense_id,
        ExpenseModel.user_id == user_id,
    ).first()
    if not expense:
        raise NotFoundError(f"Расход #{expense_id} не найден")
    return expense


def _lock_occurrence(db: Session, occurrence_id: int) -> ExpenseOccurrence:
    return (
        db.query(ExpenseOccurrence)
        .filter(ExpenseOccurrence.id == occurrence_id)
        .with_for_update()
        .populate_existing()
        .one()
    )


def _state_of(occ: ExpenseOccurrence) -> OccurrenceState:
    return OccurrenceState(
        is_paid=occ.is_paid,
        paid_at=occ.paid_at,
        is_skipped=occ.is_skipped,
        skipped_at=occ.skipped_at,
        amount=occ.amount,
    )


def _apply_state(occ: ExpenseOccurrence, state: OccurrenceState) -> None:
    occ.is_paid = state.is_paid
    occ.paid_at = state.paid_at
    occ.is_skipped = state.is_skipped
    occ.skipped_at = state.skipped_at
    occ.amount = state.amount


class OccurrenceGenerator:
    def __init__(self, db: Session):
        self.db = db

    def generate_month(self, user_id: int, year: int, month: int) -> List[ExpenseOccurrence]:
        """
        Ensure every active, non-deleted recurring expense has an occurrence
        for (year, month). Existing occurrences are never touched.

        Returns:
            Newly created occurrences (empty on a re-run)
        """
        if not 1 <= month <= 12:
            raise OccurrenceValidationError("Месяц должен быть от 1 до 12")

        expenses = self.db.query(ExpenseModel).filter(
            ExpenseModel.user_id == user_id,
            ExpenseModel.active == True,
            ExpenseModel.deleted_at.is_(None),
            ExpenseModel.frequency != FREQUENCY_ONE_TIME,
        ).order_by(ExpenseModel.id).all()

        # Existing occurrences for this month in one query
        existing_ids = {
            row.expense_id for row in
            self.db.query(ExpenseOccurrence.expense_id).filter(
                ExpenseOccurrence.expense_id.in_([e.id for e in expenses]),
                ExpenseOccurrence.year == year,
                ExpenseOccurrence.month == month,
            ).all()
        } if expenses else set()

        created = []
        for expense in expenses:
            if expense.id in existing_ids:
                continue
            occ, was_created = ensure_occurrence(self.db, expense.id, year, month)
            if was_created:
                created.append(occ)

        if created:
            self.db.commit()
            logger.info("Generated %d occurrence(s) for user %s, %04d-%02d", len(created), user_id, year, month)
        return created


def generate_for_all_users(db: Session, year: int, month: int) -> int:
    """Scheduler entry point: generate (year, month) for every user. Returns total created."""
    total = 0
    generator = OccurrenceGenerator(db)
    for (user_id,) in db.query(User.id).order_by(User.id).all():
        total += len(generator.generate_month(user_id, year, month))
    return total


class TogglePaidUseCase:
    """
    Pending <-> Paid for an expense in a month.

    On the transition to Paid a final_amount (if given) becomes the
    occurrence's actual amount and the expense's estimate for future months.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        expense_id: int,
        year: int | None = None,
        month: int | None = None,
        final_amount=None,
    ) -> ExpenseOccurrence:
        y, m = resolve_period(year, month)

        amount: Decimal | None = None
        if final_amount is not None:
            try:
                amount = parse_amount(final_amount)
            except ValueError as e:
                raise OccurrenceValidationError(str(e))
            if amount <= 0:
                raise OccurrenceValidationError("Сумма должна быть больше 0")

        expense = _get_owned_expense(self.db, user_id, expense_id)
        occ, _ = ensure_occurrence(self.db, expense.id, y, m)
        self.db.flush()
        occ = _lock_occurrence(self.db, occ.id)

        was_paid = occ.is_paid
        _apply_state(occ, toggle_paid(_state_of(occ), _now(), amount))

        if not was_paid and amount is not None:
            expense.estimated_amount = amount

        self.db.commit()
        return occ


class ToggleSkipUseCase:
    """Enter / leave Skipped for an expense in a month (skipping drops Paid)."""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        expense_id: int,
        year: int | None = None,
        month: int | None = None,
    ) -> ExpenseOccurrence:
        y, m = resolve_period(year, month)

        expense = _get_owned_expense(self.db, user_id, expense_id)
        occ, _ = ensure_occurrence(self.db, expense.id, y, m)
        self.db.flush()
        occ = _lock_occurrence(self.db, occ.id)

        _apply_state(occ, toggle_skip(_state_of(occ), _now()))

        self.db.commit()
        return occ
