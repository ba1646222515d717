"""
Expense use cases - CRUD, soft delete / restore, duplicate into current month.
"""
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from app.application.categories import get_owned_category, get_owned_subcategory
from app.application.errors import NotFoundError
from app.application.occurrences import ensure_occurrence, resolve_period
from app.domain.expense import FREQUENCIES, FREQUENCY_ONE_TIME
from app.infrastructure.db.models import ExpenseModel
from app.utils.validation import parse_amount, validate_name

NAME_MAX_LENGTH = 100


class ExpenseValidationError(ValueError):
    """Ошибка валидации расхода"""
    pass


def _validated_name(value: str) -> str:
    try:
        return validate_name(value, NAME_MAX_LENGTH)
    except ValueError as e:
        raise ExpenseValidationError(str(e))


def _validated_amount(value):
    try:
        amount = parse_amount(value)
    except ValueError as e:
        raise ExpenseValidationError(str(e))
    if amount < 0:
        raise ExpenseValidationError("Сумма не может быть отрицательной")
    return amount


def _validated_frequency(value: str) -> str:
    if value not in FREQUENCIES:
        raise ExpenseValidationError(
            f"Неверная периодичность: {value}. Используйте {', '.join(FREQUENCIES)}"
        )
    return value


def get_owned_expense(db: Session, user_id: int, expense_id: int) -> ExpenseModel:
    expense = db.query(ExpenseModel).filter(
        ExpenseModel.id == expense_id,
        ExpenseModel.user_id == user_id,
    ).first()
    if not expense:
        raise NotFoundError(f"Расход #{expense_id} не найден")
    return expense


def _check_classification(db: Session, user_id: int, category_id: int, subcategory_id: int) -> None:
    get_owned_category(db, user_id, category_id)
    sub = get_owned_subcategory(db, user_id, subcategory_id)
    if sub.category_id != category_id:
        raise ExpenseValidationError("Подкатегория не относится к выбранной категории")


class CreateExpenseUseCase:
    """
    Создать расход и occurrence на текущий месяц.

    ONE_TIME расход получает ровно это occurrence; recurring - дальнейшие
    месяцы создаёт OccurrenceGenerator.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: int,
        name: str,
        estimated_amount,
        frequency: str,
        category_id: int,
        subcategory_id: int,
        active: bool = True,
    ) -> ExpenseModel:
        name = _validated_name(name)
        amount = _validated_amount(estimated_amount)
        frequency = _validated_frequency(frequency)
        _check_classification(self.db, user_id, category_id, subcategory_id)

        expense = ExpenseModel(
            user_id=user_id,
            name=name,
            estimated_amount=amount,
            frequency=frequency,
            category_id=category_id,
            subcategory_id=subcategory_id,
            active=active,
        )
        self.db.add(expense)
        self.db.flush()

        year, month = resolve_period(None, None)
        ensure_occurrence(self.db, expense.id, year, month)

        self.db.commit()
        return expense


class UpdateExpenseUseCase:
    """Partial update: only passed fields change"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, expense_id: int, **changes) -> ExpenseModel:
        expense = get_owned_expense(self.db, user_id, expense_id)

        if "name" in changes:
            expense.name = _validated_name(changes["name"])
        if "estimated_amount" in changes:
            expense.estimated_amount = _validated_amount(changes["estimated_amount"])
        if "frequency" in changes:
            expense.frequency = _validated_frequency(changes["frequency"])
        if "active" in changes:
            expense.active = bool(changes["active"])

        if "category_id" in changes or "subcategory_id" in changes:
            category_id = changes.get("category_id", expense.category_id)
            subcategory_id = changes.get("subcategory_id", expense.subcategory_id)
            _check_classification(self.db, user_id, category_id, subcategory_id)
            expense.category_id = category_id
            expense.subcategory_id = subcategory_id

        self.db.commit()
        return expense


class DeleteExpenseUseCase:
    """Soft delete: deleted_at = now"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, expense_id: int) -> ExpenseModel:
        expense = get_owned_expense(self.db, user_id, expense_id)
        expense.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        return expense


class RestoreExpenseUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, expense_id: int) -> ExpenseModel:
        expense = get_owned_expense(self.db, user_id, expense_id)
        if expense.deleted_at is None:
            raise ExpenseValidationError("Расход не удалён")
        expense.deleted_at = None
        self.db.commit()
        return expense


class DuplicateExpenseUseCase:
    """Copy an expense as a ONE_TIME expense with an occurrence in the current month"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, expense_id: int) -> ExpenseModel:
        source = get_owned_expense(self.db, user_id, expense_id)
        if source.deleted_at is not None:
            raise ExpenseValidationError("Нельзя дублировать удалённый расход")

        return CreateExpenseUseCase(self.db).execute(
            user_id=user_id,
            name=source.name,
            estimated_amount=source.estimated_amount,
            frequency=FREQUENCY_ONE_TIME,
            category_id=source.category_id,
            subcategory_id=source.subcategory_id,
        )


def list_expenses(db: Session, user_id: int) -> List[ExpenseModel]:
    """Active, non-deleted expenses by name"""
    return db.query(ExpenseModel).filter(
        ExpenseModel.user_id == user_id,
        ExpenseModel.active == True,
        ExpenseModel.deleted_at.is_(None),
    ).order_by(ExpenseModel.name.asc()).all()


def list_deleted_expenses(db: Session, user_id: int) -> List[ExpenseModel]:
    """Soft-deleted expenses, most recently deleted first"""
    return db.query(ExpenseModel).filter(
        ExpenseModel.user_id == user_id,
        ExpenseModel.deleted_at.is_not(None),
    ).order_by(ExpenseModel.deleted_at.desc()).all()
