"""
Expense API endpoints (CRUD, soft delete / restore, duplicate, paid / skip toggles)
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.infrastructure.db.models import User, ExpenseModel, ExpenseOccurrence
from app.application.expenses import (
    CreateExpenseUseCase, UpdateExpenseUseCase, DeleteExpenseUseCase,
    RestoreExpenseUseCase, DuplicateExpenseUseCase,
    list_expenses, list_deleted_expenses,
)
from app.application.occurrences import TogglePaidUseCase, ToggleSkipUseCase
from app.domain.expense import FREQUENCIES, OccurrenceState


router = APIRouter(prefix="/api/v1/expenses", tags=["expenses"])


# === Request/Response models ===

class CreateExpenseRequest(BaseModel):
    name: str
    estimated_amount: float | str
    frequency: str  # WEEKLY, MONTHLY, ANNUAL, ONE_TIME
    category_id: int
    subcategory_id: int
    active: bool = True

    @field_validator("frequency")
    @classmethod
    def validate_frequency(cls, v: str) -> str:
        """Валидация периодичности"""
        if v not in FREQUENCIES:
            raise ValueError(f"frequency должен быть одним из {', '.join(FREQUENCIES)}, получено: {v}")
        return v


class UpdateExpenseRequest(BaseModel):
    name: str | None = None
    estimated_amount: float | str | None = None
    frequency: str | None = None
    category_id: int | None = None
    subcategory_id: int | None = None
    active: bool | None = None


class TogglePaidRequest(BaseModel):
    year: int | None = None
    month: int | None = None
    final_amount: float | str | None = None


class ToggleSkipRequest(BaseModel):
    year: int | None = None
    month: int | None = None


class ExpenseResponse(BaseModel):
    id: int
    name: str
    estimated_amount: float
    frequency: str
    category_id: int
    subcategory_id: int
    active: bool
    deleted_at: datetime | None


class OccurrenceResponse(BaseModel):
    expense_id: int
    year: int
    month: int
    status: str  # PENDING, PAID, SKIPPED
    is_paid: bool
    paid_at: datetime | None
    is_skipped: bool
    skipped_at: datetime | None
    amount: float | None


def _expense_response(e: ExpenseModel) -> ExpenseResponse:
    return ExpenseResponse(
        id=e.id,
        name=e.name,
        estimated_amount=float(e.estimated_amount),
        frequency=e.frequency,
        category_id=e.category_id,
        subcategory_id=e.subcategory_id,
        active=e.active,
        deleted_at=e.deleted_at,
    )


def _occurrence_response(o: ExpenseOccurrence) -> OccurrenceResponse:
    state = OccurrenceState(is_paid=o.is_paid, is_skipped=o.is_skipped)
    return OccurrenceResponse(
        expense_id=o.expense_id,
        year=o.year,
        month=o.month,
        status=state.status,
        is_paid=o.is_paid,
        paid_at=o.paid_at,
        is_skipped=o.is_skipped,
        skipped_at=o.skipped_at,
        amount=float(o.amount) if o.amount is not None else None,
    )


# === Endpoints ===

@router.post("/", response_model=ExpenseResponse, status_code=201)
def create_expense(
    req: CreateExpenseRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Создать расход (+ occurrence на текущий месяц)"""
    expense = CreateExpenseUseCase(db).execute(
        user_id=user.id,
        name=req.name,
        estimated_amount=req.estimated_amount,
        frequency=req.frequency,
        category_id=req.category_id,
        subcategory_id=req.subcategory_id,
        active=req.active,
    )
    return _expense_response(expense)


@router.get("/", response_model=list[ExpenseResponse])
def get_expenses(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Активные, не удалённые расходы"""
    return [_expense_response(e) for e in list_expenses(db, user.id)]


@router.get("/deleted", response_model=list[ExpenseResponse])
def get_deleted_expenses(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Корзина: удалённые расходы"""
    return [_expense_response(e) for e in list_deleted_expenses(db, user.id)]


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    req: UpdateExpenseRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    changes = req.model_dump(exclude_unset=True)
    expense = UpdateExpenseUseCase(db).execute(user.id, expense_id, **changes)
    return _expense_response(expense)


@router.delete("/{expense_id}", response_model=ExpenseResponse)
def delete_expense(
    expense_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Soft delete"""
    return _expense_response(DeleteExpenseUseCase(db).execute(user.id, expense_id))


@router.post("/{expense_id}/restore", response_model=ExpenseResponse)
def restore_expense(
    expense_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _expense_response(RestoreExpenseUseCase(db).execute(user.id, expense_id))


@router.post("/{expense_id}/duplicate", response_model=ExpenseResponse, status_code=201)
def duplicate_expense(
    expense_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Копия расхода как ONE_TIME в текущем месяце"""
    return _expense_response(DuplicateExpenseUseCase(db).execute(user.id, expense_id))


@router.post("/{expense_id}/toggle-paid", response_model=OccurrenceResponse)
def toggle_paid(
    expense_id: int,
    req: TogglePaidRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Pending <-> Paid (по умолчанию текущий месяц)"""
    occ = TogglePaidUseCase(db).execute(
        user_id=user.id,
        expense_id=expense_id,
        year=req.year,
        month=req.month,
        final_amount=req.final_amount,
    )
    return _occurrence_response(occ)


@router.post("/{expense_id}/toggle-skip", response_model=OccurrenceResponse)
def toggle_skip(
    expense_id: int,
    req: ToggleSkipRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    occ = ToggleSkipUseCase(db).execute(
        user_id=user.id,
        expense_id=expense_id,
        year=req.year,
        month=req.month,
    )
    return _occurrence_response(occ)
